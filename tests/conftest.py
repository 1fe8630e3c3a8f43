"""Root pytest configuration for all tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


@pytest.fixture
def users_file(tmp_path: Path) -> Path:
    """A JSON config file with two users."""
    path = tmp_path / "testcfg.json"
    path.write_text(json.dumps({"users": ["a", "b"]}))
    return path


@pytest.fixture
def reset_logging():
    """Allow setup_logging() to run again and drop handlers it added."""
    import liveconfig.logging as logging_module

    logging_module._initialized = False
    handlers = list(logging_module.logger.handlers)
    level = logging_module.logger.level
    yield logging_module
    for handler in logging_module.logger.handlers:
        if handler not in handlers:
            logging_module.logger.removeHandler(handler)
            handler.close()
    logging_module.logger.setLevel(level)
    logging_module._initialized = False
