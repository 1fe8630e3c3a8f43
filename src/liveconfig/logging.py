"""Logging for liveconfig.

Every module logs through a child of the ``liveconfig`` logger. The library
never installs handlers on its own; an application that wants the watcher's
diagnostics calls setup_logging() once, pointing it at a file via
LoggingConfig.file or the LIVECONFIG_LOG environment variable.

Reload cycles log at TRACE, so ``verbose=4`` shows every read and event.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from liveconfig.settings import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("liveconfig")

_initialized = False

# verbose=N, 0 = errors only .. 4 = every reload cycle
_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


class _WatchFormatter(logging.Formatter):
    """``HH:MM:SS level: message`` with lowercase level names."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s: %(message)s", datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level for a LoggingConfig; ``verbose`` beats ``level``."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        return _VERBOSITY[min(max(config.verbose, 0), len(_VERBOSITY) - 1)]
    if config.level:
        name = config.level.upper()
        if name == "WARN":
            name = "WARNING"
        level = logging.getLevelName(name)
        if isinstance(level, int):
            return level
    return logging.INFO


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach liveconfig's handler. Only the first call has any effect.

    Logs go to the configured file. Without one, or if it cannot be opened,
    they go to stderr when stderr is a terminal and are dropped otherwise.
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    path = config.file if config and config.file else os.environ.get("LIVECONFIG_LOG")
    handler: logging.Handler | None = None
    if path:
        try:
            handler = logging.FileHandler(os.path.expanduser(path), encoding="utf-8")
        except OSError as e:
            logger.debug("Cannot open log file %s: %s", path, e)
    if handler is None:
        if not sys.stderr.isatty():
            return
        handler = logging.StreamHandler(sys.stderr)

    handler.setLevel(level)
    handler.setFormatter(_WatchFormatter())
    logger.addHandler(handler)


def get_logger(name: str | None = None) -> logging.Logger:
    """The ``liveconfig`` logger, or its child ``liveconfig.<name>``."""
    return logger.getChild(name) if name else logger
