"""Ready-made decoders for common configuration formats.

Each decoder takes a binary stream and returns the parsed value, raising on
malformed input. They plug directly into ConfigWatcher or Reloadable.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, BinaryIO, TypeVar

import yaml
from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


def load_json(stream: BinaryIO) -> Any:
    """Parse a JSON document."""
    return json.load(stream)


def load_yaml(stream: BinaryIO) -> Any:
    """Parse a YAML document. An empty document yields an empty dict."""
    data = yaml.safe_load(stream)
    return {} if data is None else data


def model_parser(
    model: type[ModelT],
    loader: Callable[[BinaryIO], Any] = load_yaml,
) -> Callable[[BinaryIO], ModelT]:
    """Build a decoder that validates the loaded data against a pydantic model.

    Args:
        model: The pydantic model class describing the configuration.
        loader: Function turning the stream into plain data (YAML by default).

    Returns:
        A decoder returning a validated model instance. pydantic's
        ValidationError propagates unchanged.

    Example:
        class AppConfig(BaseModel):
            db_uri: str

        config = Reloadable("config.yaml", model_parser(AppConfig))
    """

    def parse(stream: BinaryIO) -> ModelT:
        return model.model_validate(loader(stream))

    parse.__name__ = f"parse_{model.__name__}"
    return parse
