"""Library settings for liveconfig.

Settings come from three layers, later ones winning:
1. Dataclass defaults
2. An optional YAML settings file
3. Environment variables (LIVECONFIG_*)

Example settings.yaml:
    watch:
      settle_interval: 0.5
      fallback_interval: 10
    logging:
      level: debug
      file: ~/.cache/liveconfig.log
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_log = logging.getLogger("liveconfig.settings")

# Seconds to let a file settle after a change notification
DEFAULT_SETTLE_INTERVAL = 1.0

# Seconds between forced reloads when no notification arrives
DEFAULT_FALLBACK_INTERVAL = 30.0


@dataclass
class WatchSettings:
    """Timing of the watch loop."""

    settle_interval: float = DEFAULT_SETTLE_INTERVAL
    fallback_interval: float = DEFAULT_FALLBACK_INTERVAL

    def __post_init__(self) -> None:
        if self.settle_interval <= 0:
            raise ValueError(f"settle_interval must be positive: {self.settle_interval}")
        if self.fallback_interval <= 0:
            raise ValueError(f"fallback_interval must be positive: {self.fallback_interval}")


@dataclass
class LoggingConfig:
    """Logging configuration.

    Verbosity levels (verbose):
        0 = error, 1 = warning, 2 = info (default), 3 = verbose, 4 = trace
    """

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path (env: LIVECONFIG_LOG)


@dataclass
class Settings:
    """Root settings object."""

    watch: WatchSettings = field(default_factory=WatchSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def _env_float(name: str) -> float | None:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        _log.warning("Ignoring non-numeric %s=%r", name, raw)
        return None


def env_overrides() -> dict[str, Any]:
    """Build a settings dict from LIVECONFIG_* environment variables."""
    overrides: dict[str, Any] = {}

    settle = _env_float("LIVECONFIG_SETTLE_INTERVAL")
    if settle is not None:
        overrides.setdefault("watch", {})["settle_interval"] = settle

    fallback = _env_float("LIVECONFIG_FALLBACK_INTERVAL")
    if fallback is not None:
        overrides.setdefault("watch", {})["fallback_interval"] = fallback

    log_path = os.environ.get("LIVECONFIG_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    log_level = os.environ.get("LIVECONFIG_LOG_LEVEL")
    if log_level:
        overrides.setdefault("logging", {})["level"] = log_level

    return overrides


def _merge_section(base: dict[str, Any], override: Any) -> dict[str, Any]:
    # None values never override, so partial sections stay partial
    if not isinstance(override, dict):
        return base
    result = base.copy()
    result.update({k: v for k, v in override.items() if v is not None})
    return result


def dict_to_settings(data: dict[str, Any]) -> Settings:
    """Convert a merged settings dict to a typed Settings object."""
    watch_data = data.get("watch", {})
    log_data = data.get("logging", {})

    watch = WatchSettings(
        settle_interval=float(watch_data.get("settle_interval", DEFAULT_SETTLE_INTERVAL)),
        fallback_interval=float(watch_data.get("fallback_interval", DEFAULT_FALLBACK_INTERVAL)),
    )
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )
    return Settings(watch=watch, logging=logging_config)


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from defaults, an optional YAML file and the environment.

    Args:
        path: Optional YAML settings file.

    Returns:
        Merged Settings object.

    Raises:
        ValueError: If the merged values are out of range.
    """
    merged: dict[str, Any] = {"watch": {}, "logging": {}}

    layers: list[dict[str, Any]] = []
    if path is not None:
        file_data = load_yaml_file(Path(path))
        if file_data:
            _log.debug("Loaded settings from %s", path)
            layers.append(file_data)
    layers.append(env_overrides())

    for layer in layers:
        for section in ("watch", "logging"):
            merged[section] = _merge_section(merged[section], layer.get(section))

    return dict_to_settings(merged)
