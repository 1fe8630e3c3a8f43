"""liveconfig: configuration files that reload themselves.

Watches a single file with watchdog plus a periodic fallback, re-parses it
through a caller-supplied decoder, and reports only real content changes
(SHA-256 of the bytes), never notification noise.

Example usage:
    from liveconfig import ConfigWatcher, Reloadable, load_json

    # Low-level: decoder and callback
    watcher = ConfigWatcher("config.json", decode, on_change)
    ...
    watcher.close()

    # High-level: a value that tracks the file
    config = Reloadable("config.json", load_json)
    print(config.value)
"""

__version__ = "0.1.0"

from liveconfig.decoders import load_json, load_yaml, model_parser
from liveconfig.digest import HashingReader
from liveconfig.errors import (
    ConfigNotLoadedError,
    FileOpenError,
    FileReadError,
    LiveConfigError,
    WatchSetupError,
)
from liveconfig.logging import get_logger, setup_logging
from liveconfig.reloadable import Reloadable
from liveconfig.settings import LoggingConfig, Settings, WatchSettings, load_settings
from liveconfig.watcher import ConfigWatcher, ReloadOutcome, ReloadResult, watch

__all__ = [
    # Watching
    "ConfigWatcher",
    "ReloadOutcome",
    "ReloadResult",
    "Reloadable",
    "watch",
    # Decoders
    "HashingReader",
    "load_json",
    "load_yaml",
    "model_parser",
    # Errors
    "LiveConfigError",
    "WatchSetupError",
    "FileOpenError",
    "FileReadError",
    "ConfigNotLoadedError",
    # Settings and logging
    "Settings",
    "WatchSettings",
    "LoggingConfig",
    "load_settings",
    "setup_logging",
    "get_logger",
]
