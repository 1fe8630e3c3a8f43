"""Exception types raised or reported by liveconfig.

Only WatchSetupError and ConfigNotLoadedError are ever raised to callers.
FileOpenError and FileReadError are delivered to change callbacks.
"""

from __future__ import annotations

from pathlib import Path


class LiveConfigError(Exception):
    """Base class for all liveconfig errors."""


class WatchSetupError(LiveConfigError):
    """The filesystem subscription for a watched file could not be set up."""


class FileOpenError(LiveConfigError):
    """The watched file could not be opened during a reload cycle."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"opening file {self.path}")


class FileReadError(LiveConfigError):
    """Reading the watched file failed part-way through a reload cycle."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"reading file {self.path}")


class ConfigNotLoadedError(LiveConfigError):
    """No successful load has happened yet."""
