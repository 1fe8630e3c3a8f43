"""A value that follows a configuration file.

Reloadable wraps a ConfigWatcher. Each cycle parses the file into a pending
value, and the value is only swapped in when the load succeeded. Readers on
any thread see either the old value or the new one, never a half-applied
update, and a broken file never replaces a working configuration.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO, Generic, TypeVar

from liveconfig.errors import ConfigNotLoadedError
from liveconfig.logging import get_logger
from liveconfig.settings import WatchSettings
from liveconfig.watcher import ConfigWatcher

log = get_logger("reloadable")

T = TypeVar("T")

_UNSET = object()


class Reloadable(Generic[T]):
    """Current parsed value of a configuration file.

    Example:
        config = Reloadable("config.json", load_json)
        config.on_reload(lambda value: print("new config", value))
        db_uri = config.value["db_uri"]
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        parser: Callable[[BinaryIO], T],
        *,
        settings: WatchSettings | None = None,
    ) -> None:
        """Start watching ``path``.

        Returns once the first load has been attempted. If it failed,
        ``last_error`` holds the reason and ``value`` raises.

        Raises:
            WatchSetupError: The file could not be watched.
            ValueError: ``settings`` was omitted and the environment holds
                an invalid interval.
        """
        self._parser = parser
        self._lock = threading.Lock()
        self._value: object = _UNSET
        self._pending: object = _UNSET
        self._last_error: BaseException | None = None
        self._reload_callbacks: list[Callable[[T], None]] = []
        self._error_callbacks: list[Callable[[BaseException], None]] = []
        self._watcher = ConfigWatcher(path, self._decode, self._apply, settings=settings)

    @property
    def path(self) -> Path:
        return self._watcher.path

    @property
    def loaded(self) -> bool:
        """True once at least one load has succeeded."""
        with self._lock:
            return self._value is not _UNSET

    @property
    def value(self) -> T:
        """The most recently loaded value.

        Raises:
            ConfigNotLoadedError: No load has succeeded yet.
        """
        with self._lock:
            if self._value is _UNSET:
                raise ConfigNotLoadedError(
                    f"{self._watcher.path} has not been loaded"
                ) from self._last_error
            return self._value  # type: ignore[return-value]

    @property
    def last_error(self) -> BaseException | None:
        """Error from the most recent reported load, None if it succeeded."""
        with self._lock:
            return self._last_error

    def on_reload(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback to be called with each newly applied value.

        Returns:
            A function to unregister the callback.
        """
        self._reload_callbacks.append(callback)

        def unregister() -> None:
            if callback in self._reload_callbacks:
                self._reload_callbacks.remove(callback)

        return unregister

    def on_error(self, callback: Callable[[BaseException], None]) -> Callable[[], None]:
        """Register a callback to be called with each reported load error.

        Returns:
            A function to unregister the callback.
        """
        self._error_callbacks.append(callback)

        def unregister() -> None:
            if callback in self._error_callbacks:
                self._error_callbacks.remove(callback)

        return unregister

    def close(self) -> None:
        """Stop following the file. The last value stays available."""
        self._watcher.close()

    def join(self, timeout: float | None = None) -> bool:
        return self._watcher.join(timeout)

    def __enter__(self) -> Reloadable[T]:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _decode(self, stream: BinaryIO) -> None:
        self._pending = _UNSET
        self._pending = self._parser(stream)

    def _apply(self, err: BaseException | None) -> None:
        if err is not None:
            with self._lock:
                self._last_error = err
            for error_callback in list(self._error_callbacks):
                try:
                    error_callback(err)
                except Exception as e:
                    log.warning("Config error callback error: %s", e)
            return

        with self._lock:
            value = self._pending
            self._pending = _UNSET
            self._value = value
            self._last_error = None

        for callback in list(self._reload_callbacks):
            try:
                callback(value)  # type: ignore[arg-type]
            except Exception as e:
                log.warning("Config reload callback error: %s", e)
