"""Reloadable configuration file watcher.

A ConfigWatcher keeps a caller's view of a single file in sync with disk.
It re-reads the file when watchdog reports a change to it (after a short
settle delay that coalesces bursts of events) and on a periodic fallback
timer. The decoder runs on every cycle. The change callback only fires when
the file's SHA-256 digest differs from the previous read, or when the read
fails.

Construction blocks until the first cycle, callback included, has finished:

    def decode(stream):
        nonlocal data
        data = json.load(stream)

    with ConfigWatcher("config.json", decode, on_change) as watcher:
        ...  # on_change has already run once here
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from liveconfig.digest import HashingReader
from liveconfig.errors import FileOpenError, FileReadError, WatchSetupError
from liveconfig.logging import TRACE, get_logger
from liveconfig.settings import WatchSettings, load_settings

log = get_logger("watcher")

Decoder = Callable[[BinaryIO], Any]
ChangeCallback = Callable[[BaseException | None], None]

# Opened and closed-without-write events are left out: our own reads cause them.
_RELOAD_EVENT_TYPES = frozenset(
    {
        EVENT_TYPE_MODIFIED,
        EVENT_TYPE_CREATED,
        EVENT_TYPE_MOVED,
        EVENT_TYPE_DELETED,
        EVENT_TYPE_CLOSED,
    }
)


class ReloadOutcome(Enum):
    """Result category of a single reload cycle."""

    UNCHANGED = "unchanged"
    CHANGED = "changed"
    FAILED = "failed"


@dataclass(frozen=True)
class ReloadResult:
    """What one reload cycle found."""

    changed: bool
    error: BaseException | None = None

    @property
    def outcome(self) -> ReloadOutcome:
        if self.error is not None:
            return ReloadOutcome.FAILED
        if self.changed:
            return ReloadOutcome.CHANGED
        return ReloadOutcome.UNCHANGED

    @property
    def should_notify(self) -> bool:
        """Whether the change callback fires for this result."""
        return self.changed or self.error is not None


class _FileEventHandler(FileSystemEventHandler):
    """Forwards watchdog events that touch one file to a wake-up hook."""

    def __init__(self, target: str, wake: Callable[[], None]) -> None:
        super().__init__()
        self._target = target
        self._wake = wake

    def _matches(self, raw_path: str | bytes) -> bool:
        if not raw_path:
            return False
        return os.path.normcase(os.path.abspath(os.fsdecode(raw_path))) == self._target

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _RELOAD_EVENT_TYPES:
            return
        if self._matches(event.src_path) or self._matches(getattr(event, "dest_path", "")):
            log.log(TRACE, "Event %s on %s", event.event_type, self._target)
            self._wake()


class ConfigWatcher:
    """Keeps a decoded view of one file in sync with its content on disk.

    A single daemon thread owns all mutable state: the digest of the last
    read and the watchdog observer. Decoder and callback invocations are
    strictly sequential and always happen on that thread.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        decoder: Decoder,
        on_change: ChangeCallback,
        *,
        settings: WatchSettings | None = None,
    ) -> None:
        """Start watching ``path`` and block until the first load is reported.

        Args:
            path: The file to watch. Must be an existing regular file.
            decoder: Called with a binary stream of the file on every cycle.
                Raising marks the cycle as failed.
            on_change: Called with None after a load that found new content,
                or with the error after a failed one. Never called when the
                content is unchanged.
            settings: Settle and fallback intervals. Defaults to
                ``load_settings().watch``.

        Raises:
            WatchSetupError: The file does not exist or the filesystem
                subscription could not be created.
            ValueError: ``settings`` was omitted and the LIVECONFIG_*
                environment holds a non-positive interval.
        """
        self._path = Path(path)
        self._decoder = decoder
        self._on_change = on_change
        self._settings = settings if settings is not None else load_settings().watch

        self._digest: bytes | None = None
        self._stop = threading.Event()
        self._wakeup = threading.Event()
        self._ready = threading.Event()
        self._close_lock = threading.Lock()
        self._closed = False

        if not self._path.is_file():
            raise WatchSetupError(f"not a regular file: {self._path}")

        target = os.path.realpath(self._path)
        self._handler = _FileEventHandler(os.path.normcase(target), self._notify)
        self._observer = Observer()
        try:
            self._observer.schedule(self._handler, os.path.dirname(target), recursive=False)
            self._observer.start()
        except OSError as e:
            raise WatchSetupError(f"watching {self._path}") from e

        self._thread = threading.Thread(
            target=self._run,
            name=f"liveconfig:{self._path.name}",
            daemon=True,
        )
        self._thread.start()
        log.debug(
            "Watching %s (settle=%.1fs, fallback=%.1fs)",
            self._path,
            self._settings.settle_interval,
            self._settings.fallback_interval,
        )
        self._ready.wait()

    @property
    def path(self) -> Path:
        """The watched file."""
        return self._path

    @property
    def settings(self) -> WatchSettings:
        return self._settings

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    @property
    def running(self) -> bool:
        """True while the background loop is alive."""
        return self._thread.is_alive()

    def close(self) -> None:
        """Ask the background loop to stop.

        Returns immediately. A cycle already in progress finishes first, and
        the observer is released when the loop exits. Safe to call repeatedly.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        self._stop.set()
        self._wakeup.set()
        log.debug("Close requested for %s", self._path)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the background loop to exit.

        Returns:
            True if the loop has terminated.
        """
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def __enter__(self) -> ConfigWatcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<ConfigWatcher {str(self._path)!r} {state}>"

    def _notify(self) -> None:
        """Record a filesystem notification for the loop."""
        self._wakeup.set()

    def _run(self) -> None:
        """Background loop: reload, report, wait, repeat."""
        first = True
        try:
            while True:
                try:
                    self._cycle()
                finally:
                    if first:
                        first = False
                        self._ready.set()

                # close() may have landed after its wake-up was cleared
                if self._stop.is_set():
                    break
                triggered = self._wakeup.wait(self._settings.fallback_interval)
                self._wakeup.clear()
                if self._stop.is_set():
                    break
                if triggered:
                    # Let the file settle; events arriving meanwhile fold into this cycle
                    if self._stop.wait(self._settings.settle_interval):
                        break
                    self._wakeup.clear()
                else:
                    log.log(TRACE, "Fallback reload of %s", self._path)
        finally:
            self._observer.stop()
            self._observer.join()
            log.debug("Stopped watching %s", self._path)

    def _cycle(self) -> None:
        result = self._reload()
        if not result.should_notify:
            return
        if result.error is not None:
            log.warning("Reload of %s failed: %s", self._path, result.error)
        else:
            log.info("Config changed: %s", self._path)
        try:
            self._on_change(result.error)
        except Exception:
            log.exception("Change callback for %s raised", self._path)

    def _reload(self) -> ReloadResult:
        """Read, hash and decode the file once.

        The digest covers the whole file even if the decoder stops early. It
        is stored even when decoding fails, and a decode failure on content
        identical to the previous read counts as unchanged, so the same
        broken content is reported only once.
        """
        try:
            fp = open(self._path, "rb")
        except OSError as e:
            err = FileOpenError(self._path)
            err.__cause__ = e
            return ReloadResult(changed=False, error=err)

        with fp:
            reader = HashingReader(fp)
            decode_error: Exception | None = None
            try:
                self._decoder(reader)
            except Exception as e:
                decode_error = e
            try:
                reader.drain()
            except OSError as e:
                err = FileReadError(self._path)
                err.__cause__ = e
                return ReloadResult(changed=False, error=err)

        digest = reader.digest()
        changed = self._digest is None or digest != self._digest
        self._digest = digest
        log.log(TRACE, "Read %d bytes from %s (changed=%s)", reader.bytes_read, self._path, changed)
        if decode_error is not None and not changed:
            log.debug("Content of %s is still invalid: %s", self._path, decode_error)
            return ReloadResult(changed=False)
        return ReloadResult(changed=changed, error=decode_error)


def watch(
    path: str | os.PathLike[str],
    decoder: Decoder,
    on_change: ChangeCallback,
    *,
    settings: WatchSettings | None = None,
) -> ConfigWatcher:
    """Start a ConfigWatcher. See ConfigWatcher.__init__."""
    return ConfigWatcher(path, decoder, on_change, settings=settings)
