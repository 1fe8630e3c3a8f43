"""Shared test utilities for liveconfig tests."""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

from liveconfig.settings import WatchSettings

# Fast loop for tests that rely on the fallback timer
FAST = WatchSettings(settle_interval=0.05, fallback_interval=0.2)

# Fallback effectively disabled; cycles only run when a test triggers them
MANUAL = WatchSettings(settle_interval=0.05, fallback_interval=60.0)


def write_atomic(path: Path, data: bytes | str) -> None:
    """Replace a file's content via write-then-rename, like most editors."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(data)
    os.replace(tmp, path)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class Recorder:
    """Change callback that records every error it is called with."""

    def __init__(self) -> None:
        self.errors: list[BaseException | None] = []
        self._cond = threading.Condition()

    def __call__(self, err: BaseException | None) -> None:
        with self._cond:
            self.errors.append(err)
            self._cond.notify_all()

    @property
    def count(self) -> int:
        with self._cond:
            return len(self.errors)

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        """Block until at least ``count`` calls were recorded."""
        with self._cond:
            return self._cond.wait_for(lambda: len(self.errors) >= count, timeout)


class CountingDecoder:
    """Decoder that reads the whole stream and counts its invocations."""

    def __init__(self, parse: Callable[[bytes], object] | None = None) -> None:
        self.calls = 0
        self.last: object = None
        self._parse = parse

    def __call__(self, stream: BinaryIO) -> None:
        self.calls += 1
        data = stream.read()
        self.last = self._parse(data) if self._parse else data
