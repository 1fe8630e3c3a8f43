"""Tee-while-reading stream that hashes every byte passing through it."""

from __future__ import annotations

import hashlib
import io
from typing import BinaryIO

_DRAIN_CHUNK = 64 * 1024


class HashingReader(io.RawIOBase):
    """Binary stream decorator feeding everything it reads into a digest.

    Decoders read from it like any binary file. Closing the reader does not
    close the wrapped stream; the owner of that stream is responsible for it.

    Example:
        with open(path, "rb") as fp:
            reader = HashingReader(fp)
            data = json.load(reader)
            reader.drain()
            print(reader.hexdigest())
    """

    def __init__(self, raw: BinaryIO, algorithm: str = "sha256") -> None:
        super().__init__()
        self._raw = raw
        self._hash = hashlib.new(algorithm)
        self._bytes_read = 0

    @property
    def bytes_read(self) -> int:
        """Number of bytes hashed so far."""
        return self._bytes_read

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[override]
        view = memoryview(buffer).cast("B")
        readinto = getattr(self._raw, "readinto", None)
        if readinto is not None:
            n = readinto(view)
        else:
            data = self._raw.read(len(view))
            n = len(data)
            view[:n] = data
        if not n:
            return 0
        self._hash.update(view[:n])
        self._bytes_read += n
        return n

    def drain(self) -> int:
        """Read the rest of the wrapped stream through the digest.

        Returns:
            Number of bytes that were still unread.
        """
        drained = 0
        buffer = bytearray(_DRAIN_CHUNK)
        while True:
            n = self.readinto(buffer)
            if not n:
                return drained
            drained += n

    def digest(self) -> bytes:
        return self._hash.digest()

    def hexdigest(self) -> str:
        return self._hash.hexdigest()
