"""Seekable byte stream with a per-record read budget."""

from __future__ import annotations

import io
from typing import BinaryIO

from .exceptions import ObjectTooLargeError


class BoundedSeekableReader(io.RawIOBase):
    """Wrap a binary file, counting bytes read since the last reset.

    Once more than ``max_bytes`` have been read in the current window,
    the read fails with :class:`ObjectTooLargeError`. Reads are clamped
    to one byte past the remaining budget, so an oversized record is
    detected without ever pulling it into memory.

    Example:
        >>> stream = BoundedSeekableReader(open("events.avro", "rb"), 1024)
        >>> stream.reset_count()
        >>> header = stream.read(4)
    """

    def __init__(self, raw: BinaryIO, max_bytes: int | None) -> None:
        """Create a bounded reader.

        Args:
            raw: Binary file object to read from, must support seek/tell
            max_bytes: Budget per window, or None for no limit

        Raises:
            ValueError: If max_bytes is not positive
        """
        super().__init__()
        self._raw = raw
        self._max_bytes = max_bytes
        self._count = 0
        if max_bytes is not None and max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")

    @property
    def count(self) -> int:
        """Bytes read since the last reset."""
        return self._count

    @property
    def max_bytes(self) -> int | None:
        return self._max_bytes

    def reset_count(self) -> None:
        """Start a new window; call once before each logical record."""
        self._count = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        limit = self._limit(size)
        data = self._raw.read(limit)
        self._consume(len(data))
        return data

    def readinto(self, buffer) -> int:
        view = memoryview(buffer).cast("B")
        limit = self._limit(len(view))
        n = self._raw.readinto(view[:limit]) or 0
        self._consume(n)
        return n

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._raw.seek(offset, whence)

    def tell(self) -> int:
        return self._raw.tell()

    def close(self) -> None:
        if not self.closed:
            self._raw.close()
        super().close()

    def _limit(self, size: int) -> int:
        """Clamp a read request to the remaining budget plus one byte."""
        if self._max_bytes is None:
            return size
        remaining = max(self._max_bytes - self._count, 0) + 1
        if size is None or size < 0:
            return remaining
        return min(size, remaining)

    def _consume(self, n: int) -> None:
        self._count += n
        if self._max_bytes is not None and self._count > self._max_bytes:
            raise ObjectTooLargeError(self._max_bytes, self._count)
