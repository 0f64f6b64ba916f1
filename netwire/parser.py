"""Big-endian parsing and serialization over lists of byte buffers."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any

_BYTES_TYPES = (bytes, bytearray, memoryview)


class Parser:
    """Reads big-endian fields from a sequence of byte buffers.

    A read past the end of the input marks the parser as failed; after that
    every read returns a zero value and the failure stays set.
    """

    def __init__(self, buffers: Iterable[bytes] | bytes) -> None:
        if isinstance(buffers, _BYTES_TYPES):
            buffers = [buffers]
        self._chunks: deque[bytes] = deque(bytes(chunk) for chunk in buffers if len(chunk))
        self._skip = 0
        self._size = sum(len(chunk) for chunk in self._chunks)
        self._error = False

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front of the input."""
        while n > 0 and self._chunks:
            available = len(self._chunks[0]) - self._skip
            step = min(n, available)
            self._skip += step
            self._size -= step
            n -= step
            if self._skip == len(self._chunks[0]):
                self._chunks.popleft()
                self._skip = 0

    def _ensure(self, size: int) -> bool:
        if size > self._size:
            self._error = True
        return not self._error

    def _take(self, size: int) -> bytes:
        parts = []
        while size:
            piece = self._chunks[0][self._skip : self._skip + size]
            parts.append(piece)
            self.remove_prefix(len(piece))
            size -= len(piece)
        return b"".join(parts)

    def integer(self, size: int) -> int:
        """Read an unsigned big-endian integer of ``size`` bytes."""
        if not self._ensure(size):
            return 0
        return int.from_bytes(self._take(size), "big")

    def string(self, length: int) -> bytes:
        """Read exactly ``length`` raw bytes."""
        if not self._ensure(length):
            return bytes(length)
        return self._take(length)

    def buffer(self) -> list[bytes]:
        """The unread input, as a list of buffers, without consuming it."""
        if not self._chunks:
            return []
        first, *rest = self._chunks
        return [first[self._skip :], *rest]

    def all_remaining(self) -> list[bytes]:
        """Consume and return the rest of the input as a list of buffers."""
        remaining = self.buffer()
        self._chunks.clear()
        self._skip = 0
        self._size = 0
        return remaining

    def all_remaining_bytes(self) -> bytes:
        """Consume and return the rest of the input as one bytes object."""
        return b"".join(self.all_remaining())


class Serializer:
    """Writes big-endian fields and whole buffers into a list of byte chunks."""

    def __init__(self, initial: bytes = b"") -> None:
        self._output: list[bytes] = []
        self._pending = bytearray(initial)

    def integer(self, value: int, size: int) -> None:
        """Append ``value`` as a big-endian integer of ``size`` bytes (truncated)."""
        mask = (1 << (8 * size)) - 1
        self._pending += (value & mask).to_bytes(size, "big")

    def buffer(self, data: bytes | Iterable[bytes]) -> None:
        """Append a buffer, or each buffer of a list, as separate chunks."""
        if isinstance(data, _BYTES_TYPES):
            self.flush()
            if len(data):
                self._output.append(bytes(data))
            return
        for chunk in data:
            self.buffer(chunk)

    def flush(self) -> None:
        if self._pending:
            self._output.append(bytes(self._pending))
            self._pending = bytearray()

    def output(self) -> list[bytes]:
        self.flush()
        return list(self._output)


def serialize(obj: Any) -> list[bytes]:
    """Serialize any object that has a ``serialize(serializer)`` method."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.output()


def parse(obj: Any, buffers: Iterable[bytes] | bytes, *args: Any) -> bool:
    """Parse ``buffers`` into ``obj``; return True if parsing succeeded."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()