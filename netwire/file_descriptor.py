"""Reference-counted handles on kernel file descriptors."""

from __future__ import annotations

import errno
import os
import sys
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from netwire.errors import UnixError

READ_BUFFER_SIZE = 16384

_BYTES_TYPES = (bytes, bytearray, memoryview)
_WOULD_BLOCK = frozenset({errno.EAGAIN, errno.EWOULDBLOCK, errno.EINPROGRESS})

T = TypeVar("T")


class _FDWrapper:
    """The shared state of one kernel file descriptor; closes it when collected."""

    __slots__ = ("fd", "eof", "closed", "non_blocking", "read_count", "write_count")

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        try:
            blocking = os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno or 0) from exc
        self.fd = fd
        self.eof = False
        self.closed = False
        self.non_blocking = not blocking
        self.read_count = 0
        self.write_count = 0

    def would_block(self, exc: OSError) -> bool:
        return self.non_blocking and exc.errno in _WOULD_BLOCK

    def close(self) -> None:
        try:
            os.close(self.fd)
        except OSError as exc:
            raise UnixError("close", exc.errno or 0) from exc
        self.eof = True
        self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except UnixError as exc:
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


class FileDescriptor:
    """A handle on a file descriptor; duplicates share one underlying descriptor.

    The descriptor is closed explicitly with ``close()``, on leaving a ``with``
    block, or when the last handle sharing it is garbage-collected.
    """

    def __init__(self, fd: int) -> None:
        self._internal = _FDWrapper(fd)

    def _check_system_call(self, attempt: str, func: Callable[..., T], *args: Any) -> T | int:
        """Call ``func``; raise UnixError on failure, or return 0 if a non-blocking call would block."""
        try:
            return func(*args)
        except OSError as exc:
            if self._internal.would_block(exc):
                return 0
            raise UnixError(attempt, exc.errno or 0) from exc

    def _set_eof(self) -> None:
        self._internal.eof = True

    def _register_read(self) -> None:
        self._internal.read_count += 1

    def _register_write(self) -> None:
        self._internal.write_count += 1

    def read(self, size: int = READ_BUFFER_SIZE) -> bytes:
        """Read up to ``size`` bytes; an empty result on a blocking read means EOF.

        A non-blocking read with nothing available returns ``b""`` without
        counting as a read.
        """
        if size <= 0:
            size = READ_BUFFER_SIZE
        try:
            data = os.read(self.fd_num(), size)
        except OSError as exc:
            if self._internal.would_block(exc):
                return b""
            raise UnixError("read", exc.errno or 0) from exc
        self._register_read()
        if not data:
            self._set_eof()
        return data

    def readv(self, sizes: Iterable[int]) -> list[bytes]:
        """Scatter-read into buffers of the given sizes.

        The last buffer always takes up to READ_BUFFER_SIZE bytes, whatever
        size was given for it. Returns one bytes object per buffer, each cut
        to what was actually read into it.
        """
        sizes = list(sizes)
        if not sizes:
            return []
        sizes[-1] = READ_BUFFER_SIZE
        buffers = [bytearray(size) for size in sizes]
        try:
            count = os.readv(self.fd_num(), buffers)
        except OSError as exc:
            if self._internal.would_block(exc):
                return []
            raise UnixError("read", exc.errno or 0) from exc
        self._register_read()

        result = []
        remaining = count
        for buf in buffers:
            take = min(len(buf), remaining)
            result.append(bytes(buf[:take]))
            remaining -= take
        return result

    def write(self, data: bytes | Iterable[bytes]) -> int:
        """Write a buffer, or a list of buffers, and return the number of bytes written."""
        chunks = [bytes(data)] if isinstance(data, _BYTES_TYPES) else [bytes(chunk) for chunk in data]
        if not chunks:
            chunks = [b""]
        total = sum(len(chunk) for chunk in chunks)
        written = self._check_system_call("writev", os.writev, self.fd_num(), chunks)
        self._register_write()
        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        self._internal.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle sharing this descriptor and its state."""
        other = FileDescriptor.__new__(FileDescriptor)
        other._internal = self._internal
        return other

    def set_blocking(self, blocking: bool) -> None:
        try:
            os.set_blocking(self.fd_num(), blocking)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno or 0) from exc
        self._internal.non_blocking = not blocking

    def fd_num(self) -> int:
        return self._internal.fd

    def eof(self) -> bool:
        return self._internal.eof

    def closed(self) -> bool:
        return self._internal.closed

    def read_count(self) -> int:
        return self._internal.read_count

    def write_count(self) -> int:
        return self._internal.write_count

    def fileno(self) -> int:
        return self._internal.fd

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *args: object) -> None:
        if not self.closed():
            self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed() else "open"
        return f"<{type(self).__name__} fd={self.fd_num()} {state}>"