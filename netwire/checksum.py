"""The Internet checksum (one's-complement sum of 16-bit words)."""

from __future__ import annotations

from collections.abc import Iterable

_BYTES_TYPES = (bytes, bytearray, memoryview)


class InternetChecksum:
    """Incremental Internet checksum; data may be added in pieces of any length."""

    def __init__(self, initial: int = 0) -> None:
        self._sum = initial & 0xFFFFFFFF
        self._odd = False

    def add(self, data: bytes | Iterable[bytes]) -> InternetChecksum:
        """Add a buffer, or each buffer of a list, to the running sum."""
        if not isinstance(data, _BYTES_TYPES):
            for chunk in data:
                self.add(chunk)
            return self
        total = self._sum
        odd = self._odd
        for byte in bytes(data):
            total += byte if odd else byte << 8
            odd = not odd
        self._sum = total & 0xFFFFFFFF
        self._odd = odd
        return self

    def value(self) -> int:
        result = self._sum
        while result > 0xFFFF:
            result = (result >> 16) + (result & 0xFFFF)
        return ~result & 0xFFFF