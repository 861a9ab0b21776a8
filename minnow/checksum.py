"""The Internet checksum (ones'-complement sum of 16-bit words)."""

from __future__ import annotations

from collections.abc import Iterable

_BYTES_LIKE = (bytes, bytearray, memoryview)


class InternetChecksum:
    """Accumulates data and yields its Internet checksum."""

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._odd = False

    def add(self, data: bytes | bytearray | memoryview | Iterable[bytes]) -> None:
        """Add a byte string, or each byte string of an iterable, to the sum."""
        if isinstance(data, _BYTES_LIKE):
            self._add_bytes(bytes(data))
            return
        if isinstance(data, str):
            raise TypeError("InternetChecksum.add expects bytes, not str")
        for chunk in data:
            self.add(chunk)

    def _add_bytes(self, chunk: bytes) -> None:
        high, low = (chunk[1::2], chunk[0::2]) if self._odd else (chunk[0::2], chunk[1::2])
        self._sum = (self._sum + (sum(high) << 8) + sum(low)) & 0xFFFFFFFF
        if len(chunk) % 2:
            self._odd = not self._odd

    def value(self) -> int:
        """The 16-bit checksum of everything added so far."""
        total = self._sum
        while total > 0xFFFF:
            total = (total >> 16) + (total & 0xFFFF)
        return ~total & 0xFFFF