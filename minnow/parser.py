"""Big-endian parsing and serialization over lists of byte buffers."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable
from typing import Any, Union

BytesLike = Union[bytes, bytearray, memoryview]
_BYTES_LIKE = (bytes, bytearray, memoryview)


def _buffer_list(buffers: BytesLike | Iterable[BytesLike]) -> list[BytesLike]:
    if isinstance(buffers, _BYTES_LIKE):
        return [buffers]
    return list(buffers)


class Parser:
    """Reads fields from a sequence of buffers; short input sets an error flag."""

    def __init__(self, buffers: BytesLike | Iterable[BytesLike]) -> None:
        self._buffers: deque[memoryview] = deque()
        self._size = 0
        self._error = False
        for buf in _buffer_list(buffers):
            data = buf if isinstance(buf, bytes) else bytes(buf)
            if data:
                self._buffers.append(memoryview(data))
                self._size += len(data)

    def __len__(self) -> int:
        return self._size

    def has_error(self) -> bool:
        return self._error

    def set_error(self) -> None:
        self._error = True

    def _check_size(self, size: int) -> None:
        if size > self._size:
            self._error = True

    def remove_prefix(self, n: int) -> None:
        """Discard up to ``n`` bytes from the front of the input."""
        while n > 0 and self._buffers:
            front = self._buffers[0]
            take = min(n, len(front))
            if take == len(front):
                self._buffers.popleft()
            else:
                self._buffers[0] = front[take:]
            n -= take
            self._size -= take

    def truncate(self, length: int) -> None:
        """Drop everything past the first ``length`` remaining bytes."""
        if self._size <= length:
            return
        kept: deque[memoryview] = deque()
        total = 0
        for view in self._buffers:
            if total >= length:
                break
            if total + len(view) <= length:
                kept.append(view)
                total += len(view)
            else:
                kept.append(view[: length - total])
                total = length
        self._buffers = kept
        self._size = length

    def all_remaining(self) -> list[bytes]:
        """Consume and return every remaining buffer."""
        out = [bytes(view) for view in self._buffers]
        self._buffers.clear()
        self._size = 0
        return out

    def buffer(self) -> list[bytes]:
        """The remaining buffers, without consuming them."""
        return [bytes(view) for view in self._buffers]

    def _take(self, size: int) -> bytes:
        pieces = []
        while size > 0:
            front = self._buffers[0]
            piece = front[:size]
            pieces.append(piece)
            self.remove_prefix(len(piece))
            size -= len(piece)
        return b"".join(pieces)

    def read_bytes(self, size: int) -> bytes:
        """Consume ``size`` bytes; on error, returns ``size`` zero bytes."""
        self._check_size(size)
        if self._error:
            return bytes(size)
        return self._take(size)

    def concatenate_all_remaining(self) -> bytes:
        """Consume every remaining byte as one byte string."""
        return b"".join(self.all_remaining())

    def integer(self, size: int) -> int:
        """Consume a big-endian unsigned integer of ``size`` bytes; 0 on error."""
        if size <= 0:
            raise ValueError("integer size must be positive")
        self._check_size(size)
        if self._error:
            return 0
        return int.from_bytes(self._take(size), "big")


class Serializer:
    """Builds a list of buffers from big-endian integers and byte strings."""

    def __init__(self) -> None:
        self._output: list[bytes] = []
        self._pending = bytearray()

    def _flush(self) -> None:
        if self._pending:
            self._output.append(bytes(self._pending))
            self._pending.clear()

    def integer(self, value: int, size: int) -> None:
        """Append the low ``size`` bytes of ``value``, most significant first."""
        if size <= 0:
            raise ValueError("integer size must be positive")
        mask = (1 << (8 * size)) - 1
        self._pending += (value & mask).to_bytes(size, "big")

    def buffer(self, data: BytesLike | Iterable[BytesLike]) -> None:
        """Append a byte string, or each byte string of an iterable; empty ones are skipped."""
        if isinstance(data, _BYTES_LIKE):
            if data:
                self._flush()
                self._output.append(bytes(data))
            return
        if isinstance(data, str):
            raise TypeError("Serializer.buffer expects bytes, not str")
        for chunk in data:
            self.buffer(chunk)

    def finish(self) -> list[bytes]:
        """Return the serialized buffers and reset the serializer."""
        self._flush()
        out, self._output = self._output, []
        return out


def serialize(obj: Any) -> list[bytes]:
    """Serialize any object that has a ``serialize(serializer)`` method."""
    serializer = Serializer()
    obj.serialize(serializer)
    return serializer.finish()


def parse(obj: Any, buffers: BytesLike | Iterable[BytesLike], *args: Any) -> bool:
    """Parse ``buffers`` into ``obj`` via its ``parse`` method; True on success."""
    parser = Parser(buffers)
    obj.parse(parser, *args)
    return not parser.has_error()


def concat(buffers: Iterable[BytesLike]) -> bytes:
    """Join a sequence of buffers into one byte string."""
    return b"".join(buffers)