"""Reference-counted handles on operating-system file descriptors."""

from __future__ import annotations

import errno
import os
import sys
from collections.abc import Iterable
from typing import Any, Callable, Optional, Union

from minnow.errors import UnixError

BytesLike = Union[bytes, bytearray, memoryview]
_BYTES_LIKE = (bytes, bytearray, memoryview)
_WOULD_BLOCK = frozenset({errno.EAGAIN, errno.EWOULDBLOCK, errno.EINPROGRESS})


class _FDWrapper:
    """The kernel descriptor itself, shared by every FileDescriptor duplicate."""

    def __init__(self, fd: int) -> None:
        self.closed = True  # nothing to close until construction succeeds
        if fd < 0:
            raise RuntimeError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.read_count = 0
        self.write_count = 0
        try:
            self.non_blocking = not os.get_blocking(fd)
        except OSError as exc:
            raise UnixError("fcntl", exc.errno) from exc
        self.closed = False

    def would_block(self, exc: OSError) -> bool:
        return self.non_blocking and exc.errno in _WOULD_BLOCK

    def call(self, attempt: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run a system call; None if it would block on a non-blocking descriptor."""
        try:
            return func(*args)
        except OSError as exc:
            if self.would_block(exc):
                return None
            raise UnixError(attempt, exc.errno) from exc

    def close(self) -> None:
        self.call("close", os.close, self.fd)
        self.eof = True
        self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except Exception as exc:  # never raise from a finalizer
            sys.stderr.write(f"Exception destructing FDWrapper: {exc}\n")


class FileDescriptor:
    """A handle on a file descriptor; duplicates share the descriptor and its state.

    The descriptor is closed when ``close`` is called or when the last handle
    sharing it is garbage-collected.
    """

    READ_BUFFER_SIZE = 16384

    def __init__(self, fd: int) -> None:
        self._wrapper = _FDWrapper(fd)

    def _register_read(self) -> None:
        self._wrapper.read_count += 1

    def _register_write(self) -> None:
        self._wrapper.write_count += 1

    def _set_eof(self) -> None:
        self._wrapper.eof = True

    def _call(self, attempt: str, func: Callable[..., Any], *args: Any) -> Any:
        """Run a system call, raising UnixError; None if a non-blocking call would block."""
        return self._wrapper.call(attempt, func, *args)

    def read(self, size: Optional[int] = None) -> bytes:
        """Read at most ``size`` bytes (default READ_BUFFER_SIZE).

        An empty result means end of file, or, on a non-blocking descriptor,
        that nothing was available.
        """
        if size is not None and size < 0:
            raise ValueError("read size must not be negative")
        try:
            data = os.read(self.fileno(), size or self.READ_BUFFER_SIZE)
        except OSError as exc:
            if self._wrapper.would_block(exc):
                return b""
            raise UnixError("read", exc.errno) from exc
        self._register_read()
        if not data:
            self._set_eof()
        return data

    def readv(self, sizes: Iterable[int]) -> list[bytes]:
        """Scatter-read into buffers of the given sizes; the last one gets READ_BUFFER_SIZE.

        Returns one byte string per buffer, each cut to what was read into it.
        """
        sizes = list(sizes)
        if not sizes:
            return []
        sizes[-1] = self.READ_BUFFER_SIZE
        buffers = [bytearray(size) for size in sizes]
        try:
            bytes_read = os.readv(self.fileno(), buffers)
        except OSError as exc:
            if self._wrapper.would_block(exc):
                return []
            raise UnixError("read", exc.errno) from exc
        self._register_read()
        if bytes_read > sum(sizes):
            raise RuntimeError("read() read more than requested")

        out = []
        remaining = bytes_read
        for buf in buffers:
            take = min(remaining, len(buf))
            out.append(bytes(buf[:take]))
            remaining -= take
        return out

    def write(self, data: BytesLike | Iterable[BytesLike]) -> int:
        """Write a byte string, or a sequence of them, in one call; returns bytes written."""
        if isinstance(data, str):
            raise TypeError("FileDescriptor.write expects bytes, not str")
        if isinstance(data, _BYTES_LIKE):
            buffers = [bytes(data)]
        else:
            buffers = [bytes(chunk) for chunk in data]
        total = sum(len(buf) for buf in buffers)

        if buffers:
            written = self._call("writev", os.writev, self.fileno(), buffers)
        else:
            written = self._call("writev", os.write, self.fileno(), b"")
        written = written or 0
        self._register_write()

        if written == 0 and total != 0:
            raise RuntimeError("write returned 0 given non-empty input buffer")
        if written > total:
            raise RuntimeError("write wrote more than length of input buffer")
        return written

    def close(self) -> None:
        """Close the underlying descriptor for every handle sharing it."""
        self._wrapper.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle sharing this descriptor and its state."""
        other = FileDescriptor.__new__(FileDescriptor)
        other._wrapper = self._wrapper
        return other

    def set_blocking(self, blocking: bool) -> None:
        """Switch between blocking and non-blocking mode."""
        self._call("fcntl", os.set_blocking, self.fileno(), blocking)
        self._wrapper.non_blocking = not blocking

    def fileno(self) -> int:
        """The underlying descriptor number."""
        return self._wrapper.fd

    @property
    def eof(self) -> bool:
        return self._wrapper.eof

    @property
    def closed(self) -> bool:
        return self._wrapper.closed

    @property
    def read_count(self) -> int:
        return self._wrapper.read_count

    @property
    def write_count(self) -> int:
        return self._wrapper.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *exc_info: object) -> None:
        if not self.closed:
            self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(fd={self._wrapper.fd}, closed={self.closed})"