"""Network sockets built on shared file-descriptor handles."""

from __future__ import annotations

import os
import socket
import struct
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Callable, Optional, Union

from minnow.address import Address
from minnow.errors import UnixError
from minnow.file_descriptor import FileDescriptor

_SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
_SOL_PACKET = 263
_PACKET_ADD_MEMBERSHIP = 1
_PACKET_MR_PROMISC = 1

BytesLike = Union[bytes, bytearray, memoryview]


class Socket(FileDescriptor):
    """Base class for network sockets.

    Either creates a new socket of the given domain, type and protocol, or,
    when ``fd`` is given, adopts that descriptor after checking that it has
    exactly that domain, type and protocol.
    """

    def __init__(
        self,
        domain: int,
        sock_type: int,
        protocol: int = 0,
        *,
        fd: Optional[FileDescriptor] = None,
    ) -> None:
        if fd is None:
            try:
                sock = socket.socket(domain, sock_type, protocol)
            except OSError as exc:
                raise UnixError("socket", exc.errno) from exc
            super().__init__(sock.detach())
            return

        self._wrapper = fd._wrapper
        checks = (
            (socket.SO_DOMAIN, domain, "domain"),
            (socket.SO_TYPE, sock_type, "type"),
            (socket.SO_PROTOCOL, protocol, "protocol"),
        )
        for option, expected, what in checks:
            if self._getsockopt(socket.SOL_SOCKET, option) != expected:
                raise RuntimeError(f"socket {what} mismatch")

    @contextmanager
    def _socket(self) -> Iterator[socket.socket]:
        """A temporary socket object over the descriptor, detached afterwards."""
        fd_num = self.fileno()
        try:
            blocking = os.get_blocking(fd_num)
            sock = socket.socket(fileno=fd_num)
        except OSError as exc:
            raise UnixError("socket", exc.errno) from exc
        try:
            sock.setblocking(blocking)
            yield sock
        finally:
            sock.detach()

    def _getsockopt(self, level: int, option: int) -> int:
        with self._socket() as sock:
            return self._call("getsockopt", sock.getsockopt, level, option)

    def _setsockopt(self, level: int, option: int, value: Union[int, bytes]) -> None:
        with self._socket() as sock:
            self._call("setsockopt", sock.setsockopt, level, option, value)

    def _get_address(self, attempt: str, query: Callable[[socket.socket], Any]) -> Address:
        with self._socket() as sock:
            family = sock.family
            raw = self._call(attempt, query, sock)
        return Address.from_sockaddr(family, raw)

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with self._socket() as sock:
            self._call("bind", sock.bind, address.sockaddr)

    def bind_to_device(self, device_name: str) -> None:
        """Restrict the socket to one network device."""
        self._setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to a peer; on a non-blocking socket this may complete later."""
        with self._socket() as sock:
            self._call("connect", sock.connect, address.sockaddr)

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._socket() as sock:
            self._call("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise RuntimeError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        return self._get_address("getsockname", lambda sock: sock.getsockname())

    def peer_address(self) -> Address:
        return self._get_address("getpeername", lambda sock: sock.getpeername())

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner (SO_REUSEADDR)."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def raise_if_error(self) -> None:
        """Raise UnixError if the socket has a pending error (seen on non-blocking sockets)."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> Optional[tuple[Address, bytes]]:
        """Receive one datagram and its sender's address.

        Returns None if a non-blocking socket has nothing to receive; raises
        RuntimeError if the datagram is larger than READ_BUFFER_SIZE.
        """
        buffer = bytearray(self.READ_BUFFER_SIZE)
        with self._socket() as sock:
            family = sock.family
            result = self._call(
                "recvfrom", sock.recvfrom_into, buffer, len(buffer), socket.MSG_TRUNC
            )
        if result is None:
            return None
        length, source = result
        if length > len(buffer):
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address.from_sockaddr(family, source), bytes(buffer[:length])

    def sendto(self, destination: Address, payload: BytesLike) -> None:
        """Send a datagram to ``destination``."""
        with self._socket() as sock:
            self._call("sendto", sock.sendto, bytes(payload), destination.sockaddr)
        self._register_write()

    def send(self, payload: BytesLike) -> None:
        """Send a datagram to the connected peer."""
        with self._socket() as sock:
            self._call("send", sock.send, bytes(payload))
        self._register_write()


class UDPSocket(DatagramSocket):
    """An unbound, unconnected UDP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    """An unbound, unconnected TCP socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    @classmethod
    def _from_fd(cls, fd: FileDescriptor) -> TCPSocket:
        sock = cls.__new__(cls)
        Socket.__init__(sock, socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, fd=fd)
        return sock

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting incoming connections."""
        with self._socket() as sock:
            self._call("listen", sock.listen, backlog)

    def accept(self) -> Optional[TCPSocket]:
        """Accept a connection; None if a non-blocking socket has none pending."""
        self._register_read()
        with self._socket() as sock:
            result = self._call("accept", sock.accept)
        if result is None:
            return None
        connection, _peer = result
        return TCPSocket._from_fd(FileDescriptor(connection.detach()))


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, sock_type: int, protocol: int) -> None:
        super().__init__(socket.AF_PACKET, sock_type, protocol)

    def set_promiscuous(self) -> None:
        """Put the bound interface into promiscuous mode."""
        address = self.local_address()
        if address.family != socket.AF_PACKET:
            raise RuntimeError("Address.as() conversion failure")
        ifindex = socket.if_nametoindex(address.sockaddr[0])
        request = struct.pack("iHH8s", ifindex, _PACKET_MR_PROMISC, 0, b"")
        self._setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, request)


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket adopted from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd=fd)


class LocalDatagramSocket(DatagramSocket):
    """An unbound, unconnected Unix-domain datagram socket."""

    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)