"""A TCP datagram adapter over a TUN device carrying IPv4."""

from __future__ import annotations

from typing import Optional

from minnow.file_descriptor import FileDescriptor
from minnow.ipv4 import IPv4Datagram, IPv4Header
from minnow.parser import parse, serialize
from minnow.tcp_over_ip import TCPOverIPv4Adapter
from minnow.tcp_segment import TCPMessage, TCPSegment


class TCPOverIPv4OverTunFdAdapter(TCPOverIPv4Adapter):
    """Reads and writes TCP messages as IPv4 datagrams on a TUN descriptor."""

    def __init__(self, tun: FileDescriptor) -> None:
        super().__init__()
        self._tun = tun

    def read(self) -> Optional[TCPMessage]:
        """Read one datagram; the TCP message in it if valid and for this connection."""
        buffers = self._tun.readv([IPv4Header.LENGTH, TCPSegment.HEADER_LENGTH, 0])
        dgram = IPv4Datagram()
        if parse(dgram, buffers):
            return self.unwrap_tcp_in_ip(dgram)
        return None

    def write(self, msg: TCPMessage) -> None:
        """Wrap ``msg`` in an IPv4 datagram and write it to the device."""
        self._tun.write(serialize(self.wrap_tcp_in_ip(msg)))

    def fd(self) -> FileDescriptor:
        """The underlying device descriptor."""
        return self._tun