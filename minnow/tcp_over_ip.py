"""Conversion between TCP messages and IPv4 datagrams for one connection."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from typing import Optional

from minnow.address import Address
from minnow.ipv4 import IPv4Datagram, IPv4Header
from minnow.parser import parse, serialize
from minnow.tcp_config import FdAdapterConfig
from minnow.tcp_segment import TCPMessage, TCPSegment


def _dotted_quad(value: int) -> str:
    return str(ipaddress.IPv4Address(value & 0xFFFFFFFF))


@dataclass
class FdAdapterBase:
    """Configuration and listening state shared by datagram adapters."""

    config: FdAdapterConfig = field(default_factory=FdAdapterConfig)
    listening: bool = False

    def tick(self, ms_since_last_tick: int) -> None:
        """Called periodically as time passes; the base adapter has nothing to do."""


class TCPOverIPv4Adapter(FdAdapterBase):
    """Wraps TCP messages in IPv4 datagrams and unwraps the ones for this connection."""

    def unwrap_tcp_in_ip(self, ip_dgram: IPv4Datagram) -> Optional[TCPMessage]:
        """The TCP message in ``ip_dgram``, or None if it is invalid or unrelated.

        While listening, a SYN (without RST) fixes the connection's addresses
        and ports and ends the listening state.
        """
        header = ip_dgram.header
        cfg = self.config

        if not self.listening and header.dst != cfg.source.ipv4_numeric():
            return None
        if not self.listening and header.src != cfg.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        segment = TCPSegment()
        if not parse(segment, ip_dgram.payload, header.pseudo_checksum()):
            return None

        if segment.udinfo.dst_port != cfg.source.port():
            return None

        if self.listening:
            sender = segment.message.sender
            if not (sender.syn and not sender.rst):
                return None
            cfg.source = Address(_dotted_quad(header.dst), cfg.source.port())
            cfg.destination = Address(_dotted_quad(header.src), segment.udinfo.src_port)
            self.listening = False

        if segment.udinfo.src_port != cfg.destination.port():
            return None

        return segment.message

    def wrap_tcp_in_ip(self, msg: TCPMessage) -> IPv4Datagram:
        """An IPv4 datagram carrying ``msg`` with this connection's addresses and ports."""
        cfg = self.config
        segment = TCPSegment(message=TCPMessage(msg.sender, msg.receiver))
        segment.udinfo.src_port = cfg.source.port()
        segment.udinfo.dst_port = cfg.destination.port()

        dgram = IPv4Datagram()
        dgram.header.src = cfg.source.ipv4_numeric()
        dgram.header.dst = cfg.destination.ipv4_numeric()
        dgram.header.length = (
            dgram.header.hlen * 4 + TCPSegment.HEADER_LENGTH + len(msg.sender.payload)
        )

        segment.compute_checksum(dgram.header.pseudo_checksum())
        dgram.header.compute_checksum()
        dgram.payload = serialize(segment)
        return dgram