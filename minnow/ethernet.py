"""Ethernet addresses, headers and frames."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import ClassVar

from minnow.parser import Parser, Serializer

EthernetAddress = bytes

ADDRESS_LENGTH = 6

ETHERNET_BROADCAST: EthernetAddress = b"\xff" * ADDRESS_LENGTH


def _address_bytes(address: bytes | bytearray | memoryview) -> bytes:
    data = bytes(address)
    if len(data) != ADDRESS_LENGTH:
        raise ValueError(f"an Ethernet address has {ADDRESS_LENGTH} bytes, not {len(data)}")
    return data


def _write_address(serializer: Serializer, address: bytes) -> None:
    serializer.integer(int.from_bytes(_address_bytes(address), "big"), ADDRESS_LENGTH)


def format_ethernet_address(address: bytes | bytearray | memoryview) -> str:
    """Colon-separated lower-case hex form of an Ethernet address."""
    return ":".join(f"{byte:02x}" for byte in bytes(address))


@dataclass
class EthernetHeader:
    """Ethernet frame header: destination, source and frame type."""

    LENGTH: ClassVar[int] = 14
    TYPE_IPV4: ClassVar[int] = 0x800
    TYPE_ARP: ClassVar[int] = 0x806

    dst: EthernetAddress = bytes(ADDRESS_LENGTH)
    src: EthernetAddress = bytes(ADDRESS_LENGTH)
    type: int = 0

    def __post_init__(self) -> None:
        self.dst = _address_bytes(self.dst)
        self.src = _address_bytes(self.src)

    def to_string(self) -> str:
        """Human-readable summary of the header."""
        if self.type == self.TYPE_IPV4:
            type_str = "IPv4"
        elif self.type == self.TYPE_ARP:
            type_str = "ARP"
        else:
            type_str = f"[unknown type {self.type:x}!]"
        return (
            f"dst={format_ethernet_address(self.dst)} "
            f"src={format_ethernet_address(self.src)} type={type_str}"
        )

    def parse(self, parser: Parser) -> None:
        self.dst = parser.read_bytes(ADDRESS_LENGTH)
        self.src = parser.read_bytes(ADDRESS_LENGTH)
        self.type = parser.integer(2)

    def serialize(self, serializer: Serializer) -> None:
        _write_address(serializer, self.dst)
        _write_address(serializer, self.src)
        serializer.integer(self.type, 2)


@dataclass
class EthernetFrame:
    """An Ethernet header followed by its payload buffers."""

    header: EthernetHeader = field(default_factory=EthernetHeader)
    payload: list[bytes] = field(default_factory=list)

    def parse(self, parser: Parser) -> None:
        self.header.parse(parser)
        self.payload = parser.all_remaining()

    def serialize(self, serializer: Serializer) -> None:
        self.header.serialize(serializer)
        serializer.buffer(self.payload)

    def clone(self) -> EthernetFrame:
        """An independent copy of the frame."""
        return EthernetFrame(dataclasses.replace(self.header), list(self.payload))