"""ARP messages for Ethernet and IPv4."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import ClassVar

from minnow.ethernet import (
    ADDRESS_LENGTH,
    EthernetAddress,
    EthernetHeader,
    _address_bytes,
    _write_address,
    format_ethernet_address,
)
from minnow.parser import Parser, Serializer

_IPV4_ADDRESS_LENGTH = 4


def _dotted_quad(value: int) -> str:
    return str(ipaddress.IPv4Address(value & 0xFFFFFFFF))


@dataclass
class ARPMessage:
    """An ARP request or reply."""

    LENGTH: ClassVar[int] = 28
    TYPE_ETHERNET: ClassVar[int] = 1
    OPCODE_REQUEST: ClassVar[int] = 1
    OPCODE_REPLY: ClassVar[int] = 2

    hardware_type: int = 1
    protocol_type: int = EthernetHeader.TYPE_IPV4
    hardware_address_size: int = ADDRESS_LENGTH
    protocol_address_size: int = _IPV4_ADDRESS_LENGTH
    opcode: int = 0

    sender_ethernet_address: EthernetAddress = bytes(ADDRESS_LENGTH)
    sender_ip_address: int = 0

    target_ethernet_address: EthernetAddress = bytes(ADDRESS_LENGTH)
    target_ip_address: int = 0

    def __post_init__(self) -> None:
        self.sender_ethernet_address = _address_bytes(self.sender_ethernet_address)
        self.target_ethernet_address = _address_bytes(self.target_ethernet_address)

    def supported(self) -> bool:
        """Whether this is an Ethernet/IPv4 request or reply."""
        return (
            self.hardware_type == self.TYPE_ETHERNET
            and self.protocol_type == EthernetHeader.TYPE_IPV4
            and self.hardware_address_size == ADDRESS_LENGTH
            and self.protocol_address_size == _IPV4_ADDRESS_LENGTH
            and self.opcode in (self.OPCODE_REQUEST, self.OPCODE_REPLY)
        )

    def to_string(self) -> str:
        """Human-readable summary of the message."""
        opcode_str = {self.OPCODE_REQUEST: "REQUEST", self.OPCODE_REPLY: "REPLY"}.get(
            self.opcode, "(unknown type)"
        )
        return (
            f"opcode={opcode_str}, "
            f"sender={format_ethernet_address(self.sender_ethernet_address)}/"
            f"{_dotted_quad(self.sender_ip_address)}, "
            f"target={format_ethernet_address(self.target_ethernet_address)}/"
            f"{_dotted_quad(self.target_ip_address)}"
        )

    def parse(self, parser: Parser) -> None:
        self.hardware_type = parser.integer(2)
        self.protocol_type = parser.integer(2)
        self.hardware_address_size = parser.integer(1)
        self.protocol_address_size = parser.integer(1)
        self.opcode = parser.integer(2)

        if not self.supported():
            parser.set_error()
            return

        self.sender_ethernet_address = parser.read_bytes(ADDRESS_LENGTH)
        self.sender_ip_address = parser.integer(4)
        self.target_ethernet_address = parser.read_bytes(ADDRESS_LENGTH)
        self.target_ip_address = parser.integer(4)

    def serialize(self, serializer: Serializer) -> None:
        if not self.supported():
            raise RuntimeError(
                "ARPMessage: unsupported field combination (must be Ethernet/IP, and request or reply)"
            )
        serializer.integer(self.hardware_type, 2)
        serializer.integer(self.protocol_type, 2)
        serializer.integer(self.hardware_address_size, 1)
        serializer.integer(self.protocol_address_size, 1)
        serializer.integer(self.opcode, 2)

        _write_address(serializer, self.sender_ethernet_address)
        serializer.integer(self.sender_ip_address, 4)
        _write_address(serializer, self.target_ethernet_address)
        serializer.integer(self.target_ip_address, 4)