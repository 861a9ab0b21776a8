"""Pretty-printing of byte strings and one-line summaries of Ethernet frames."""

from __future__ import annotations

from minnow.arp import ARPMessage
from minnow.ethernet import EthernetFrame, EthernetHeader
from minnow.ipv4 import IPv4Datagram, IPv4Header
from minnow.parser import concat, parse
from minnow.tcp_segment import TCPSegment


def _printable(byte: int) -> bool:
    return 0x20 <= byte <= 0x7E and byte != ord('"')


def pretty_print(data: bytes | bytearray | memoryview | str, max_length: int = 32) -> str:
    """Escape unprintable bytes as ``\\xNN`` and cut the result near ``max_length``."""
    raw = data.encode() if isinstance(data, str) else bytes(data)
    out: list[str] = []
    length = 0
    truncated = False
    for byte in raw:
        if length >= max_length:
            truncated = True
            break
        piece = chr(byte) if _printable(byte) else f"\\x{byte:02x}"
        out.append(piece)
        length += len(piece)
    result = "".join(out)
    if truncated:
        result = result[:-3] + "..." if len(result) >= 3 else result + "..."
    return result


def _summarize_ipv4(frame: EthernetFrame) -> str:
    dgram = IPv4Datagram()
    if not parse(dgram, list(frame.payload)):
        return "bad IPv4 datagram"
    out = dgram.header.to_string() + " payload="
    if dgram.header.proto == IPv4Header.PROTO_TCP:
        segment = TCPSegment()
        if parse(segment, dgram.payload, dgram.header.pseudo_checksum()):
            return out + segment.to_string()
        return out + "bad TCP segment"
    return out + '"' + pretty_print(concat(dgram.payload)) + '"'


def _summarize_arp(frame: EthernetFrame) -> str:
    arp = ARPMessage()
    if parse(arp, list(frame.payload)):
        return arp.to_string()
    return "bad ARP message"


def summary(frame: EthernetFrame) -> str:
    """One-line description of a frame and whatever it carries."""
    out = frame.header.to_string() + " payload: "
    if frame.header.type == EthernetHeader.TYPE_IPV4:
        return out + _summarize_ipv4(frame)
    if frame.header.type == EthernetHeader.TYPE_ARP:
        return out + _summarize_arp(frame)
    return out + "unknown frame type"