import pytest

from minnow.ethernet import (
    ETHERNET_BROADCAST,
    EthernetFrame,
    EthernetHeader,
    format_ethernet_address,
)
from minnow.parser import Parser, concat, parse, serialize

SRC = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x01])
DST = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x0A])


def test_format_broadcast():
    assert format_ethernet_address(ETHERNET_BROADCAST) == "ff:ff:ff:ff:ff:ff"


def test_format_pads_with_zeros():
    assert format_ethernet_address(DST) == "02:00:00:00:00:0a"


@pytest.mark.parametrize(
    ("frame_type", "type_str"),
    [(EthernetHeader.TYPE_IPV4, "IPv4"), (EthernetHeader.TYPE_ARP, "ARP"), (0x1234, "[unknown type 1234!]")],
)
def test_header_to_string(frame_type, type_str):
    header = EthernetHeader(dst=ETHERNET_BROADCAST, src=SRC, type=frame_type)
    assert header.to_string() == f"dst=ff:ff:ff:ff:ff:ff src=02:00:00:00:00:01 type={type_str}"


def test_header_wire_format():
    header = EthernetHeader(dst=DST, src=SRC, type=EthernetHeader.TYPE_ARP)
    wire = concat(serialize(header))
    assert len(wire) == EthernetHeader.LENGTH
    assert wire == DST + SRC + b"\x08\x06"


def test_header_round_trip():
    header = EthernetHeader(dst=DST, src=SRC, type=EthernetHeader.TYPE_IPV4)
    parsed = EthernetHeader()
    assert parse(parsed, serialize(header))
    assert parsed == header


def test_header_parse_short_input_fails():
    parsed = EthernetHeader()
    assert not parse(parsed, [DST + SRC])


def test_header_rejects_bad_address_length():
    with pytest.raises(ValueError):
        EthernetHeader(dst=b"\x01\x02", src=SRC)


def test_frame_round_trip_keeps_payload():
    frame = EthernetFrame(EthernetHeader(dst=DST, src=SRC, type=EthernetHeader.TYPE_IPV4), [b"hello", b"world"])
    parsed = EthernetFrame()
    assert parse(parsed, serialize(frame))
    assert parsed.header == frame.header
    assert concat(parsed.payload) == b"helloworld"


def test_frame_parse_payload_from_split_buffers():
    wire = concat(serialize(EthernetHeader(dst=DST, src=SRC, type=EthernetHeader.TYPE_ARP)))
    parser = Parser([wire[:5], wire[5:] + b"abc", b"def"])
    frame = EthernetFrame()
    frame.parse(parser)
    assert not parser.has_error()
    assert frame.header.src == SRC
    assert concat(frame.payload) == b"abcdef"


def test_frame_clone_is_independent():
    frame = EthernetFrame(EthernetHeader(dst=DST, src=SRC, type=EthernetHeader.TYPE_IPV4), [b"x"])
    copy = frame.clone()
    copy.header.type = EthernetHeader.TYPE_ARP
    copy.payload.append(b"y")
    assert frame.header.type == EthernetHeader.TYPE_IPV4
    assert frame.payload == [b"x"]
    assert copy.payload == [b"x", b"y"]