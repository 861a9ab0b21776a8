import pytest

from minnow.checksum import InternetChecksum
from minnow.parser import concat, parse, serialize
from minnow.tcp_segment import (
    TCPMessage,
    TCPReceiverMessage,
    TCPSegment,
    TCPSenderMessage,
    UserDatagramInfo,
)

PSEUDO = 0x1234


def _segment(**sender_fields):
    receiver = sender_fields.pop("receiver", TCPReceiverMessage(ackno=777, window_size=4000))
    return TCPSegment(
        TCPMessage(TCPSenderMessage(**sender_fields), receiver),
        UserDatagramInfo(src_port=1234, dst_port=80),
    )


def _wire(segment, pseudo=PSEUDO):
    segment.compute_checksum(pseudo)
    return concat(serialize(segment))


def test_sequence_length_counts_flags_and_payload():
    msg = TCPSenderMessage(syn=True, payload=b"abc", fin=True)
    assert msg.sequence_length() == 5
    assert TCPSenderMessage().sequence_length() == 0


def test_round_trip_preserves_fields():
    original = _segment(seqno=0xDEADBEEF, syn=True, payload=b"hello", fin=True)
    wire = _wire(original)
    parsed = TCPSegment()
    assert parse(parsed, [wire], PSEUDO)
    assert parsed.message == original.message
    assert parsed.udinfo == original.udinfo


def test_header_layout_fixed_bytes():
    wire = _wire(_segment(seqno=1, syn=True))
    assert len(wire) == TCPSegment.HEADER_LENGTH
    assert wire[12] == 0x50
    assert wire[13] == 0x12  # ACK + SYN
    assert wire[18:20] == b"\x00\x00"


def test_checksum_verifies_to_zero():
    segment = _segment(seqno=42, payload=b"xyz")
    wire = _wire(segment)
    check = InternetChecksum(PSEUDO)
    check.add(wire)
    assert check.value() == 0


def test_bad_checksum_is_rejected():
    wire = bytearray(_wire(_segment(seqno=9, payload=b"data")))
    wire[-1] ^= 0xFF
    assert not parse(TCPSegment(), [bytes(wire)], PSEUDO)


def test_wrong_pseudo_checksum_is_rejected():
    wire = _wire(_segment(seqno=9, payload=b"data"))
    assert not parse(TCPSegment(), [wire], PSEUDO + 1)


def test_empty_input_is_rejected():
    assert not parse(TCPSegment(), [], 0)


def test_missing_ack_flag_clears_ackno():
    original = _segment(seqno=5, receiver=TCPReceiverMessage(ackno=None, window_size=10))
    parsed = TCPSegment()
    assert parse(parsed, [_wire(original)], PSEUDO)
    assert parsed.message.receiver.ackno is None
    assert parsed.message.receiver.window_size == 10


def test_receiver_reset_sets_both_reset_flags():
    original = _segment(seqno=5, receiver=TCPReceiverMessage(ackno=3, rst=True))
    parsed = TCPSegment()
    assert parse(parsed, [_wire(original)], PSEUDO)
    assert parsed.message.sender.rst
    assert parsed.message.receiver.rst


def _with_checksum(raw: bytearray, pseudo: int) -> bytes:
    raw[16:18] = b"\x00\x00"
    check = InternetChecksum(pseudo)
    check.add(bytes(raw))
    raw[16:18] = check.value().to_bytes(2, "big")
    return bytes(raw)


def test_short_data_offset_is_rejected():
    raw = bytearray(_wire(_segment(seqno=1)))
    raw[12] = 0x40
    assert not parse(TCPSegment(), [_with_checksum(raw, PSEUDO)], PSEUDO)


def test_options_are_skipped():
    header = bytearray(_wire(_segment(seqno=1)))
    header[12] = 0x60
    raw = header + b"\x01\x01\x01\x01" + b"body"
    parsed = TCPSegment()
    assert parse(parsed, [_with_checksum(raw, PSEUDO)], PSEUDO)
    assert parsed.message.sender.payload == b"body"


def test_parse_across_split_buffers():
    wire = _wire(_segment(seqno=77, payload=b"split payload"))
    parsed = TCPSegment()
    assert parse(parsed, [wire[:7], wire[7:25], wire[25:]], PSEUDO)
    assert parsed.message.sender.payload == b"split payload"
    assert parsed.message.sender.seqno == 77


def test_to_string_format():
    segment = TCPSegment(
        TCPMessage(TCPSenderMessage(seqno=5, syn=True), TCPReceiverMessage(ackno=7, window_size=100)),
        UserDatagramInfo(src_port=1, dst_port=2),
    )
    assert segment.to_string() == "TCP seqno=5 +SYN ACK<7> winsize=100 src=1 dst=2"


@pytest.mark.parametrize("field_name, marker", [("fin", "+FIN"), ("rst", "+RST")])
def test_to_string_flags(field_name, marker):
    segment = _segment(seqno=3, **{field_name: True})
    assert marker in segment.to_string().split()


def test_to_string_shows_payload():
    segment = _segment(seqno=3, payload=b"hi")
    assert 'payload="hi"' in segment.to_string()