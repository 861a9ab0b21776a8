import pytest

from minnow.arp import ARPMessage
from minnow.parser import concat, parse, serialize

SENDER_ETH = bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x01])
SENDER_IP = 0x0A000001  # 10.0.0.1
TARGET_IP = 0x0A000002  # 10.0.0.2


def make_request():
    return ARPMessage(
        opcode=ARPMessage.OPCODE_REQUEST,
        sender_ethernet_address=SENDER_ETH,
        sender_ip_address=SENDER_IP,
        target_ip_address=TARGET_IP,
    )


def test_default_message_is_unsupported():
    message = ARPMessage()
    assert not message.supported()
    with pytest.raises(RuntimeError, match="unsupported field combination"):
        serialize(message)


def test_request_is_supported_and_has_fixed_length():
    message = make_request()
    assert message.supported()
    assert len(concat(serialize(message))) == ARPMessage.LENGTH


def test_wire_starts_with_fixed_fields():
    wire = concat(serialize(make_request()))
    assert wire[:8] == b"\x00\x01\x08\x00\x06\x04\x00\x01"
    assert wire[8:14] == SENDER_ETH


def test_round_trip():
    message = make_request()
    parsed = ARPMessage()
    assert parse(parsed, serialize(message))
    assert parsed == message


def test_reply_round_trip():
    message = ARPMessage(
        opcode=ARPMessage.OPCODE_REPLY,
        sender_ethernet_address=SENDER_ETH,
        sender_ip_address=SENDER_IP,
        target_ethernet_address=SENDER_ETH[::-1],
        target_ip_address=TARGET_IP,
    )
    parsed = ARPMessage()
    assert parse(parsed, serialize(message))
    assert parsed.target_ethernet_address == SENDER_ETH[::-1]
    assert parsed.opcode == ARPMessage.OPCODE_REPLY


def test_unsupported_hardware_type_fails_parse():
    wire = bytearray(concat(serialize(make_request())))
    wire[1] = 2
    assert not parse(ARPMessage(), [bytes(wire)])


def test_unsupported_opcode_fails_parse():
    wire = bytearray(concat(serialize(make_request())))
    wire[7] = 3
    assert not parse(ARPMessage(), [bytes(wire)])


def test_truncated_message_fails_parse():
    wire = concat(serialize(make_request()))
    assert not parse(ARPMessage(), [wire[:20]])


def test_to_string_request():
    assert make_request().to_string() == (
        "opcode=REQUEST, sender=02:00:00:00:00:01/10.0.0.1, target=00:00:00:00:00:00/10.0.0.2"
    )


@pytest.mark.parametrize(
    ("opcode", "text"),
    [(ARPMessage.OPCODE_REPLY, "opcode=REPLY,"), (3, "opcode=(unknown type),")],
)
def test_to_string_opcodes(opcode, text):
    message = ARPMessage(opcode=opcode)
    assert message.to_string().startswith(text)


def test_bad_address_length_rejected():
    with pytest.raises(ValueError):
        ARPMessage(sender_ethernet_address=b"\x01")