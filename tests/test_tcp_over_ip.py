from minnow.address import Address
from minnow.ipv4 import IPv4Datagram
from minnow.parser import concat, parse, serialize
from minnow.tcp_config import FdAdapterConfig
from minnow.tcp_over_ip import TCPOverIPv4Adapter
from minnow.tcp_segment import TCPMessage, TCPReceiverMessage, TCPSegment, TCPSenderMessage

A = Address("10.0.0.1", 1000)
B = Address("10.0.0.2", 2000)


def make_adapter(source, destination, listening=False):
    return TCPOverIPv4Adapter(FdAdapterConfig(source=source, destination=destination), listening)


def sample_message(syn=False, rst=False, payload=b"hello"):
    return TCPMessage(
        TCPSenderMessage(seqno=12345, syn=syn, payload=payload, rst=rst),
        TCPReceiverMessage(ackno=999, window_size=4000),
    )


def over_the_wire(dgram):
    received = IPv4Datagram()
    assert parse(received, serialize(dgram))
    return received


def test_round_trip_between_peers():
    msg = sample_message()
    dgram = make_adapter(A, B).wrap_tcp_in_ip(msg)
    assert make_adapter(B, A).unwrap_tcp_in_ip(over_the_wire(dgram)) == msg


def test_wrapped_datagram_fields():
    msg = sample_message()
    dgram = make_adapter(A, B).wrap_tcp_in_ip(msg)
    assert dgram.header.src == A.ipv4_numeric()
    assert dgram.header.dst == B.ipv4_numeric()
    assert dgram.header.payload_length() == len(concat(dgram.payload))
    segment = TCPSegment()
    assert parse(segment, dgram.payload, dgram.header.pseudo_checksum())
    assert segment.udinfo.src_port == 1000
    assert segment.udinfo.dst_port == 2000
    assert segment.message == msg


def test_wrong_destination_ip_rejected():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message())
    other = make_adapter(Address("10.0.0.3", 2000), A)
    assert other.unwrap_tcp_in_ip(over_the_wire(dgram)) is None


def test_wrong_source_ip_rejected():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message())
    other = make_adapter(B, Address("10.0.0.9", 1000))
    assert other.unwrap_tcp_in_ip(over_the_wire(dgram)) is None


def test_non_tcp_protocol_rejected():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message())
    dgram.header.proto = 17
    assert make_adapter(B, A).unwrap_tcp_in_ip(dgram) is None


def test_bad_tcp_checksum_rejected():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message())
    data = bytearray(concat(dgram.payload))
    data[-1] ^= 0xFF
    dgram.payload = [bytes(data)]
    assert make_adapter(B, A).unwrap_tcp_in_ip(dgram) is None


def test_wrong_ports_rejected():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message())
    assert make_adapter(Address("10.0.0.2", 2001), A).unwrap_tcp_in_ip(dgram) is None
    assert make_adapter(B, Address("10.0.0.1", 1001)).unwrap_tcp_in_ip(dgram) is None


def test_listening_accepts_syn_and_records_peer():
    syn = sample_message(syn=True, payload=b"")
    dgram = make_adapter(A, B).wrap_tcp_in_ip(syn)
    listener = make_adapter(Address("0", 2000), Address("0", 0), listening=True)
    assert listener.unwrap_tcp_in_ip(over_the_wire(dgram)) == syn
    assert listener.listening is False
    assert listener.config.source == B
    assert listener.config.destination == A


def test_listening_ignores_non_syn():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message())
    listener = make_adapter(Address("0", 2000), Address("0", 0), listening=True)
    assert listener.unwrap_tcp_in_ip(over_the_wire(dgram)) is None
    assert listener.listening is True


def test_listening_ignores_syn_with_rst():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message(syn=True, rst=True))
    listener = make_adapter(Address("0", 2000), Address("0", 0), listening=True)
    assert listener.unwrap_tcp_in_ip(over_the_wire(dgram)) is None
    assert listener.listening is True


def test_listening_requires_matching_port():
    dgram = make_adapter(A, B).wrap_tcp_in_ip(sample_message(syn=True))
    listener = make_adapter(Address("0", 3000), Address("0", 0), listening=True)
    assert listener.unwrap_tcp_in_ip(over_the_wire(dgram)) is None
    assert listener.listening is True


def test_tick_leaves_config_unchanged():
    adapter = make_adapter(A, B)
    adapter.tick(100)
    assert adapter.config == FdAdapterConfig(source=A, destination=B)
    assert adapter.listening is False