# minnow

A small networking toolkit for Linux. It provides:

- wire formats for Ethernet frames, ARP messages, IPv4 datagrams and TCP
  segments, with big-endian parsing and serialization (`minnow.ethernet`,
  `minnow.arp`, `minnow.ipv4`, `minnow.tcp_segment`, `minnow.parser`);
- the Internet checksum (`minnow.checksum`);
- readable one-line summaries of frames (`minnow.helpers`);
- socket addresses and name resolution (`minnow.address`);
- shared file-descriptor handles and socket wrappers (`minnow.file_descriptor`,
  `minnow.sockets`);
- a poll-based event loop (`minnow.eventloop`);
- adapters that carry TCP messages inside IPv4 datagrams (`minnow.tcp_over_ip`,
  `minnow.tuntap_adapter`), and a wrapper that drops a random share of them
  (`minnow.lossy_adapter`);
- tagged errors and a replaceable debug-output handler (`minnow.errors`,
  `minnow.debug`).

## Installation

```
pip install .
```

The tests need `pytest`:

```
pip install ".[test]"
pytest
```

## Parsing and serializing

Each wire structure has a `parse(parser)` method and a `serialize(serializer)`
method. The helper functions `parse` and `serialize` in `minnow.parser` call
them for you:

```python
from minnow.parser import parse, serialize, concat
from minnow.ipv4 import IPv4Datagram

dgram = IPv4Datagram()
dgram.header.length = dgram.header.hlen * 4
dgram.header.compute_checksum()

wire = serialize(dgram)            # list of bytes buffers
again = IPv4Datagram()
ok = parse(again, wire)            # True if the input was well formed
print(again.header.to_string())    # IPv4 len=20 proto=6 ttl=128 src=0.0.0.0 dst=0.0.0.0
print(len(concat(wire)))           # 20
```

`parse` returns `False` for malformed input, such as input that is too short
or an IPv4 header whose checksum does not match. It does not raise.
`Parser.integer(size)` and `Serializer.integer(value, size)` read and write
big-endian unsigned integers of `size` bytes.

## Checksums

```python
from minnow.checksum import InternetChecksum

check = InternetChecksum(0)
check.add(b"\x45\x00\x00\x14")
print(hex(check.value()))
```

`add` takes a byte string or an iterable of byte strings.

## Summaries

```python
from minnow.helpers import pretty_print, summary

print(pretty_print(b"hello\x00world"))   # hello\x00world
```

`summary(frame)` describes an `EthernetFrame` together with the IPv4 datagram,
TCP segment or ARP message it carries. If the payload does not parse, the
summary says so.

## Addresses

`Address("10.0.0.1", 80)` builds an IPv4 address from numeric text and does no
lookup. `Address.resolve(hostname, service)` resolves names.
`Address.from_ipv4_numeric(n)` and `ipv4_numeric()` convert to and from 32-bit
integers. `to_string()` gives text such as `"10.0.0.1:80"`.

## TCP over IPv4

`TCPOverIPv4Adapter.wrap_tcp_in_ip(msg)` turns a `TCPMessage` into an
`IPv4Datagram`, using the addresses and ports in the adapter's
`FdAdapterConfig` and filling in both checksums.

`unwrap_tcp_in_ip(dgram)` does the reverse. It returns `None` for datagrams
that are invalid or belong to another connection. While the adapter is
listening, the first SYN it receives fixes the connection's addresses and
ports.

`TCPOverIPv4OverTunFdAdapter(fd)` reads and writes these datagrams on a
`FileDescriptor` that you open yourself.

`LossyFdAdapter(adapter)` drops reads and writes at random. The rates come
from `loss_rate_dn` and `loss_rate_up`, counted out of 65536.

## Event loop

```python
from minnow.eventloop import EventLoop, Result

loop = EventLoop()
work = [1, 2, 3]
loop.add_rule("drain", lambda: work.pop(), lambda: bool(work))
while loop.wait_next_event(10) is not Result.EXIT:
    pass
```

Rules that watch file descriptors are added with `add_fd_rule`. They fire when
`poll` reports the descriptor readable (`Direction.IN`) or writable
(`Direction.OUT`).

If a descriptor callback neither reads nor writes and its rule is still
interested afterwards, the loop raises `RuntimeError`, because that would be a
busy wait. The same happens when a plain rule is still interested after 128
consecutive runs.

`RuleHandle.cancel()` removes a rule.

## What this package does not do

- It does not open TUN or TAP devices. Give the adapter a descriptor that is
  already open.
- It has no TCP connection state machine: no sender, receiver, reassembler or
  byte stream. It only moves already-formed `TCPMessage` values on and off the
  wire.
- It provides no command-line programs.