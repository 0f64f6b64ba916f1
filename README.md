# netwire

netwire provides building blocks for a user-space TCP/IP stack:

- big-endian parsing and serialisation of Ethernet, ARP, IPv4 and TCP headers;
- the Internet checksum;
- wrappers over file descriptors and sockets;
- a poll-based event loop;
- adapters that carry TCP messages over IPv4 on a Linux TUN device.

It has no runtime dependencies outside the standard library.

## Installation

```
pip install .
```

To install the test dependencies and run the tests:

```
pip install ".[test]"
pytest
```

## Parsing and serialising

`netwire.parser` provides `Parser` and `Serializer`.

A `Parser` reads from a list of byte chunks:

- `integer(size)` reads an unsigned big-endian integer.
- `string(length)` reads raw bytes.
- `all_remaining()` and `all_remaining_bytes()` consume the rest of the input.
- `buffer()` shows the rest of the input without consuming it.

A read past the end of the input marks the parser as failed. After that, `has_error()` returns true and every further read returns zeros.

A `Serializer` collects integers and whole buffers. `output()` returns them as a list of chunks.

Every wire structure has a `parse(parser)` method and a `serialize(serializer)` method. Two helpers save you from building the parser or serializer yourself:

- `serialize(obj)` returns the serialised chunks.
- `parse(obj, buffers, *args)` returns `True` when the input was well formed.

```python
from netwire.parser import parse, serialize
from netwire.ipv4 import IPv4Header

header = IPv4Header()
header.len = 20
header.compute_checksum()

wire = serialize(header)            # list of byte chunks

copy = IPv4Header()
assert parse(copy, wire)
print(copy)                         # IPv4 len=20 protocol=6 ttl=128 src=0.0.0.0 dst=0.0.0.0
```

Parsing an `IPv4Header` fails in any of these cases:

- the input is too short;
- the version is not 4;
- the header length is below five words;
- the checksum does not match.

Options beyond the fixed 20 bytes are skipped. `IPv4Datagram` (also available as `InternetDatagram`) pairs a header with its payload chunks. `pseudo_checksum()` gives the pseudo-header's contribution to a TCP checksum.

## Checksums

```python
from netwire.checksum import InternetChecksum

check = InternetChecksum()
check.add(b"\x45\x00\x00\x14")
print(check.value())
```

`add` takes a bytes object or a sequence of byte chunks, and returns the checksum object. The result is the same however the data is split between calls. You can give a starting sum to the constructor, for example a pseudo-header sum.

## Ethernet and ARP

`netwire.ethernet` provides:

- `EthernetHeader`, with the type constants `TYPE_IPV4` and `TYPE_ARP`;
- `EthernetFrame`, a header plus payload chunks;
- `ETHERNET_BROADCAST`;
- `format_ethernet_address`, which prints a six-byte address as `02:00:00:00:00:01`.

`netwire.arp.ARPMessage` holds an ARP request or reply. `supported()` reports whether a message is an Ethernet/IPv4 request or reply. Parsing an unsupported message fails. Serialising one raises `ValueError`.

## TCP messages and segments

`netwire.tcp_message` defines three message types:

- `TCPSenderMessage` has `seqno`, `SYN`, `payload`, `FIN` and `RST`. `sequence_length()` gives the number of sequence numbers it occupies.
- `TCPReceiverMessage` has `ackno` (or `None`), `window_size` and `RST`.
- `TCPMessage` holds one of each.

Sequence and acknowledgement numbers are raw 32-bit integers. `UserDatagramInfo` holds the ports and the checksum.

`netwire.tcp_segment.TCPSegment` encodes a message together with its ports and checksum. Before you serialise, call `compute_checksum(pseudo_checksum)`. When parsing, pass the same pseudo-header sum to `parse` as its extra argument; a segment whose checksum does not verify fails to parse.

## Addresses and errors

```python
from netwire.address import Address

a = Address("10.0.0.2", 80)
print(a, a.ipv4_numeric())          # 10.0.0.2:80 167772162
b = Address.from_ipv4_numeric(a.ipv4_numeric())
```

`Address(ip, port)` accepts numeric addresses only. `Address.resolve(hostname, service)` does a name lookup. `Address.from_sockaddr(family, sockaddr)` wraps a value returned by the `socket` module.

Failed lookups raise `netwire.errors.TaggedError`. Failed system calls raise `UnixError`, a subclass of it. Both are `OSError`s. The same module provides `check_system_call` and `not_null`.

## Descriptors, sockets and the event loop

`netwire.file_descriptor.FileDescriptor` wraps a descriptor number:

- It counts reads and writes, and tracks EOF and closing.
- `duplicate()` returns a handle that shares the same descriptor.
- It works as a context manager.
- On a non-blocking descriptor, a read that would block returns `b""`.

`netwire.sockets` provides `UDPSocket`, `TCPSocket`, `PacketSocket`, `LocalStreamSocket` and `LocalDatagramSocket`:

- `DatagramSocket.recv()` returns `(Address, bytes)`. On a non-blocking socket with nothing to receive, it returns `None`.
- `TCPSocket.accept()` returns a new `TCPSocket`.

`netwire.eventloop.EventLoop` runs callbacks in categories, up to 64 categories:

- `add_rule(category, callback, interest)` registers a rule that runs whenever `interest()` is true.
- `add_fd_rule(category, fd, direction, callback, interest, cancel, error)` registers a rule that runs when the descriptor is ready for `Direction.IN` or `Direction.OUT`.
- Both return a `RuleHandle` whose `cancel()` drops the rule.
- Each call to `wait_next_event(timeout_ms)` serves at most one rule and returns `EventLoopResult.SUCCESS`, `TIMEOUT` or `EXIT`.
- A rule that stays interested without doing any work raises `RuntimeError` (busy wait).

## TCP over a TUN device

`netwire.tun` provides `TunFD` and `TapFD`, which open an existing persistent device through `/dev/net/tun`. You must create the device beforehand, with sufficient privileges.

`netwire.tcp_over_ip.TCPOverIPv4Adapter` converts between TCP messages and IPv4 datagrams for one connection:

- It keeps its addresses and loss rates in an `FdAdapterConfig` from `netwire.tcp_config`.
- While listening, the first SYN fixes the peer's address and port.
- `TCPConfig` holds the default capacities, timeout and initial sequence number.

`netwire.tuntap_adapter` provides two adapters:

- `TCPOverIPv4OverTunFdAdapter` reads and writes such datagrams on a TUN device.
- `LossyFdAdapter` wraps any adapter and drops reads and writes at random, at the configured rates (out of 65536).

`netwire.rng.get_random_engine()` returns a well-seeded `random.Random`.

## What netwire does not do

netwire carries TCP messages but does not implement TCP itself. It has no sender, receiver, reassembler or byte stream, and no connection state machine or retransmission. It also has no network interface with ARP resolution, no router, and no command-line program. These pieces are meant to be built on top of it.