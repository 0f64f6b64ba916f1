import pytest

from netwire.checksum import InternetChecksum
from netwire.ipv4 import IPv4Header
from netwire.parser import parse, serialize
from netwire.tcp_message import TCPMessage, TCPReceiverMessage, TCPSenderMessage, UserDatagramInfo
from netwire.tcp_segment import TCPSegment


def _pseudo(payload_length):
    header = IPv4Header(src=0x0A000001, dst=0xC0A80002, len=20 + 20 + payload_length)
    return header.pseudo_checksum()


def _segment(payload=b"hello", **sender_flags):
    return TCPSegment(
        message=TCPMessage(
            sender=TCPSenderMessage(seqno=1000, payload=payload, **sender_flags),
            receiver=TCPReceiverMessage(ackno=2000, window_size=4096),
        ),
        udinfo=UserDatagramInfo(src_port=1234, dst_port=80),
    )


def _fix_checksum(raw, pseudo):
    raw[16:18] = b"\x00\x00"
    value = InternetChecksum(pseudo).add(bytes(raw)).value()
    raw[16:18] = value.to_bytes(2, "big")
    return bytes(raw)


def test_wire_layout():
    segment = TCPSegment(
        message=TCPMessage(sender=TCPSenderMessage(seqno=3, SYN=True)),
        udinfo=UserDatagramInfo(src_port=1, dst_port=2),
    )
    assert b"".join(serialize(segment)) == bytes.fromhex("0001000200000003000000005002000000000000")


def test_checksum_makes_segment_verify():
    segment = _segment()
    pseudo = _pseudo(5)
    segment.compute_checksum(pseudo)
    assert InternetChecksum(pseudo).add(serialize(segment)).value() == 0


def test_round_trip_across_split_buffers():
    original = _segment(payload=b"abcdefgh")
    pseudo = _pseudo(8)
    original.compute_checksum(pseudo)
    wire = b"".join(serialize(original))
    parsed = TCPSegment()
    assert parse(parsed, [wire[:7], wire[7:21], wire[21:]], pseudo)
    assert parsed.message.sender.payload == b"abcdefgh"


def test_missing_ack_flag_clears_ackno():
    original = _segment()
    original.message.receiver.ackno = None
    pseudo = _pseudo(5)
    original.compute_checksum(pseudo)
    parsed = TCPSegment()
    assert parse(parsed, serialize(original), pseudo)
    assert parsed.message.receiver.ackno is None


def test_receiver_rst_sets_both_rst_fields():
    original = _segment()
    original.message.receiver.RST = True
    pseudo = _pseudo(5)
    original.compute_checksum(pseudo)
    parsed = TCPSegment()
    assert parse(parsed, serialize(original), pseudo)
    assert parsed.message.sender.RST is True
    assert parsed.message.receiver.RST is True


def test_corrupted_segment_fails():
    original = _segment()
    pseudo = _pseudo(5)
    original.compute_checksum(pseudo)
    wire = bytearray(b"".join(serialize(original)))
    wire[-1] ^= 0xFF
    assert not parse(TCPSegment(), [bytes(wire)], pseudo)


def test_wrong_pseudo_checksum_fails():
    original = _segment()
    original.compute_checksum(_pseudo(5))
    assert not parse(TCPSegment(), serialize(original), _pseudo(5) + 1)


def test_options_are_skipped():
    original = _segment(payload=b"data")
    wire = bytearray(b"".join(serialize(original)))
    wire[12] = 6 << 4
    wire[20:20] = b"\x01\x01\x01\x01"
    pseudo = _pseudo(8)
    parsed = TCPSegment()
    assert parse(parsed, [_fix_checksum(wire, pseudo)], pseudo)
    assert parsed.message.sender.payload == b"data"


def test_short_data_offset_fails():
    original = _segment(payload=b"data")
    wire = bytearray(b"".join(serialize(original)))
    wire[12] = 4 << 4
    pseudo = _pseudo(4)
    parsed = TCPSegment()
    assert not parse(parsed, [_fix_checksum(wire, pseudo)], pseudo)
    assert parsed.message.sender.payload == b""