from netwire.ethernet import (
    ETHERNET_BROADCAST,
    EthernetFrame,
    EthernetHeader,
    format_ethernet_address,
)
from netwire.parser import parse, serialize

LOCAL = b"\x02\x00\x00\x0a\x0b\x0c"


def test_format_broadcast():
    assert format_ethernet_address(ETHERNET_BROADCAST) == "ff:ff:ff:ff:ff:ff"


def test_format_pads_bytes():
    assert format_ethernet_address(LOCAL) == "02:00:00:0a:0b:0c"


def test_header_str_arp():
    header = EthernetHeader(dst=ETHERNET_BROADCAST, src=LOCAL, type=EthernetHeader.TYPE_ARP)
    assert str(header) == "dst=ff:ff:ff:ff:ff:ff src=02:00:00:0a:0b:0c type=ARP"


def test_header_str_unknown_type():
    header = EthernetHeader(type=0x1234)
    assert str(header).endswith("type=[unknown type 1234!]")


def test_header_round_trip():
    header = EthernetHeader(dst=ETHERNET_BROADCAST, src=LOCAL, type=EthernetHeader.TYPE_IPV4)
    wire = serialize(header)
    assert len(b"".join(wire)) == EthernetHeader.LENGTH
    out = EthernetHeader()
    assert parse(out, wire)
    assert out == header


def test_header_wire_layout():
    header = EthernetHeader(dst=ETHERNET_BROADCAST, src=LOCAL, type=EthernetHeader.TYPE_ARP)
    wire = b"".join(serialize(header))
    assert wire[:6] == ETHERNET_BROADCAST
    assert wire[6:12] == LOCAL
    assert int.from_bytes(wire[12:], "big") == EthernetHeader.TYPE_ARP


def test_short_header_fails():
    assert not parse(EthernetHeader(), [b"\x00" * (EthernetHeader.LENGTH - 1)])


def test_frame_round_trip():
    frame = EthernetFrame(
        EthernetHeader(dst=LOCAL, src=ETHERNET_BROADCAST, type=EthernetHeader.TYPE_IPV4),
        [b"hello", b"world"],
    )
    wire = serialize(frame)
    assert wire[1:] == [b"hello", b"world"]
    out = EthernetFrame()
    assert parse(out, wire)
    assert out == frame


def test_frame_from_single_buffer():
    frame = EthernetFrame(EthernetHeader(dst=LOCAL, src=LOCAL, type=7), [b"data"])
    out = EthernetFrame()
    assert parse(out, [b"".join(serialize(frame))])
    assert out.header == frame.header
    assert b"".join(out.payload) == b"data"