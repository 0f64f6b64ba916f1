from ipaddress import IPv4Address

import pytest

from netwire.arp import ARPMessage
from netwire.parser import parse, serialize

SENDER_MAC = b"\x02\x00\x00\x00\x00\x01"
SENDER_IP = int(IPv4Address("10.0.0.1"))
TARGET_IP = int(IPv4Address("10.0.0.2"))


def _request():
    return ARPMessage(
        opcode=ARPMessage.OPCODE_REQUEST,
        sender_ethernet_address=SENDER_MAC,
        sender_ip_address=SENDER_IP,
        target_ip_address=TARGET_IP,
    )


def test_default_message_is_unsupported():
    message = ARPMessage()
    assert not message.supported()
    with pytest.raises(ValueError):
        serialize(message)


@pytest.mark.parametrize("opcode", [ARPMessage.OPCODE_REQUEST, ARPMessage.OPCODE_REPLY])
def test_round_trip(opcode):
    message = _request()
    message.opcode = opcode
    wire = serialize(message)
    assert len(b"".join(wire)) == ARPMessage.LENGTH
    out = ARPMessage()
    assert parse(out, wire)
    assert out == message


def test_unsupported_hardware_type_rejected():
    data = bytearray(b"".join(serialize(_request())))
    data[1] = 2
    assert not parse(ARPMessage(), [bytes(data)])


def test_truncated_message_rejected():
    wire = b"".join(serialize(_request()))
    assert not parse(ARPMessage(), [wire[:-1]])


def test_str():
    assert str(_request()) == (
        "opcode=REQUEST, sender=02:00:00:00:00:01/10.0.0.1, target=00:00:00:00:00:00/10.0.0.2"
    )


def test_str_unknown_opcode():
    message = _request()
    message.opcode = 9
    assert str(message).startswith("opcode=(unknown type), ")