import socket

import pytest

from netwire.address import Address
from netwire.errors import TaggedError


def test_numeric_construction():
    address = Address("1.2.3.4", 80)
    assert address.ip() == "1.2.3.4"
    assert address.port() == 80
    assert address.ip_port() == ("1.2.3.4", 80)


def test_to_string():
    assert str(Address("8.8.8.8", 53)) == "8.8.8.8:53"


def test_default_port_is_zero():
    assert Address("10.0.0.1").port() == 0


def test_zero_means_any_address():
    assert Address("0").ip() == "0.0.0.0"


def test_ipv4_numeric_value():
    assert Address("1.2.3.4").ipv4_numeric() == 0x01020304


@pytest.mark.parametrize("ip", ["10.0.0.1", "192.168.0.2", "255.255.255.255", "171.67.76.46"])
def test_numeric_round_trip(ip):
    numeric = Address(ip).ipv4_numeric()
    assert Address.from_ipv4_numeric(numeric) == Address(ip)
    assert Address.from_ipv4_numeric(numeric).ip() == ip


def test_equality_and_hash():
    assert Address("1.2.3.4", 5) == Address("1.2.3.4", 5)
    assert not (Address("1.2.3.4", 5) == Address("1.2.3.4", 6))
    assert len({Address("1.2.3.4", 5), Address("1.2.3.4", 5)}) == 1


def test_invalid_numeric_address_raises():
    with pytest.raises(TaggedError) as info:
        Address("not-an-ip", 1)
    assert str(info.value).startswith("getaddrinfo(not-an-ip, 1)")


def test_resolve_numeric_host():
    address = Address.resolve("127.0.0.1", "8080")
    assert address == Address("127.0.0.1", 8080)


def test_non_internet_address():
    address = Address.from_sockaddr(socket.AF_UNIX, "/tmp/example.sock")
    assert str(address) == "(non-Internet address)"
    with pytest.raises(ValueError):
        address.ip_port()
    with pytest.raises(ValueError):
        address.ipv4_numeric()


def test_ipv6_address():
    address = Address.from_sockaddr(socket.AF_INET6, ("::1", 53, 0, 0))
    assert address.ip() == "::1"
    assert address.port() == 53
    with pytest.raises(ValueError):
        address.ipv4_numeric()


def test_from_sockaddr_rejects_bad_ipv4_tuple():
    with pytest.raises(ValueError):
        Address.from_sockaddr(socket.AF_INET, ("1.2.3.4", 1, 2))


def test_sockaddr_value():
    assert Address("1.2.3.4", 80).sockaddr() == ("1.2.3.4", 80)