"""Socket addresses, with numeric and DNS construction."""

from __future__ import annotations

import socket
from ipaddress import IPv4Address
from typing import Any

from netwire.errors import TaggedError

_INTERNET_FAMILIES = (socket.AF_INET, socket.AF_INET6)


def _lookup(node: str, service: str, family: int, flags: int) -> tuple[int, Any]:
    try:
        results = socket.getaddrinfo(node, service, family, 0, 0, flags)
    except socket.gaierror as exc:
        raise TaggedError(f"getaddrinfo({node}, {service})", exc.errno or 0, exc.strerror or str(exc)) from exc
    if not results:
        raise RuntimeError("getaddrinfo returned successfully but with no results")
    result_family, _type, _proto, _name, sockaddr = results[0]
    return result_family, sockaddr


class Address:
    """An IPv4 (or other) socket address."""

    __slots__ = ("_family", "_sockaddr")

    def __init__(self, ip: str, port: int = 0) -> None:
        """Build from a dotted-quad string and a numeric port, without DNS."""
        flags = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        self._family, self._sockaddr = _lookup(ip, str(port), socket.AF_INET, flags)

    @classmethod
    def resolve(cls, hostname: str, service: str) -> Address:
        """Build by resolving a host name and a service name or number."""
        address = cls.__new__(cls)
        address._family, address._sockaddr = _lookup(hostname, service, socket.AF_INET, socket.AI_ALL)
        return address

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: Any) -> Address:
        """Build from an address family and a socket-module address value."""
        if family == socket.AF_INET and (not isinstance(sockaddr, tuple) or len(sockaddr) != 2):
            raise ValueError("invalid sockaddr size")
        if family == socket.AF_INET6 and (not isinstance(sockaddr, tuple) or not 2 <= len(sockaddr) <= 4):
            raise ValueError("invalid sockaddr size")
        address = cls.__new__(cls)
        address._family = family
        address._sockaddr = tuple(sockaddr) if isinstance(sockaddr, (tuple, list)) else sockaddr
        return address

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build from a 32-bit numeric IPv4 address (port 0)."""
        return cls.from_sockaddr(socket.AF_INET, (str(IPv4Address(ip_address & 0xFFFFFFFF)), 0))

    @property
    def family(self) -> int:
        return self._family

    def sockaddr(self) -> Any:
        """The address in the form the socket module takes."""
        return self._sockaddr

    def ip_port(self) -> tuple[str, int]:
        """Numeric IP address string and port."""
        if self._family not in _INTERNET_FAMILIES:
            raise ValueError("ip_port() called on non-Internet address")
        try:
            host, port = socket.getnameinfo(self._sockaddr, socket.NI_NUMERICHOST | socket.NI_NUMERICSERV)
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno or 0, exc.strerror or str(exc)) from exc
        return host, int(port)

    def ip(self) -> str:
        return self.ip_port()[0]

    def port(self) -> int:
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as an integer."""
        if self._family != socket.AF_INET:
            raise ValueError("ipv4_numeric called on non-IPV4 address")
        return int(IPv4Address(self._sockaddr[0]))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self._family == other._family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self._family, self._sockaddr))

    def __str__(self) -> str:
        if self._family in _INTERNET_FAMILIES:
            ip, port = self.ip_port()
            return f"{ip}:{port}"
        return "(non-Internet address)"

    def __repr__(self) -> str:
        return f"Address({self._family!r}, {self._sockaddr!r})"