"""Wrapping TCP messages in IPv4 datagrams and unwrapping them again."""

from __future__ import annotations

from ipaddress import IPv4Address

from netwire.address import Address
from netwire.ipv4 import InternetDatagram, IPv4Header
from netwire.parser import parse, serialize
from netwire.tcp_config import FdAdapterConfig
from netwire.tcp_message import TCPMessage
from netwire.tcp_segment import TCPSegment

_TCP_HEADER_LENGTH = 20


class FdAdapterBase:
    """The configuration and listening state shared by datagram adapters."""

    def __init__(self) -> None:
        self._config = FdAdapterConfig()
        self._listening = False

    def set_listening(self, listening: bool) -> None:
        self._listening = listening

    def listening(self) -> bool:
        """Is the adapter waiting for a new connection?"""
        return self._listening

    def config(self) -> FdAdapterConfig:
        """The current configuration; changes to it take effect at once."""
        return self._config

    def tick(self, ms_since_last_tick: int) -> None:
        """Called periodically as time passes; does nothing here."""


class TCPOverIPv4Adapter(FdAdapterBase):
    """Converts between TCP messages and IPv4 datagrams for one connection."""

    def unwrap_tcp_in_ip(self, datagram: InternetDatagram) -> TCPMessage | None:
        """The TCP message carried by ``datagram``, or None if it is invalid or unrelated.

        While listening, the first SYN (without RST) fixes the connection's
        addresses and ports and ends the listening state.
        """
        header = datagram.header
        config = self.config()

        # binding to "0" is allowed, so the destination is only checked once connected
        if not self.listening() and header.dst != config.source.ipv4_numeric():
            return None
        if not self.listening() and header.src != config.destination.ipv4_numeric():
            return None
        if header.proto != IPv4Header.PROTO_TCP:
            return None

        segment = TCPSegment()
        if not parse(segment, datagram.payload, header.pseudo_checksum()):
            return None

        if segment.udinfo.dst_port != config.source.port():
            return None

        if self.listening():
            sender = segment.message.sender
            if not (sender.SYN and not sender.RST):
                return None
            local_port = config.source.port()
            config.source = Address(str(IPv4Address(header.dst)), local_port)
            config.destination = Address(str(IPv4Address(header.src)), segment.udinfo.src_port)
            self.set_listening(False)

        if segment.udinfo.src_port != config.destination.port():
            return None

        return segment.message

    def wrap_tcp_in_ip(self, message: TCPMessage) -> InternetDatagram:
        """An IPv4 datagram carrying ``message`` with this connection's addresses and ports."""
        config = self.config()
        segment = TCPSegment(message=message)
        segment.udinfo.src_port = config.source.port()
        segment.udinfo.dst_port = config.destination.port()

        datagram = InternetDatagram()
        header = datagram.header
        header.src = config.source.ipv4_numeric()
        header.dst = config.destination.ipv4_numeric()
        header.len = (header.hlen * 4 + _TCP_HEADER_LENGTH + len(message.sender.payload)) & 0xFFFF

        segment.compute_checksum(header.pseudo_checksum())
        header.compute_checksum()
        datagram.payload = serialize(segment)
        return datagram