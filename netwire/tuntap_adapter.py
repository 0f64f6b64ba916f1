"""Adapters that carry TCP messages over a TUN device, optionally with losses."""

from __future__ import annotations

import random
from typing import Any

from netwire.file_descriptor import FileDescriptor
from netwire.ipv4 import InternetDatagram, IPv4Header
from netwire.parser import parse, serialize
from netwire.rng import get_random_engine
from netwire.tcp_config import FdAdapterConfig
from netwire.tcp_message import TCPMessage
from netwire.tcp_over_ip import TCPOverIPv4Adapter


class TCPOverIPv4OverTunFdAdapter(TCPOverIPv4Adapter):
    """Reads and writes IPv4 datagrams holding TCP segments on a TUN device."""

    def __init__(self, tun: FileDescriptor) -> None:
        super().__init__()
        self._tun = tun

    def read(self) -> TCPMessage | None:
        """Read one datagram; return its TCP message if it is valid and for this connection."""
        buffers = self._tun.readv([IPv4Header.LENGTH, 0])
        if not buffers:
            return None
        datagram = InternetDatagram()
        if parse(datagram, buffers):
            return self.unwrap_tcp_in_ip(datagram)
        return None

    def write(self, message: TCPMessage) -> None:
        """Wrap ``message`` in an IPv4 datagram and write it to the device."""
        self._tun.write(serialize(self.wrap_tcp_in_ip(message)))

    def fd(self) -> FileDescriptor:
        return self._tun


class LossyFdAdapter:
    """Wraps an adapter, dropping reads and writes at the configured loss rates."""

    def __init__(self, adapter: Any, rng: random.Random | None = None) -> None:
        self._adapter = adapter
        self._rng = rng if rng is not None else get_random_engine()

    def _should_drop(self, uplink: bool) -> bool:
        config = self._adapter.config()
        loss = config.loss_rate_up if uplink else config.loss_rate_dn
        return loss != 0 and self._rng.getrandbits(16) < loss

    def fd(self) -> FileDescriptor:
        return self._adapter.fd()

    def read(self) -> TCPMessage | None:
        """Read from the wrapped adapter; None if nothing came or it was dropped."""
        message = self._adapter.read()
        if self._should_drop(False):
            return None
        return message

    def write(self, message: TCPMessage) -> None:
        """Write through the wrapped adapter unless the write is dropped."""
        if self._should_drop(True):
            return
        self._adapter.write(message)

    def set_listening(self, listening: bool) -> None:
        self._adapter.set_listening(listening)

    def config(self) -> FdAdapterConfig:
        return self._adapter.config()

    def tick(self, ms_since_last_tick: int) -> None:
        self._adapter.tick(ms_since_last_tick)