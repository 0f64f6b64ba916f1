"""Socket wrappers built on shared file-descriptor handles."""

from __future__ import annotations

import socket
import struct
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from netwire.address import Address
from netwire.errors import UnixError
from netwire.file_descriptor import READ_BUFFER_SIZE, FileDescriptor

T = TypeVar("T")

_SO_BINDTODEVICE = getattr(socket, "SO_BINDTODEVICE", 25)
_SO_DOMAIN = getattr(socket, "SO_DOMAIN", 39)
_SO_PROTOCOL = getattr(socket, "SO_PROTOCOL", 38)
_AF_PACKET = getattr(socket, "AF_PACKET", 17)
_SOL_PACKET = 263
_PACKET_ADD_MEMBERSHIP = 1
_PACKET_MR_PROMISC = 1

# struct packet_mreq { int ifindex; unsigned short type; unsigned short alen; unsigned char address[8]; }
_PACKET_MREQ = struct.Struct("iHH8s")


def _packet_mreq(ifindex: int) -> bytes:
    return _PACKET_MREQ.pack(ifindex, _PACKET_MR_PROMISC, 0, b"")


class Socket(FileDescriptor):
    """Base class for network sockets; normally used through a subclass."""

    def __init__(self, domain: int, sock_type: int, protocol: int = 0) -> None:
        try:
            sock = socket.socket(domain, sock_type, protocol)
        except OSError as exc:
            raise UnixError("socket", exc.errno or 0) from exc
        super().__init__(sock.detach())

    def _adopt(self, fd: FileDescriptor, domain: int, sock_type: int, protocol: int = 0) -> None:
        """Take over ``fd``, checking that it is a socket of the given kind."""
        self._internal = fd._internal
        if self._getsockopt(socket.SOL_SOCKET, _SO_DOMAIN) != domain:
            raise RuntimeError("socket domain mismatch")
        if self._getsockopt(socket.SOL_SOCKET, socket.SO_TYPE) != sock_type:
            raise RuntimeError("socket type mismatch")
        if self._getsockopt(socket.SOL_SOCKET, _SO_PROTOCOL) != protocol:
            raise RuntimeError("socket protocol mismatch")

    @contextmanager
    def _borrowed(self, attempt: str) -> Iterator[socket.socket]:
        """A socket object on this descriptor that does not own it."""
        try:
            sock = socket.socket(fileno=self.fd_num())
        except OSError as exc:
            raise UnixError(attempt, exc.errno or 0) from exc
        try:
            yield sock
        finally:
            sock.detach()

    def _sock_call(self, attempt: str, func: Callable[[socket.socket], T]) -> T | int:
        with self._borrowed(attempt) as sock:
            return self._check_system_call(attempt, func, sock)

    def _getsockopt(self, level: int, option: int) -> int:
        return int(self._sock_call("getsockopt", lambda sock: sock.getsockopt(level, option)))

    def _setsockopt(self, level: int, option: int, value: int | bytes) -> None:
        self._sock_call("setsockopt", lambda sock: sock.setsockopt(level, option, value))

    def _address(self, attempt: str, getter: Callable[[socket.socket], Any]) -> Address:
        with self._borrowed(attempt) as sock:
            family = sock.family
            name = self._check_system_call(attempt, getter, sock)
        return Address.from_sockaddr(family, name)

    def bind(self, address: Address) -> None:
        self._sock_call("bind", lambda sock: sock.bind(address.sockaddr()))

    def bind_to_device(self, device_name: str) -> None:
        self._setsockopt(socket.SOL_SOCKET, _SO_BINDTODEVICE, device_name.encode())

    def connect(self, address: Address) -> None:
        """Connect to ``address``; on a non-blocking socket this may still be in progress."""
        self._sock_call("connect", lambda sock: sock.connect(address.sockaddr()))

    def shutdown(self, how: int) -> None:
        """Shut down reading, writing or both (``socket.SHUT_RD``/``SHUT_WR``/``SHUT_RDWR``)."""
        self._sock_call("shutdown", lambda sock: sock.shutdown(how))
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        return self._address("getsockname", lambda sock: sock.getsockname())

    def peer_address(self) -> Address:
        return self._address("getpeername", lambda sock: sock.getpeername())

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner, at some cost in robustness."""
        self._setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    def throw_if_error(self) -> None:
        """Raise UnixError if the socket has a pending error."""
        socket_error = self._getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if socket_error:
            raise UnixError("socket error", socket_error)


class DatagramSocket(Socket):
    """A socket that sends and receives whole datagrams."""

    def recv(self) -> tuple[Address, bytes] | None:
        """Receive one datagram and its sender's address.

        Returns None on a non-blocking socket with nothing to receive. Raises
        RuntimeError for a datagram larger than the read buffer.
        """
        with self._borrowed("recvfrom") as sock:
            family = sock.family
            result = self._check_system_call("recvfrom", sock.recvmsg, READ_BUFFER_SIZE)
        if not isinstance(result, tuple):
            self._register_read()
            return None
        data, _ancillary, flags, source = result
        if flags & socket.MSG_TRUNC:
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return Address.from_sockaddr(family, source), data

    def sendto(self, destination: Address, payload: bytes) -> None:
        self._sock_call("sendto", lambda sock: sock.sendto(payload, destination.sockaddr()))
        self._register_write()

    def send(self, payload: bytes) -> None:
        """Send to the connected address (``connect`` must have been called)."""
        self._sock_call("send", lambda sock: sock.send(payload))
        self._register_write()


class UDPSocket(DatagramSocket):
    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM)


class TCPSocket(Socket):
    def __init__(self) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM)

    def listen(self, backlog: int = 16) -> None:
        self._sock_call("listen", lambda sock: sock.listen(backlog))

    def accept(self) -> TCPSocket:
        """Wait for and accept a new connection."""
        self._register_read()
        with self._borrowed("accept") as sock:
            try:
                connection, _peer = sock.accept()
            except OSError as exc:
                raise UnixError("accept", exc.errno or 0) from exc
        accepted = TCPSocket.__new__(TCPSocket)
        accepted._adopt(
            FileDescriptor(connection.detach()), socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP
        )
        return accepted


class PacketSocket(DatagramSocket):
    """A link-layer packet socket."""

    def __init__(self, sock_type: int, protocol: int) -> None:
        super().__init__(_AF_PACKET, sock_type, protocol)

    def set_promiscuous(self) -> None:
        address = self.local_address()
        if address.family != _AF_PACKET:
            raise RuntimeError("address conversion failure")
        ifindex = socket.if_nametoindex(address.sockaddr()[0])
        self._setsockopt(_SOL_PACKET, _PACKET_ADD_MEMBERSHIP, _packet_mreq(ifindex))


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket made from an existing descriptor."""

    def __init__(self, fd: FileDescriptor) -> None:
        self._adopt(fd, socket.AF_UNIX, socket.SOCK_STREAM)


class LocalDatagramSocket(DatagramSocket):
    def __init__(self) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_DGRAM)