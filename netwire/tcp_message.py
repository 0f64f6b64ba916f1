"""The sender and receiver halves of a TCP message."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class UserDatagramInfo:
    """The ports and checksum of a UDP or TCP header."""

    src_port: int = 0
    dst_port: int = 0
    cksum: int = 0


@dataclass
class TCPReceiverMessage:
    """What a TCP receiver tells its sender.

    ``ackno`` is the raw 32-bit sequence number wanted next, or None before the
    initial sequence number is known.
    """

    ackno: int | None = None
    window_size: int = 0
    RST: bool = False


@dataclass
class TCPSenderMessage:
    """What a TCP sender tells its receiver; ``seqno`` is a raw 32-bit value."""

    seqno: int = 0
    SYN: bool = False
    payload: bytes = b""
    FIN: bool = False
    RST: bool = False

    def sequence_length(self) -> int:
        """How many sequence numbers the message occupies."""
        return int(self.SYN) + len(self.payload) + int(self.FIN)


@dataclass
class TCPMessage:
    sender: TCPSenderMessage = field(default_factory=TCPSenderMessage)
    receiver: TCPReceiverMessage = field(default_factory=TCPReceiverMessage)