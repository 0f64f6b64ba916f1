"""TCP segments: a TCP message plus ports and checksum, on the wire."""

from __future__ import annotations

from dataclasses import dataclass, field

from netwire.checksum import InternetChecksum
from netwire.parser import Parser, Serializer
from netwire.tcp_message import TCPMessage, UserDatagramInfo

_HEADER_MIN_WORDS = 5

_FLAG_ACK = 0b0001_0000
_FLAG_RST = 0b0000_0100
_FLAG_SYN = 0b0000_0010
_FLAG_FIN = 0b0000_0001


@dataclass
class TCPSegment:
    message: TCPMessage = field(default_factory=TCPMessage)
    udinfo: UserDatagramInfo = field(default_factory=UserDatagramInfo)

    def parse(self, parser: Parser, pseudo_checksum: int) -> None:
        """Parse a segment, verifying its checksum with the pseudo-header's part."""
        if InternetChecksum(pseudo_checksum).add(parser.buffer()).value():
            parser.set_error()
            return

        sender = self.message.sender
        receiver = self.message.receiver

        self.udinfo.src_port = parser.integer(2)
        self.udinfo.dst_port = parser.integer(2)
        sender.seqno = parser.integer(4)
        receiver.ackno = parser.integer(4)

        data_offset = parser.integer(1) >> 4
        flags = parser.integer(1)
        if not flags & _FLAG_ACK:
            receiver.ackno = None
        sender.RST = receiver.RST = bool(flags & _FLAG_RST)
        sender.SYN = bool(flags & _FLAG_SYN)
        sender.FIN = bool(flags & _FLAG_FIN)

        receiver.window_size = parser.integer(2)
        self.udinfo.cksum = parser.integer(2)
        parser.integer(2)  # urgent pointer

        if data_offset < _HEADER_MIN_WORDS:
            parser.set_error()
            parser.all_remaining()
        else:
            parser.remove_prefix((data_offset - _HEADER_MIN_WORDS) * 4)

        sender.payload = parser.all_remaining_bytes()

    def serialize(self, serializer: Serializer) -> None:
        sender = self.message.sender
        receiver = self.message.receiver
        serializer.integer(self.udinfo.src_port, 2)
        serializer.integer(self.udinfo.dst_port, 2)
        serializer.integer(sender.seqno, 4)
        serializer.integer(receiver.ackno if receiver.ackno is not None else 0, 4)
        serializer.integer(_HEADER_MIN_WORDS << 4, 1)
        flags = (
            (_FLAG_ACK if receiver.ackno is not None else 0)
            | (_FLAG_RST if sender.RST or receiver.RST else 0)
            | (_FLAG_SYN if sender.SYN else 0)
            | (_FLAG_FIN if sender.FIN else 0)
        )
        serializer.integer(flags, 1)
        serializer.integer(receiver.window_size, 2)
        serializer.integer(self.udinfo.cksum, 2)
        serializer.integer(0, 2)  # urgent pointer
        serializer.buffer(sender.payload)

    def compute_checksum(self, pseudo_checksum: int) -> None:
        """Set the checksum field, including the pseudo-header's part."""
        self.udinfo.cksum = 0
        serializer = Serializer()
        self.serialize(serializer)
        self.udinfo.cksum = InternetChecksum(pseudo_checksum).add(serializer.output()).value()