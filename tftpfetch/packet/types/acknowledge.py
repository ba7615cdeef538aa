import logging
import struct

from .base import TftpPacket, TftpPacketWithOptions

logger = logging.getLogger('tftpfetch.packet.types.acknowledge')

class Ack(TftpPacket):
    """
    Acknowledgement Packet
           2 bytes  2 bytes
           -----------------
    ACK   | 04    | Block # |
           -----------------
    """

    def __init__(self, blocknumber: int = 0) -> None:
        super().__init__()
        self.opcode = 4
        self.blocknumber = blocknumber

    def __str__(self) -> str:
        return f"ACK packet: block {self.blocknumber}"

    def encode(self) -> 'Ack':
        """Encode acknowlegement packet for sending

        Returns:
            Ack: self
        """

        logger.debug(f"encoding ACK: opcode = {self.opcode}, block = {self.blocknumber}")
        self.buffer = struct.pack("!HH", self.opcode, self.blocknumber)
        return self

    def decode(self) -> 'Ack':
        """Decode an acknowlegement packet

        Returns:
            Ack: self
        """

        self.require_length(4, "ACK")
        if len(self.buffer) > 4:
            logger.debug("detected TFTP ACK but request is too large, will truncate")
            self.buffer = self.buffer[0:4]

        self.opcode, self.blocknumber = struct.unpack("!HH", self.buffer)
        logger.debug(f"decoded ACK packet: opcode = {self.opcode}, block = {self.blocknumber}")
        return self


class OptionAck(TftpPacket, TftpPacketWithOptions):
    """
    Option Acknowledgement
    +-------+---~~---+---+---~~---+---+---~~---+---+---~~---+---+
    |  opc  |  opt1  | 0 | value1 | 0 |  optN  | 0 | valueN | 0 |
    +-------+---~~---+---+---~~---+---+---~~---+---+---~~---+---+
    """

    def __init__(self) -> None:
        super().__init__()
        TftpPacketWithOptions.__init__(self)
        self.opcode = 6

    def __str__(self) -> str:
        return f"OACK packet:\n    options = {self.options}"

    def encode(self) -> 'OptionAck':
        """Encode option acknowlegement packet for sending

        Returns:
            OptionAck: self
        """

        self.buffer = struct.pack("!H", self.opcode) + self.encode_options()
        return self

    def decode(self) -> 'OptionAck':
        """Decode an option acknowlegement packet

        Returns:
            OptionAck: self
        """

        self.options = self.decode_options(self.buffer[2:])
        return self
