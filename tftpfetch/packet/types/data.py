import struct
import logging

from .base import TftpPacket

logger = logging.getLogger('tftpfetch.packet.types.data')

class Data(TftpPacket):
    """
           2 bytes  2 bytes  n bytes
           ---------------------~~--
    DATA  | 03    | Block # | Data  |
           ---------------------~~--
    """

    def __init__(self) -> None:
        super().__init__()
        self.opcode = 3
        self.blocknumber = 0
        self.data = b""

    def __str__(self) -> str:
        s = f"DAT packet: block {self.blocknumber}"
        if self.data:
            s += f"\n    data: {len(self.data)} bytes"

        return s

    def __len__(self) -> int:
        """Size of the datagram on the wire, header included."""
        return 4 + len(self.data)

    def encode(self) -> 'Data':
        """Encode the Data packet.

        Returns:
            Data: self
        """

        data = self.data
        if not isinstance(data, bytes):
            data = data.encode('ascii')

        self.buffer = struct.pack("!HH", self.opcode, self.blocknumber) + data
        return self

    def decode(self) -> 'Data':
        """Decode Data packet.

        Raises:
            TftpDecodeError: fewer than 4 bytes in the buffer

        Returns:
            Data: self
        """

        self.require_length(4, "data")

        # We know the first 2 bytes are the opcode. The second two are the
        # block number.
        (self.blocknumber,) = struct.unpack("!H", self.buffer[2:4])
        logger.debug(f"decoding DAT packet, block number {self.blocknumber}")

        # Everything else is data, possibly nothing at all.
        self.data = self.buffer[4:]
        logger.debug(f"found {len(self.data)} bytes of data")

        return self
