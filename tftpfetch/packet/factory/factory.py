import logging
import struct

from typing import Union

from tftpfetch.exceptions import TftpDecodeError
from tftpfetch.packet import types

logger = logging.getLogger('tftpfetch.packet.factory')

packet_type = Union[
    types.ReadRQ,
    types.OptionAck,
    types.Ack,
    types.Data,
    types.Error
]

class PacketFactory:
    """This class generates TftpPacket objects. It is responsible for parsing
    raw buffers off of the wire and returning objects representing them, via
    the parse() method."""

    _classes = {
        1: types.ReadRQ,
        3: types.Data,
        4: types.Ack,
        5: types.Error,
        6: types.OptionAck
        }

    def parse(self, buffer: bytes) -> packet_type:
        """This method is used to parse an existing datagram into its
        corresponding TftpPacket object.

        Args:
            buffer (bytes): Packet Data

        Raises:
            TftpDecodeError: the opcode is missing or unknown, or the packet
                is too short for its type

        Returns:
            types: packet type base on the opcode
        """

        logger.debug(f"parsing a {len(buffer)} byte packet")
        if len(buffer) < 2:
            raise TftpDecodeError(f"datagram of {len(buffer)} bytes has no opcode")

        (opcode,) = struct.unpack("!H", buffer[:2])
        logger.debug(f"opcode is {opcode}")
        packet = self.__create(opcode)
        packet.buffer = buffer
        return packet.decode()

    def __create(self, opcode: int) -> packet_type:
        """This method returns the appropriate class object corresponding to
        the passed opcode.

        Args:
            opcode (int): The opcode from the buffer

        Raises:
            TftpDecodeError: Unsupported opcode

        Returns:
            types: The Appropriate packet type class
        """

        if opcode not in self._classes:
            raise TftpDecodeError(f"invalid opcode received: {opcode}")

        return self._classes[opcode]()
