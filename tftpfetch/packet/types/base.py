import struct
import logging

from tftpfetch.shared import tftpassert
from tftpfetch.exceptions import TftpException,TftpDecodeError

logger = logging.getLogger('tftpfetch.packet.types.base')

def to_bytes(value) -> bytes:
    """Strings go on the wire as UTF-8, which leaves the ASCII option names
    and modes unchanged; integers are sent in their decimal form."""

    if isinstance(value, int):
        value = str(value)
    if not isinstance(value, bytes):
        value = value.encode('utf-8')
    return value

class TftpPacketWithOptions:
    """This class exists to permit some TftpPacket subclasses to share code
    regarding options handling. It does not inherit from TftpPacket, as the
    goal is just to share code here, and not cause diamond inheritance."""

    def __init__(self) -> None:
        self.options = {}

    @property
    def options(self) -> dict:
        """Getter function for the option property"""
        return self._options

    @options.setter
    def options(self, options: dict) -> None:
        """Setter function for option property. Byte keys and values are
        decoded so that lookups always work on str.

        Args:
            options (dict): option names and values
        """

        myoptions = {}
        for key, value in options.items():
            if isinstance(key, bytes):
                key = key.decode('ascii')
            if isinstance(value, bytes):
                value = value.decode('ascii')
            myoptions[key] = value

        logger.debug(f"setting options hash to: {myoptions}")
        self._options = myoptions

    def encode_options(self) -> bytes:
        """Pack the options as a run of name NUL value NUL pairs."""

        buffer = b""
        for key, value in self.options.items():
            logger.debug(f"    Option {key} = {value}")
            buffer += to_bytes(key) + b"\x00" + to_bytes(value) + b"\x00"
        return buffer

    def decode_options(self, buffer: bytes) -> dict:
        """This method decodes the section of the buffer that contains an
        unknown number of options. It returns a dictionary of option names and
        values.

        Only NUL terminated strings count. A trailing fragment without its
        terminator, or a final name without a value, is dropped rather than
        treated as an error, as is anything that is not plain ASCII.

        Args:
            buffer (bytes): the options section of the datagram

        Returns:
            dict: option names and values
        """

        logger.debug(f"decode_options: buffer is: {repr(buffer)}")
        if len(buffer) == 0:
            logger.debug("size of buffer is zero, returning empty hash")
            return {}

        # Whatever follows the last NUL is unterminated.
        fields = buffer.split(b"\x00")
        if fields[-1]:
            logger.debug(f"dropping unterminated option data {repr(fields[-1])}")
        fields = fields[:-1]

        if len(fields) % 2:
            logger.debug(f"dropping option {repr(fields[-1])} without a value")
            fields = fields[:-1]

        options = {}
        for i in range(0, len(fields), 2):
            key = fields[i].decode('ascii', errors='replace')
            val = fields[i+1].decode('ascii', errors='replace')
            logger.debug(f"setting option {key} to {val}")
            options[key] = val

        return options


class TftpPacket:
    """This class is the parent class of all tftp packet classes. It is an
    abstract class, providing an interface, and should not be instantiated
    directly."""

    def __init__(self) -> None:
        self.opcode = 0
        self.buffer = None

    def encode(self) -> 'TftpPacket':
        """The encode method of a TftpPacket packs an appropriate buffer in
        network-byte order suitable for sending over the wire, from the
        instance attributes specific to the type of packet.

        This is an abstract method."""
        raise NotImplementedError

    def decode(self) -> 'TftpPacket':
        """The decode method of a TftpPacket takes a buffer off of the wire in
        network-byte order, and decodes it, populating internal properties as
        appropriate. This can only be done once the first 2-byte opcode has
        already been decoded, but the data section does include the entire
        datagram.

        This is an abstract method."""
        raise NotImplementedError

    def require_length(self, minimum: int, name: str) -> None:
        """Refuse to decode a buffer too short to hold the fixed header."""

        if len(self.buffer) < minimum:
            raise TftpDecodeError(f"failed to parse {name} packet: "
                                  f"{len(self.buffer)} bytes is too short")


class TftpPacketInitial(TftpPacket, TftpPacketWithOptions):
    """This class is a common parent class for the request packets. Only the
    read request is used by this client."""

    def __init__(self) -> None:
        super().__init__()
        TftpPacketWithOptions.__init__(self)
        self.filename = None
        self.mode = None

    def encode(self) -> 'TftpPacketInitial':
        """Encode the packet's buffer from the instance variables.

        Raises:
            TftpException: Unsupported mode

        Returns:
            TftpPacketInitial: self
        """

        tftpassert(self.filename, "filename required in initial packet")
        tftpassert(self.mode, "mode required in initial packet")

        filename = to_bytes(self.filename)
        mode = to_bytes(self.mode)

        if mode not in (b"octet", b"netascii"):
            raise TftpException(f"Unsupported mode: {mode}")

        logger.debug(f"Encoding request packet, filename = {filename}, mode = {mode}")

        self.buffer = (struct.pack("!H", self.opcode)
                       + filename + b"\x00"
                       + mode + b"\x00"
                       + self.encode_options())

        logger.debug(f"buffer is {repr(self.buffer)}")
        return self

    def decode(self) -> 'TftpPacketInitial':
        """Decode the buffer

        Returns:
            TftpPacketInitial: self
        """
        tftpassert(self.buffer, "Can't decode, buffer is empty")

        subbuf = self.buffer[2:]
        parts = subbuf.split(b"\x00", 2)
        if len(parts) < 3:
            raise TftpDecodeError("malformed request packet")

        self.filename = parts[0].decode('utf-8', errors='replace')
        self.mode = parts[1].decode('ascii', errors='replace').lower()
        logger.debug(f"set filename to {self.filename}")
        logger.debug(f"set mode to {self.mode}")

        self.options = self.decode_options(parts[2])
        logger.debug(f"options dict is now {self.options}")
        return self
