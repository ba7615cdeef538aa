import logging
import struct

from .base import TftpPacket, to_bytes
from tftpfetch.shared import TftpErrors

logger = logging.getLogger('tftpfetch.packet.types.error')

class Error(TftpPacket):
    """
        Error Packet

            2 bytes   2 bytes      string   1 byte
            --------------------------------------
     ERROR | 05     | ErrorCode |  ErrMsg  |   0  |
            --------------------------------------

    Error Codes

    Value     Meaning

    0         Not defined, see error message (if any).
    1         File not found.
    2         Access violation.
    3         Disk full or allocation exceeded.
    4         Illegal TFTP operation.
    5         Unknown transfer ID.
    6         File already exists.
    7         No such user.
    """

    errmsgs = {
        TftpErrors.FILENOTFOUND: "File not found",
        TftpErrors.ACCESSVIOLATION: "Access violation",
        TftpErrors.DISKFULL: "Disk full or allocation exceeded",
        TftpErrors.ILLEGALTFTPOP: "Illegal TFTP operation",
        TftpErrors.UNKNOWNTID: "Unknown transfer ID",
        TftpErrors.FILEALREADYEXISTS: "File already exists",
        TftpErrors.NOSUCHUSER: "No such user",
        }

    def __init__(self, errorcode: int = TftpErrors.NOTDEFINED, errmsg: str = None) -> None:
        super().__init__()
        self.opcode = 5
        self.errorcode = errorcode
        self.errmsg = errmsg

    def __str__(self) -> str:
        s = f"ERR packet: errorcode = {self.errorcode}"
        s += f"\n    msg = {self.errmsg or self.errmsgs.get(self.errorcode, '')}"

        return s

    def encode(self) -> 'Error':
        """Encode the Error packet, falling back on the standard text for the
        error code when no message was set.

        Returns:
            Error: self
        """

        errmsg = to_bytes(self.errmsg or self.errmsgs.get(self.errorcode, ""))
        self.buffer = struct.pack("!HH", self.opcode, self.errorcode) + errmsg + b"\x00"
        return self

    def decode(self) -> 'Error':
        """Decode Error packet. The message runs up to the first NUL; a
        missing terminator leaves the rest of the buffer as the message.

        Returns:
            Error: self
        """

        self.require_length(4, "ERR")
        logger.debug(f"Decoding ERR packet, length {len(self.buffer)} bytes")

        self.opcode, self.errorcode = struct.unpack("!HH", self.buffer[:4])

        errmsg = self.buffer[4:]
        end = errmsg.find(b"\x00")
        if end < 0:
            logger.debug("Allowing this affront to the RFC of an unterminated ERR message")
        else:
            errmsg = errmsg[:end]

        self.errmsg = errmsg.decode('ascii', errors='replace')
        logger.debug(f"ERR packet - errorcode: {self.errorcode}, message: {self.errmsg}")

        return self
