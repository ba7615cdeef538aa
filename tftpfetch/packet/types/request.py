from .base import TftpPacketInitial

class ReadRQ(TftpPacketInitial):
    """
    Read Request
          2 bytes    string    1 byte    string    1 byte
          -----------------------------------------------
    RRQ  |  01   |  Filename  |   0  |    Mode    |   0  |
          -----------------------------------------------

    RFC 2347 options follow the mode as further string pairs.
    """

    def __init__(self) -> None:
        super().__init__()
        self.opcode = 1

    def __str__(self) -> str:
        s = f"RRQ packet: filename = {self.filename} mode = {self.mode}"

        if self.options:
            s += f"\n    options = {self.options}"

        return s
