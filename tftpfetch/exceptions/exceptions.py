from tftpfetch.shared import Outcome

class TftpException(Exception):
    """This class is the parent class of all exceptions regarding the handling
    of the TFTP protocol. The outcome travels with the exception so the
    transfer context can report it without keeping any error state."""

    outcome = Outcome.INTERNAL_ERROR

    def __init__(self, message, *args, outcome=None, **kwargs):
        if isinstance(outcome, Outcome):
            self.outcome = outcome

        super().__init__(message, *args, **kwargs)

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

class TftpDecodeError(TftpException):
    """A datagram that could not be decoded into a TFTP packet."""
    outcome = Outcome.ILLEGAL_TFTP_OPERATION

class TftpTimeout(TftpException):
    """This class represents a timeout error waiting for a response from the
    other end."""
    pass


class TftpFileNotFoundError(TftpException):
    """This class represents an error condition where we received a file
    not found error."""
    outcome = Outcome.FILE_NOT_FOUND
