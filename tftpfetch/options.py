"""Option negotiation (RFC 2347). The client asks for options in its read
request and the server answers with an OACK naming the ones it accepted,
possibly with smaller values. Nothing in an OACK can fail a transfer: values
that do not parse and names we do not know are skipped."""

import logging

from tftpfetch.shared import DEF_BLKSIZE

logger = logging.getLogger('tftpfetch.options')

class NegotiatedParameters:
    """The parameters in force for one transfer."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.blksize = DEF_BLKSIZE
        self.tsize = None

    def __repr__(self) -> str:
        return f"NegotiatedParameters(blksize={self.blksize}, tsize={self.tsize})"

def parse_unsigned(value: str) -> int:
    """Parse a decimal option value, returning None when it is not a plain
    unsigned integer."""

    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)

def negotiate(parameters: NegotiatedParameters, options: dict) -> dict:
    """Apply the options a server acknowledged to the transfer parameters.

    Args:
        parameters (NegotiatedParameters): updated in place
        options (dict): option names and values from an OACK packet

    Returns:
        dict: the options that were applied, with integer values
    """

    accepted = {}
    for name, value in options.items():
        name = name.lower()

        if name == 'blksize':
            blksize = parse_unsigned(value)
            if blksize:
                logger.info(f"negotiated blksize of {blksize} bytes")
                parameters.blksize = accepted[name] = blksize
            else:
                logger.warning(f"ignoring invalid blksize {value!r} from server")

        elif name == 'tsize':
            tsize = parse_unsigned(value)
            if tsize is None:
                logger.warning(f"ignoring invalid tsize {value!r} from server")
            else:
                logger.info(f"server reports a file size of {tsize} bytes")
                parameters.tsize = accepted[name] = tsize

        else:
            logger.debug(f"ignoring unsupported option {name} = {value}")

    return accepted
