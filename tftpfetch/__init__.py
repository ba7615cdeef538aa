"""
This library implements a TFTP download client (RFC 1350), with the blksize
and tsize option extensions (RFC 2347, 2348, 2349). It fetches a single file
over UDP and reports the outcome as a value rather than an exception.

    from tftpfetch import fetch, Outcome

    outcome, message = fetch('192.0.2.1', 'pxelinux.0', '/tmp/pxelinux.0')
    if outcome != Outcome.SUCCESS:
        print(message)
"""

from .shared import Outcome,Result,TftpErrors
from .exceptions import TftpException,TftpTimeout,TftpDecodeError,TftpFileNotFoundError
from .client import TftpClient,fetch
