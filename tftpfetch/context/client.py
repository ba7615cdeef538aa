import contextlib
import logging
import os
import time

from io import IOBase
from typing import Union

from .base import Context
from tftpfetch.shared import Outcome, Result
from tftpfetch.packet import types
from tftpfetch.exceptions import TftpException, TftpTimeout
from tftpfetch.states import SentReadRQ
from tftpfetch.transport import Transport

logger = logging.getLogger('tftpfetch.context.client')

class Download(Context):
    """The download context for the client during a download."""

    def __init__(self, host: str, port: int, timeout: float,
                 output: Union[IOBase, str], **kwargs) -> None:
        """Initalize the Download context with the server and
           where to save the data

        Args:
            host (str): Server Address
            port (int): Server port
            timeout (float): Receive deadline
            output (Union[IOBase,str]): Output data, can be one of
                - An open binary file object, left open afterwards
                - A path to a file, created or truncated
        """

        super().__init__(host, port, timeout, **kwargs)

        self.output = output
        self.fileobj = None
        self.transport_factory = kwargs.get('transport', None) or Transport

        # If the output object has a write() function, assume it is file-like.
        self.filelike_fileobj = hasattr(output, 'write')

        logger.debug("tftpfetch.context.client.Download.__init__()")
        logger.debug(f" file_to_transfer = {self.file_to_transfer}, options = {self.options}")

    @property
    def output_name(self) -> str:
        if self.filelike_fileobj:
            return getattr(self.output, 'name', repr(self.output))
        return str(self.output)

    @contextlib.contextmanager
    def open_output(self):
        """Open the destination for the length of the transfer. A file
        object handed in by the caller stays open.

        Raises:
            TftpException: unable to open or finish writing the destination file
        """

        if self.filelike_fileobj:
            yield self.output
            return

        try:
            fileobj = open(self.output, "wb")
        except OSError as err:
            raise TftpException(f"failed to open destination file: {self.output} ({err.strerror})",
                                outcome=Outcome.INTERNAL_ERROR)

        try:
            yield fileobj
        except BaseException:
            self.close_output(fileobj, failed=True)
            raise
        self.close_output(fileobj)

    def close_output(self, fileobj, failed: bool = False) -> None:
        """Close an output file we opened. A close that fails after a
        transfer already failed is only logged, the first failure stands.

        Raises:
            TftpException: the file could not be flushed to disk
        """

        logger.debug("closing output file")
        try:
            fileobj.close()
        except OSError as err:
            if failed:
                logger.warning(f"could not close {self.output}: {err}")
                return
            raise TftpException(f"failed to write destination file: {self.output} ({err.strerror})",
                                outcome=Outcome.INTERNAL_ERROR)

    def write(self, data: bytes) -> None:
        """Append a block to the output.

        Raises:
            TftpException: the write failed
        """

        logger.debug(f"Writing {len(data)} bytes to output file")
        try:
            self.fileobj.write(data)
        except OSError as err:
            raise TftpException(f"failed to write destination file: {self.output_name} ({err.strerror})",
                                outcome=Outcome.INTERNAL_ERROR)
        self.metrics.bytes += len(data)

    def remove_output(self) -> None:
        """Delete the output file we created, if any. A file not found error
        should not leave a size zero file behind."""

        if not self.filelike_fileobj and os.path.exists(self.output):
            logger.debug(f"unlinking output file of {self.output}")
            try:
                os.unlink(self.output)
            except OSError as err:
                logger.warning(f"could not remove {self.output}: {err}")

    def build_request(self) -> types.ReadRQ:
        """Put the read request together before the host is looked up or the
        output is opened.

        Raises:
            TftpException: the remote filename is empty or cannot be sent

        Returns:
            types.ReadRQ: the encoded request
        """

        filename = self.file_to_transfer
        if not filename or "\x00" in filename:
            raise TftpException(f"invalid remote filename: {filename!r}",
                                outcome=Outcome.INTERNAL_ERROR)

        pkt = types.ReadRQ()
        pkt.filename = filename
        pkt.mode = self.mode
        pkt.options = self.options

        try:
            pkt.encode()
        except UnicodeError as err:
            raise TftpException(f"invalid remote filename: {filename!r} ({err})",
                                outcome=Outcome.INTERNAL_ERROR)
        return pkt

    def start(self) -> None:
        """Initiate the download and run it to completion.

        Raises:
            TftpTimeout: Too many consecutive timeouts
            TftpException: The transfer failed
        """

        logger.info(f"Sending tftp download request to {self.host}")
        logger.info(f"    filename -> {self.file_to_transfer}")
        logger.info(f"    options -> {self.options}")

        pkt = self.build_request()
        self.resolve()

        with self.transport_factory(self.timeout, self.localip) as transport:
            self.transport = transport
            with self.open_output() as fileobj:
                self.fileobj = fileobj

                self.send(pkt)
                self.state = SentReadRQ(self)

                while self.state:
                    try:
                        logger.debug(f"State is {self.state}")
                        self.cycle()

                    except TftpTimeout as err:
                        logger.warning(str(err))
                        self.timeouts += 1
                        if self.timeouts >= self.retries:
                            logger.debug("hit max retries, giving up")
                            raise TftpTimeout("timeout waiting for tftp reply")
                        else:
                            logger.warning("resending last packet")
                            self.state.resend_last()

    def run(self) -> Result:
        """Run the download and report how it went. Nothing raised by the
        transfer escapes; it comes back as the outcome and message of the
        result.

        Returns:
            Result: the outcome and a message describing it
        """

        self.metrics.start_time = time.time()
        logger.debug(f"Set metrics.start_time to {self.metrics.start_time}")

        try:
            self.start()
        except TftpException as err:
            logger.error(f"Download of {self.file_to_transfer} failed: {err.message}")
            result = Result(err.outcome, err.message)
        else:
            result = Result(Outcome.SUCCESS)
        finally:
            self.end()

        if result.outcome == Outcome.FILE_NOT_FOUND:
            self.remove_output()

        return result

    def end(self) -> None:
        """Finish up the context."""

        self.terminated = True
        self.metrics.end_time = time.time()
        logger.debug(f"Set metrics.end_time to {self.metrics.end_time}")
        self.metrics.compute()
