# vim: ts=4 sw=4 et ai:
# -*- coding: utf8 -*-
"""The UDP endpoint used for a single transfer. It knows nothing about TFTP,
it moves datagrams and reports whether a receive produced one, timed out, or
failed."""

import logging
import socket

from typing import NamedTuple, Tuple, Union

from tftpfetch.shared import SOCK_TIMEOUT, MAX_DATAGRAM, Outcome
from tftpfetch.exceptions import TftpException

logger = logging.getLogger('tftpfetch.transport')

Peer = Tuple[str, int]

class Received(NamedTuple):
    buffer: bytes
    peer: Peer

class Timeout(NamedTuple):
    pass

class Failed(NamedTuple):
    message: str

ReceiveResult = Union[Received, Timeout, Failed]

class Transport:
    """One IPv4 UDP socket bound to an ephemeral local port. Use it as a
    context manager so the socket is released on every exit path."""

    def __init__(self, timeout: float = SOCK_TIMEOUT, localip: str = None) -> None:
        """
        Args:
            timeout (float, optional): default receive deadline in seconds.
            localip (str, optional): Local address to bind to. Defaults to all interfaces.
        """

        self.timeout = timeout
        self.localip = localip or ""
        self.sock = None

    def __enter__(self) -> 'Transport':
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def open(self) -> 'Transport':
        """Create and bind the socket.

        Raises:
            TftpException: the socket could not be created, bound or configured
        """

        try:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as err:
            raise TftpException(f"socket creation failed: {err.strerror or err}",
                                outcome=Outcome.INTERNAL_ERROR)

        try:
            self.sock.bind((self.localip, 0))
        except OSError as err:
            self.close()
            raise TftpException(f"bind failed: {err.strerror or err}",
                                outcome=Outcome.INTERNAL_ERROR)

        try:
            self.sock.settimeout(self.timeout)
        except (OSError, ValueError) as err:
            self.close()
            raise TftpException(f"set socket timeout failed: {err}",
                                outcome=Outcome.INTERNAL_ERROR)

        logger.debug(f"bound UDP endpoint to {self.sock.getsockname()}")
        return self

    def close(self) -> None:
        if self.sock is not None:
            logger.debug("closing UDP endpoint")
            self.sock.close()
            self.sock = None

    def send_to(self, peer: Peer, buffer: bytes) -> None:
        """Send one datagram. Interrupted calls are retried by the
        interpreter itself.

        Raises:
            TftpException: the datagram could not be sent
        """

        logger.debug(f"sendto {peer[0]}:{peer[1]} {len(buffer)} bytes")
        try:
            self.sock.sendto(buffer, peer)
        except OSError as err:
            raise TftpException(err.strerror or str(err),
                                outcome=Outcome.INTERNAL_ERROR)

    def receive(self, timeout: float = None) -> ReceiveResult:
        """Wait at most timeout seconds for a datagram.

        Args:
            timeout (float, optional): Seconds left before giving up. Defaults
                to the endpoint's own timeout.

        Returns:
            Received, Timeout or Failed
        """

        if timeout is None:
            timeout = self.timeout

        try:
            self.sock.settimeout(max(timeout, 0.001))
            buffer, peer = self.sock.recvfrom(MAX_DATAGRAM)
        except socket.timeout:
            return Timeout()
        except OSError as err:
            return Failed(err.strerror or str(err))

        logger.debug(f"Received {len(buffer)} bytes from {peer[0]}:{peer[1]}")
        return Received(buffer, (peer[0], peer[1]))
