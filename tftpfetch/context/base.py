import logging
import socket
import time

from tftpfetch.shared import SOCK_TIMEOUT, TIMEOUT_RETRIES, DEF_TFTP_PORT, TftpErrors, Outcome, tftpassert
from tftpfetch.exceptions import TftpException, TftpTimeout, TftpDecodeError
from tftpfetch.packet.factory import PacketFactory
from tftpfetch.transport import Received, Timeout
from tftpfetch.options import NegotiatedParameters
from .metrics import Metrics

logger = logging.getLogger('tftpfetch.context.base')

class Context:
    """The base class of the contexts. A context lives for exactly one
    transfer and owns everything that transfer touches."""

    def __init__(self, host: str, port: int = DEF_TFTP_PORT, timeout: float = SOCK_TIMEOUT, **kwargs) -> None:
        """Constructor for the base context, setting shared instance
        variables.

        Args:
            host (str): Host address or name
            port (int): tftp port
            timeout (float): receive deadline in seconds

        kwargs:
            filename (str): Filename to receive
            options (dict): Options to request from the server
            packethook (func): function to receive a copy of each packet from the server
            localip (str): Address to bind the local endpoint to
            retries (int): consecutive timeouts tolerated before giving up
            transport (class): factory for the UDP endpoint, for testing
        """

        self.file_to_transfer = kwargs.get('filename', None)
        self.options = kwargs.get('options', None) or {}
        self.packethook = kwargs.get('packethook', None)
        self.localip = kwargs.get('localip', None)
        self.retries = kwargs.get('retries', None)
        if self.retries is None:
            self.retries = TIMEOUT_RETRIES
        self.mode = "octet"
        self.timeout = timeout
        self.host = host

        if port is None or port == 0:
            port = DEF_TFTP_PORT
        if not 0 < int(port) < 65536:
            raise ValueError("port must be between 1 and 65535")
        self.port = int(port)

        # Resolved when the transfer starts.
        self.address = None
        # The (address, port) the server answered from: the transfer identifier.
        self.tid = None
        self.transport = None
        self.state = None
        self.factory = PacketFactory()
        self.parameters = NegotiatedParameters()
        self.metrics = Metrics()
        # The last data block written, modulo 2**16. Zero until the first one.
        self.last_block = 0
        # Consecutive receive timeouts.
        self.timeouts = 0
        # The last packet we sent, if applicable, to make resending easy.
        self.last_pkt = None
        self.terminated = False

    def __str__(self) -> str:
        return f"{self.host}:{self.port} {self.state}"

    @property
    def peer(self) -> tuple:
        """Where packets go: the server's well known port until it has
        answered, its transfer port after that."""

        return self.tid or (self.address, self.port)

    def resolve(self) -> None:
        """Look up the server address.

        Raises:
            TftpException: the host name could not be resolved
        """

        try:
            self.address = socket.gethostbyname(self.host)
        except (OSError, UnicodeError) as err:
            raise TftpException(f"could not resolve host {self.host}: {err}",
                                outcome=Outcome.INTERNAL_ERROR)
        logger.debug(f"resolved {self.host} to {self.address}")

    def start(self) -> None:
        raise NotImplementedError

    def send(self, pkt: 'TftpPacket', peer: tuple = None, remember: bool = True) -> None:
        """Handles all the packet sending operations.

        Args:
            pkt (TftpPacket): any tftpfetch.packet.types packet
            peer (tuple, optional): destination, defaults to the transfer peer
            remember (bool, optional): keep the packet for retransmission
        """

        tftpassert(not self.terminated, "transfer already terminated")
        pkt.encode()
        self.transport.send_to(peer or self.peer, pkt.buffer)

        if remember:
            self.last_pkt = pkt

    def reject_stray(self, peer: tuple) -> None:
        """A datagram arrived from somewhere other than the transfer peer.
        Tell the sender it is not part of this transfer and carry on."""

        logger.warning(f"Received traffic from {peer[0]}:{peer[1]} but we're "
                       f"connected to {self.tid[0]}:{self.tid[1]}. Discarding.")
        self.metrics.strays += 1
        try:
            self.state.send_error(TftpErrors.UNKNOWNTID, peer=peer)
        except TftpException as err:
            logger.warning(f"could not reject {peer[0]}:{peer[1]}: {err}")

    def receive(self) -> tuple:
        """Wait for a datagram from the transfer peer. Datagrams from anyone
        else are rejected and do not extend the deadline.

        Raises:
            TftpTimeout: nothing arrived from the peer in time
            TftpException: the socket failed

        Returns:
            tuple: the datagram and the (address, port) it came from
        """

        deadline = time.monotonic() + self.timeout

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TftpTimeout("Timed-out waiting for traffic")

            result = self.transport.receive(remaining)
            if isinstance(result, Timeout):
                raise TftpTimeout("Timed-out waiting for traffic")
            elif not isinstance(result, Received):
                raise TftpException(f"receive failed: {result.message}",
                                    outcome=Outcome.INTERNAL_ERROR)

            if self.tid is None or result.peer == self.tid:
                return result

            self.reject_stray(result.peer)

    def cycle(self) -> None:
        """Here we wait for a response from the server after sending it
        something, and dispatch appropriate action to that response.

        Raises:
            TftpTimeout: if nothing arrived within the timeout period
            TftpException: the packet ended the transfer
        """

        buffer, peer = self.receive()

        if self.tid is None:
            self.tid = peer
            logger.info(f"Set remote port for session to {peer[1]}")

        # Any answer from the peer resets the retry count.
        self.timeouts = 0

        try:
            recvpkt = self.factory.parse(buffer)
        except TftpDecodeError as err:
            logger.error(f"could not decode packet from server: {err}")
            self.state.send_error(TftpErrors.ILLEGALTFTPOP)
            raise

        # If there is a packethook defined, call it. We unconditionally
        # pass all packets, it's up to the client to screen out different
        # kinds of packets. This way, the client is privy to things like
        # negotiated options.
        if self.packethook:
            self.packethook(recvpkt)

        # And handle it, possibly changing state.
        self.state = self.state.handle(recvpkt, peer)
        if self.state is None:
            self.terminated = True
