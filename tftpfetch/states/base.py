import logging

from typing import Tuple, Union

from tftpfetch.shared import TftpErrors, Outcome, BLOCK_MODULO
from tftpfetch.exceptions import TftpException, TftpFileNotFoundError
from tftpfetch.packet import types

logger = logging.getLogger('tftpfetch.states.base')

packet_types = Union[
    types.ReadRQ,
    types.Ack,
    types.OptionAck,
    types.Data,
    types.Error
]

class TftpState:
    """The base class for the states."""

    def __init__(self, context: 'tftpfetch.context.Download') -> None:
        """Constructor for setting up common instance variables. The state
        reaches the socket, the output file and the transfer parameters
        through its context."""

        self.context = context

    def __str__(self) -> str:
        return self.__class__.__name__

    def handle(self, pkt: packet_types, peer: Tuple[str, int]) -> 'TftpState':
        """An abstract method for handling a packet. It is expected to return
        a TftpState object, either itself or a new state, or None once the
        transfer is complete."""

        raise NotImplementedError

    def send_ack(self, blocknumber: int) -> None:
        """This method sends an ack packet for the block number specified.

        Args:
            blocknumber (int): Block number to acknowledge
        """

        logger.debug(f"Sending ack to block {blocknumber}")
        self.context.send(types.Ack(blocknumber))

    def send_error(self, errorcode: int, peer: Tuple[str, int] = None) -> None:
        """This method uses the errorcode to compose and send an error packet
        to the peer. An error is never retransmitted, so it does not replace
        the last packet.

        Args:
            errorcode (int): The error code to respond with. Details can be found in
                shared.TftpErrors
            peer (tuple, optional): Where to send it. Defaults to the transfer peer.
        """

        logger.debug(f"In send_error, being asked to send error {errorcode}")
        self.context.send(types.Error(errorcode), peer=peer, remember=False)

    def resend_last(self) -> None:
        """Resend the last sent packet due to a timeout. Until the server has
        replied this is the read request, sent to the well known port."""

        pkt = self.context.last_pkt
        logger.warning(f"Resending packet {pkt} on session {self.context}")
        self.context.metrics.resent_bytes += len(pkt.buffer)
        self.context.send(pkt)

    def illegal(self, message: str) -> None:
        """Tell the peer it broke the protocol and abort the transfer.

        Raises:
            TftpException: always, with an illegal operation outcome
        """

        logger.error(message)
        self.send_error(TftpErrors.ILLEGALTFTPOP)
        raise TftpException(message, outcome=Outcome.ILLEGAL_TFTP_OPERATION)

    def handle_err(self, pkt: types.Error) -> None:
        """The server gave up on the transfer. Map its error code to an
        outcome; nothing is sent back.

        Raises:
            TftpFileNotFoundError: the server does not have the file
            TftpException: any other error code
        """

        outcome = Outcome.from_error_code(pkt.errorcode)
        if pkt.errorcode == TftpErrors.NOTDEFINED:
            text = pkt.errmsg
        else:
            text = outcome.description
            if pkt.errmsg and pkt.errmsg.lower() != text.lower():
                text += f" ({pkt.errmsg})"

        message = f"transfer error: {text}"
        logger.error(f"Received ERR packet from server: {message}")

        if outcome == Outcome.FILE_NOT_FOUND:
            raise TftpFileNotFoundError(message)
        raise TftpException(message, outcome=outcome)

    def handle_dat(self, pkt: types.Data) -> Union['ExpectData', 'TftpState', None]:
        """This method handles a DAT packet during a download. The next block
        or a repeat of the last one is acknowledged before anything else
        happens to it, and only the next block is written. A block out of
        sequence is dropped and the last block written is acknowledged again,
        so the server resends from there.

        Args:
            pkt (types.Data): Data packet to handle

        Raises:
            TftpException: The output could not be written

        Returns:
            ExpectData: the next state, the current one for a block that was
            not written, or None if this was the final block
        """

        context = self.context
        expected = (context.last_block + 1) % BLOCK_MODULO
        logger.debug(f"Handling DAT packet - block {pkt.blocknumber}, expecting {expected}")

        if pkt.blocknumber not in (expected, context.last_block):
            logger.warning(f"Whoa! Received block {pkt.blocknumber} but expected {expected}. Discarding")
            context.metrics.add_out_of_order(pkt)
            self.send_ack(context.last_block)
            return self

        self.send_ack(pkt.blocknumber)

        if pkt.blocknumber == context.last_block:
            logger.warning(f"Dropping duplicate block {pkt.blocknumber}")
            context.metrics.add_dup(pkt)
            return self

        context.last_block = pkt.blocknumber
        if pkt.data:
            context.write(pkt.data)

        # Check for end-of-file, any less than full data packet.
        if len(pkt.buffer) < context.parameters.blksize + 4:
            logger.info("End of file detected")
            return None

        return ExpectData(context)


class ExpectData(TftpState):
    """Just sent an ACK packet. Waiting for DAT."""

    def handle(self, pkt: packet_types, peer: Tuple[str, int]) -> Union['ExpectData', None]:
        """Handle the packet in response to an ACK, which should be a DAT.

        Args:
            pkt (packet_types): Expected Data packet any other will raise a Error

        Raises:
            TftpException: Invalid packet type received or Error packet received

        Returns:
            ExpectData: Return next state class, either ExpectData or None if we received a short packet
        """

        if isinstance(pkt, types.Data):
            return self.handle_dat(pkt)

        elif isinstance(pkt, types.Error):
            self.handle_err(pkt)

        # Every other packet type is a problem, options included since they
        # were settled before the first block.
        self.illegal(f"Received unexpected packet from server while receiving data: {pkt}")
