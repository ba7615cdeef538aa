import logging

from typing import Tuple, Union

from tftpfetch.packet import types
from tftpfetch.options import negotiate
from tftpfetch.states.base import TftpState, ExpectData, packet_types

logger = logging.getLogger('tftpfetch.states.request')

class SentReadRQ(TftpState):
    """Just sent an RRQ packet. The server answers with an OACK if it took up
    any of our options, or goes straight to the first DAT if it ignored
    them."""

    def __init__(self, context: 'tftpfetch.context.Download') -> None:
        super().__init__(context)
        self.negotiated = False

    def handle(self, pkt: packet_types, peer: Tuple[str, int]) -> Union[TftpState, ExpectData, None]:
        """Handle the packet in response to an RRQ to the server."""

        # Now check the packet type and dispatch it properly.
        if isinstance(pkt, types.OptionAck):
            logger.info("Received OACK from server")
            accepted = negotiate(self.context.parameters, pkt.options)
            logger.debug(f"accepted options {accepted}, now {self.context.parameters}")
            self.negotiated = True

            # Block zero acknowledges the options; the first DAT is still to come.
            logger.debug("Sending ACK to OACK")
            self.send_ack(0)
            return self

        elif isinstance(pkt, types.Data):
            if self.context.options and not self.negotiated:
                logger.info("Server ignored options, falling back to defaults")
            return self.handle_dat(pkt)

        elif isinstance(pkt, types.Error):
            self.handle_err(pkt)

        # Every other packet type is a problem.
        self.illegal(f"Received unexpected packet from server in reply to RRQ: {pkt}")
