import logging

logger = logging.getLogger('tftpfetch.context.metrics.base')

class Metrics:
    """A class representing metrics of the transfer."""

    def __init__(self) -> None:
        # Bytes transferred
        self.bytes = 0
        # Bytes re-sent
        self.resent_bytes = 0
        # Duplicate packets received
        self.dupcount = 0
        self.dups = {}
        # Times
        self.start_time = 0
        self.end_time = 0
        self.duration = 0
        # Rates
        self.bps = 0
        self.kbps = 0
        # Packets discarded for coming from the wrong peer
        self.strays = 0
        self.__out_of_order = []

    def compute(self) -> None:
        """Compute transfer time

           Sets:
               duration: Time taken for the transfer
               bps: Speed in bits per second
               kbps: Speed in kbps
        """

        self.duration = self.end_time - self.start_time

        if self.duration <= 0:
            logger.debug("TftpMetrics.compute: duration too short to measure a rate")
            self.bps = self.kbps = 0
            return

        logger.debug(f"TftpMetrics.compute: duration is {self.duration}")
        self.bps = (self.bytes * 8.0) / self.duration
        self.kbps = self.bps / 1024.0
        logger.debug(f"TftpMetrics.compute: kbps is {self.kbps}")

    def add_dup(self, pkt: 'types.Data') -> None:
        """This method adds a dup for a packet to the metrics.

        Args:
            pkt (types.Data): Duplicate data packet
        """

        logger.debug(f"Recording a dup of {pkt}")
        s = str(pkt)

        self.dupcount += 1
        self.dups[s] = self.dups.get(s, 0) + 1

    @property
    def out_of_order(self) -> list:
        return self.__out_of_order

    def add_out_of_order(self, pkt: 'types.Data') -> None:
        logger.debug(f"Recording out of order {pkt}")
        self.__out_of_order.append(str(pkt))

    @property
    def ooocount(self) -> int:
        return len(self.__out_of_order)
