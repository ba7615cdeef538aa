# vim: ts=4 sw=4 et ai:
# -*- coding: utf8 -*-
"""This module implements the TFTP Client functionality. Instantiate an
instance of the client and use its download method, or call fetch() for a
one-off download with the default settings. Logging is performed via the
standard python logging module."""

import logging

from typing import Callable,Union,TypeVar

from tftpfetch.shared import MIN_BLKSIZE,MAX_BLKSIZE,REQ_BLKSIZE,SOCK_TIMEOUT,TIMEOUT_RETRIES,DEF_TFTP_PORT,Result,tftpassert
from tftpfetch.context import Download
from tftpfetch.exceptions import TftpException

logger = logging.getLogger('tftpfetch.client')

file_object = TypeVar('file_object')

class TftpClient:
    """This class is an implementation of a tftp client. Once instantiated, a
    download can be initiated via the download() method."""

    def __init__(self, host:str, port:int =None, options:dict =None, localip:str =None) -> None:
        """Initialize the TFTP client class

        Args:
            host (str): The server for which you are connecting to
            port (int, optional): The server port. Defaults to 69.
            options (dict, optional): The TFTP options. Defaults to requesting
                a blksize of 65464. A truthy tsize asks the server for the file size.
            localip (str, optional): The source ip for all requests. Defaults to None.

        Raises:
            TftpException: Invalid block size request in the options
        """

        self.context = None
        self.host = host
        self.iport = port or DEF_TFTP_PORT
        self.localip = localip or ""

        options = dict(options) if options is not None else {'blksize': REQ_BLKSIZE}

        if 'blksize' in options:
            size = options['blksize']
            tftpassert(int == type(size), "blksize must be an int")

            if size < MIN_BLKSIZE or size > MAX_BLKSIZE:
                raise TftpException(f"Invalid blksize: {size}")

        if options.get('tsize'):
            # The client always offers zero, the server answers with the size.
            options['tsize'] = 0
        else:
            options.pop('tsize', None)

        self.options = options

    def download(self, filename:str, output:Union[file_object,str],
                 packethook:Callable[['tftpfetch.packet.types.Data'],None] =None,
                 timeout:float =SOCK_TIMEOUT, retries:int =TIMEOUT_RETRIES) -> Result:
        """This method initiates a tftp download from the configured remote
        host, requesting the filename passed. A packethook may be passed for the
        use of building a UI or to perform additional action on the received data.

        Args:
            filename (str): The name of the file to request from the server
            output (str): Where to save the file. Can be either a file-name/path
                            or a binary file-like object
            packethook (Callable, optional): A function to receive a copy of
                            each packet received. Defaults to None.
            timeout (float, optional): Receive deadline. Defaults to SOCK_TIMEOUT.
            retries (int, optional): Consecutive timeouts before giving up.
                            Defaults to TIMEOUT_RETRIES.

        Returns:
            Result: the outcome and a message; never raises for transfer failures
        """

        logger.debug("Creating download context with the following params:")
        logger.debug(f" host = {self.host}, port = {self.iport}, filename = {filename}")
        logger.debug(f" options = {self.options}, packethook = {packethook}, timeout = {timeout}")
        self.context = Download(self.host,
                                self.iport,
                                timeout,
                                output,
                                packethook = packethook,
                                options = self.options,
                                filename = filename,
                                localip = self.localip,
                                retries = retries)

        # Download happens here
        result = self.context.run()

        metrics = self.context.metrics

        if not result:
            logger.info(f"Download failed: {result.outcome.name}: {result.message}")
            return result

        logger.info("Download complete.")
        if metrics.duration <= 0:
            logger.info("Duration too short, rate undetermined")
        else:
            logger.info(f"Downloaded {metrics.bytes} bytes in {metrics.duration:.2f} seconds")
            logger.info(f"Average rate: {metrics.kbps:.2f} kbps")
        logger.info(f"{metrics.resent_bytes} bytes in resent data")
        logger.info(f"Received {metrics.dupcount} duplicate packets")

        return result

def fetch(host:str, remote_filename:str, destination_path:str) -> Result:
    """Download one file from a TFTP server on the standard port with the
    default options.

    Args:
        host (str): The server address or name
        remote_filename (str): The file to request
        destination_path (str): Where to write it, created or truncated

    Returns:
        Result: (outcome, message), unpackable as a tuple
    """

    return TftpClient(host).download(remote_filename, destination_path)
