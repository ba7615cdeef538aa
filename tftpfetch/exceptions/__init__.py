from .exceptions import TftpException,TftpDecodeError,TftpTimeout,TftpFileNotFoundError
