# vim: ts=4 sw=4 et ai:
# -*- coding: utf8 -*-

"""This module holds all objects shared by all other modules in tftpfetch."""

import enum

from typing import NamedTuple

MIN_BLKSIZE = 8
DEF_BLKSIZE = 512
# RFC 2348 upper bound, also the largest payload fitting a UDP datagram.
MAX_BLKSIZE = 65464
REQ_BLKSIZE = MAX_BLKSIZE
SOCK_TIMEOUT = 1
TIMEOUT_RETRIES = 10
DEF_TFTP_PORT = 69
MAX_DATAGRAM = 65536
BLOCK_MODULO = 2 ** 16

def tftpassert(condition, msg):
    """This function is a simple utility that will check the condition
    passed for a false state. If it finds one, it throws an AssertionError
    with the message passed. This just makes the code throughout cleaner
    by refactoring."""
    if not condition:
        raise AssertionError(msg)

class TftpErrors:
    """This class is a convenience for defining the common tftp error codes,
    and making them more readable in the code."""
    NOTDEFINED = 0
    FILENOTFOUND = 1
    ACCESSVIOLATION = 2
    DISKFULL = 3
    ILLEGALTFTPOP = 4
    UNKNOWNTID = 5
    FILEALREADYEXISTS = 6
    NOSUCHUSER = 7

class Outcome(enum.IntEnum):
    """The result kind of a transfer, as reported to the caller."""
    SUCCESS = 0
    FILE_NOT_FOUND = 1
    ACCESS_VIOLATION = 2
    DISK_FULL = 3
    ILLEGAL_TFTP_OPERATION = 4
    UNKNOWN_TRANSFER_ID = 5
    FILE_ALREADY_EXISTS = 6
    NO_SUCH_USER = 7
    INTERNAL_ERROR = 8

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @classmethod
    def from_error_code(cls, code: int) -> 'Outcome':
        """Map an ERROR packet code to an outcome. Code 0 carries no meaning
        of its own and anything past 7 is not defined by RFC 1350, so both
        land on INTERNAL_ERROR."""

        if TftpErrors.FILENOTFOUND <= code <= TftpErrors.NOSUCHUSER:
            return cls(code)
        return cls.INTERNAL_ERROR

_DESCRIPTIONS = {
    Outcome.SUCCESS: "Success",
    Outcome.FILE_NOT_FOUND: "File Not Found",
    Outcome.ACCESS_VIOLATION: "Access Violation",
    Outcome.DISK_FULL: "Disk Full Or Allocation Exceeded",
    Outcome.ILLEGAL_TFTP_OPERATION: "Illegal Tftp Operation",
    Outcome.UNKNOWN_TRANSFER_ID: "Unknown Transfer Id",
    Outcome.FILE_ALREADY_EXISTS: "File Already Exists",
    Outcome.NO_SUCH_USER: "No Such User",
    Outcome.INTERNAL_ERROR: "Internal Error",
}

class Result(NamedTuple):
    """What a transfer hands back to its caller: an outcome and a human
    readable message (empty on success)."""
    outcome: Outcome
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.SUCCESS

    def __bool__(self) -> bool:
        return self.ok
