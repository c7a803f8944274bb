''' exceptions raised by the seplos transaction engine '''

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .protocol.codes import return_codes


class TransactionError(Exception):
    ''' base; a failed request/response exchange '''


class IoError(TransactionError):
    ''' write or read on the channel failed at the os / driver level '''


class ResponseTimeout(TransactionError):
    ''' no complete answer within the deadline '''


class FrameError(TransactionError):
    ''' base; frame can not be built or parsed '''


class InvalidHexDigit(FrameError):
    ''' non hex character where only hex is allowed '''


class LengthChecksumMismatch(FrameError):
    ''' LCHKSUM does not match LENID '''


class ChecksumMismatch(FrameError):
    ''' CHKSUM does not match the frame body '''


class MalformedFrame(FrameError):
    ''' bad SOI, bad EOI or wrong frame size '''


class TruncatedFrame(MalformedFrame):
    ''' fewer bytes than the header declares '''


class InvalidAddress(FrameError):
    ''' address outside 0-15 '''


class PayloadTooLarge(FrameError):
    ''' hex encoded info does not fit the 12 bit LENID '''


class CommandRejected(Exception):
    '''
    device answered with a non normal return code.
    only raised by helpers that need a NORMAL response to produce a value; execute hands the code back
    '''

    def __init__(self, message : str, status : "return_codes") -> None:
        super().__init__(message)
        self.status = status
