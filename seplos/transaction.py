'''
one request / response exchange with the bms.

transaction_engine keeps nothing between calls except its logger; the
channel belongs to the caller, who must not run two exchanges on the same
channel at once. Each of the two reads gets the full timeout.
'''

import logging
from enum import Enum
from typing import NamedTuple

from .exceptions import CommandRejected, IoError, MalformedFrame, ResponseTimeout, TransactionError
from .protocol.codes import commands, return_codes
from .protocol.frame_codec import (
    DEVICE_TYPE_BATTERY,
    HEADER_SIZE,
    PROTOCOL_VERSION,
    SOI,
    declared_info_length,
    decode_frame,
    encode_frame,
    frame,
)
from .transports.channel_base import channel_base

DEFAULT_TIMEOUT : float = 10
''' seconds, per read phase '''


class transaction_state(Enum):
    IDLE                = 0
    SENT                = 1
    AWAITING_HEADER     = 2
    AWAITING_PAYLOAD    = 3
    COMPLETE            = 4
    FAILED              = 5


class response(NamedTuple):
    status : int
    ''' CID2 of the reply; 0 is normal, see return_codes '''
    payload : bytes


class transaction:
    ''' state of a single exchange; lives for the duration of one execute call '''

    address : int
    function : int
    payload : bytes
    state : transaction_state = transaction_state.IDLE
    raw : bytearray

    def __init__(self, address : int, function : int, payload : bytes, log : logging.Logger):
        self.address = address
        self.function = function
        self.payload = payload
        self.raw = bytearray()
        self._log = log

    def to(self, state : transaction_state):
        self._log.debug(f"0x{self.function:02X}@{self.address}: {self.state.name} -> {state.name}")
        self.state = state


class transaction_engine:
    ''' builds the request, sends it, reads and validates the reply. no retries '''

    version : int = PROTOCOL_VERSION
    device_type : int = DEVICE_TYPE_BATTERY
    timeout : float = DEFAULT_TIMEOUT

    _log : logging.Logger = None

    def __init__(self, timeout : float = DEFAULT_TIMEOUT, device_type : int = DEVICE_TYPE_BATTERY,
                 version : int = PROTOCOL_VERSION, log : logging.Logger = None) -> None:
        self.timeout = timeout
        self.device_type = device_type
        self.version = version
        self._log = log if log else logging.getLogger(__name__)

    def execute(self, channel : channel_base, address : int, function : int,
                payload : bytes = b"", timeout : float = None) -> response:
        ''' returns (status, payload); a non zero status is the device's answer, not a failure '''
        reply = self.execute_frame(channel, address, function, payload, timeout)
        return response(reply.function, reply.payload)

    def execute_frame(self, channel : channel_base, address : int, function : int,
                      payload : bytes = b"", timeout : float = None) -> frame:
        ''' same exchange as execute, returning every decoded header field '''
        if timeout is None:
            timeout = self.timeout

        tx = transaction(address, function, bytes(payload), self._log)
        try:
            reply = self._run(tx, channel, timeout)
        except (TransactionError, ValueError) as err: #ValueError: function / version / device type out of range
            tx.to(transaction_state.FAILED)
            self._log.warning(f"command 0x{function:02X} to address {address} failed: {err.__class__.__name__}: {err}")
            raise

        tx.to(transaction_state.COMPLETE)

        if reply.function != return_codes.NORMAL.value:
            self._log.warning(f"command 0x{function:02X} to address {address} returned {return_codes.from_code(reply.function).name} (0x{reply.function:02X})")

        return reply

    def _run(self, tx : transaction, channel : channel_base, timeout : float) -> frame:
        # stale bytes from an earlier, timed out exchange would shift the header
        channel.flush()

        request = encode_frame(tx.address, tx.function, tx.payload, version=self.version, device_type=self.device_type)
        self._log.debug(f"send {request!r}")
        written = channel.write(request)
        if written != len(request):
            raise IoError(f"short write: {written} of {len(request)} bytes")
        tx.to(transaction_state.SENT)

        tx.to(transaction_state.AWAITING_HEADER)
        header = channel.read_exact_within(HEADER_SIZE, timeout)
        if len(header) < HEADER_SIZE:
            raise ResponseTimeout(f"got {len(header)} of {HEADER_SIZE} header bytes")
        tx.raw += header

        # the length field is only meaningful in a frame that starts at SOI
        if header[0:1] != SOI:
            raise MalformedFrame(f"reply does not start with SOI: {header[0:1]!r}")

        info_length = declared_info_length(header)
        tx.to(transaction_state.AWAITING_PAYLOAD)
        if info_length:
            rest = channel.read_exact_within(info_length, timeout)
            if len(rest) < info_length:
                raise ResponseTimeout(f"got {len(rest)} of {info_length} info bytes")
            tx.raw += rest

        self._log.debug(f"recv {bytes(tx.raw)!r}")
        return decode_frame(tx.raw)

    def get_protocol_version(self, channel : channel_base, address : int, pack : int = 0,
                             timeout : float = None) -> float:
        ''' protocol version from the VER field of the reply, ie. 0x20 -> 2.0 '''
        # the bms parses the address but ignores the pack number for this command
        reply = self.execute_frame(channel, address, commands.PROTOCOL_VER_GET.value, bytes([pack]), timeout)

        status = return_codes.from_code(reply.function)
        if status != return_codes.NORMAL:
            raise CommandRejected(f"protocol version query returned {status.name} (0x{reply.function:02X})", status)

        major = (reply.version >> 4) & 0xF
        minor = reply.version & 0xF
        return round(major + minor / 10, 1)
