'''
frame builder and parser for the seplos 2.0 ascii protocol.

Frame layout, every field after SOI is ascii hex:

    SOI  VER  ADR  CID1  CID2  LENGTH  INFO       CHKSUM  EOI
    ~    2    2    2     2     4       0..4095    4       \\r

- CID1 is the device type, 0x46 for a battery
- CID2 is the command on requests and the return code on responses
- LENGTH holds LCHKSUM (4 bits) and LENID (12 bits), the number of INFO characters
- CHKSUM covers the characters from VER through INFO
'''

import logging
from typing import NamedTuple

from ..exceptions import (
    ChecksumMismatch,
    InvalidAddress,
    LengthChecksumMismatch,
    MalformedFrame,
    PayloadTooLarge,
    TruncatedFrame,
)
from .checksum import (
    MAX_LENGTH,
    frame_checksum,
    length_checksum,
    length_field,
    split_length_field,
)
from .hex_codec import decode_byte, decode_bytes, decode_u16, encode_byte, encode_bytes, encode_u16

_log = logging.getLogger(__name__)

SOI : bytes = b"\x7e" # aka b"~"
EOI : bytes = b"\x0d" # aka b"\r"

PROTOCOL_VERSION : int = 0x20
DEVICE_TYPE_BATTERY : int = 0x46
MAX_ADDRESS : int = 0x0F
MAX_INFO_LENGTH : int = MAX_LENGTH

FRAME_OVERHEAD : int = 18
''' SOI + VER + ADR + CID1 + CID2 + LENGTH + CHKSUM + EOI '''

HEADER_SIZE : int = FRAME_OVERHEAD
''' bytes read before the length of the rest is known '''

#offsets into a raw frame
_VER = 1
_ADR = 3
_CID1 = 5
_CID2 = 7
_LENGTH = 9
_INFO = 13


class frame(NamedTuple):
    version : int
    address : int
    device_type : int
    function : int
    ''' command on requests, return code on responses '''
    payload : bytes
    ''' decoded INFO bytes '''

    def __repr__(self) -> str:
        return (
            f"frame(version=0x{self.version:02X}, address={self.address}, "
            f"device_type=0x{self.device_type:02X}, function=0x{self.function:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def encode_frame(address : int, function : int, payload : bytes = b"",
                 version : int = PROTOCOL_VERSION, device_type : int = DEVICE_TYPE_BATTERY) -> bytes:
    ''' builds a complete frame, SOI through EOI '''
    if not 0 <= address <= MAX_ADDRESS:
        raise InvalidAddress(f"address must be 0-{MAX_ADDRESS}, got {address}")

    if 2 * len(payload) > MAX_INFO_LENGTH:
        raise PayloadTooLarge(f"info is {2 * len(payload)} hex characters, max is {MAX_INFO_LENGTH}")

    info = encode_bytes(payload)

    body = encode_byte(version)
    body += encode_byte(address)
    body += encode_byte(device_type)
    body += encode_byte(function)
    body += encode_u16(length_field(len(info)))
    body += info

    raw = SOI + body + encode_u16(frame_checksum(body)) + EOI
    _log.debug(f"encoded frame {raw!r}")
    return raw


def declared_info_length(header : bytes) -> int:
    '''
    LENID of a frame, from its first 13 bytes or more.
    validates LCHKSUM, nothing after the length field is looked at
    '''
    if len(header) < _INFO:
        raise TruncatedFrame(f"need {_INFO} bytes for the length field, got {len(header)}")

    lchksum, lenid = split_length_field(decode_u16(*header[_LENGTH:_INFO]))
    if length_checksum(lenid) != lchksum:
        raise LengthChecksumMismatch(
            f"length field {bytes(header[_LENGTH:_INFO])!r}: lchksum 0x{lchksum:X}, expected 0x{length_checksum(lenid):X}"
        )

    return lenid


def decode_frame(raw : bytes) -> frame:
    ''' parses and validates a complete frame; any failed check raises, nothing is corrected '''
    raw = bytes(raw)

    if not raw or raw[0:1] != SOI:
        raise MalformedFrame(f"frame does not start with SOI: {raw[0:1]!r}")

    if len(raw) < _INFO:
        raise TruncatedFrame(f"frame too short for a header: {len(raw)} bytes")

    version = decode_byte(*raw[_VER:_ADR])
    address = decode_byte(*raw[_ADR:_CID1])
    device_type = decode_byte(*raw[_CID1:_CID2])
    function = decode_byte(*raw[_CID2:_LENGTH])
    lenid = declared_info_length(raw)

    expected_size = FRAME_OVERHEAD + lenid
    if len(raw) < expected_size:
        raise TruncatedFrame(f"frame declares {expected_size} bytes, got {len(raw)}")
    if len(raw) > expected_size:
        raise MalformedFrame(f"frame declares {expected_size} bytes, got {len(raw)}")

    if lenid % 2:
        raise MalformedFrame(f"odd info length {lenid}, info is two characters per byte")

    chksum_at = _INFO + lenid
    payload = decode_bytes(raw[_INFO:chksum_at])
    received_chksum = decode_u16(*raw[chksum_at:chksum_at + 4])

    calc_chksum = frame_checksum(raw[_VER:chksum_at])
    if calc_chksum != received_chksum:
        raise ChecksumMismatch(f"checksum 0x{received_chksum:04X}, calculated 0x{calc_chksum:04X}")

    if raw[-1:] != EOI:
        raise MalformedFrame(f"frame does not end with EOI: {raw[-1:]!r}")

    return frame(version, address, device_type, function, payload)
