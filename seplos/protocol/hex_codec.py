''' ascii hex helpers; every header field and the info field are sent as uppercase hex characters '''

from ..exceptions import InvalidHexDigit

HEX_DIGITS : bytes = b"0123456789ABCDEF"


def encode_byte(value : int) -> bytes:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"byte out of range: {value}")

    return bytes((HEX_DIGITS[(value >> 4) & 0xF], HEX_DIGITS[value & 0xF]))


def encode_u16(value : int) -> bytes:
    ''' big endian, most significant nibble first '''
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"u16 out of range: {value}")

    return encode_byte(value >> 8) + encode_byte(value & 0xFF)


def encode_bytes(data : bytes) -> bytes:
    return b"".join(encode_byte(b) for b in data)


def decode_nibble(c : int) -> int:
    ''' c is a single character, as int (element of bytes) or 1 char str / bytes '''
    if isinstance(c, (str, bytes, bytearray)):
        if len(c) != 1:
            raise InvalidHexDigit(f"expected a single hex character, got {c!r}")
        c = ord(c)

    if 0x30 <= c <= 0x39: # 0-9
        return c - 0x30
    if 0x41 <= c <= 0x46: # A-F
        return c - 0x41 + 10
    if 0x61 <= c <= 0x66: # a-f
        return c - 0x61 + 10

    raise InvalidHexDigit(f"non hexadecimal character {chr(c)!r} (0x{c:02X})")


def decode_byte(c0 : int, c1 : int) -> int:
    return (decode_nibble(c0) << 4) | decode_nibble(c1)


def decode_u16(c0 : int, c1 : int, c2 : int, c3 : int) -> int:
    return (decode_nibble(c0) << 12) | (decode_nibble(c1) << 8) | (decode_nibble(c2) << 4) | decode_nibble(c3)


def decode_bytes(chars : bytes) -> bytes:
    ''' hex characters to raw bytes; odd length is not a valid hex string '''
    if len(chars) % 2:
        raise InvalidHexDigit(f"odd number of hex characters: {len(chars)}")

    return bytes(decode_byte(chars[i], chars[i + 1]) for i in range(0, len(chars), 2))
