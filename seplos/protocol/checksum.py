''' the two checksums of the protocol: a 4 bit guard on the length field and a 16 bit sum over the frame body '''

MAX_LENGTH : int = 0x0FFF


def length_checksum(length : int) -> int:
    ''' LCHKSUM; nibble sum of the 12 bit LENID, two's complement, low nibble '''
    if not 0 <= length <= MAX_LENGTH:
        raise ValueError(f"length out of range: {length}")

    lenid_sum = (length & 0xF) + ((length >> 4) & 0xF) + ((length >> 8) & 0xF)
    return (~(lenid_sum & 0xFF) + 1) & 0xF


def length_field(length : int) -> int:
    ''' LCHKSUM in the top 4 bits, LENID in the bottom 12 '''
    return (length_checksum(length) << 12) | length


def split_length_field(value : int) -> tuple[int, int]:
    ''' returns (lchksum, lenid) '''
    return (value >> 12) & 0xF, value & MAX_LENGTH


def frame_checksum(data : bytes) -> int:
    '''
    CHKSUM; sum of the ascii characters modulo 65536, inverted plus one.
    covers VER through INFO as sent, not the decoded values
    '''
    ascii_sum = sum(data) & 0xFFFF
    return (~ascii_sum + 1) & 0xFFFF
