import logging
import os
import sys
import time
from unittest.mock import MagicMock

import pytest

#move up a folder for tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fake_channel import fake_channel, silent_channel

from seplos.exceptions import (
    ChecksumMismatch,
    CommandRejected,
    IoError,
    LengthChecksumMismatch,
    MalformedFrame,
    ResponseTimeout,
)
from seplos.protocol.codes import commands, return_codes
from seplos.protocol.frame_codec import decode_frame, encode_frame
from seplos.transaction import response, transaction_engine, transaction_state


def reply_with(status : int, payload : bytes = b"", version : int = 0x20):
    ''' responder answering every request from its own address '''
    def responder(request : bytes) -> bytes:
        req = decode_frame(request)
        return encode_frame(req.address, status, payload, version=version)
    return responder


def test_execute_normal_response():
    channel = fake_channel(reply_with(0x00, b"\x01\x02\x03"))
    result = transaction_engine(timeout=1).execute(channel, 1, commands.TELEMETRY_GET.value, b"\x01")

    assert result == response(0x00, b"\x01\x02\x03")
    status, payload = result
    assert status == 0 and payload == b"\x01\x02\x03"

    assert channel.flushes == 1
    assert channel.writes == [encode_frame(1, 0x42, b"\x01")]
    # header region, then the info characters
    assert channel.reads == [(18, 1), (6, 1)]


def test_execute_empty_info_reads_header_only():
    channel = fake_channel(reply_with(0x00))
    assert transaction_engine().execute(channel, 0, 0x4F) == (0, b"")
    assert [size for size, _ in channel.reads] == [18]


def test_execute_non_zero_status_is_returned(caplog):
    channel = fake_channel(reply_with(return_codes.PERMISSION_ERROR.value))
    with caplog.at_level(logging.WARNING):
        status, payload = transaction_engine().execute(channel, 0, commands.TELEREGULATION_SET.value, b"\x00")

    assert return_codes.from_code(status) == return_codes.PERMISSION_ERROR
    assert payload == b""
    assert "PERMISSION_ERROR" in caplog.text


def test_execute_frame_returns_header_fields():
    channel = fake_channel(reply_with(0x00, b"\xaa", version=0x21))
    reply = transaction_engine().execute_frame(channel, 3, 0x51)
    assert reply.version == 0x21
    assert reply.address == 3
    assert reply.device_type == 0x46
    assert reply.payload == b"\xaa"


def test_flush_discards_stale_bytes():
    channel = fake_channel(reply_with(0x00))
    channel.buffer += b"~20004600E00200F"
    assert transaction_engine().execute(channel, 0, 0x4F) == (0, b"")


def test_short_write_is_io_error():
    channel = fake_channel(reply_with(0x00))
    channel.write = MagicMock(return_value=5)
    with pytest.raises(IoError):
        transaction_engine().execute(channel, 0, 0x4F)


def test_write_failure_propagates():
    channel = fake_channel()
    channel.write = MagicMock(side_effect=IoError("cable"))
    with pytest.raises(IoError):
        transaction_engine().execute(channel, 0, 0x4F)


def test_no_reply_is_timeout():
    channel = fake_channel()
    with pytest.raises(ResponseTimeout):
        transaction_engine().execute(channel, 0, 0x4F)


def test_truncated_reply_is_timeout():
    # one byte short of a complete frame
    channel = fake_channel(lambda request: encode_frame(0, 0x00)[:17])
    with pytest.raises(ResponseTimeout):
        transaction_engine().execute(channel, 0, 0x4F)

    channel = fake_channel(lambda request: encode_frame(0, 0x00, b"\x01\x02")[:-1])
    with pytest.raises(ResponseTimeout):
        transaction_engine().execute(channel, 0, 0x4F)


def test_length_checksum_checked_before_info_read():
    def responder(request):
        raw = bytearray(encode_frame(0, 0x00, b"\x01\x02"))
        raw[9] = ord("0")
        return bytes(raw)

    channel = fake_channel(responder)
    with pytest.raises(LengthChecksumMismatch):
        transaction_engine().execute(channel, 0, 0x42)
    assert len(channel.reads) == 1


def test_corrupt_reply_is_checksum_mismatch():
    def responder(request):
        raw = bytearray(encode_frame(0, 0x00, b"\x01"))
        raw[14] = ord("2")
        return bytes(raw)

    with pytest.raises(ChecksumMismatch):
        transaction_engine().execute(fake_channel(responder), 0, 0x42)


def test_state_transitions(caplog):
    with caplog.at_level(logging.DEBUG, logger="seplos.transaction"):
        transaction_engine().execute(fake_channel(reply_with(0x00, b"\x01")), 0, 0x42)

    order = [state.name for state in (transaction_state.SENT, transaction_state.AWAITING_HEADER,
                                      transaction_state.AWAITING_PAYLOAD, transaction_state.COMPLETE)]
    positions = [caplog.text.find("-> " + name) for name in order]
    assert all(p >= 0 for p in positions)
    assert positions == sorted(positions)


def test_failed_state_logged(caplog):
    with caplog.at_level(logging.DEBUG, logger="seplos.transaction"):
        with pytest.raises(ResponseTimeout):
            transaction_engine().execute(fake_channel(), 0, 0x42)
    assert "-> FAILED" in caplog.text


def test_timeout_twice_bounded_by_deadline():
    channel = silent_channel()
    engine = transaction_engine(timeout=0.2)

    for _ in range(2):
        start = time.monotonic()
        with pytest.raises(ResponseTimeout):
            engine.execute(channel, 0, 0x4F)
        assert time.monotonic() - start < 1.5

    assert channel.flushes == 2


def test_get_protocol_version():
    channel = fake_channel(reply_with(0x00, version=0x21))
    assert transaction_engine().get_protocol_version(channel, 0) == 2.1
    assert decode_frame(channel.writes[0]).payload == b"\x00"
    assert decode_frame(channel.writes[0]).function == 0x4F


def test_get_protocol_version_uses_version_field_not_payload():
    channel = fake_channel(reply_with(0x00, b"\x99", version=0x20))
    assert transaction_engine().get_protocol_version(channel, 0, pack=2) == 2.0
    assert decode_frame(channel.writes[0]).payload == b"\x02"


def test_get_protocol_version_rejected():
    channel = fake_channel(reply_with(return_codes.VERSION_ERROR.value))
    with pytest.raises(CommandRejected) as err:
        transaction_engine().get_protocol_version(channel, 0)
    assert err.value.status == return_codes.VERSION_ERROR


def test_return_codes_unknown():
    assert return_codes.from_code(0x55) == return_codes.UNKNOWN_ERROR
    assert return_codes.from_code(0xE3) == return_codes.DEVICE_FAULT


def test_bad_start_byte_is_malformed_without_info_read():
    def responder(request):
        raw = bytearray(encode_frame(0, 0x00, bytes(100)))
        raw[0] = ord("X")
        return bytes(raw)

    channel = fake_channel(responder)
    with pytest.raises(MalformedFrame):
        transaction_engine(timeout=0.1).execute(channel, 0, 0x42)
    assert channel.reads == [(18, 0.1)]


def test_function_out_of_range_is_logged_as_failed(caplog):
    channel = fake_channel(reply_with(0x00))
    with caplog.at_level(logging.DEBUG, logger="seplos.transaction"):
        with pytest.raises(ValueError):
            transaction_engine().execute(channel, 0, 0x100)
    assert "-> FAILED" in caplog.text
    assert channel.writes == []
