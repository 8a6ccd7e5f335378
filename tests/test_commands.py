"""Tests for the payload encoder and settings command builders."""

import pytest

from budsplus_mcp.protocol.commands import (
    build_ambient_volume,
    build_equalizer,
    build_extra_high_ambient,
    build_find_my_earbuds_start,
    build_find_my_earbuds_stop,
    build_lock_touchpad,
    build_mute_earbud,
    build_outside_double_tap,
    build_set_ambient_mode,
    build_set_touchpad_option,
    encode_frame,
    encode_payload,
    parse_command,
)
from budsplus_mcp.protocol.errors import UnknownMessageNameError
from budsplus_mcp.protocol.framing import decode_next
from budsplus_mcp.protocol.parser import decode_frame
from budsplus_mcp.utils.crc import verify_checksum


def _body(frame_bytes: bytes) -> bytes:
    frame, consumed = decode_next(frame_bytes)
    assert consumed == len(frame_bytes)
    assert verify_checksum(frame.payload)
    return frame.body


def test_encode_payload():
    assert encode_payload("EQUALIZER", [1]) == bytes([0x86, 0x01])


def test_encode_payload_passes_args_through():
    """No schema check: any bytes go out as given."""
    assert encode_payload("EQUALIZER", [0xFF, 0x00, 0x07]) == bytes(
        [0x86, 0xFF, 0x00, 0x07]
    )


def test_encode_payload_no_args():
    assert encode_payload("FIND_MY_EARBUDS_START") == bytes([0xA0])


def test_encode_payload_unknown_name():
    with pytest.raises(UnknownMessageNameError):
        encode_payload("NOT_A_MESSAGE", [1])


def test_unknown_name_is_value_error():
    with pytest.raises(ValueError):
        encode_frame("NOT_A_MESSAGE")


def test_encode_frame_header_length():
    frame = encode_frame("MUTE_EARBUD", [1, 0])
    # id + 2 data + 2 crc
    assert frame[1] == 5
    assert frame[2] == 0


def test_encode_frame_roundtrip():
    """Decoding an encoded frame recovers the name and the literal data."""
    data = bytes([2, 3])
    frame, _ = decode_next(encode_frame("SET_TOUCHPAD_OPTION", data))
    decoded = decode_frame(frame)
    assert decoded.message.name == "SET_TOUCHPAD_OPTION"
    assert decoded.decoded is False
    assert frame.data == data


def test_parse_command_with_values():
    assert parse_command("SET_TOUCHPAD_OPTION=2,3") == ("SET_TOUCHPAD_OPTION", b"\x02\x03")


def test_parse_command_without_values():
    assert parse_command("FIND_MY_EARBUDS_STOP") == ("FIND_MY_EARBUDS_STOP", b"")


def test_parse_command_whitespace():
    assert parse_command(" EQUALIZER = 4 ") == ("EQUALIZER", b"\x04")


def test_parse_command_rejects_bad_values():
    with pytest.raises(ValueError):
        parse_command("EQUALIZER=x")
    with pytest.raises(ValueError):
        parse_command("EQUALIZER=256")
    with pytest.raises(ValueError):
        parse_command("=1")


def test_build_set_ambient_mode():
    assert _body(build_set_ambient_mode(True)) == bytes([0x80, 0x01])
    assert _body(build_set_ambient_mode(False)) == bytes([0x80, 0x00])


def test_build_ambient_volume():
    assert _body(build_ambient_volume(3)) == bytes([0x84, 0x03])


def test_ambient_volume_bounds():
    with pytest.raises(ValueError):
        build_ambient_volume(4)
    with pytest.raises(ValueError):
        build_ambient_volume(-1)


def test_build_extra_high_ambient():
    assert _body(build_extra_high_ambient(True)) == bytes([0x96, 0x01])


def test_build_equalizer_by_name_and_code():
    assert _body(build_equalizer("TrebleBoost")) == bytes([0x86, 0x05])
    assert _body(build_equalizer(2)) == bytes([0x86, 0x02])


def test_build_equalizer_invalid():
    with pytest.raises(ValueError):
        build_equalizer("Loud")
    with pytest.raises(ValueError):
        build_equalizer(6)


def test_build_lock_touchpad():
    assert _body(build_lock_touchpad(True)) == bytes([0x90, 0x01])


def test_build_set_touchpad_option():
    assert _body(build_set_touchpad_option("VoiceCommand", 3)) == bytes([0x92, 0x01, 0x03])


def test_touchpad_option_invalid():
    with pytest.raises(ValueError):
        build_set_touchpad_option("Dance", 1)
    with pytest.raises(ValueError):
        build_set_touchpad_option(1, 9)


def test_build_outside_double_tap():
    assert _body(build_outside_double_tap(False)) == bytes([0x95, 0x00])


def test_outside_double_tap_command_string():
    """The key as the original tool documents it for --set."""
    name, args = parse_command("MSG_ID_OUTSIDE_DOUBLE_TAP=1")
    assert _body(encode_frame(name, args)) == bytes([0x95, 0x01])


def test_build_find_my_earbuds():
    assert _body(build_find_my_earbuds_start()) == bytes([0xA0])
    assert _body(build_find_my_earbuds_stop()) == bytes([0xA1])


def test_build_mute_earbud():
    assert _body(build_mute_earbud(True, False)) == bytes([0xA2, 0x01, 0x00])
