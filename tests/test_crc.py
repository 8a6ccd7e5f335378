"""Tests for CRC-16/CCITT-XMODEM calculation."""

from budsplus_mcp.utils.crc import crc16, verify_checksum


def test_crc16_empty():
    """CRC of empty data is the initial value (no final XOR)."""
    assert crc16(b"") == 0x0000


def test_crc16_check_value():
    """Standard check string for CRC-16/XMODEM."""
    assert crc16(b"123456789") == 0x31C3


def test_crc16_deterministic():
    data = b"\x61\x09\x01\x50\x46"
    assert crc16(data) == crc16(data)


def test_crc16_accepts_bytearray():
    assert crc16(bytearray(b"123456789")) == 0x31C3


def test_verify_checksum_valid():
    body = b"\x63\x12\x13"
    payload = body + crc16(body).to_bytes(2, "little")
    assert verify_checksum(payload)


def test_verify_checksum_rejects_big_endian_crc():
    body = b"123456789"
    payload = body + crc16(body).to_bytes(2, "big")
    assert not verify_checksum(payload)


def test_verify_checksum_single_bit_flips():
    """Every single-bit flip in the body must be detected."""
    body = bytes([0x61, 0x09, 0x01, 0x50, 0x46, 0x01, 0x00, 0x11])
    payload = body + crc16(body).to_bytes(2, "little")
    for index in range(len(body)):
        for bit in range(8):
            corrupt = bytearray(payload)
            corrupt[index] ^= 1 << bit
            assert not verify_checksum(bytes(corrupt)), (index, bit)


def test_verify_checksum_too_short():
    assert not verify_checksum(b"")
    assert not verify_checksum(b"\x00")
