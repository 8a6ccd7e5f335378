"""CRC-16/CCITT-XMODEM used to protect every frame payload.

Parameters: polynomial 0x1021, initial value 0x0000, no input or output
reflection, no final XOR. The checksum covers the message id and data
bytes and is transmitted little-endian right after them.
"""

from __future__ import annotations

POLYNOMIAL = 0x1021
INITIAL_VALUE = 0x0000


def _build_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ POLYNOMIAL) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_table()


def crc16(data: bytes) -> int:
    """Compute the CRC-16/CCITT-XMODEM checksum of ``data``."""
    crc = INITIAL_VALUE
    for byte in data:
        crc = ((crc << 8) & 0xFFFF) ^ _CRC_TABLE[((crc >> 8) ^ byte) & 0xFF]
    return crc


def verify_checksum(payload: bytes) -> bool:
    """Check a payload whose last two bytes are its little-endian CRC.

    Returns ``False`` for payloads too short to carry a checksum.
    """
    if len(payload) < 2:
        return False
    expected = int.from_bytes(payload[-2:], "little")
    return crc16(payload[:-2]) == expected
