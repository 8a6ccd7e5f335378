"""Shared helpers."""

from .crc import crc16, verify_checksum
