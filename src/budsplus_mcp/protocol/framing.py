"""Frame delimiting and assembly for the Buds+ serial protocol.

Frame layout::

    +-----+---------+--------+------------------+----------+-----+
    | SOM | Header  | Msg ID |       Data       | Checksum | EOM |
    | 1 B | 2 bytes | 1 byte | variable length  | 2 bytes  | 1 B |
    +-----+---------+--------+------------------+----------+-----+

- SOM / EOM: 0xFD / 0xDD
- Header: little-endian; low 10 bits = length of (msg id + data + checksum),
  bit 0x1000 = response, bit 0x2000 = fragmented
- Checksum: CRC-16/CCITT-XMODEM over (msg id + data), little-endian

There is no byte stuffing. After a bad frame the decoder resumes at the
next unconsumed byte, which may not land on a real frame boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Union

from ..utils.crc import crc16
from .errors import (
    FrameError,
    InvalidEndError,
    InvalidStartError,
    TruncatedError,
    UnsupportedFragmentationError,
)
from .registry import REGISTRY

logger = logging.getLogger(__name__)

SOM = REGISTRY.marker("SOM")
EOM = REGISTRY.marker("EOM")

HEADER_SIZE = 2
CHECKSUM_SIZE = 2
LENGTH_MASK = 0x03FF
FLAG_RESPONSE = 0x1000
FLAG_FRAGMENTED = 0x2000


@dataclass
class Frame:
    """A delimited protocol frame.

    ``payload`` holds the message id, data and trailing checksum exactly
    as received; the checksum is not verified here.
    """

    payload: bytes
    response: bool = False

    @property
    def message_id(self) -> int | None:
        return self.payload[0] if self.payload else None

    @property
    def body(self) -> bytes:
        """Message id and data, without the checksum."""
        return self.payload[:-CHECKSUM_SIZE]

    @property
    def data(self) -> bytes:
        return self.payload[1:-CHECKSUM_SIZE]

    @property
    def checksum(self) -> int | None:
        if len(self.payload) < CHECKSUM_SIZE:
            return None
        return int.from_bytes(self.payload[-CHECKSUM_SIZE:], "little")

    def __repr__(self) -> str:
        msg_id = "none" if self.message_id is None else f"0x{self.message_id:02X}"
        return (
            f"Frame(message_id={msg_id}, response={self.response}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def decode_next(buffer: bytes | memoryview) -> tuple[Frame, int]:
    """Delimit the frame at the start of ``buffer``.

    Returns:
        The frame and the number of bytes it occupied.

    Raises:
        InvalidStartError: First byte is not SOM (1 byte consumed).
        UnsupportedFragmentationError: Fragmented flag set (declared frame
            span consumed).
        TruncatedError: Declared payload runs past the buffer (whole
            buffer consumed).
        InvalidEndError: Byte after the payload is not EOM (declared frame
            span consumed).
    """
    if not buffer:
        raise TruncatedError("Empty buffer", consumed=0)

    if buffer[0] != SOM:
        logger.debug("Unknown SOM (%02X != %02X)", buffer[0], SOM)
        raise InvalidStartError(
            f"Unknown SOM (0x{buffer[0]:02X} != 0x{SOM:02X})", consumed=1
        )

    if len(buffer) < 1 + HEADER_SIZE:
        raise TruncatedError("Buffer ends inside the header", consumed=len(buffer))

    header = int.from_bytes(buffer[1 : 1 + HEADER_SIZE], "little")
    size = header & LENGTH_MASK
    start = 1 + HEADER_SIZE
    end = start + size
    span = min(end + 1, len(buffer))

    if header & FLAG_FRAGMENTED:
        logger.debug("Fragmented frames are unsupported (header 0x%04X)", header)
        raise UnsupportedFragmentationError(
            f"Fragmented frames are unsupported (header 0x{header:04X})",
            consumed=span,
        )

    response = bool(header & FLAG_RESPONSE)
    if response:
        logger.debug("Message is a response (header 0x%04X)", header)

    if end >= len(buffer):
        # The EOM byte has to fit as well
        available = len(buffer) - start
        logger.debug(
            "Truncated frame (%d payload bytes declared, %d available)",
            size, available,
        )
        raise TruncatedError(
            f"Frame declares {size} payload bytes plus EOM, "
            f"only {available} bytes left in buffer",
            consumed=len(buffer),
        )

    logger.debug("Extracting payload (%d bytes)", size)
    payload = bytes(buffer[start:end])

    if buffer[end] != EOM:
        logger.debug("Unknown EOM (%02X != %02X)", buffer[end], EOM)
        raise InvalidEndError(
            f"Unknown EOM (0x{buffer[end]:02X} != 0x{EOM:02X})", consumed=end + 1
        )

    return Frame(payload=payload, response=response), end + 1


def iter_frames(buffer: bytes | bytearray) -> Iterator[Union[Frame, FrameError]]:
    """Walk ``buffer`` frame by frame until it is exhausted.

    Yields each accepted :class:`Frame`, or the :class:`FrameError` that
    rejected a span of bytes. Scanning always resumes after the bytes the
    previous step consumed. ``buffer`` is viewed, not copied, as the
    scan advances.
    """
    view = memoryview(buffer)
    offset = 0
    while offset < len(view):
        try:
            frame, consumed = decode_next(view[offset:])
        except FrameError as e:
            yield e
            offset += max(e.consumed, 1)
            continue
        yield frame
        offset += consumed


def wrap_payload(payload: bytes) -> bytes:
    """Wrap a message id + data payload into a complete frame.

    Args:
        payload: Message id byte followed by the data bytes.

    Returns:
        ``SOM + header + payload + checksum + EOM``.
    """
    size = len(payload) + CHECKSUM_SIZE
    if size > LENGTH_MASK:
        raise ValueError(f"Payload too large for one frame ({len(payload)} bytes)")
    header = size.to_bytes(HEADER_SIZE, "little")
    checksum = crc16(payload).to_bytes(CHECKSUM_SIZE, "little")
    return bytes([SOM]) + header + payload + checksum + bytes([EOM])
