"""Exceptions raised by the frame codec and payload decoder.

Frame-level errors carry ``consumed``: the number of buffer bytes the
decoder gave up on, so a read loop can step past the bad frame and keep
scanning.
"""

from __future__ import annotations


class ProtocolError(Exception):
    """Base class for every codec error."""


class FrameError(ProtocolError):
    """A frame could not be delimited."""

    def __init__(self, message: str, consumed: int) -> None:
        super().__init__(message)
        self.consumed = consumed


class InvalidStartError(FrameError):
    """First byte is not the start-of-message marker."""


class InvalidEndError(FrameError):
    """Byte after the declared payload is not the end-of-message marker."""


class TruncatedError(FrameError):
    """Header declares more payload than the buffer holds."""


class UnsupportedFragmentationError(FrameError):
    """Header has the fragmented flag set; reassembly is not implemented."""


class ChecksumMismatchError(ProtocolError):
    """Payload checksum does not match its contents."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"CRC failed (0x{expected:04X} != 0x{actual:04X})")
        self.expected = expected
        self.actual = actual


class UnknownMessageTypeError(ProtocolError):
    """Payload message id is not present in the registry."""

    def __init__(self, message_id: int) -> None:
        super().__init__(f"Unknown message type ({message_id})")
        self.message_id = message_id


class TruncatedPayloadError(ProtocolError):
    """Payload ended before a field its revision requires."""


class UnknownMessageNameError(ProtocolError, ValueError):
    """Symbolic message name has no registered id."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Bad message id: {name!r}")
        self.name = name
