"""Protocol layer: message registry, framing, CRC, command encoding, and payload decoding."""

from .framing import Frame, decode_next, iter_frames, wrap_payload
from .commands import encode_frame, encode_payload, parse_command
from .registry import REGISTRY, Known, Namespace, Unknown
