"""Payload decoding for device messages.

Only a few message types carry a field-level decoder. Every other type
present in the registry decodes to an empty field map with
``decoded=False``; ids missing from the registry are an error.

``EXTENDED_STATUS_UPDATED`` grows with each firmware revision. Its
layout is the ordered list of :class:`FieldStep` entries in
``EXTENDED_STATUS_STEPS``: a step runs when the payload revision reaches
its ``min_revision``, so supporting a newer revision means appending
steps.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ..models.status import DecodedStatus
from ..utils.crc import crc16, verify_checksum
from .errors import (
    ChecksumMismatchError,
    FrameError,
    ProtocolError,
    TruncatedPayloadError,
    UnknownMessageTypeError,
)
from .framing import Frame, iter_frames
from .registry import REGISTRY, Known, Namespace, Resolved, Sequence

logger = logging.getLogger(__name__)

FOTA_SW_VERSION_PREFIX = "FOTA_DEVICE_INFO_SW_VERSION-"


class PayloadReader:
    """Sequential cursor over payload bytes.

    Reading past the end raises :class:`TruncatedPayloadError` naming the
    field that was being read.
    """

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0

    def byte(self, name: str) -> int:
        if self._pos >= len(self._data):
            raise TruncatedPayloadError(
                f"Payload ends before '{name}' (offset {self._pos})"
            )
        value = self._data[self._pos]
        self._pos += 1
        return value

    def flag(self, name: str) -> bool:
        return self.byte(name) == 1

    def nibbles(self, name: str) -> tuple[int, int]:
        value = self.byte(name)
        return (value & 0xF0) >> 4, value & 0x0F

    def uint16(self, name: str) -> int:
        low = self.byte(name)
        return low | (self.byte(name) << 8)

    def skip(self, count: int, name: str) -> None:
        for _ in range(count):
            self.byte(name)

    def rest(self) -> bytes:
        data = self._data[self._pos:]
        self._pos = len(self._data)
        return data


@dataclass
class DecodedPayload:
    """Result of decoding one payload.

    ``decoded`` is ``False`` for registered message types that have no
    field decoder; their ``fields`` is always empty.
    """

    message: Known
    fields: dict[str, Any] = field(default_factory=dict)
    decoded: bool = True


@dataclass(frozen=True)
class FieldStep:
    """One revision-gated slice of a payload.

    Args:
        min_revision: Lowest revision that carries these fields.
        extract: Reads the fields from the cursor into a dict.
        skip_below: Bytes that occupy this position on older revisions
            and are read and discarded there.
    """

    min_revision: int
    extract: Callable[[PayloadReader], dict[str, Any]]
    skip_below: int = 0


# ─── EXTENDED_STATUS_UPDATED ──────────────────────────────────────────

def _status_base(reader: PayloadReader) -> dict[str, Any]:
    return {
        "ear_type": reader.byte("ear_type"),
        "battery_left": reader.byte("battery_left"),
        "battery_right": reader.byte("battery_right"),
        "coupled": reader.flag("coupled"),
        "primary_earbud": reader.byte("primary_earbud"),
    }


def _placement(reader: PayloadReader) -> dict[str, Any]:
    left, right = reader.nibbles("placement")
    return {
        "placement_left": left,
        "placement_right": right,
        "wearing_left": left == 1,
        "wearing_right": right == 1,
    }


def _battery_case(reader: PayloadReader) -> dict[str, Any]:
    return {"battery_case": reader.byte("battery_case")}


def _ambient(reader: PayloadReader) -> dict[str, Any]:
    return {
        "ambient_sound": reader.flag("ambient_sound"),
        "ambient_sound_volume": reader.byte("ambient_sound_volume"),
        "adjust_sound_sync": reader.flag("adjust_sound_sync"),
    }


def _equalizer(reader: PayloadReader) -> dict[str, Any]:
    code = reader.byte("equalizer_type")
    return {"equalizer_type": REGISTRY.resolve_name(Namespace.EQUALIZER, code)}


def _touchpad(reader: PayloadReader) -> dict[str, Any]:
    config = reader.flag("touchpad_config")
    left, right = reader.nibbles("touchpad_option")
    return {
        "touchpad_config": config,
        "touchpad_option_left": REGISTRY.resolve_name(Namespace.TOUCHPAD, left),
        "touchpad_option_right": REGISTRY.resolve_name(Namespace.TOUCHPAD, right),
    }


def _double_tap_and_color(reader: PayloadReader) -> dict[str, Any]:
    double_tap = reader.flag("outside_double_tap")
    color_left = reader.uint16("device_color")
    color_right = reader.uint16("device_color")
    # Mismatched buds report no color
    if color_left != color_right:
        color: Resolved | int = 0
    else:
        color = REGISTRY.resolve_name(Namespace.EARBUD_COLOR, color_left)
    return {"outside_double_tap": double_tap, "device_color": color}


def _side_tone(reader: PayloadReader) -> dict[str, Any]:
    return {"side_tone_status": reader.flag("side_tone_status")}


def _extra_high_ambient(reader: PayloadReader) -> dict[str, Any]:
    return {"extra_high_ambient": reader.flag("extra_high_ambient")}


EXTENDED_STATUS_STEPS: tuple[FieldStep, ...] = (
    FieldStep(0, _status_base),
    FieldStep(5, _placement, skip_below=1),
    FieldStep(3, _battery_case),
    FieldStep(4, _ambient),
    FieldStep(0, _equalizer),
    FieldStep(0, _touchpad),
    FieldStep(7, _double_tap_and_color),
    FieldStep(8, _side_tone),
    FieldStep(9, _extra_high_ambient),
)


def apply_steps(
    reader: PayloadReader, revision: int, steps: tuple[FieldStep, ...]
) -> dict[str, Any]:
    """Run the steps a payload of ``revision`` carries, in wire order."""
    fields: dict[str, Any] = {}
    for step in steps:
        if revision >= step.min_revision:
            fields.update(step.extract(reader))
        elif step.skip_below:
            reader.skip(step.skip_below, f"reserved (revision < {step.min_revision})")
    return fields


def parse_extended_status(data: bytes) -> dict[str, Any]:
    reader = PayloadReader(data)
    revision = reader.byte("revision")
    fields = {"revision": revision}
    fields.update(apply_steps(reader, revision, EXTENDED_STATUS_STEPS))
    return fields


# ─── VERSION_INFO ─────────────────────────────────────────────────────

def _hw_version(value: int) -> str:
    return f"rev{(value & 0xF0) >> 4:X}.{value & 0x0F:X}"


def _letter(resolved: Resolved) -> str:
    return resolved.name if isinstance(resolved, Known) else "?"


def _sw_version(reader: PayloadReader, side: str) -> str:
    """Synthesize e.g. ``R175XXU0ATF2`` from region, date and release bytes."""
    region = "E" if reader.byte(f"{side}_sw_region") == 0 else "U"
    year, month = reader.nibbles(f"{side}_sw_date")
    release = reader.byte(f"{side}_sw_release")
    if release <= 15:
        release_str = f"{release:X}"
    else:
        release_str = _letter(REGISTRY.sequence_item(Sequence.SW_RELEASE, release - 16))
    return (
        f"R175XX{region}0A"
        f"{_letter(REGISTRY.sequence_item(Sequence.SW_YEAR, year))}"
        f"{_letter(REGISTRY.sequence_item(Sequence.SW_MONTH, month))}"
        f"{release_str}"
    )


def parse_version_info(data: bytes) -> dict[str, Any]:
    reader = PayloadReader(data)
    fields = {
        "left_hw_version": _hw_version(reader.byte("left_hw_version")),
        "right_hw_version": _hw_version(reader.byte("right_hw_version")),
    }
    fields["left_sw_version"] = _sw_version(reader, "left")
    fields["right_sw_version"] = _sw_version(reader, "right")
    fields["left_touch_fw_version"] = f"{reader.byte('left_touch_fw_version'):x}"
    fields["right_touch_fw_version"] = f"{reader.byte('right_touch_fw_version'):x}"
    return fields


# ─── FOTA_DEVICE_INFO_SW_VERSION ──────────────────────────────────────

def parse_fota_sw_version(data: bytes) -> dict[str, Any]:
    """Key is the prefix plus a one-character sub-id; value stays raw."""
    reader = PayloadReader(data)
    sub_id = reader.byte("fota_sub_id")
    return {f"{FOTA_SW_VERSION_PREFIX}{chr(sub_id)}": reader.rest()}


PAYLOAD_DECODERS: dict[str, Callable[[bytes], dict[str, Any]]] = {
    "EXTENDED_STATUS_UPDATED": parse_extended_status,
    "VERSION_INFO": parse_version_info,
    "FOTA_DEVICE_INFO_SW_VERSION": parse_fota_sw_version,
}


def decode_payload(payload: bytes) -> DecodedPayload:
    """Decode a checksum-stripped payload (message id + data).

    Raises:
        UnknownMessageTypeError: The message id is not registered.
        TruncatedPayloadError: The payload is shorter than its type and
            revision require. No fields are returned in that case.
    """
    if not payload:
        raise TruncatedPayloadError("Payload has no message id")

    message = REGISTRY.resolve_name(Namespace.MESSAGE, payload[0])
    if not isinstance(message, Known):
        logger.debug("Unknown message type (%d)", payload[0])
        raise UnknownMessageTypeError(payload[0])

    decoder = PAYLOAD_DECODERS.get(message.name)
    if decoder is None:
        logger.debug("Message id=%d, type=%s (not decoded)", message.code, message.name)
        return DecodedPayload(message=message, decoded=False)

    fields = decoder(payload[1:])
    logger.debug("Message id=%d, type=%s", message.code, message.name)
    return DecodedPayload(message=message, fields=fields)


def decode_frame(frame: Frame) -> DecodedPayload:
    """Verify a frame's checksum and decode its payload.

    Raises:
        ChecksumMismatchError: The stored checksum does not match.
        UnknownMessageTypeError, TruncatedPayloadError: See
            :func:`decode_payload`.
    """
    expected = frame.checksum
    if expected is None:
        raise TruncatedPayloadError("Payload too short to carry a checksum")
    if not verify_checksum(frame.payload):
        actual = crc16(frame.body)
        logger.debug("CRC Failed (0x%04X != 0x%04X)", expected, actual)
        raise ChecksumMismatchError(expected, actual)
    logger.debug("CRC Succeeded (0x%04X)", expected)
    return decode_payload(frame.body)


def decode_buffer(buffer: bytes, status: DecodedStatus | None = None) -> DecodedStatus:
    """Decode every frame in ``buffer`` into an accumulating status.

    Bad frames never abort the scan: they are logged, recorded in
    ``status.errors`` and skipped.
    """
    if status is None:
        status = DecodedStatus()

    logger.debug("Data dump: %s", bytes(buffer).hex(","))
    for item in iter_frames(buffer):
        if isinstance(item, FrameError):
            status.errors.append(f"{type(item).__name__}: {item}")
            continue
        try:
            decoded = decode_frame(item)
        except ProtocolError as e:
            status.errors.append(f"{type(e).__name__}: {e}")
            continue

        status.frames += 1
        status.messages.append(decoded.message.name)
        if not decoded.decoded:
            status.undecoded.append(decoded.message.name)
        status.merge(decoded.fields)

    return status
