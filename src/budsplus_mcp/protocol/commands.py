"""Payload encoder and settings command builders.

:func:`encode_payload` and :func:`encode_frame` pass argument bytes through
untouched: the caller owns their count, order and range. The ``build_*``
helpers wrap the settings the earbuds are known to accept and validate
their arguments first.
"""

from __future__ import annotations

from typing import Iterable

from .errors import UnknownMessageNameError
from .framing import wrap_payload
from .registry import REGISTRY, Namespace, Unknown


def encode_payload(name: str, args: Iterable[int] = ()) -> bytes:
    """Build ``[message id, *args]`` for a symbolic message name.

    Raises:
        UnknownMessageNameError: If ``name`` is not a registered message.
    """
    message_id = REGISTRY.resolve_code(Namespace.MESSAGE, name)
    if message_id is None:
        raise UnknownMessageNameError(name)
    return bytes([message_id]) + bytes(args)


def encode_frame(name: str, data: Iterable[int] = ()) -> bytes:
    """Build a complete frame for a symbolic message name."""
    return wrap_payload(encode_payload(name, data))


def parse_command(command: str) -> tuple[str, bytes]:
    """Split a ``KEY=V1,V2`` command string into name and argument bytes.

    ``FIND_MY_EARBUDS_START`` (no ``=``) yields empty arguments. Values are
    decimal and must fit in a byte.
    """
    name, _, values = command.strip().partition("=")
    name = name.strip()
    if not name:
        raise ValueError(f"Missing message name in {command!r}")

    args = []
    for value in values.split(","):
        value = value.strip()
        if not value:
            continue
        try:
            number = int(value, 10)
        except ValueError:
            raise ValueError(f"Argument {value!r} is not a number") from None
        if not 0 <= number <= 255:
            raise ValueError(f"Argument must be 0-255, got {number}")
        args.append(number)
    return name, bytes(args)


def _flag(value: bool) -> int:
    return 1 if value else 0


def build_set_ambient_mode(enabled: bool) -> bytes:
    return encode_frame("SET_AMBIENT_MODE", [_flag(enabled)])


def build_ambient_volume(level: int) -> bytes:
    """Set ambient sound volume.

    Args:
        level: 0 (low) to 3 (extra high).
    """
    if not 0 <= level <= 3:
        raise ValueError(f"Ambient volume must be 0-3, got {level}")
    return encode_frame("AMBIENT_VOLUME", [level])


def build_extra_high_ambient(enabled: bool) -> bytes:
    return encode_frame("EXTRA_HIGH_AMBIENT", [_flag(enabled)])


def build_equalizer(mode: int | str) -> bytes:
    """Select an equalizer preset by name (``"BassBoost"``) or code (0-5)."""
    if isinstance(mode, str):
        code = REGISTRY.resolve_code(Namespace.EQUALIZER, mode)
        if code is None:
            raise ValueError(
                f"Unknown equalizer mode {mode!r}. "
                f"Valid: {list(REGISTRY.names(Namespace.EQUALIZER))}"
            )
    else:
        code = mode
        if isinstance(REGISTRY.resolve_name(Namespace.EQUALIZER, code), Unknown):
            raise ValueError(f"Equalizer mode must be 0-5, got {mode}")
    return encode_frame("EQUALIZER", [code])


def build_lock_touchpad(locked: bool) -> bytes:
    return encode_frame("LOCK_TOUCHPAD", [_flag(locked)])


def build_set_touchpad_option(left: int | str, right: int | str) -> bytes:
    """Assign the long-press activity of each earbud.

    Args:
        left: Activity name (``"AmbientSound"``) or code for the left bud.
        right: Same for the right bud.
    """
    return encode_frame(
        "SET_TOUCHPAD_OPTION",
        [_touchpad_code(left), _touchpad_code(right)],
    )


def _touchpad_code(activity: int | str) -> int:
    activities = REGISTRY.names(Namespace.TOUCHPAD)
    if isinstance(activity, str):
        if activity not in activities:
            raise ValueError(
                f"Unknown touchpad activity {activity!r}. Valid: {list(activities)}"
            )
        return activities[activity]
    if activity not in activities.values():
        raise ValueError(f"Unknown touchpad activity code {activity}")
    return activity


def build_outside_double_tap(enabled: bool) -> bytes:
    return encode_frame("MSG_ID_OUTSIDE_DOUBLE_TAP", [_flag(enabled)])


def build_find_my_earbuds_start() -> bytes:
    return encode_frame("FIND_MY_EARBUDS_START")


def build_find_my_earbuds_stop() -> bytes:
    return encode_frame("FIND_MY_EARBUDS_STOP")


def build_mute_earbud(left: bool, right: bool) -> bytes:
    """Mute either earbud while the find-my-earbuds tone is playing."""
    return encode_frame("MUTE_EARBUD", [_flag(left), _flag(right)])
