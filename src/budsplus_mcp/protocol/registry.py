"""Lookup tables for the Buds+ protocol.

All symbolic names the codec understands live in a single
:class:`MessageRegistry` built at import time (``REGISTRY``). Name-keyed
tables are grouped into :class:`Namespace` values; the firmware version
letters are kept as ordered :class:`Sequence` tables indexed by nibble
or byte arithmetic.

Reverse lookups return a tagged :class:`Known` or :class:`Unknown`
result so an unmatched code cannot be mistaken for a name.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Union


class Namespace(str, Enum):
    """Name-keyed lookup tables."""

    MESSAGE = "message"
    FRAME = "frame"
    EQUALIZER = "equalizer"
    TOUCHPAD = "touchpad"
    EARBUD_COLOR = "earbud_color"


class Sequence(str, Enum):
    """Ordered string tables used to synthesize firmware version strings."""

    SW_YEAR = "sw_year"
    SW_MONTH = "sw_month"
    SW_RELEASE = "sw_release"


@dataclass(frozen=True)
class Known:
    """A code that resolved to a registered name."""

    name: str
    code: int

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Unknown:
    """A code with no registered name; the raw value is preserved."""

    code: int

    def __str__(self) -> str:
        return str(self.code)


Resolved = Union[Known, Unknown]


# Message ids (payload byte 0)
MESSAGE_IDS: dict[str, int] = {
    "DEBUG_ALL_DATA": 0x26,
    "DEBUG_BUILD_INFO": 0x28,
    "DEBUG_SERIAL_NUMBER": 0x29,
    "DEBUG_SKU": 0x2D,
    "USAGE_REPORT": 0x42,
    "RESET": 0x50,
    "STATUS_UPDATED": 0x60,
    "EXTENDED_STATUS_UPDATED": 0x61,
    "VERSION_INFO": 0x63,
    "SET_AMBIENT_MODE": 0x80,
    "AMBIENT_MODE_UPDATED": 0x81,
    "AMBIENT_VOLUME": 0x84,
    "ADJUST_SOUND_SYNC": 0x85,
    "EQUALIZER": 0x86,
    "MANAGER_INFO": 0x88,
    "SET_SIDETONE": 0x8B,
    "LOCK_TOUCHPAD": 0x90,
    "TOUCH_UPDATED": 0x91,
    "SET_TOUCHPAD_OPTION": 0x92,
    "TOUCHPAD_OTHER_OPTION": 0x93,
    "MSG_ID_OUTSIDE_DOUBLE_TAP": 0x95,
    "EXTRA_HIGH_AMBIENT": 0x96,
    "FIND_MY_EARBUDS_START": 0xA0,
    "FIND_MY_EARBUDS_STOP": 0xA1,
    "MUTE_EARBUD": 0xA2,
    "MUTE_EARBUD_STATUS_UPDATED": 0xA3,
    "SELF_TEST": 0xAB,
    "FOTA_DEVICE_INFO_SW_VERSION": 0xB4,
    "FOTA_OPEN": 0xB8,
    "FOTA_CONTROL": 0xB9,
    "FOTA_DOWNLOAD_DATA": 0xBA,
    "FOTA_UPDATE": 0xBB,
}

# Frame delimiters
FRAME_MARKERS: dict[str, int] = {
    "SOM": 0xFD,
    "EOM": 0xDD,
}

EQUALIZER_MODES: dict[str, int] = {
    "Normal": 0,
    "BassBoost": 1,
    "Soft": 2,
    "Dynamic": 3,
    "Clear": 4,
    "TrebleBoost": 5,
}

TOUCHPAD_ACTIVITIES: dict[str, int] = {
    "VoiceCommand": 1,
    "AmbientSound": 2,
    "Volume": 3,
    "Spotify": 4,
}

# Device color ids as reported in EXTENDED_STATUS_UPDATED (16-bit)
EARBUD_COLORS: dict[str, int] = {
    "White": 0x0101,
    "Black": 0x0102,
    "Blue": 0x0103,
    "Red": 0x0104,
    "Pink": 0x0105,
    "DeepBlue": 0x0106,
    "ThomBrowne": 0x0107,
    "OlympicEdition": 0x0108,
    "AuraGlow": 0x0109,
}

SW_YEARS: tuple[str, ...] = tuple("OPQRSTUVWXYZ")
SW_MONTHS: tuple[str, ...] = tuple("ABCDEFGHIJKL")
# Release indicators 0-15 are printed as a hex digit; 16 and up index this table
SW_RELEASES: tuple[str, ...] = tuple("GHIJKLMNOPQRSTUVWXYZ")


class MessageRegistry:
    """Read-only set of protocol lookup tables.

    Args:
        namespaces: Name to code mapping for each :class:`Namespace`.
        sequences: Ordered strings for each :class:`Sequence`.
    """

    def __init__(
        self,
        namespaces: Mapping[Namespace, Mapping[str, int]],
        sequences: Mapping[Sequence, tuple[str, ...]],
    ) -> None:
        self._by_name = MappingProxyType({
            ns: MappingProxyType(dict(table)) for ns, table in namespaces.items()
        })
        self._by_code = MappingProxyType({
            ns: MappingProxyType({code: name for name, code in table.items()})
            for ns, table in namespaces.items()
        })
        self._sequences = MappingProxyType({
            seq: tuple(items) for seq, items in sequences.items()
        })

    def resolve_name(self, namespace: Namespace, code: int) -> Resolved:
        """Map a numeric code to its name, or wrap it as :class:`Unknown`."""
        name = self._by_code[namespace].get(code)
        if name is None:
            return Unknown(code)
        return Known(name, code)

    def resolve_code(self, namespace: Namespace, name: str) -> int | None:
        """Map a name to its numeric code, or ``None`` if unregistered."""
        return self._by_name[namespace].get(name)

    def sequence_item(self, sequence: Sequence, index: int) -> Resolved:
        items = self._sequences[sequence]
        if 0 <= index < len(items):
            return Known(items[index], index)
        return Unknown(index)

    def names(self, namespace: Namespace) -> Mapping[str, int]:
        """Read-only view of a namespace, for catalog listings."""
        return self._by_name[namespace]

    def marker(self, name: str) -> int:
        """Frame delimiter byte (``SOM`` or ``EOM``)."""
        return self._by_name[Namespace.FRAME][name]


REGISTRY = MessageRegistry(
    namespaces={
        Namespace.MESSAGE: MESSAGE_IDS,
        Namespace.FRAME: FRAME_MARKERS,
        Namespace.EQUALIZER: EQUALIZER_MODES,
        Namespace.TOUCHPAD: TOUCHPAD_ACTIVITIES,
        Namespace.EARBUD_COLOR: EARBUD_COLORS,
    },
    sequences={
        Sequence.SW_YEAR: SW_YEARS,
        Sequence.SW_MONTH: SW_MONTHS,
        Sequence.SW_RELEASE: SW_RELEASES,
    },
)
