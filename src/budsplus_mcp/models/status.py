"""Accumulated device status for one connect/read cycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..protocol.registry import Known, Unknown


@dataclass
class DecodedStatus:
    """Field map built up from successive frame decodes.

    A later message writing an existing field name overwrites it. Frames
    that were rejected along the way are kept in ``errors`` as strings.
    """

    fields: dict[str, Any] = field(default_factory=dict)
    frames: int = 0
    messages: list[str] = field(default_factory=list)
    undecoded: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def merge(self, fields: dict[str, Any]) -> None:
        self.fields.update(fields)

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: str) -> bool:
        return name in self.fields

    def to_dict(self) -> dict:
        return {
            "fields": {
                name: _plain(value) for name, value in sorted(self.fields.items())
            },
            "frames": self.frames,
            "messages": list(self.messages),
            "undecoded": list(self.undecoded),
            "errors": list(self.errors),
        }


def _plain(value: Any) -> Any:
    """Render lookup results and raw bytes as JSON-safe values."""
    if isinstance(value, Known):
        return value.name
    if isinstance(value, Unknown):
        return value.code
    if isinstance(value, bytes):
        return value.decode("ascii", errors="replace")
    return value
