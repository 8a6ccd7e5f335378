"""MCP server entry point for Galaxy Buds+.

Exposes status reads and settings commands as tools via the Model
Context Protocol using the official Python MCP SDK with stdio transport.
Each tool opens the RFCOMM channel, does its work and closes it again.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .models.status import DecodedStatus
from .protocol.commands import encode_frame, parse_command
from .protocol.parser import decode_buffer
from .protocol.registry import REGISTRY, Namespace
from .transport.rfcomm_connection import QUIET_TIMEOUT_S, RFCOMMConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "budsplus",
    instructions="MCP server for Samsung Galaxy Buds+ status and settings",
)


def _build_frame(command: str) -> bytes:
    """Turn ``KEY=V1,V2`` into frame bytes; raises ``ValueError``."""
    name, args = parse_command(command)
    return encode_frame(name, args)


def _exchange(
    address: str,
    frame: bytes | None,
    quiet_timeout: float,
) -> DecodedStatus:
    """Connect, optionally send one frame, then read and decode the burst."""
    with RFCOMMConnection(address) as conn:
        if frame is not None:
            conn.write(frame)
            logger.info("Message sent (%d bytes)", len(frame))
        data = conn.receive_all(quiet_timeout)
    return decode_buffer(data)


# ─── DEVICE TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def read_status(
    address: str,
    command: str | None = None,
    quiet_timeout: float = QUIET_TIMEOUT_S,
) -> dict[str, Any]:
    """Connect to the earbuds and decode everything they report.

    Args:
        address: Bluetooth MAC (AA:BB:CC:DD:EE:FF) or bound RFCOMM device path.
        command: Optional setting to send first, e.g. "EQUALIZER=1".
        quiet_timeout: Seconds of silence that end the read.
    """
    frame = None
    if command:
        try:
            frame = _build_frame(command)
        except ValueError as e:
            return {"error": str(e)}

    try:
        status = _exchange(address, frame, quiet_timeout)
    except ConnectionError as e:
        return {"error": str(e)}

    result = status.to_dict()
    result["address"] = address
    return result


@mcp.tool()
def send_command(address: str, command: str) -> dict[str, Any]:
    """Send a single settings command to the earbuds.

    Arguments are passed through unvalidated; see the commands resource
    for the known settings and their value ranges.

    Args:
        address: Bluetooth MAC or bound RFCOMM device path.
        command: "KEY" or "KEY=V1,V2", e.g. "SET_TOUCHPAD_OPTION=2,3".
    """
    try:
        frame = _build_frame(command)
    except ValueError as e:
        return {"error": str(e)}

    try:
        with RFCOMMConnection(address) as conn:
            conn.write(frame)
    except ConnectionError as e:
        return {"error": str(e)}

    return {"sent": True, "command": command, "frame": frame.hex(" ")}


# ─── OFFLINE TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def encode_command(command: str) -> dict[str, Any]:
    """Show the frame bytes a command would produce, without a device.

    Args:
        command: "KEY" or "KEY=V1,V2".
    """
    try:
        frame = _build_frame(command)
    except ValueError as e:
        return {"error": str(e)}
    return {"command": command, "frame": frame.hex(" "), "length": len(frame)}


@mcp.tool()
def decode_frames(hex_data: str) -> dict[str, Any]:
    """Decode a captured byte stream given as hex.

    Args:
        hex_data: Hex string; spaces, colons and commas are ignored.
    """
    cleaned = "".join(c for c in hex_data if c not in " :,\n\t")
    try:
        data = bytes.fromhex(cleaned)
    except ValueError as e:
        return {"error": f"Invalid hex data: {e}"}
    return decode_buffer(data).to_dict()


# ─── MCP RESOURCES ───────────────────────────────────────────────────

def _catalog(namespace: Namespace) -> list[dict[str, Any]]:
    return [
        {"name": name, "code": code}
        for name, code in sorted(REGISTRY.names(namespace).items(), key=lambda kv: kv[1])
    ]


@mcp.resource("budsplus://catalog/messages")
def resource_messages() -> str:
    """All message types with their ids."""
    return json.dumps({"messages": _catalog(Namespace.MESSAGE)})


@mcp.resource("budsplus://catalog/equalizer")
def resource_equalizer() -> str:
    """Equalizer presets accepted by EQUALIZER."""
    return json.dumps({"equalizer": _catalog(Namespace.EQUALIZER)})


@mcp.resource("budsplus://catalog/touchpad")
def resource_touchpad() -> str:
    """Touchpad long-press activities accepted by SET_TOUCHPAD_OPTION."""
    return json.dumps({"touchpad": _catalog(Namespace.TOUCHPAD)})


@mcp.resource("budsplus://catalog/colors")
def resource_colors() -> str:
    """Earbud color ids reported in extended status."""
    return json.dumps({"colors": _catalog(Namespace.EARBUD_COLOR)})


@mcp.resource("budsplus://catalog/commands")
def resource_commands() -> str:
    """Settings commands known to work, with value ranges."""
    return json.dumps({"commands": SETTINGS_COMMANDS})


SETTINGS_COMMANDS = [
    {"command": "SET_AMBIENT_MODE", "values": "0-1", "meaning": "Off, On"},
    {"command": "AMBIENT_VOLUME", "values": "0-3",
     "meaning": "Low, Medium, High, Extra high"},
    {"command": "EXTRA_HIGH_AMBIENT", "values": "0-1", "meaning": "Off, On"},
    {"command": "EQUALIZER", "values": "0-5",
     "meaning": "Normal, BassBoost, Soft, Dynamic, Clear, TrebleBoost"},
    {"command": "LOCK_TOUCHPAD", "values": "0-1", "meaning": "Off, On"},
    {"command": "SET_TOUCHPAD_OPTION", "values": "1-3,1-3",
     "meaning": "Voice command, Ambient sound, Volume down/up (left,right)"},
    {"command": "MSG_ID_OUTSIDE_DOUBLE_TAP", "values": "0-1", "meaning": "Off, On"},
    {"command": "FIND_MY_EARBUDS_START", "values": "", "meaning": ""},
    {"command": "FIND_MY_EARBUDS_STOP", "values": "", "meaning": ""},
    {"command": "MUTE_EARBUD", "values": "0-1,0-1", "meaning": "left, right"},
]


# ─── MCP PROMPTS ─────────────────────────────────────────────────────

@mcp.prompt()
def configure_buds(goal: str) -> str:
    """Guide the AI to adjust earbud settings for a listening situation.

    Args:
        goal: What the user wants, e.g. "hear traffic while jogging".
    """
    return f"""Adjust the Galaxy Buds+ settings for: {goal}

First call read_status to see the current battery, equalizer, ambient
sound and touchpad configuration.
Consider:
- Ambient sound on/off and its volume (AMBIENT_VOLUME, EXTRA_HIGH_AMBIENT)
- Equalizer preset (EQUALIZER)
- Touchpad lock and long-press options

Use send_command with values from the budsplus://catalog/commands resource,
then read_status again to confirm the change."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
