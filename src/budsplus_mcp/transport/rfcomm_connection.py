"""Bluetooth RFCOMM connection to Galaxy Buds+.

Supports a native ``AF_BLUETOOTH`` socket (preferred, addressed by MAC)
and ``pyserial`` for an RFCOMM channel already bound to a device node
such as ``/dev/rfcomm0``. The earbuds serve the protocol on channel 1.
"""

from __future__ import annotations

import logging
import re
import socket
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

RFCOMM_CHANNEL = 1
QUIET_TIMEOUT_S = 2.0
READ_CHUNK_SIZE = 1024

_MAC_RE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")


@dataclass
class ConnectionInfo:
    """Where the connection points and which backend carries it."""

    address: str
    channel: int = RFCOMM_CHANNEL
    backend: str = ""


class RFCOMMConnection:
    """Manages the RFCOMM byte stream to the earbuds.

    Usage::

        conn = RFCOMMConnection("AA:BB:CC:DD:EE:FF")
        conn.open()
        conn.write(frame_bytes)
        data = conn.receive_all()
        conn.close()
    """

    def __init__(self, address: str, channel: int = RFCOMM_CHANNEL) -> None:
        self._address = address
        self._channel = channel
        self._sock = None
        self._serial = None
        self._backend: str = ""
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def info(self) -> ConnectionInfo:
        return ConnectionInfo(
            address=self._address, channel=self._channel, backend=self._backend
        )

    def __enter__(self) -> RFCOMMConnection:
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def open(self) -> ConnectionInfo:
        """Connect, using a socket for MAC addresses and pyserial otherwise.

        There is no fallback between the two. Opening an already open
        connection keeps the current channel.

        Raises:
            ConnectionError: If the channel cannot be opened.
        """
        if self._connected:
            return self.info

        try:
            if _MAC_RE.match(self._address):
                self._open_socket()
            else:
                self._open_serial()
        except ConnectionError:
            raise
        except Exception as e:
            raise ConnectionError(
                f"Could not connect to {self._address} "
                f"(channel {self._channel}): {e}"
            ) from e

        self._connected = True
        logger.info("Connected to %s via %s", self._address, self._backend)
        return self.info

    def _open_socket(self) -> None:
        if not hasattr(socket, "AF_BLUETOOTH"):
            raise ConnectionError(
                "Bluetooth sockets are not available on this platform; "
                "bind the channel to a serial device and pass its path instead"
            )
        sock = socket.socket(
            socket.AF_BLUETOOTH, socket.SOCK_STREAM, socket.BTPROTO_RFCOMM
        )
        try:
            sock.connect((self._address, self._channel))
        except OSError:
            sock.close()
            raise
        self._sock = sock
        self._backend = "socket"

    def _open_serial(self) -> None:
        import serial

        self._serial = serial.Serial(self._address, timeout=QUIET_TIMEOUT_S)
        self._backend = "pyserial"

    def close(self) -> None:
        """Close the channel."""
        if not self._connected:
            return

        try:
            if self._backend == "socket":
                self._sock.close()
            elif self._backend == "pyserial":
                self._serial.close()
        except Exception as e:
            logger.warning("Error closing channel: %s", e)
        finally:
            self._sock = None
            self._serial = None
            self._connected = False
            logger.info("Disconnected")

    def write(self, data: bytes) -> int:
        """Send raw frame bytes.

        Raises:
            ConnectionError: If not connected or the write fails.
        """
        if not self._connected:
            raise ConnectionError("Not connected to device")

        try:
            if self._backend == "socket":
                self._sock.sendall(data)
                return len(data)
            written = self._serial.write(data)
            self._serial.flush()
            return written
        except OSError as e:
            raise ConnectionError(f"Sending message failed: {e}") from e

    def receive_all(self, quiet_timeout: float = QUIET_TIMEOUT_S) -> bytes:
        """Read until the channel stays idle for ``quiet_timeout`` seconds.

        The earbuds push a burst of status frames right after connecting;
        this gathers the whole burst into one buffer.
        """
        if not self._connected:
            raise ConnectionError("Not connected to device")

        buffer = bytearray()
        started = time.monotonic()
        if self._backend == "socket":
            self._sock.settimeout(quiet_timeout)
            while True:
                try:
                    chunk = self._sock.recv(READ_CHUNK_SIZE)
                except socket.timeout:
                    break
                except OSError as e:
                    raise ConnectionError(f"Read failed: {e}") from e
                if not chunk:
                    break
                buffer.extend(chunk)
        else:
            self._serial.timeout = quiet_timeout
            while True:
                try:
                    chunk = self._serial.read(READ_CHUNK_SIZE)
                except OSError as e:
                    raise ConnectionError(f"Read failed: {e}") from e
                if not chunk:
                    break
                buffer.extend(chunk)

        logger.debug(
            "Gathered %d bytes in %.1fs", len(buffer), time.monotonic() - started
        )
        return bytes(buffer)
