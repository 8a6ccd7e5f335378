"""Tests for the RFCOMM connection, with the OS channel faked out."""

from __future__ import annotations

import socket as real_socket
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from budsplus_mcp.transport import rfcomm_connection
from budsplus_mcp.transport.rfcomm_connection import RFCOMMConnection


class _FakeSocket:
    """Returns queued chunks, then times out like an idle channel."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = list(chunks)
        self.sent = b""
        self.address = None
        self.closed = False
        self.timeout = None

    def connect(self, address):
        self.address = address

    def settimeout(self, timeout):
        self.timeout = timeout

    def recv(self, size):
        if not self.chunks:
            raise real_socket.timeout()
        return self.chunks.pop(0)

    def sendall(self, data):
        self.sent += data

    def close(self):
        self.closed = True


def _fake_socket_module(sock: _FakeSocket):
    return SimpleNamespace(
        AF_BLUETOOTH=31,
        SOCK_STREAM=1,
        BTPROTO_RFCOMM=3,
        timeout=real_socket.timeout,
        socket=lambda *args: sock,
    )


def test_socket_backend_reads_until_quiet():
    sock = _FakeSocket([b"\xfd\x04", b"\x00\x86\x01"])
    with patch.object(rfcomm_connection, "socket", _fake_socket_module(sock)):
        with RFCOMMConnection("AA:BB:CC:DD:EE:FF") as conn:
            assert conn.info.backend == "socket"
            conn.write(b"\x01\x02")
            data = conn.receive_all(quiet_timeout=0.5)
    assert data == b"\xfd\x04\x00\x86\x01"
    assert sock.address == ("AA:BB:CC:DD:EE:FF", 1)
    assert sock.sent == b"\x01\x02"
    assert sock.timeout == 0.5
    assert sock.closed


def test_socket_connect_failure_raises_connection_error():
    sock = _FakeSocket([])
    sock.connect = MagicMock(side_effect=OSError("Host is down"))
    with patch.object(rfcomm_connection, "socket", _fake_socket_module(sock)):
        conn = RFCOMMConnection("AA:BB:CC:DD:EE:FF")
        with pytest.raises(ConnectionError):
            conn.open()
    assert not conn.connected
    assert sock.closed


def test_serial_backend_for_device_path():
    port = MagicMock()
    port.read.side_effect = [b"\xfd", b"\x04\x00", b""]
    port.write.return_value = 3
    with patch("serial.Serial", return_value=port) as serial_cls:
        conn = RFCOMMConnection("/dev/rfcomm0")
        conn.open()
        assert conn.write(b"abc") == 3
        assert conn.receive_all(quiet_timeout=1.0) == b"\xfd\x04\x00"
        conn.close()
    serial_cls.assert_called_once()
    assert serial_cls.call_args.args[0] == "/dev/rfcomm0"
    port.close.assert_called_once()


def test_not_connected():
    conn = RFCOMMConnection("/dev/rfcomm0")
    with pytest.raises(ConnectionError):
        conn.write(b"\x00")
    with pytest.raises(ConnectionError):
        conn.receive_all()


def test_close_when_not_connected_is_noop():
    RFCOMMConnection("/dev/rfcomm0").close()


def test_mac_address_never_uses_serial():
    sock = _FakeSocket([])
    with patch.object(rfcomm_connection, "socket", _fake_socket_module(sock)):
        with patch("serial.Serial") as serial_cls:
            with RFCOMMConnection("AA:BB:CC:DD:EE:FF") as conn:
                assert conn.info.backend == "socket"
    serial_cls.assert_not_called()


def test_open_twice_keeps_first_channel():
    port = MagicMock()
    with patch("serial.Serial", return_value=port) as serial_cls:
        conn = RFCOMMConnection("/dev/rfcomm0")
        first = conn.open()
        second = conn.open()
        conn.close()
    assert serial_cls.call_count == 1
    assert first == second
    port.close.assert_called_once()
