"""Shared fixtures: real local syslog receivers.

Every receiver is a plain socket bound on loopback or in a short temp dir,
so tests exercise the actual transport without a syslog daemon.
"""

from __future__ import annotations

import logging
import os
import socket
import tempfile

import pytest
import structlog

HAS_UNIX_SOCKETS = hasattr(socket, "AF_UNIX")
requires_unix_sockets = pytest.mark.skipif(
    not HAS_UNIX_SOCKETS, reason="AF_UNIX sockets not available on this platform"
)


class Receiver:
    """A bound socket that collects what the sink sends."""

    def __init__(self, sock: socket.socket, address) -> None:
        self.sock = sock
        self.address = address

    def recv(self) -> bytes:
        return self.sock.recv(65536)

    def close(self) -> None:
        self.sock.close()


@pytest.fixture()
def udp_receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2)
    host, port = sock.getsockname()
    receiver = Receiver(sock, f"{host}:{port}")
    yield receiver
    receiver.close()


@pytest.fixture()
def tcp_listener():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)
    sock.settimeout(2)
    host, port = sock.getsockname()
    yield sock, f"{host}:{port}"
    sock.close()


@pytest.fixture()
def refused_address():
    """host:port of a bound but non-listening TCP port: connects are refused."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    host, port = sock.getsockname()
    yield f"{host}:{port}"
    sock.close()


@pytest.fixture()
def unixgram_receiver():
    if not HAS_UNIX_SOCKETS:
        pytest.skip("AF_UNIX sockets not available on this platform")
    # Short path: AF_UNIX addresses are limited to ~100 bytes.
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "log.sock")
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        sock.bind(path)
        sock.settimeout(2)
        receiver = Receiver(sock, path)
        yield receiver
        receiver.close()


@pytest.fixture()
def local_daemon(unixgram_receiver, monkeypatch):
    """Point the local (network="") transport at a temp receiver."""
    monkeypatch.setattr("syslogsink.transport.LOCAL_SOCKET_PATHS", (unixgram_receiver.address,))
    return unixgram_receiver


@pytest.fixture()
def no_local_daemon(monkeypatch):
    with tempfile.TemporaryDirectory() as tmpdir:
        monkeypatch.setattr(
            "syslogsink.transport.LOCAL_SOCKET_PATHS",
            (os.path.join(tmpdir, "missing.sock"),),
        )
        yield


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("SYSLOGSINK_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Detach our handlers and structlog config around each test."""
    from syslogsink.logging import shutdown_logging

    shutdown_logging()
    yield
    shutdown_logging()
    structlog.reset_defaults()
    logging.getLogger().setLevel(logging.WARNING)


class RecordingLogger:
    """Structured logger double: records (level, event, kwargs)."""

    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict]] = []

    def error(self, event: str, **kw) -> None:
        self.records.append(("error", event, kw))

    def info(self, event: str, **kw) -> None:
        self.records.append(("info", event, kw))


@pytest.fixture()
def recording_logger():
    return RecordingLogger()
