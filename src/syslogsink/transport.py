"""Syslog transport: dial a receiver and write framed messages.

Socket setup is inherited from logging.handlers.SysLogHandler, which already
knows the unix datagram/stream fallback and the TCP/UDP address families.
Writes bypass SysLogHandler.emit() so that socket errors reach the caller
instead of being swallowed by handleError().

Framing (BSD syslog, one message per write, newline terminated):
    local:   <PRI>Mmm dd hh:mm:ss tag[pid]: message
    network: <PRI>2006-01-02T15:04:05+00:00 hostname tag[pid]: message
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import socket
import sys
from datetime import datetime
from pathlib import Path

from syslogsink.errors import SinkClosedError, SyslogInitError, UnknownNetworkError
from syslogsink.priority import (
    FACILITY_MASK,
    LEVEL_KEY,
    combine,
    is_valid_priority,
    select_priority,
)

# Where local syslog daemons listen, in the order they are tried.
LOCAL_SOCKET_PATHS = ("/dev/log", "/var/run/syslog", "/var/run/log")

_DATAGRAM_NETWORKS = {"udp", "udp4", "udp6"}
_STREAM_NETWORKS = {"tcp", "tcp4", "tcp6"}
_UNIX_NETWORKS = {"unix": socket.SOCK_STREAM, "unixgram": socket.SOCK_DGRAM}


def _default_tag() -> str:
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "python"


def _split_host_port(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not host or not port:
        raise ValueError(f"syslog address must be host:port, got {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"invalid port in syslog address {address!r}") from None


class SyslogConnection(logging.handlers.SysLogHandler):
    """An open connection to a syslog receiver.

    Owns one socket. write() frames and sends a single message; close()
    releases the socket. Also usable as a logging.Handler.
    """

    def __init__(
        self,
        address: str | tuple[str, int],
        *,
        priority: int,
        tag: str,
        socktype: int | None = None,
        local: bool = False,
    ) -> None:
        super().__init__(
            address=address,
            facility=(priority & FACILITY_MASK) >> 3,
            socktype=socktype,
        )
        if self.unixsocket and not _is_connected(self.socket):
            # SysLogHandler tolerates an absent unix socket; a sink must not.
            raise ConnectionRefusedError(f"cannot connect to syslog socket {address!r}")
        self.priority = priority
        self.tag = tag
        self.local = local
        self.hostname = "" if local else socket.gethostname()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def frame(self, priority: int, message: str, *, now: datetime | None = None) -> bytes:
        """Render one message on the wire, header included."""
        pri = combine(self.priority, priority)
        if now is None:
            now = datetime.now().astimezone()
        pid = os.getpid()
        if not message.endswith("\n"):
            message += "\n"
        if self.local:
            stamp = f"{now:%b} {now.day:2d} {now:%H:%M:%S}"
            line = f"<{pri}>{stamp} {self.tag}[{pid}]: {message}"
        else:
            stamp = _rfc3339(now)
            line = f"<{pri}>{stamp} {self.hostname} {self.tag}[{pid}]: {message}"
        return line.encode("utf-8", errors="replace")

    def write(self, priority: int, message: str) -> None:
        """Send one message. Socket errors propagate to the caller."""
        data = self.frame(priority, message)
        self.acquire()
        try:
            if self._closed:
                raise SinkClosedError("syslog connection is closed")
            if self.unixsocket:
                self.socket.send(data)
            elif self.socktype == socket.SOCK_DGRAM:
                self.socket.sendto(data, self.address)
            else:
                self.socket.sendall(data)
        finally:
            self.release()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            priority = select_priority(LEVEL_KEY, record.levelname.lower())
            self.write(priority, self.format(record))
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        self.acquire()
        try:
            self._closed = True
        finally:
            self.release()
        super().close()


def _rfc3339(now: datetime) -> str:
    stamp = now.isoformat(timespec="seconds")
    # RFC 3339 spells a zero offset as Z
    return stamp[:-6] + "Z" if stamp.endswith("+00:00") else stamp


def _is_connected(sock: socket.socket | None) -> bool:
    if sock is None:
        return False
    try:
        sock.getpeername()
    except OSError:
        return False
    return True


def _dial_local(priority: int, tag: str) -> SyslogConnection:
    last_error: OSError | None = None
    for path in LOCAL_SOCKET_PATHS:
        try:
            return SyslogConnection(path, priority=priority, tag=tag, local=True)
        except OSError as exc:
            last_error = exc
    raise SyslogInitError("Unix syslog delivery error") from last_error


def dial(network: str, address: str, priority: int, tag: str = "") -> SyslogConnection:
    """Open a connection to a syslog receiver.

    network: "" (local daemon), udp[46], tcp[46], unix or unixgram.
    priority: facility code (optionally OR'd with a default severity) stamped
    on messages that carry no severity of their own.

    Raises SyslogInitError if the receiver cannot be reached.
    """
    if not is_valid_priority(priority):
        raise SyslogInitError(f"invalid syslog priority {priority}", network=network, address=address)
    tag = tag or _default_tag()

    if network == "":
        return _dial_local(priority, tag)

    try:
        if network in _UNIX_NETWORKS:
            return SyslogConnection(
                address,
                priority=priority,
                tag=tag,
                socktype=_UNIX_NETWORKS[network],
                local=True,
            )
        if network in _DATAGRAM_NETWORKS or network in _STREAM_NETWORKS:
            socktype = socket.SOCK_DGRAM if network in _DATAGRAM_NETWORKS else socket.SOCK_STREAM
            return SyslogConnection(
                _split_host_port(address),
                priority=priority,
                tag=tag,
                socktype=socktype,
            )
    except (OSError, ValueError) as exc:
        raise SyslogInitError(
            f"cannot connect to syslog receiver {network}://{address}: {exc}",
            network=network,
            address=address,
        ) from exc

    raise UnknownNetworkError(
        f"Unknown syslog network: {network!r}. "
        f"Available: '', {sorted(_DATAGRAM_NETWORKS | _STREAM_NETWORKS | set(_UNIX_NETWORKS))}.",
        network=network,
        address=address,
    )
