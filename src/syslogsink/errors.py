"""Error types raised by the syslog sink."""

from __future__ import annotations


class SyslogSinkError(Exception):
    """Base class for syslog sink errors."""


class SyslogInitError(SyslogSinkError):
    """The sink could not connect to its syslog receiver.

    Fatal at startup: the caller decides whether to exit the process.
    """

    def __init__(self, message: str, *, network: str = "", address: str = "") -> None:
        super().__init__(message)
        self.network = network
        self.address = address


class UnknownNetworkError(SyslogInitError):
    """The configured network selector is not a supported transport."""


class SinkClosedError(SyslogSinkError):
    """A sink or connection was used outside its open lifetime."""
