"""SyslogSink: forward leveled key/value entries to syslog.

Lifecycle:
    uninitialized --init()--> open --close()--> closed

    sink = new_sink(SyslogSinkConfig(facility="local3", tag="svc"))
    sink.log("level", "warning", "msg", "disk almost full")
    sink.close()

Each entry's priority comes from its ``level`` pair (see
syslogsink.priority.select_priority); the facility comes from config.
"""

from __future__ import annotations

from typing import Any

from syslogsink.config import SyslogSinkConfig
from syslogsink.errors import SinkClosedError, SyslogInitError, SyslogSinkError
from syslogsink.formatting import Formatter, get_formatter, render
from syslogsink.logging import get_logger
from syslogsink.priority import resolve_facility, select_priority
from syslogsink.transport import SyslogConnection, dial

UNINITIALIZED = "uninitialized"
OPEN = "open"
CLOSED = "closed"


class SyslogSink:
    """Owns one connection to a syslog receiver.

    Not thread-safe beyond what SyslogConnection provides: serialise calls
    at the caller if needed.
    """

    def __init__(
        self,
        config: SyslogSinkConfig,
        formatter: Formatter | None = None,
        *,
        logger: Any = None,
    ) -> None:
        self.config = config
        self.formatter = formatter if formatter is not None else get_formatter(config.format)
        self._logger = logger if logger is not None else get_logger("syslogsink")
        self._connection: SyslogConnection | None = None
        self._state = UNINITIALIZED

    @property
    def state(self) -> str:
        return self._state

    @property
    def connection(self) -> SyslogConnection | None:
        return self._connection

    def init(self) -> None:
        """Dial the receiver. Raises SyslogInitError if it cannot be reached."""
        if self._state == OPEN:
            raise SyslogSinkError("syslog sink is already open")
        if self._state == CLOSED:
            raise SinkClosedError("syslog sink is closed")

        # the facility is the origin of the syslog message
        facility = resolve_facility(self.config.facility)
        try:
            self._connection = dial(
                self.config.network, self.config.address, facility, self.config.tag
            )
        except SyslogInitError as exc:
            self._logger.error(
                "Failed to init syslog log handler",
                error=str(exc),
                network=self.config.network,
                address=self.config.address,
            )
            raise
        self._state = OPEN

    def log(self, *keyvals: Any) -> None:
        """Format and send one entry. Transmission errors propagate."""
        if self._state != OPEN or self._connection is None:
            raise SinkClosedError(f"cannot log to a syslog sink that is {self._state}")
        priority = select_priority(*keyvals)
        self._connection.write(priority, render(self.formatter, keyvals))

    def close(self) -> None:
        """Release the connection. Must be called exactly once."""
        if self._state != OPEN or self._connection is None:
            raise SinkClosedError(f"cannot close a syslog sink that is {self._state}")
        self._state = CLOSED
        self._connection.close()

    def __enter__(self) -> SyslogSink:
        if self._state == UNINITIALIZED:
            self.init()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._state == OPEN:
            self.close()

    def __repr__(self) -> str:
        cfg = self.config
        return (
            f"SyslogSink(network={cfg.network!r}, address={cfg.address!r}, "
            f"facility={cfg.facility!r}, tag={cfg.tag!r}, state={self._state!r})"
        )


def new_sink(
    config: SyslogSinkConfig,
    formatter: Formatter | None = None,
    *,
    logger: Any = None,
) -> SyslogSink:
    """Build a sink and connect it.

    A failed connection is logged once through ``logger`` and raised as
    SyslogInitError; exiting the process is the caller's decision.
    """
    sink = SyslogSink(config, formatter, logger=logger)
    sink.init()
    return sink
