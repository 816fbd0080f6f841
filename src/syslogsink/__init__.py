"""syslogsink: forward structured key/value log entries to syslog.

Public API:
    new_sink(config)        — Build a SyslogSink and connect it (raises SyslogInitError)
    SyslogSink              — init() / log(*keyvals) / close()
    SyslogSinkConfig        — network, address, facility, tag, format
    resolve_facility(name)  — Facility name → code (unknown → local7)
    select_priority(*kv)    — Level pair → syslog priority

Logging (swappable formatter x destination):
    get_logger(name)        — Get a structured logger
    setup_logging(cfg)      — Wire formatter × destination to the root logger
"""

from syslogsink.config import SyslogSinkConfig
from syslogsink.errors import (
    SinkClosedError,
    SyslogInitError,
    SyslogSinkError,
    UnknownNetworkError,
)
from syslogsink.formatting import get_formatter, register_formatter
from syslogsink.logging import LoggingConfig, get_logger, setup_logging, shutdown_logging
from syslogsink.priority import FACILITIES, LEVEL_KEY, SEVERITIES, resolve_facility, select_priority
from syslogsink.sink import SyslogSink, new_sink
from syslogsink.transport import SyslogConnection, dial

__all__ = [
    # Sink
    "new_sink",
    "SyslogSink",
    "SyslogSinkConfig",
    # Priorities
    "FACILITIES",
    "SEVERITIES",
    "LEVEL_KEY",
    "resolve_facility",
    "select_priority",
    # Transport
    "dial",
    "SyslogConnection",
    # Formatters
    "get_formatter",
    "register_formatter",
    # Errors
    "SyslogSinkError",
    "SyslogInitError",
    "UnknownNetworkError",
    "SinkClosedError",
    # Logging
    "LoggingConfig",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
