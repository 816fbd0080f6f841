"""Structured logging for syslogsink itself: swappable formatter × destination.

Architecture:
    LogFormatter   — HOW records are structured (structlog, stdlib)
    LogDestination — WHERE output goes (stderr, syslog)

    setup_logging(config) composes them: formatter.setup() returns a
    logging.Formatter, destination.create_handler() returns a logging.Handler,
    the handler gets the formatter, and it's attached to the root logger.

Swapping:
    SYSLOGSINK_LOG_FORMATTER=structlog   (default)
    SYSLOGSINK_LOG_DESTINATION=stderr    (default)
    SYSLOGSINK_LOG_DESTINATION=syslog    (dialed from SYSLOGSINK_* sink settings)

    Or register your own:
        from syslogsink.logging import register_destination
        register_destination("journald", MyJournaldDestination)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from syslogsink.config import SyslogSinkConfig
from syslogsink.priority import resolve_facility
from syslogsink.transport import SyslogConnection, dial


@dataclass
class LoggingConfig:
    """Logging configuration, env-var driven."""

    log_formatter: str = field(
        default_factory=lambda: os.environ.get("SYSLOGSINK_LOG_FORMATTER", "structlog")
    )  # "structlog" | "stdlib"

    log_destination: str = field(
        default_factory=lambda: os.environ.get("SYSLOGSINK_LOG_DESTINATION", "stderr")
    )  # "stderr" | "syslog"

    log_level: str = field(
        default_factory=lambda: os.environ.get("SYSLOGSINK_LOG_LEVEL", "INFO")
    )

    log_format: str = field(
        default_factory=lambda: os.environ.get("SYSLOGSINK_LOG_FORMAT", "json")
    )  # "json" | "console"

    # Receiver for the syslog destination
    syslog: SyslogSinkConfig = field(default_factory=SyslogSinkConfig.from_env)


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class LogFormatter(Protocol):
    """Strategy: how log records are structured."""

    def setup(self, config: LoggingConfig) -> logging.Formatter: ...

    def get_logger(self, name: str, **kwargs: Any) -> Any: ...


@runtime_checkable
class LogDestination(Protocol):
    """Strategy: where formatted log output is shipped."""

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler: ...

    def shutdown(self) -> None: ...


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructlogFormatter:
    """structlog processor pipeline + stdlib bridge."""

    def setup(self, config: LoggingConfig) -> logging.Formatter:
        import structlog

        shared_processors: list = [
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]

        if config.log_format == "console":
            renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
        else:
            renderer = structlog.processors.JSONRenderer()

        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                *shared_processors,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        return structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        import structlog

        return structlog.get_logger(name, **kwargs)


class StdlibFormatter:
    """Pure stdlib logging with JSON formatting."""

    def setup(self, config: LoggingConfig) -> logging.Formatter:
        if config.log_format == "console":
            return logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        return _StdlibJsonFormatter()

    def get_logger(self, name: str, **kwargs: Any) -> Any:
        return _StructuredStdlibLogger(logging.getLogger(name))


class _StdlibJsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        d: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        if hasattr(record, "_structured"):
            d.update(record._structured)  # type: ignore[union-attr]
        if record.exc_info and record.exc_info[1]:
            d["exception"] = self.formatException(record.exc_info)
        return json.dumps(d, default=str)


class _StructuredStdlibLogger:
    """Gives stdlib loggers a structlog-like kwargs API.

    logger.error("sink.init_failed", error=str(exc)) stores the kwargs on
    the LogRecord for the formatter.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _log(self, level: int, event: str, **kwargs: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "(unknown)",
            0,
            event,
            (),
            None,
        )
        record._structured = kwargs  # type: ignore[attr-defined]
        self._logger.handle(record)

    def debug(self, event: str, **kw: Any) -> None:
        self._log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, **kw)

    def critical(self, event: str, **kw: Any) -> None:
        self._log(logging.CRITICAL, event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, **kw)


# ---------------------------------------------------------------------------
# Destinations
# ---------------------------------------------------------------------------


class StderrDestination:
    """Write to stderr. Default."""

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        return handler

    def shutdown(self) -> None:
        pass


class SyslogDestination:
    """Route the package's own log records to a syslog receiver.

    Dials at create_handler(); a receiver that cannot be reached raises
    SyslogInitError out of setup_logging().
    """

    def __init__(self, config: LoggingConfig) -> None:
        self._sink_config = config.syslog
        self._connection: SyslogConnection | None = None

    def create_handler(self, formatter: logging.Formatter) -> logging.Handler:
        cfg = self._sink_config
        self._connection = dial(cfg.network, cfg.address, resolve_facility(cfg.facility), cfg.tag)
        self._connection.setFormatter(formatter)
        return self._connection

    def shutdown(self) -> None:
        if self._connection is not None and not self._connection.closed:
            self._connection.close()


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

_FORMATTERS: dict[str, type] = {
    "structlog": StructlogFormatter,
    "stdlib": StdlibFormatter,
}

_DESTINATIONS: dict[str, type] = {
    "stderr": StderrDestination,
    "syslog": SyslogDestination,
}


def register_formatter(name: str, cls: type) -> None:
    """Register a custom log formatter. Call before setup_logging()."""
    _FORMATTERS[name] = cls


def register_destination(name: str, cls: type) -> None:
    """Register a custom log destination. Call before setup_logging()."""
    _DESTINATIONS[name] = cls


# ---------------------------------------------------------------------------
# Module state
# ---------------------------------------------------------------------------

_active_formatter: LogFormatter | None = None
_active_destination: LogDestination | None = None


def setup_logging(config: LoggingConfig) -> None:
    """Compose formatter × destination from config and wire to root logger."""
    global _active_formatter, _active_destination

    formatter_cls = _FORMATTERS.get(config.log_formatter)
    if formatter_cls is None:
        raise ValueError(
            f"Unknown log formatter: {config.log_formatter!r}. "
            f"Available: {list(_FORMATTERS)}. "
            f"Register custom formatters with register_formatter()."
        )

    dest_cls = _DESTINATIONS.get(config.log_destination)
    if dest_cls is None:
        raise ValueError(
            f"Unknown log destination: {config.log_destination!r}. "
            f"Available: {list(_DESTINATIONS)}. "
            f"Register custom destinations with register_destination()."
        )

    formatter = formatter_cls()
    # Destinations that need config get it via constructor
    destination = dest_cls(config) if dest_cls is SyslogDestination else dest_cls()

    log_formatter = formatter.setup(config)
    handler = destination.create_handler(log_formatter)

    # Only replace our own handler, keep external ones (pytest caplog etc.)
    handler._syslogsink_managed = True  # type: ignore[attr-defined]
    root_logger = logging.getLogger()
    for existing in root_logger.handlers:
        if getattr(existing, "_syslogsink_managed", False) and _active_destination is not None:
            _active_destination.shutdown()
            break
    root_logger.handlers = [
        h for h in root_logger.handlers
        if not getattr(h, "_syslogsink_managed", False)
    ]
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    _active_formatter = formatter
    _active_destination = destination


def get_logger(name: str = "", **kwargs: Any) -> Any:
    """Get a logger from the active formatter.

    Returns a structlog BoundLogger or a _StructuredStdlibLogger, both of
    which accept logger.info("event", key=value). Falls back to the stdlib
    wrapper before setup_logging() is called.
    """
    if _active_formatter is not None:
        return _active_formatter.get_logger(name, **kwargs)
    return _StructuredStdlibLogger(logging.getLogger(name))


def shutdown_logging() -> None:
    """Detach our handler and close the active destination."""
    global _active_formatter, _active_destination

    root_logger = logging.getLogger()
    root_logger.handlers = [
        h for h in root_logger.handlers
        if not getattr(h, "_syslogsink_managed", False)
    ]
    if _active_destination is not None:
        _active_destination.shutdown()
    _active_formatter = None
    _active_destination = None
