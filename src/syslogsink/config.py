"""Syslog sink configuration: key/value section, YAML/INI file, env vars.

Priority: env var > config file > default.
Env vars use SYSLOGSINK_{KEY} convention (e.g. SYSLOGSINK_FACILITY=local3).

Keys:
    network   transport selector; "" = local syslog daemon
    address   host:port, or socket path for unix/unixgram
    facility  user | daemon | local0..local7 (default local7)
    tag       identifier prefixed to every message
    format    formatter name: text (default) | json | kv
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from syslogsink.priority import DEFAULT_FACILITY

DEFAULT_SECTION = "log.syslog"
ENV_PREFIX = "SYSLOGSINK_"


@dataclass(frozen=True)
class SyslogSinkConfig:
    """Where and how the sink connects. Immutable once built."""

    network: str = ""
    address: str = ""
    facility: str = DEFAULT_FACILITY
    tag: str = ""
    format: str = "text"

    @classmethod
    def from_section(cls, section: Mapping[str, Any]) -> SyslogSinkConfig:
        """Read settings from a key/value section (dict, configparser section, ...).

        Missing keys take their defaults; so does an empty facility.
        """
        kwargs: dict[str, str] = {}
        for f in fields(cls):
            if f.name in section and section[f.name] is not None:
                kwargs[f.name] = str(section[f.name]).strip()
        if not kwargs.get("facility"):
            kwargs.pop("facility", None)
        if not kwargs.get("format"):
            kwargs.pop("format", None)
        return cls(**kwargs)

    @classmethod
    def from_env(cls) -> SyslogSinkConfig:
        return cls.from_section(_env_values())

    @classmethod
    def load(cls, path: Path | None = None, section: str = DEFAULT_SECTION) -> SyslogSinkConfig:
        """Load from an INI or YAML file, then override with env vars."""
        values: dict[str, Any] = {}
        if path is not None and Path(path).exists():
            values.update(_read_file(Path(path), section))
        values.update(_env_values())
        return cls.from_section(values)

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


def _env_values() -> dict[str, str]:
    values: dict[str, str] = {}
    for f in fields(SyslogSinkConfig):
        env_key = f"{ENV_PREFIX}{f.name.upper()}"
        if env_key in os.environ:
            values[f.name] = os.environ[env_key]
    return values


def _read_file(path: Path, section: str) -> dict[str, Any]:
    if path.suffix.lower() in (".yaml", ".yml"):
        raw = yaml.safe_load(path.read_text()) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: expected a mapping at the top level, got {type(raw).__name__}")
        nested = raw.get(section)
        if isinstance(nested, dict):
            return nested
        # Flat file: the settings live at the top level.
        return {k: v for k, v in raw.items() if not isinstance(v, dict)}

    parser = configparser.ConfigParser(interpolation=None)
    parser.read(path, encoding="utf-8")
    if not parser.has_section(section):
        return {}
    return dict(parser[section])
