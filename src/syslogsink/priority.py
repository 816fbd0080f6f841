"""Syslog facility and severity codes, and per-entry priority selection.

Codes use the shifted form of the syslog(3) headers, so a facility and a
severity combine with a plain bitwise OR:

    priority = facility | severity
"""

from __future__ import annotations

from typing import Any

# Severities
LOG_EMERG = 0
LOG_ALERT = 1
LOG_CRIT = 2
LOG_ERR = 3
LOG_WARNING = 4
LOG_NOTICE = 5
LOG_INFO = 6
LOG_DEBUG = 7

# Facilities
LOG_USER = 1 << 3
LOG_DAEMON = 3 << 3
LOG_LOCAL0 = 16 << 3
LOG_LOCAL1 = 17 << 3
LOG_LOCAL2 = 18 << 3
LOG_LOCAL3 = 19 << 3
LOG_LOCAL4 = 20 << 3
LOG_LOCAL5 = 21 << 3
LOG_LOCAL6 = 22 << 3
LOG_LOCAL7 = 23 << 3

FACILITY_MASK = 0x3F8
SEVERITY_MASK = 0x07

LEVEL_KEY = "level"

FACILITIES: dict[str, int] = {
    "user": LOG_USER,
    "daemon": LOG_DAEMON,
    "local0": LOG_LOCAL0,
    "local1": LOG_LOCAL1,
    "local2": LOG_LOCAL2,
    "local3": LOG_LOCAL3,
    "local4": LOG_LOCAL4,
    "local5": LOG_LOCAL5,
    "local6": LOG_LOCAL6,
    "local7": LOG_LOCAL7,
}

SEVERITIES: dict[str, int] = {
    "emergency": LOG_EMERG,
    "alert": LOG_ALERT,
    "critical": LOG_CRIT,
    "error": LOG_ERR,
    "warning": LOG_WARNING,
    "notice": LOG_NOTICE,
    "info": LOG_INFO,
    "debug": LOG_DEBUG,
}

DEFAULT_FACILITY = "local7"

# Returned when an entry carries no usable level. This is a facility code,
# not a severity; combine() writes it with the connection's base priority.
FALLBACK_PRIORITY = LOG_LOCAL0


def resolve_facility(name: str) -> int:
    """Map a facility name to its code. Unknown names resolve to local7."""
    return FACILITIES.get(name, FACILITIES[DEFAULT_FACILITY])


def select_priority(*keyvals: Any) -> int:
    """Pick the syslog priority for an alternating key/value entry.

    The first ``level`` key with a string value decides: a known level name
    maps to its severity, anything else to FALLBACK_PRIORITY. Pairs whose
    value is not a string are skipped.
    """
    for i in range(0, len(keyvals), 2):
        if keyvals[i] != LEVEL_KEY or i + 1 >= len(keyvals):
            continue
        value = keyvals[i + 1]
        if isinstance(value, str):
            return SEVERITIES.get(value, FALLBACK_PRIORITY)
    return FALLBACK_PRIORITY


def combine(base: int, priority: int) -> int:
    """Effective wire priority for a message on a connection dialed with ``base``.

    Severities keep the connection's facility bits. Any other code is not a
    severity and the message goes out with the base priority unchanged.
    """
    if 0 <= priority <= SEVERITY_MASK:
        return (base & FACILITY_MASK) | priority
    return base


def is_valid_priority(priority: int) -> bool:
    return 0 <= priority <= (LOG_LOCAL7 | LOG_DEBUG)
