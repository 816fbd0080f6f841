"""Formatters: render a leveled key/value entry into message text.

A formatter is any structlog renderer, i.e. a callable
``(logger, method_name, event_dict) -> str``. The built-ins wrap
structlog's own renderers:

    text / logfmt   level=error msg="disk full"
    json            {"level": "error", "msg": "disk full"}
    kv              level=error msg=disk full

text, logfmt and kv render every pair of the entry in order, repeated keys
included. json needs unique keys: the first occurrence of a key is kept.

Register your own:
    from syslogsink.formatting import register_formatter
    register_formatter("gelf", MyGelfRenderer)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import structlog

Formatter = Callable[[Any, str, dict[str, Any]], str]

MISSING_VALUE = "(MISSING)"


class PairwiseRenderer:
    """Wraps a ``key=value`` structlog renderer so each pair renders on its own.

    Still a plain structlog renderer when called with an event dict.
    """

    def __init__(self, renderer: Formatter) -> None:
        self._renderer = renderer

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> str:
        return self._renderer(logger, method_name, event_dict)

    def render_pairs(self, pairs: Sequence[tuple[str, Any]]) -> str:
        rendered = (self._renderer(None, "log", {key: value}) for key, value in pairs)
        return " ".join(part for part in rendered if part)


def _logfmt_renderer() -> Formatter:
    return PairwiseRenderer(structlog.processors.LogfmtRenderer())


def _kv_renderer() -> Formatter:
    return PairwiseRenderer(structlog.processors.KeyValueRenderer(repr_native_str=False))


_FORMATTERS: dict[str, Callable[[], Formatter]] = {
    "text": _logfmt_renderer,
    "logfmt": _logfmt_renderer,
    "json": structlog.processors.JSONRenderer,
    "kv": _kv_renderer,
}


def register_formatter(name: str, factory: Callable[[], Formatter]) -> None:
    """Register a custom formatter factory under ``name``."""
    _FORMATTERS[name] = factory


def get_formatter(name: str = "text") -> Formatter:
    factory = _FORMATTERS.get(name)
    if factory is None:
        raise ValueError(
            f"Unknown log format: {name!r}. "
            f"Available: {list(_FORMATTERS)}. "
            f"Register custom formats with register_formatter()."
        )
    return factory()


def to_pairs(keyvals: Sequence[Any]) -> list[tuple[str, Any]]:
    """Pair up an alternating key/value sequence, in order.

    A dangling final key gets MISSING_VALUE; non-string keys are str()-ed.
    """
    pairs: list[tuple[str, Any]] = []
    for i in range(0, len(keyvals), 2):
        key = keyvals[i] if isinstance(keyvals[i], str) else str(keyvals[i])
        pairs.append((key, keyvals[i + 1] if i + 1 < len(keyvals) else MISSING_VALUE))
    return pairs


def to_event_dict(keyvals: Sequence[Any]) -> dict[str, Any]:
    """Collapse an entry into a dict for renderers that need unique keys.

    The first occurrence of a repeated key wins, matching select_priority().
    """
    event: dict[str, Any] = {}
    for key, value in to_pairs(keyvals):
        event.setdefault(key, value)
    return event


def render(formatter: Formatter, keyvals: Sequence[Any]) -> str:
    if isinstance(formatter, PairwiseRenderer):
        return formatter.render_pairs(to_pairs(keyvals))
    return formatter(None, "log", to_event_dict(keyvals))
