from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

TraceHook = Callable[[str, Mapping[str, Any]], None]


def logging_trace_hook(logger: logging.Logger | None = None, level: int = logging.DEBUG) -> TraceHook:
    """Adapt the generator's trace events onto a standard logger."""
    target = logger or logging.getLogger("stablelocator.trace")

    def _hook(event: str, payload: Mapping[str, Any]) -> None:
        if not target.isEnabledFor(level):
            return
        details = " ".join(f"{key}={value!r}" for key, value in payload.items())
        target.log(level, "%s %s", event, details)

    return _hook


def collecting_trace_hook(sink: list[tuple[str, dict[str, Any]]]) -> TraceHook:
    def _hook(event: str, payload: Mapping[str, Any]) -> None:
        sink.append((event, dict(payload)))

    return _hook
