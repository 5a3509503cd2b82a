"""Stage events for the request running in the current context.

The orchestrator opens a trace per request with ``start_trace`` and keeps the
returned list; pipeline stages append to it through ``emit_event``.
"""

import contextvars
from typing import Any

TraceEvents = list[dict[str, Any]]

_current: contextvars.ContextVar[TraceEvents | None] = contextvars.ContextVar(
    "pipeline_trace", default=None
)


def start_trace() -> TraceEvents:
    """Bind a fresh event list to the current context and return it."""
    events: TraceEvents = []
    _current.set(events)
    return events


def emit_event(*, stage: str, status: str, message: str, details: dict[str, Any] | None = None) -> None:
    events = _current.get()
    if events is None:
        events = start_trace()
    event = {"stage": stage, "status": status, "message": message}
    if details:
        event["details"] = details
    events.append(event)
