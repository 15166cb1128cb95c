"""Trace context for correlating the log entries and events of one refresh cycle."""

import contextvars
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

_trace_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "trace_id", default=None
)


def get_current_trace() -> Optional[str]:
    """Return the current trace ID, or None outside a cycle."""
    return _trace_id_context.get()


def set_trace(trace_id: Optional[str]) -> None:
    """
    Set the trace ID in the current context.

    Args:
        trace_id: The trace ID to set
    """
    _trace_id_context.set(trace_id)


@contextmanager
def traced_cycle() -> Iterator[str]:
    """Run a block under a fresh trace ID, restoring the previous one afterwards."""
    token = _trace_id_context.set(str(uuid.uuid4()))
    try:
        yield _trace_id_context.get()
    finally:
        _trace_id_context.reset(token)
