"""In-memory event store for refresh cycles and alert notifications."""

import threading
import uuid
from collections import Counter, deque
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

# Event types emitted by the refresh pipeline
CYCLE_START = "cycle_start"
CYCLE_COMPLETE = "cycle_complete"
CYCLE_ERROR = "cycle_error"
FETCH_FAILED = "fetch_failed"
ALERT_NOTIFICATION = "alert_notification"
ALERT_MUTED = "alert_muted"


@dataclass
class Event:
    """Represents a system event."""

    id: str
    timestamp: str
    trace_id: str | None
    event_type: str
    component: str
    message: str
    context: dict[str, Any]
    duration_ms: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert event to dictionary, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @property
    def recorded_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))


class EventStore:
    """Bounded in-memory event store; the oldest events fall off when full."""

    def __init__(self, max_size: int = 5000, max_age_seconds: int = 3600):
        """
        Initialize the event store.

        Args:
            max_size: Maximum number of events to keep
            max_age_seconds: Age after which clear_old_events drops an event
        """
        self.max_size = max_size
        self.max_age_seconds = max_age_seconds
        self._events: deque[Event] = deque(maxlen=max_size)
        self._lock = threading.RLock()

    def add_event(
        self,
        trace_id: str | None,
        event_type: str,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> Event:
        """Record an event and return it."""
        event = Event(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            trace_id=trace_id,
            event_type=event_type,
            component=component,
            message=message,
            context=context or {},
            duration_ms=duration_ms,
        )
        with self._lock:
            self._events.append(event)
        return event

    def get_recent_events(self, limit: int = 100) -> list[Event]:
        """
        Get the most recent events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events in chronological order (oldest first)
        """
        if limit <= 0:
            return []
        with self._lock:
            return list(self._events)[-limit:]

    def get_events_by_trace(self, trace_id: str) -> list[Event]:
        """Get all events recorded under one cycle trace, oldest first."""
        with self._lock:
            return [event for event in self._events if event.trace_id == trace_id]

    def get_events_by_type(self, event_type: str, limit: int = 100) -> list[Event]:
        """Get the most recent events of one type, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            matching = [event for event in self._events if event.event_type == event_type]
        return matching[-limit:]

    def count_by_type(self) -> dict[str, int]:
        """Count stored events per event type."""
        with self._lock:
            return dict(Counter(event.event_type for event in self._events))

    def clear_old_events(self, max_age_seconds: int | None = None) -> int:
        """
        Remove events older than the specified age.

        Args:
            max_age_seconds: Maximum age in seconds (uses instance default if None)

        Returns:
            Number of events removed
        """
        max_age = max_age_seconds if max_age_seconds is not None else self.max_age_seconds
        cutoff_time = datetime.now(UTC) - timedelta(seconds=max_age)

        with self._lock:
            initial_count = len(self._events)
            self._events = deque(
                (event for event in self._events if event.recorded_at > cutoff_time),
                maxlen=self.max_size,
            )
            return initial_count - len(self._events)

    def clear(self) -> None:
        """Clear all events from the store."""
        with self._lock:
            self._events.clear()

    def size(self) -> int:
        """Get the current number of events in the store."""
        with self._lock:
            return len(self._events)

    def get_all_events(self) -> list[Event]:
        """Get all events in chronological order."""
        with self._lock:
            return list(self._events)
