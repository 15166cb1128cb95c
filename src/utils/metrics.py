"""Metrics calculator for aggregating refresh cycle events."""

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from src.utils.event_store import (
    ALERT_MUTED,
    ALERT_NOTIFICATION,
    CYCLE_COMPLETE,
    CYCLE_ERROR,
    FETCH_FAILED,
    EventStore,
)


@dataclass
class Metrics:
    """Represents aggregated refresh metrics."""

    total_cycles: int
    successful_cycles: int
    failed_cycles: int
    success_rate: float
    average_cycle_duration_ms: float
    last_asset_count: int
    fetch_failures: int
    alerts_notified: int
    alerts_muted: int
    recent_errors_count: int
    uptime_seconds: int

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return asdict(self)


class MetricsCalculator:
    """Calculates metrics from event store data."""

    def __init__(self, event_store: EventStore, start_time: Optional[datetime] = None):
        """
        Initialize the metrics calculator.

        Args:
            event_store: The event store to calculate metrics from
            start_time: Optional start time for uptime calculation (defaults to now)
        """
        self.event_store = event_store
        self.start_time = start_time or datetime.now(timezone.utc)

    def calculate(self) -> Metrics:
        """Calculate metrics from the event store."""
        events = self.event_store.get_all_events()

        cycle_completes = [e for e in events if e.event_type == CYCLE_COMPLETE]
        successful = [e for e in cycle_completes if e.context.get("status") == "success"]
        failed = [e for e in cycle_completes if e.context.get("status") == "failed"]

        total_cycles = len(cycle_completes)
        success_rate = (len(successful) / total_cycles * 100) if total_cycles > 0 else 0.0

        durations = [e.duration_ms for e in cycle_completes if e.duration_ms is not None]
        average_cycle_duration_ms = sum(durations) / len(durations) if durations else 0.0

        last_asset_count = successful[-1].context.get("asset_count", 0) if successful else 0

        uptime_seconds = int((datetime.now(timezone.utc) - self.start_time).total_seconds())

        return Metrics(
            total_cycles=total_cycles,
            successful_cycles=len(successful),
            failed_cycles=len(failed),
            success_rate=success_rate,
            average_cycle_duration_ms=average_cycle_duration_ms,
            last_asset_count=last_asset_count,
            fetch_failures=sum(1 for e in events if e.event_type == FETCH_FAILED),
            alerts_notified=sum(1 for e in events if e.event_type == ALERT_NOTIFICATION),
            alerts_muted=sum(1 for e in events if e.event_type == ALERT_MUTED),
            recent_errors_count=sum(1 for e in events if e.event_type == CYCLE_ERROR),
            uptime_seconds=uptime_seconds,
        )
