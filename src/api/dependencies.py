"""FastAPI dependencies exposing the process-wide scanner services."""

from datetime import datetime, timezone

from src.services.refresh_scheduler import RefreshScheduler
from src.services.scanner_state import ScannerState
from src.utils.event_store import EventStore
from src.utils.metrics import MetricsCalculator

# Shared for the process lifetime; nothing outlives a restart
event_store = EventStore()
scanner_state = ScannerState()
refresh_scheduler = RefreshScheduler(state=scanner_state, event_store=event_store)
metrics_calculator = MetricsCalculator(event_store, start_time=datetime.now(timezone.utc))


def get_scanner_state() -> ScannerState:
    """Dependency returning the scanner state."""
    return scanner_state


def get_refresh_scheduler() -> RefreshScheduler:
    """Dependency returning the refresh scheduler."""
    return refresh_scheduler


def get_event_store() -> EventStore:
    """Dependency returning the event store."""
    return event_store


def get_metrics_calculator() -> MetricsCalculator:
    """Dependency returning the metrics calculator."""
    return metrics_calculator
