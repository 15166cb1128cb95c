"""Pytest configuration and fixtures."""

import os

# Never start the background scheduler against the live API during tests
os.environ.setdefault("AUTO_START", "false")

from unittest.mock import Mock

import pytest

from src.api.dependencies import (
    get_event_store,
    get_metrics_calculator,
    get_refresh_scheduler,
    get_scanner_state,
)
from src.services.refresh_scheduler import RefreshScheduler
from src.services.scanner_state import ScannerState
from src.services.snapshot_fetcher import SnapshotFetcher
from src.utils.event_store import EventStore
from src.utils.metrics import MetricsCalculator
from main import app


def build_row(rank: int, **overrides) -> dict:
    """Build a /coins/markets row for the given rank."""
    row = {
        "id": f"coin-{rank}",
        "symbol": f"c{rank}",
        "name": f"Coin {rank}",
        "market_cap_rank": rank,
        "current_price": 100.0,
        "market_cap": 1_000_000_000.0 / rank,
        "total_volume": 10_000_000.0 / rank,
        "price_change_percentage_1h_in_currency": 0.5,
        "price_change_percentage_24h_in_currency": 1.0,
        "price_change_percentage_7d_in_currency": 2.0,
        "sparkline_in_7d": {"price": [100.0] * 168},
    }
    row.update(overrides)
    return row


def build_pages(total: int = 500, page_size: int = 250) -> list[list[dict]]:
    """Build consecutive pages of rows with ranks 1..total."""
    rows = [build_row(rank) for rank in range(1, total + 1)]
    return [rows[i : i + page_size] for i in range(0, total, page_size)]


@pytest.fixture
def market_pages():
    """Two pages of 250 quiet assets covering ranks 1-500."""
    return build_pages()


@pytest.fixture
def event_store():
    return EventStore()


@pytest.fixture
def scanner_state():
    return ScannerState()


@pytest.fixture
def mock_fetcher(market_pages):
    """Fetcher double returning the synthetic pages."""
    fetcher = Mock(spec=SnapshotFetcher)
    fetcher.fetch_pages.return_value = market_pages
    return fetcher


@pytest.fixture
def refresh_scheduler(scanner_state, mock_fetcher, event_store):
    scheduler = RefreshScheduler(
        state=scanner_state,
        fetcher=mock_fetcher,
        event_store=event_store,
        interval_seconds=60,
        sample_interval_minutes=60,
    )
    yield scheduler
    scheduler.stop()


@pytest.fixture
def test_client(scanner_state, refresh_scheduler, event_store):
    """Create a test client wired to isolated scanner services."""
    calculator = MetricsCalculator(event_store)
    app.dependency_overrides[get_scanner_state] = lambda: scanner_state
    app.dependency_overrides[get_refresh_scheduler] = lambda: refresh_scheduler
    app.dependency_overrides[get_event_store] = lambda: event_store
    app.dependency_overrides[get_metrics_calculator] = lambda: calculator

    from fastapi.testclient import TestClient

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
