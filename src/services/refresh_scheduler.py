"""Refresh scheduler driving the fetch, merge and evaluate cycle."""

import logging
import threading
import time
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.services.scanner_state import FETCH_ERROR_MESSAGE, ScannerState
from src.services.snapshot_fetcher import FetchError, SnapshotFetcher
from src.services.snapshot_merger import merge_pages
from src.services.threshold_evaluator import AlertNotifier, evaluate
from src.utils.config import config
from src.utils.event_store import (
    CYCLE_COMPLETE,
    CYCLE_ERROR,
    CYCLE_START,
    FETCH_FAILED,
    EventStore,
)
from src.utils.logger import StructuredLogger
from src.utils.trace_context import traced_cycle

logger = logging.getLogger(__name__)
structured_logger = StructuredLogger("RefreshScheduler")

REFRESH_JOB_ID = "snapshot_refresh"


class RefreshScheduler:
    """Runs refresh cycles immediately on start and then on a fixed interval."""

    def __init__(
        self,
        state: ScannerState | None = None,
        fetcher: SnapshotFetcher | None = None,
        event_store: EventStore | None = None,
        interval_seconds: int | None = None,
        sample_interval_minutes: int | None = None,
    ):
        """
        Initialize the refresh scheduler.

        Args:
            state: Scanner state receiving each completed snapshot
            fetcher: Page fetcher (defaults to a CoinGecko fetcher)
            event_store: EventStore instance for tracking cycles
            interval_seconds: Seconds between cycles (defaults to config)
            sample_interval_minutes: Sparkline sample spacing (defaults to config)
        """
        self.scheduler = BackgroundScheduler()
        self.state = state or ScannerState()
        self.fetcher = fetcher or SnapshotFetcher()
        self.event_store = event_store
        self.notifier = AlertNotifier(event_store)
        self.interval_seconds = interval_seconds or config.refresh.interval_seconds
        self.sample_interval_minutes = (
            sample_interval_minutes or config.market_data.sparkline_interval_minutes
        )
        self.is_running = False
        self._stopped = threading.Event()

    def start(self) -> None:
        """Schedule the recurring refresh, with the first cycle running right away."""
        if self.is_running:
            return

        self._stopped.clear()
        self.scheduler.add_job(
            self.run_cycle,
            IntervalTrigger(seconds=self.interval_seconds),
            id=REFRESH_JOB_ID,
            name="Market Snapshot Refresh",
            next_run_time=datetime.now(timezone.utc),
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.start()
        self.is_running = True
        logger.info(f"Refresh scheduler started with {self.interval_seconds}s interval")

    def stop(self) -> None:
        """Stop scheduling; a cycle still in flight will not commit its result."""
        # Serialized with commits, so no cycle commits once stop() returns
        with self.state.lock:
            self._stopped.set()
        if self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Refresh scheduler stopped")

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def next_run_time(self) -> datetime | None:
        job = self.scheduler.get_job(REFRESH_JOB_ID) if self.is_running else None
        return job.next_run_time if job else None

    def run_cycle(self) -> bool:
        """
        Execute one fetch, merge, evaluate and commit pass.

        Failures never propagate: the previous snapshot is kept and an error
        message is surfaced until the next successful cycle.

        Returns:
            True if a new snapshot was committed
        """
        with traced_cycle() as trace_id:
            start_time = time.time()
            self.state.begin_cycle()
            self._record(trace_id, CYCLE_START, "Starting refresh cycle")
            structured_logger.info("Starting refresh cycle", context={"trace_id": trace_id})

            try:
                pages = self.fetcher.fetch_pages()
                snapshot = merge_pages(pages, self.sample_interval_minutes)
                view = self.state.view()
                evaluation = evaluate(snapshot, view.thresholds)

                if not self.state.commit(snapshot, evaluation, cancelled=self._stopped):
                    structured_logger.info(
                        "Discarding cycle result after shutdown",
                        context={"trace_id": trace_id, "asset_count": len(snapshot)},
                    )
                    return False

                self.notifier.notify(evaluation, muted=self.state.view().muted)

                duration_ms = (time.time() - start_time) * 1000
                structured_logger.info(
                    "Refresh cycle completed successfully",
                    context={
                        "trace_id": trace_id,
                        "asset_count": len(snapshot),
                        "alert_triggered": evaluation.triggered,
                        "crossings": len(evaluation.crossings),
                        "duration_ms": duration_ms,
                    },
                )
                self._record(
                    trace_id,
                    CYCLE_COMPLETE,
                    "Refresh cycle completed successfully",
                    context={
                        "status": "success",
                        "asset_count": len(snapshot),
                        "alert_triggered": evaluation.triggered,
                    },
                    duration_ms=duration_ms,
                )
                return True

            except FetchError as e:
                duration_ms = (time.time() - start_time) * 1000
                structured_logger.warning(
                    f"Refresh cycle failed, keeping previous snapshot: {e}",
                    context={"trace_id": trace_id, "page": e.page, "duration_ms": duration_ms},
                )
                self._fail(trace_id, FETCH_FAILED, str(e), duration_ms, page=e.page)
                return False

            except Exception as e:
                duration_ms = (time.time() - start_time) * 1000
                structured_logger.error(
                    f"Unexpected error during refresh cycle: {e}",
                    context={"trace_id": trace_id, "duration_ms": duration_ms},
                    exception=e,
                )
                self._fail(trace_id, CYCLE_ERROR, str(e), duration_ms, error_type=type(e).__name__)
                return False

            finally:
                self.state.end_cycle()
                if self.event_store:
                    self.event_store.clear_old_events()

    def _fail(
        self,
        trace_id: str,
        event_type: str,
        message: str,
        duration_ms: float,
        **details,
    ) -> None:
        self.state.record_failure(FETCH_ERROR_MESSAGE, cancelled=self._stopped)
        context = {"error_message": message, **details}
        self._record(trace_id, event_type, "Refresh cycle failed", context=context)
        self._record(
            trace_id,
            CYCLE_COMPLETE,
            "Refresh cycle failed",
            context={"status": "failed"},
            duration_ms=duration_ms,
        )

    def _record(
        self,
        trace_id: str,
        event_type: str,
        message: str,
        context: dict | None = None,
        duration_ms: float | None = None,
    ) -> None:
        if self.event_store:
            self.event_store.add_event(
                trace_id=trace_id,
                event_type=event_type,
                component="RefreshScheduler",
                message=message,
                context=context,
                duration_ms=duration_ms,
            )
