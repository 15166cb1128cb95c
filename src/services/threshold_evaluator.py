"""Threshold evaluation and alert notification for snapshot movements."""

from datetime import datetime, timezone

from src.models.market_data import (
    FAST_HORIZONS,
    AlertEvaluation,
    Asset,
    ChangeClass,
    Horizon,
    Snapshot,
    ThresholdConfig,
    ThresholdCrossing,
)
from src.utils.event_store import ALERT_MUTED, ALERT_NOTIFICATION, EventStore
from src.utils.logger import StructuredLogger
from src.utils.trace_context import get_current_trace


def is_flagged(value: float | None, threshold: float | None) -> bool:
    """True when |value| meets or exceeds the threshold."""
    if value is None or threshold is None:
        return False
    return abs(value) >= threshold


def classify(value: float | None, threshold: float | None) -> ChangeClass:
    """
    Classify one percentage change for display.

    Unavailable and zero changes are neutral.
    """
    if not value:
        return ChangeClass.NEUTRAL
    if is_flagged(value, threshold):
        return ChangeClass.POSITIVE_FLAGGED if value > 0 else ChangeClass.NEGATIVE_FLAGGED
    return ChangeClass.POSITIVE if value > 0 else ChangeClass.NEGATIVE


def classify_asset(asset: Asset, thresholds: ThresholdConfig) -> dict[Horizon, ChangeClass]:
    """Classify every horizon of an asset."""
    return {horizon: classify(asset.change(horizon), thresholds.get(horizon)) for horizon in Horizon}


def evaluate(
    snapshot: Snapshot,
    thresholds: ThresholdConfig,
    horizons: tuple[Horizon, ...] = FAST_HORIZONS,
) -> AlertEvaluation:
    """
    Compare every asset's fast-horizon changes against the thresholds.

    Args:
        snapshot: The snapshot to inspect
        thresholds: Per-horizon thresholds
        horizons: Horizons wired to alerting

    Returns:
        AlertEvaluation that is triggered when any pair crossed its threshold
    """
    crossings = []
    for asset in snapshot.assets:
        for horizon in horizons:
            value = asset.change(horizon)
            threshold = thresholds.get(horizon)
            if is_flagged(value, threshold):
                crossings.append(
                    ThresholdCrossing(
                        asset_id=asset.id,
                        symbol=asset.symbol,
                        horizon=horizon,
                        value=value,
                        threshold=threshold,
                    )
                )

    return AlertEvaluation(
        triggered=bool(crossings),
        crossings=tuple(crossings),
        evaluated_at=datetime.now(timezone.utc),
    )


class AlertNotifier:
    """Emits the once-per-cycle notification for a triggered evaluation."""

    def __init__(self, event_store: EventStore | None = None):
        """
        Initialize the notifier.

        Args:
            event_store: Optional event store that receives notification events
        """
        self.event_store = event_store
        self.logger = StructuredLogger("AlertNotifier")

    def notify(self, evaluation: AlertEvaluation, muted: bool) -> bool:
        """
        Raise the notification side effect for a cycle.

        Args:
            evaluation: The cycle's alert evaluation
            muted: Whether notifications are silenced

        Returns:
            True if a notification was emitted
        """
        if not evaluation.triggered:
            return False

        trace_id = get_current_trace()
        context = {
            "trace_id": trace_id,
            "crossings": len(evaluation.crossings),
            "symbols": sorted({c.symbol for c in evaluation.crossings}),
        }

        if muted:
            self.logger.info("Threshold alert muted", context=context)
            if self.event_store:
                self.event_store.add_event(
                    trace_id=trace_id,
                    event_type=ALERT_MUTED,
                    component="AlertNotifier",
                    message="Threshold alert suppressed while muted",
                    context={k: v for k, v in context.items() if k != "trace_id"},
                )
            return False

        self.logger.warning("Threshold alert: assets are moving", context=context)
        if self.event_store:
            self.event_store.add_event(
                trace_id=trace_id,
                event_type=ALERT_NOTIFICATION,
                component="AlertNotifier",
                message=f"{len(evaluation.crossings)} threshold crossings detected",
                context={k: v for k, v in context.items() if k != "trace_id"},
            )
        return True
