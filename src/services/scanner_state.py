"""In-memory scanner state shared by the refresh scheduler and the API."""

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime

from src.models.market_data import (
    AlertEvaluation,
    Horizon,
    Snapshot,
    SortKey,
    SortOrder,
    SortSelection,
    ThresholdConfig,
)
from src.utils.config import SORT_KEYS, SORT_ORDERS, AlertConfig, SortConfig, config

FETCH_ERROR_MESSAGE = "Failed to fetch data. Retrying..."


@dataclass
class ScannerSettings:
    """User-adjustable settings, kept for the process lifetime only."""

    thresholds: ThresholdConfig
    sort: SortSelection
    muted: bool = False
    threshold_min: float = 1.0
    threshold_max: float = 50.0

    @classmethod
    def from_config(
        cls, alert_config: AlertConfig | None = None, sort_config: SortConfig | None = None
    ) -> "ScannerSettings":
        alert_config = alert_config or config.alerts
        sort_config = sort_config or config.sort
        return cls(
            thresholds=ThresholdConfig.from_mapping(alert_config.thresholds),
            sort=SortSelection(key=sort_config.key, order=sort_config.order),
            muted=alert_config.muted,
            threshold_min=alert_config.threshold_min,
            threshold_max=alert_config.threshold_max,
        )


@dataclass(frozen=True)
class StateView:
    """Consistent read-only copy of the scanner state."""

    snapshot: Snapshot | None
    loading: bool
    error: str
    last_update: datetime | None
    evaluation: AlertEvaluation | None
    thresholds: ThresholdConfig
    sort: SortSelection
    muted: bool


@dataclass
class ScannerState:
    """Holds the current snapshot and settings behind a lock."""

    settings: ScannerSettings = field(default_factory=ScannerSettings.from_config)
    snapshot: Snapshot | None = None
    error: str = ""
    last_update: datetime | None = None
    evaluation: AlertEvaluation | None = None
    in_flight: int = 0
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def loading(self) -> bool:
        return self.in_flight > 0

    def begin_cycle(self) -> None:
        with self._lock:
            self.in_flight += 1

    def end_cycle(self) -> None:
        with self._lock:
            self.in_flight = max(0, self.in_flight - 1)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def commit(
        self,
        snapshot: Snapshot,
        evaluation: AlertEvaluation,
        cancelled: threading.Event | None = None,
    ) -> bool:
        """
        Replace the snapshot wholesale and clear any error.

        Args:
            snapshot: The new snapshot
            evaluation: Its alert evaluation
            cancelled: When set, checked under the lock and the commit is skipped

        Returns:
            True if the snapshot was replaced
        """
        with self._lock:
            if cancelled is not None and cancelled.is_set():
                return False
            self.snapshot = snapshot
            self.evaluation = evaluation
            self.last_update = snapshot.captured_at
            self.error = ""
            return True

    def record_failure(
        self, message: str = FETCH_ERROR_MESSAGE, cancelled: threading.Event | None = None
    ) -> None:
        """Keep the previous snapshot and surface an error message."""
        with self._lock:
            if cancelled is not None and cancelled.is_set():
                return
            self.error = message

    def view(self) -> StateView:
        with self._lock:
            return StateView(
                snapshot=self.snapshot,
                loading=self.loading,
                error=self.error,
                last_update=self.last_update,
                evaluation=self.evaluation,
                thresholds=ThresholdConfig(values=dict(self.settings.thresholds.values)),
                sort=replace(self.settings.sort),
                muted=self.settings.muted,
            )

    def update_thresholds(self, updates: dict[str, float]) -> ThresholdConfig:
        """
        Apply a partial threshold update.

        Args:
            updates: Horizon value ("15m", "1h", ...) to threshold percent

        Returns:
            The full threshold config after the update

        Raises:
            ValueError: For unknown horizons or values outside the allowed range;
                nothing is applied in that case
        """
        parsed: dict[Horizon, float] = {}
        for key, value in updates.items():
            try:
                horizon = Horizon(key)
            except ValueError:
                raise ValueError(f"Unknown horizon: {key}") from None
            if not self.settings.threshold_min <= value <= self.settings.threshold_max:
                raise ValueError(
                    f"Threshold for {key} must be between {self.settings.threshold_min} "
                    f"and {self.settings.threshold_max}"
                )
            parsed[horizon] = float(value)

        with self._lock:
            self.settings.thresholds.values.update(parsed)
            return ThresholdConfig(values=dict(self.settings.thresholds.values))

    def select_sort(self, key: SortKey) -> SortSelection:
        """Apply column-click semantics to the sort selection."""
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        with self._lock:
            self.settings.sort.select(key)
            return replace(self.settings.sort)

    def set_sort(self, key: SortKey, order: SortOrder) -> SortSelection:
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        if order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {order}")
        with self._lock:
            self.settings.sort = SortSelection(key=key, order=order)
            return replace(self.settings.sort)

    def set_muted(self, muted: bool) -> bool:
        with self._lock:
            self.settings.muted = muted
            return muted
