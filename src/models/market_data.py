"""Market data models for ranked assets, snapshots and user settings."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Literal


class Horizon(str, Enum):
    """Lookback window over which a percentage price change is measured."""

    M15 = "15m"
    H1 = "1h"
    H4 = "4h"
    H24 = "24h"
    D7 = "7d"

    @property
    def minutes(self) -> int:
        return _HORIZON_MINUTES[self]


_HORIZON_MINUTES = {
    Horizon.M15: 15,
    Horizon.H1: 60,
    Horizon.H4: 240,
    Horizon.H24: 1440,
    Horizon.D7: 10080,
}

# Supplied by the provider as price_change_percentage_<h>_in_currency
SOURCE_HORIZONS = (Horizon.H1, Horizon.H24, Horizon.D7)
# Computed locally from the sparkline
DERIVED_HORIZONS = (Horizon.M15, Horizon.H4)
# Horizons wired to the aggregate alert
FAST_HORIZONS = (Horizon.M15, Horizon.H1, Horizon.H4)


class ChangeClass(str, Enum):
    """Cell-level classification of a percentage change against its threshold."""

    NEUTRAL = "neutral"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    POSITIVE_FLAGGED = "positive_flagged"
    NEGATIVE_FLAGGED = "negative_flagged"

    @property
    def flagged(self) -> bool:
        return self in (ChangeClass.POSITIVE_FLAGGED, ChangeClass.NEGATIVE_FLAGGED)


@dataclass(frozen=True)
class Asset:
    """One tracked instrument as captured in a single snapshot."""

    id: str
    symbol: str
    name: str
    rank: int
    price: float
    market_cap: float
    volume: float
    change_pct: dict[Horizon, float | None] = field(default_factory=dict)
    price_series: tuple[float | None, ...] = ()

    def change(self, horizon: Horizon) -> float | None:
        """Percentage change for a horizon, or None when unavailable."""
        return self.change_pct.get(horizon)


@dataclass(frozen=True)
class Snapshot:
    """A complete rank-ordered capture of the tracked universe."""

    assets: tuple[Asset, ...]
    captured_at: datetime

    def __len__(self) -> int:
        return len(self.assets)

    def get(self, asset_id: str) -> Asset | None:
        for asset in self.assets:
            if asset.id == asset_id:
                return asset
        return None


SortKey = Literal["rank", "price", "15m", "1h", "4h", "24h", "7d", "market_cap", "volume"]
SortOrder = Literal["asc", "desc"]


@dataclass
class SortSelection:
    """The active sort column and direction."""

    key: SortKey = "rank"
    order: SortOrder = "desc"

    def select(self, key: SortKey) -> None:
        """Column-click semantics: the same key flips order, a new key starts descending."""
        if key == self.key:
            self.order = "asc" if self.order == "desc" else "desc"
        else:
            self.key = key
            self.order = "desc"


@dataclass
class ThresholdConfig:
    """Per-horizon alert thresholds in percent."""

    values: dict[Horizon, float] = field(default_factory=dict)

    def get(self, horizon: Horizon) -> float | None:
        return self.values.get(horizon)

    def as_dict(self) -> dict[str, float]:
        return {horizon.value: value for horizon, value in self.values.items()}

    @classmethod
    def from_mapping(cls, mapping: dict[str, float]) -> "ThresholdConfig":
        return cls(values={Horizon(key): float(value) for key, value in mapping.items()})


@dataclass(frozen=True)
class ThresholdCrossing:
    """One asset/horizon pair whose change met its threshold."""

    asset_id: str
    symbol: str
    horizon: Horizon
    value: float
    threshold: float


@dataclass(frozen=True)
class AlertEvaluation:
    """Aggregate alert outcome for one snapshot."""

    triggered: bool
    crossings: tuple[ThresholdCrossing, ...]
    evaluated_at: datetime
