"""Pydantic schemas for scanner API request/response validation."""

from datetime import datetime

from pydantic import BaseModel, field_validator

from src.utils.config import SORT_KEYS, SORT_ORDERS


class AssetRow(BaseModel):
    """One ranked asset with its per-horizon classification."""

    id: str
    symbol: str
    name: str
    rank: int
    price: float
    market_cap: float
    volume: float
    change_pct: dict[str, float | None]
    classification: dict[str, str]
    flagged: bool
    display: dict[str, str]


class AssetListResponse(BaseModel):
    """Response model for the ranked asset list."""

    assets: list[AssetRow]
    total: int
    captured_at: datetime | None
    sort_key: str
    sort_order: str


class AlertSummary(BaseModel):
    """Aggregate alert outcome of the latest snapshot."""

    triggered: bool
    crossings: int
    evaluated_at: datetime | None = None


class StatusResponse(BaseModel):
    """Response model for loading/error status."""

    loading: bool
    error: str
    last_update: datetime | None
    asset_count: int
    alert: AlertSummary
    muted: bool
    is_running: bool
    next_refresh: datetime | None = None


class ThresholdsResponse(BaseModel):
    """Current per-horizon thresholds and the allowed range."""

    thresholds: dict[str, float]
    min: float
    max: float


class ThresholdsUpdateRequest(BaseModel):
    """Request model for a partial threshold update."""

    thresholds: dict[str, float]

    @field_validator("thresholds")
    @classmethod
    def validate_not_empty(cls, v: dict[str, float]) -> dict[str, float]:
        """Validate at least one threshold is provided."""
        if not v:
            raise ValueError("At least one threshold must be provided")
        return v


class SortResponse(BaseModel):
    """Response model for the sort selection."""

    key: str
    order: str


class SortUpdateRequest(BaseModel):
    """Request model for setting the sort selection explicitly."""

    key: str
    order: str = "desc"

    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Validate sort key is known."""
        if v not in SORT_KEYS:
            raise ValueError(f"Sort key must be one of {', '.join(SORT_KEYS)}")
        return v

    @field_validator("order")
    @classmethod
    def validate_order(cls, v: str) -> str:
        """Validate sort order."""
        if v not in SORT_ORDERS:
            raise ValueError("Sort order must be 'asc' or 'desc'")
        return v


class MuteRequest(BaseModel):
    """Request model for toggling alert sound."""

    muted: bool


class MuteResponse(BaseModel):
    muted: bool


class RefreshResponse(BaseModel):
    """Outcome of a manually triggered refresh."""

    success: bool
    error: str
    last_update: datetime | None
    asset_count: int
