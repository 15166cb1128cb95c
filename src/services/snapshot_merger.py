"""Snapshot merger combining fetched pages into one rank-ordered snapshot."""

import math
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from src.models.market_data import SOURCE_HORIZONS, Asset, Horizon, Snapshot
from src.services.momentum import derive_momentum
from src.utils.logger import StructuredLogger
from src.utils.trace_context import get_current_trace

logger = StructuredLogger("SnapshotMerger")


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    # NaN and infinities from the JSON literals or "1e400" are unusable
    return number if math.isfinite(number) else None


def _as_rank(value: Any) -> int | None:
    number = _as_float(value)
    if number is None or number != int(number) or number < 1:
        return None
    return int(number)


def _price_series(row: dict[str, Any]) -> tuple[float | None, ...]:
    """Sparkline samples with gaps kept as None so positions stay on the time grid."""
    sparkline = row.get("sparkline_in_7d") or {}
    prices = sparkline.get("price") if isinstance(sparkline, dict) else None
    if not isinstance(prices, list):
        return ()
    return tuple(_as_float(v) for v in prices)


def parse_row(row: dict[str, Any], sample_interval_minutes: int) -> Asset | None:
    """
    Build an Asset from one provider row, deriving the local horizons.

    Args:
        row: A /coins/markets row
        sample_interval_minutes: Spacing of the sparkline samples

    Returns:
        The Asset, or None when the row lacks an id or a usable rank
    """
    asset_id = row.get("id")
    rank = _as_rank(row.get("market_cap_rank"))
    if not asset_id or rank is None:
        return None

    current_price = _as_float(row.get("current_price"))
    series = _price_series(row)

    change_pct: dict[Horizon, float | None] = {
        horizon: _as_float(row.get(f"price_change_percentage_{horizon.value}_in_currency"))
        for horizon in SOURCE_HORIZONS
    }
    change_pct.update(derive_momentum(series, current_price, sample_interval_minutes))

    return Asset(
        id=str(asset_id),
        symbol=str(row.get("symbol") or ""),
        name=str(row.get("name") or ""),
        rank=rank,
        price=current_price or 0.0,
        market_cap=_as_float(row.get("market_cap")) or 0.0,
        volume=_as_float(row.get("total_volume")) or 0.0,
        change_pct=change_pct,
        price_series=series,
    )


def merge_pages(
    pages: Iterable[list[dict[str, Any]]],
    sample_interval_minutes: int,
    captured_at: datetime | None = None,
) -> Snapshot:
    """
    Concatenate pages into one snapshot ordered by ascending rank.

    Rows without an id or rank are excluded, and a duplicated id keeps its
    first occurrence. Neither anomaly fails the merge.

    Args:
        pages: Pages of provider rows
        sample_interval_minutes: Spacing of the sparkline samples
        captured_at: Capture timestamp (defaults to now, UTC)

    Returns:
        The merged Snapshot
    """
    trace_id = get_current_trace()
    assets: dict[str, Asset] = {}
    excluded: list[Any] = []
    duplicates: list[str] = []

    for rows in pages:
        for row in rows:
            asset = parse_row(row, sample_interval_minutes)
            if asset is None:
                excluded.append(row.get("id"))
                continue
            if asset.id in assets:
                duplicates.append(asset.id)
                continue
            assets[asset.id] = asset

    if excluded:
        logger.warning(
            f"Excluded {len(excluded)} rows with missing id or rank",
            context={"trace_id": trace_id, "excluded_ids": excluded},
        )
    if duplicates:
        logger.warning(
            f"Dropped {len(duplicates)} duplicate asset ids",
            context={"trace_id": trace_id, "duplicate_ids": duplicates},
        )

    ordered = tuple(sorted(assets.values(), key=lambda a: (a.rank, a.id)))

    ranks = [asset.rank for asset in ordered]
    if ranks != list(range(1, len(ranks) + 1)):
        logger.warning(
            "Snapshot ranks are not contiguous",
            context={
                "trace_id": trace_id,
                "asset_count": len(ranks),
                "first_rank": ranks[0] if ranks else None,
                "last_rank": ranks[-1] if ranks else None,
            },
        )

    return Snapshot(assets=ordered, captured_at=captured_at or datetime.now(timezone.utc))
