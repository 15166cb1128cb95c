"""Ranking engine ordering snapshot assets by the active sort selection."""

from collections.abc import Callable, Iterable

from src.models.market_data import Asset, Horizon, SortKey, SortSelection

UNAVAILABLE = float("-inf")

_FIELD_KEYS: dict[str, Callable[[Asset], float]] = {
    "rank": lambda asset: float(asset.rank),
    "price": lambda asset: asset.price,
    "market_cap": lambda asset: asset.market_cap,
    "volume": lambda asset: asset.volume,
}


def sort_value(asset: Asset, key: SortKey) -> float:
    """
    Comparison value for one asset under a sort key.

    Unavailable horizon values compare as negative infinity.
    """
    if key in _FIELD_KEYS:
        return _FIELD_KEYS[key](asset)
    value = asset.change(Horizon(key))
    return UNAVAILABLE if value is None else value


def sort_assets(assets: Iterable[Asset], selection: SortSelection) -> list[Asset]:
    """
    Return a new list of assets ordered by the selection.

    Ties keep ascending rank in both directions. Unavailable values end up
    last when descending and first when ascending.

    Args:
        assets: Assets to order (typically Snapshot.assets)
        selection: Sort key and direction

    Returns:
        A sorted copy
    """
    if selection.key not in _FIELD_KEYS and selection.key not in {h.value for h in Horizon}:
        raise ValueError(f"Unknown sort key: {selection.key}")

    by_rank = sorted(assets, key=lambda asset: asset.rank)
    # sorted() is stable for reverse=True too, so rank order survives among equals
    return sorted(
        by_rank,
        key=lambda asset: sort_value(asset, selection.key),
        reverse=selection.order == "desc",
    )
