"""Short-horizon momentum derived from sparkline price samples."""

from collections.abc import Sequence

from src.models.market_data import DERIVED_HORIZONS, Horizon


def derive_change(
    series: Sequence[float | None],
    current_price: float | None,
    horizon_minutes: int,
    sample_interval_minutes: int,
) -> float | None:
    """
    Percentage change of the current price against a sample `horizon` ago.

    The reference sample sits horizon_minutes // sample_interval_minutes
    positions before the most recent sample. Short series fall back to the
    oldest sample, so the window may be shorter than requested. A gap
    (None) at the reference position makes the change unavailable.

    Args:
        series: Price samples ordered oldest to newest at a fixed interval,
            with None for missing samples
        current_price: Latest unit price
        horizon_minutes: Lookback window
        sample_interval_minutes: Spacing between consecutive samples

    Returns:
        The change in percent rounded to 4 decimals, or None when unavailable
    """
    if not series or current_price is None:
        return None

    steps_back = horizon_minutes // sample_interval_minutes
    reference_index = max(0, len(series) - 1 - steps_back)
    reference = series[reference_index]
    if reference is None or reference <= 0:
        return None

    return round((current_price - reference) / reference * 100, 4)


def derive_momentum(
    series: Sequence[float | None],
    current_price: float | None,
    sample_interval_minutes: int,
) -> dict[Horizon, float | None]:
    """Compute every locally derived horizon for one asset."""
    return {
        horizon: derive_change(series, current_price, horizon.minutes, sample_interval_minutes)
        for horizon in DERIVED_HORIZONS
    }
