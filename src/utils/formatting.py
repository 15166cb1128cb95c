"""Display formatting for prices, market caps and percentage changes."""


def format_price(price: float) -> str:
    """Format a unit price with precision that scales down for cheap assets."""
    if price >= 1:
        return f"${price:,.2f}"
    if price >= 0.01:
        return f"${price:.4f}"
    return f"${price:.8f}"


def format_market_cap(value: float) -> str:
    """Abbreviate a market cap or volume to T/B/M."""
    if value >= 1e12:
        return f"${value / 1e12:.2f}T"
    if value >= 1e9:
        return f"${value / 1e9:.2f}B"
    if value >= 1e6:
        return f"${value / 1e6:.2f}M"
    # Up to three decimals without trailing zeros, like an en-US locale string
    return "$" + f"{value:,.3f}".rstrip("0").rstrip(".")


def format_change(value: float | None) -> str:
    if value is None:
        return "-%"
    return f"{value:.2f}%"
