"""Configuration management for the application."""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

SORT_KEYS = ("rank", "price", "15m", "1h", "4h", "24h", "7d", "market_cap", "volume")
SORT_ORDERS = ("asc", "desc")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class MarketDataConfig:
    """Market data provider configuration."""

    base_url: str = "https://api.coingecko.com/api/v3"
    api_key: str | None = None
    vs_currency: str = "usd"
    page_size: int = 250
    page_count: int = 2
    timeout_seconds: float = 10.0
    sparkline_interval_minutes: int = 60  # CoinGecko 7d sparkline is hourly


@dataclass
class RefreshConfig:
    """Refresh scheduler configuration."""

    interval_seconds: int = 60
    auto_start: bool = True


@dataclass
class AlertConfig:
    """Threshold alert configuration."""

    thresholds: dict[str, float] = field(default_factory=dict)
    threshold_min: float = 1.0
    threshold_max: float = 50.0
    muted: bool = False

    def __post_init__(self):
        if not self.thresholds:
            # 1h/24h/7d match the original scanner; 15m/4h sit between them
            self.thresholds = {"15m": 3.0, "1h": 5.0, "4h": 8.0, "24h": 15.0, "7d": 40.0}


@dataclass
class SortConfig:
    """Default sort selection."""

    key: str = "rank"
    order: str = "desc"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file_path: str | None = None


class Config:
    """Main application configuration."""

    def __init__(self):
        self.market_data = MarketDataConfig(
            base_url=os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3"),
            api_key=os.getenv("COINGECKO_API_KEY"),
            vs_currency=os.getenv("VS_CURRENCY", "usd"),
            page_size=int(os.getenv("PAGE_SIZE", "250")),
            page_count=int(os.getenv("PAGE_COUNT", "2")),
            timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", "10")),
            sparkline_interval_minutes=int(os.getenv("SPARKLINE_INTERVAL_MINUTES", "60")),
        )

        self.refresh = RefreshConfig(
            interval_seconds=int(os.getenv("REFRESH_INTERVAL_SECONDS", "60")),
            auto_start=_env_bool("AUTO_START", "true"),
        )

        self.alerts = AlertConfig(
            thresholds={
                "15m": float(os.getenv("THRESHOLD_15M", "3")),
                "1h": float(os.getenv("THRESHOLD_1H", "5")),
                "4h": float(os.getenv("THRESHOLD_4H", "8")),
                "24h": float(os.getenv("THRESHOLD_24H", "15")),
                "7d": float(os.getenv("THRESHOLD_7D", "40")),
            },
            threshold_min=float(os.getenv("THRESHOLD_MIN", "1")),
            threshold_max=float(os.getenv("THRESHOLD_MAX", "50")),
            muted=_env_bool("ALERTS_MUTED", "false"),
        )

        self.sort = SortConfig(
            key=os.getenv("DEFAULT_SORT_KEY", "rank"),
            order=os.getenv("DEFAULT_SORT_ORDER", "desc"),
        )

        self.logging = LoggingConfig(
            level=os.getenv("LOG_LEVEL", "INFO").upper(),
            file_path=os.getenv("LOG_FILE"),
        )

    def validate(self) -> bool:
        """
        Validate configuration.

        Returns:
            True if configuration is valid

        Raises:
            ValueError if configuration is invalid
        """
        market = self.market_data
        if not market.base_url:
            raise ValueError("COINGECKO_BASE_URL environment variable is required")
        if not 10 <= market.timeout_seconds <= 15:
            raise ValueError(
                f"FETCH_TIMEOUT_SECONDS must be between 10 and 15, got {market.timeout_seconds}"
            )
        if not 1 <= market.page_size <= 250:
            raise ValueError(f"PAGE_SIZE must be between 1 and 250, got {market.page_size}")
        if market.page_count < 1:
            raise ValueError(f"PAGE_COUNT must be at least 1, got {market.page_count}")
        if market.sparkline_interval_minutes <= 0:
            raise ValueError("SPARKLINE_INTERVAL_MINUTES must be positive")

        if self.refresh.interval_seconds <= 0:
            raise ValueError("REFRESH_INTERVAL_SECONDS must be positive")

        alerts = self.alerts
        if not 0 < alerts.threshold_min <= alerts.threshold_max:
            raise ValueError("THRESHOLD_MIN must be positive and not above THRESHOLD_MAX")
        for horizon, value in alerts.thresholds.items():
            if not alerts.threshold_min <= value <= alerts.threshold_max:
                raise ValueError(
                    f"Threshold for {horizon} must be between "
                    f"{alerts.threshold_min} and {alerts.threshold_max}, got {value}"
                )

        if self.sort.key not in SORT_KEYS:
            raise ValueError(f"Invalid DEFAULT_SORT_KEY: {self.sort.key}")
        if self.sort.order not in SORT_ORDERS:
            raise ValueError(f"Invalid DEFAULT_SORT_ORDER: {self.sort.order}")

        if self.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid LOG_LEVEL: {self.logging.level}")

        return True


# Global config instance
config = Config()
