"""Snapshot fetcher for ranked market pages from CoinGecko."""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any

import requests

from src.utils.config import MarketDataConfig, config
from src.utils.logger import StructuredLogger
from src.utils.trace_context import get_current_trace, set_trace


class FetchError(Exception):
    """A retryable failure to retrieve a complete set of pages."""

    def __init__(self, message: str, page: int | None = None):
        super().__init__(message)
        self.page = page


class SnapshotFetcher:
    """Fetches the ranked market pages that make up one snapshot."""

    def __init__(self, market_config: MarketDataConfig | None = None):
        """
        Initialize the fetcher.

        Args:
            market_config: Provider settings (defaults to the global config)
        """
        self.config = market_config or config.market_data
        self.markets_url = f"{self.config.base_url.rstrip('/')}/coins/markets"
        self.logger = StructuredLogger("SnapshotFetcher")

    def _params(self, page: int) -> dict[str, Any]:
        return {
            "vs_currency": self.config.vs_currency,
            "order": "market_cap_desc",
            "per_page": self.config.page_size,
            "page": page,
            "price_change_percentage": "1h,24h,7d",
            "sparkline": "true",
            "locale": "en",
        }

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.config.api_key:
            headers["x-cg-demo-api-key"] = self.config.api_key
        return headers

    def fetch_page(self, page: int) -> list[dict[str, Any]]:
        """
        Fetch one page of market rows.

        Args:
            page: 1-based page index

        Returns:
            The rows of the page as returned by the provider

        Raises:
            FetchError: On network errors, timeouts, HTTP errors or malformed payloads
        """
        trace_id = get_current_trace()
        started = time.time()
        self.logger.debug(
            "Requesting market page",
            context={"trace_id": trace_id, "source": "CoinGecko", "page": page},
        )

        try:
            response = requests.get(
                self.markets_url,
                params=self._params(page),
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.Timeout as e:
            raise FetchError(f"Timed out fetching page {page}", page=page) from e
        except requests.RequestException as e:
            raise FetchError(f"Request for page {page} failed: {e}", page=page) from e
        except ValueError as e:
            raise FetchError(f"Page {page} returned invalid JSON", page=page) from e

        if not isinstance(payload, list) or not all(isinstance(row, dict) for row in payload):
            raise FetchError(f"Page {page} payload is not a list of rows", page=page)
        # Every page of the tracked universe is full; a short page is partial data
        if len(payload) != self.config.page_size:
            raise FetchError(
                f"Page {page} returned {len(payload)} of {self.config.page_size} rows", page=page
            )

        self.logger.debug(
            "Fetched market page",
            context={
                "trace_id": trace_id,
                "source": "CoinGecko",
                "page": page,
                "rows": len(payload),
                "duration_ms": (time.time() - started) * 1000,
            },
        )
        return payload

    def fetch_pages(self) -> list[list[dict[str, Any]]]:
        """
        Fetch all configured pages concurrently and wait for every one of them.

        Returns:
            Pages in page order

        Raises:
            FetchError: If any page fails; partial results are discarded
        """
        trace_id = get_current_trace()
        pages = range(1, self.config.page_count + 1)

        with ThreadPoolExecutor(max_workers=len(pages)) as executor:
            futures = [executor.submit(self._traced_fetch, trace_id, page) for page in pages]
            results = []
            errors = []
            for future in futures:
                try:
                    results.append(future.result())
                except FetchError as e:
                    errors.append(e)

        if errors:
            self.logger.warning(
                "Market page fetch failed",
                context={
                    "trace_id": trace_id,
                    "source": "CoinGecko",
                    "failed_pages": [e.page for e in errors],
                    "result": "failed",
                },
            )
            raise errors[0]

        self.logger.info(
            "Fetched all market pages",
            context={
                "trace_id": trace_id,
                "source": "CoinGecko",
                "pages": len(results),
                "rows": sum(len(rows) for rows in results),
                "result": "success",
            },
        )
        return results

    def _traced_fetch(self, trace_id: str | None, page: int) -> list[dict[str, Any]]:
        # Worker threads do not inherit the caller's context variables
        set_trace(trace_id)
        return self.fetch_page(page)
