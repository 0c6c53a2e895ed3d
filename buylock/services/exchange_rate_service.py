# buylock/services/exchange_rate_service.py
import logging
import time
from typing import Callable

import httpx

from buylock.utils.currency import (
    BASE_CURRENCY,
    FALLBACK_RATES,
    SUPPORTED_CURRENCIES,
)

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class ExchangeRateService:
    """
    Upstream exchange rates for the marketplace.

    Responsibilities:
      - fetch the latest KES-based rates from the public rate API
      - keep only the currencies the storefront can display
      - memoize the result for `cache_ttl_ms` (one hour by default)
      - never fail: any upstream problem yields FALLBACK_RATES

    Fallback results are not memoized, so the next call retries upstream.
    """

    def __init__(
        self,
        client: httpx.Client,
        api_url: str,
        cache_ttl_ms: int = 3_600_000,
        clock: Callable[[], int] = now_ms,
    ):
        self.client = client
        self.api_url = api_url
        self.cache_ttl_ms = cache_ttl_ms
        self.clock = clock
        self._cached: dict[str, float] | None = None
        self._cached_at: int = 0

    # ---- internal helpers ----

    def _fetch_upstream(self) -> dict[str, float]:
        response = self.client.get(self.api_url)
        if response.status_code >= 400:
            raise RuntimeError(f"API responded with status: {response.status_code}")

        upstream = response.json().get("rates") or {}

        # KES is our base currency, so it's always 1
        rates: dict[str, float] = {BASE_CURRENCY: 1}
        for currency in SUPPORTED_CURRENCIES:
            if currency.code == BASE_CURRENCY:
                continue
            value = upstream.get(currency.code)
            if value:
                rates[currency.code] = float(value)
        return rates

    # ---- public operations ----

    def fetch_rates(self) -> dict[str, float]:
        """
        Return the live rate table (code -> multiplier relative to KES),
        memoized for `cache_ttl_ms`.

        Raises:
            httpx.HTTPError, RuntimeError, ValueError, TypeError, AttributeError:
                if upstream is unreachable or answers with something unusable.
        """
        now = self.clock()
        if self._cached is not None and now - self._cached_at < self.cache_ttl_ms:
            return dict(self._cached)

        rates = self._fetch_upstream()
        self._cached = rates
        self._cached_at = now
        logger.info(f"Exchange rates refreshed for {sorted(rates)}")
        return dict(rates)

    def get_rates(self) -> dict[str, float]:
        """
        Live rates, or FALLBACK_RATES when upstream fails. Never raises.
        """
        try:
            return self.fetch_rates()
        except (httpx.HTTPError, RuntimeError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Failed to fetch exchange rates: {e}")
            return dict(FALLBACK_RATES)
