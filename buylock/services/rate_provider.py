# buylock/services/rate_provider.py
import json
import logging
from dataclasses import dataclass
from typing import Callable

import httpx

from buylock.core.client_storage import (
    EXCHANGE_RATES_KEY,
    RATES_TIMESTAMP_KEY,
    ClientStorage,
)
from buylock.services.exchange_rate_service import now_ms
from buylock.utils.currency import BASE_CURRENCY, FALLBACK_RATES

logger = logging.getLogger(__name__)

# Cached client rates are reused for one hour
RATES_MAX_AGE_MS = 3_600_000

RateFetcher = Callable[[], dict[str, float] | None]


@dataclass
class CachedRates:
    rates: dict[str, float]
    fetched_at: int


class HttpRateFetcher:
    """
    Fetch the rate table from the marketplace's own `/exchange-rates`
    endpoint. Non-2xx responses raise `httpx.HTTPStatusError`.
    """

    def __init__(self, client: httpx.Client, url: str):
        self.client = client
        self.url = url

    def __call__(self) -> dict[str, float]:
        response = self.client.get(self.url)
        response.raise_for_status()
        return response.json()


class ExchangeRateProvider:
    """
    Rate table for one client, cached in that client's storage.

    Load flow:
      1. Read cached rates + fetch timestamp from storage.
      2. Cache younger than one hour => use it, no network I/O.
      3. Otherwise call the fetcher once; on success keep and persist
         the new table with a fresh timestamp.
      4. Fetch failure => FALLBACK_RATES (nothing is persisted).

    Storage problems are logged and ignored: the provider always ends up
    with a usable table.
    """

    def __init__(
        self,
        storage: ClientStorage,
        fetcher: RateFetcher,
        clock: Callable[[], int] = now_ms,
    ):
        self.storage = storage
        self.fetcher = fetcher
        self.clock = clock
        self.rates: dict[str, float] = {BASE_CURRENCY: 1}
        self.is_loading = False
        self.loaded = False

    def read_cached(self) -> CachedRates | None:
        """
        Return the persisted table, or None when missing or unreadable.
        """
        try:
            raw_rates = self.storage.get_item(EXCHANGE_RATES_KEY)
            raw_timestamp = self.storage.get_item(RATES_TIMESTAMP_KEY)
        except Exception as e:
            logger.warning(f"Could not read cached exchange rates: {e}")
            return None

        if not raw_rates or not raw_timestamp:
            return None

        try:
            rates = json.loads(raw_rates)
            fetched_at = int(raw_timestamp)
        except ValueError as e:
            logger.warning(f"Ignoring malformed cached exchange rates: {e}")
            return None

        if not isinstance(rates, dict):
            return None
        return CachedRates(rates=rates, fetched_at=fetched_at)

    def _persist(self, rates: dict[str, float], fetched_at: int) -> None:
        try:
            self.storage.set_item(EXCHANGE_RATES_KEY, json.dumps(rates))
            self.storage.set_item(RATES_TIMESTAMP_KEY, str(fetched_at))
        except Exception as e:
            logger.warning(f"Could not cache exchange rates: {e}")

    def load(self) -> dict[str, float]:
        self.is_loading = True
        try:
            cached = self.read_cached()
            if cached is not None and self.clock() - cached.fetched_at < RATES_MAX_AGE_MS:
                self.rates = cached.rates
                return self.rates

            try:
                fresh = self.fetcher()
            except Exception as e:
                logger.error(f"Failed to fetch exchange rates: {e}")
                fresh = None

            if isinstance(fresh, dict) and fresh:
                self.rates = fresh
                self._persist(fresh, self.clock())
            else:
                self.rates = dict(FALLBACK_RATES)
            return self.rates
        finally:
            self.is_loading = False
            self.loaded = True

    def ensure_loaded(self) -> dict[str, float]:
        """Run `load()` once; later calls reuse the in-memory table."""
        if not self.loaded:
            self.load()
        return self.rates
