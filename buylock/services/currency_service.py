# buylock/services/currency_service.py
import logging

from buylock.core.client_storage import CURRENCY_KEY, ClientStorage
from buylock.services.rate_provider import ExchangeRateProvider
from buylock.utils.currency import (
    BASE_CURRENCY,
    DEFAULT_CURRENCY,
    Currency,
    convert_amount,
    format_amount,
    get_currency,
)

logger = logging.getLogger(__name__)


class UnknownCurrencyError(ValueError):
    def __init__(self, code: str):
        super().__init__(f"Unsupported currency: {code}")
        self.code = code


class CurrencyService:
    """
    Display-currency state for one client.

    Responsibilities:
      - remember the selected currency (persisted in client storage)
      - convert KES prices into the selected currency
      - format prices for display, never rendering NaN
    """

    def __init__(self, storage: ClientStorage, rate_provider: ExchangeRateProvider):
        self.storage = storage
        self.rate_provider = rate_provider
        self.current: Currency = self._load_saved_currency() or DEFAULT_CURRENCY

    # ---- internal helpers ----

    def _load_saved_currency(self) -> Currency | None:
        try:
            code = self.storage.get_item(CURRENCY_KEY)
        except Exception as e:
            logger.warning(f"Could not read saved currency: {e}")
            return None
        return get_currency(code) if code else None

    # ---- public operations ----

    @property
    def rates(self) -> dict[str, float]:
        return self.rate_provider.ensure_loaded()

    @property
    def is_loading(self) -> bool:
        return self.rate_provider.is_loading

    def set_currency(self, code: str) -> Currency:
        """
        Select a display currency.

        Raises:
            UnknownCurrencyError: if `code` is not a supported currency.
        """
        currency = get_currency(code)
        if currency is None:
            raise UnknownCurrencyError(code)

        self.current = currency
        try:
            self.storage.set_item(CURRENCY_KEY, currency.code)
        except Exception as e:
            logger.warning(f"Could not persist currency preference: {e}")
        return currency

    def convert(
        self,
        amount: str | float | int,
        from_currency: str = BASE_CURRENCY,
        target: Currency | None = None,
    ) -> float:
        target = target or self.current
        # same-currency conversion never reads rates
        rates = {} if from_currency == target.code else self.rates
        return convert_amount(amount, rates, target.code, from_currency)

    def format(
        self,
        amount: str | float | int,
        currency_override: Currency | None = None,
        **options,
    ) -> str:
        """
        Convert a KES amount and render it. `options` are passed to
        `format_amount` (show_symbol, min/max_fraction_digits).
        """
        currency = currency_override or self.current
        return format_amount(self.convert(amount, target=currency), currency.code, **options)
