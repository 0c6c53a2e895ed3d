# buylock/routers/currency.py
import math
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from buylock.core.client_context import (
    get_currency_service,
    get_exchange_rate_service,
)
from buylock.schemas.currency import (
    ConversionRead,
    CurrencyRead,
    CurrencySelect,
    CurrencyState,
)
from buylock.services.currency_service import CurrencyService, UnknownCurrencyError
from buylock.services.exchange_rate_service import ExchangeRateService
from buylock.utils.currency import (
    BASE_CURRENCY,
    SUPPORTED_CURRENCIES,
    format_amount,
    get_currency,
)

router = APIRouter(tags=["Currency"])


def _state(service: CurrencyService) -> CurrencyState:
    return CurrencyState(
        current=CurrencyRead(**asdict(service.current)),
        rates=service.rates,
        is_loading=service.is_loading,
    )


@router.get("/exchange-rates", response_model=dict[str, float])
def get_exchange_rates(
    rate_service: ExchangeRateService = Depends(get_exchange_rate_service),
):
    """
    Current rate table relative to KES.

    - Public endpoint.
    - Cached for one hour; falls back to fixed rates if upstream is down.
    """
    return rate_service.get_rates()


@router.get("/currencies", response_model=list[CurrencyRead])
def list_currencies():
    """
    List supported display currencies (KES first, the default).
    """
    return [CurrencyRead(**asdict(c)) for c in SUPPORTED_CURRENCIES]


@router.get("/currency", response_model=CurrencyState)
def get_my_currency(service: CurrencyService = Depends(get_currency_service)):
    """
    Get the client's selected currency and rate table.

    Requires the X-Guest-Id header.
    """
    return _state(service)


@router.put("/currency", response_model=CurrencyState)
def set_my_currency(
    payload: CurrencySelect,
    service: CurrencyService = Depends(get_currency_service),
):
    """
    Select the client's display currency.

    Returns 400 for unsupported codes.
    """
    try:
        service.set_currency(payload.code.upper())
    except UnknownCurrencyError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return _state(service)


@router.get("/currency/convert", response_model=ConversionRead)
def convert_amount(
    amount: str,
    from_currency: str = BASE_CURRENCY,
    show_symbol: bool = True,
    service: CurrencyService = Depends(get_currency_service),
):
    """
    Convert an amount into the client's currency and format it.
    `show_symbol=false` renders the bare number.

    Non-numeric amounts are not an error: `converted` is null and
    `formatted` renders 0.
    """
    from_code = from_currency.upper()
    if get_currency(from_code) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported currency: {from_currency}",
        )

    converted = service.convert(amount, from_currency=from_code)
    return ConversionRead(
        amount=amount,
        from_currency=from_code,
        currency=service.current.code,
        converted=None if math.isnan(converted) else converted,
        formatted=format_amount(
            converted, service.current.code, show_symbol=show_symbol
        ),
    )
