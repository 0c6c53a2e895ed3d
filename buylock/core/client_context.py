# buylock/core/client_context.py
"""
Per-request service objects for a storefront client.

Each request builds its services from the caller's storage namespace
(the `X-Guest-Id` header); nothing client-specific lives in module state.
The only process-wide object is the ExchangeRateService created in the
application lifespan.
"""

from fastapi import Depends, Header, HTTPException, Request, status
from sqlmodel import Session

from buylock.core.client_storage import DatabaseStorage
from buylock.database import get_session
from buylock.services.currency_service import CurrencyService
from buylock.services.exchange_rate_service import ExchangeRateService
from buylock.services.guest_cart_service import GuestCartStore
from buylock.services.rate_provider import ExchangeRateProvider

MAX_GUEST_ID_LENGTH = 100


def get_exchange_rate_service(request: Request) -> ExchangeRateService:
    return request.app.state.exchange_rate_service


def get_guest_id(x_guest_id: str | None = Header(default=None)) -> str:
    """
    Read the client's storage namespace from the X-Guest-Id header.

    Raises:
        HTTPException(400): if the header is missing, blank or too long.
    """
    guest_id = (x_guest_id or "").strip()
    if not guest_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Guest-Id header is required",
        )
    if len(guest_id) > MAX_GUEST_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Guest-Id header is too long",
        )
    return guest_id


def get_client_storage(
    guest_id: str = Depends(get_guest_id),
    session: Session = Depends(get_session),
) -> DatabaseStorage:
    return DatabaseStorage(session, guest_id)


def get_currency_service(
    storage: DatabaseStorage = Depends(get_client_storage),
    rate_service: ExchangeRateService = Depends(get_exchange_rate_service),
) -> CurrencyService:
    # rates load lazily; fetch_rates raises instead of returning fallback rates
    provider = ExchangeRateProvider(storage, fetcher=rate_service.fetch_rates)
    return CurrencyService(storage, provider)


def get_guest_cart(
    storage: DatabaseStorage = Depends(get_client_storage),
) -> GuestCartStore:
    return GuestCartStore(storage)
