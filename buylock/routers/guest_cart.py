# buylock/routers/guest_cart.py
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException, status

from buylock.core.auth import require_guest
from buylock.core.client_context import get_currency_service, get_guest_cart
from buylock.schemas.cart import (
    GuestCartItemCreate,
    GuestCartItemUpdate,
    GuestCartSummary,
)
from buylock.services.currency_service import CurrencyService
from buylock.services.guest_cart_service import CartStorageError, GuestCartStore

router = APIRouter(
    prefix="/guest-cart",
    tags=["Guest cart"],
    dependencies=[Depends(require_guest)],
)


@contextmanager
def _saving_cart():
    """Map a failed cart write to 503; the stored cart is unchanged."""
    try:
        yield
    except CartStorageError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e),
        )


@router.get("", response_model=GuestCartSummary)
def get_guest_cart_summary(
    cart: GuestCartStore = Depends(get_guest_cart),
    currency: CurrencyService = Depends(get_currency_service),
):
    """
    Get the guest's cart summary.

    Auth:
      - Guests only (X-Guest-Id header, no bearer token).
      - Logged-in customers are forbidden.
    """
    return cart.summary(currency)


@router.post("", response_model=GuestCartSummary)
def add_to_guest_cart(
    payload: GuestCartItemCreate,
    cart: GuestCartStore = Depends(get_guest_cart),
    currency: CurrencyService = Depends(get_currency_service),
):
    """
    Add a product or service to the guest cart.

    Adding something already in the cart increases that line's quantity.
    Returns the updated cart summary.
    """
    with _saving_cart():
        cart.add(payload)
    return cart.summary(currency)


@router.patch("/{item_id}", response_model=GuestCartSummary)
def update_guest_cart_item(
    item_id: str,
    payload: GuestCartItemUpdate,
    cart: GuestCartStore = Depends(get_guest_cart),
    currency: CurrencyService = Depends(get_currency_service),
):
    """
    Update quantity of a cart line. Quantities <= 0 remove the line.

    Returns the updated cart summary.
    """
    with _saving_cart():
        cart.update_quantity(item_id, payload.quantity)
    return cart.summary(currency)


@router.delete("/{item_id}", response_model=GuestCartSummary)
def remove_guest_cart_item(
    item_id: str,
    cart: GuestCartStore = Depends(get_guest_cart),
    currency: CurrencyService = Depends(get_currency_service),
):
    """
    Remove a line from the cart (no-op if it is not there).

    Returns the updated cart summary.
    """
    with _saving_cart():
        cart.remove(item_id)
    return cart.summary(currency)


@router.delete("", response_model=GuestCartSummary)
def clear_guest_cart(
    cart: GuestCartStore = Depends(get_guest_cart),
    currency: CurrencyService = Depends(get_currency_service),
):
    """
    Clear the entire cart.

    Returns an empty cart summary.
    """
    with _saving_cart():
        cart.clear()
    return cart.summary(currency)
