# buylock/services/guest_cart_service.py
import json
import logging
import uuid
from typing import Callable

from pydantic import TypeAdapter, ValidationError

from buylock.core.client_storage import GUEST_CART_KEY, ClientStorage
from buylock.schemas.cart import (
    GuestCartItem,
    GuestCartItemCreate,
    GuestCartSummary,
)
from buylock.services.currency_service import CurrencyService
from buylock.utils.currency import parse_amount

logger = logging.getLogger(__name__)

_items_adapter = TypeAdapter(list[GuestCartItem])


class CartStorageError(RuntimeError):
    """The cart could not be saved; the in-memory cart is left unchanged."""


def new_line_id() -> str:
    return uuid.uuid4().hex


class GuestCartStore:
    """
    Cart for a client that has not logged in, kept in client storage.

    Rules:
      - adding a product/service already in the cart sums the quantities
        into the existing line instead of creating a second one
      - quantities are clamped at 0 and zero lines are dropped immediately
      - every mutation rewrites the whole list to storage
      - unreadable stored data is treated as an empty cart
      - a failed write raises CartStorageError and leaves the cart as it was
    """

    def __init__(
        self,
        storage: ClientStorage,
        id_factory: Callable[[], str] = new_line_id,
    ):
        self.storage = storage
        self.id_factory = id_factory
        self.items: list[GuestCartItem] = self.read_persisted() or []

    # ---- internal helpers ----

    def read_persisted(self) -> list[GuestCartItem] | None:
        """
        Load the stored cart, or None when missing or unreadable.
        """
        try:
            raw = self.storage.get_item(GUEST_CART_KEY)
        except Exception as e:
            logger.error(f"Error loading guest cart: {e}")
            return None
        if not raw:
            return None

        try:
            return _items_adapter.validate_python(json.loads(raw))
        except (ValueError, ValidationError) as e:
            logger.error(f"Error loading guest cart: {e}")
            return None

    def _commit(self, items: list[GuestCartItem]) -> None:
        """
        Persist `items` and make them the current cart.

        Raises:
            CartStorageError: if the write fails (current cart untouched).
        """
        payload = json.dumps([item.model_dump(mode="json") for item in items])
        try:
            self.storage.set_item(GUEST_CART_KEY, payload)
        except Exception as e:
            logger.error(f"Error saving guest cart: {e}")
            raise CartStorageError("Guest cart could not be saved") from e
        self.items = items

    def _working_copy(self) -> list[GuestCartItem]:
        return [line.model_copy(deep=True) for line in self.items]

    @staticmethod
    def _find_matching(
        items: list[GuestCartItem], payload: GuestCartItemCreate
    ) -> GuestCartItem | None:
        for line in items:
            if line.product_id and line.product_id == payload.product_id:
                return line
            if line.service_id and line.service_id == payload.service_id:
                return line
        return None

    @staticmethod
    def _unit_price(line: GuestCartItem) -> float:
        for snapshot in (line.product, line.service):
            if snapshot is not None and snapshot.price:
                return parse_amount(snapshot.price) or 0.0
        return 0.0

    # ---- public operations ----

    def add(self, payload: GuestCartItemCreate) -> GuestCartItem:
        """
        Add a product/service line, merging into an existing line for the
        same product or service. Returns the line that now holds the item.
        """
        items = self._working_copy()
        existing = self._find_matching(items, payload)
        if existing is not None:
            existing.quantity += payload.quantity
            line = existing
        else:
            line = GuestCartItem(id=self.id_factory(), **payload.model_dump())
            items.append(line)

        self._commit(items)
        return line

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """
        Set a line's quantity. Values <= 0 remove the line.
        Unknown ids are ignored.
        """
        items = self._working_copy()
        for line in items:
            if line.id == item_id:
                line.quantity = max(0, quantity)
        self._commit([line for line in items if line.quantity > 0])

    def remove(self, item_id: str) -> None:
        self._commit([line for line in self.items if line.id != item_id])

    def clear(self) -> None:
        try:
            self.storage.remove_item(GUEST_CART_KEY)
        except Exception as e:
            logger.error(f"Error clearing guest cart: {e}")
            raise CartStorageError("Guest cart could not be cleared") from e
        self.items = []

    def total(self) -> float:
        return sum(self._unit_price(line) * line.quantity for line in self.items)

    def count(self) -> int:
        return sum(line.quantity for line in self.items)

    def summary(self, currency: CurrencyService) -> GuestCartSummary:
        total = self.total()
        has_products = any(line.product is not None for line in self.items)
        return GuestCartSummary(
            items=list(self.items),
            total_quantity=self.count(),
            total_price=total,
            currency=currency.current.code,
            formatted_total=currency.format(total),
            has_only_services=bool(self.items) and not has_products,
        )
