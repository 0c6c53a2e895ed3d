# buylock/core/client_storage.py
"""
Durable per-client key/value storage.

The pricing and guest-cart services only talk to the small `ClientStorage`
interface (get/set/remove string values), so they can run against:

  - InMemoryStorage: a plain dict, used by tests and scripts.
  - DatabaseStorage: rows in `client_storage`, one namespace per guest id.

Storage keys used by the services live here as well.
"""

from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from buylock.repositories.storage_repo import StorageRepository

CURRENCY_KEY = "buylock_currency"
EXCHANGE_RATES_KEY = "buylock_exchange_rates"
RATES_TIMESTAMP_KEY = "buylock_rates_timestamp"
GUEST_CART_KEY = "buylock_guest_cart"


class ClientStorage(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


class DatabaseStorage:
    """
    ClientStorage backed by the `client_storage` table.

    Every write commits immediately, so a mutation is durable before the
    request returns. A failed write rolls the session back and re-raises,
    so the session stays usable. Two clients sharing a guest id overwrite
    each other (last write wins).
    """

    def __init__(
        self,
        session: Session,
        namespace: str,
        repo: StorageRepository | None = None,
    ):
        self.session = session
        self.namespace = namespace
        self.repo = repo or StorageRepository()

    def get_item(self, key: str) -> str | None:
        entry = self.repo.get(self.session, self.namespace, key)
        return entry.value if entry else None

    def set_item(self, key: str, value: str) -> None:
        try:
            self.repo.upsert(self.session, self.namespace, key, value)
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def remove_item(self, key: str) -> None:
        try:
            self.repo.delete(self.session, self.namespace, key)
        except SQLAlchemyError:
            self.session.rollback()
            raise
