import os

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from buylock.core.client_context import get_exchange_rate_service
from buylock.core.client_storage import InMemoryStorage
from buylock.database import get_session
from buylock.main import app
from buylock.utils.currency import FALLBACK_RATES

LIVE_RATES = {"KES": 1, "USD": 0.0077, "EUR": 0.0071, "GBP": 0.0061, "ZAR": 0.14}


class FailingStorage:
    """ClientStorage whose every call blows up."""

    def get_item(self, key):
        raise OSError("storage unavailable")

    def set_item(self, key, value):
        raise OSError("storage unavailable")

    def remove_item(self, key):
        raise OSError("storage unavailable")


class FakeRateService:
    """Stand-in for ExchangeRateService; set `fail` to simulate an outage."""

    def __init__(self, rates=None):
        self.rates = dict(rates or LIVE_RATES)
        self.calls = 0
        self.fail = False

    def fetch_rates(self):
        self.calls += 1
        if self.fail:
            raise httpx.ConnectError("upstream down")
        return dict(self.rates)

    def get_rates(self):
        try:
            return self.fetch_rates()
        except httpx.HTTPError:
            return dict(FALLBACK_RATES)


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def rate_service():
    return FakeRateService()


@pytest.fixture
def client(engine, rate_service):
    def _session_override():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_exchange_rate_service] = lambda: rate_service
    yield TestClient(app)
    app.dependency_overrides.clear()
