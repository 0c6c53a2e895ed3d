# buylock/main.py
from contextlib import asynccontextmanager
import logging

import httpx
from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from buylock.core.config import get_settings
from buylock.database import create_db_and_tables
from buylock.services.exchange_rate_service import ExchangeRateService

# Import models so SQLModel metadata is populated before create_all()
from buylock.models import storage as _storage_models  # noqa: F401

# Routers
from buylock.routers.currency import router as currency_router
from buylock.routers.guest_cart import router as guest_cart_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.
      - Create the shared HTTP client and exchange-rate service.

    Shutdown:
      - Close the HTTP client.
    """
    logger.info("🔄 Startup: Connecting to database...")
    try:
        create_db_and_tables()
        logger.info("✅ Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"❌ Startup: DB connection FAILED: {e}")
        raise

    http_client = httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)
    app.state.exchange_rate_service = ExchangeRateService(
        http_client,
        settings.EXCHANGE_RATE_API_URL,
        cache_ttl_ms=settings.EXCHANGE_RATE_CACHE_TTL_MS,
    )
    try:
        yield
    finally:
        http_client.close()
        logger.info("👋 Shutdown: HTTP client closed.")


app = FastAPI(
    title=settings.PROJECT_NAME or "BuyLock Marketplace API",
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Versioned API prefix, e.g. /api/v1
app.include_router(currency_router, prefix=settings.API_V1_STR)
app.include_router(guest_cart_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "buylock-backend"}
