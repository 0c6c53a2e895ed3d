# buylock/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Optional env vars (.env):
      - DATABASE_URL (defaults to a local SQLite file)
      - JWT_SECRET (signing secret for customer access tokens)
      - EXCHANGE_RATE_API_URL (upstream rate source, base currency KES)
    """

    PROJECT_NAME: str = "BuyLock Marketplace API"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = "sqlite:///./buylock.db"

    # JWT verification for authenticated customers
    JWT_SECRET: str = "change-me"
    JWT_ALG: str = "HS256"

    # Exchange rates
    EXCHANGE_RATE_API_URL: str = "https://api.exchangerate-api.com/v4/latest/KES"
    EXCHANGE_RATE_CACHE_TTL_MS: int = 3_600_000
    HTTP_TIMEOUT_SECONDS: float = 10.0

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
