# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string; sqlite:/// works for local runs)
      - JWT_SECRET (signing secret shared with the identity provider)

    Optional:
      - FLOOR_ORDER_TOTAL_AT_ZERO: clamp post-discount totals at 0.
        Off by default: a fixed coupon larger than the subtotal produces a
        negative total.
      - DEFAULT_PAYMENT_METHOD: used when checkout omits payment_method.
    """

    PROJECT_NAME: str = "Storefront Checkout API"
    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str

    # JWT verification (backend-side only, tokens are issued elsewhere)
    JWT_SECRET: str
    JWT_ALG: str = "HS256"

    # Checkout behaviour toggles
    FLOOR_ORDER_TOTAL_AT_ZERO: bool = False
    DEFAULT_PAYMENT_METHOD: str = "COD"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
