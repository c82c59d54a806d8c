import os
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_WATCHLIST = "RELIANCE.BSE,TCS.BSE,INFY.BSE,HDFCBANK.BSE,SBIN.BSE"


def _split_csv(raw: str) -> list[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]


def cors_origins_from_env() -> list[str]:
    """CORS origins alone, read without validating the rest of the settings."""
    return _split_csv(os.getenv("CORS_ORIGINS", "*")) or ["*"]


class Settings(BaseModel):
    ALPHA_VANTAGE_KEY: str | None = None
    NEWS_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    JWT_SECRET: str | None = None
    STOCK_WATCHLIST: list[str] = Field(default_factory=lambda: _split_csv(DEFAULT_WATCHLIST))
    STOCK_QUOTA_PER_MINUTE: int = 5
    STOCK_PACING_POLICY: Literal["linear", "token_bucket"] = "linear"
    UPSTREAM_TIMEOUT_SEC: float = 10.0
    AUTH_USERS_FILE: str | None = None
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])

    @field_validator("STOCK_QUOTA_PER_MINUTE", "UPSTREAM_TIMEOUT_SEC")
    @classmethod
    def _positive(cls, value):
        if value <= 0:
            raise ValueError("must be greater than zero")
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        watchlist = _split_csv(os.getenv("STOCK_WATCHLIST", DEFAULT_WATCHLIST))
        if not watchlist:
            watchlist = _split_csv(DEFAULT_WATCHLIST)

        raw = {
            "ALPHA_VANTAGE_KEY": os.getenv("ALPHA_VANTAGE_KEY") or None,
            "NEWS_API_KEY": os.getenv("NEWS_API_KEY") or None,
            "GEMINI_API_KEY": os.getenv("GEMINI_API_KEY") or None,
            "JWT_SECRET": os.getenv("JWT_SECRET") or None,
            "STOCK_WATCHLIST": watchlist,
            "AUTH_USERS_FILE": os.getenv("AUTH_USERS_FILE") or None,
            "CORS_ORIGINS": cors_origins_from_env(),
        }
        # unset numeric/policy values fall back to the model defaults
        for name in ("STOCK_QUOTA_PER_MINUTE", "STOCK_PACING_POLICY", "UPSTREAM_TIMEOUT_SEC"):
            value = os.getenv(name)
            if value:
                raw[name] = value.strip()

        return cls.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
