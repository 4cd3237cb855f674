"""Configuration models for the aggregation layer."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import (
    Field,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    ValidationError,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class AggregationSettings(BaseSettings):
    """Environment settings for provider credentials, cache TTLs and timeouts.

    Every credential is optional: an absent key disables the matching provider.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Financial
    alpha_vantage_api_key: Optional[SecretStr] = Field(
        None, alias="ALPHA_VANTAGE_API_KEY", description="Alpha Vantage API key."
    )
    finnhub_api_key: Optional[SecretStr] = Field(None, alias="FINNHUB_API_KEY", description="Finnhub API key.")

    # News
    gnews_api_key: Optional[SecretStr] = Field(None, alias="GNEWS_API_KEY", description="GNews API key.")
    guardian_api_key: Optional[SecretStr] = Field(None, alias="GUARDIAN_API_KEY", description="Guardian API key.")
    nyt_api_key: Optional[SecretStr] = Field(None, alias="NYT_API_KEY", description="New York Times API key.")
    news_api_key: Optional[SecretStr] = Field(None, alias="NEWS_API_KEY", description="NewsAPI.org key.")
    news_api_endpoint: str = Field(
        "https://newsapi.org/v2/everything",
        alias="NEWS_API_ENDPOINT",
        description="NewsAPI endpoint",
    )
    news_language: str = Field("en", alias="NEWS_LANGUAGE", description="Language filter for news providers.")

    # Social
    twitter_bearer_token: Optional[SecretStr] = Field(
        None, alias="TWITTER_BEARER_TOKEN", description="X/Twitter API v2 bearer token."
    )
    nitter_rss_base: str = Field(
        "https://nitter.poast.org",
        alias="NITTER_RSS_BASE",
        description="Host of the Nitter syndication mirror.",
    )
    reddit_rss_base: str = Field(
        "https://www.reddit.com",
        alias="REDDIT_RSS_BASE",
        description="Host of the Reddit search feed used as social fallback.",
    )

    # Predictive markets
    polymarket_endpoint: str = Field(
        "https://gamma-api.polymarket.com/markets",
        alias="POLYMARKET_ENDPOINT",
        description="Polymarket public markets endpoint.",
    )
    kalshi_endpoint: str = Field(
        "https://api.elections.kalshi.com/trade-api/v2/markets",
        alias="KALSHI_ENDPOINT",
        description="Kalshi public markets endpoint.",
    )

    # Cache
    financial_cache_ttl_ms: PositiveInt = Field(
        300_000, alias="FINANCIAL_CACHE_TTL_MS", description="TTL of financial cache entries (ms)."
    )
    news_cache_ttl_ms: PositiveInt = Field(
        900_000, alias="NEWS_CACHE_TTL_MS", description="TTL of news/social cache entries (ms)."
    )
    cache_backend: Literal["memory", "redis"] = Field("memory", alias="CACHE_BACKEND", description="Cache backend.")
    cache_redis_url: Optional[str] = Field(None, alias="CACHE_REDIS_URL", description="Redis DSN for the cache.")

    # Network
    provider_timeout_seconds: PositiveFloat = Field(
        10.0, alias="PROVIDER_TIMEOUT_SECONDS", description="Timeout for feed/news/social calls (s)."
    )
    quote_timeout_seconds: PositiveFloat = Field(
        8.0, alias="QUOTE_TIMEOUT_SECONDS", description="Timeout for per-symbol quote calls (s)."
    )
    provider_call_delay_ms: int = Field(
        150,
        ge=0,
        alias="PROVIDER_CALL_DELAY_MS",
        description="Pause between consecutive per-symbol calls to one provider (ms).",
    )

    # Logging
    log_level: str = Field("INFO", alias="LOG_LEVEL", description="Root log level.")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit logs as JSON lines.")

    @field_validator(
        "alpha_vantage_api_key",
        "finnhub_api_key",
        "gnews_api_key",
        "guardian_api_key",
        "nyt_api_key",
        "news_api_key",
        "twitter_bearer_token",
        mode="before",
    )
    @classmethod
    def _blank_key_is_absent(cls, value: Any) -> Any:
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("nitter_rss_base", "reddit_rss_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        host = value.strip().rstrip("/")
        if "://" not in host:
            raise ValueError("feed host must include a scheme, e.g. https://")
        return host

    @field_validator("cache_redis_url")
    @classmethod
    def _validate_redis_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        if "://" not in value:
            raise ValueError("CACHE_REDIS_URL must be a valid DSN.")
        return value.strip()

    @field_validator("provider_timeout_seconds", "quote_timeout_seconds")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value > 30:
            raise ValueError("provider timeouts must not exceed 30 seconds.")
        return value

    def credential(self, field_name: str) -> Optional[str]:
        """Return the plain value of a credential field, or None when unset."""
        secret = getattr(self, field_name)
        if secret is None:
            return None
        return secret.get_secret_value()


@lru_cache()
def get_settings() -> AggregationSettings:
    """Return the AggregationSettings built from the environment."""
    try:
        return AggregationSettings()
    except ValidationError as exc:
        raise RuntimeError(f"Environment validation failed: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the settings LRU cache (for tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
