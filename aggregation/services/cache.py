"""TTL cache for fetched domain payloads with pluggable storage (memory or Redis)."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Protocol, Tuple

import redis
from redis.exceptions import RedisError

from aggregation.settings import AggregationSettings
from aggregation.utils.logging import get_logger

ClockFn = Callable[[], float]


def _now_ms() -> float:
    return time.time() * 1000.0


class CacheClass(str, Enum):
    """TTL classes. Social payloads share the long-lived NEWS class."""

    FINANCIAL = "financial"
    NEWS = "news"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    payload: Any
    fetched_at: float


def build_cache_key(domain: str, params: Iterable[str], *, upper: bool = False, extra: str = "") -> str:
    """Deterministic key from a domain and its sorted, case-normalized params."""
    normalized = sorted({(p.strip().upper() if upper else p.strip().lower()) for p in params if p and p.strip()})
    key = f"{domain}:{','.join(normalized)}"
    return f"{key}|{extra}" if extra else key


class CacheStore(Protocol):
    def get(self, key: str, cache_class: CacheClass) -> Any: ...  # noqa: D401
    def set(self, key: str, payload: Any, cache_class: CacheClass) -> None: ...  # noqa: D401
    def clear(self, cache_class: Optional[CacheClass] = None) -> None: ...  # noqa: D401


class _TTLPolicy:
    def __init__(self, ttl_ms: Dict[CacheClass, float], clock: ClockFn) -> None:
        self._ttl_ms = ttl_ms
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def is_fresh(self, fetched_at: float, cache_class: CacheClass) -> bool:
        return self._clock() - fetched_at <= self._ttl_ms[cache_class]


class InMemoryCacheStore:
    """Process-local cache; expiry is checked lazily on read."""

    def __init__(
        self,
        *,
        financial_ttl_ms: float = 300_000,
        news_ttl_ms: float = 900_000,
        clock: ClockFn = _now_ms,
    ) -> None:
        self._policy = _TTLPolicy({CacheClass.FINANCIAL: financial_ttl_ms, CacheClass.NEWS: news_ttl_ms}, clock)
        self._entries: Dict[Tuple[CacheClass, str], CacheEntry] = {}

    @classmethod
    def from_settings(cls, settings: AggregationSettings, clock: ClockFn = _now_ms) -> "InMemoryCacheStore":
        return cls(
            financial_ttl_ms=settings.financial_cache_ttl_ms,
            news_ttl_ms=settings.news_cache_ttl_ms,
            clock=clock,
        )

    def get(self, key: str, cache_class: CacheClass) -> Any:
        entry = self._entries.get((cache_class, key))
        if entry is None:
            return None
        if not self._policy.is_fresh(entry.fetched_at, cache_class):
            self._entries.pop((cache_class, key), None)
            return None
        return entry.payload

    def set(self, key: str, payload: Any, cache_class: CacheClass) -> None:
        self._entries[(cache_class, key)] = CacheEntry(key=key, payload=payload, fetched_at=self._policy.now())

    def clear(self, cache_class: Optional[CacheClass] = None) -> None:
        if cache_class is None:
            self._entries.clear()
            return
        for stored_class, key in list(self._entries):
            if stored_class is cache_class:
                del self._entries[(stored_class, key)]

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._entries)


class _RedisLikeClient(Protocol):
    def get(self, name: str) -> Any: ...
    def set(self, name: str, value: str) -> Any: ...
    def delete(self, *names: str) -> int: ...
    def scan_iter(self, match: str | None = None) -> Iterable[Any]: ...


class RedisCacheStore:
    """Redis-backed cache.

    Entries are stored as ``{"payload": ..., "fetched_at": <ms>}`` JSON without a
    Redis-side expiry, so freshness follows the same lazy rule as the in-memory
    store: a stale entry is deleted on the read that finds it.

    Redis failures degrade to a cache miss (reads) or a no-op (writes).
    """

    def __init__(
        self,
        client: _RedisLikeClient,
        *,
        prefix: str = "aggcache",
        financial_ttl_ms: float = 300_000,
        news_ttl_ms: float = 900_000,
        clock: ClockFn = _now_ms,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._policy = _TTLPolicy({CacheClass.FINANCIAL: financial_ttl_ms, CacheClass.NEWS: news_ttl_ms}, clock)
        self._logger = get_logger(__name__)

    def _format(self, key: str, cache_class: CacheClass) -> str:
        return f"{self._prefix}:{cache_class.value}:{key}"

    def get(self, key: str, cache_class: CacheClass) -> Any:
        name = self._format(key, cache_class)
        try:
            raw = self._client.get(name)
        except RedisError as exc:
            self._logger.warning("cache.redis.get_failed", extra={"key": name, "error": str(exc)})
            return None
        if not raw:
            return None
        try:
            entry = json.loads(raw)
            fetched_at = float(entry["fetched_at"])
        except (ValueError, KeyError, TypeError):
            self._delete(name)
            return None
        if not self._policy.is_fresh(fetched_at, cache_class):
            self._delete(name)
            return None
        return entry.get("payload")

    def set(self, key: str, payload: Any, cache_class: CacheClass) -> None:
        name = self._format(key, cache_class)
        body = json.dumps({"payload": payload, "fetched_at": self._policy.now()}, default=str)
        try:
            self._client.set(name, body)
        except RedisError as exc:
            self._logger.warning("cache.redis.set_failed", extra={"key": name, "error": str(exc)})

    def clear(self, cache_class: Optional[CacheClass] = None) -> None:
        pattern = f"{self._prefix}:{cache_class.value}:*" if cache_class else f"{self._prefix}:*"
        try:
            names = list(self._client.scan_iter(match=pattern))
            if names:
                self._client.delete(*names)
        except RedisError as exc:
            self._logger.warning("cache.redis.clear_failed", extra={"pattern": pattern, "error": str(exc)})

    def _delete(self, name: str) -> None:
        try:
            self._client.delete(name)
        except RedisError:
            return


def build_cache_store(settings: AggregationSettings, *, clock: ClockFn = _now_ms) -> CacheStore:
    """Pick Redis when configured and reachable; otherwise the in-memory store."""
    logger = get_logger(__name__)
    if settings.cache_backend != "redis" or not settings.cache_redis_url:
        return InMemoryCacheStore.from_settings(settings, clock=clock)
    client = redis.Redis.from_url(settings.cache_redis_url, socket_connect_timeout=0.2, decode_responses=True)
    try:
        client.ping()
    except RedisError:
        logger.info("cache.store.memory", extra={"reason": "redis_ping_failed"})
        return InMemoryCacheStore.from_settings(settings, clock=clock)
    logger.info("cache.store.redis", extra={"redis_url": settings.cache_redis_url})
    return RedisCacheStore(
        client,
        financial_ttl_ms=settings.financial_cache_ttl_ms,
        news_ttl_ms=settings.news_cache_ttl_ms,
        clock=clock,
    )
