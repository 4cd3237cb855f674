"""Helpers shared by the domain aggregators."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, ValidationError

from aggregation.adapters.base import AdapterResult, BaseAdapter
from aggregation.services.cache import CacheClass, CacheStore

ModelT = TypeVar("ModelT", bound=BaseModel)


def clean_terms(terms: Optional[Iterable[str]]) -> List[str]:
    """Strip blanks and case-insensitive duplicates, keeping first-seen order."""
    seen: set[str] = set()
    cleaned: List[str] = []
    for term in terms or []:
        text = str(term or "").strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        cleaned.append(text)
    return cleaned


def load_cached(cache: CacheStore, key: str, cache_class: CacheClass, model: Type[ModelT]) -> Optional[List[ModelT]]:
    """Rebuild cached records as fresh model instances; None on miss or empty entry."""
    payload = cache.get(key, cache_class)
    if not payload:
        return None
    try:
        return [model.model_validate(item) for item in payload]
    except (TypeError, ValidationError):
        # entry written by an incompatible version; treat as a miss
        return None


def store_records(cache: CacheStore, key: str, cache_class: CacheClass, records: Sequence[BaseModel]) -> None:
    if not records:
        return
    cache.set(key, [r.model_dump(mode="json") for r in records], cache_class)


async def safe_fetch(
    adapter: BaseAdapter[Any], terms: List[str], limit: int, logger: logging.Logger
) -> AdapterResult[Any]:
    """``adapter.fetch`` with unexpected crashes logged and counted as empty."""
    try:
        return await adapter.fetch(terms, limit)
    except Exception:
        logger.exception("aggregate.adapter_crashed", extra={"provider": adapter.name})
        return AdapterResult(adapter.name, skipped_reason="unexpected_error")


async def fan_out(
    adapters: Sequence[BaseAdapter[Any]],
    terms: List[str],
    limit: int,
    logger: logging.Logger,
) -> List[AdapterResult[Any]]:
    """Run every adapter concurrently and wait for all of them; results keep adapter order."""
    return list(await asyncio.gather(*(safe_fetch(a, terms, limit, logger) for a in adapters)))
