"""Prediction-market search across Polymarket and Kalshi."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import httpx

from aggregation.adapters.base import BaseAdapter
from aggregation.adapters.predictive import KalshiAdapter, PolymarketAdapter
from aggregation.models.domain import PredictionMarket
from aggregation.services.cache import CacheClass, CacheStore, build_cache_key
from aggregation.settings import AggregationSettings, get_settings
from aggregation.utils.logging import get_logger

from .common import clean_terms, fan_out, load_cached, store_records


def dedupe_markets(markets: Iterable[PredictionMarket]) -> List[PredictionMarket]:
    seen: set[tuple[str, str]] = set()
    unique: List[PredictionMarket] = []
    for market in markets:
        key = (market.platform, market.market_id)
        if key in seen:
            continue
        seen.add(key)
        unique.append(market)
    return unique


class PredictiveMarketsAggregator:
    """Markets matching the keywords, highest volume first. No synthetic data."""

    def __init__(self, cache: CacheStore, adapters: Sequence[BaseAdapter[PredictionMarket]]) -> None:
        self._cache = cache
        self._adapters = list(adapters)
        self._logger = get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        cache: CacheStore,
        settings: Optional[AggregationSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "PredictiveMarketsAggregator":
        cfg = settings or get_settings()
        return cls(cache, [PolymarketAdapter(cfg, client=client), KalshiAdapter(cfg, client=client)])

    async def search_markets(self, keywords: Sequence[str], limit: int = 10) -> List[PredictionMarket]:
        terms = clean_terms(keywords)
        if not terms or limit <= 0:
            return []
        key = build_cache_key("markets", terms, extra=str(limit))
        cached = load_cached(self._cache, key, CacheClass.FINANCIAL, PredictionMarket)
        if cached:
            return cached

        results = await fan_out(self._adapters, terms, limit, self._logger)
        markets = dedupe_markets(m for r in results for m in r.records)
        markets.sort(key=lambda m: m.volume, reverse=True)
        markets = markets[:limit]
        self._logger.info(
            "markets.search.merged",
            extra={
                "keywords": terms,
                "providers": {r.provider: len(r.records) or r.skipped_reason for r in results},
                "markets": len(markets),
            },
        )
        store_records(self._cache, key, CacheClass.FINANCIAL, markets)
        return markets
