"""Multi-source aggregation package bootstrap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from .aggregators.financial import FinancialAggregator, calculate_portfolio_performance  # noqa: F401
from .aggregators.news import NewsAggregator
from .aggregators.predictive import PredictiveMarketsAggregator
from .aggregators.social import SocialAggregator
from .services.cache import CacheStore, build_cache_store
from .settings import AggregationSettings, get_settings, reset_settings_cache  # noqa: F401


@dataclass(frozen=True)
class Aggregators:
    cache: CacheStore
    financial: FinancialAggregator
    news: NewsAggregator
    social: SocialAggregator
    predictive: PredictiveMarketsAggregator


def build_aggregators(
    settings: Optional[AggregationSettings] = None,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Aggregators:
    """Construct every aggregator over one shared cache store."""
    cfg = settings or get_settings()
    cache = build_cache_store(cfg)
    return Aggregators(
        cache=cache,
        financial=FinancialAggregator.from_settings(cache, cfg, client=client),
        news=NewsAggregator.from_settings(cache, cfg, client=client),
        social=SocialAggregator.from_settings(cache, cfg, client=client),
        predictive=PredictiveMarketsAggregator.from_settings(cache, cfg, client=client),
    )


__all__ = [
    "AggregationSettings",
    "Aggregators",
    "FinancialAggregator",
    "NewsAggregator",
    "PredictiveMarketsAggregator",
    "SocialAggregator",
    "build_aggregators",
    "calculate_portfolio_performance",
    "get_settings",
    "reset_settings_cache",
]
