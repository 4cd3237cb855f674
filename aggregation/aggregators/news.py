"""News aggregator: parallel fan-out over the feed and credentialed providers."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import httpx

from aggregation.adapters.base import BaseAdapter
from aggregation.adapters.news import (
    GNewsAdapter,
    GoogleNewsRssAdapter,
    GuardianAdapter,
    NewsAPIAdapter,
    NYTimesAdapter,
)
from aggregation.models.domain import Article
from aggregation.services.cache import CacheClass, CacheStore, build_cache_key
from aggregation.settings import AggregationSettings, get_settings
from aggregation.utils.logging import get_logger
from analysis.relevance import calculate_relevance

from .common import clean_terms, fan_out, load_cached, store_records


def dedupe_by_url(articles: Iterable[Article]) -> List[Article]:
    """Keep the first article per lower-cased URL; articles without a URL are dropped."""
    seen: set[str] = set()
    unique: List[Article] = []
    for article in articles:
        key = article.dedup_key
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(article)
    return unique


def merge_articles(result_sets: Iterable[Sequence[Article]], count: int) -> List[Article]:
    """Concatenate, dedupe by URL, sort newest first (stable), truncate."""
    merged = dedupe_by_url(a for batch in result_sets for a in batch)
    merged.sort(key=lambda a: a.published_at, reverse=True)
    return merged[:count]


class NewsAggregator:
    """Merges every configured news source.

    Coverage is only useful across sources, so all adapters run concurrently
    and all results are merged rather than stopping at the first success.
    """

    def __init__(
        self,
        cache: CacheStore,
        feed_adapter: BaseAdapter[Article],
        provider_adapters: Sequence[BaseAdapter[Article]],
    ) -> None:
        self._cache = cache
        self._feed = feed_adapter
        self._providers = list(provider_adapters)
        self._logger = get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        cache: CacheStore,
        settings: Optional[AggregationSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "NewsAggregator":
        cfg = settings or get_settings()
        return cls(
            cache,
            feed_adapter=GoogleNewsRssAdapter(cfg, client=client),
            provider_adapters=[
                GNewsAdapter(cfg, client=client),
                GuardianAdapter(cfg, client=client),
                NYTimesAdapter(cfg, client=client),
                NewsAPIAdapter(cfg, client=client),
            ],
        )

    async def fetch_real_news(self, keywords: Sequence[str], count: int = 10) -> List[Article]:
        terms = clean_terms(keywords)
        if not terms or count <= 0:
            return []
        key = build_cache_key("news", terms, extra=str(count))
        cached = load_cached(self._cache, key, CacheClass.NEWS, Article)
        if cached:
            self._logger.debug("news.cache_hit", extra={"key": key, "articles": len(cached)})
            return cached

        # the feed sits first so its articles win URL ties
        configured = [a for a in self._providers if a.is_configured()]
        results = await fan_out([self._feed, *configured], terms, count, self._logger)
        articles = merge_articles((r.records for r in results), count)
        articles = [
            a if a.relevance is not None else a.model_copy(update={"relevance": calculate_relevance(a, terms)})
            for a in articles
        ]
        self._logger.info(
            "news.fetch.merged",
            extra={
                "keywords": terms,
                "providers": {r.provider: len(r.records) or r.skipped_reason for r in results},
                "articles": len(articles),
            },
        )
        store_records(self._cache, key, CacheClass.NEWS, articles)
        return articles

    async def fetch_news_for_note(self, keywords: Sequence[str], count: int = 10) -> List[Article]:
        """Merged articles ordered by relevance, ready to attach to a note."""
        articles = await self.fetch_real_news(keywords, count)
        return sorted(articles, key=lambda a: a.relevance or 0.0, reverse=True)
