"""Social aggregator: RSS mirror waterfall alongside the X API, with sentiment."""

from __future__ import annotations

import asyncio
import random
from datetime import timedelta
from typing import Iterable, List, Optional, Sequence

import httpx

from aggregation.adapters.base import AdapterResult, BaseAdapter
from aggregation.adapters.social import NitterRssAdapter, RedditRssAdapter, TwitterApiAdapter
from aggregation.models.domain import (
    PlatformResults,
    ResultOrigin,
    SocialAuthor,
    SocialPost,
    SocialSearchConfig,
    SocialSearchResult,
    utcnow,
)
from aggregation.services.cache import CacheClass, CacheStore, build_cache_key
from aggregation.settings import AggregationSettings, get_settings
from aggregation.utils.logging import get_logger
from analysis.sentiment import SentimentAnalyzer

from .common import clean_terms, load_cached, safe_fetch, store_records

SYNTHETIC_SOURCE = "synthetic"
SYNTHETIC_USERS = ("@techguru", "@financeexpert", "@newsanalyst", "@marketwatch", "@cryptotrader")
REDDIT_SYNTHETIC_MAX = 5


def dedupe_by_prefix(posts: Iterable[SocialPost]) -> List[SocialPost]:
    seen: set[str] = set()
    unique: List[SocialPost] = []
    for post in posts:
        key = post.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(post)
    return unique


class SocialAggregator:
    """X and Reddit posts scored for sentiment.

    Nitter and Reddit RSS form a waterfall (first host with any items wins)
    that runs concurrently with the X API. When nothing real comes back the
    result is synthetic, tagged as such and never cached.
    """

    def __init__(
        self,
        cache: CacheStore,
        rss_adapters: Sequence[BaseAdapter[SocialPost]],
        api_adapter: Optional[BaseAdapter[SocialPost]] = None,
        reddit_adapter: Optional[BaseAdapter[SocialPost]] = None,
        *,
        analyzer: Optional[SentimentAnalyzer] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._cache = cache
        self._rss = list(rss_adapters)
        self._api = api_adapter
        self._reddit = reddit_adapter
        self._analyzer = analyzer or SentimentAnalyzer()
        self._rng = rng or random.Random()
        self._logger = get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        cache: CacheStore,
        settings: Optional[AggregationSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
        analyzer: Optional[SentimentAnalyzer] = None,
        rng: Optional[random.Random] = None,
    ) -> "SocialAggregator":
        cfg = settings or get_settings()
        reddit = RedditRssAdapter(cfg, client=client)
        return cls(
            cache,
            rss_adapters=[NitterRssAdapter(cfg, client=client), reddit],
            api_adapter=TwitterApiAdapter(cfg, client=client),
            reddit_adapter=reddit,
            analyzer=analyzer,
            rng=rng,
        )

    async def search_tweets(self, keywords: Sequence[str], max_results: int = 50) -> SocialSearchResult:
        terms = clean_terms(keywords)
        if not terms or max_results <= 0:
            return SocialSearchResult(origin=ResultOrigin.EMPTY)
        key = build_cache_key("social", terms, extra=str(max_results))
        cached = load_cached(self._cache, key, CacheClass.NEWS, SocialPost)
        if cached:
            self._logger.debug("social.cache_hit", extra={"key": key, "posts": len(cached)})
            return self._real_result(cached)

        rss_posts, api_posts = await asyncio.gather(
            self._rss_waterfall(terms, max_results),
            self._api_posts(terms, max_results),
        )
        merged = dedupe_by_prefix([*rss_posts, *api_posts])
        merged.sort(key=lambda p: p.created_at, reverse=True)
        posts = self._analyzer.annotate(merged[:max_results])
        if not posts:
            self._logger.warning("social.synthetic_fallback", extra={"keywords": terms})
            return self._synthetic_result(terms, max_results, prefix="tweet")

        self._logger.info(
            "social.search.merged",
            extra={"keywords": terms, "rss": len(rss_posts), "api": len(api_posts), "posts": len(posts)},
        )
        store_records(self._cache, key, CacheClass.NEWS, posts)
        return self._real_result(posts)

    async def search_reddit(self, keywords: Sequence[str], max_results: int = 30) -> SocialSearchResult:
        """Reddit-only search; falls back to at most five synthetic posts."""
        terms = clean_terms(keywords)
        if not terms or max_results <= 0 or self._reddit is None:
            return SocialSearchResult(origin=ResultOrigin.EMPTY)
        key = build_cache_key("reddit", terms, extra=str(max_results))
        cached = load_cached(self._cache, key, CacheClass.NEWS, SocialPost)
        if cached:
            return self._real_result(cached)

        result = await safe_fetch(self._reddit, terms, max_results, self._logger)
        posts = self._analyzer.annotate(list(result.records)[:max_results])
        if not posts:
            self._logger.warning("social.reddit.synthetic_fallback", extra={"keywords": terms})
            return self._synthetic_result(terms, min(REDDIT_SYNTHETIC_MAX, max_results), prefix="reddit")
        store_records(self._cache, key, CacheClass.NEWS, posts)
        return self._real_result(posts)

    async def search_all_platforms(self, config: SocialSearchConfig, max_results: int = 50) -> PlatformResults:
        """Run the X and Reddit searches for each enabled platform."""
        results = PlatformResults()
        x_terms = clean_terms(config.x.keywords)
        reddit_terms = clean_terms(config.reddit.keywords) or x_terms
        if config.x.enabled and x_terms:
            results.x = await self.search_tweets(x_terms, max_results)
        if config.reddit.enabled and reddit_terms:
            results.reddit = await self.search_reddit(reddit_terms, max_results)
        return results

    async def _rss_waterfall(self, terms: List[str], limit: int) -> List[SocialPost]:
        for adapter in self._rss:
            result: AdapterResult[SocialPost] = await safe_fetch(adapter, terms, limit, self._logger)
            if result.ok:
                return list(result.records)
            self._logger.info(
                "social.rss.fallthrough", extra={"provider": result.provider, "reason": result.skipped_reason}
            )
        return []

    async def _api_posts(self, terms: List[str], limit: int) -> List[SocialPost]:
        if self._api is None:
            return []
        result = await safe_fetch(self._api, terms, limit, self._logger)
        return list(result.records)

    def _real_result(self, posts: List[SocialPost]) -> SocialSearchResult:
        return SocialSearchResult(
            tweets=posts,
            sentiment=self._analyzer.summarize_posts(posts),
            origin=ResultOrigin.REAL,
        )

    def _synthetic_result(self, terms: List[str], count: int, *, prefix: str) -> SocialSearchResult:
        posts = self._analyzer.annotate(self.synthetic_posts(terms, count, prefix=prefix))
        return SocialSearchResult(
            tweets=posts,
            sentiment=self._analyzer.summarize_posts(posts),
            origin=ResultOrigin.SYNTHETIC,
            low_confidence=True,
        )

    def synthetic_posts(self, terms: Sequence[str], count: int, *, prefix: str = "tweet") -> List[SocialPost]:
        """Placeholder posts mentioning the search terms, drawn from the injected RNG."""
        rng = self._rng
        now = utcnow()
        posts: List[SocialPost] = []
        for idx in range(count):
            keyword = rng.choice(list(terms))
            tag = "".join(keyword.split())
            marker = "🚀" if rng.random() > 0.5 else "📈"
            created = now - timedelta(seconds=rng.uniform(0, 24 * 60 * 60))
            posts.append(
                SocialPost(
                    id=f"{prefix}_{int(now.timestamp())}_{idx}",
                    text=f"Just read about {keyword}. This is really interesting! #{tag} {marker}",
                    author=SocialAuthor(username=rng.choice(SYNTHETIC_USERS), verified=rng.random() > 0.5),
                    created_at=created,
                    metrics={
                        "likes": rng.randrange(10000),
                        "retweets": rng.randrange(5000),
                        "replies": rng.randrange(1000),
                    },
                    source=SYNTHETIC_SOURCE,
                )
            )
        return posts
