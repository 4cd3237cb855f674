"""Social adapters: Nitter RSS mirror, Reddit search RSS, X/Twitter API v2."""

from __future__ import annotations

import html
import re
from abc import abstractmethod
from typing import Any, Dict, List, Optional

from aggregation.models.domain import SocialAuthor, SocialPost, utcnow

from .base import BaseAdapter, MalformedPayload, parse_datetime

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def plain_text(value: Any) -> str:
    """Strip markup from feed content."""
    text = html.unescape(_TAG_RE.sub(" ", str(value or "")))
    return _WS_RE.sub(" ", text).strip()


class _SocialFeedAdapter(BaseAdapter[SocialPost]):
    """RSS-based social source; subclasses supply the URL and labels."""

    id_prefix: str
    source_label: str
    default_author: str
    max_text = 280

    @abstractmethod
    def feed_url(self, terms: List[str]) -> str: ...

    @abstractmethod
    def feed_params(self, terms: List[str]) -> Dict[str, str]: ...

    async def _fetch_records(self, terms: List[str], limit: int) -> List[SocialPost]:
        async with self._http() as client:
            entries = await self._get_feed(client, self.feed_url(terms), params=self.feed_params(terms))
        return self._normalize_each(
            enumerate(entries[:limit]), lambda pair: self._to_post(pair[0], pair[1])
        )

    def _to_post(self, index: int, entry: Dict[str, Any]) -> Optional[SocialPost]:
        title = plain_text(entry.get("title"))
        text = plain_text(entry.get("summary")) or title
        if not text:
            return None
        created = parse_datetime(entry.get("published") or entry.get("updated")) or utcnow()
        author = str(entry.get("author") or self.default_author)[:50]
        return SocialPost(
            id=f"{self.id_prefix}_{int(created.timestamp())}_{index}",
            text=text[: self.max_text],
            author=SocialAuthor(username=author),
            created_at=created,
            source=self.source_label,
            link=entry.get("link"),
        )


class NitterRssAdapter(_SocialFeedAdapter):
    """X posts through a Nitter mirror; host comes from NITTER_RSS_BASE."""

    name = "nitter_rss"
    id_prefix = "nitter"
    source_label = "X (RSS)"
    default_author = "X"

    def feed_url(self, terms: List[str]) -> str:
        return f"{self.settings.nitter_rss_base}/search/rss"

    def feed_params(self, terms: List[str]) -> Dict[str, str]:
        return {"f": "tweets", "q": " ".join(terms[:2])}


class RedditRssAdapter(_SocialFeedAdapter):
    """Generic social fallback: Reddit r/all search feed."""

    name = "reddit_rss"
    id_prefix = "reddit"
    source_label = "Reddit"
    default_author = "u/reddit"
    max_text = 500

    def feed_url(self, terms: List[str]) -> str:
        return f"{self.settings.reddit_rss_base}/r/all/search.rss"

    def feed_params(self, terms: List[str]) -> Dict[str, str]:
        return {"q": " ".join(terms[:3]), "restrict_sr": "on", "sort": "relevance"}


class TwitterApiAdapter(BaseAdapter[SocialPost]):
    name = "twitter_api"
    credential_field = "twitter_bearer_token"
    endpoint = "https://api.twitter.com/2/tweets/search/recent"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[SocialPost]:
        query = " OR ".join(f'"{t}"' for t in terms[:2])
        params = {
            "query": f"{query} -is:retweet lang:en",
            # API accepts 10..100
            "max_results": max(10, min(limit, 100)),
            "tweet.fields": "created_at,public_metrics,author_id",
            "expansions": "author_id",
            "user.fields": "username,verified",
        }
        headers = {"Authorization": f"Bearer {self.credential()}"}
        async with self._http() as client:
            data = await self._get_json(client, self.endpoint, params=params, headers=headers)
        if not isinstance(data, dict):
            raise MalformedPayload("Twitter payload is not an object")
        users = {
            u.get("id"): u
            for u in ((data.get("includes") or {}).get("users") or [])
            if isinstance(u, dict)
        }
        return self._normalize_each((data.get("data") or [])[:limit], lambda t: self._to_post(t, users))

    @staticmethod
    def _to_post(tweet: Dict[str, Any], users: Dict[Any, Dict[str, Any]]) -> Optional[SocialPost]:
        text = str(tweet.get("text") or "").strip()
        if not text:
            return None
        user = users.get(tweet.get("author_id")) or {}
        metrics = {k: int(v) for k, v in (tweet.get("public_metrics") or {}).items() if isinstance(v, (int, float))}
        return SocialPost(
            id=str(tweet["id"]),
            text=text,
            author=SocialAuthor(username=user.get("username") or "unknown", verified=bool(user.get("verified"))),
            created_at=parse_datetime(tweet.get("created_at")) or utcnow(),
            metrics=metrics,
            source="Twitter API",
        )
