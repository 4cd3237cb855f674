"""News adapters: Google News RSS (no key), GNews, The Guardian, NYT, NewsAPI."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from aggregation.models.domain import Article

from .base import BaseAdapter, MalformedPayload, parse_datetime


def _article(
    *,
    title: Any,
    url: Any,
    source: Any,
    published_at: Any,
    snippet: Any,
    relevance: Optional[float] = None,
) -> Optional[Article]:
    title_text = str(title or "").strip()
    url_text = str(url or "").strip()
    if not title_text or not url_text:
        return None
    payload: Dict[str, Any] = {
        "title": title_text,
        "url": url_text,
        "source": str(source or "Unknown"),
        "snippet": snippet,
        "relevance": relevance,
    }
    published = parse_datetime(published_at)
    if published is not None:
        payload["published_at"] = published
    return Article(**payload)


class GoogleNewsRssAdapter(BaseAdapter[Article]):
    """Syndication feed query; best-effort, needs no credential."""

    name = "google_news_rss"
    endpoint = "https://news.google.com/rss/search"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[Article]:
        params = {"q": " ".join(terms[:2]), "hl": "en-US", "gl": "US", "ceid": "US:en"}
        async with self._http() as client:
            entries = await self._get_feed(client, self.endpoint, params=params)
        return self._normalize_each(entries[:limit], self._to_article)

    @staticmethod
    def _to_article(entry: Dict[str, Any]) -> Optional[Article]:
        source = entry.get("source")
        source_name = source.get("title") if isinstance(source, dict) else None
        return _article(
            title=entry.get("title"),
            url=entry.get("link"),
            source=source_name or entry.get("author") or "Google News",
            published_at=entry.get("published"),
            snippet=entry.get("summary"),
        )


class GNewsAdapter(BaseAdapter[Article]):
    name = "gnews"
    credential_field = "gnews_api_key"
    endpoint = "https://gnews.io/api/v4/search"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[Article]:
        params = {
            "q": " ".join(terms[:3]),
            "lang": self.settings.news_language,
            "max": min(limit, 20),
            "apikey": self.credential(),
        }
        async with self._http() as client:
            data = await self._get_json(client, self.endpoint, params=params)
        items = _list_at(data, "articles")
        return self._normalize_each(
            items,
            lambda a: _article(
                title=a.get("title"),
                url=a.get("url"),
                source=(a.get("source") or {}).get("name") or "GNews",
                published_at=a.get("publishedAt"),
                snippet=a.get("description") or a.get("content"),
            ),
        )


class GuardianAdapter(BaseAdapter[Article]):
    name = "guardian"
    credential_field = "guardian_api_key"
    endpoint = "https://content.guardianapis.com/search"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[Article]:
        params = {
            "api-key": self.credential(),
            "q": " ".join(terms[:3]),
            "show-fields": "trailText",
            "page-size": min(limit, 20),
        }
        async with self._http() as client:
            data = await self._get_json(client, self.endpoint, params=params)
        items = _list_at(data, "response", "results")
        return self._normalize_each(
            items,
            lambda a: _article(
                title=a.get("webTitle"),
                url=a.get("webUrl"),
                source="The Guardian",
                published_at=a.get("webPublicationDate"),
                snippet=(a.get("fields") or {}).get("trailText"),
            ),
        )


class NYTimesAdapter(BaseAdapter[Article]):
    name = "nytimes"
    credential_field = "nyt_api_key"
    endpoint = "https://api.nytimes.com/svc/search/v2/articlesearch.json"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[Article]:
        params = {"api-key": self.credential(), "q": " ".join(terms[:3]), "sort": "newest"}
        async with self._http() as client:
            data = await self._get_json(client, self.endpoint, params=params)
        docs = _list_at(data, "response", "docs")[:limit]
        return self._normalize_each(
            docs,
            lambda d: _article(
                title=(d.get("headline") or {}).get("main"),
                url=d.get("web_url"),
                source="NYT",
                published_at=d.get("pub_date"),
                snippet=d.get("snippet") or d.get("abstract"),
            ),
        )


class NewsAPIAdapter(BaseAdapter[Article]):
    """Adapter for NewsAPI.org (developer keys are rate limited)."""

    name = "news_api"
    credential_field = "news_api_key"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[Article]:
        headers = {"X-Api-Key": self.credential() or ""}
        params = {
            "q": " OR ".join(terms[:3]),
            "language": self.settings.news_language,
            "pageSize": min(limit, 20),
            "sortBy": "publishedAt",
        }
        async with self._http() as client:
            data = await self._get_json(client, self.settings.news_api_endpoint, params=params, headers=headers)
        if isinstance(data, dict) and data.get("status") == "error":
            raise MalformedPayload(f"NewsAPI error: {data.get('code') or data.get('message')}")
        items = _list_at(data, "articles")
        return self._normalize_each(
            items,
            lambda a: _article(
                title=a.get("title"),
                url=a.get("url"),
                source=(a.get("source") or {}).get("name") or "NewsAPI",
                published_at=a.get("publishedAt"),
                snippet=a.get("description") or (a.get("content") or "")[:200],
            ),
        )


def _list_at(data: Any, *path: str) -> List[Dict[str, Any]]:
    node = data
    for key in path:
        if not isinstance(node, dict):
            raise MalformedPayload(f"expected object at {key!r}")
        node = node.get(key)
    if node is None:
        return []
    if not isinstance(node, list):
        raise MalformedPayload(f"expected list at {'.'.join(path)!r}")
    return [item for item in node if isinstance(item, dict)]
