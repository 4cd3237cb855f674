from __future__ import annotations

import re

import pytest

pytest.importorskip("pytest_httpx")

from aggregation.adapters.news import (
    GNewsAdapter,
    GoogleNewsRssAdapter,
    GuardianAdapter,
    NewsAPIAdapter,
    NYTimesAdapter,
)

GOOGLE_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>"Tesla" - Google News</title>
    <item>
      <title>Tesla unveils new battery - Reuters</title>
      <link>https://news.google.com/articles/tesla-battery</link>
      <pubDate>Wed, 01 Jan 2025 10:00:00 GMT</pubDate>
      <description>Tesla shows a cheaper cell</description>
      <source url="https://www.reuters.com">Reuters</source>
    </item>
    <item>
      <title></title>
      <link>https://news.google.com/articles/untitled</link>
    </item>
  </channel>
</rss>
"""


@pytest.mark.asyncio
async def test_google_news_feed_parses_items_and_drops_untitled(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://news\.google\.com/rss/search\?.*"),
        text=GOOGLE_RSS,
        headers={"Content-Type": "application/rss+xml"},
    )

    result = await GoogleNewsRssAdapter(make_settings()).fetch(["Tesla", "battery", "ignored"])

    assert len(result.records) == 1
    article = result.records[0]
    assert article.title == "Tesla unveils new battery - Reuters"
    assert article.source == "Reuters"
    assert article.published_at.year == 2025
    assert article.relevance is None
    request = httpx_mock.get_requests()[0]
    assert request.url.params["q"] == "Tesla battery"


@pytest.mark.asyncio
async def test_google_news_server_error_is_skipped(httpx_mock, make_settings):
    httpx_mock.add_response(url=re.compile(r"https://news\.google\.com/.*"), status_code=503)

    result = await GoogleNewsRssAdapter(make_settings()).fetch(["Tesla"])

    assert result.skipped_reason == "provider_error"


@pytest.mark.asyncio
async def test_gnews_normalizes_articles(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://gnews\.io/api/v4/search\?.*"),
        json={
            "totalArticles": 2,
            "articles": [
                {
                    "title": "Fed holds rates",
                    "description": "Rates unchanged",
                    "url": "https://example.com/fed",
                    "publishedAt": "2025-01-02T08:00:00Z",
                    "source": {"name": "Example Wire"},
                },
                {"title": "No link here"},
            ],
        },
    )

    result = await GNewsAdapter(make_settings(gnews_api_key="g")).fetch(["Fed"])

    assert [a.url for a in result.records] == ["https://example.com/fed"]
    assert result.records[0].source == "Example Wire"


@pytest.mark.asyncio
async def test_guardian_reads_nested_results(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://content\.guardianapis\.com/search\?.*"),
        json={
            "response": {
                "status": "ok",
                "results": [
                    {
                        "webTitle": "Markets rally",
                        "webUrl": "https://theguardian.com/markets",
                        "webPublicationDate": "2025-01-03T12:00:00Z",
                        "fields": {"trailText": "Stocks close higher"},
                    }
                ],
            }
        },
    )

    result = await GuardianAdapter(make_settings(guardian_api_key="gu")).fetch(["markets"])

    article = result.records[0]
    assert article.source == "The Guardian"
    assert article.snippet == "Stocks close higher"


@pytest.mark.asyncio
async def test_nytimes_wrong_shape_is_provider_error(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://api\.nytimes\.com/.*"),
        json={"response": {"docs": {"unexpected": True}}},
    )

    result = await NYTimesAdapter(make_settings(nyt_api_key="ny")).fetch(["economy"])

    assert result.skipped_reason == "provider_error"


@pytest.mark.asyncio
async def test_news_api_sends_key_header_and_or_query(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://newsapi\.org/v2/everything\?.*"),
        json={
            "status": "ok",
            "articles": [
                {
                    "title": "Apple earnings beat",
                    "url": "https://example.com/apple",
                    "publishedAt": "2025-01-04T00:00:00Z",
                    "description": "Strong quarter",
                    "source": {"name": "Example"},
                }
            ],
        },
    )

    result = await NewsAPIAdapter(make_settings(news_api_key="na")).fetch(["Apple", "iPhone"])

    assert result.ok
    request = httpx_mock.get_requests()[0]
    assert request.headers["X-Api-Key"] == "na"
    assert request.url.params["q"] == "Apple OR iPhone"


@pytest.mark.asyncio
async def test_news_api_error_status_is_skipped(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://newsapi\.org/v2/everything\?.*"),
        json={"status": "error", "code": "apiKeyInvalid"},
    )

    result = await NewsAPIAdapter(make_settings(news_api_key="bad")).fetch(["Apple"])

    assert result.skipped_reason == "provider_error"


@pytest.mark.asyncio
async def test_unconfigured_news_providers_skip(make_settings):
    settings = make_settings()
    for adapter in (GNewsAdapter(settings), GuardianAdapter(settings), NYTimesAdapter(settings), NewsAPIAdapter(settings)):
        result = await adapter.fetch(["Apple"])
        assert result.skipped_reason == "not_configured"


@pytest.mark.asyncio
async def test_gnews_drops_item_with_string_source(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://gnews\.io/api/v4/search\?.*"),
        json={
            "articles": [
                {"title": "Odd source", "url": "https://example.com/odd", "source": "Reuters"},
                {
                    "title": "Fed holds rates",
                    "url": "https://example.com/fed",
                    "source": {"name": "Example Wire"},
                },
            ]
        },
    )

    result = await GNewsAdapter(make_settings(gnews_api_key="g")).fetch(["Fed"])

    assert [a.url for a in result.records] == ["https://example.com/fed"]
