from __future__ import annotations

import re

import pytest

pytest.importorskip("pytest_httpx")

from aggregation.adapters.social import (
    NitterRssAdapter,
    RedditRssAdapter,
    TwitterApiAdapter,
    _SocialFeedAdapter,
    plain_text,
)

NITTER_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Search: bitcoin</title>
    <item>
      <title>Bitcoin breaks out</title>
      <dc:creator>@satoshi_fan</dc:creator>
      <description>&lt;p&gt;Bitcoin &lt;b&gt;breaks&lt;/b&gt; out &amp;amp; rallies&lt;/p&gt;</description>
      <pubDate>Thu, 02 Jan 2025 09:30:00 GMT</pubDate>
      <link>https://nitter.example.org/satoshi_fan/status/1</link>
    </item>
  </channel>
</rss>
"""

EMPTY_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Search</title></channel></rss>
"""


def test_plain_text_strips_markup():
    assert plain_text("<p>Tom &amp; <b>Jerry</b></p>") == "Tom & Jerry"
    assert plain_text("<p>a</p>  <p>b</p>") == "a b"
    assert plain_text(None) == ""


@pytest.mark.asyncio
async def test_nitter_uses_configured_host(httpx_mock, make_settings):
    httpx_mock.add_response(url=re.compile(r"https://nitter\.example\.org/search/rss\?.*"), text=NITTER_RSS)

    settings = make_settings(nitter_rss_base="https://nitter.example.org/")
    result = await NitterRssAdapter(settings).fetch(["bitcoin"])

    post = result.records[0]
    assert post.text == "Bitcoin breaks out & rallies"
    assert post.author.username == "@satoshi_fan"
    assert post.source == "X (RSS)"
    assert post.id.startswith("nitter_")
    assert post.link == "https://nitter.example.org/satoshi_fan/status/1"
    assert httpx_mock.get_requests()[0].url.params["f"] == "tweets"


@pytest.mark.asyncio
async def test_reddit_feed_without_items_is_no_results(httpx_mock, make_settings):
    httpx_mock.add_response(url=re.compile(r"https://www\.reddit\.com/r/all/search\.rss\?.*"), text=EMPTY_RSS)

    result = await RedditRssAdapter(make_settings()).fetch(["bitcoin"])

    assert result.skipped_reason == "no_results"


@pytest.mark.asyncio
async def test_twitter_api_maps_authors_and_metrics(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://api\.twitter\.com/2/tweets/search/recent\?.*"),
        json={
            "data": [
                {
                    "id": "1001",
                    "text": "Great quarter for $AAPL",
                    "author_id": "u1",
                    "created_at": "2025-01-05T14:00:00.000Z",
                    "public_metrics": {"like_count": 12, "retweet_count": 3},
                },
                {"id": "1002", "text": "", "author_id": "u1"},
            ],
            "includes": {"users": [{"id": "u1", "username": "analyst", "verified": True}]},
        },
    )

    result = await TwitterApiAdapter(make_settings(twitter_bearer_token="tok")).fetch(["AAPL"], 5)

    assert len(result.records) == 1
    tweet = result.records[0]
    assert tweet.author.username == "analyst"
    assert tweet.author.verified is True
    assert tweet.metrics == {"like_count": 12, "retweet_count": 3}
    request = httpx_mock.get_requests()[0]
    assert request.headers["Authorization"] == "Bearer tok"
    assert request.url.params["max_results"] == "10"


@pytest.mark.asyncio
async def test_twitter_api_without_token_is_not_configured(make_settings):
    result = await TwitterApiAdapter(make_settings()).fetch(["AAPL"])
    assert result.skipped_reason == "not_configured"


@pytest.mark.asyncio
async def test_twitter_drops_tweet_with_malformed_metrics(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://api\.twitter\.com/2/tweets/search/recent\?.*"),
        json={
            "data": [
                {"id": "1", "text": "Broken metrics", "public_metrics": "n/a"},
                {"id": "2", "text": "Fine tweet", "public_metrics": {"like_count": 1}},
            ]
        },
    )

    result = await TwitterApiAdapter(make_settings(twitter_bearer_token="tok")).fetch(["AAPL"])

    assert [t.id for t in result.records] == ["2"]


@pytest.mark.asyncio
async def test_twitter_non_list_data_is_a_provider_error(httpx_mock, make_settings):
    httpx_mock.add_response(
        url=re.compile(r"https://api\.twitter\.com/2/tweets/search/recent\?.*"),
        json={"data": 42},
    )

    result = await TwitterApiAdapter(make_settings(twitter_bearer_token="tok")).fetch(["AAPL"])

    assert result.records == []
    assert result.skipped_reason == "provider_error"


def test_feed_adapter_without_url_hooks_cannot_be_built(make_settings):
    class Incomplete(_SocialFeedAdapter):
        name = "incomplete"

    with pytest.raises(TypeError):
        Incomplete(make_settings())
