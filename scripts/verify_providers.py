"""Quick provider smoke test.

Usage:
  python scripts/verify_providers.py -k "Apple" -s AAPL -n 3

Reads configuration from .env via pydantic settings. Prints which credentials
are configured, then one sample fetch per domain with the provider outcomes.
"""

from __future__ import annotations

import argparse
import asyncio
from typing import List

from aggregation import build_aggregators
from aggregation.settings import get_settings
from aggregation.utils.logging import configure_logging

CREDENTIAL_FIELDS = (
    "alpha_vantage_api_key",
    "finnhub_api_key",
    "gnews_api_key",
    "guardian_api_key",
    "nyt_api_key",
    "news_api_key",
    "twitter_bearer_token",
)


async def _run(keywords: List[str], symbols: List[str], top: int) -> int:
    aggs = build_aggregators()
    quotes = await aggs.financial.fetch_stock_prices(symbols)
    print(f"Stocks: {len(quotes)} quote(s)")
    for q in quotes[:top]:
        print(f"  {q.symbol} {q.price:.2f} ({q.change_percent:+.2f}%) via {q.source}")

    articles = await aggs.news.fetch_real_news(keywords, top)
    print(f"News: {len(articles)} article(s)")
    for a in articles[:top]:
        print(f"  [{a.source}] {a.title[:100]}\n    {a.url}")

    social = await aggs.social.search_tweets(keywords, top)
    print(f"Social: {len(social.tweets)} post(s), origin={social.origin.value}, overall={social.sentiment.overall}")

    markets = await aggs.predictive.search_markets(keywords, top)
    print(f"Markets: {len(markets)} market(s)")
    for m in markets[:top]:
        print(f"  [{m.platform}] {m.question[:100]} yes={m.yes_probability():.2f}")
    return 0 if (quotes or articles or markets) else 1


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Provider smoke test")
    parser.add_argument("-k", "--keyword", action="append", help="Search keyword (repeatable)")
    parser.add_argument("-s", "--symbol", action="append", help="Stock symbol (repeatable)")
    parser.add_argument("-n", "--top", type=int, default=3, help="Print top N items (default: 3)")
    args = parser.parse_args(argv)

    cfg = get_settings()
    configure_logging(cfg.log_level, cfg.log_json)
    print("Credentials:", {name: cfg.credential(name) is not None for name in CREDENTIAL_FIELDS})
    return asyncio.run(_run(args.keyword or ["Apple"], args.symbol or ["AAPL"], args.top))


if __name__ == "__main__":
    raise SystemExit(main())
