"""Provider adapters: one per upstream source."""

from .base import AdapterResult, BaseAdapter, ConfigurationAbsent, MalformedPayload, ProviderError
from .financial import AlphaVantageAdapter, CoinGeckoAdapter, FinnhubAdapter, YahooChartAdapter
from .news import GNewsAdapter, GoogleNewsRssAdapter, GuardianAdapter, NewsAPIAdapter, NYTimesAdapter
from .predictive import KalshiAdapter, PolymarketAdapter
from .social import NitterRssAdapter, RedditRssAdapter, TwitterApiAdapter

__all__ = [
    "AdapterResult",
    "AlphaVantageAdapter",
    "BaseAdapter",
    "CoinGeckoAdapter",
    "ConfigurationAbsent",
    "FinnhubAdapter",
    "GNewsAdapter",
    "GoogleNewsRssAdapter",
    "GuardianAdapter",
    "KalshiAdapter",
    "MalformedPayload",
    "NYTimesAdapter",
    "NewsAPIAdapter",
    "NitterRssAdapter",
    "PolymarketAdapter",
    "ProviderError",
    "RedditRssAdapter",
    "TwitterApiAdapter",
    "YahooChartAdapter",
]
