"""Quote adapters: Yahoo chart (no key), Alpha Vantage, Finnhub, CoinGecko."""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from aggregation.models.domain import PriceQuote, utcnow

from .base import BaseAdapter, MalformedPayload, ProviderError, parse_datetime, to_float

# Common crypto symbol -> CoinGecko id
CRYPTO_IDS: Dict[str, str] = {
    "btc": "bitcoin",
    "bitcoin": "bitcoin",
    "eth": "ethereum",
    "ethereum": "ethereum",
    "usdt": "tether",
    "tether": "tether",
    "bnb": "binancecoin",
    "sol": "solana",
    "solana": "solana",
    "xrp": "ripple",
    "ripple": "ripple",
    "usdc": "usd-coin",
    "ada": "cardano",
    "cardano": "cardano",
    "doge": "dogecoin",
    "dogecoin": "dogecoin",
    "avax": "avalanche-2",
    "trx": "tron",
    "link": "chainlink",
    "dot": "polkadot",
    "matic": "matic-network",
    "ltc": "litecoin",
    "litecoin": "litecoin",
    "shib": "shiba-inu",
    "uni": "uniswap",
    "atom": "cosmos",
    "xlm": "stellar",
}


def crypto_id_for(symbol: str) -> str:
    key = symbol.strip().lower()
    return CRYPTO_IDS.get(key, key)


def percent_change(price: float, previous_close: Optional[float]) -> float:
    if not previous_close:
        return 0.0
    return round((price - previous_close) / previous_close * 100, 4)


class _PerSymbolQuoteAdapter(BaseAdapter[PriceQuote]):
    """Quote APIs that answer one symbol per request."""

    timeout_attr = "quote_timeout_seconds"
    max_symbols = 10

    async def _fetch_records(self, terms: List[str], limit: int) -> List[PriceQuote]:
        async with self._http() as client:
            return await self._each_symbol(client, terms[: self.max_symbols], self._fetch_symbol)

    async def _each_symbol(
        self,
        client: httpx.AsyncClient,
        symbols: List[str],
        fetch_one: Callable[[httpx.AsyncClient, str], Awaitable[Optional[PriceQuote]]],
    ) -> List[PriceQuote]:
        quotes: List[PriceQuote] = []
        for index, symbol in enumerate(symbols):
            if index:
                await self._pause()
            try:
                quote = await fetch_one(client, symbol)
            except (httpx.HTTPError, ProviderError, AttributeError, KeyError, TypeError, ValueError) as exc:
                self._logger.warning(
                    "quote.symbol_failed",
                    extra={"provider": self.name, "symbol": symbol, "error": str(exc) or type(exc).__name__},
                )
                continue
            if quote is not None:
                quotes.append(quote)
        return quotes

    @abstractmethod
    async def _fetch_symbol(self, client: httpx.AsyncClient, symbol: str) -> Optional[PriceQuote]:
        """Quote for one symbol, or None when the provider does not know it."""


class YahooChartAdapter(_PerSymbolQuoteAdapter):
    name = "yahoo_chart"
    endpoint = "https://query1.finance.yahoo.com/v8/finance/chart/{symbol}"

    async def _fetch_symbol(self, client: httpx.AsyncClient, symbol: str) -> Optional[PriceQuote]:
        data = await self._get_json(
            client,
            self.endpoint.format(symbol=symbol.upper()),
            params={"interval": "1d", "range": "1d"},
        )
        results = ((data or {}).get("chart") or {}).get("result") or []
        if not results:
            return None
        meta = results[0].get("meta") or {}
        price = to_float(meta.get("regularMarketPrice"), None)
        if price is None:
            return None
        previous_close = to_float(meta.get("chartPreviousClose") or meta.get("previousClose"), None)
        change = round(price - previous_close, 4) if previous_close else 0.0
        return PriceQuote(
            symbol=meta.get("symbol") or symbol,
            price=price,
            change=change,
            change_percent=percent_change(price, previous_close),
            volume=to_float(meta.get("regularMarketVolume")) or 0.0,
            high=to_float(meta.get("regularMarketDayHigh"), price),
            low=to_float(meta.get("regularMarketDayLow"), price),
            timestamp=parse_datetime(meta.get("regularMarketTime")) or utcnow(),
            source="Yahoo Finance",
        )


class AlphaVantageAdapter(_PerSymbolQuoteAdapter):
    name = "alpha_vantage"
    credential_field = "alpha_vantage_api_key"
    endpoint = "https://www.alphavantage.co/query"
    max_symbols = 5  # free tier: 25 requests/day

    async def _fetch_symbol(self, client: httpx.AsyncClient, symbol: str) -> Optional[PriceQuote]:
        data = await self._get_json(
            client,
            self.endpoint,
            params={"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": self.credential()},
        )
        if isinstance(data, dict) and ("Note" in data or "Information" in data):
            raise ProviderError("Alpha Vantage rate limit reached")
        quote = (data or {}).get("Global Quote") or {}
        price = to_float(quote.get("05. price"), None)
        if price is None:
            return None
        change = to_float(quote.get("09. change")) or 0.0
        change_percent = to_float(quote.get("10. change percent"), None)
        if change_percent is None:
            change_percent = percent_change(price, to_float(quote.get("08. previous close"), None))
        return PriceQuote(
            symbol=quote.get("01. symbol") or symbol,
            price=price,
            change=change,
            change_percent=change_percent,
            volume=to_float(quote.get("06. volume")) or 0.0,
            high=to_float(quote.get("03. high"), price),
            low=to_float(quote.get("04. low"), price),
            source="Alpha Vantage",
        )


class FinnhubAdapter(_PerSymbolQuoteAdapter):
    name = "finnhub"
    credential_field = "finnhub_api_key"
    endpoint = "https://finnhub.io/api/v1/quote"

    async def _fetch_symbol(self, client: httpx.AsyncClient, symbol: str) -> Optional[PriceQuote]:
        data = await self._get_json(client, self.endpoint, params={"symbol": symbol, "token": self.credential()})
        if not isinstance(data, dict) or not isinstance(data.get("c"), (int, float)) or not data["c"]:
            return None
        price = float(data["c"])
        change_percent = data.get("dp")
        if change_percent is None:
            change_percent = percent_change(price, to_float(data.get("pc"), None))
        return PriceQuote(
            symbol=symbol,
            price=price,
            change=to_float(data.get("d")) or 0.0,
            change_percent=float(change_percent),
            volume=to_float(data.get("v")) or 0.0,
            high=to_float(data.get("h"), price),
            low=to_float(data.get("l"), price),
            timestamp=parse_datetime(data.get("t")) or utcnow(),
            source="Finnhub",
        )


class CoinGeckoAdapter(BaseAdapter[PriceQuote]):
    """Crypto prices; one batched request for all symbols."""

    name = "coingecko"
    endpoint = "https://api.coingecko.com/api/v3/simple/price"
    max_symbols = 15

    async def _fetch_records(self, terms: List[str], limit: int) -> List[PriceQuote]:
        id_to_symbol: Dict[str, str] = {}
        for symbol in terms[: self.max_symbols]:
            id_to_symbol.setdefault(crypto_id_for(symbol), symbol.upper())
        async with self._http() as client:
            data = await self._get_json(
                client,
                self.endpoint,
                params={
                    "ids": ",".join(id_to_symbol),
                    "vs_currencies": "usd",
                    "include_24hr_change": "true",
                    "include_24hr_vol": "true",
                    "include_market_cap": "true",
                },
            )
        if not isinstance(data, dict):
            raise MalformedPayload("CoinGecko payload is not an object")
        return self._normalize_each(
            id_to_symbol.items(), lambda pair: self._to_quote(pair[1], data.get(pair[0]))
        )

    @staticmethod
    def _to_quote(symbol: str, row: Any) -> Optional[PriceQuote]:
        if not isinstance(row, dict) or not isinstance(row.get("usd"), (int, float)):
            return None
        price = float(row["usd"])
        change_percent = round(float(row.get("usd_24h_change") or 0.0), 4)
        # back out the absolute move from the 24h percentage
        previous = price / (1 + change_percent / 100) if change_percent > -100 else 0.0
        return PriceQuote(
            symbol=symbol,
            price=price,
            change=round(price - previous, 4) if previous else 0.0,
            change_percent=change_percent,
            volume=float(row.get("usd_24h_vol") or 0.0),
            market_cap=float(row.get("usd_market_cap") or 0.0),
            source="CoinGecko",
        )
