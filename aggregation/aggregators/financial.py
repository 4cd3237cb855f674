"""Financial aggregator: ordered provider waterfall behind the financial cache."""

from __future__ import annotations

from typing import List, Optional, Sequence

import httpx

from aggregation.adapters.base import BaseAdapter
from aggregation.adapters.financial import (
    AlphaVantageAdapter,
    CoinGeckoAdapter,
    FinnhubAdapter,
    YahooChartAdapter,
)
from aggregation.models.domain import (
    Holding,
    HoldingPerformance,
    PortfolioPerformance,
    PortfolioSummary,
    PriceQuote,
)
from aggregation.services.cache import CacheClass, CacheStore, build_cache_key
from aggregation.settings import AggregationSettings, get_settings
from aggregation.utils.logging import get_logger

from .common import clean_terms, load_cached, safe_fetch, store_records


class FinancialAggregator:
    """Stock and crypto quotes.

    Stock providers form a waterfall: the first provider returning any quote
    wins and later providers are never called. Total failure yields ``[]``.
    """

    def __init__(
        self,
        cache: CacheStore,
        stock_adapters: Sequence[BaseAdapter[PriceQuote]],
        crypto_adapters: Sequence[BaseAdapter[PriceQuote]],
    ) -> None:
        self._cache = cache
        self._stock_adapters = list(stock_adapters)
        self._crypto_adapters = list(crypto_adapters)
        self._logger = get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        cache: CacheStore,
        settings: Optional[AggregationSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "FinancialAggregator":
        cfg = settings or get_settings()
        return cls(
            cache,
            stock_adapters=[
                YahooChartAdapter(cfg, client=client),
                AlphaVantageAdapter(cfg, client=client),
                FinnhubAdapter(cfg, client=client),
            ],
            crypto_adapters=[CoinGeckoAdapter(cfg, client=client)],
        )

    async def fetch_stock_prices(self, symbols: Sequence[str]) -> List[PriceQuote]:
        return await self._fetch("stock", symbols, self._stock_adapters)

    async def fetch_crypto_prices(self, symbols: Sequence[str]) -> List[PriceQuote]:
        return await self._fetch("crypto", symbols, self._crypto_adapters)

    async def _fetch(
        self, domain: str, symbols: Sequence[str], adapters: Sequence[BaseAdapter[PriceQuote]]
    ) -> List[PriceQuote]:
        terms = [s.upper() for s in clean_terms(symbols)]
        if not terms:
            return []
        key = build_cache_key(domain, terms, upper=True)
        cached = load_cached(self._cache, key, CacheClass.FINANCIAL, PriceQuote)
        if cached:
            self._logger.debug("financial.cache_hit", extra={"key": key, "quotes": len(cached)})
            return cached

        for adapter in adapters:
            result = await safe_fetch(adapter, terms, len(terms), self._logger)
            if result.ok:
                store_records(self._cache, key, CacheClass.FINANCIAL, result.records)
                self._logger.info(
                    "financial.fetched",
                    extra={"domain": domain, "provider": result.provider, "quotes": len(result.records)},
                )
                return list(result.records)
            self._logger.info(
                "financial.fallthrough",
                extra={"domain": domain, "provider": result.provider, "reason": result.skipped_reason},
            )
        self._logger.warning("financial.no_data", extra={"domain": domain, "symbols": terms})
        return []


def calculate_portfolio_performance(
    holdings: Sequence[Holding], current_prices: Sequence[PriceQuote]
) -> PortfolioPerformance:
    """Per-holding and total gain; holdings without a current quote are left out."""
    by_symbol = {q.symbol: q for q in current_prices}
    rows: List[HoldingPerformance] = []
    total_cost = 0.0
    total_value = 0.0
    for holding in holdings:
        quote = by_symbol.get(holding.symbol)
        if quote is None:
            continue
        cost_basis = holding.purchase_price * holding.quantity
        current_value = quote.price * holding.quantity
        gain = current_value - cost_basis
        total_cost += cost_basis
        total_value += current_value
        rows.append(
            HoldingPerformance(
                symbol=holding.symbol,
                quantity=holding.quantity,
                purchase_price=holding.purchase_price,
                current_price=quote.price,
                cost_basis=cost_basis,
                current_value=current_value,
                gain=gain,
                gain_percent=round(gain / cost_basis * 100, 2) if cost_basis else 0.0,
            )
        )
    total_gain = total_value - total_cost
    return PortfolioPerformance(
        holdings=rows,
        summary=PortfolioSummary(
            total_cost_basis=round(total_cost, 2),
            total_current_value=round(total_value, 2),
            total_gain=round(total_gain, 2),
            total_gain_percent=round(total_gain / total_cost * 100, 2) if total_cost else 0.0,
        ),
    )
