"""Prediction-market adapters for public Polymarket and Kalshi listings.

Neither endpoint offers reliable full-text search, so both pull a page of open
markets and keep those whose question mentions one of the terms.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from aggregation.models.domain import MarketOutcome, PredictionMarket

from .base import BaseAdapter, MalformedPayload, parse_datetime, to_float

PAGE_SIZE = 200


def _matches(question: str, terms: List[str]) -> bool:
    lowered = question.lower()
    return any(term.lower() in lowered for term in terms)


def _clamp(p: float) -> float:
    return min(max(p, 0.0), 1.0)


def _json_list(value: Any) -> List[Any]:
    # gamma API encodes some arrays as JSON strings
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    return value if isinstance(value, list) else []


class PolymarketAdapter(BaseAdapter[PredictionMarket]):
    name = "polymarket"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[PredictionMarket]:
        params = {"active": "true", "closed": "false", "limit": PAGE_SIZE}
        async with self._http() as client:
            data = await self._get_json(client, self.settings.polymarket_endpoint, params=params)
        if not isinstance(data, list):
            raise MalformedPayload("Polymarket payload is not a list")
        rows = [row for row in data if isinstance(row, dict) and _matches(str(row.get("question") or ""), terms)]
        return self._normalize_each(rows[:limit], self._to_market)

    @staticmethod
    def _to_market(row: Dict[str, Any]) -> Optional[PredictionMarket]:
        names = _json_list(row.get("outcomes"))
        prices = _json_list(row.get("outcomePrices"))
        outcomes = [
            MarketOutcome(name=str(name), probability=_clamp(float(price)), price=float(price))
            for name, price in zip(names, prices)
        ]
        slug = row.get("slug")
        return PredictionMarket(
            platform="polymarket",
            market_id=str(row["id"]),
            question=str(row["question"]),
            outcomes=outcomes,
            volume=to_float(row.get("volumeNum", row.get("volume"))) or 0.0,
            liquidity=to_float(row.get("liquidityNum", row.get("liquidity"))) or 0.0,
            end_date=parse_datetime(row.get("endDate")),
            url=f"https://polymarket.com/event/{slug}" if slug else None,
        )


class KalshiAdapter(BaseAdapter[PredictionMarket]):
    name = "kalshi"

    async def _fetch_records(self, terms: List[str], limit: int) -> List[PredictionMarket]:
        params = {"status": "open", "limit": PAGE_SIZE}
        async with self._http() as client:
            data = await self._get_json(client, self.settings.kalshi_endpoint, params=params)
        if not isinstance(data, dict) or not isinstance(data.get("markets"), list):
            raise MalformedPayload("Kalshi payload has no markets list")
        rows = [
            row
            for row in data["markets"]
            if isinstance(row, dict) and _matches(f"{row.get('title') or ''} {row.get('subtitle') or ''}", terms)
        ]
        return self._normalize_each(rows[:limit], self._to_market)

    @staticmethod
    def _to_market(row: Dict[str, Any]) -> Optional[PredictionMarket]:
        # prices are quoted in cents
        last = to_float(row.get("last_price"), None)
        bid = to_float(row.get("yes_bid"), None)
        ask = to_float(row.get("yes_ask"), None)
        if last:
            cents = last
        elif bid is not None and ask is not None:
            cents = (bid + ask) / 2
        else:
            return None
        yes = _clamp(cents / 100.0)
        return PredictionMarket(
            platform="kalshi",
            market_id=str(row["ticker"]),
            question=str(row.get("title") or row["ticker"]),
            outcomes=[
                MarketOutcome(name="Yes", probability=round(yes, 4), price=round(yes, 4)),
                MarketOutcome(name="No", probability=round(1 - yes, 4), price=round(1 - yes, 4)),
            ],
            volume=to_float(row.get("volume")) or 0.0,
            liquidity=(to_float(row.get("liquidity")) or 0.0) / 100.0,
            end_date=parse_datetime(row.get("close_time")),
        )
