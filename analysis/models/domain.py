"""Note snapshot and intelligence schemas consumed and produced by the correlation engine.

The note fields are a read-only view: the engine never mutates them and the
intelligence it returns is built fresh on every call.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from aggregation.models.domain import (
    Article,
    PredictionMarket,
    PriceQuote,
    ResultOrigin,
    SentimentSummary,
    SocialPost,
    utcnow,
)

Severity = Literal["low", "medium", "high"]


class Deadline(BaseModel):
    date: datetime
    label: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class NewsPayload(BaseModel):
    keywords: List[str] = Field(default_factory=list)
    articles: List[Article] = Field(default_factory=list)
    summary: str = ""


class EarlyMarketIndicator(BaseModel):
    minutes_before_news: float = 0.0
    description: str = ""


class MarketIntelligence(BaseModel):
    """Signals supplied by an external market-intelligence platform."""

    consensus: Optional[str] = None
    change_1h: Optional[float] = None
    early_market_indicator: Optional[EarlyMarketIndicator] = None


class PredictivePayload(BaseModel):
    markets: List[PredictionMarket] = Field(default_factory=list)
    intelligence: Optional[MarketIntelligence] = None


class _FinancialBase(BaseModel):
    symbols: List[str] = Field(default_factory=list)
    prices: List[PriceQuote] = Field(default_factory=list)
    predictive: Optional[PredictivePayload] = None


class StockFinancial(_FinancialBase):
    type: Literal["stock"] = "stock"


class CryptoFinancial(_FinancialBase):
    type: Literal["crypto"] = "crypto"


FinancialPayload = Annotated[Union[StockFinancial, CryptoFinancial], Field(discriminator="type")]


class SocialChannel(BaseModel):
    tweets: List[SocialPost] = Field(default_factory=list)
    sentiment: Optional[SentimentSummary] = None
    origin: ResultOrigin = ResultOrigin.REAL

    @property
    def has_real_sentiment(self) -> bool:
        return self.sentiment is not None and self.origin is ResultOrigin.REAL


class SocialPayload(BaseModel):
    x: Optional[SocialChannel] = None
    reddit: Optional[SocialChannel] = None


class NoteSnapshot(BaseModel):
    id: Optional[str] = None
    title: str = ""
    deadline: Optional[Deadline] = None
    news: Optional[NewsPayload] = None
    financial: Optional[FinancialPayload] = None
    social: Optional[SocialPayload] = None


class Alert(BaseModel):
    type: str
    severity: Severity
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
    acknowledged: bool = False


class Insight(BaseModel):
    type: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=utcnow)


class Intelligence(BaseModel):
    correlation: Dict[str, Any] = Field(default_factory=dict)
    alerts: List[Alert] = Field(default_factory=list)
    insights: List[Insight] = Field(default_factory=list)
