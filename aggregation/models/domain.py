"""Domain DTOs for the aggregation pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

SentimentLabel = Literal["positive", "negative", "neutral"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(BaseModel):
    """Normalized news article."""

    title: str = ""
    url: str = Field(..., description="Canonical link; lower-cased form is the dedup key")
    source: str = "Unknown"
    published_at: datetime = Field(default_factory=utcnow)
    snippet: str = Field("", max_length=300)
    relevance: Optional[float] = Field(None, ge=0.0, le=1.0, description="Provider or computed relevance")

    @field_validator("snippet", mode="before")
    @classmethod
    def _clip_snippet(cls, v: Any) -> str:
        return str(v or "").strip()[:300]

    @field_validator("published_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    @property
    def dedup_key(self) -> str:
        return self.url.strip().lower()


class PriceQuote(BaseModel):
    """Normalized stock or crypto quote."""

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    volume: float = 0.0
    high: Optional[float] = None
    low: Optional[float] = None
    market_cap: Optional[float] = None
    timestamp: datetime = Field(default_factory=utcnow)
    source: str

    @field_validator("symbol")
    @classmethod
    def _symbol_upper(cls, v: str) -> str:
        s = v.strip().upper()
        if not s:
            raise ValueError("symbol must not be blank")
        return s


class SentimentResult(BaseModel):
    score: int
    comparative: float
    classification: SentimentLabel


class SentimentSummary(BaseModel):
    """Aggregate sentiment over a collection of scored posts."""

    overall: SentimentLabel = "neutral"
    positive: float = Field(0.0, ge=0.0, le=1.0)
    negative: float = Field(0.0, ge=0.0, le=1.0)
    neutral: float = Field(0.0, ge=0.0, le=1.0)


class SocialAuthor(BaseModel):
    username: str = "unknown"
    verified: bool = False


class SocialPost(BaseModel):
    """Normalized post from X, Reddit or a syndication mirror."""

    id: str
    text: str
    author: SocialAuthor = Field(default_factory=SocialAuthor)
    created_at: datetime = Field(default_factory=utcnow)
    metrics: Dict[str, int] = Field(default_factory=dict)
    sentiment: Optional[SentimentResult] = None
    source: str
    link: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def _aware(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    @property
    def dedup_key(self) -> str:
        return self.text[:80]


class ResultOrigin(str, Enum):
    """Where a social result came from."""

    REAL = "real"
    SYNTHETIC = "synthetic"
    EMPTY = "empty"


class SocialSearchResult(BaseModel):
    tweets: List[SocialPost] = Field(default_factory=list)
    sentiment: SentimentSummary = Field(default_factory=SentimentSummary)
    origin: ResultOrigin = ResultOrigin.EMPTY
    low_confidence: bool = False

    @property
    def is_synthetic(self) -> bool:
        return self.origin is ResultOrigin.SYNTHETIC


class PlatformConfig(BaseModel):
    enabled: bool = False
    keywords: List[str] = Field(default_factory=list)


class SocialSearchConfig(BaseModel):
    """Per-platform switches; Reddit falls back to the X keywords when it has none."""

    x: PlatformConfig = Field(default_factory=PlatformConfig)
    reddit: PlatformConfig = Field(default_factory=PlatformConfig)


class PlatformResults(BaseModel):
    x: SocialSearchResult = Field(default_factory=SocialSearchResult)
    reddit: SocialSearchResult = Field(default_factory=SocialSearchResult)


class MarketOutcome(BaseModel):
    name: str
    probability: float = Field(..., ge=0.0, le=1.0)
    price: Optional[float] = None
    volume: Optional[float] = None


class PredictionMarket(BaseModel):
    """A prediction-market contract with its outcome probabilities."""

    platform: str
    market_id: str
    question: str
    outcomes: List[MarketOutcome] = Field(default_factory=list)
    volume: float = 0.0
    liquidity: float = 0.0
    end_date: Optional[datetime] = None
    url: Optional[str] = None

    @field_validator("end_date")
    @classmethod
    def _aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    def yes_probability(self) -> float:
        """Probability of the first outcome whose name contains "yes", else 0."""
        for outcome in self.outcomes:
            if "yes" in outcome.name.lower():
                return outcome.probability
        return 0.0


class Holding(BaseModel):
    symbol: str
    quantity: float = Field(..., ge=0.0)
    purchase_price: float = Field(..., ge=0.0)

    @field_validator("symbol")
    @classmethod
    def _symbol_upper(cls, v: str) -> str:
        return v.strip().upper()


class HoldingPerformance(BaseModel):
    symbol: str
    quantity: float
    purchase_price: float
    current_price: float
    cost_basis: float
    current_value: float
    gain: float
    gain_percent: float


class PortfolioSummary(BaseModel):
    total_cost_basis: float
    total_current_value: float
    total_gain: float
    total_gain_percent: float


class PortfolioPerformance(BaseModel):
    holdings: List[HoldingPerformance] = Field(default_factory=list)
    summary: PortfolioSummary
