"""Cross-domain correlation of a note's news, social, market and deadline data.

Each rule is guarded only by the presence of the data it reads, so a note with
partial integrations still gets whatever signals apply. Social data tagged as
synthetic is ignored by the rules that read social sentiment.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Sequence

from aggregation.models.domain import Article, PredictionMarket, SentimentLabel, utcnow
from aggregation.utils.logging import get_logger

from .models.domain import Alert, Insight, Intelligence, NoteSnapshot, SocialChannel
from .sentiment import SentimentAnalyzer

SOCIAL_SCALAR = {"positive": 0.7, "negative": 0.3, "neutral": 0.5}

MISALIGNED_HIGH_PROBABILITY = 0.7
MISALIGNED_LOW_PROBABILITY = 0.3
MISALIGNED_MOVE_PERCENT = 2.0

DEADLINE_CONFIDENCE = 0.8
EARLY_SIGNAL_CONFIDENCE = 0.9


def determine_consensus(social_sentiment: SentimentLabel, probability: float) -> str:
    """Blend social mood and market odds into a five-step consensus label."""
    blended = (SOCIAL_SCALAR.get(social_sentiment, 0.5) + probability) / 2
    if blended > 0.75:
        return "strong_bullish"
    if blended > 0.6:
        return "bullish"
    if blended < 0.25:
        return "strong_bearish"
    if blended < 0.4:
        return "bearish"
    return "neutral"


def average_yes_probability(markets: Sequence[PredictionMarket]) -> float:
    if not markets:
        return 0.0
    return sum(m.yes_probability() for m in markets) / len(markets)


class CorrelationEngine:
    def __init__(
        self,
        analyzer: Optional[SentimentAnalyzer] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._analyzer = analyzer or SentimentAnalyzer()
        self._clock = clock or utcnow
        self._logger = get_logger(__name__)

    def news_sentiment(self, articles: Sequence[Article]) -> SentimentLabel:
        return self._analyzer.classify_texts([f"{a.title} {a.snippet}" for a in articles])

    def generate_cross_domain_intelligence(self, note: NoteSnapshot) -> Intelligence:
        intel = Intelligence()
        now = self._clock()

        x_channel = self._real_x_channel(note)
        articles = note.news.articles if note.news else []
        financial = note.financial
        predictive = financial.predictive if financial else None
        markets: List[PredictionMarket] = predictive.markets if predictive else []

        # 1. social vs news sentiment
        if x_channel is not None and articles:
            social = x_channel.sentiment.overall
            news = self.news_sentiment(articles)
            intel.correlation["news_sentiment"] = news
            intel.correlation["social_sentiment"] = social
            if social != news:
                intel.alerts.append(
                    Alert(
                        type="sentiment_divergence",
                        severity="medium",
                        message=f"Social sentiment ({social}) differs from news sentiment ({news})",
                        timestamp=now,
                    )
                )

        # 2. market odds vs price move; an empty price list reads as no move
        if markets and financial is not None:
            probability = average_yes_probability(markets)
            move = financial.prices[0].change_percent if financial.prices else 0.0
            intel.correlation["predictive_probability"] = probability
            intel.correlation["market_sentiment"] = "bullish" if move > 0 else "bearish"
            if (probability > MISALIGNED_HIGH_PROBABILITY and move < -MISALIGNED_MOVE_PERCENT) or (
                probability < MISALIGNED_LOW_PROBABILITY and move > MISALIGNED_MOVE_PERCENT
            ):
                intel.alerts.append(
                    Alert(
                        type="market_misalignment",
                        severity="high",
                        message=(
                            f"Predictive markets ({probability * 100:.0f}%) suggest different direction "
                            f"than price movement ({move:.2f}%)"
                        ),
                        timestamp=now,
                    )
                )

        # 3. markets resolving before the deadline
        if note.deadline is not None and markets:
            resolving = [m for m in markets if m.end_date is not None and m.end_date <= note.deadline.date]
            if resolving:
                intel.insights.append(
                    Insight(
                        type="deadline_market_alignment",
                        description=f"{len(resolving)} predictive market(s) resolve before your deadline",
                        confidence=DEADLINE_CONFIDENCE,
                        timestamp=now,
                    )
                )

        # 4. social mood and market odds agree strongly
        if x_channel is not None and markets:
            consensus = determine_consensus(x_channel.sentiment.overall, average_yes_probability(markets))
            intel.correlation["consensus"] = consensus
            if consensus in ("strong_bullish", "strong_bearish"):
                direction = consensus.replace("strong_", "")
                intel.alerts.append(
                    Alert(
                        type="strong_consensus",
                        severity="high",
                        message=f"Strong {direction} consensus across social and predictive markets",
                        timestamp=now,
                    )
                )

        # 5. markets moved ahead of the news
        indicator = predictive.intelligence.early_market_indicator if predictive and predictive.intelligence else None
        if indicator is not None and indicator.minutes_before_news > 0:
            minutes = indicator.minutes_before_news
            intel.insights.append(
                Insight(
                    type="early_market_signal",
                    description=f"Markets moved {minutes:g} minutes before news coverage",
                    confidence=EARLY_SIGNAL_CONFIDENCE,
                    timestamp=now,
                )
            )

        self._logger.debug(
            "intelligence.generated",
            extra={"note_id": note.id, "alerts": len(intel.alerts), "insights": len(intel.insights)},
        )
        return intel

    @staticmethod
    def _real_x_channel(note: NoteSnapshot) -> Optional[SocialChannel]:
        channel = note.social.x if note.social else None
        if channel is None or not channel.has_real_sentiment:
            return None
        return channel
