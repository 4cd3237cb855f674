"""Lexicon sentiment scoring.

Each token found in the VADER lexicon contributes its valence. ``score`` is the
valence total rounded half away from zero (so 0.5 and -0.5 keep their sign) and ``comparative`` the raw total divided by the token
count, so long texts are not rated more extreme than short ones.
"""

from __future__ import annotations

import math
import re
from functools import lru_cache
from typing import Iterable, List, Mapping, Optional, Sequence

from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

from aggregation.models.domain import SentimentLabel, SentimentResult, SentimentSummary, SocialPost

_NON_WORD_RE = re.compile(r"[^a-z0-9'\s]+")

COMPARATIVE_THRESHOLD = 0.1


@lru_cache()
def _vader_lexicon() -> Mapping[str, float]:
    return SentimentIntensityAnalyzer().lexicon


def tokenize(text: str) -> List[str]:
    return _NON_WORD_RE.sub(" ", (text or "").lower()).split()


def round_score(raw: float) -> int:
    return int(math.copysign(math.floor(abs(raw) + 0.5), raw))


def classify_score(score: float) -> SentimentLabel:
    if score > 0:
        return "positive"
    if score < 0:
        return "negative"
    return "neutral"


def classify_comparative(value: float, threshold: float = COMPARATIVE_THRESHOLD) -> SentimentLabel:
    if value > threshold:
        return "positive"
    if value < -threshold:
        return "negative"
    return "neutral"


def summarize(labels: Iterable[SentimentLabel]) -> SentimentSummary:
    """Majority label over a collection; ties (including empty) are neutral."""
    counts = {"positive": 0, "negative": 0, "neutral": 0}
    size = 0
    for label in labels:
        size += 1
        if label in counts:
            counts[label] += 1
    total = max(size, 1)
    if counts["positive"] > counts["negative"]:
        overall: SentimentLabel = "positive"
    elif counts["negative"] > counts["positive"]:
        overall = "negative"
    else:
        overall = "neutral"
    return SentimentSummary(
        overall=overall,
        positive=counts["positive"] / total,
        negative=counts["negative"] / total,
        neutral=counts["neutral"] / total,
    )


class SentimentAnalyzer:
    def __init__(self, lexicon: Optional[Mapping[str, float]] = None) -> None:
        self._lexicon = lexicon if lexicon is not None else _vader_lexicon()

    def analyze(self, text: str) -> SentimentResult:
        tokens = tokenize(text)
        raw = sum(self._lexicon.get(token, 0.0) for token in tokens)
        score = round_score(raw)
        comparative = raw / len(tokens) if tokens else 0.0
        return SentimentResult(score=score, comparative=comparative, classification=classify_score(score))

    def annotate(self, posts: Sequence[SocialPost]) -> List[SocialPost]:
        """Return copies of ``posts`` carrying a fresh SentimentResult."""
        return [post.model_copy(update={"sentiment": self.analyze(post.text)}) for post in posts]

    def summarize_posts(self, posts: Sequence[SocialPost]) -> SentimentSummary:
        return summarize(p.sentiment.classification if p.sentiment else "neutral" for p in posts)

    def classify_texts(self, texts: Sequence[str]) -> SentimentLabel:
        """Average comparative over ``texts`` bucketed with the ±0.1 threshold."""
        if not texts:
            return "neutral"
        average = sum(self.analyze(t).comparative for t in texts) / len(texts)
        return classify_comparative(average)
