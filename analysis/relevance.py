"""Keyword relevance scoring for text records."""

from __future__ import annotations

from typing import Sequence

from aggregation.models.domain import Article


def keyword_matches(text: str, keyword: str) -> int:
    """Non-overlapping, case-insensitive literal occurrences of ``keyword``."""
    needle = keyword.strip().lower()
    if not needle:
        return 0
    return text.lower().count(needle)


def score_text(text: str, keywords: Sequence[str]) -> float:
    terms = [k for k in keywords if k and k.strip()]
    if not terms:
        return 0.0
    total = sum(keyword_matches(text, k) for k in terms)
    return min(total / len(terms), 1.0)


def calculate_relevance(article: Article, keywords: Sequence[str]) -> float:
    """Relevance of an article's title and snippet to ``keywords`` in [0, 1]."""
    return score_text(f"{article.title} {article.snippet}", keywords)
