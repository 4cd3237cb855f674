"""Text analysis and cross-domain correlation."""

from .correlation import CorrelationEngine, determine_consensus
from .relevance import calculate_relevance
from .sentiment import SentimentAnalyzer
from .summarizer import summarize_articles_for_note

__all__ = [
    "CorrelationEngine",
    "SentimentAnalyzer",
    "calculate_relevance",
    "determine_consensus",
    "summarize_articles_for_note",
]
