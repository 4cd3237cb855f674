from aggregation.models.domain import Article
from analysis.relevance import calculate_relevance, keyword_matches, score_text


def _article(title: str, snippet: str = "") -> Article:
    return Article(title=title, url="https://ex.com/x", snippet=snippet)


def test_matches_are_case_insensitive_literals():
    assert keyword_matches("Apple apple APPLE", "apple") == 3
    assert keyword_matches("S&P 500 (SPX)", "s&p") == 1
    assert keyword_matches("anything", "  ") == 0


def test_relevance_averages_matches_over_keywords():
    article = _article("Apple launches", "new products")
    assert calculate_relevance(article, ["apple", "tesla"]) == 0.5


def test_relevance_is_capped_at_one():
    article = _article("Tesla Tesla", "Tesla everywhere")
    assert calculate_relevance(article, ["tesla"]) == 1.0


def test_no_keywords_scores_zero():
    assert score_text("Apple", []) == 0.0
    assert calculate_relevance(_article("Apple"), [""]) == 0.0
