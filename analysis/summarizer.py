"""Extractive digest of the articles attached to a note."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from aggregation.models.domain import Article

LEAD = "Based on the latest coverage:"
NO_HEADLINES = "Recent coverage was found, but none of it carried a usable headline."
ELLIPSIS = "…"

MAX_ARTICLES = 25
MAX_SUMMARY_CHARS = 680
# below this length the digest keeps taking snippet/headline sentences
SHORT_DIGEST_CHARS = 320
MIN_SNIPPET_CHARS = 40

FIRST_HEADLINE_CAP = 110
SECOND_HEADLINE_CAP = 100
SNIPPET_CAP = 140
THIRD_HEADLINE_CAP = 95


def clip(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + ELLIPSIS


def as_sentence(text: str, limit: int) -> str:
    clipped = clip(text, limit)
    if clipped.endswith((".", "!", "?", ELLIPSIS)):
        return clipped
    return clipped + "."


def _unique_titles(articles: Sequence[Article]) -> List[str]:
    seen: set[str] = set()
    titles: List[str] = []
    for article in articles:
        title = (article.title or "").strip()
        if not title or title.lower() in seen:
            continue
        seen.add(title.lower())
        titles.append(title)
    return titles


def summarize_articles_for_note(
    articles: Sequence[Article],
    note_context: Optional[Mapping[str, Any]] = None,  # noqa: ARG001
) -> str:
    """Build a short digest from articles the caller has already ranked.

    Only the first 25 articles are considered. The result never exceeds 680
    characters. Returns ``""`` when there are no articles.
    """
    if not articles:
        return ""
    top = list(articles[:MAX_ARTICLES])
    titles = _unique_titles(top)
    if not titles:
        return NO_HEADLINES

    parts = [LEAD, as_sentence(titles[0], FIRST_HEADLINE_CAP)]
    if len(titles) > 1:
        parts.append(as_sentence(titles[1], SECOND_HEADLINE_CAP))

    def _short() -> bool:
        return len(" ".join(parts)) < SHORT_DIGEST_CHARS

    if _short():
        snippet = next((a.snippet.strip() for a in top if len(a.snippet.strip()) > MIN_SNIPPET_CHARS), None)
        if snippet:
            parts.append(as_sentence(snippet, SNIPPET_CAP))
    if _short() and len(titles) > 2:
        parts.append(as_sentence(titles[2], THIRD_HEADLINE_CAP))

    return clip(" ".join(parts), MAX_SUMMARY_CHARS)
