"""Article deduplication by URL, exact title and fuzzy summary similarity.

Single pass over the candidates. When two articles collide, the one with the
higher quality score is kept, wherever it appeared in the input.
"""

import logging
from datetime import datetime
from typing import Any

from config import SIMILARITY_THRESHOLD
from pipeline.dates import age_days, utcnow
from pipeline.text import jaccard_similarity
from pipeline.urls import normalize_url

logger = logging.getLogger(__name__)


def quality_score(article: dict[str, Any], now: datetime | None = None) -> float:
    """Tie-break score between duplicates: sentiment, detail and freshness."""
    sentiment = article.get("sentiment") or 0.0
    summary_length = len(article.get("summary") or "")
    age = age_days(article.get("published_at"), now)
    freshness = 0.0 if age is None else max(0.0, 30 - age)
    return sentiment * 100 + min(50.0, summary_length / 20) + freshness


def _url_key(article: dict[str, Any]) -> str:
    return normalize_url(article.get("url")).lower()


def _title_key(article: dict[str, Any]) -> str:
    return (article.get("title") or "").strip().lower()


def deduplicate(
    articles: list[dict[str, Any]],
    threshold: float = SIMILARITY_THRESHOLD,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Return the subsequence of ``articles`` left after removing duplicates."""
    now = now or utcnow()
    kept: list[dict[str, Any]] = []
    seen_urls: set[str] = set()
    seen_titles: dict[str, int] = {}  # title -> position in kept

    def replace(position: int, candidate: dict[str, Any]) -> None:
        old = kept[position]
        seen_urls.discard(_url_key(old))
        old_title = _title_key(old)
        if seen_titles.get(old_title) == position:
            del seen_titles[old_title]
        kept[position] = candidate
        seen_urls.add(_url_key(candidate))
        seen_titles[_title_key(candidate)] = position

    for candidate in articles:
        url = _url_key(candidate)
        title = _title_key(candidate)

        if url and url in seen_urls:
            continue

        if title in seen_titles:
            position = seen_titles[title]
            if quality_score(candidate, now) > quality_score(kept[position], now):
                replace(position, candidate)
            continue

        match = next(
            (
                i for i, existing in enumerate(kept)
                if jaccard_similarity(candidate.get("summary"), existing.get("summary")) > threshold
            ),
            None,
        )
        if match is not None:
            if quality_score(candidate, now) > quality_score(kept[match], now):
                replace(match, candidate)
            continue

        kept.append(candidate)
        if url:
            seen_urls.add(url)
        seen_titles[title] = len(kept) - 1

    removed = len(articles) - len(kept)
    if removed:
        logger.info("Removed %d duplicate articles (%d -> %d)", removed, len(articles), len(kept))
    return kept
