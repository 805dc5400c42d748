"""Article scoring and top-five/curated selection.

Curation is a periodic batch pass over every stored article. The selection
itself is pure; ``run_curation`` reads from and writes to storage.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from config import (
    BOOSTED_CATEGORIES,
    CURATED_SIZE,
    CURATION_CAP,
    CURATION_WINDOW_DAYS,
    POSITIVE_TERMS,
    TOP_FIVE_SIZE,
)
from pipeline.dates import age_hours, parse_datetime, utcnow, within_days
from pipeline.dedup import deduplicate
from pipeline.text import article_text, has_blocked_term

logger = logging.getLogger(__name__)


@dataclass
class CurationResult:
    top_five: list[int] = field(default_factory=list)
    curated: list[int] = field(default_factory=list)


def score_article(article: dict[str, Any], now: datetime | None = None) -> float:
    """Relevance/positivity score used to rank curation candidates."""
    score = article.get("sentiment")
    if score is None:
        score = 0.7
    text = article_text(article)
    score += 0.1 * sum(1 for term in POSITIVE_TERMS if term in text)
    if article.get("category") in BOOSTED_CATEGORIES:
        score += 0.2
    hours = age_hours(article.get("published_at"), now)
    if hours is not None and hours < 24:
        score += 0.1
    return score


def _published_sort_key(article: dict[str, Any]) -> datetime:
    return parse_datetime(article.get("published_at")) or datetime.min


def select_curation(
    articles: list[dict[str, Any]],
    blocked_terms: set[str] | list[str],
    now: datetime | None = None,
    window_days: float = CURATION_WINDOW_DAYS,
) -> CurationResult:
    """Pick the top five and the next fifteen article ids.

    Stages: date window, blocked keywords, dedup, cap by recency, score, rank.
    Ties keep the order the articles arrive in after the recency cap.
    """
    now = now or utcnow()
    recent = [a for a in articles if within_days(a.get("published_at"), window_days, now)]
    logger.info("After date filtering (last %s days): %d of %d articles remain", window_days, len(recent), len(articles))

    allowed = [a for a in recent if not has_blocked_term(a, blocked_terms)]
    logger.info("After keyword filtering: %d articles remain", len(allowed))

    unique = deduplicate(allowed, now=now)
    capped = sorted(unique, key=_published_sort_key, reverse=True)[:CURATION_CAP]

    scored = [(score_article(a, now), a) for a in capped]
    scored.sort(key=lambda pair: pair[0], reverse=True)
    ranked = [a for _, a in scored]

    result = CurationResult(
        top_five=[a["id"] for a in ranked[:TOP_FIVE_SIZE]],
        curated=[a["id"] for a in ranked[TOP_FIVE_SIZE:TOP_FIVE_SIZE + CURATED_SIZE]],
    )
    if ranked:
        logger.info("Top article: %r (score: %.2f)", ranked[0].get("title"), scored[0][0])
    return result


def run_curation(storage, now: datetime | None = None) -> CurationResult:
    """Select over all stored articles and persist the flags atomically."""
    articles = storage.get_articles()
    blocked = {k["keyword"].lower() for k in storage.get_keywords_by_type("blocked")}
    logger.info("Starting curation with %d articles", len(articles))

    result = select_curation(articles, blocked, now=now)
    storage.set_curation_flags_bulk(result.top_five, result.curated)
    logger.info("Curation complete: %d curated, %d top five", len(result.curated), len(result.top_five))
    return result
