"""Enrichment capability and the first-choice-with-fallback sequence."""

import logging
from typing import Any, Protocol

from config import SHORT_SUMMARY_LENGTH
from tagging.keywords import basic_keywords, default_sentiment
from tagging.llm import EnrichmentError

logger = logging.getLogger(__name__)


class Enricher(Protocol):
    def analyze_sentiment(self, text: str) -> dict[str, float]: ...

    def extract_keywords(self, text: str) -> list[str]: ...

    def summarize(self, title: str, content: str) -> str: ...


class HeuristicEnricher:
    """Local, deterministic enricher. Never raises."""

    def analyze_sentiment(self, text: str) -> dict[str, float]:
        return {"rating": default_sentiment(), "confidence": 0.0}

    def extract_keywords(self, text: str) -> list[str]:
        return basic_keywords(text)

    def summarize(self, title: str, content: str) -> str:
        raise EnrichmentError("heuristic enricher does not summarize")


def enrich_candidate(candidate: dict[str, Any], enricher: Enricher | None = None) -> dict[str, Any]:
    """Fill sentiment/keywords (and short summaries) on a candidate article.

    Each field tries ``enricher`` first and falls back to the local heuristic
    on any failure, so one bad call never drops the article.
    """
    enricher = enricher or HeuristicEnricher()
    title = candidate["title"]
    text = f"{title} {candidate['summary']}"
    enriched = dict(candidate)

    try:
        rating = enricher.analyze_sentiment(text)["rating"]
        enriched["sentiment"] = max(0.0, min(1.0, float(rating)))
    except Exception as e:
        logger.debug("Sentiment analysis failed for %r, using default: %s", title, e)
        enriched["sentiment"] = default_sentiment()

    try:
        enriched["keywords"] = enricher.extract_keywords(text)
    except Exception as e:
        logger.debug("Keyword extraction failed for %r, using basic keywords: %s", title, e)
        enriched["keywords"] = basic_keywords(text)

    if len(candidate["summary"]) < SHORT_SUMMARY_LENGTH and candidate.get("content"):
        try:
            summary = enricher.summarize(title, candidate["content"])
            if summary:
                enriched["summary"] = summary
        except Exception as e:
            logger.debug("Summarization failed for %r, keeping original: %s", title, e)

    return enriched
