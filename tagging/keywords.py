"""Cheap keyword/sentiment extraction and category inference.

This is the degraded-mode substitute for the LLM enricher and the primary
path for bulk RSS ingestion, where an LLM call per article is too costly.
"""

import math
import re

from config import DEFAULT_SENTIMENT, MAX_BASIC_KEYWORDS, READ_WORDS_PER_MINUTE

STOP_WORDS: frozenset[str] = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "have", "has",
    "had", "do", "does", "did", "will", "would", "could", "should", "may",
    "might", "must", "can", "this", "that", "these", "those",
})

_PUNCT_RE = re.compile(r"[^\w\s]")

# Category → terms; first category with a term inside any keyword wins
_CATEGORY_RULES: dict[str, list[str]] = {
    "Technology": ["tech", "ai", "artificial intelligence", "software", "programming", "digital"],
    "Career": ["career", "job", "employment", "professional", "workplace", "skills"],
    "Business": ["business", "startup", "company", "industry", "market", "economy"],
    "Remote Work": ["remote", "work from home", "virtual", "distributed"],
    "Innovation": ["innovation", "breakthrough", "development", "research"],
}


def basic_keywords(text: str | None, max_keywords: int = MAX_BASIC_KEYWORDS) -> list[str]:
    """First ``max_keywords`` non-stop-words longer than 3 chars, in text order.

    Repeated words are not collapsed.
    """
    words = _PUNCT_RE.sub(" ", (text or "").lower()).split()
    return [w for w in words if len(w) > 3 and w not in STOP_WORDS][:max_keywords]


def default_sentiment() -> float:
    return DEFAULT_SENTIMENT


def categorize(keywords: list[str]) -> str:
    """Infer a category from extracted keywords, falling back to ``General``."""
    lowered = [kw.lower() for kw in keywords]
    for category, terms in _CATEGORY_RULES.items():
        if any(term in kw for kw in lowered for term in terms):
            return category
    return "General"


def estimate_read_time(text: str | None) -> int:
    """Minutes to read at 200 words per minute, at least one."""
    words = len((text or "").split())
    return max(1, math.ceil(words / READ_WORDS_PER_MINUTE))
