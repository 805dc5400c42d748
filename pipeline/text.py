"""Text matching helpers shared by dedup, curation and personalization."""

import re
from typing import Any

_WORD_RE = re.compile(r"\w+")


def article_text(article: dict[str, Any]) -> str:
    """Lowercased ``title summary`` used for all keyword matching."""
    return f"{article.get('title') or ''} {article.get('summary') or ''}".lower()


def word_set(text: str | None) -> set[str]:
    """Lowercase words longer than 3 characters."""
    return {w for w in _WORD_RE.findall((text or "").lower()) if len(w) > 3}


def jaccard_similarity(a: str | None, b: str | None) -> float:
    """Jaccard index of the two word sets. Empty input yields 0."""
    words_a, words_b = word_set(a), word_set(b)
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def keyword_matches(article: dict[str, Any], term: str) -> bool:
    """True when ``term`` is a substring of any of the article's keywords."""
    return any(term in str(kw).lower() for kw in article.get("keywords") or [])


def has_blocked_term(article: dict[str, Any], blocked_terms: set[str] | list[str]) -> bool:
    """Case-insensitive substring match on title+summary, or inside any keyword."""
    if not blocked_terms:
        return False
    text = article_text(article)
    terms = [t.lower() for t in blocked_terms if t]
    return any(term in text or keyword_matches(article, term) for term in terms)
