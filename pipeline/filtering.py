"""Per-request personalized filter pipeline.

Stages run in a fixed order: dedup, freshness window, blocked keywords,
prioritized-keyword scoring, text replacement, sentiment threshold, sort.
Replacement runs after the keyword stages, so blocking and boosting always
see the original text.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from config import DEFAULT_SENTIMENT_THRESHOLD, FRESHNESS_WINDOW_DAYS
from pipeline.dates import utcnow, within_days
from pipeline.dedup import deduplicate
from pipeline.text import article_text, has_blocked_term, keyword_matches

logger = logging.getLogger(__name__)


class LiteralPattern:
    """A user find/replace rule compiled as an escaped, literal regex.

    ``find_text`` is always escaped here, so user input is never interpreted
    as regex syntax. The replacement text is inserted verbatim.
    """

    def __init__(self, find_text: str, replace_text: str = "", case_sensitive: bool = False) -> None:
        if not find_text:
            raise ValueError("find_text must not be empty")
        self.find_text = find_text
        self.replace_text = replace_text or ""
        self.case_sensitive = case_sensitive
        flags = 0 if case_sensitive else re.IGNORECASE
        self._regex = re.compile(re.escape(find_text), flags)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "LiteralPattern":
        return cls(record["find_text"], record.get("replace_text") or "", bool(record.get("case_sensitive")))

    def apply(self, text: str) -> str:
        return self._regex.sub(lambda _m: self.replace_text, text)

    def __repr__(self) -> str:
        return f"LiteralPattern({self.find_text!r} -> {self.replace_text!r}, case_sensitive={self.case_sensitive})"


def apply_replacements(text: str | None, patterns: list[LiteralPattern]) -> str:
    """Apply patterns in order, each to the output of the previous one."""
    result = text or ""
    for pattern in patterns:
        result = pattern.apply(result)
    return result


@dataclass
class FilterConfig:
    user_id: str | None = None
    blocked_keywords: list[str] = field(default_factory=list)
    prioritized_keywords: list[str] = field(default_factory=list)
    replacement_patterns: list[LiteralPattern] = field(default_factory=list)
    sentiment_threshold: float = DEFAULT_SENTIMENT_THRESHOLD
    freshness_days: float = FRESHNESS_WINDOW_DAYS


def fetch_filter_config(storage, user_id: str | None = None) -> FilterConfig:
    """Load the global keyword sets plus the caller's patterns and threshold."""
    blocked = [k["keyword"].lower() for k in storage.get_keywords_by_type("blocked")]
    prioritized = [k["keyword"].lower() for k in storage.get_keywords_by_type("prioritized")]

    patterns: list[LiteralPattern] = []
    threshold = DEFAULT_SENTIMENT_THRESHOLD
    if user_id:
        for record in storage.get_replacement_patterns(user_id):
            try:
                patterns.append(LiteralPattern.from_record(record))
            except ValueError:
                logger.warning("Skipping invalid replacement pattern %s for user %s", record.get("id"), user_id)
        stored = storage.get_user_preferences(user_id).get("sentiment_threshold")
        if stored is not None:
            threshold = stored

    return FilterConfig(
        user_id=user_id,
        blocked_keywords=blocked,
        prioritized_keywords=prioritized,
        replacement_patterns=patterns,
        sentiment_threshold=threshold,
    )


def priority_score(article: dict[str, Any], prioritized: list[str]) -> int:
    """Prioritized terms found in title+summary, plus those found in the keywords.

    A term present in both places counts twice.
    """
    if not prioritized:
        return 0
    text = article_text(article)
    in_text = sum(1 for term in prioritized if term in text)
    in_keywords = sum(1 for term in prioritized if keyword_matches(article, term))
    return in_text + in_keywords


def filter_articles(
    articles: list[dict[str, Any]],
    config: FilterConfig,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Run the pipeline with an already-resolved config. Input dicts are not mutated."""
    now = now or utcnow()

    unique = deduplicate(articles, now=now)
    fresh = [a for a in unique if within_days(a.get("published_at"), config.freshness_days, now)]
    allowed = [a for a in fresh if not has_blocked_term(a, config.blocked_keywords)]

    transformed: list[dict[str, Any]] = []
    for article in allowed:
        item = dict(article)
        item["priority_score"] = priority_score(article, config.prioritized_keywords)
        if config.replacement_patterns:
            item["title"] = apply_replacements(article.get("title"), config.replacement_patterns)
            item["summary"] = apply_replacements(article.get("summary"), config.replacement_patterns)
        transformed.append(item)

    passed = [a for a in transformed if (a.get("sentiment") or 0.0) >= config.sentiment_threshold]
    passed.sort(key=lambda a: (a["priority_score"], a.get("sentiment") or 0.0), reverse=True)

    logger.debug(
        "Filtered %d articles -> %d (fresh %d, unblocked %d)",
        len(articles), len(passed), len(fresh), len(allowed),
    )
    return passed


def apply_filters(
    storage,
    articles: list[dict[str, Any]],
    user_id: str | None = None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """Personalize ``articles`` for ``user_id`` (or the anonymous default view)."""
    if not articles:
        return []
    return filter_articles(articles, fetch_filter_config(storage, user_id), now=now)
