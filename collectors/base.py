"""Base collector and raw-item → candidate article conversion."""

import html
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from tagging.keywords import estimate_read_time

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("title", "summary", "content", "link")


def strip_html(text: str | None) -> str:
    """Remove HTML tags, unescape entities and collapse whitespace."""
    text = re.sub(r"<[^>]+>", " ", text or "")
    return re.sub(r"\s+", " ", html.unescape(text)).strip()


def to_candidate(raw: dict[str, Any]) -> dict[str, Any] | None:
    """Convert a raw feed item to a candidate article, or None if malformed."""
    if any(not (raw.get(f) or "").strip() for f in _REQUIRED_FIELDS):
        return None
    return {
        "title": raw["title"].strip(),
        "summary": raw["summary"].strip(),
        "content": raw["content"].strip(),
        "url": raw["link"].strip(),
        "source": raw.get("source") or "unknown",
        "category": raw.get("category"),
        "image_url": raw.get("image_url"),
        "read_time": estimate_read_time(raw["content"]),
        "published_at": raw.get("published_at"),
    }


class BaseCollector(ABC):
    """Abstract base for all news sources."""

    source: str  # Must be set by subclasses

    @abstractmethod
    def collect(self) -> list[dict[str, Any]]:
        """Fetch raw items: title, summary, content, link, published_at, source, category."""
        ...

    def run(self) -> tuple[list[dict[str, Any]], int]:
        """Collect and convert. Returns (candidates, malformed_count)."""
        raw_items = self.collect()
        candidates: list[dict[str, Any]] = []
        malformed = 0
        for raw in raw_items:
            candidate = to_candidate(raw)
            if candidate is None:
                malformed += 1
                logger.debug("[%s] Dropped malformed item: %r", self.source, raw.get("title"))
                continue
            candidates.append(candidate)

        logger.info("[%s] %d candidates (%d malformed dropped)", self.source, len(candidates), malformed)
        return candidates, malformed
