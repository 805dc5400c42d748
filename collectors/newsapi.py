"""NewsAPI search collector, used to top up thin RSS runs."""

import logging
import re
from typing import Any

import requests

from collectors.base import BaseCollector
from config import FEED_TIMEOUT_SECONDS, NEWS_API_BASE, NEWS_API_KEY, NEWS_API_PAGE_SIZE, NEWS_API_QUERIES

logger = logging.getLogger(__name__)

# NewsAPI truncates content and appends e.g. "… [+1234 chars]"
_TRUNCATION_RE = re.compile(r"\s*\[\+\d+ chars\]\s*$")


class NewsAPICollector(BaseCollector):
    """Collect articles from the NewsAPI /everything endpoint, one query per topic."""

    source = "newsapi"

    def __init__(
        self,
        api_key: str = NEWS_API_KEY,
        queries: list[str] | None = None,
        timeout: float = FEED_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.queries = NEWS_API_QUERIES if queries is None else queries
        self.timeout = timeout

    def _search(self, query: str) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "q": query,
            "language": "en",
            "sortBy": "publishedAt",
            "pageSize": NEWS_API_PAGE_SIZE,
            "apiKey": self.api_key,
        }
        try:
            resp = requests.get(f"{NEWS_API_BASE}/everything", params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("NewsAPI request for %r failed: %s", query, e)
            return []

        items: list[dict[str, Any]] = []
        for hit in data.get("articles", []):
            title = hit.get("title") or ""
            if title == "[Removed]":
                continue
            items.append({
                "title": title,
                "summary": hit.get("description") or "",
                "content": _TRUNCATION_RE.sub("", hit.get("content") or ""),
                "link": hit.get("url") or "",
                "published_at": hit.get("publishedAt"),
                "source": (hit.get("source") or {}).get("name") or self.source,
                "category": None,  # inferred from keywords during ingestion
                "image_url": hit.get("urlToImage"),
            })
        return items

    def collect(self) -> list[dict[str, Any]]:
        if not self.api_key:
            logger.info("NEWS_API_KEY not set, skipping NewsAPI")
            return []

        all_items: list[dict[str, Any]] = []
        for query in self.queries:
            results = self._search(query)
            logger.info("Got %d NewsAPI articles for '%s'", len(results), query)
            all_items.extend(results)
        return all_items
