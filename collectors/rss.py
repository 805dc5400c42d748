"""RSS collector using requests + feedparser, one thread per feed."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from time import struct_time
from typing import Any

import feedparser
import requests

from collectors.base import BaseCollector, strip_html
from config import (
    FEED_TIMEOUT_SECONDS,
    FEED_WORKERS,
    MIN_CONTENT_LENGTH,
    MIN_SUMMARY_LENGTH,
    MIN_TITLE_LENGTH,
    RSS_FEEDS,
    RSS_ITEMS_PER_FEED,
    RSS_MAX_ARTICLES,
    SUMMARY_MAX_CHARS,
    USER_AGENT,
)
from pipeline.dates import parse_datetime, utcnow

logger = logging.getLogger(__name__)


def clean_description(description: str | None) -> str:
    """Plain-text description truncated to SUMMARY_MAX_CHARS."""
    cleaned = strip_html(description)
    if len(cleaned) > SUMMARY_MAX_CHARS:
        cleaned = cleaned[:SUMMARY_MAX_CHARS] + "..."
    return cleaned


def extract_content(content: str | None, description: str | None = None) -> str:
    """Plain-text body; short bodies are prefixed with the cleaned description."""
    extracted = strip_html(content)
    if len(extracted) < MIN_CONTENT_LENGTH:
        prefix = clean_description(description)
        if prefix and prefix != extracted:
            extracted = f"{prefix} {extracted}".strip()
    return extracted


class RSSCollector(BaseCollector):
    """Collect the latest items from the configured RSS feeds."""

    source = "rss"

    def __init__(
        self,
        feeds: list[dict[str, str]] | None = None,
        timeout: float = FEED_TIMEOUT_SECONDS,
        workers: int = FEED_WORKERS,
    ) -> None:
        self.feeds = RSS_FEEDS if feeds is None else feeds
        self.timeout = timeout
        self.workers = workers

    @staticmethod
    def _parse_published(entry: Any) -> datetime | None:
        """Parse published date from feed entry."""
        for field in ("published_parsed", "updated_parsed"):
            val = getattr(entry, field, None)
            if isinstance(val, struct_time):
                try:
                    return datetime(*val[:6])
                except (ValueError, OverflowError):
                    pass
        for field in ("published", "updated"):
            parsed = parse_datetime(getattr(entry, field, None))
            if parsed:
                return parsed
        return None

    @staticmethod
    def _extract_image(entry: Any) -> str | None:
        for field in ("media_content", "media_thumbnail"):
            for media in getattr(entry, field, None) or []:
                if media.get("url"):
                    return media["url"]
        for link in getattr(entry, "links", None) or []:
            if link.get("rel") == "enclosure" and str(link.get("type", "")).startswith("image/"):
                return link.get("href")
        return None

    @staticmethod
    def _entry_body(entry: Any) -> tuple[str, str]:
        """Return (raw description, raw content) for an entry."""
        description = getattr(entry, "summary", None) or getattr(entry, "description", None) or ""
        content = ""
        if getattr(entry, "content", None):
            for c in entry.content:
                if c.get("value"):
                    content = c["value"]
                    break
        return description, content or description

    def _fetch_feed(self, feed: dict[str, str]) -> list[dict[str, Any]]:
        """Fetch and parse one feed. Any failure skips the feed."""
        name = feed["name"]
        logger.info("Fetching RSS feed: %s", name)
        try:
            resp = requests.get(feed["url"], headers={"User-Agent": USER_AGENT}, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("Failed to fetch RSS feed %s: %s", name, e)
            return []

        try:
            parsed = feedparser.parse(resp.content)
        except Exception as e:
            logger.error("Failed to parse RSS feed %s: %s", name, e)
            return []

        if parsed.bozo and not parsed.entries:
            logger.warning("Feed %s returned bozo with no entries: %s", name, parsed.get("bozo_exception"))
            return []

        items: list[dict[str, Any]] = []
        for entry in parsed.entries[:RSS_ITEMS_PER_FEED]:
            description, content = self._entry_body(entry)
            items.append({
                "title": strip_html(getattr(entry, "title", "")),
                "summary": clean_description(description),
                "content": extract_content(content, description),
                "link": getattr(entry, "link", "") or "",
                "published_at": self._parse_published(entry) or utcnow(),
                "source": name,
                "category": feed.get("category"),
                "image_url": self._extract_image(entry),
            })

        logger.info("Got %d entries from %s", len(items), name)
        return items

    def collect(self) -> list[dict[str, Any]]:
        """Fetch all feeds concurrently, keep substantive items, newest first."""
        if not self.feeds:
            return []
        with ThreadPoolExecutor(max_workers=max(1, min(self.workers, len(self.feeds)))) as pool:
            results = list(pool.map(self._fetch_feed, self.feeds))

        all_items = [item for items in results for item in items]
        logger.info("Fetched %d items from %d RSS feeds", len(all_items), len(self.feeds))

        kept = [
            item for item in all_items
            if item["title"] and item["summary"] and item["link"]
            and len(item["title"]) > MIN_TITLE_LENGTH
            and len(item["summary"]) > MIN_SUMMARY_LENGTH
        ]
        kept.sort(key=lambda item: item["published_at"], reverse=True)
        return kept[:RSS_MAX_ARTICLES]
