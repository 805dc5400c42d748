"""Ingestion orchestrator: fetch → enrich → dedup → persist → curate."""

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from collectors.base import BaseCollector
from collectors.newsapi import NewsAPICollector
from collectors.rss import RSSCollector
from config import AI_ENRICHMENT_ENABLED, MIN_NEW_ARTICLES, REFRESH_INTERVAL_MINUTES
from pipeline.curation import CurationResult, run_curation
from pipeline.dates import utcnow
from pipeline.dedup import deduplicate
from tagging.enrichment import Enricher, HeuristicEnricher, enrich_candidate
from tagging.keywords import categorize
from tagging.llm import ClaudeEnricher

logger = logging.getLogger(__name__)


class OrchestratorState(enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PROCESSING = "processing"
    CURATING = "curating"


@dataclass
class FetchReport:
    fetched: int = 0
    malformed: int = 0
    duplicates: int = 0
    created: int = 0
    supplemented: int = 0
    top_five: int = 0
    curated: int = 0


def default_enricher() -> Enricher:
    """Claude enrichment when enabled in config, local heuristics otherwise."""
    return ClaudeEnricher() if AI_ENRICHMENT_ENABLED else HeuristicEnricher()


class NewsService:
    """Periodic news ingestion and curation.

    ``last_fetch_time`` starts as None for every instance and only moves
    forward after a cycle completes, so a failed cycle is retried on the
    next call. The rate limit is advisory: overlapping runs are tolerated
    because inserts are idempotent on the normalized URL.
    """

    def __init__(
        self,
        storage,
        rss: BaseCollector | None = None,
        newsapi: BaseCollector | None = None,
        enricher: Enricher | None = None,
        clock: Callable[[], datetime] | None = None,
        refresh_interval: timedelta = timedelta(minutes=REFRESH_INTERVAL_MINUTES),
    ) -> None:
        self.storage = storage
        self.rss = rss or RSSCollector()
        self.newsapi = newsapi if newsapi is not None else NewsAPICollector()
        self.enricher = enricher or default_enricher()
        self.refresh_interval = refresh_interval
        self._clock = clock or utcnow
        self.last_fetch_time: datetime | None = None
        self.state = OrchestratorState.IDLE

    def _is_rate_limited(self, now: datetime) -> bool:
        return self.last_fetch_time is not None and now - self.last_fetch_time < self.refresh_interval

    def _ingest(self, candidates: list[dict[str, Any]], report: FetchReport) -> int:
        """Enrich, dedup within the batch and persist. Returns the number of new rows."""
        enriched = []
        for candidate in candidates:
            article = enrich_candidate(candidate, self.enricher)
            if not article.get("category"):
                article["category"] = categorize(article["keywords"])
            enriched.append(article)

        unique = deduplicate(enriched, now=self._clock())
        report.duplicates += len(enriched) - len(unique)

        created = 0
        for article in unique:
            _, is_new = self.storage.save_article(article)
            if is_new:
                created += 1
            else:
                logger.debug("Already stored: %s", article["url"])
        report.created += created
        return created

    def _supplement(self, report: FetchReport) -> None:
        """Top up from NewsAPI. Failures are logged and ignored."""
        try:
            candidates, malformed = self.newsapi.run()
            report.fetched += len(candidates) + malformed
            report.malformed += malformed
            self.state = OrchestratorState.PROCESSING
            report.supplemented = self._ingest(candidates, report)
        except Exception:
            logger.exception("NewsAPI supplement failed")

    def run_curation(self) -> CurationResult:
        return run_curation(self.storage, now=self._clock())

    def fetch_latest_news(self, force_refresh: bool = False) -> FetchReport | None:
        """Run one ingestion cycle. Never raises.

        Returns None when the call is rate-limited or the cycle fails.
        """
        now = self._clock()
        if not force_refresh and self._is_rate_limited(now):
            logger.debug("Skipping fetch, last run at %s", self.last_fetch_time)
            return None

        report = FetchReport()
        try:
            self.state = OrchestratorState.FETCHING
            logger.info("Fetching latest news from RSS feeds...")
            candidates, malformed = self.rss.run()
            report.fetched = len(candidates) + malformed
            report.malformed = malformed

            self.state = OrchestratorState.PROCESSING
            created = self._ingest(candidates, report)
            logger.info("Stored %d new articles from RSS (%d candidates)", created, len(candidates))

            if created < MIN_NEW_ARTICLES:
                logger.info("RSS feeds provided limited content, supplementing with NewsAPI...")
                self.state = OrchestratorState.FETCHING
                self._supplement(report)

            self.state = OrchestratorState.CURATING
            result = self.run_curation()
            report.top_five = len(result.top_five)
            report.curated = len(result.curated)

            self.last_fetch_time = now
            logger.info("News fetch complete: %s", report)
            return report
        except Exception:
            logger.exception("Failed to fetch news")
            return None
        finally:
            self.state = OrchestratorState.IDLE
