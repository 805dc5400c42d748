"""Daily news digest podcast: article selection, script and audio."""

import logging
import math
from typing import Any, Protocol

from config import AI_ENRICHMENT_ENABLED, PODCAST_MAX_ARTICLES, PODCAST_WORDS_PER_MINUTE
from db.models import CurationState
from pipeline.dates import utcnow
from pipeline.filtering import apply_filters
from tagging.llm import ClaudeEnricher, EnrichmentError

logger = logging.getLogger(__name__)


class PodcastGenerationError(RuntimeError):
    """No article survived selection for the podcast."""


class ScriptWriter(Protocol):
    def write_podcast_script(self, articles: list[dict[str, Any]]) -> str: ...


class Synthesizer(Protocol):
    def synthesize(self, script: str) -> str:
        """Return an opaque audio reference (URL or path) for ``script``."""
        ...


def estimate_duration(script: str) -> int:
    """Speaking time in seconds at 150 words per minute."""
    words = len(script.split())
    return math.ceil(words / PODCAST_WORDS_PER_MINUTE * 60)


def build_fallback_script(articles: list[dict[str, Any]]) -> str:
    """Plain template script used when the LLM writer is unavailable."""
    lines = [
        "[INTRO]",
        f"Good morning, and welcome to your daily news digest. Today we have {len(articles)} stories for you.",
        "",
    ]
    for i, article in enumerate(articles, start=1):
        lines.append(f"[STORY {i}]")
        lines.append(f"From {article.get('source', 'our sources')}: {article.get('title', '')}.")
        if article.get("summary"):
            lines.append(article["summary"])
        lines.append("")
    lines.append("[OUTRO]")
    lines.append("That's all for today. Thanks for listening, and have a great day.")
    return "\n".join(lines)


class TemplateScriptWriter:
    """Script writer used when AI enrichment is disabled."""

    def write_podcast_script(self, articles: list[dict[str, Any]]) -> str:
        return build_fallback_script(articles)


def default_writer() -> ScriptWriter:
    """Claude script writer when enabled in config, the plain template otherwise."""
    return ClaudeEnricher() if AI_ENRICHMENT_ENABLED else TemplateScriptWriter()


class PodcastService:
    def __init__(
        self,
        storage,
        writer: ScriptWriter | None = None,
        synthesizer: Synthesizer | None = None,
    ) -> None:
        self.storage = storage
        self.writer = writer or default_writer()
        self.synthesizer = synthesizer

    def _write_script(self, articles: list[dict[str, Any]]) -> str:
        try:
            script = self.writer.write_podcast_script(articles)
            if script and script.strip():
                return script
            logger.warning("Script writer returned empty script, using template")
        except EnrichmentError as e:
            logger.warning("Script generation failed, using template: %s", e)
        return build_fallback_script(articles)

    def _synthesize(self, script: str) -> str | None:
        if self.synthesizer is None:
            return None
        try:
            return self.synthesizer.synthesize(script) or None
        except Exception:
            logger.exception("Audio synthesis failed, podcast will have no audio")
            return None

    def select_articles(self, user_id: str | None = None) -> list[dict[str, Any]]:
        """Up to PODCAST_MAX_ARTICLES curated/top-five articles, personalized for the user."""
        pool: dict[int, dict[str, Any]] = {}
        for flag in (CurationState.CURATED, CurationState.TOP_FIVE):
            for article in self.storage.get_articles_by_flag(flag):
                pool.setdefault(article["id"], article)
        sample = list(pool.values())[:PODCAST_MAX_ARTICLES]
        return apply_filters(self.storage, sample, user_id)

    def generate_daily_podcast(self, user_id: str | None = None) -> dict[str, Any]:
        articles = self.select_articles(user_id)
        if not articles:
            raise PodcastGenerationError("No articles available for podcast generation")

        script = self._write_script(articles)
        podcast = self.storage.create_podcast({
            "title": f"Daily News Digest - {utcnow():%Y-%m-%d}",
            "description": (
                f"Your personalized 5-10 minute news podcast covering {len(articles)} "
                "curated stories from today's top news."
            ),
            "audio_url": self._synthesize(script),
            "duration": estimate_duration(script),
            "transcript": script,
            "article_ids": [a["id"] for a in articles],
            "is_processing": False,
        })
        logger.info("Generated podcast %s with %d articles", podcast["id"], len(articles))
        return podcast

    def regenerate_podcast(self, podcast_id: int) -> dict[str, Any] | None:
        """Rebuild script and audio from the podcast's stored articles. None if unknown."""
        existing = self.storage.get_podcast(podcast_id)
        if existing is None:
            return None

        self.storage.update_podcast(podcast_id, is_processing=True)
        try:
            articles = self.storage.get_articles_by_ids(existing["article_ids"])
            script = self._write_script(articles)
            return self.storage.update_podcast(
                podcast_id,
                transcript=script,
                audio_url=self._synthesize(script),
                duration=estimate_duration(script),
                is_processing=False,
            )
        except Exception:
            self.storage.update_podcast(podcast_id, is_processing=False)
            raise

    def get_podcast(self, podcast_id: int) -> dict[str, Any] | None:
        return self.storage.get_podcast(podcast_id)

    def get_podcasts(self) -> list[dict[str, Any]]:
        return self.storage.get_podcasts()
