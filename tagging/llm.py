"""LLM enrichment using Claude Code CLI: sentiment, keywords, summaries, podcast scripts.

Every call is best-effort. Failures raise ``EnrichmentError`` so the caller
can fall back to the heuristics in ``tagging.keywords``.
"""

import json
import logging
import os
import re
import subprocess
import time
from typing import Any

from config import CLAUDE_MODEL, CLAUDE_TIMEOUT_SECONDS, MAX_BASIC_KEYWORDS

logger = logging.getLogger(__name__)


class EnrichmentError(RuntimeError):
    """The LLM call failed or returned something unusable."""


def _extract_json(text: str) -> Any:
    """Extract a JSON object or array from text that may contain surrounding prose or markdown."""
    # Try direct parse first
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Try extracting from markdown code block
    m = re.search(r"```(?:json)?\s*\n(.*?)```", text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(1).strip())
        except json.JSONDecodeError:
            pass

    # Try finding a bare JSON value in the text
    for pattern in (r"\{[\s\S]*\}", r"\[[\s\S]*\]"):
        m = re.search(pattern, text)
        if m:
            try:
                return json.loads(m.group(0))
            except json.JSONDecodeError:
                pass

    raise json.JSONDecodeError("No JSON value found in response", text, 0)


def _clamp(value: Any) -> float:
    return max(0.0, min(1.0, float(value)))


_SENTIMENT_PROMPT = """You are a sentiment analysis expert focused on reducing anxiety for young professionals.
Rate the news content below from 0 to 1 (1 = most positive / least anxiety-inducing) and give a
confidence between 0 and 1. Consider optimism, opportunity, growth and positive career implications.

Respond ONLY with JSON: {"rating": number, "confidence": number}"""

_KEYWORDS_PROMPT = """Extract the most relevant keywords from this news content. Focus on topics,
industries, skills and concepts useful for filtering. Limit to 10 keywords.

Respond ONLY with JSON: {"keywords": ["keyword", ...]}"""

_SUMMARY_PROMPT = """You are a professional news curator for young professionals. Write a concise,
engaging summary (under 150 characters) that is honest about the content and highlights
professional insights. Respond with the summary text only."""

_PODCAST_PROMPT = """You are a podcast host creating a daily news digest for young professionals.
Write an engaging 5-10 minute script that opens with a warm greeting, introduces the stories,
covers each story (why it matters, career implications, positive framing), uses smooth
transitions and ends with an uplifting summary.

Format the script with sections: [INTRO], [STORY 1], [STORY 2], ..., [OUTRO].
Respond with the script text only."""

# Pause between CLI calls to avoid hammering
_MIN_INTERVAL = 2.0


class ClaudeEnricher:
    """Article enrichment via Claude Code CLI."""

    def __init__(self, model: str = CLAUDE_MODEL, timeout: int = CLAUDE_TIMEOUT_SECONDS) -> None:
        self.model = model
        self.timeout = timeout
        self._last_call = 0.0
        self._calls = 0

    def _rate_limit(self) -> None:
        elapsed = time.time() - self._last_call
        if elapsed < _MIN_INTERVAL:
            time.sleep(_MIN_INTERVAL - elapsed)
        self._last_call = time.time()

    def _run(self, prompt: str) -> str:
        """Run one prompt through the CLI and return the response text."""
        self._rate_limit()
        try:
            # Clear CLAUDECODE env var to allow nested CLI calls
            env = {k: v for k, v in os.environ.items() if k != "CLAUDECODE"}
            result = subprocess.run(
                ["claude", "-p", prompt, "--output-format", "json", "--model", self.model],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise EnrichmentError("claude CLI timed out") from e
        except OSError as e:
            raise EnrichmentError(f"claude CLI unavailable: {e}") from e

        if result.returncode != 0:
            raise EnrichmentError(f"claude CLI failed: {result.stderr.strip()}")

        # claude --output-format json wraps response in {"type":"result","result":"..."}
        try:
            outer = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise EnrichmentError("claude CLI returned non-JSON output") from e
        self._calls += 1
        text = outer.get("result", "") if isinstance(outer, dict) else ""
        if not text or not text.strip():
            raise EnrichmentError("claude CLI returned an empty result")
        return text.strip()

    def _run_json(self, prompt: str) -> Any:
        text = self._run(prompt)
        try:
            return _extract_json(text)
        except json.JSONDecodeError as e:
            raise EnrichmentError(f"Failed to parse LLM response: {e}") from e

    def analyze_sentiment(self, text: str) -> dict[str, float]:
        data = self._run_json(f"{_SENTIMENT_PROMPT}\n\n{text}")
        if not isinstance(data, dict) or "rating" not in data:
            raise EnrichmentError("sentiment response missing 'rating'")
        try:
            return {
                "rating": _clamp(data["rating"]),
                "confidence": _clamp(data.get("confidence", 0.5)),
            }
        except (TypeError, ValueError) as e:
            raise EnrichmentError(f"invalid sentiment values: {data!r}") from e

    def extract_keywords(self, text: str) -> list[str]:
        data = self._run_json(f"{_KEYWORDS_PROMPT}\n\n{text}")
        keywords = data.get("keywords") if isinstance(data, dict) else data
        if not isinstance(keywords, list):
            raise EnrichmentError("keyword response is not a list")
        return [str(k) for k in keywords if k][:MAX_BASIC_KEYWORDS]

    def summarize(self, title: str, content: str) -> str:
        return self._run(f"{_SUMMARY_PROMPT}\n\nTitle: {title}\n\nContent: {content[:1000]}")

    def write_podcast_script(self, articles: list[dict[str, Any]]) -> str:
        stories = [
            {
                "title": a.get("title"),
                "summary": a.get("summary"),
                "source": a.get("source"),
                "category": a.get("category"),
            }
            for a in articles
        ]
        return self._run(
            f"{_PODCAST_PROMPT}\n\nCreate a podcast script for these {len(stories)} stories:\n"
            + json.dumps(stories, indent=2)
        )

    @property
    def calls(self) -> int:
        return self._calls
