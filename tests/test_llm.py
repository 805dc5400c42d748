"""Tests for the Claude CLI enricher and the enrichment fallback sequence."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from tagging.enrichment import HeuristicEnricher, enrich_candidate
from tagging.llm import ClaudeEnricher, EnrichmentError, _extract_json


def _completed(result: str, returncode: int = 0) -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.stdout = json.dumps({"type": "result", "result": result})
    proc.stderr = "" if returncode == 0 else "error"
    return proc


@pytest.fixture
def enricher(monkeypatch):
    monkeypatch.setattr("tagging.llm._MIN_INTERVAL", 0.0)
    return ClaudeEnricher(model="test-model", timeout=5)


def test_extract_json_variants():
    assert _extract_json('{"rating": 0.8}') == {"rating": 0.8}
    assert _extract_json('Here you go:\n```json\n{"rating": 0.4}\n```') == {"rating": 0.4}
    assert _extract_json('Sure! ["a", "b"] hope that helps') == ["a", "b"]
    with pytest.raises(json.JSONDecodeError):
        _extract_json("no json here")


def test_analyze_sentiment_clamps(enricher):
    with patch("tagging.llm.subprocess.run", return_value=_completed('{"rating": 1.7, "confidence": 0.9}')) as run:
        result = enricher.analyze_sentiment("Good news")
    assert result == {"rating": 1.0, "confidence": 0.9}
    args = run.call_args.args[0]
    assert args[:2] == ["claude", "-p"]
    assert args[-2:] == ["--model", "test-model"]
    assert "CLAUDECODE" not in run.call_args.kwargs["env"]
    assert enricher.calls == 1


def test_extract_keywords(enricher):
    with patch("tagging.llm.subprocess.run", return_value=_completed('{"keywords": ["ai", "hiring", ""]}')):
        assert enricher.extract_keywords("text") == ["ai", "hiring"]


def test_nonzero_exit_raises(enricher):
    with patch("tagging.llm.subprocess.run", return_value=_completed("", returncode=1)):
        with pytest.raises(EnrichmentError):
            enricher.summarize("t", "c")


def test_timeout_raises(enricher):
    with patch("tagging.llm.subprocess.run", side_effect=subprocess.TimeoutExpired("claude", 5)):
        with pytest.raises(EnrichmentError):
            enricher.analyze_sentiment("text")


def test_missing_cli_raises(enricher):
    with patch("tagging.llm.subprocess.run", side_effect=FileNotFoundError("claude")):
        with pytest.raises(EnrichmentError):
            enricher.extract_keywords("text")


def test_unparseable_response_raises(enricher):
    with patch("tagging.llm.subprocess.run", return_value=_completed("I cannot rate this")):
        with pytest.raises(EnrichmentError):
            enricher.analyze_sentiment("text")


# --- enrich_candidate ---

CANDIDATE = {
    "title": "Startup hiring surges",
    "summary": "Short summary",
    "content": "Longer body text about hiring at startups across the region.",
    "url": "https://example.com/a",
    "source": "Example",
}


class _FailingEnricher:
    def analyze_sentiment(self, text):
        raise EnrichmentError("down")

    def extract_keywords(self, text):
        raise EnrichmentError("down")

    def summarize(self, title, content):
        raise EnrichmentError("down")


def test_enrich_falls_back_per_field():
    enriched = enrich_candidate(CANDIDATE, _FailingEnricher())
    assert enriched["sentiment"] == 0.7
    assert enriched["keywords"] == ["startup", "hiring", "surges", "short", "summary"]
    assert enriched["summary"] == "Short summary"
    assert "sentiment" not in CANDIDATE


def test_enrich_uses_enricher_results():
    fake = MagicMock()
    fake.analyze_sentiment.return_value = {"rating": 0.92, "confidence": 0.8}
    fake.extract_keywords.side_effect = EnrichmentError("partial outage")
    fake.summarize.return_value = "A better summary"

    enriched = enrich_candidate(CANDIDATE, fake)
    assert enriched["sentiment"] == 0.92
    assert enriched["keywords"][0] == "startup"
    assert enriched["summary"] == "A better summary"


def test_long_summary_not_resummarized():
    fake = MagicMock()
    fake.analyze_sentiment.return_value = {"rating": 0.5}
    fake.extract_keywords.return_value = ["x"]
    candidate = {**CANDIDATE, "summary": "s" * 150}
    enrich_candidate(candidate, fake)
    fake.summarize.assert_not_called()


def test_heuristic_enricher_defaults():
    enriched = enrich_candidate(CANDIDATE, HeuristicEnricher())
    assert enriched["sentiment"] == 0.7
    assert enriched["summary"] == "Short summary"
