from tagging.enrichment import Enricher, HeuristicEnricher, enrich_candidate
from tagging.keywords import basic_keywords, categorize, default_sentiment, estimate_read_time
from tagging.llm import ClaudeEnricher, EnrichmentError

__all__ = [
    "ClaudeEnricher",
    "Enricher",
    "EnrichmentError",
    "HeuristicEnricher",
    "basic_keywords",
    "categorize",
    "default_sentiment",
    "enrich_candidate",
    "estimate_read_time",
]
