from pipeline.curation import CurationResult, run_curation, score_article, select_curation
from pipeline.dedup import deduplicate, quality_score
from pipeline.filtering import FilterConfig, LiteralPattern, apply_filters, filter_articles
from pipeline.text import jaccard_similarity
from pipeline.urls import normalize_url

__all__ = [
    "CurationResult",
    "FilterConfig",
    "LiteralPattern",
    "apply_filters",
    "deduplicate",
    "filter_articles",
    "jaccard_similarity",
    "normalize_url",
    "quality_score",
    "run_curation",
    "score_article",
    "select_curation",
]
