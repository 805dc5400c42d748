"""API routes for newsflow."""

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from pydantic import BaseModel, Field

from db.models import CurationState
from db.storage import KEYWORD_TYPES, Storage
from pipeline.filtering import apply_filters, fetch_filter_config, filter_articles
from services.news import NewsService
from services.podcast import PodcastGenerationError, PodcastService

router = APIRouter(prefix="/api")

_storage: Storage | None = None
_news_service: NewsService | None = None
_podcast_service: PodcastService | None = None


def get_storage() -> Storage:
    global _storage
    if _storage is None:
        _storage = Storage()
    return _storage


def get_news_service(storage: Storage = Depends(get_storage)) -> NewsService:
    global _news_service
    if _news_service is None:
        _news_service = NewsService(storage)
    return _news_service


def get_podcast_service(storage: Storage = Depends(get_storage)) -> PodcastService:
    global _podcast_service
    if _podcast_service is None:
        _podcast_service = PodcastService(storage)
    return _podcast_service


def current_user_id(x_user_id: str | None = Header(default=None)) -> str | None:
    """User id supplied by the upstream auth layer; None for anonymous callers."""
    return x_user_id or None


class KeywordIn(BaseModel):
    keyword: str = Field(min_length=1)
    type: str


class ReplacementPatternIn(BaseModel):
    find_text: str = Field(min_length=1)
    replace_text: str = ""
    case_sensitive: bool = False


class PreferencesIn(BaseModel):
    sentiment_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
    real_time_filtering: bool | None = None


@router.get("/health")
def health() -> dict[str, str]:
    """Healthcheck endpoint."""
    return {"status": "ok", "service": "newsflow"}


# --- Articles ---

@router.get("/articles")
def get_articles(storage: Storage = Depends(get_storage)) -> list[dict[str, Any]]:
    return storage.get_articles()


@router.get("/articles/feed")
def get_personalized_feed(
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> list[dict[str, Any]]:
    """All stored articles through the caller's filter pipeline."""
    return apply_filters(storage, storage.get_articles(), user_id)


@router.get("/articles/curated")
def get_curated_articles(
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> list[dict[str, Any]]:
    return apply_filters(storage, storage.get_articles_by_flag(CurationState.CURATED), user_id)


@router.get("/articles/top-five")
def get_top_five_articles(
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> list[dict[str, Any]]:
    return apply_filters(storage, storage.get_articles_by_flag(CurationState.TOP_FIVE), user_id)


@router.post("/articles/{article_id}/view")
def record_view(article_id: int, storage: Storage = Depends(get_storage)) -> dict[str, Any]:
    article = storage.increment_views(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


@router.post("/articles/{article_id}/like")
def record_like(article_id: int, storage: Storage = Depends(get_storage)) -> dict[str, Any]:
    article = storage.increment_likes(article_id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


# --- Keywords ---

@router.get("/keywords")
def get_keywords(storage: Storage = Depends(get_storage)) -> list[dict[str, Any]]:
    return storage.get_keywords()


@router.get("/keywords/{keyword_type}")
def get_keywords_by_type(keyword_type: str, storage: Storage = Depends(get_storage)) -> list[dict[str, Any]]:
    return storage.get_keywords_by_type(keyword_type)


@router.post("/keywords")
def create_keyword(body: KeywordIn, storage: Storage = Depends(get_storage)) -> dict[str, Any]:
    if body.type not in KEYWORD_TYPES:
        raise HTTPException(status_code=400, detail=f"type must be one of {list(KEYWORD_TYPES)}")
    return storage.create_keyword(body.keyword, body.type)


@router.delete("/keywords/{keyword_id}")
def delete_keyword(keyword_id: int, storage: Storage = Depends(get_storage)) -> dict[str, bool]:
    if not storage.delete_keyword(keyword_id):
        raise HTTPException(status_code=404, detail="Keyword not found")
    return {"success": True}


# --- Replacement patterns ---

@router.get("/replacement-patterns")
def get_replacement_patterns(
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> list[dict[str, Any]]:
    return storage.get_replacement_patterns(user_id)


@router.post("/replacement-patterns")
def create_replacement_pattern(
    body: ReplacementPatternIn,
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> dict[str, Any]:
    if not user_id:
        raise HTTPException(status_code=401, detail="Replacement patterns require a signed-in user")
    return storage.create_replacement_pattern(user_id, body.find_text, body.replace_text, body.case_sensitive)


@router.delete("/replacement-patterns/{pattern_id}")
def delete_replacement_pattern(
    pattern_id: int,
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> dict[str, bool]:
    if not user_id or not storage.delete_replacement_pattern(pattern_id, user_id):
        raise HTTPException(status_code=404, detail="Replacement pattern not found")
    return {"success": True}


# --- Preferences ---

@router.get("/preferences")
def get_preferences(
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> dict[str, Any]:
    return storage.get_user_preferences(user_id)


@router.put("/preferences")
def update_preferences(
    body: PreferencesIn,
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> dict[str, Any]:
    return storage.update_user_preferences(user_id, body.sentiment_threshold, body.real_time_filtering)


@router.get("/filter-preview")
def filter_preview(
    sentiment_threshold: float | None = Query(default=None, ge=0.0, le=1.0),
    storage: Storage = Depends(get_storage),
    user_id: str | None = Depends(current_user_id),
) -> dict[str, Any]:
    """Show what the caller's filters remove from the full article set."""
    articles = storage.get_articles()
    config = fetch_filter_config(storage, user_id)
    if sentiment_threshold is not None:
        config.sentiment_threshold = sentiment_threshold
    filtered = filter_articles(articles, config)

    total = len(articles)
    passed = len(filtered)
    return {
        "original": articles[:20],
        "filtered": filtered[:20],
        "stats": {
            "total_articles": total,
            "filtered_count": total - passed,
            "passed_count": passed,
            "avg_sentiment": round(sum(a["sentiment"] for a in filtered) / passed, 3) if passed else 0,
            "anxiety_reduction": round((total - passed) / total * 100) if total else 0,
        },
    }


# --- Ingestion ---

@router.post("/fetch-news")
def fetch_news(
    force: bool = Query(default=False),
    service: NewsService = Depends(get_news_service),
) -> dict[str, Any]:
    report = service.fetch_latest_news(force_refresh=force)
    return {
        "success": True,
        "ran": report is not None,
        "report": asdict(report) if report else None,
        "last_fetch_time": service.last_fetch_time.isoformat() if service.last_fetch_time else None,
    }


# --- Podcasts ---

@router.get("/podcasts")
def get_podcasts(service: PodcastService = Depends(get_podcast_service)) -> list[dict[str, Any]]:
    return service.get_podcasts()


@router.get("/podcasts/{podcast_id}")
def get_podcast(podcast_id: int, service: PodcastService = Depends(get_podcast_service)) -> dict[str, Any]:
    podcast = service.get_podcast(podcast_id)
    if podcast is None:
        raise HTTPException(status_code=404, detail="Podcast not found")
    return podcast


@router.post("/podcasts/generate")
def generate_podcast(
    service: PodcastService = Depends(get_podcast_service),
    user_id: str | None = Depends(current_user_id),
) -> dict[str, Any]:
    try:
        podcast = service.generate_daily_podcast(user_id)
    except PodcastGenerationError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return {"success": True, "podcast_id": podcast["id"], "podcast": podcast}


@router.post("/podcasts/{podcast_id}/regenerate")
def regenerate_podcast(podcast_id: int, service: PodcastService = Depends(get_podcast_service)) -> dict[str, Any]:
    podcast = service.regenerate_podcast(podcast_id)
    if podcast is None:
        raise HTTPException(status_code=404, detail="Podcast not found")
    return {"success": True, "podcast": podcast}
