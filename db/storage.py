"""Storage layer: CRUD and bulk curation updates over the newsflow tables.

Every method opens its own short-lived session and returns plain dicts, so
callers never hold live ORM objects across pipeline stages.
"""

import json
import logging
from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import DEFAULT_SENTIMENT, DEFAULT_SENTIMENT_THRESHOLD
from db.database import get_session, session_scope
from db.models import Article, CurationState, Keyword, Podcast, ReplacementPattern, UserPreferences
from pipeline.dates import parse_datetime, utcnow
from pipeline.urls import normalize_url

logger = logging.getLogger(__name__)

KEYWORD_TYPES = ("blocked", "prioritized")

_ARTICLE_FIELDS = {
    "title", "summary", "content", "source", "image_url", "category",
    "read_time", "views", "likes", "sentiment", "keywords",
    "is_curated", "is_top_five", "published_at",
}
_PODCAST_FIELDS = {
    "title", "description", "audio_url", "duration", "transcript",
    "article_ids", "is_processing",
}


class CurationOverlapError(ValueError):
    """An article id was passed as both top five and curated."""


def _parse_json_list(raw: str | None) -> list[Any]:
    """Parse a JSON array column to a list."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return []
    return parsed if isinstance(parsed, list) else []


def serialize_article(article: Article) -> dict[str, Any]:
    """Serialize an Article to a dict."""
    return {
        "id": article.id,
        "title": article.title,
        "summary": article.summary,
        "content": article.content,
        "source": article.source,
        "url": article.url,
        "image_url": article.image_url,
        "category": article.category,
        "read_time": article.read_time,
        "views": article.views or 0,
        "likes": article.likes or 0,
        "sentiment": article.sentiment,
        "keywords": [str(k) for k in _parse_json_list(article.keywords)],
        "is_curated": bool(article.is_curated),
        "is_top_five": bool(article.is_top_five),
        "published_at": article.published_at.isoformat() if article.published_at else None,
    }


def serialize_podcast(podcast: Podcast) -> dict[str, Any]:
    return {
        "id": podcast.id,
        "title": podcast.title,
        "description": podcast.description,
        "audio_url": podcast.audio_url,
        "duration": podcast.duration,
        "transcript": podcast.transcript,
        "article_ids": _parse_json_list(podcast.article_ids),
        "created_at": podcast.created_at.isoformat() if podcast.created_at else None,
        "is_processing": bool(podcast.is_processing),
    }


def _serialize_keyword(keyword: Keyword) -> dict[str, Any]:
    return {"id": keyword.id, "keyword": keyword.keyword, "type": keyword.type}


def _serialize_pattern(pattern: ReplacementPattern) -> dict[str, Any]:
    return {
        "id": pattern.id,
        "find_text": pattern.find_text,
        "replace_text": pattern.replace_text,
        "case_sensitive": bool(pattern.case_sensitive),
        "user_id": pattern.user_id,
    }


def _serialize_preferences(prefs: UserPreferences) -> dict[str, Any]:
    return {
        "id": prefs.id,
        "user_id": prefs.user_id,
        "sentiment_threshold": prefs.sentiment_threshold,
        "real_time_filtering": bool(prefs.real_time_filtering),
    }


def default_preferences(user_id: str | None = None) -> dict[str, Any]:
    """Preferences for callers with no stored row. Never persisted."""
    return {
        "id": None,
        "user_id": user_id,
        "sentiment_threshold": DEFAULT_SENTIMENT_THRESHOLD,
        "real_time_filtering": True,
    }


def _validate_threshold(value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"sentiment_threshold must be within [0, 1], got {value}")
    return value


class Storage:
    """Relational store for articles, keywords, replacement patterns, preferences and podcasts."""

    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory or get_session

    # --- Articles ---

    def save_article(self, candidate: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Insert a candidate article unless its normalized URL exists.

        Returns ``(article, created)``; an existing row is returned unchanged.
        """
        url = normalize_url(candidate.get("url"))
        sentiment = candidate.get("sentiment")
        if sentiment is None:
            sentiment = DEFAULT_SENTIMENT
        session = self._session_factory()
        try:
            existing = session.scalar(select(Article).where(Article.url == url))
            if existing is not None:
                return serialize_article(existing), False

            article = Article(
                title=candidate["title"],
                summary=candidate["summary"],
                content=candidate.get("content"),
                source=candidate["source"],
                url=url,
                image_url=candidate.get("image_url"),
                category=candidate.get("category") or "General",
                read_time=candidate.get("read_time") or 1,
                views=0,
                likes=0,
                sentiment=max(0.0, min(1.0, float(sentiment))),
                keywords=json.dumps(list(candidate.get("keywords") or [])),
                is_curated=False,
                is_top_five=False,
                published_at=parse_datetime(candidate.get("published_at")),
                collected_at=utcnow(),
            )
            session.add(article)
            try:
                session.commit()
            except IntegrityError:
                # A concurrent run inserted the same URL first
                session.rollback()
                logger.debug("Duplicate skipped: %s", url)
                existing = session.scalar(select(Article).where(Article.url == url))
                return serialize_article(existing), False
            return serialize_article(article), True
        finally:
            session.close()

    def create_article(self, candidate: dict[str, Any]) -> dict[str, Any]:
        """Idempotent on the normalized URL."""
        article, _ = self.save_article(candidate)
        return article

    def get_articles(self) -> list[dict[str, Any]]:
        session = self._session_factory()
        try:
            return [serialize_article(a) for a in session.scalars(select(Article).order_by(Article.id))]
        finally:
            session.close()

    def get_article(self, article_id: int) -> dict[str, Any] | None:
        session = self._session_factory()
        try:
            article = session.get(Article, article_id)
            return serialize_article(article) if article else None
        finally:
            session.close()

    def get_articles_by_ids(self, article_ids: Iterable[int]) -> list[dict[str, Any]]:
        """Articles in the order of ``article_ids``; unknown ids are skipped."""
        ids = list(article_ids)
        if not ids:
            return []
        session = self._session_factory()
        try:
            found = {a.id: a for a in session.scalars(select(Article).where(Article.id.in_(ids)))}
            return [serialize_article(found[i]) for i in ids if i in found]
        finally:
            session.close()

    def get_articles_by_flag(self, flag: CurationState) -> list[dict[str, Any]]:
        session = self._session_factory()
        try:
            query = select(Article)
            if flag is CurationState.TOP_FIVE:
                query = query.where(Article.is_top_five.is_(True))
            elif flag is CurationState.CURATED:
                query = query.where(Article.is_curated.is_(True))
            else:
                query = query.where(Article.is_top_five.is_(False), Article.is_curated.is_(False))
            return [serialize_article(a) for a in session.scalars(query.order_by(Article.id))]
        finally:
            session.close()

    def update_article(self, article_id: int, **updates: Any) -> dict[str, Any] | None:
        """Update article fields. Returns None for unknown ids."""
        unknown = set(updates) - _ARTICLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown article fields: {sorted(unknown)}")
        with session_scope(self._session_factory) as session:
            article = session.get(Article, article_id)
            if article is None:
                return None
            for field, value in updates.items():
                if field == "keywords":
                    value = json.dumps(list(value or []))
                elif field == "published_at":
                    value = parse_datetime(value)
                setattr(article, field, value)
            if article.is_curated and article.is_top_five:
                raise CurationOverlapError(f"Article {article_id} cannot be both curated and top five")
            session.flush()
            return serialize_article(article)

    def _increment(self, article_id: int, column: str) -> dict[str, Any] | None:
        with session_scope(self._session_factory) as session:
            result = session.execute(
                update(Article)
                .where(Article.id == article_id)
                .values({column: getattr(Article, column) + 1})
            )
            if result.rowcount == 0:
                return None
            return serialize_article(session.get(Article, article_id))

    def increment_views(self, article_id: int) -> dict[str, Any] | None:
        return self._increment(article_id, "views")

    def increment_likes(self, article_id: int) -> dict[str, Any] | None:
        return self._increment(article_id, "likes")

    def set_curation_flags_bulk(self, top_five_ids: Iterable[int], curated_ids: Iterable[int]) -> None:
        """Replace all curation flags in one transaction.

        Raises ``CurationOverlapError`` (and writes nothing) if an id appears in both sets.
        """
        top_five = set(top_five_ids)
        curated = set(curated_ids)
        overlap = top_five & curated
        if overlap:
            raise CurationOverlapError(f"Article ids flagged as both top five and curated: {sorted(overlap)}")

        with session_scope(self._session_factory) as session:
            session.execute(
                update(Article)
                .where(or_(Article.is_curated.is_(True), Article.is_top_five.is_(True)))
                .values(CurationState.NONE.flags)
            )
            for state, ids in ((CurationState.TOP_FIVE, top_five), (CurationState.CURATED, curated)):
                if ids:
                    session.execute(update(Article).where(Article.id.in_(ids)).values(state.flags))
        logger.info("Curation flags updated: %d top five, %d curated", len(top_five), len(curated))

    # --- Keywords ---

    def get_keywords(self) -> list[dict[str, Any]]:
        session = self._session_factory()
        try:
            return [_serialize_keyword(k) for k in session.scalars(select(Keyword).order_by(Keyword.id))]
        finally:
            session.close()

    def get_keywords_by_type(self, keyword_type: str) -> list[dict[str, Any]]:
        session = self._session_factory()
        try:
            query = select(Keyword).where(Keyword.type == keyword_type).order_by(Keyword.id)
            return [_serialize_keyword(k) for k in session.scalars(query)]
        finally:
            session.close()

    def create_keyword(self, keyword: str, keyword_type: str) -> dict[str, Any]:
        """Add a global keyword. Existing keywords are returned unchanged."""
        if keyword_type not in KEYWORD_TYPES:
            raise ValueError(f"Keyword type must be one of {KEYWORD_TYPES}, got {keyword_type!r}")
        keyword = (keyword or "").strip()
        if not keyword:
            raise ValueError("Keyword must not be empty")

        session = self._session_factory()
        try:
            existing = session.scalar(select(Keyword).where(Keyword.keyword == keyword))
            if existing is not None:
                return _serialize_keyword(existing)
            row = Keyword(keyword=keyword, type=keyword_type)
            session.add(row)
            session.commit()
            return _serialize_keyword(row)
        finally:
            session.close()

    def delete_keyword(self, keyword_id: int) -> bool:
        with session_scope(self._session_factory) as session:
            row = session.get(Keyword, keyword_id)
            if row is None:
                return False
            session.delete(row)
            return True

    # --- Replacement patterns ---

    def get_replacement_patterns(self, user_id: str | None) -> list[dict[str, Any]]:
        """Patterns owned by ``user_id`` in creation order. Empty for anonymous callers."""
        if not user_id:
            return []
        session = self._session_factory()
        try:
            query = (
                select(ReplacementPattern)
                .where(ReplacementPattern.user_id == user_id)
                .order_by(ReplacementPattern.id)
            )
            return [_serialize_pattern(p) for p in session.scalars(query)]
        finally:
            session.close()

    def create_replacement_pattern(
        self,
        user_id: str,
        find_text: str,
        replace_text: str = "",
        case_sensitive: bool = False,
    ) -> dict[str, Any]:
        if not user_id:
            raise ValueError("Replacement patterns require a user")
        if not find_text:
            raise ValueError("find_text must not be empty")
        with session_scope(self._session_factory) as session:
            row = ReplacementPattern(
                user_id=user_id,
                find_text=find_text,
                replace_text=replace_text or "",
                case_sensitive=case_sensitive,
            )
            session.add(row)
            session.flush()
            return _serialize_pattern(row)

    def delete_replacement_pattern(self, pattern_id: int, user_id: str | None = None) -> bool:
        """Delete a pattern; when ``user_id`` is given only the owner's pattern matches."""
        with session_scope(self._session_factory) as session:
            row = session.get(ReplacementPattern, pattern_id)
            if row is None or (user_id is not None and row.user_id != user_id):
                return False
            session.delete(row)
            return True

    # --- User preferences ---

    def get_user_preferences(self, user_id: str | None = None) -> dict[str, Any]:
        if not user_id:
            return default_preferences()
        session = self._session_factory()
        try:
            prefs = session.scalar(select(UserPreferences).where(UserPreferences.user_id == user_id))
            return _serialize_preferences(prefs) if prefs else default_preferences(user_id)
        finally:
            session.close()

    def update_user_preferences(
        self,
        user_id: str | None,
        sentiment_threshold: float | None = None,
        real_time_filtering: bool | None = None,
    ) -> dict[str, Any]:
        """Create-or-update the user's row. Anonymous updates are echoed, not stored."""
        if sentiment_threshold is not None:
            sentiment_threshold = _validate_threshold(sentiment_threshold)

        if not user_id:
            prefs = default_preferences()
            if sentiment_threshold is not None:
                prefs["sentiment_threshold"] = sentiment_threshold
            if real_time_filtering is not None:
                prefs["real_time_filtering"] = real_time_filtering
            return prefs

        with session_scope(self._session_factory) as session:
            prefs = session.scalar(select(UserPreferences).where(UserPreferences.user_id == user_id))
            if prefs is None:
                prefs = UserPreferences(
                    user_id=user_id,
                    sentiment_threshold=DEFAULT_SENTIMENT_THRESHOLD,
                    real_time_filtering=True,
                )
                session.add(prefs)
            if sentiment_threshold is not None:
                prefs.sentiment_threshold = sentiment_threshold
            if real_time_filtering is not None:
                prefs.real_time_filtering = real_time_filtering
            session.flush()
            return _serialize_preferences(prefs)

    # --- Podcasts ---

    def create_podcast(self, data: dict[str, Any]) -> dict[str, Any]:
        with session_scope(self._session_factory) as session:
            podcast = Podcast(
                title=data["title"],
                description=data["description"],
                audio_url=data.get("audio_url"),
                duration=data["duration"],
                transcript=data["transcript"],
                article_ids=json.dumps(list(data.get("article_ids") or [])),
                created_at=utcnow(),
                is_processing=bool(data.get("is_processing", False)),
            )
            session.add(podcast)
            session.flush()
            return serialize_podcast(podcast)

    def get_podcasts(self) -> list[dict[str, Any]]:
        session = self._session_factory()
        try:
            query = select(Podcast).order_by(Podcast.created_at.desc(), Podcast.id.desc())
            return [serialize_podcast(p) for p in session.scalars(query)]
        finally:
            session.close()

    def get_podcast(self, podcast_id: int) -> dict[str, Any] | None:
        session = self._session_factory()
        try:
            podcast = session.get(Podcast, podcast_id)
            return serialize_podcast(podcast) if podcast else None
        finally:
            session.close()

    def update_podcast(self, podcast_id: int, **updates: Any) -> dict[str, Any] | None:
        unknown = set(updates) - _PODCAST_FIELDS
        if unknown:
            raise ValueError(f"Unknown podcast fields: {sorted(unknown)}")
        with session_scope(self._session_factory) as session:
            podcast = session.get(Podcast, podcast_id)
            if podcast is None:
                return None
            for field, value in updates.items():
                if field == "article_ids":
                    value = json.dumps(list(value or []))
                setattr(podcast, field, value)
            session.flush()
            return serialize_podcast(podcast)
