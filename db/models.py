"""SQLAlchemy models for newsflow."""

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class CurationState(enum.Enum):
    """Curation flag of an article. Stored as the is_top_five/is_curated column pair."""

    NONE = "none"
    TOP_FIVE = "top_five"
    CURATED = "curated"

    @property
    def flags(self) -> dict[str, bool]:
        return {
            "is_top_five": self is CurationState.TOP_FIVE,
            "is_curated": self is CurationState.CURATED,
        }


class Article(Base):
    """Ingested news article. ``url`` is the normalized URL and the dedup key."""

    __tablename__ = "articles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text)
    source: Mapped[str] = mapped_column(String, nullable=False)
    url: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    image_url: Mapped[str | None] = mapped_column(String, nullable=True)
    category: Mapped[str] = mapped_column(String, nullable=False, default="General")
    read_time: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # minutes
    views: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    sentiment: Mapped[float] = mapped_column(Float, nullable=False)  # 0-1
    keywords: Mapped[str | None] = mapped_column(Text, default="[]")  # JSON array
    is_curated: Mapped[bool] = mapped_column(Boolean, default=False)
    is_top_five: Mapped[bool] = mapped_column(Boolean, default=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime)
    collected_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_published", "published_at"),
        Index("idx_curation", "is_curated", "is_top_five"),
    )

    @property
    def curation_state(self) -> CurationState:
        if self.is_top_five:
            return CurationState.TOP_FIVE
        if self.is_curated:
            return CurationState.CURATED
        return CurationState.NONE

    def __repr__(self) -> str:
        return f"<Article(id={self.id}, source={self.source!r}, title={self.title!r})>"


class Keyword(Base):
    """Global blocked/prioritized keyword."""

    __tablename__ = "keywords"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    keyword: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String, nullable=False)  # blocked, prioritized


class ReplacementPattern(Base):
    """User-owned literal find/replace rule."""

    __tablename__ = "replacement_patterns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    find_text: Mapped[str] = mapped_column(String, nullable=False)
    replace_text: Mapped[str] = mapped_column(String, nullable=False, default="")
    case_sensitive: Mapped[bool] = mapped_column(Boolean, default=False)
    user_id: Mapped[str | None] = mapped_column(String, index=True)


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str | None] = mapped_column(String, unique=True)
    sentiment_threshold: Mapped[float] = mapped_column(Float, default=0.7)
    real_time_filtering: Mapped[bool] = mapped_column(Boolean, default=True)


class Podcast(Base):
    """Generated news digest podcast."""

    __tablename__ = "podcasts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    audio_url: Mapped[str | None] = mapped_column(String, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # seconds
    transcript: Mapped[str] = mapped_column(Text, nullable=False)
    article_ids: Mapped[str | None] = mapped_column(Text, default="[]")  # JSON array, ordered
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    is_processing: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        return f"<Podcast(id={self.id}, title={self.title!r})>"
