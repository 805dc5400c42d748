"""Shared fixtures: a fresh SQLite database per test."""

from datetime import datetime, timedelta

import pytest

from db.database import init_db
from db.storage import Storage

NOW = datetime(2024, 6, 1, 12, 0, 0)


@pytest.fixture
def setup_db(tmp_path, monkeypatch):
    """Use a temporary database for each test."""
    db_path = tmp_path / "test.db"
    # Patch in both config and db.database (which imports by value)
    monkeypatch.setattr("config.DB_PATH", db_path)
    monkeypatch.setattr("config.DATA_DIR", tmp_path)
    monkeypatch.setattr("db.database.DB_PATH", db_path)
    monkeypatch.setattr("db.database.DATA_DIR", tmp_path)

    # Reset engine/session so they use the new path
    import db.database as db_mod
    monkeypatch.setattr(db_mod, "_engine", None)
    monkeypatch.setattr(db_mod, "_SessionFactory", None)

    init_db()
    yield db_path

    if db_mod._engine is not None:
        db_mod._engine.dispose()


@pytest.fixture
def storage(setup_db) -> Storage:
    return Storage()


def make_article(n: int, **overrides) -> dict:
    """Candidate article dict with distinct url/title/summary per ``n``."""
    article = {
        "title": f"Story number {n} about something",
        "summary": f"Summary text {n} " + " ".join(f"unique{n}x{i:03d}" for i in range(10)),
        "content": f"Body of story {n}",
        "url": f"https://news.example.com/story/{n}",
        "source": "Example",
        "category": "General",
        "read_time": 1,
        "sentiment": 0.8,
        "keywords": [],
        "published_at": NOW - timedelta(hours=n),
    }
    article.update(overrides)
    return article
