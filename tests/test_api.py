"""Tests for the HTTP API."""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.routes import get_news_service, get_podcast_service
from db.storage import Storage
from main import app
from pipeline.dates import utcnow
from services.news import FetchReport
from services.podcast import PodcastService
from tests.conftest import make_article


@pytest.fixture
def seeded(storage):
    """Seed articles published relative to the real clock."""
    now = utcnow()
    ids = []
    for n, sentiment in enumerate([0.9, 0.8, 0.75, 0.4, 0.95], start=1):
        article = make_article(n, sentiment=sentiment, published_at=now - timedelta(hours=n))
        ids.append(storage.create_article(article)["id"])
    storage.set_curation_flags_bulk(ids[:2], ids[2:])
    return ids


@pytest.fixture
def client(setup_db):
    yield TestClient(app)
    app.dependency_overrides.clear()


def _as(user_id: str) -> dict[str, str]:
    return {"X-User-Id": user_id}


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_articles_list(client, seeded):
    data = client.get("/api/articles").json()
    assert [a["id"] for a in data] == seeded


def test_top_five_and_curated_are_filtered(client, seeded):
    top = client.get("/api/articles/top-five").json()
    assert [a["id"] for a in top] == [seeded[0], seeded[1]]
    assert all("priority_score" in a for a in top)

    curated = client.get("/api/articles/curated").json()
    # sentiment 0.4 is below the default threshold
    assert [a["id"] for a in curated] == [seeded[4], seeded[2]]


def test_feed_uses_user_preferences(client, seeded):
    client.put("/api/preferences", json={"sentiment_threshold": 0.3}, headers=_as("alice"))
    assert len(client.get("/api/articles/feed", headers=_as("alice")).json()) == 5
    assert len(client.get("/api/articles/feed").json()) == 4


def test_feed_empty_when_everything_filtered(client, seeded):
    client.post("/api/keywords", json={"keyword": "story", "type": "blocked"})
    resp = client.get("/api/articles/feed")
    assert resp.status_code == 200
    assert resp.json() == []


def test_view_and_like(client, seeded):
    assert client.post(f"/api/articles/{seeded[0]}/view").json()["views"] == 1
    assert client.post(f"/api/articles/{seeded[0]}/like").json()["likes"] == 1
    assert client.post("/api/articles/9999/view").status_code == 404


def test_keywords_crud(client):
    resp = client.post("/api/keywords", json={"keyword": "recession", "type": "blocked"})
    assert resp.status_code == 200
    keyword_id = resp.json()["id"]

    assert client.post("/api/keywords", json={"keyword": "x", "type": "muted"}).status_code == 400
    assert [k["keyword"] for k in client.get("/api/keywords/blocked").json()] == ["recession"]
    assert client.delete(f"/api/keywords/{keyword_id}").json() == {"success": True}
    assert client.delete(f"/api/keywords/{keyword_id}").status_code == 404


def test_replacement_patterns_require_user(client):
    body = {"find_text": "crash", "replace_text": "dip"}
    assert client.post("/api/replacement-patterns", json=body).status_code == 401

    created = client.post("/api/replacement-patterns", json=body, headers=_as("alice")).json()
    assert created["user_id"] == "alice"
    assert client.get("/api/replacement-patterns").json() == []
    assert len(client.get("/api/replacement-patterns", headers=_as("alice")).json()) == 1

    assert client.delete(f"/api/replacement-patterns/{created['id']}", headers=_as("bob")).status_code == 404
    assert client.delete(f"/api/replacement-patterns/{created['id']}", headers=_as("alice")).status_code == 200


def test_replacement_pattern_empty_find_text_rejected(client):
    resp = client.post("/api/replacement-patterns", json={"find_text": ""}, headers=_as("alice"))
    assert resp.status_code == 422


def test_preferences(client):
    assert client.get("/api/preferences").json()["sentiment_threshold"] == 0.7

    resp = client.put("/api/preferences", json={"sentiment_threshold": 0.5}, headers=_as("alice"))
    assert resp.json()["sentiment_threshold"] == 0.5
    assert client.get("/api/preferences", headers=_as("alice")).json()["sentiment_threshold"] == 0.5
    assert client.put("/api/preferences", json={"sentiment_threshold": 2}).status_code == 422


def test_filter_preview(client, seeded):
    data = client.get("/api/filter-preview").json()
    stats = data["stats"]
    assert stats["total_articles"] == 5
    assert stats["passed_count"] == 4
    assert stats["filtered_count"] == 1
    assert stats["anxiety_reduction"] == 20
    assert stats["avg_sentiment"] == 0.85

    relaxed = client.get("/api/filter-preview?sentiment_threshold=0.0").json()
    assert relaxed["stats"]["passed_count"] == 5


def test_fetch_news(client):
    service = MagicMock()
    service.fetch_latest_news.return_value = FetchReport(fetched=3, created=2)
    service.last_fetch_time = utcnow()
    app.dependency_overrides[get_news_service] = lambda: service

    data = client.post("/api/fetch-news?force=true").json()
    assert data["ran"] is True
    assert data["report"]["created"] == 2
    service.fetch_latest_news.assert_called_once_with(force_refresh=True)


def test_fetch_news_rate_limited(client):
    service = MagicMock()
    service.fetch_latest_news.return_value = None
    service.last_fetch_time = None
    app.dependency_overrides[get_news_service] = lambda: service

    data = client.post("/api/fetch-news").json()
    assert data["ran"] is False
    assert data["report"] is None


def test_podcast_endpoints(client, seeded):
    writer = MagicMock()
    writer.write_podcast_script.return_value = "[INTRO]\nHello.\n[OUTRO]\nBye."
    service = PodcastService(Storage(), writer=writer)
    app.dependency_overrides[get_podcast_service] = lambda: service

    resp = client.post("/api/podcasts/generate")
    assert resp.status_code == 200
    podcast_id = resp.json()["podcast_id"]

    assert client.get(f"/api/podcasts/{podcast_id}").json()["transcript"].startswith("[INTRO]")
    assert [p["id"] for p in client.get("/api/podcasts").json()] == [podcast_id]
    assert client.post(f"/api/podcasts/{podcast_id}/regenerate").json()["success"] is True
    assert client.get("/api/podcasts/999").status_code == 404
    assert client.post("/api/podcasts/999/regenerate").status_code == 404


def test_podcast_generate_without_articles(client):
    service = PodcastService(Storage(), writer=MagicMock())
    app.dependency_overrides[get_podcast_service] = lambda: service
    assert client.post("/api/podcasts/generate").status_code == 409
