"""Tests for the storage layer."""

import pytest

from db.models import CurationState
from db.storage import CurationOverlapError
from tests.conftest import make_article


def test_save_article_idempotent_on_normalized_url(storage):
    first, created = storage.save_article(make_article(1, url="http://a.com/x?utm_source=y"))
    assert created
    assert first["url"] == "http://a.com/x"

    second, created = storage.save_article(make_article(2, url="http://a.com/x/", title="Different title"))
    assert not created
    assert second == first
    assert len(storage.get_articles()) == 1


def test_saved_article_fields(storage):
    article, _ = storage.save_article(make_article(1, keywords=["ai", "growth"], sentiment=1.4))
    assert article["keywords"] == ["ai", "growth"]
    assert article["sentiment"] == 1.0
    assert article["views"] == 0
    assert article["likes"] == 0
    assert not article["is_curated"]
    assert not article["is_top_five"]
    assert article["published_at"].startswith("2024-06-01T11:00")


def test_get_articles_by_ids_preserves_order(storage):
    ids = [storage.create_article(make_article(n))["id"] for n in range(1, 4)]
    found = storage.get_articles_by_ids([ids[2], 999, ids[0]])
    assert [a["id"] for a in found] == [ids[2], ids[0]]
    assert storage.get_articles_by_ids([]) == []


def test_unknown_ids_are_misses(storage):
    assert storage.get_article(42) is None
    assert storage.increment_views(42) is None
    assert storage.increment_likes(42) is None
    assert storage.update_article(42, title="x") is None
    assert storage.get_podcast(42) is None
    assert storage.update_podcast(42, transcript="x") is None
    assert storage.delete_keyword(42) is False
    assert storage.delete_replacement_pattern(42) is False


def test_increment_views_and_likes(storage):
    article = storage.create_article(make_article(1))
    storage.increment_views(article["id"])
    updated = storage.increment_views(article["id"])
    assert updated["views"] == 2
    assert storage.increment_likes(article["id"])["likes"] == 1


def test_update_article_rejects_both_flags(storage):
    article = storage.create_article(make_article(1))
    storage.update_article(article["id"], is_top_five=True)
    with pytest.raises(CurationOverlapError):
        storage.update_article(article["id"], is_curated=True)
    assert storage.get_article(article["id"])["is_curated"] is False


def test_update_article_unknown_field(storage):
    article = storage.create_article(make_article(1))
    with pytest.raises(ValueError):
        storage.update_article(article["id"], url="https://elsewhere.example.com")


def test_bulk_flags_replace_previous(storage):
    ids = [storage.create_article(make_article(n))["id"] for n in range(1, 6)]
    storage.set_curation_flags_bulk([ids[0]], [ids[1], ids[2]])
    storage.set_curation_flags_bulk([ids[3]], [ids[4]])

    assert [a["id"] for a in storage.get_articles_by_flag(CurationState.TOP_FIVE)] == [ids[3]]
    assert [a["id"] for a in storage.get_articles_by_flag(CurationState.CURATED)] == [ids[4]]
    assert [a["id"] for a in storage.get_articles_by_flag(CurationState.NONE)] == ids[:3]


def test_bulk_flags_overlap_raises_and_writes_nothing(storage):
    ids = [storage.create_article(make_article(n))["id"] for n in range(1, 4)]
    storage.set_curation_flags_bulk([ids[0]], [ids[1]])

    with pytest.raises(CurationOverlapError):
        storage.set_curation_flags_bulk([ids[2]], [ids[2]])

    assert [a["id"] for a in storage.get_articles_by_flag(CurationState.TOP_FIVE)] == [ids[0]]
    assert [a["id"] for a in storage.get_articles_by_flag(CurationState.CURATED)] == [ids[1]]


def test_keywords(storage):
    blocked = storage.create_keyword("  recession ", "blocked")
    assert blocked["keyword"] == "recession"
    storage.create_keyword("growth", "prioritized")

    again = storage.create_keyword("recession", "prioritized")
    assert again == blocked

    assert [k["keyword"] for k in storage.get_keywords_by_type("blocked")] == ["recession"]
    assert len(storage.get_keywords()) == 2
    assert storage.delete_keyword(blocked["id"]) is True
    assert storage.get_keywords_by_type("blocked") == []


def test_keyword_validation(storage):
    with pytest.raises(ValueError):
        storage.create_keyword("x", "muted")
    with pytest.raises(ValueError):
        storage.create_keyword("   ", "blocked")


def test_replacement_patterns_are_user_scoped(storage):
    pattern = storage.create_replacement_pattern("alice", "crash", "dip")
    storage.create_replacement_pattern("bob", "panic", "concern", case_sensitive=True)

    assert [p["find_text"] for p in storage.get_replacement_patterns("alice")] == ["crash"]
    assert storage.get_replacement_patterns(None) == []
    assert storage.delete_replacement_pattern(pattern["id"], "bob") is False
    assert storage.delete_replacement_pattern(pattern["id"], "alice") is True
    assert storage.get_replacement_patterns("alice") == []


def test_replacement_pattern_requires_find_text(storage):
    with pytest.raises(ValueError):
        storage.create_replacement_pattern("alice", "", "x")
    with pytest.raises(ValueError):
        storage.create_replacement_pattern("", "crash", "dip")


def test_preferences_defaults_and_lazy_create(storage):
    anonymous = storage.get_user_preferences()
    assert anonymous["sentiment_threshold"] == 0.7
    assert anonymous["id"] is None

    assert storage.get_user_preferences("alice")["id"] is None

    updated = storage.update_user_preferences("alice", sentiment_threshold=0.4)
    assert updated["id"] is not None
    assert updated["sentiment_threshold"] == 0.4
    assert updated["real_time_filtering"] is True

    updated = storage.update_user_preferences("alice", real_time_filtering=False)
    assert updated["sentiment_threshold"] == 0.4
    assert storage.get_user_preferences("alice")["real_time_filtering"] is False


def test_anonymous_preferences_not_persisted(storage):
    echoed = storage.update_user_preferences(None, sentiment_threshold=0.2)
    assert echoed["sentiment_threshold"] == 0.2
    assert storage.get_user_preferences()["sentiment_threshold"] == 0.7


def test_preferences_threshold_validated(storage):
    with pytest.raises(ValueError):
        storage.update_user_preferences("alice", sentiment_threshold=1.5)


def test_podcasts(storage):
    first = storage.create_podcast({
        "title": "Daily News Digest",
        "description": "d",
        "duration": 60,
        "transcript": "[INTRO]",
        "article_ids": [3, 1, 2],
    })
    assert first["article_ids"] == [3, 1, 2]
    assert first["audio_url"] is None
    assert first["is_processing"] is False

    second = storage.create_podcast({"title": "b", "description": "d", "duration": 1, "transcript": "t"})
    assert [p["id"] for p in storage.get_podcasts()] == [second["id"], first["id"]]

    updated = storage.update_podcast(first["id"], audio_url="https://cdn.example.com/a.mp3")
    assert updated["audio_url"] == "https://cdn.example.com/a.mp3"


def test_save_article_without_sentiment_uses_default(storage):
    article, created = storage.save_article(make_article(1, sentiment=None))
    assert created
    assert article["sentiment"] == 0.7
