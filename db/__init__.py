from db.database import get_engine, get_session, init_db, session_scope
from db.models import Article, CurationState, Keyword, Podcast, ReplacementPattern, UserPreferences
from db.storage import CurationOverlapError, Storage

__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "session_scope",
    "Article",
    "CurationOverlapError",
    "CurationState",
    "Keyword",
    "Podcast",
    "ReplacementPattern",
    "Storage",
    "UserPreferences",
]
