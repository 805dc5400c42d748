"""newsflow configuration."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent / ".env")

# --- Paths ---
BASE_DIR = Path(__file__).parent
DATA_DIR = BASE_DIR / "data"
DB_PATH = DATA_DIR / "newsflow.db"

# --- API ---
API_HOST = "127.0.0.1"
API_PORT = 8001

# --- Orchestrator ---
REFRESH_INTERVAL_MINUTES: int = 15
MIN_NEW_ARTICLES: int = 10  # below this, supplement from NewsAPI

# --- Collector: RSS ---
USER_AGENT = "NewsFlow RSS Reader 1.0"
FEED_TIMEOUT_SECONDS: float = 10.0
FEED_WORKERS: int = 8
RSS_ITEMS_PER_FEED: int = 10
RSS_MAX_ARTICLES: int = 50
MIN_TITLE_LENGTH: int = 10
MIN_SUMMARY_LENGTH: int = 20
SUMMARY_MAX_CHARS: int = 300
MIN_CONTENT_LENGTH: int = 100

RSS_FEEDS: list[dict[str, str]] = [
    # Technology
    {"name": "TechCrunch Startups", "url": "https://feeds.feedburner.com/techcrunch/startups", "category": "Technology"},
    {"name": "The Verge", "url": "https://www.theverge.com/rss/index.xml", "category": "Technology"},
    {"name": "Ars Technica", "url": "https://feeds.arstechnica.com/arstechnica/technology-lab", "category": "Technology"},
    {"name": "VentureBeat", "url": "https://feeds.feedburner.com/venturebeat/SZYF", "category": "Technology"},
    {"name": "Science Daily AI", "url": "https://www.sciencedaily.com/rss/computers_math/artificial_intelligence.xml", "category": "Technology"},
    {"name": "Wired", "url": "https://www.wired.com/feed/rss", "category": "Technology"},
    {"name": "Engadget", "url": "https://feeds.engadget.com/engadget/breaking", "category": "Technology"},
    {"name": "Slashdot", "url": "https://tech.slashdot.org/slashdot.rss", "category": "Technology"},
    # Business
    {"name": "Bloomberg Markets", "url": "https://feeds.bloomberg.com/markets/news.rss", "category": "Business"},
    {"name": "Harvard Business Review", "url": "https://hbr.org/feed", "category": "Career"},
    {"name": "Entrepreneur", "url": "https://www.entrepreneur.com/latest.rss", "category": "Business"},
    {"name": "Fast Company", "url": "https://feeds.feedburner.com/fastcompany/headlines", "category": "Business"},
    {"name": "Inc Magazine", "url": "https://feeds.feedburner.com/inc/headlines", "category": "Business"},
    # World & general news
    {"name": "NPR News", "url": "https://feeds.npr.org/1001/rss.xml", "category": "News"},
    {"name": "BBC News", "url": "https://feeds.bbci.co.uk/news/rss.xml", "category": "World News"},
    {"name": "The Guardian World", "url": "https://www.theguardian.com/world/rss", "category": "World News"},
    {"name": "Al Jazeera", "url": "https://www.aljazeera.com/xml/rss/all.xml", "category": "World News"},
    {"name": "New York Times World", "url": "https://rss.nytimes.com/services/xml/rss/nyt/World.xml", "category": "World News"},
    # Politics
    {"name": "NPR Politics", "url": "https://feeds.npr.org/1014/rss.xml", "category": "Politics"},
    {"name": "Politico", "url": "https://www.politico.com/rss/politicopicks.xml", "category": "Politics"},
    # Science & health
    {"name": "Science Daily", "url": "https://feeds.sciencedaily.com/sciencedaily/top_news", "category": "Science"},
    {"name": "New Scientist", "url": "https://feeds.feedburner.com/NewScientistOnline-News", "category": "Science"},
    {"name": "Nature", "url": "https://feeds.nature.com/nature/rss/current", "category": "Science"},
    # Sports & entertainment
    {"name": "ESPN News", "url": "https://www.espn.com/espn/rss/news", "category": "Sports"},
    {"name": "Variety", "url": "https://variety.com/feed/", "category": "Entertainment"},
    {"name": "Billboard", "url": "https://www.billboard.com/feed/", "category": "Entertainment"},
    # Environment & international
    {"name": "TreeHugger", "url": "https://www.treehugger.com/feeds/rss/", "category": "Environment"},
    {"name": "France 24", "url": "https://www.france24.com/en/rss", "category": "International"},
    {"name": "Deutsche Welle", "url": "https://feeds.dw.com/dw/rss/rss_en_all/rss.xml", "category": "International"},
]

# --- Collector: NewsAPI (secondary search source) ---
NEWS_API_KEY: str = os.getenv("NEWS_API_KEY", "")
NEWS_API_BASE = "https://newsapi.org/v2"
NEWS_API_PAGE_SIZE: int = 20
NEWS_API_QUERIES: list[str] = [
    "breaking news", "world news", "politics", "technology", "business",
    "sports", "entertainment", "health", "science", "travel",
    "environment", "food",
]

# --- Deduplication ---
SIMILARITY_THRESHOLD: float = 0.8  # strict >, Jaccard over summary words

# --- Curation ---
# Eligibility window for curation. Earlier pipeline revisions used 30 days;
# 3 is the current value. Tune here.
CURATION_WINDOW_DAYS: int = 3
CURATION_CAP: int = 500
TOP_FIVE_SIZE: int = 5
CURATED_SIZE: int = 15
BOOSTED_CATEGORIES: frozenset[str] = frozenset({"Technology", "Business"})
POSITIVE_TERMS: list[str] = [
    "growth", "innovation", "success", "breakthrough", "launch", "funding",
    "profit", "advance", "development", "opportunity", "market",
    "technology", "ai", "startup",
]

# --- Personalization ---
FRESHNESS_WINDOW_DAYS: int = 30
DEFAULT_SENTIMENT_THRESHOLD: float = 0.7

# --- Fallback extractor ---
DEFAULT_SENTIMENT: float = 0.7
MAX_BASIC_KEYWORDS: int = 10
READ_WORDS_PER_MINUTE: int = 200

# --- LLM enrichment (Claude CLI) ---
AI_ENRICHMENT_ENABLED: bool = os.getenv("AI_ENRICHMENT_ENABLED", "").lower() in ("1", "true", "yes")
CLAUDE_MODEL: str = os.getenv("CLAUDE_MODEL", "sonnet")
CLAUDE_TIMEOUT_SECONDS: int = 120
SHORT_SUMMARY_LENGTH: int = 100

# --- Podcast ---
PODCAST_MAX_ARTICLES: int = 8
PODCAST_WORDS_PER_MINUTE: int = 150
