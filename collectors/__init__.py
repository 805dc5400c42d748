from collectors.base import BaseCollector, strip_html, to_candidate
from collectors.newsapi import NewsAPICollector
from collectors.rss import RSSCollector

__all__ = [
    "BaseCollector",
    "NewsAPICollector",
    "RSSCollector",
    "strip_html",
    "to_candidate",
]
