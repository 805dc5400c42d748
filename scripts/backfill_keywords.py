#!/usr/bin/env python3
"""Backfill keywords and category for stored articles that have none."""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from db.database import init_db
from db.storage import Storage
from tagging.keywords import basic_keywords, categorize

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def main() -> None:
    init_db()
    storage = Storage()
    articles = storage.get_articles()
    logger.info("Backfilling keywords for %d articles", len(articles))

    updated = 0
    for article in articles:
        if article["keywords"]:
            continue
        keywords = basic_keywords(f"{article['title']} {article['summary']}")
        updates = {"keywords": keywords}
        if article["category"] == "General":
            updates["category"] = categorize(keywords)
        storage.update_article(article["id"], **updates)
        updated += 1

    logger.info("Updated %d articles (of %d total)", updated, len(articles))


if __name__ == "__main__":
    main()
