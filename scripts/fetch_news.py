#!/usr/bin/env python3
"""CLI to run one newsflow ingestion + curation cycle."""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from db.database import init_db
from db.storage import Storage
from services.news import NewsService


def main() -> None:
    parser = argparse.ArgumentParser(description="Fetch, enrich, store and curate the latest news")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Ignore the refresh interval (only matters in a long-lived process; each CLI run starts with no previous fetch)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    init_db()
    service = NewsService(Storage())
    report = service.fetch_latest_news(force_refresh=args.force)
    if report is None:
        logging.error("Fetch cycle did not complete")
        sys.exit(1)

    logging.info(
        "Done. %d new articles (%d from NewsAPI), %d top five, %d curated",
        report.created, report.supplemented, report.top_five, report.curated,
    )


if __name__ == "__main__":
    main()
