#!/usr/bin/env python3
"""CLI to generate the daily news digest podcast."""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from db.database import init_db
from db.storage import Storage
from services.podcast import PodcastGenerationError, PodcastService


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate the daily newsflow podcast")
    parser.add_argument("--user", help="Personalize article selection for this user id")
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
    try:
        podcast = PodcastService(Storage()).generate_daily_podcast(args.user)
    except PodcastGenerationError as e:
        logging.error("%s", e)
        sys.exit(1)

    logging.info(
        "Podcast %d: %r, %d articles, ~%ds, audio=%s",
        podcast["id"], podcast["title"], len(podcast["article_ids"]),
        podcast["duration"], podcast["audio_url"] or "none",
    )


if __name__ == "__main__":
    main()
