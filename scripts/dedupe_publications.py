#!/usr/bin/env python3
"""
Consolidate publications that share a hostname.

The oldest publication per hostname is kept. For every other one, in a single
transaction: its journalists are moved to the kept publication, and its
articles (with author links, summaries and bias rows), its publication_bias
rows and the publication itself are deleted.

Usage:
  python scripts/dedupe_publications.py [--dry-run]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Path setup
THIS_FILE = Path(__file__).resolve()
PROJECT_ROOT = THIS_FILE.parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.config import settings
from app.core.logging import configure_logging, get_logger
from app.core.request_id import with_run_id
from services.db_service import Database
from services.maintenance_service import dedupe_publications
from services.news_store import NewsStore

configure_logging(service_name="script", level=settings.LOG_LEVEL)
logger = get_logger().bind(script="dedupe_publications")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Merge duplicate publications per hostname.")
    parser.add_argument("--dry-run", action="store_true", help="List what would be removed without writing.")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    db = await Database.connect(settings)
    try:
        with with_run_id():
            report = await dedupe_publications(NewsStore(db), dry_run=args.dry_run)
        logger.info("dedupe_summary", removed=report.publications_removed)
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main())
