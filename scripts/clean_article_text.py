#!/usr/bin/env python3
"""
Re-clean the text of every stored article with the current cleanup rules
(markup, invisible characters and whitespace runs removed).

Usage:
  python scripts/clean_article_text.py [--batch-size 50] [--dry-run]
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
from app.core.logging import configure_logging
from app.core.request_id import with_run_id
from services.db_service import Database
from services.maintenance_service import clean_all_article_text
from services.news_store import NewsStore

configure_logging(service_name="script", level=settings.LOG_LEVEL)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Re-run article text cleanup over the database.")
    parser.add_argument("--batch-size", type=int, default=50, help="Articles fetched per batch (default: 50).")
    parser.add_argument("--dry-run", action="store_true", help="Report savings without writing.")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    db = await Database.connect(settings)
    try:
        with with_run_id():
            await clean_all_article_text(NewsStore(db), batch_size=args.batch_size, dry_run=args.dry_run)
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main())
