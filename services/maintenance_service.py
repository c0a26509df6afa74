from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from app.core.logging import get_logger
from services.news_store import NewsStore
from services.text_cleaner import clean_article_text

logger = get_logger().bind(module="maintenance")


@dataclass
class CleanTextReport:
    total: int = 0
    processed: int = 0
    updated: int = 0
    chars_saved: int = 0

    @property
    def average_chars_saved(self) -> float:
        return round(self.chars_saved / self.processed, 2) if self.processed else 0.0


@dataclass
class DedupeReport:
    hostnames: int = 0
    publications_removed: List[str] = field(default_factory=list)
    articles_removed: int = 0


async def clean_all_article_text(
    store: NewsStore,
    *,
    batch_size: int = 50,
    dry_run: bool = False,
    progress_every: int = 10,
) -> CleanTextReport:
    """Re-run text cleanup over every stored article body, batch by batch."""
    report = CleanTextReport(total=await store.count_articles_with_text())
    logger.info("clean_text_started", total=report.total, batch_size=batch_size, dry_run=dry_run)

    after_id: Optional[str] = None
    while True:
        batch = await store.fetch_article_text_batch(after_id, batch_size)
        if not batch:
            break
        for row in batch:
            original = row.get("text") or ""
            cleaned = clean_article_text(original)
            if cleaned != original:
                report.updated += 1
                report.chars_saved += len(original) - len(cleaned)
                if not dry_run:
                    await store.update_article_text(row["id"], cleaned)
            report.processed += 1
            if report.processed % progress_every == 0:
                logger.info(
                    "clean_text_progress",
                    processed=report.processed,
                    total=report.total,
                    chars_saved=report.chars_saved,
                )
        after_id = str(batch[-1]["id"])

    logger.info(
        "clean_text_finished",
        processed=report.processed,
        updated=report.updated,
        chars_saved=report.chars_saved,
        average_chars_saved=report.average_chars_saved,
    )
    return report


async def dedupe_publications(store: NewsStore, *, dry_run: bool = False) -> DedupeReport:
    """
    Keep the oldest publication per hostname and fold the others into it.
    Each removed publication is handled in its own transaction.
    """
    report = DedupeReport()
    for hostname in await store.find_duplicate_hostnames():
        report.hostnames += 1
        keep_id, *remove_ids = await store.list_publication_ids_for_hostname(hostname)
        logger.info("dedupe_hostname", hostname=hostname, keep_id=keep_id, remove_count=len(remove_ids))
        for remove_id in remove_ids:
            if dry_run:
                report.publications_removed.append(remove_id)
                continue
            removed_articles = await store.merge_publication_into(keep_id, remove_id)
            report.publications_removed.append(remove_id)
            report.articles_removed += removed_articles
            logger.info(
                "dedupe_publication_removed",
                hostname=hostname,
                publication_id=remove_id,
                articles_removed=removed_articles,
            )
    logger.info(
        "dedupe_finished",
        hostnames=report.hostnames,
        publications_removed=len(report.publications_removed),
        articles_removed=report.articles_removed,
        dry_run=dry_run,
    )
    return report
