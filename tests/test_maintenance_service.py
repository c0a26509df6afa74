from __future__ import annotations

import pytest

from fakes import FakeStore
from services.maintenance_service import clean_all_article_text, dedupe_publications

pytestmark = pytest.mark.asyncio


def _store_with_texts():
    store = FakeStore()
    pub = store.add_publication("www.example.com")
    clean_id = store.add_article(pub, text="Already clean")
    dirty_id = store.add_article(pub, text="<p>Dirty</p>\n\n\n  text ")
    other_id = store.add_article(pub, text="a\u200bb")
    return store, clean_id, dirty_id, other_id


async def test_clean_all_article_text_in_batches():
    store, clean_id, dirty_id, other_id = _store_with_texts()

    report = await clean_all_article_text(store, batch_size=2)

    assert report.total == 3
    assert report.processed == 3
    assert report.updated == 2
    assert store.articles[clean_id]["text"] == "Already clean"
    assert store.articles[dirty_id]["text"] == "Dirty text"
    assert store.articles[other_id]["text"] == "ab"
    assert report.chars_saved > 0


async def test_clean_all_article_text_dry_run_writes_nothing():
    store, _, dirty_id, _ = _store_with_texts()
    report = await clean_all_article_text(store, batch_size=10, dry_run=True)
    assert report.updated == 2
    assert store.articles[dirty_id]["text"] == "<p>Dirty</p>\n\n\n  text "


def _store_with_duplicates():
    store = FakeStore()
    keep = store.add_publication("www.example.com", "Example")
    dup = store.add_publication("www.example.com", "Example (dup)")
    other = store.add_publication("www.other.com", "Other")
    jour = store.add_journalist("Jane", dup)
    store.add_article(dup, journalist_ids=(jour,), bias_score=10, summary="gone")
    store.add_article(keep, bias_score=30)
    return store, keep, dup, other, jour


async def test_dedupe_publications_keeps_oldest():
    store, keep, dup, other, jour = _store_with_duplicates()

    report = await dedupe_publications(store)

    assert report.hostnames == 1
    assert report.publications_removed == [dup]
    assert report.articles_removed == 1
    assert set(store.publications) == {keep, other}
    assert store.journalists[jour]["publication"] == keep
    assert all(a["publication"] != dup for a in store.articles.values())
    assert [r["summary"] for r in store.summaries] == []
    assert await store.find_duplicate_hostnames() == []


async def test_dedupe_publications_dry_run():
    store, keep, dup, other, _ = _store_with_duplicates()
    report = await dedupe_publications(store, dry_run=True)
    assert report.publications_removed == [dup]
    assert set(store.publications) == {keep, dup, other}
