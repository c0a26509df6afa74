from __future__ import annotations

from typing import Dict, Iterable

from app.models.article import MergedParse, ParseFragment


def merge_fragments(fragments: Iterable[ParseFragment]) -> MergedParse:
    """
    Fold per-chunk parse results, in chunk order, into one article.

    - title, date_published, date_updated: first non-empty value wins
    - authors: union in first-seen order
    - content: concatenated as-is, no separator between chunks
    """
    title = ""
    date_published = ""
    date_updated = ""
    authors: Dict[str, None] = {}
    content_parts = []

    for fragment in fragments:
        if not title and fragment.title.strip():
            title = fragment.title.strip()
        if not date_published and fragment.date_published.strip():
            date_published = fragment.date_published.strip()
        if not date_updated and fragment.date_updated.strip():
            date_updated = fragment.date_updated.strip()
        for author in fragment.authors:
            name = author.strip()
            if name:
                authors.setdefault(name, None)
        content_parts.append(fragment.content)

    return MergedParse(
        title=title,
        authors=list(authors),
        date_published=date_published,
        date_updated=date_updated,
        content="".join(content_parts),
    )
