# services/news_store.py
from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.logging import get_logger
from app.models.analysis import ArticleAnalysis, EntityBias, EntityKind, Footnote, PublicationMetadata
from app.models.article import ArticleData
from services.db_service import Database

logger = get_logger().bind(module="news_store")


@dataclass(frozen=True)
class _EntityTables:
    entity_table: str
    bias_table: str
    bias_fk: str
    # yields the ids of the entity's articles; $1 is the entity id
    article_ids_sql: str


# Table names are constants, never user input.
_ENTITY_TABLES: Dict[EntityKind, _EntityTables] = {
    EntityKind.JOURNALIST: _EntityTables(
        entity_table="journalist",
        bias_table="journalist_bias",
        bias_fk="journalist",
        article_ids_sql="SELECT article_id FROM article_authors WHERE journalist_id = $1",
    ),
    EntityKind.PUBLICATION: _EntityTables(
        entity_table="publication",
        bias_table="publication_bias",
        bias_fk="publication",
        article_ids_sql="SELECT id FROM article WHERE publication = $1",
    ),
}


def _footnotes_json(footnotes: Sequence[Footnote]) -> str:
    return json.dumps([f.model_dump() for f in footnotes], ensure_ascii=False)


def _row_to_entity_bias(kind: EntityKind, row: Any) -> EntityBias:
    rec = dict(row)
    return EntityBias(
        id=str(rec["id"]),
        kind=kind,
        entity_id=str(rec["entity_id"]),
        name=rec.get("name") or "",
        num_articles_analyzed=int(rec["num_articles_analyzed"]),
        bias_score=float(rec["bias_score"]),
        rhetoric_score=float(rec["rhetoric_score"]),
        summary=rec["summary"],
        created_at=rec.get("created_at"),
    )


class NewsStore:
    """All SQL used by the API and the maintenance scripts."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ---- publications / journalists ---------------------------------------

    async def get_publication_by_hostname(self, hostname: str) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            """
            SELECT id, name, hostname
            FROM publication
            WHERE hostname = $1
            ORDER BY created_at ASC
            LIMIT 1
            """,
            hostname,
        )
        return dict(row) if row else None

    async def create_publication(self, hostname: str, metadata: PublicationMetadata) -> str:
        publication_id = await self._db.fetchval(
            """
            INSERT INTO publication (name, hostname, date_founded)
            VALUES ($1, $2, $3)
            RETURNING id
            """,
            metadata.name,
            hostname,
            metadata.date_founded,
        )
        logger.info("publication_created", publication_id=publication_id, hostname=hostname)
        return str(publication_id)

    async def find_or_create_journalist(self, name: str, publication_id: str) -> str:
        existing = await self._db.fetchval(
            """
            SELECT id FROM journalist
            WHERE name = $1 AND publication = $2
            ORDER BY created_at ASC
            LIMIT 1
            """,
            name,
            publication_id,
        )
        if existing:
            return str(existing)
        journalist_id = await self._db.fetchval(
            "INSERT INTO journalist (name, publication) VALUES ($1, $2) RETURNING id",
            name,
            publication_id,
        )
        logger.info("journalist_created", journalist_id=journalist_id, publication_id=publication_id)
        return str(journalist_id)

    # ---- articles ------------------------------------------------------------

    async def save_parsed_article(
        self,
        article: ArticleData,
        *,
        publication_id: str,
        journalist_ids: Sequence[str],
    ) -> str:
        """Upsert by url and replace the author links in one transaction."""
        async with self._db.transaction() as conn:
            article_id = await self._db.fetchval(
                """
                INSERT INTO article (title, url, date_published, date_updated, text, publication)
                VALUES ($1, $2, $3, $4, $5, $6)
                ON CONFLICT (url) DO UPDATE SET
                    title = EXCLUDED.title,
                    date_published = EXCLUDED.date_published,
                    date_updated = EXCLUDED.date_updated,
                    text = EXCLUDED.text,
                    publication = EXCLUDED.publication,
                    updated_at = now()
                RETURNING id
                """,
                article.title,
                article.url,
                article.date_published,
                article.date_updated,
                article.text,
                publication_id,
                conn=conn,
            )
            await self._db.execute("DELETE FROM article_authors WHERE article_id = $1", article_id, conn=conn)
            if journalist_ids:
                await self._db.execute(
                    """
                    INSERT INTO article_authors (article_id, journalist_id)
                    SELECT $1, unnest($2::text[])
                    ON CONFLICT DO NOTHING
                    """,
                    article_id,
                    list(journalist_ids),
                    conn=conn,
                )
        logger.info("article_saved", article_id=article_id, author_count=len(journalist_ids))
        return str(article_id)

    async def get_article(self, article_id: str) -> Optional[Dict[str, Any]]:
        row = await self._db.fetchrow(
            "SELECT id, title, url, text FROM article WHERE id = $1",
            article_id,
        )
        return dict(row) if row else None

    async def save_article_analysis(self, article_id: str, analysis: ArticleAnalysis) -> Dict[str, str]:
        async with self._db.transaction() as conn:
            summary_id = await self._db.fetchval(
                """
                INSERT INTO summary (article_id, summary, footnotes)
                VALUES ($1, $2, CAST($3 AS JSONB))
                RETURNING id
                """,
                article_id,
                analysis.summary.summary,
                _footnotes_json(analysis.summary.footnotes),
                conn=conn,
            )
            polarization_id = await self._db.fetchval(
                """
                INSERT INTO polarization_bias (article_id, bias_score, analysis, footnotes)
                VALUES ($1, $2, $3, CAST($4 AS JSONB))
                RETURNING id
                """,
                article_id,
                Decimal(str(analysis.political_bias.bias_score)),
                analysis.political_bias.analysis,
                _footnotes_json(analysis.political_bias.footnotes),
                conn=conn,
            )
            objectivity_id = await self._db.fetchval(
                """
                INSERT INTO objectivity_bias (article_id, rhetoric_score, analysis, footnotes)
                VALUES ($1, $2, $3, CAST($4 AS JSONB))
                RETURNING id
                """,
                article_id,
                Decimal(str(analysis.objectivity.rhetoric_score)),
                analysis.objectivity.analysis,
                _footnotes_json(analysis.objectivity.footnotes),
                conn=conn,
            )
        return {
            "summary_id": str(summary_id),
            "polarization_bias_id": str(polarization_id),
            "objectivity_bias_id": str(objectivity_id),
        }

    # ---- entity aggregation ------------------------------------------------

    async def get_entity(self, kind: EntityKind, entity_id: str) -> Optional[Dict[str, Any]]:
        t = _ENTITY_TABLES[kind]
        row = await self._db.fetchrow(f"SELECT id, name FROM {t.entity_table} WHERE id = $1", entity_id)
        return dict(row) if row else None

    async def count_entity_articles(self, kind: EntityKind, entity_id: str) -> int:
        t = _ENTITY_TABLES[kind]
        count = await self._db.fetchval(f"SELECT COUNT(*) FROM ({t.article_ids_sql}) AS a", entity_id)
        return int(count or 0)

    async def find_entity_bias(self, kind: EntityKind, entity_id: str, num_articles: int) -> Optional[EntityBias]:
        t = _ENTITY_TABLES[kind]
        row = await self._db.fetchrow(
            f"""
            SELECT b.id, b.{t.bias_fk} AS entity_id, e.name, b.num_articles_analyzed,
                   b.bias_score, b.rhetoric_score, b.summary, b.created_at
            FROM {t.bias_table} b
            JOIN {t.entity_table} e ON e.id = b.{t.bias_fk}
            WHERE b.{t.bias_fk} = $1 AND b.num_articles_analyzed = $2
            ORDER BY b.created_at DESC
            LIMIT 1
            """,
            entity_id,
            num_articles,
        )
        return _row_to_entity_bias(kind, row) if row else None

    async def fetch_entity_scores(self, kind: EntityKind, entity_id: str) -> Tuple[List[Decimal], List[Decimal]]:
        t = _ENTITY_TABLES[kind]
        polarization = await self._db.fetch(
            f"SELECT bias_score FROM polarization_bias WHERE article_id IN ({t.article_ids_sql})",
            entity_id,
        )
        objectivity = await self._db.fetch(
            f"SELECT rhetoric_score FROM objectivity_bias WHERE article_id IN ({t.article_ids_sql})",
            entity_id,
        )
        return (
            [r["bias_score"] for r in polarization],
            [r["rhetoric_score"] for r in objectivity],
        )

    async def fetch_entity_summaries(self, kind: EntityKind, entity_id: str, limit: Optional[int]) -> List[str]:
        """Most recent article summaries first; ``limit=None`` returns all."""
        t = _ENTITY_TABLES[kind]
        rows = await self._db.fetch(
            f"""
            SELECT s.summary
            FROM summary s
            JOIN article a ON a.id = s.article_id
            WHERE s.article_id IN ({t.article_ids_sql})
            ORDER BY a.date_published DESC, s.created_at DESC
            LIMIT $2
            """,
            entity_id,
            limit,
        )
        return [r["summary"] for r in rows]

    async def create_entity_bias(
        self,
        kind: EntityKind,
        entity_id: str,
        *,
        name: str,
        num_articles: int,
        bias_score: float,
        rhetoric_score: float,
        summary: str,
    ) -> EntityBias:
        t = _ENTITY_TABLES[kind]
        row = await self._db.fetchrow(
            f"""
            INSERT INTO {t.bias_table} ({t.bias_fk}, num_articles_analyzed, bias_score, rhetoric_score, summary)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id, {t.bias_fk} AS entity_id, num_articles_analyzed,
                      bias_score, rhetoric_score, summary, created_at
            """,
            entity_id,
            num_articles,
            Decimal(str(bias_score)),
            Decimal(str(rhetoric_score)),
            summary,
        )
        return _row_to_entity_bias(kind, {**dict(row), "name": name})

    # ---- maintenance -------------------------------------------------------

    async def count_articles_with_text(self) -> int:
        return int(await self._db.fetchval("SELECT COUNT(*) FROM article WHERE text IS NOT NULL") or 0)

    async def fetch_article_text_batch(self, after_id: Optional[str], limit: int) -> List[Dict[str, Any]]:
        rows = await self._db.fetch(
            """
            SELECT id, text
            FROM article
            WHERE text IS NOT NULL AND ($1::text IS NULL OR id > $1::text)
            ORDER BY id ASC
            LIMIT $2
            """,
            after_id,
            limit,
        )
        return [dict(r) for r in rows]

    async def update_article_text(self, article_id: str, text: str) -> None:
        await self._db.execute(
            "UPDATE article SET text = $1, updated_at = now() WHERE id = $2",
            text,
            article_id,
        )

    async def find_duplicate_hostnames(self) -> List[str]:
        rows = await self._db.fetch(
            """
            SELECT hostname
            FROM publication
            GROUP BY hostname
            HAVING COUNT(*) > 1
            ORDER BY hostname
            """
        )
        return [r["hostname"] for r in rows]

    async def list_publication_ids_for_hostname(self, hostname: str) -> List[str]:
        rows = await self._db.fetch(
            "SELECT id FROM publication WHERE hostname = $1 ORDER BY created_at ASC, id ASC",
            hostname,
        )
        return [str(r["id"]) for r in rows]

    async def merge_publication_into(self, keep_id: str, remove_id: str) -> int:
        """
        Drop a duplicate publication atomically: its journalists move to
        ``keep_id``; its articles and everything hanging off them are deleted.
        Returns the number of deleted articles.
        """
        async with self._db.transaction() as conn:
            await self._db.execute(
                "UPDATE journalist SET publication = $1 WHERE publication = $2",
                keep_id,
                remove_id,
                conn=conn,
            )
            rows = await self._db.fetch("SELECT id FROM article WHERE publication = $1", remove_id, conn=conn)
            article_ids = [r["id"] for r in rows]
            if article_ids:
                for table in ("article_authors", "summary", "polarization_bias", "objectivity_bias"):
                    await self._db.execute(
                        f"DELETE FROM {table} WHERE article_id = ANY($1::text[])",
                        article_ids,
                        conn=conn,
                    )
                await self._db.execute("DELETE FROM article WHERE id = ANY($1::text[])", article_ids, conn=conn)
            await self._db.execute("DELETE FROM publication_bias WHERE publication = $1", remove_id, conn=conn)
            await self._db.execute("DELETE FROM publication WHERE id = $1", remove_id, conn=conn)
        return len(article_ids)
