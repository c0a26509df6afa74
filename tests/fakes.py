"""In-memory stand-ins for the LLM gateway and the news store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from app.models.analysis import ArticleAnalysis, EntityBias, EntityKind, PublicationMetadata
from app.models.article import ArticleData


class FakeGateway:
    """
    Answers by property name. A response can be a model instance, a dict
    (validated against the requested schema), an exception to raise, or a
    callable taking the prompt and returning any of those.
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Any]] = None,
        text_responses: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.responses: Dict[str, Any] = dict(responses or {})
        self.text_responses: Dict[str, Any] = dict(text_responses or {})
        self.calls: List[Tuple[str, str]] = []

    @staticmethod
    def _resolve(response: Any, prompt: str) -> Any:
        if callable(response) and not isinstance(response, (BaseModel, BaseException)):
            response = response(prompt)
        if isinstance(response, BaseException):
            raise response
        return response

    async def invoke(self, prompt: str, output_schema, property_name: str):
        self.calls.append((property_name, prompt))
        response = self._resolve(self.responses[property_name], prompt)
        if isinstance(response, dict):
            return output_schema.model_validate(response)
        return response

    async def complete_text(self, prompt: str, *, property_name: str = "text") -> str:
        self.calls.append((property_name, prompt))
        return self._resolve(self.text_responses[property_name], prompt)

    async def close(self) -> None:
        return None

    def call_count(self, property_name: Optional[str] = None) -> int:
        if property_name is None:
            return len(self.calls)
        return sum(1 for name, _ in self.calls if name == property_name)


class FakeStore:
    """Dict-backed NewsStore with the same method surface."""

    def __init__(self) -> None:
        self._seq = 0
        self.publications: Dict[str, Dict[str, Any]] = {}
        self.journalists: Dict[str, Dict[str, Any]] = {}
        self.articles: Dict[str, Dict[str, Any]] = {}
        self.article_authors: List[Tuple[str, str]] = []
        self.summaries: List[Dict[str, Any]] = []
        self.polarization: List[Dict[str, Any]] = []
        self.objectivity: List[Dict[str, Any]] = []
        self.entity_biases: Dict[EntityKind, List[EntityBias]] = {
            EntityKind.JOURNALIST: [],
            EntityKind.PUBLICATION: [],
        }

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq}"

    # ---- seeding helpers ---------------------------------------------------

    def add_publication(self, hostname: str, name: Optional[str] = None) -> str:
        publication_id = self._next_id("pub")
        self.publications[publication_id] = {"id": publication_id, "name": name or hostname, "hostname": hostname}
        return publication_id

    def add_journalist(self, name: str, publication_id: str) -> str:
        journalist_id = self._next_id("jour")
        self.journalists[journalist_id] = {"id": journalist_id, "name": name, "publication": publication_id}
        return journalist_id

    def add_article(
        self,
        publication_id: str,
        *,
        journalist_ids: Tuple[str, ...] = (),
        text: str = "body",
        bias_score: Optional[float] = None,
        rhetoric_score: Optional[float] = None,
        summary: Optional[str] = None,
        date_published: Optional[datetime] = None,
    ) -> str:
        article_id = self._next_id("art")
        self.articles[article_id] = {
            "id": article_id,
            "title": "",
            "url": f"https://example.com/{article_id}",
            "text": text,
            "publication": publication_id,
            "date_published": date_published or datetime(2024, 1, 1, tzinfo=timezone.utc),
        }
        self.article_authors.extend((article_id, j) for j in journalist_ids)
        if bias_score is not None:
            self.polarization.append({"article_id": article_id, "bias_score": bias_score})
        if rhetoric_score is not None:
            self.objectivity.append({"article_id": article_id, "rhetoric_score": rhetoric_score})
        if summary is not None:
            self.summaries.append({"article_id": article_id, "summary": summary})
        return article_id

    def _entity_article_ids(self, kind: EntityKind, entity_id: str) -> List[str]:
        if kind is EntityKind.JOURNALIST:
            return [a for a, j in self.article_authors if j == entity_id]
        return [a["id"] for a in self.articles.values() if a["publication"] == entity_id]

    # ---- publications / journalists ---------------------------------------

    async def get_publication_by_hostname(self, hostname: str) -> Optional[Dict[str, Any]]:
        for pub in self.publications.values():
            if pub["hostname"] == hostname:
                return dict(pub)
        return None

    async def create_publication(self, hostname: str, metadata: PublicationMetadata) -> str:
        publication_id = self.add_publication(hostname, metadata.name)
        self.publications[publication_id]["date_founded"] = metadata.date_founded
        return publication_id

    async def find_or_create_journalist(self, name: str, publication_id: str) -> str:
        for j in self.journalists.values():
            if j["name"] == name and j["publication"] == publication_id:
                return j["id"]
        return self.add_journalist(name, publication_id)

    # ---- articles ------------------------------------------------------------

    async def save_parsed_article(self, article: ArticleData, *, publication_id: str, journalist_ids) -> str:
        existing = next((a for a in self.articles.values() if a["url"] == article.url), None)
        article_id = existing["id"] if existing else self._next_id("art")
        self.articles[article_id] = {
            "id": article_id,
            "title": article.title,
            "url": article.url,
            "text": article.text,
            "publication": publication_id,
            "date_published": article.date_published,
        }
        self.article_authors = [(a, j) for a, j in self.article_authors if a != article_id]
        self.article_authors.extend((article_id, j) for j in journalist_ids)
        return article_id

    async def get_article(self, article_id: str) -> Optional[Dict[str, Any]]:
        row = self.articles.get(article_id)
        return dict(row) if row else None

    async def save_article_analysis(self, article_id: str, analysis: ArticleAnalysis) -> Dict[str, str]:
        summary_id = self._next_id("sum")
        polarization_id = self._next_id("pol")
        objectivity_id = self._next_id("obj")
        self.summaries.append({"id": summary_id, "article_id": article_id, "summary": analysis.summary.summary})
        self.polarization.append(
            {"id": polarization_id, "article_id": article_id, "bias_score": analysis.political_bias.bias_score}
        )
        self.objectivity.append(
            {"id": objectivity_id, "article_id": article_id, "rhetoric_score": analysis.objectivity.rhetoric_score}
        )
        return {
            "summary_id": summary_id,
            "polarization_bias_id": polarization_id,
            "objectivity_bias_id": objectivity_id,
        }

    # ---- entity aggregation ------------------------------------------------

    async def get_entity(self, kind: EntityKind, entity_id: str) -> Optional[Dict[str, Any]]:
        table = self.journalists if kind is EntityKind.JOURNALIST else self.publications
        row = table.get(entity_id)
        return {"id": row["id"], "name": row["name"]} if row else None

    async def count_entity_articles(self, kind: EntityKind, entity_id: str) -> int:
        return len(self._entity_article_ids(kind, entity_id))

    async def find_entity_bias(self, kind: EntityKind, entity_id: str, num_articles: int) -> Optional[EntityBias]:
        matches = [
            b
            for b in self.entity_biases[kind]
            if b.entity_id == entity_id and b.num_articles_analyzed == num_articles
        ]
        return matches[-1] if matches else None

    async def fetch_entity_scores(self, kind: EntityKind, entity_id: str):
        ids = set(self._entity_article_ids(kind, entity_id))
        return (
            [r["bias_score"] for r in self.polarization if r["article_id"] in ids],
            [r["rhetoric_score"] for r in self.objectivity if r["article_id"] in ids],
        )

    async def fetch_entity_summaries(self, kind: EntityKind, entity_id: str, limit: Optional[int]) -> List[str]:
        ids = set(self._entity_article_ids(kind, entity_id))
        rows = [r for r in self.summaries if r["article_id"] in ids]
        rows.sort(key=lambda r: self.articles[r["article_id"]]["date_published"], reverse=True)
        summaries = [r["summary"] for r in rows]
        return summaries if limit is None else summaries[:limit]

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
        bias = EntityBias(
            id=self._next_id("bias"),
            kind=kind,
            entity_id=entity_id,
            name=name,
            num_articles_analyzed=num_articles,
            bias_score=bias_score,
            rhetoric_score=rhetoric_score,
            summary=summary,
            created_at=datetime.now(timezone.utc),
        )
        self.entity_biases[kind].append(bias)
        return bias

    # ---- maintenance -------------------------------------------------------

    async def count_articles_with_text(self) -> int:
        return sum(1 for a in self.articles.values() if a["text"] is not None)

    async def fetch_article_text_batch(self, after_id: Optional[str], limit: int) -> List[Dict[str, Any]]:
        rows = sorted(
            (a for a in self.articles.values() if a["text"] is not None and (after_id is None or a["id"] > after_id)),
            key=lambda a: a["id"],
        )
        return [{"id": a["id"], "text": a["text"]} for a in rows[:limit]]

    async def update_article_text(self, article_id: str, text: str) -> None:
        self.articles[article_id]["text"] = text

    async def find_duplicate_hostnames(self) -> List[str]:
        counts: Dict[str, int] = {}
        for pub in self.publications.values():
            counts[pub["hostname"]] = counts.get(pub["hostname"], 0) + 1
        return sorted(h for h, n in counts.items() if n > 1)

    async def list_publication_ids_for_hostname(self, hostname: str) -> List[str]:
        # insertion order stands in for created_at
        return [p["id"] for p in self.publications.values() if p["hostname"] == hostname]

    async def merge_publication_into(self, keep_id: str, remove_id: str) -> int:
        for j in self.journalists.values():
            if j["publication"] == remove_id:
                j["publication"] = keep_id
        removed = {a["id"] for a in self.articles.values() if a["publication"] == remove_id}
        self.article_authors = [(a, j) for a, j in self.article_authors if a not in removed]
        for rows in (self.summaries, self.polarization, self.objectivity):
            rows[:] = [r for r in rows if r["article_id"] not in removed]
        for article_id in removed:
            del self.articles[article_id]
        self.entity_biases[EntityKind.PUBLICATION] = [
            b for b in self.entity_biases[EntityKind.PUBLICATION] if b.entity_id != remove_id
        ]
        del self.publications[remove_id]
        return len(removed)


def fragment(
    *,
    title: str = "",
    authors: Optional[List[str]] = None,
    date_published: str = "",
    date_updated: str = "",
    content: str = "",
) -> Dict[str, Any]:
    """Raw html_parse answer for one chunk."""
    return {
        "title": title,
        "authors": authors or [],
        "date_published": date_published,
        "date_updated": date_updated,
        "content": content,
    }


def by_prompt(mapping: Dict[str, Any], default: Any = None) -> Callable[[str], Any]:
    """Pick a response by the first marker substring found in the prompt."""

    def _respond(prompt: str) -> Any:
        for marker, response in mapping.items():
            if marker in prompt:
                return response
        if default is None:
            raise AssertionError(f"no fake response for prompt: {prompt[-200:]!r}")
        return default

    return _respond
