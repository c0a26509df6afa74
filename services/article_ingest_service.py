from __future__ import annotations

from typing import List

from app.core.errors import AnalysisFailedError, EmptyArticleContentError, EntityNotFoundError
from app.core.logging import get_logger
from app.models.analysis import ArticleAnalysisResponse
from app.models.article import ArticleData, ParseArticleResponse
from services.article_analysis_service import ArticleAnalysisService
from services.article_parser import select_parser
from services.llm_gateway import LLMGateway
from services.news_store import NewsStore
from services.publication_metadata_service import PublicationMetadataService

logger = get_logger().bind(module="article_ingest")


class ArticleIngestService:
    """Parses submitted pages and records the result with its publication and authors."""

    def __init__(
        self,
        store: NewsStore,
        gateway: LLMGateway,
        *,
        rule_based_parsers_enabled: bool = False,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._rule_based_parsers_enabled = rule_based_parsers_enabled
        self._metadata = PublicationMetadataService(gateway)
        self._analysis = ArticleAnalysisService(gateway)

    async def ensure_publication(self, hostname: str) -> str:
        existing = await self._store.get_publication_by_hostname(hostname)
        if existing:
            return str(existing["id"])
        try:
            metadata = await self._metadata.fetch(hostname)
        except AnalysisFailedError as exc:
            # metadata is cosmetic; the article is still worth keeping
            logger.warning("publication_metadata_degraded", hostname=hostname, error=str(exc))
            metadata = PublicationMetadataService.fallback(hostname)
        return await self._store.create_publication(hostname, metadata)

    async def ensure_journalists(self, authors: List[str], publication_id: str) -> List[str]:
        ids: List[str] = []
        for name in authors:
            ids.append(await self._store.find_or_create_journalist(name, publication_id))
        return ids

    async def parse(self, url: str, html: str) -> ArticleData:
        parser = select_parser(url, self._gateway, rule_based_enabled=self._rule_based_parsers_enabled)
        return await parser.parse(url, html)

    async def ingest(self, url: str, html: str) -> ParseArticleResponse:
        """
        Parse first, write afterwards: a parse failure leaves the store untouched.
        """
        article = await self.parse(url, html)
        publication_id = await self.ensure_publication(article.hostname)
        journalist_ids = await self.ensure_journalists(article.authors, publication_id)
        article_id = await self._store.save_parsed_article(
            article,
            publication_id=publication_id,
            journalist_ids=journalist_ids,
        )
        return ParseArticleResponse(
            article_id=article_id,
            publication_id=publication_id,
            journalist_ids=journalist_ids,
            article=article,
        )

    async def analyze_article(self, article_id: str) -> ArticleAnalysisResponse:
        row = await self._store.get_article(article_id)
        if row is None:
            raise EntityNotFoundError("article", article_id)
        text = row.get("text") or ""
        if not text.strip():
            raise EmptyArticleContentError(f"article {article_id} has no text to analyze")
        analysis = await self._analysis.analyze(text)
        ids = await self._store.save_article_analysis(article_id, analysis)
        return ArticleAnalysisResponse(article_id=article_id, analysis=analysis, **ids)
