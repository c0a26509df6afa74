# api/routers/articles.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from app.deps.services import get_ingest_service
from app.models.analysis import ArticleAnalysisResponse
from app.models.article import ParseArticleRequest, ParseArticleResponse
from services.article_ingest_service import ArticleIngestService

router = APIRouter(prefix="/articles", tags=["articles"])


@router.post("/parse", response_model=ParseArticleResponse)
async def parse_article(
    payload: ParseArticleRequest,
    service: ArticleIngestService = Depends(get_ingest_service),
) -> ParseArticleResponse:
    """
    Parse raw page HTML submitted by the browser extension and store the article.
    A URL without a hostname is rejected with 400 before any model call.
    """
    return await service.ingest(payload.url, payload.html)


@router.post("/{article_id}/analysis", response_model=ArticleAnalysisResponse)
async def analyze_article(
    article_id: str = Path(..., min_length=1),
    service: ArticleIngestService = Depends(get_ingest_service),
) -> ArticleAnalysisResponse:
    """Generate and store the summary, political bias and objectivity analyses."""
    return await service.analyze_article(article_id)
