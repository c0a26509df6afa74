# app/deps/services.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from app.config import settings
from services.article_ingest_service import ArticleIngestService
from services.bias_aggregation_service import BiasAggregationService
from services.llm_gateway import LLMGateway
from services.news_store import NewsStore

__all__ = ["get_gateway", "get_store", "get_ingest_service", "get_bias_service"]


def get_gateway(request: Request) -> LLMGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(status_code=503, detail="LLM gateway not initialized")
    return gateway


def get_store(request: Request) -> NewsStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return store


def get_ingest_service(
    store: NewsStore = Depends(get_store),
    gateway: LLMGateway = Depends(get_gateway),
) -> ArticleIngestService:
    return ArticleIngestService(
        store,
        gateway,
        rule_based_parsers_enabled=settings.RULE_BASED_PARSERS_ENABLED,
    )


def get_bias_service(
    store: NewsStore = Depends(get_store),
    gateway: LLMGateway = Depends(get_gateway),
) -> BiasAggregationService:
    return BiasAggregationService(
        store,
        gateway,
        publication_summary_limit=settings.PUBLICATION_SUMMARY_LIMIT,
    )
