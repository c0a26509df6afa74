from __future__ import annotations

import asyncio

from app.core.logging import get_logger
from app.models.analysis import (
    ArticleAnalysis,
    ObjectivityResponse,
    PoliticalBiasResponse,
    SummaryResponse,
)
from services.llm_gateway import LLMGateway
from services.prompts import (
    build_objectivity_prompt,
    build_political_bias_prompt,
    build_summary_prompt,
)

logger = get_logger().bind(module="article_analysis")


def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


class ArticleAnalysisService:
    """Summary, political bias and objectivity analyses for one article text."""

    def __init__(self, gateway: LLMGateway) -> None:
        self._gateway = gateway

    async def summarize(self, text: str) -> SummaryResponse:
        return await self._gateway.invoke(build_summary_prompt(text), SummaryResponse, "summary")

    async def political_bias(self, text: str) -> PoliticalBiasResponse:
        result = await self._gateway.invoke(
            build_political_bias_prompt(text), PoliticalBiasResponse, "political_bias"
        )
        return result.model_copy(update={"bias_score": _clamp_score(result.bias_score)})

    async def objectivity(self, text: str) -> ObjectivityResponse:
        result = await self._gateway.invoke(
            build_objectivity_prompt(text), ObjectivityResponse, "objectivity"
        )
        return result.model_copy(update={"rhetoric_score": _clamp_score(result.rhetoric_score)})

    async def analyze(self, text: str) -> ArticleAnalysis:
        """
        Run the three analyses concurrently. Any failure fails the whole
        analysis so callers never store a partial set.
        """
        if not text or not text.strip():
            raise ValueError("text cannot be empty")

        summary, bias, objectivity = await asyncio.gather(
            self.summarize(text),
            self.political_bias(text),
            self.objectivity(text),
        )
        logger.info(
            "article_analysis_finished",
            bias_score=bias.bias_score,
            rhetoric_score=objectivity.rhetoric_score,
            footnote_count=len(summary.footnotes),
        )
        return ArticleAnalysis(summary=summary, political_bias=bias, objectivity=objectivity)
