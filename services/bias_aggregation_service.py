# services/bias_aggregation_service.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional, Sequence, Union

from app.core.errors import EntityNotFoundError
from app.core.logging import get_logger
from app.models.analysis import AnalysisResult, BiasAnalysisInput, EntityBias, EntityKind
from services.llm_gateway import LLMGateway
from services.news_store import NewsStore
from services.prompts import build_entity_analysis_prompt

logger = get_logger().bind(module="bias_aggregation")

NEUTRAL_SCORE = 50.0
DEFAULT_PUBLICATION_SUMMARY_LIMIT = 10

Score = Union[Decimal, float, int]

_PROPERTY_NAMES = {
    EntityKind.JOURNALIST: "journalist_analysis",
    EntityKind.PUBLICATION: "publication_analysis",
}


def average_score(scores: Iterable[Score]) -> float:
    """
    Arithmetic mean rounded half-up to one decimal; an empty set is neutral (50.0).
    Decimal arithmetic so numeric DB columns average without float drift.
    """
    values = [Decimal(str(s)) for s in scores]
    if not values:
        return NEUTRAL_SCORE
    mean = sum(values, Decimal(0)) / len(values)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def build_analysis_input(
    polarization_scores: Iterable[Score],
    objectivity_scores: Iterable[Score],
    summaries: Sequence[str],
    *,
    summary_limit: Optional[int] = None,
) -> BiasAnalysisInput:
    kept: List[str] = list(summaries if summary_limit is None else summaries[:summary_limit])
    return BiasAnalysisInput(
        average_polarization=average_score(polarization_scores),
        average_objectivity=average_score(objectivity_scores),
        summaries=kept,
    )


class BiasAggregationService:
    """
    Aggregated bias analyses for journalists and publications.

    A stored analysis is reused while the entity's article count is unchanged.
    The count is only a proxy: an edited score or a swapped article with the
    same count is not detected.
    """

    def __init__(
        self,
        store: NewsStore,
        gateway: LLMGateway,
        *,
        publication_summary_limit: int = DEFAULT_PUBLICATION_SUMMARY_LIMIT,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._summary_limits = {
            EntityKind.JOURNALIST: None,
            EntityKind.PUBLICATION: publication_summary_limit,
        }

    async def analyze_journalist(self, journalist_id: str) -> EntityBias:
        return await self.analyze(EntityKind.JOURNALIST, journalist_id)

    async def analyze_publication(self, publication_id: str) -> EntityBias:
        return await self.analyze(EntityKind.PUBLICATION, publication_id)

    async def explain(self, kind: EntityKind, data: BiasAnalysisInput) -> AnalysisResult:
        return await self._gateway.invoke(
            build_entity_analysis_prompt(kind, data),
            AnalysisResult,
            _PROPERTY_NAMES[kind],
        )

    async def analyze(self, kind: EntityKind, entity_id: str) -> EntityBias:
        entity = await self._store.get_entity(kind, entity_id)
        if entity is None:
            raise EntityNotFoundError(kind.value, entity_id)

        num_articles = await self._store.count_entity_articles(kind, entity_id)
        existing = await self._store.find_entity_bias(kind, entity_id, num_articles)
        if existing is not None:
            logger.info("entity_bias_reused", kind=kind.value, entity_id=entity_id, num_articles=num_articles)
            return existing

        polarization, objectivity = await self._store.fetch_entity_scores(kind, entity_id)
        limit = self._summary_limits[kind]
        summaries = await self._store.fetch_entity_summaries(kind, entity_id, limit)
        data = build_analysis_input(polarization, objectivity, summaries, summary_limit=limit)

        logger.info(
            "entity_bias_analyzing",
            kind=kind.value,
            entity_id=entity_id,
            num_articles=num_articles,
            average_polarization=data.average_polarization,
            average_objectivity=data.average_objectivity,
            summary_count=len(data.summaries),
        )
        # A failure here propagates before anything is written
        result = await self.explain(kind, data)

        return await self._store.create_entity_bias(
            kind,
            entity_id,
            name=entity.get("name") or "",
            num_articles=num_articles,
            bias_score=data.average_polarization,
            rhetoric_score=data.average_objectivity,
            summary=result.analysis,
        )
