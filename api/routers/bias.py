from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from app.deps.services import get_bias_service
from app.models.analysis import EntityBias
from services.bias_aggregation_service import BiasAggregationService

router = APIRouter(tags=["bias"])


@router.get("/journalists/{journalist_id}/bias", response_model=EntityBias)
async def get_journalist_bias(
    journalist_id: str = Path(..., min_length=1),
    service: BiasAggregationService = Depends(get_bias_service),
) -> EntityBias:
    return await service.analyze_journalist(journalist_id)


@router.get("/publications/{publication_id}/bias", response_model=EntityBias)
async def get_publication_bias(
    publication_id: str = Path(..., min_length=1),
    service: BiasAggregationService = Depends(get_bias_service),
) -> EntityBias:
    return await service.analyze_publication(publication_id)
