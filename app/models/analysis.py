from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    JOURNALIST = "journalist"
    PUBLICATION = "publication"


# ---- LLM response schemas ---------------------------------------------------
# Strict structured output requires every property to be required and no
# additional properties, hence extra="forbid" and no defaults below.

class Footnote(BaseModel):
    model_config = ConfigDict(extra="forbid")

    marker: str = Field(..., description="Footnote marker used in the text, e.g. '1'")
    text: str = Field(..., description="Exact quote from the article")


class SummaryResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    summary: str
    footnotes: List[Footnote]


class PoliticalBiasResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bias_score: float = Field(..., description="0 = very left-wing, 50 = moderate, 100 = very right-wing")
    analysis: str
    footnotes: List[Footnote]


class ObjectivityResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rhetoric_score: float = Field(..., description="0 = very opinionated, 100 = very factual")
    analysis: str
    footnotes: List[Footnote]


class AnalysisResult(BaseModel):
    """Prose explanation of an entity's average scores."""

    model_config = ConfigDict(extra="forbid")

    analysis: str


class PublicationMetadata(BaseModel):
    name: Optional[str] = None
    date_founded: Optional[date] = None


# ---- Derived / persisted ----------------------------------------------------

class BiasAnalysisInput(BaseModel):
    average_polarization: float = Field(..., ge=0, le=100)
    average_objectivity: float = Field(..., ge=0, le=100)
    summaries: List[str] = Field(default_factory=list)


class EntityBias(BaseModel):
    """Stored aggregated analysis of a journalist or publication."""

    id: str
    kind: EntityKind
    entity_id: str
    name: str
    num_articles_analyzed: int
    bias_score: float
    rhetoric_score: float
    summary: str
    created_at: Optional[datetime] = None


class ArticleAnalysis(BaseModel):
    summary: SummaryResponse
    political_bias: PoliticalBiasResponse
    objectivity: ObjectivityResponse


class ArticleAnalysisResponse(BaseModel):
    article_id: str
    summary_id: str
    polarization_bias_id: str
    objectivity_bias_id: str
    analysis: ArticleAnalysis
