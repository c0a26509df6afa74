from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ParseFragment(BaseModel):
    """Structured parse result the LLM returns for one HTML chunk."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., description="Article title, or an empty string if not in this chunk")
    authors: List[str] = Field(..., description="Author names found in this chunk, or []")
    date_published: str = Field(..., description="ISO 8601 publish date, or an empty string")
    date_updated: str = Field(..., description="ISO 8601 last-updated date, or an empty string")
    content: str = Field(..., description="Main article text found in this chunk, or an empty string")


class MergedParse(BaseModel):
    """All chunk fragments of one article folded together, dates still raw."""

    title: str = ""
    authors: List[str] = Field(default_factory=list)
    date_published: str = ""
    date_updated: str = ""
    content: str = ""


class ArticleData(BaseModel):
    """Normalized article produced by a parser and handed to the store."""

    model_config = ConfigDict(frozen=True)

    title: str
    authors: List[str] = Field(default_factory=list)
    date_published: datetime
    date_updated: Optional[datetime] = None
    hostname: str
    url: str
    text: str


class ParseArticleRequest(BaseModel):
    url: str = Field(..., min_length=1)
    html: str = Field(..., description="Raw page HTML captured by the browser extension")

    @field_validator("url")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return cleaned


class ParseArticleResponse(BaseModel):
    article_id: str
    publication_id: str
    journalist_ids: List[str] = Field(default_factory=list)
    article: ArticleData
