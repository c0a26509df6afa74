# app/core/errors.py
from __future__ import annotations

from typing import Optional


class NewsBiasError(Exception):
    """Base class for errors raised by the parsing and analysis services."""

    status_code: int = 500


class AnalysisFailedError(NewsBiasError):
    """
    A single LLM call failed: transport/provider error, refusal, empty output,
    or output that does not conform to the requested schema.
    """

    status_code = 502

    def __init__(self, message: str, *, property_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.property_name = property_name


class ArticleParseError(NewsBiasError):
    """At least one chunk of an article could not be parsed; nothing is stored."""

    status_code = 502


class EmptyArticleContentError(NewsBiasError):
    """Parsing finished but produced no body text."""

    status_code = 422


class EntityNotFoundError(NewsBiasError):
    status_code = 404

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class InvalidUrlError(NewsBiasError, ValueError):
    """A submitted URL has no hostname."""

    status_code = 400
