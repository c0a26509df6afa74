from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, field_validator

from app.core.errors import AnalysisFailedError
from app.core.logging import get_logger
from app.models.analysis import PublicationMetadata
from services.llm_gateway import LLMGateway
from services.llm_validation import validate_json_payload
from services.prompts import build_publication_metadata_prompt
from services.url_utils import parse_date_string, strip_www

logger = get_logger().bind(module="publication_metadata")

_NULL_MARKERS = {"", "null", "none"}


class _RawPublicationMetadata(BaseModel):
    """Shape of the free-text answer before NULL markers are resolved."""

    name: Optional[str] = None
    date_founded: Optional[str] = None

    @field_validator("name", "date_founded", mode="before")
    @classmethod
    def _null_markers(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("expected a string or null")
        return None if value.strip().lower() in _NULL_MARKERS else value.strip()


class PublicationMetadataService:
    def __init__(self, gateway: LLMGateway) -> None:
        self._gateway = gateway

    async def fetch(self, hostname: str) -> PublicationMetadata:
        """
        Ask the model for the publication's display name and founding date.

        Raises:
            AnalysisFailedError: If the call fails or the answer is not the
                expected JSON object
        """
        raw_text = await self._gateway.complete_text(
            build_publication_metadata_prompt(hostname),
            property_name="publication_metadata",
        )
        outcome = validate_json_payload(raw_text, _RawPublicationMetadata, kind="publication_metadata")
        if not outcome.ok:
            raise AnalysisFailedError(
                f"publication_metadata: {outcome.reason}", property_name="publication_metadata"
            )

        raw = outcome.value
        founded = parse_date_string(raw.date_founded)
        metadata = PublicationMetadata(
            name=raw.name or strip_www(hostname),
            date_founded=founded.date() if founded else None,
        )
        logger.info("publication_metadata_resolved", hostname=hostname, name=metadata.name)
        return metadata

    @staticmethod
    def fallback(hostname: str) -> PublicationMetadata:
        return PublicationMetadata(name=strip_www(hostname), date_founded=None)

