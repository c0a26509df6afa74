# services/llm_gateway.py
from __future__ import annotations

import time
from typing import Any, Dict, Optional, Type, TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

from app.config import Settings, require_openai
from app.core.errors import AnalysisFailedError
from app.core.logging import get_logger
from services.llm_validation import validate_json_payload

logger = get_logger().bind(module="llm_gateway")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _response_format(output_schema: Type[BaseModel], property_name: str) -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": property_name,
            "schema": output_schema.model_json_schema(),
            "strict": True,
        },
    }


def _usage_tokens(completion: Any) -> Optional[int]:
    usage = getattr(completion, "usage", None)
    return getattr(usage, "total_tokens", None) if usage is not None else None


class LLMGateway:
    """
    Single entry point for model calls.

    Sampling is deterministic (temperature 0) and structured answers must match
    the requested pydantic schema. Every failure mode surfaces as
    AnalysisFailedError; nothing is retried. Holds no per-call state, so one
    instance is shared by concurrent requests.
    """

    def __init__(self, client: AsyncOpenAI, model: str) -> None:
        self._client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMGateway":
        return cls(AsyncOpenAI(api_key=require_openai()), settings.OPENAI_MODEL)

    async def close(self) -> None:
        await self._client.close()

    async def _complete(self, prompt: str, *, property_name: str, response_format: Optional[Dict[str, Any]]) -> str:
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "system", "content": prompt}],
            "temperature": 0,
        }
        if response_format is not None:
            kwargs["response_format"] = response_format

        t0 = time.perf_counter()
        try:
            completion = await self._client.chat.completions.create(**kwargs)
        except OpenAIError as exc:
            logger.warning(
                "llm_call_failed",
                property_name=property_name,
                error=exc.__class__.__name__,
                detail=str(exc)[:300],
            )
            raise AnalysisFailedError(f"LLM call failed: {exc}", property_name=property_name) from exc

        duration_ms = int((time.perf_counter() - t0) * 1000)
        message = completion.choices[0].message if completion.choices else None
        refusal = getattr(message, "refusal", None) if message is not None else None
        if refusal:
            logger.warning("llm_call_refused", property_name=property_name, refusal=str(refusal)[:300])
            raise AnalysisFailedError(f"model refused: {refusal}", property_name=property_name)

        raw_text = (message.content if message is not None else None) or ""
        logger.info(
            "llm_call_ok",
            property_name=property_name,
            model=self.model,
            duration_ms=duration_ms,
            total_tokens=_usage_tokens(completion),
            prompt_chars=len(prompt),
            response_chars=len(raw_text),
        )
        return raw_text

    async def invoke(self, prompt: str, output_schema: Type[ModelT], property_name: str) -> ModelT:
        """
        Issue one structured-output request and return the validated model.

        Raises:
            AnalysisFailedError: provider/network error, refusal, or output that
                does not conform to ``output_schema``
        """
        raw_text = await self._complete(
            prompt,
            property_name=property_name,
            response_format=_response_format(output_schema, property_name),
        )
        outcome = validate_json_payload(raw_text, output_schema, kind=property_name)
        if not outcome.ok:
            raise AnalysisFailedError(
                f"{property_name}: {outcome.reason}", property_name=property_name
            )
        return outcome.value

    async def complete_text(self, prompt: str, *, property_name: str = "text") -> str:
        """Free-text answer; callers extract and validate JSON themselves."""
        raw_text = await self._complete(prompt, property_name=property_name, response_format=None)
        if not raw_text.strip():
            raise AnalysisFailedError(f"{property_name}: empty response", property_name=property_name)
        return raw_text
