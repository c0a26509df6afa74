# services/llm_validation.py
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Generic, Type, TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError

log = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[ModelT]):
    value: ModelT
    ok: bool = True


@dataclass(frozen=True)
class Invalid:
    reason: str
    ok: bool = False


ValidationOutcome = Union[Valid[ModelT], Invalid]


def extract_first_json(text: str) -> str:
    """
    Lenient extraction for free-text answers: take the first {...} block and
    drop trailing commas. Structured-output answers pass through unchanged.
    """
    m = re.search(r"\{.*\}", text or "", flags=re.DOTALL)
    candidate = m.group(0) if m else (text or "").strip()
    candidate = re.sub(r",\s*([}\]])", r"\1", candidate)
    return candidate.strip()


def _log_result(kind: str, outcome: ValidationOutcome, raw_text: str) -> None:
    if outcome.ok:
        log.debug("llm_validation_ok", kind=kind)
    else:
        # only a small sample of the payload to keep the noise down
        log.warning("llm_validation_fail", kind=kind, error=outcome.reason, sample=(raw_text or "")[:500])


def validate_json_payload(raw_text: str, model: Type[ModelT], *, kind: str = "generic") -> ValidationOutcome:
    """
    Validate an LLM answer against ``model``.

    Returns ``Valid(value)`` or ``Invalid(reason)``; never raises for bad
    model output.
    """
    if not raw_text or not raw_text.strip():
        outcome: ValidationOutcome = Invalid("empty response")
        _log_result(kind, outcome, raw_text)
        return outcome

    try:
        data = json.loads(extract_first_json(raw_text))
    except json.JSONDecodeError as e:
        outcome = Invalid(f"response is not valid JSON: {e.msg}")
        _log_result(kind, outcome, raw_text)
        return outcome

    try:
        outcome = Valid(model.model_validate(data))
    except ValidationError as e:
        outcome = Invalid(f"response does not match {model.__name__}: {e.error_count()} error(s): {e.errors()[0]['msg']}")
    _log_result(kind, outcome, raw_text)
    return outcome
