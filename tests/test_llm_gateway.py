from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from openai import OpenAIError

from app.core.errors import AnalysisFailedError
from app.models.analysis import AnalysisResult
from services.llm_gateway import LLMGateway

pytestmark = pytest.mark.asyncio


class DummyCompletions:
    """Records create() kwargs and returns a canned chat completion."""

    def __init__(self, content: Optional[str] = None, *, refusal: Optional[str] = None, error: Exception | None = None):
        self.calls: List[Dict[str, Any]] = []
        self.content = content
        self.refusal = refusal
        self.error = error

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content, refusal=self.refusal)
        return SimpleNamespace(
            choices=[SimpleNamespace(message=message)],
            usage=SimpleNamespace(total_tokens=42),
        )


class DummyClient:
    def __init__(self, completions: DummyCompletions) -> None:
        self.chat = SimpleNamespace(completions=completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _gateway(completions: DummyCompletions) -> LLMGateway:
    return LLMGateway(DummyClient(completions), "gpt-test")


async def test_invoke_requests_strict_schema_at_temperature_zero():
    completions = DummyCompletions('{"analysis": "- leans left"}')
    result = await _gateway(completions).invoke("prompt text", AnalysisResult, "journalist_analysis")

    assert result == AnalysisResult(analysis="- leans left")
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["temperature"] == 0
    assert call["messages"] == [{"role": "system", "content": "prompt text"}]
    fmt = call["response_format"]
    assert fmt["type"] == "json_schema"
    assert fmt["json_schema"]["name"] == "journalist_analysis"
    assert fmt["json_schema"]["strict"] is True
    assert fmt["json_schema"]["schema"]["required"] == ["analysis"]
    assert fmt["json_schema"]["schema"]["additionalProperties"] is False


async def test_invoke_rejects_non_conforming_output():
    completions = DummyCompletions('{"verdict": "left"}')
    with pytest.raises(AnalysisFailedError) as excinfo:
        await _gateway(completions).invoke("p", AnalysisResult, "publication_analysis")
    assert excinfo.value.property_name == "publication_analysis"


async def test_invoke_wraps_provider_errors():
    completions = DummyCompletions(error=OpenAIError("rate limited"))
    with pytest.raises(AnalysisFailedError, match="rate limited"):
        await _gateway(completions).invoke("p", AnalysisResult, "summary")
    assert len(completions.calls) == 1


async def test_invoke_treats_refusal_as_failure():
    completions = DummyCompletions(None, refusal="I can't help with that")
    with pytest.raises(AnalysisFailedError, match="refused"):
        await _gateway(completions).invoke("p", AnalysisResult, "summary")


async def test_complete_text_has_no_response_format():
    completions = DummyCompletions('{"name": "CNN"}')
    text = await _gateway(completions).complete_text("p", property_name="publication_metadata")
    assert text == '{"name": "CNN"}'
    assert "response_format" not in completions.calls[0]


async def test_complete_text_empty_answer_fails():
    with pytest.raises(AnalysisFailedError, match="empty response"):
        await _gateway(DummyCompletions("   ")).complete_text("p")


async def test_close_closes_client():
    client = DummyClient(DummyCompletions("{}"))
    await LLMGateway(client, "gpt-test").close()
    assert client.closed is True
