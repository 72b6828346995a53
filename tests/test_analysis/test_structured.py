"""Tests for StructuredCall."""

import asyncio
import json
from typing import Any

import pytest
from pydantic import BaseModel

from workspace_assistant.analysis.structured import (
    StructuredCall,
    extract_json_text,
    response_format_for,
)
from workspace_assistant.config.loader import ConfigLoadError
from workspace_assistant.llm_client.types import LLMTimeout, ModelRole
from workspace_assistant.telemetry import TraceContext


class Verdict(BaseModel):
    approved: bool
    note: str = ""


class FakeLLM:
    """Returns a fixed content string or raises a fixed error."""

    def __init__(self, content: str = "", error: Exception | None = None, delay: float = 0.0):
        self.content = content
        self.error = error
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    async def respond(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"role": "assistant", "content": self.content, "tool_calls": []}


@pytest.fixture
def trace_ctx() -> TraceContext:
    return TraceContext.new_trace()


def _fallback() -> Verdict:
    return Verdict(approved=False, note="fallback")


class TestExtractJsonText:
    """Test JSON extraction from model content."""

    def test_plain_object(self) -> None:
        assert extract_json_text('{"a": 1}') == '{"a": 1}'

    def test_fenced_object(self) -> None:
        assert extract_json_text('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_surrounding_prose(self) -> None:
        assert extract_json_text('Sure! {"a": {"b": 2}} Hope that helps') == '{"a": {"b": 2}}'

    def test_no_object(self) -> None:
        assert extract_json_text("  nothing here ") == "nothing here"


def test_response_format_embeds_schema() -> None:
    fmt = response_format_for("verdict", Verdict)
    assert fmt["type"] == "json_schema"
    assert fmt["json_schema"]["name"] == "verdict"
    assert "approved" in fmt["json_schema"]["schema"]["properties"]


class TestStructuredCall:
    """Test StructuredCall.run."""

    @pytest.mark.asyncio
    async def test_valid_answer(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM(json.dumps({"approved": True, "note": "fine"}))
        call = StructuredCall("verdict", Verdict, llm, timeout_s=5)  # type: ignore[arg-type]

        outcome = await call.run(
            system_prompt="sys", user_prompt="user", fallback=_fallback, trace_ctx=trace_ctx
        )

        assert outcome.used_fallback is False
        assert outcome.value == Verdict(approved=True, note="fine")
        sent = llm.calls[0]
        assert sent["role"] == ModelRole.ROUTER
        assert sent["system_prompt"] == "sys"
        assert sent["messages"] == [{"role": "user", "content": "user"}]
        assert sent["max_retries"] == 0
        assert sent["response_format"]["json_schema"]["name"] == "verdict"

    @pytest.mark.asyncio
    async def test_invalid_json_falls_back(self, trace_ctx: TraceContext) -> None:
        call = StructuredCall("verdict", Verdict, FakeLLM("not json"), timeout_s=5)  # type: ignore[arg-type]
        outcome = await call.run(
            system_prompt="s", user_prompt="u", fallback=_fallback, trace_ctx=trace_ctx
        )
        assert outcome.used_fallback is True
        assert outcome.fallback_reason == "invalid_output"
        assert outcome.value.note == "fallback"

    @pytest.mark.asyncio
    async def test_schema_mismatch_falls_back(self, trace_ctx: TraceContext) -> None:
        call = StructuredCall(
            "verdict", Verdict, FakeLLM('{"note": "missing approved"}'), timeout_s=5  # type: ignore[arg-type]
        )
        outcome = await call.run(
            system_prompt="s", user_prompt="u", fallback=_fallback, trace_ctx=trace_ctx
        )
        assert outcome.fallback_reason == "invalid_output"

    @pytest.mark.asyncio
    async def test_client_error_falls_back(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM(error=LLMTimeout("slow"))
        call = StructuredCall("verdict", Verdict, llm, timeout_s=5)  # type: ignore[arg-type]
        outcome = await call.run(
            system_prompt="s", user_prompt="u", fallback=_fallback, trace_ctx=trace_ctx
        )
        assert outcome.used_fallback is True
        assert outcome.fallback_reason == "model_error:LLMTimeout"

    @pytest.mark.asyncio
    async def test_config_error_falls_back(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM(error=ConfigLoadError("no models"))
        call = StructuredCall("verdict", Verdict, llm, timeout_s=5)  # type: ignore[arg-type]
        outcome = await call.run(
            system_prompt="s", user_prompt="u", fallback=_fallback, trace_ctx=trace_ctx
        )
        assert outcome.fallback_reason == "config_error:ConfigLoadError"

    @pytest.mark.asyncio
    async def test_time_bound_falls_back(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM('{"approved": true}', delay=1.0)
        call = StructuredCall("verdict", Verdict, llm, timeout_s=0.05)  # type: ignore[arg-type]
        outcome = await call.run(
            system_prompt="s", user_prompt="u", fallback=_fallback, trace_ctx=trace_ctx
        )
        assert outcome.used_fallback is True
        assert outcome.fallback_reason == "timeout"

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, trace_ctx: TraceContext) -> None:
        call = StructuredCall(
            "verdict", Verdict, FakeLLM(error=RuntimeError("bug")), timeout_s=5  # type: ignore[arg-type]
        )
        with pytest.raises(RuntimeError):
            await call.run(
                system_prompt="s", user_prompt="u", fallback=_fallback, trace_ctx=trace_ctx
            )
