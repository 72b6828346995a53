"""Tests for QueryClassifier."""

import json
from typing import Any

import pytest

from workspace_assistant.analysis import Intent, IntentMode, QueryClassifier, derive_mode
from workspace_assistant.analysis.classifier import FALLBACK_REASONING
from workspace_assistant.cache import TTLCache
from workspace_assistant.llm_client.types import LLMConnectionError
from workspace_assistant.telemetry import TraceContext
from workspace_assistant.tools import ExternalApp


class FakeLLM:
    def __init__(self, answer: dict[str, Any] | None = None, error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.call_count = 0

    async def respond(self, **kwargs: Any) -> dict[str, Any]:
        self.call_count += 1
        if self.error is not None:
            raise self.error
        return {"role": "assistant", "content": json.dumps(self.answer), "tool_calls": []}


@pytest.fixture
def trace_ctx() -> TraceContext:
    return TraceContext.new_trace()


@pytest.mark.parametrize(
    ("external", "internal", "mode"),
    [
        (True, True, IntentMode.HYBRID),
        (True, False, IntentMode.EXTERNAL),
        (False, True, IntentMode.INTERNAL),
        (False, False, IntentMode.INTERNAL),
    ],
)
def test_derive_mode(external: bool, internal: bool, mode: IntentMode) -> None:
    assert derive_mode(external, internal) == mode


def test_intent_dedupes_and_drops_unknown_apps() -> None:
    intent = Intent(
        mode=IntentMode.EXTERNAL,
        requires_external_tools=True,
        requires_internal_tools=False,
        requested_external_apps=["slack", "SLACK", "jira", "GitHub"],
    )
    assert intent.requested_external_apps == [ExternalApp.SLACK, ExternalApp.GITHUB]


class TestQueryClassifier:
    """Test QueryClassifier.classify."""

    @pytest.mark.asyncio
    async def test_hybrid_request(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM(
            {
                "requires_external_tools": True,
                "requires_internal_tools": True,
                "requested_external_apps": ["SLACK"],
                "reasoning": "Needs tasks and Slack",
            }
        )
        classifier = QueryClassifier(llm, timeout_s=5)  # type: ignore[arg-type]

        intent = await classifier.classify("Post my tasks to Slack", trace_ctx)

        assert intent.mode == IntentMode.HYBRID
        assert intent.requested_external_apps == [ExternalApp.SLACK]
        assert intent.used_fallback is False

    @pytest.mark.asyncio
    async def test_fallback_is_internal(self, trace_ctx: TraceContext) -> None:
        classifier = QueryClassifier(
            FakeLLM(error=LLMConnectionError("down")), timeout_s=5  # type: ignore[arg-type]
        )

        intent = await classifier.classify("Email the team", trace_ctx)

        assert intent.mode == IntentMode.INTERNAL
        assert intent.requires_internal_tools is True
        assert intent.requested_external_apps == []
        assert intent.reasoning == FALLBACK_REASONING
        assert intent.used_fallback is True
        assert intent.fallback_reason == "model_error:LLMConnectionError"

    @pytest.mark.asyncio
    async def test_results_cached_by_normalized_query(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM(
            {"requires_external_tools": False, "requires_internal_tools": True}
        )
        cache: TTLCache[Intent] = TTLCache("classification", max_size=10, ttl_seconds=60)
        classifier = QueryClassifier(llm, cache, timeout_s=5)  # type: ignore[arg-type]

        first = await classifier.classify("What's on my calendar?", trace_ctx)
        second = await classifier.classify("  what's on my CALENDAR?  ", trace_ctx)

        assert first == second
        assert llm.call_count == 1

    @pytest.mark.asyncio
    async def test_fallback_not_cached(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM(error=LLMConnectionError("down"))
        cache: TTLCache[Intent] = TTLCache("classification", max_size=10, ttl_seconds=60)
        classifier = QueryClassifier(llm, cache, timeout_s=5)  # type: ignore[arg-type]

        await classifier.classify("hello", trace_ctx)
        await classifier.classify("hello", trace_ctx)

        assert llm.call_count == 2
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_classify_many_keeps_order(self, trace_ctx: TraceContext) -> None:
        llm = FakeLLM({"requires_external_tools": True, "requires_internal_tools": False})
        classifier = QueryClassifier(llm, timeout_s=5)  # type: ignore[arg-type]

        intents = await classifier.classify_many(["a", "b", "c"], trace_ctx)

        assert [i.mode for i in intents] == [IntentMode.EXTERNAL] * 3
