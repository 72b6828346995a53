"""Tests for chat completions adapters."""

import pytest

from workspace_assistant.llm_client.adapters import (
    adapt_chat_completions_response,
    build_chat_completions_request,
    tool_call_message,
    tool_result_message,
)
from workspace_assistant.llm_client.types import LLMInvalidResponse


class TestBuildRequest:
    """Test request payload construction."""

    def test_minimal_payload(self) -> None:
        payload = build_chat_completions_request(
            messages=[{"role": "user", "content": "hi"}], model="m"
        )
        assert payload == {"model": "m", "messages": [{"role": "user", "content": "hi"}]}

    def test_optional_fields(self) -> None:
        response_format = {"type": "json_schema", "json_schema": {"name": "x", "schema": {}}}
        payload = build_chat_completions_request(
            messages=[],
            model="m",
            tools=[{"type": "function", "function": {"name": "t"}}],
            max_tokens=100,
            temperature=0.0,
            response_format=response_format,
        )
        assert payload["tool_choice"] == "auto"
        assert payload["max_tokens"] == 100
        assert payload["temperature"] == 0.0
        assert payload["response_format"] == response_format

    def test_tool_call_history_gets_index(self) -> None:
        """Test replayed assistant tool calls are indexed."""
        history = [
            tool_call_message(
                [
                    {"id": "a", "name": "t1", "arguments": "{}"},
                    {"id": "b", "name": "t2", "arguments": "{}"},
                ]
            )
        ]
        payload = build_chat_completions_request(messages=history, model="m")

        indexes = [tc["index"] for tc in payload["messages"][0]["tool_calls"]]
        assert indexes == [0, 1]
        # Input is not mutated
        assert "index" not in history[0]["tool_calls"][0]


class TestAdaptResponse:
    """Test response normalization."""

    def test_missing_usage_defaults_to_zero(self) -> None:
        response = adapt_chat_completions_response(
            {"choices": [{"message": {"role": "assistant", "content": None}}]}
        )
        assert response["content"] == ""
        assert response["usage"]["total_tokens"] == 0

    def test_no_choices(self) -> None:
        with pytest.raises(LLMInvalidResponse):
            adapt_chat_completions_response({"choices": []})

    def test_malformed_choice(self) -> None:
        with pytest.raises(LLMInvalidResponse):
            adapt_chat_completions_response({"choices": ["not a dict"]})


def test_tool_result_message() -> None:
    assert tool_result_message("call_1", '{"ok": true}') == {
        "role": "tool",
        "tool_call_id": "call_1",
        "content": '{"ok": true}',
    }


def test_tool_call_message_shape() -> None:
    message = tool_call_message([{"id": "c", "name": "t", "arguments": '{"a": 1}'}], "thinking")
    assert message["role"] == "assistant"
    assert message["content"] == "thinking"
    assert message["tool_calls"][0] == {
        "id": "c",
        "type": "function",
        "function": {"name": "t", "arguments": '{"a": 1}'},
    }
