"""Request/response adapters for the OpenAI-compatible chat completions API."""

import json
from typing import Any

from workspace_assistant.llm_client.types import LLMInvalidResponse, LLMResponse, ToolCall


def build_chat_completions_request(
    messages: list[dict[str, Any]],
    model: str,
    tools: list[dict[str, Any]] | None = None,
    tool_choice: str | dict[str, Any] | None = None,
    max_tokens: int | None = None,
    temperature: float | None = None,
    response_format: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a /chat/completions request payload.

    Assistant messages carrying tool calls get an ``index`` on every call,
    which some backends require when the history is replayed.

    Args:
        messages: Chat history (system, user, assistant, tool).
        model: Model identifier.
        tools: Tool definitions in OpenAI function format.
        tool_choice: "auto", "none" or a specific tool. Defaults to "auto" when tools are given.
        max_tokens: Completion budget.
        temperature: Sampling temperature.
        response_format: Structured output constraint (json_schema).

    Returns:
        Request payload dictionary.
    """
    normalized_messages: list[dict[str, Any]] = []
    for msg in messages:
        msg_copy = dict(msg)
        if msg_copy.get("role") == "assistant" and isinstance(msg_copy.get("tool_calls"), list):
            msg_copy["tool_calls"] = [
                {**tc, "index": tc.get("index", idx)}
                for idx, tc in enumerate(msg_copy["tool_calls"])
                if isinstance(tc, dict)
            ]
        normalized_messages.append(msg_copy)

    payload: dict[str, Any] = {"model": model, "messages": normalized_messages}

    if tools:
        payload["tools"] = tools
        payload["tool_choice"] = tool_choice or "auto"
    if max_tokens is not None:
        payload["max_tokens"] = max_tokens
    if temperature is not None:
        payload["temperature"] = temperature
    if response_format is not None:
        payload["response_format"] = response_format

    return payload


def adapt_chat_completions_response(response_data: dict[str, Any]) -> LLMResponse:
    """Normalize a /chat/completions response body.

    Args:
        response_data: Parsed JSON body.

    Returns:
        LLMResponse with content, tool calls and usage.

    Raises:
        LLMInvalidResponse: If the body has no choices or a malformed message.
    """
    try:
        choices = response_data.get("choices", [])
        if not choices:
            raise LLMInvalidResponse("Response has no choices")

        message = choices[0].get("message") or {}
        content = message.get("content") or ""

        tool_calls: list[ToolCall] = []
        for tc in message.get("tool_calls") or []:
            if not isinstance(tc, dict):
                continue
            function = tc.get("function") or {}
            arguments = function.get("arguments", "{}")
            tool_calls.append(
                ToolCall(
                    id=tc.get("id", ""),
                    name=function.get("name", ""),
                    arguments=arguments if isinstance(arguments, str) else json.dumps(arguments),
                )
            )

        usage = response_data.get("usage") or {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        }

        return LLMResponse(
            role=message.get("role", "assistant"),
            content=content,
            tool_calls=tool_calls,
            usage=usage,
            raw=response_data,
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise LLMInvalidResponse(f"Invalid response format: {e}") from e


def tool_call_message(tool_calls: list[ToolCall], content: str = "") -> dict[str, Any]:
    """Build the assistant history message that records proposed tool calls.

    Args:
        tool_calls: Calls proposed by the model.
        content: Optional text that accompanied the calls.

    Returns:
        Assistant message in chat completions format.
    """
    return {
        "role": "assistant",
        "content": content,
        "tool_calls": [
            {
                "id": call["id"],
                "type": "function",
                "function": {"name": call["name"], "arguments": call["arguments"]},
            }
            for call in tool_calls
        ],
    }


def tool_result_message(tool_call_id: str, content: str) -> dict[str, Any]:
    """Build the tool-role message carrying one tool result back to the model."""
    return {"role": "tool", "tool_call_id": tool_call_id, "content": content}
