"""Structured model call with a deterministic fallback.

Every model-driven decision in the assistant (classification, tool
selection, risk assessment, reply parsing, planning) has the same shape:
one prompt, one JSON answer validated against a pydantic schema, and a
deterministic fallback when anything goes wrong. StructuredCall is that
shape, parameterized by schema and fallback.

Failure modes absorbed by the fallback:
- LLM client errors (timeouts, connection, rate limit, 5xx, bad body)
- missing model configuration
- the per-call time bound elapsing
- content that is not valid JSON for the schema

Cancellation of the calling task is never absorbed.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from workspace_assistant.config.loader import ConfigLoadError
from workspace_assistant.config.settings import get_settings
from workspace_assistant.llm_client.types import LLMClientError, ModelRole
from workspace_assistant.telemetry import (
    STRUCTURED_CALL_COMPLETED,
    STRUCTURED_CALL_FALLBACK,
    TraceContext,
    get_logger,
)

if TYPE_CHECKING:
    from workspace_assistant.llm_client.client import LocalLLMClient

log = get_logger(__name__)

S = TypeVar("S", bound=BaseModel)


@dataclass(frozen=True)
class StructuredOutcome(Generic[S]):
    """Result of a structured call.

    Attributes:
        value: Parsed model output, or the fallback value.
        used_fallback: True when value came from the fallback.
        fallback_reason: Short machine-readable reason when used_fallback is True.
    """

    value: S
    used_fallback: bool = False
    fallback_reason: str | None = None


def response_format_for(name: str, schema: type[BaseModel]) -> dict[str, Any]:
    """Build an OpenAI json_schema response_format for a pydantic model."""
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "strict": False,
            "schema": schema.model_json_schema(),
        },
    }


def extract_json_text(content: str) -> str:
    """Strip markdown fences and surrounding prose from a JSON answer.

    Args:
        content: Raw model content.

    Returns:
        The outermost JSON object text, or the stripped content when no
        object delimiters are found.
    """
    text = content.strip()
    if text.startswith("```"):
        lines = text.split("\n")
        text = "\n".join(line for line in lines[1:] if not line.strip().startswith("```"))
        text = text.strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text


class StructuredCall(Generic[S]):
    """One schema-constrained model call with a deterministic fallback.

    Example:
        >>> call = StructuredCall("query_classification", ClassificationOutput, llm_client)
        >>> outcome = await call.run(
        ...     system_prompt=SYSTEM,
        ...     user_prompt="What's on my calendar today?",
        ...     fallback=lambda: ClassificationOutput(...),
        ...     trace_ctx=trace_ctx,
        ... )
        >>> outcome.used_fallback
        False
    """

    def __init__(
        self,
        name: str,
        schema: type[S],
        llm_client: "LocalLLMClient",
        role: ModelRole = ModelRole.ROUTER,
        timeout_s: float | None = None,
        max_tokens: int | None = None,
        temperature: float | None = 0.1,
    ) -> None:
        """Initialize the call.

        Args:
            name: Schema name (also used as the log label).
            schema: Pydantic model the answer must validate against.
            llm_client: Client used for the call.
            role: Model role to call.
            timeout_s: Upper bound for the whole call. Defaults to
                settings.structured_call_timeout_seconds.
            max_tokens: Completion budget.
            temperature: Sampling temperature.
        """
        self.name = name
        self.schema = schema
        self.llm_client = llm_client
        self.role = role
        self.timeout_s = timeout_s or get_settings().structured_call_timeout_seconds
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def run(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        fallback: Callable[[], S],
        trace_ctx: TraceContext,
    ) -> StructuredOutcome[S]:
        """Run the call, falling back deterministically on any failure.

        Args:
            system_prompt: Instructions, including the decision policy.
            user_prompt: The input to decide on.
            fallback: Builds the fallback value.
            trace_ctx: Trace context for telemetry.

        Returns:
            StructuredOutcome with either the parsed answer or the fallback.
        """
        try:
            response = await asyncio.wait_for(
                self.llm_client.respond(
                    role=self.role,
                    messages=[{"role": "user", "content": user_prompt}],
                    system_prompt=system_prompt,
                    response_format=response_format_for(self.name, self.schema),
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                    max_retries=0,
                    trace_ctx=trace_ctx,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError:
            return self._fallback(fallback, "timeout", trace_ctx)
        except LLMClientError as e:
            return self._fallback(fallback, f"model_error:{type(e).__name__}", trace_ctx)
        except ConfigLoadError as e:
            return self._fallback(fallback, f"config_error:{type(e).__name__}", trace_ctx)

        content = response.get("content") or ""
        try:
            value = self.schema.model_validate_json(extract_json_text(content))
        except (ValidationError, json.JSONDecodeError, ValueError) as e:
            log.warning(
                "structured_call_parse_error",
                call=self.name,
                error=str(e)[:300],
                response_preview=content[:200],
                trace_id=trace_ctx.trace_id,
            )
            return self._fallback(fallback, "invalid_output", trace_ctx)

        log.debug(STRUCTURED_CALL_COMPLETED, call=self.name, trace_id=trace_ctx.trace_id)
        return StructuredOutcome(value=value)

    def _fallback(
        self, fallback: Callable[[], S], reason: str, trace_ctx: TraceContext
    ) -> StructuredOutcome[S]:
        log.warning(
            STRUCTURED_CALL_FALLBACK,
            call=self.name,
            reason=reason,
            trace_id=trace_ctx.trace_id,
        )
        return StructuredOutcome(value=fallback(), used_fallback=True, fallback_reason=reason)
