"""HTTP client for OpenAI-compatible chat completion servers.

Provides role-based model lookup, retries with exponential backoff, response
normalization and telemetry for every model call the assistant makes.
"""

import asyncio
import time
from pathlib import Path
from typing import Any

import httpx

from workspace_assistant.config.model_loader import ModelConfigError, load_model_config
from workspace_assistant.config.settings import get_settings
from workspace_assistant.llm_client.adapters import (
    adapt_chat_completions_response,
    build_chat_completions_request,
)
from workspace_assistant.llm_client.models import ModelDefinition
from workspace_assistant.llm_client.types import (
    LLMClientError,
    LLMConnectionError,
    LLMInvalidResponse,
    LLMRateLimit,
    LLMResponse,
    LLMServerError,
    LLMTimeout,
    ModelRole,
)
from workspace_assistant.telemetry import (
    MODEL_CALL_COMPLETED,
    MODEL_CALL_ERROR,
    MODEL_CALL_STARTED,
    TraceContext,
    get_logger,
)

log = get_logger(__name__)

_FALLBACK_ROLE_TIMEOUTS: dict[ModelRole, int] = {
    ModelRole.ROUTER: 20,
    ModelRole.STANDARD: 60,
}


class LocalLLMClient:
    """Client for an OpenAI-compatible /chat/completions endpoint.

    Attributes:
        base_url: Default base URL (e.g., "http://localhost:8000/v1").
        api_key: Optional bearer token.
        timeout_seconds: Default timeout for requests.
        max_retries: Retries for timeouts, 429 and 5xx responses.
        model_configs: Role name to ModelDefinition.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        max_retries: int | None = None,
        model_config_path: Path | None = None,
        api_key: str | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL for the API. If None, uses settings.llm_base_url.
            timeout_seconds: Default timeout. If None, uses settings.llm_timeout_seconds.
            max_retries: Retry attempts. If None, uses settings.llm_max_retries.
            model_config_path: Path to models.yaml. If None, uses settings.model_config_path.
            api_key: Bearer token. If None, uses settings.llm_api_key.
        """
        settings = get_settings()
        self.base_url = base_url or settings.llm_base_url
        self.api_key = api_key or settings.llm_api_key
        self.timeout_seconds = timeout_seconds or settings.llm_timeout_seconds
        self.max_retries = settings.llm_max_retries if max_retries is None else max_retries

        try:
            self.model_configs: dict[str, ModelDefinition] = load_model_config(
                model_config_path
            ).models
        except ModelConfigError as e:
            log.warning("model_config_load_failed", error=str(e), using_defaults=True)
            self.model_configs = {}

        self._role_timeouts: dict[ModelRole, int] = {}
        for role in ModelRole:
            model_def = self.model_configs.get(role.value)
            if model_def:
                self._role_timeouts[role] = model_def.default_timeout
            else:
                self._role_timeouts[role] = _FALLBACK_ROLE_TIMEOUTS.get(role, self.timeout_seconds)

    def model_for(self, role: ModelRole) -> ModelDefinition:
        """Return the configured model for a role.

        Raises:
            ModelConfigError: If the role has no configured model.
        """
        model_def = self.model_configs.get(role.value)
        if not model_def:
            raise ModelConfigError(f"No configuration found for role: {role.value}")
        return model_def

    def _endpoint_for(self, model_def: ModelDefinition) -> str:
        base = (model_def.endpoint or self.base_url).rstrip("/")
        if base.endswith("/v1"):
            return f"{base}/chat/completions"
        return f"{base}/v1/chat/completions"

    async def respond(
        self,
        role: ModelRole,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | dict[str, Any] | None = None,
        response_format: dict[str, Any] | None = None,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        timeout_s: float | None = None,
        max_retries: int | None = None,
        trace_ctx: TraceContext | None = None,
    ) -> LLMResponse:
        """Make a single chat completion call for a model role.

        Args:
            role: Model role to use.
            messages: Chat history.
            tools: Tool definitions in OpenAI function format.
            tool_choice: Tool choice parameter.
            response_format: Structured output constraint.
            system_prompt: Optional system prompt prepended to messages.
            max_tokens: Completion budget (defaults to the model's).
            temperature: Sampling temperature (defaults to the model's).
            timeout_s: Read timeout override in seconds.
            max_retries: Retry override.
            trace_ctx: Trace context for telemetry correlation.

        Returns:
            Normalized LLMResponse.

        Raises:
            LLMTimeout: If every attempt timed out.
            LLMConnectionError: If the server is unreachable.
            LLMRateLimit: If the server kept rate limiting.
            LLMServerError: If the server kept failing with 5xx.
            LLMInvalidResponse: If the body could not be normalized.
            LLMClientError: For other HTTP or API errors.
            ModelConfigError: If the role has no configured model.
        """
        model_def = self.model_for(role)
        endpoint = self._endpoint_for(model_def)

        if tools and not model_def.supports_function_calling:
            log.warning(
                "tools_filtered_no_function_calling",
                model_id=model_def.id,
                role=role.value,
                tools_count=len(tools),
            )
            tools = None
            tool_choice = None
        if response_format and not model_def.supports_structured_output:
            response_format = None

        if timeout_s is None:
            timeout_s = float(self._role_timeouts.get(role, self.timeout_seconds))
        effective_max_retries = self.max_retries if max_retries is None else max_retries

        request_messages = list(messages)
        if system_prompt:
            request_messages.insert(0, {"role": "system", "content": system_prompt})

        payload = build_chat_completions_request(
            messages=request_messages,
            model=model_def.id,
            tools=tools,
            tool_choice=tool_choice,
            max_tokens=max_tokens if max_tokens is not None else model_def.max_tokens,
            temperature=temperature if temperature is not None else model_def.temperature,
            response_format=response_format,
        )
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None

        if trace_ctx is None:
            trace_ctx = TraceContext.new_trace()
        _, span_id = trace_ctx.new_span()
        start_time = time.time()
        log.info(
            MODEL_CALL_STARTED,
            role=role.value,
            model_id=model_def.id,
            endpoint=endpoint,
            tools_count=len(tools or []),
            structured=response_format is not None,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )

        timeout_config = httpx.Timeout(connect=10.0, read=timeout_s, write=10.0, pool=10.0)
        last_error: LLMClientError | None = None
        attempt = 0
        while attempt <= effective_max_retries:
            retryable = False
            try:
                async with httpx.AsyncClient(timeout=timeout_config) as client:
                    response = await client.post(endpoint, json=payload, headers=headers)
                    response.raise_for_status()
                    response_data = response.json()

                if isinstance(response_data, dict) and response_data.get("error"):
                    error_obj = response_data["error"]
                    error_msg = (
                        error_obj.get("message", str(error_obj))
                        if isinstance(error_obj, dict)
                        else str(error_obj)
                    )
                    raise LLMClientError(f"API returned error: {error_msg}")

                llm_response = adapt_chat_completions_response(response_data)

                log.info(
                    MODEL_CALL_COMPLETED,
                    role=role.value,
                    model_id=model_def.id,
                    latency_ms=int((time.time() - start_time) * 1000),
                    attempts=attempt + 1,
                    tool_calls=len(llm_response["tool_calls"]),
                    prompt_tokens=llm_response["usage"].get("prompt_tokens", 0),
                    completion_tokens=llm_response["usage"].get("completion_tokens", 0),
                    trace_id=trace_ctx.trace_id,
                    span_id=span_id,
                )
                return llm_response

            except httpx.TimeoutException:
                last_error = LLMTimeout(f"Request to {endpoint} timed out after {timeout_s}s")
                retryable = True

            except httpx.ConnectError as e:
                # Server is most likely down, retrying only adds latency
                last_error = LLMConnectionError(f"Failed to connect to {endpoint}: {e}")

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 429:
                    last_error = LLMRateLimit(f"Rate limit exceeded: {e}")
                    retryable = True
                elif status >= 500:
                    last_error = LLMServerError(f"Server error {status}: {e}")
                    retryable = True
                else:
                    last_error = LLMClientError(f"HTTP error {status}: {e}")

            except httpx.RequestError as e:
                last_error = LLMConnectionError(f"Request error: {e}")

            except LLMClientError as e:
                last_error = e

            except (ValueError, KeyError, TypeError) as e:
                last_error = LLMInvalidResponse(f"Invalid response format: {e}")

            if not retryable or attempt >= effective_max_retries:
                break
            wait_time = 2**attempt
            log.warning(
                "model_call_retry",
                attempt=attempt + 1,
                wait_time=wait_time,
                error_type=type(last_error).__name__,
                trace_id=trace_ctx.trace_id,
            )
            await asyncio.sleep(wait_time)
            attempt += 1

        log.error(
            MODEL_CALL_ERROR,
            role=role.value,
            model_id=model_def.id,
            endpoint=endpoint,
            error_type=type(last_error).__name__ if last_error else "UnknownError",
            error=str(last_error) if last_error else "Unknown error",
            latency_ms=int((time.time() - start_time) * 1000),
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        if last_error:
            raise last_error
        raise LLMClientError("Request failed with unknown error")
