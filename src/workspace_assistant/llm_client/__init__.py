"""LLM client for OpenAI-compatible chat completion servers."""

from typing import TYPE_CHECKING

from workspace_assistant.llm_client.models import ModelConfig, ModelDefinition
from workspace_assistant.llm_client.types import (
    LLMClientError,
    LLMConnectionError,
    LLMInvalidResponse,
    LLMRateLimit,
    LLMResponse,
    LLMServerError,
    LLMTimeout,
    ModelRole,
    ToolCall,
)

if TYPE_CHECKING:
    from workspace_assistant.llm_client.client import LocalLLMClient
else:
    # Lazy: the client imports config, and config imports llm_client.models
    def __getattr__(name: str):
        if name == "LocalLLMClient":
            from workspace_assistant.llm_client.client import LocalLLMClient

            return LocalLLMClient
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "LocalLLMClient",
    "ModelConfig",
    "ModelDefinition",
    "LLMClientError",
    "LLMConnectionError",
    "LLMInvalidResponse",
    "LLMResponse",
    "LLMRateLimit",
    "LLMServerError",
    "LLMTimeout",
    "ModelRole",
    "ToolCall",
]
