"""Type definitions for the LLM client.

- ModelRole: which configured model serves a call
- ToolCall / LLMResponse: normalized response shapes
- Error hierarchy raised by LocalLLMClient.respond()
"""

from enum import Enum
from typing import Any

from typing_extensions import TypedDict


class ModelRole(str, Enum):
    """Model roles, mapped to entries in config/models.yaml."""

    ROUTER = "router"
    STANDARD = "standard"

    @classmethod
    def from_str(cls, value: str) -> "ModelRole | None":
        """Convert a case-insensitive string to a ModelRole, or None."""
        value_lower = value.lower()
        for role in cls:
            if role.value == value_lower:
                return role
        return None


class ToolCall(TypedDict):
    """Function call proposed by the model.

    Attributes:
        id: Call identifier, echoed back in the tool result message.
        name: Name of the tool to call.
        arguments: JSON string containing tool arguments.
    """

    id: str
    name: str
    arguments: str


class LLMResponse(TypedDict):
    """Normalized response from one chat completion.

    Attributes:
        role: Response role (typically "assistant").
        content: Text content (may be empty when only tool calls are returned).
        tool_calls: Tool calls requested by the model.
        usage: Token usage (prompt_tokens, completion_tokens, total_tokens).
        raw: Raw response body for debugging.
    """

    role: str
    content: str
    tool_calls: list[ToolCall]
    usage: dict[str, Any]
    raw: dict[str, Any]


class LLMClientError(Exception):
    """Base exception for all LLM client errors."""

    pass


class LLMTimeout(LLMClientError):
    """Raised when an LLM request times out."""

    pass


class LLMConnectionError(LLMClientError):
    """Raised when the LLM server cannot be reached."""

    pass


class LLMRateLimit(LLMClientError):
    """Raised when the LLM server keeps answering 429."""

    pass


class LLMServerError(LLMClientError):
    """Raised when the LLM server returns a 5xx error."""

    pass


class LLMInvalidResponse(LLMClientError):
    """Raised when the response body has an unexpected shape."""

    pass
