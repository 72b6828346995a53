"""Type definitions for tools.

Defines the pydantic models describing a tool (name, parameters, handler
kind, injected context, external app tag) and the result of running one.
"""

import re
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

TOOL_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
MAX_TOOL_NAME_LENGTH = 64
MAX_TOOL_DESCRIPTION_LENGTH = 1000

# Parameter names filled by the orchestrator, never by the model
WORKSPACE_ID_PARAM = "workspace_id"
USER_ID_PARAM = "user_id"


class ExternalApp(str, Enum):
    """Third-party applications reachable through the app gateway."""

    GMAIL = "GMAIL"
    SLACK = "SLACK"
    GITHUB = "GITHUB"
    NOTION = "NOTION"
    CLICKUP = "CLICKUP"
    LINEAR = "LINEAR"

    @classmethod
    def from_str(cls, value: str) -> "ExternalApp | None":
        """Convert a case-insensitive app or toolkit name, or return None."""
        value_upper = value.strip().upper()
        for app in cls:
            if app.value == value_upper:
                return app
        return None


class HandlerKind(str, Enum):
    """How a tool is invoked.

    READ runs a side-effect-free query, WRITE runs a transactional mutation,
    ASYNC_ACTION runs a side-effecting action (including every external app
    call). The set is closed; tools.dispatch handles exactly these three.
    """

    READ = "read"
    WRITE = "write"
    ASYNC_ACTION = "async_action"


class ContextRequirements(BaseModel):
    """Identity parameters the orchestrator injects into a tool call."""

    workspace_id: bool = Field(False, description="Inject the workspace id")
    user_id: bool = Field(False, description="Inject the acting user id")

    def injected_params(self) -> set[str]:
        """Names of the parameters that are injected (hidden from the model)."""
        params = set()
        if self.workspace_id:
            params.add(WORKSPACE_ID_PARAM)
        if self.user_id:
            params.add(USER_ID_PARAM)
        return params


class ToolParameter(BaseModel):
    """Parameter definition for a tool."""

    name: str = Field(..., description="Parameter name")
    type: Literal["string", "number", "boolean", "object", "array"] = Field(
        ..., description="Parameter type"
    )
    description: str = Field("", description="Parameter description for the model")
    required: bool = Field(True, description="Whether parameter is required")
    default: Any | None = Field(None, description="Default value if not required")
    # Full JSON Schema for complex types (array items, object properties, enums)
    json_schema: dict[str, Any] | None = Field(
        None, description="Full JSON Schema for complex nested types"
    )


class ToolDefinition(BaseModel):
    """A named, schema-described action the assistant may invoke.

    Names are unique within a registry and must be accepted by OpenAI-style
    function calling (at most 64 characters of ``[A-Za-z0-9_-]``).
    """

    name: str = Field(..., description="Tool name exposed to the model")
    description: str = Field(
        ..., max_length=MAX_TOOL_DESCRIPTION_LENGTH, description="Description for the model"
    )
    parameters: list[ToolParameter] = Field(default_factory=list, description="Tool parameters")
    handler_kind: HandlerKind = Field(..., description="Invocation primitive")
    handler: str | None = Field(
        None, description="Backend handler reference (defaults to the tool name)"
    )
    context: ContextRequirements = Field(
        default_factory=ContextRequirements, description="Injected identity parameters"
    )
    external_app: ExternalApp | None = Field(
        None, description="External app this tool acts on (None for internal tools)"
    )
    timeout_seconds: int = Field(30, ge=1, description="Execution timeout in seconds")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Enforce function-calling name rules."""
        if len(v) > MAX_TOOL_NAME_LENGTH:
            raise ValueError(f"tool name exceeds {MAX_TOOL_NAME_LENGTH} characters: {v!r}")
        if not TOOL_NAME_PATTERN.match(v):
            raise ValueError(f"tool name must match {TOOL_NAME_PATTERN.pattern}: {v!r}")
        return v

    @property
    def is_external(self) -> bool:
        """Whether the tool acts on an external app."""
        return self.external_app is not None

    @property
    def handler_ref(self) -> str:
        """Reference passed to the invocation backend."""
        return self.handler or self.name


class ToolResult(BaseModel):
    """Result from one tool invocation."""

    tool_name: str = Field(..., description="Name of the executed tool")
    success: bool = Field(..., description="Whether tool execution succeeded")
    output: Any = Field(None, description="Tool-specific output")
    error: str | None = Field(None, description="Error message if failed")
    latency_ms: float = Field(..., ge=0, description="Execution latency in milliseconds")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extra context")
