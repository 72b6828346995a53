"""Types for the external app gateway and remote tool conversion.

The gateway is a remote service that holds the workspace's connected
accounts for third-party apps, lists executable tools per app and runs them
by name. This module defines the protocol the orchestrator depends on and
converts the gateway's tool schemas into ToolDefinitions.
"""

import json
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from workspace_assistant.telemetry import GATEWAY_TOOL_REJECTED, get_logger
from workspace_assistant.tools.types import (
    MAX_TOOL_DESCRIPTION_LENGTH,
    MAX_TOOL_NAME_LENGTH,
    TOOL_NAME_PATTERN,
    ExternalApp,
    HandlerKind,
    ToolDefinition,
    ToolParameter,
)

log = get_logger(__name__)

ACTIVE_STATUS = "ACTIVE"


class GatewayError(Exception):
    """Base exception for gateway errors."""

    pass


class GatewayConnectionError(GatewayError):
    """Raised when the gateway cannot be reached."""

    pass


class GatewayToolError(GatewayError):
    """Raised when the gateway reports a failed tool execution."""

    pass


def entity_id_for_workspace(workspace_id: str) -> str:
    """Gateway entity that owns a workspace's connected accounts."""
    return f"workspace_{workspace_id}"


class Connection(BaseModel):
    """A connected account for one external app."""

    app: ExternalApp = Field(..., description="Connected app")
    status: str = Field(ACTIVE_STATUS, description="Connection status reported by the gateway")
    connection_id: str | None = Field(None, description="Gateway connection id")

    @property
    def is_active(self) -> bool:
        return self.status.upper() == ACTIVE_STATUS


class ExternalGateway(Protocol):
    """Remote service holding connections and executing external tools."""

    async def list_connections(self, entity_id: str) -> list[Connection]:
        """List the connected accounts of an entity."""
        ...

    async def list_tools(self, entity_id: str, apps: list[ExternalApp]) -> list[dict[str, Any]]:
        """List raw tool schemas for some apps."""
        ...

    async def execute_tool(
        self, entity_id: str, tool_name: str, arguments: dict[str, Any]
    ) -> Any:
        """Execute a tool by name and return its output.

        Raises:
            GatewayError: If the call cannot be made or the tool fails.
        """
        ...


_TYPE_MAPPING = {
    "string": "string",
    "number": "number",
    "integer": "number",
    "boolean": "boolean",
    "object": "object",
    "array": "array",
}


def _parameters_from_schema(schema: dict[str, Any]) -> list[ToolParameter]:
    properties = schema.get("properties") or {}
    required_fields = schema.get("required") or []

    parameters = []
    for param_name, param_schema in properties.items():
        param_schema = param_schema if isinstance(param_schema, dict) else {}
        param_type = param_schema.get("type", "string")
        if isinstance(param_type, list):
            param_type = next((t for t in param_type if t != "null"), "string")

        # Complex types keep their full schema (array items, nested properties)
        json_schema: dict[str, Any] | None = None
        if param_type in ("array", "object") or "enum" in param_schema:
            json_schema = param_schema

        parameters.append(
            ToolParameter(
                name=param_name,
                type=_TYPE_MAPPING.get(param_type, "string"),
                description=str(param_schema.get("description", "")),
                required=param_name in required_fields,
                default=param_schema.get("default"),
                json_schema=json_schema,
            )
        )
    return parameters


def remote_tool_to_definition(
    remote_tool: dict[str, Any], app: ExternalApp | None = None
) -> ToolDefinition | None:
    """Convert a gateway tool schema to a ToolDefinition.

    Args:
        remote_tool: Tool schema from list_tools(). Either OpenAI format
            ``{"type": "function", "function": {"name", "description",
            "parameters"}, "toolkit": "slack"}`` or flat
            ``{"name", "description", "input_schema", "toolkit"}``.
        app: App to tag the tool with when the schema carries no toolkit.

    Returns:
        The definition, or None when the tool violates function-calling
        constraints (name over 64 characters or outside ``[A-Za-z0-9_-]``,
        parameters that are not JSON-serializable). Descriptions longer than
        1000 characters are truncated.
    """
    function = remote_tool.get("function") or {}
    name = str(function.get("name") or remote_tool.get("name") or "")
    description = str(function.get("description") or remote_tool.get("description") or "")
    schema = (
        function.get("parameters")
        or remote_tool.get("input_schema")
        or remote_tool.get("inputSchema")
        or {}
    )
    toolkit = remote_tool.get("toolkit") or remote_tool.get("app")
    tagged_app = ExternalApp.from_str(str(toolkit)) if toolkit else app

    reason = None
    if not name:
        reason = "missing name"
    elif len(name) > MAX_TOOL_NAME_LENGTH:
        reason = f"name longer than {MAX_TOOL_NAME_LENGTH} characters"
    elif not TOOL_NAME_PATTERN.match(name):
        reason = "invalid characters in name"
    elif tagged_app is None:
        reason = f"unknown toolkit {toolkit!r}"
    else:
        try:
            json.dumps(schema)
        except (TypeError, ValueError):
            reason = "parameters are not JSON-serializable"

    if reason is not None:
        log.warning(GATEWAY_TOOL_REJECTED, tool_name=name[:100], reason=reason)
        return None

    try:
        return ToolDefinition(
            name=name,
            description=description[:MAX_TOOL_DESCRIPTION_LENGTH] or f"{tagged_app.value} tool",
            parameters=_parameters_from_schema(schema if isinstance(schema, dict) else {}),
            handler_kind=HandlerKind.ASYNC_ACTION,
            external_app=tagged_app,
            timeout_seconds=60,
        )
    except ValidationError as e:
        log.warning(GATEWAY_TOOL_REJECTED, tool_name=name, reason=str(e)[:200])
        return None
