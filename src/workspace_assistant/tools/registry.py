"""Tool registry: definitions paired with the backend that runs them.

A registry is built per turn from the static internal catalog and the
external tools the gateway returns for the workspace's connected apps.
"""

from typing import Any, Iterable

from workspace_assistant.telemetry import get_logger
from workspace_assistant.tools.dispatch import InvocationBackend
from workspace_assistant.tools.types import ExternalApp, ToolDefinition

log = get_logger(__name__)


class ToolRegistry:
    """Registry of available tools and their invocation backends."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._tools: dict[str, tuple[ToolDefinition, InvocationBackend]] = {}

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def register(self, tool_def: ToolDefinition, backend: InvocationBackend) -> None:
        """Register a tool.

        Args:
            tool_def: Tool definition.
            backend: Backend providing the query/mutate/run_action primitives.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if tool_def.name in self._tools:
            raise ValueError(f"Tool '{tool_def.name}' is already registered")

        self._tools[tool_def.name] = (tool_def, backend)
        log.debug(
            "tool_registered",
            tool_name=tool_def.name,
            handler_kind=tool_def.handler_kind.value,
            external_app=tool_def.external_app.value if tool_def.external_app else None,
        )

    def register_many(self, tool_defs: Iterable[ToolDefinition], backend: InvocationBackend) -> int:
        """Register several tools sharing one backend.

        Duplicates are skipped with a warning rather than aborting the batch.

        Returns:
            Number of tools registered.
        """
        count = 0
        for tool_def in tool_defs:
            try:
                self.register(tool_def, backend)
            except ValueError as e:
                log.warning("tool_registration_skipped", tool_name=tool_def.name, reason=str(e))
                continue
            count += 1
        return count

    def get_tool(self, name: str) -> tuple[ToolDefinition, InvocationBackend] | None:
        """Retrieve a tool definition and backend by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[ToolDefinition]:
        """List all tool definitions in registration order."""
        return [tool_def for tool_def, _ in self._tools.values()]

    def list_internal_tools(self) -> list[ToolDefinition]:
        """List tools that do not act on an external app."""
        return [tool_def for tool_def in self.list_tools() if not tool_def.is_external]

    def list_external_tools(self, apps: Iterable[ExternalApp] | None = None) -> list[ToolDefinition]:
        """List external tools, optionally restricted to some apps."""
        wanted = set(apps) if apps is not None else None
        return [
            tool_def
            for tool_def in self.list_tools()
            if tool_def.external_app is not None
            and (wanted is None or tool_def.external_app in wanted)
        ]

    def list_tool_names(self) -> list[str]:
        """List names of all registered tools."""
        return list(self._tools.keys())

    def get_tool_definitions_for_llm(
        self, names: Iterable[str] | None = None
    ) -> list[dict[str, Any]]:
        """Get tool definitions in OpenAI function calling format.

        Args:
            names: Tools to include, in order. None includes every tool.

        Returns:
            Function definitions. Injected context parameters are omitted so
            the model cannot supply them.
        """
        selected = self.list_tools() if names is None else [
            self._tools[name][0] for name in names if name in self._tools
        ]
        return [to_openai_function(tool_def) for tool_def in selected]


def to_openai_function(tool_def: ToolDefinition) -> dict[str, Any]:
    """Convert one tool definition to the OpenAI function format."""
    hidden = tool_def.context.injected_params()
    properties: dict[str, Any] = {}
    required: list[str] = []
    for param in tool_def.parameters:
        if param.name in hidden:
            continue
        if param.json_schema:
            properties[param.name] = param.json_schema
        else:
            properties[param.name] = {"type": param.type, "description": param.description}
        if param.required:
            required.append(param.name)

    return {
        "type": "function",
        "function": {
            "name": tool_def.name,
            "description": tool_def.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
                "additionalProperties": False,
            },
        },
    }
