"""Tool definitions, registry, dispatch and execution layer."""

from workspace_assistant.tools.catalog import (
    INTERNAL_TOOLS,
    WorkspaceBackend,
    register_internal_tools,
)
from workspace_assistant.tools.dispatch import InvocationBackend, ToolExecutionError, dispatch
from workspace_assistant.tools.executor import (
    InvocationContext,
    ToolExecutionLayer,
    prepare_arguments,
)
from workspace_assistant.tools.registry import ToolRegistry, to_openai_function
from workspace_assistant.tools.types import (
    ContextRequirements,
    ExternalApp,
    HandlerKind,
    ToolDefinition,
    ToolParameter,
    ToolResult,
)

__all__ = [
    "ToolRegistry",
    "ToolExecutionLayer",
    "ToolExecutionError",
    "InvocationBackend",
    "InvocationContext",
    "dispatch",
    "prepare_arguments",
    "to_openai_function",
    "ContextRequirements",
    "ExternalApp",
    "HandlerKind",
    "ToolDefinition",
    "ToolParameter",
    "ToolResult",
    "INTERNAL_TOOLS",
    "register_internal_tools",
    "WorkspaceBackend",
]
