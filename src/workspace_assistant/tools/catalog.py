"""Static catalog of internal workspace tools.

These read the workspace's own data (calendar, tasks, channels, boards,
search index). They are executed by the workspace data backend; this module
only describes them.
"""

from typing import Protocol

from workspace_assistant.tools.dispatch import InvocationBackend
from workspace_assistant.tools.registry import ToolRegistry
from workspace_assistant.tools.types import (
    ContextRequirements,
    HandlerKind,
    ToolDefinition,
    ToolParameter,
)

_WORKSPACE_AND_USER = ContextRequirements(workspace_id=True, user_id=True)
_WORKSPACE_ONLY = ContextRequirements(workspace_id=True)

INTERNAL_TOOLS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="get_my_calendar_today",
        description=(
            "Get the user's calendar events for today. Returns all meetings and events "
            "scheduled for the current day."
        ),
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="get_my_calendar_tomorrow",
        description=(
            "Get the user's calendar events for tomorrow. Returns all meetings and events "
            "scheduled for the next day."
        ),
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="get_my_calendar_next_week",
        description=(
            "Get the user's calendar events for next week (7-14 days from now). Returns all "
            "meetings scheduled in the upcoming week."
        ),
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="get_my_tasks_today",
        description=(
            "Get tasks assigned to the user that are due today. Returns incomplete tasks with "
            "today's due date."
        ),
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="get_my_tasks_tomorrow",
        description=(
            "Get tasks assigned to the user that are due tomorrow. Returns incomplete tasks "
            "with tomorrow's due date."
        ),
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="get_my_all_tasks",
        description=(
            "Get all tasks assigned to the user. Can optionally include completed tasks. Use "
            "this for general task queries like 'what are my tasks' or 'show all my work'."
        ),
        parameters=[
            ToolParameter(
                name="include_completed",
                type="boolean",
                description="Whether to include completed tasks (default: false)",
                required=False,
                default=False,
            )
        ],
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="search_channels",
        description=(
            "Search for channels in the workspace by name. Returns matching channels with "
            "their IDs. Use this first when the user mentions a channel by name (e.g. "
            "'#general') to get the channel ID before calling other channel tools."
        ),
        parameters=[
            ToolParameter(
                name="query",
                type="string",
                description=(
                    "Channel name to search for (without # symbol). Leave empty to get all "
                    "channels."
                ),
                required=False,
            )
        ],
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_ONLY,
    ),
    ToolDefinition(
        name="get_channel_summary",
        description=(
            "Get a summary of recent messages in a specific channel. Requires a channel ID; "
            "if the user gives a channel name, call search_channels first."
        ),
        parameters=[
            ToolParameter(
                name="channel_id",
                type="string",
                description="Channel ID (from search_channels)",
            ),
            ToolParameter(
                name="limit",
                type="number",
                description="Max number of messages to analyze (default: 40)",
                required=False,
                default=40,
            ),
        ],
        handler_kind=HandlerKind.ASYNC_ACTION,
        context=_WORKSPACE_ONLY,
        timeout_seconds=60,
    ),
    ToolDefinition(
        name="get_workspace_overview",
        description=(
            "Get high-level overview statistics for the workspace. Returns counts of channels, "
            "members, tasks, and upcoming events."
        ),
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="get_my_cards",
        description=(
            "Get all cards (from Kanban boards) assigned to the user across all channels. "
            "Returns card details including board/list location."
        ),
        handler_kind=HandlerKind.READ,
        context=_WORKSPACE_AND_USER,
    ),
    ToolDefinition(
        name="semantic_search",
        description=(
            "Perform semantic search across all workspace content (messages, notes, tasks, "
            "cards). Use this for general questions that don't fit other tools."
        ),
        parameters=[
            ToolParameter(name="query", type="string", description="Search query"),
            ToolParameter(
                name="limit",
                type="number",
                description="Max results to return (default: 10)",
                required=False,
                default=10,
            ),
        ],
        handler_kind=HandlerKind.ASYNC_ACTION,
        context=_WORKSPACE_AND_USER,
        timeout_seconds=60,
    ),
)


class WorkspaceBackend(InvocationBackend, Protocol):
    """Workspace data backend: serves the internal catalog's handlers."""


def register_internal_tools(registry: ToolRegistry, backend: WorkspaceBackend) -> int:
    """Register the internal catalog against the workspace data backend.

    Args:
        registry: Registry to populate.
        backend: Workspace data backend executing the handlers.

    Returns:
        Number of tools registered.
    """
    return registry.register_many(INTERNAL_TOOLS, backend)
