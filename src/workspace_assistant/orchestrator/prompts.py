"""System prompt and step instructions for the function-calling model."""

import json
from typing import Any

from workspace_assistant.orchestrator.context import WorkspaceContext
from workspace_assistant.tools.types import ExternalApp

# ============================================================================
# Base assistant prompt
# ============================================================================

BASE_SYSTEM_PROMPT = """You are a personal work assistant for team workspaces.

Your role:
- Help users manage their calendar, meetings, tasks, and workspace activities
- Provide summaries of channels and conversations
- Answer questions about workspace data
- Be concise, actionable, and friendly

Guidelines:
- Use available tools for real-time data when needed
- Format responses with clear headings and bullet points
- When showing dates/times, use readable formats
- If you don't have information, say so clearly
- Never invent data; only use tool outputs and user-provided context"""

_APP_HINTS: dict[ExternalApp, str] = {
    ExternalApp.GITHUB: "- GitHub (repos, issues, pull requests): use the GITHUB_* tools",
    ExternalApp.SLACK: "- Slack (channels, messages): use the SLACK_* tools",
    ExternalApp.GMAIL: "- Gmail (emails, inbox, drafts): use the GMAIL_* tools",
    ExternalApp.NOTION: "- Notion (pages, databases): use the NOTION_* tools",
    ExternalApp.CLICKUP: "- ClickUp (tasks, lists): use the CLICKUP_* tools",
    ExternalApp.LINEAR: "- Linear (issues, tickets): use the LINEAR_* tools",
}

NO_EXTERNAL_POLICY = (
    "External tool policy: do not use external integration tools for this request; "
    "respond using workspace/internal capabilities only."
)

NO_CONNECTION_POLICY = (
    "External tool policy: external actions are allowed but no connected apps are "
    "available. Explain the required connection step before continuing."
)


def _external_policy(connected_apps: list[ExternalApp], external_tools_allowed: bool) -> str:
    if not external_tools_allowed:
        return NO_EXTERNAL_POLICY
    if not connected_apps:
        return NO_CONNECTION_POLICY
    apps_list = ", ".join(app.value for app in connected_apps)
    hints = "\n".join(_APP_HINTS[app] for app in connected_apps if app in _APP_HINTS)
    return (
        f"IMPORTANT: The user has connected the following external apps: {apps_list}.\n\n"
        f"Use the matching tools when the user asks about them:\n{hints}\n\n"
        "Never say you can't access these apps; the connections are active."
    )


def build_system_prompt(
    workspace_context: WorkspaceContext | str | None = None,
    connected_apps: list[ExternalApp] | None = None,
    external_tools_allowed: bool = False,
) -> str:
    """Build the system prompt for the function-calling model.

    Args:
        workspace_context: Who the conversation belongs to, or free text.
        connected_apps: Apps with an active connection usable this turn.
        external_tools_allowed: Whether this turn may call external tools.

    Returns:
        Base prompt, external tool policy and workspace context, separated
        by blank lines.
    """
    sections = [BASE_SYSTEM_PROMPT, _external_policy(connected_apps or [], external_tools_allowed)]

    if isinstance(workspace_context, WorkspaceContext):
        parts = []
        if workspace_context.workspace_name:
            parts.append(f"workspace {workspace_context.workspace_name}")
        if workspace_context.user_name:
            parts.append(f"user {workspace_context.user_name}")
        if parts:
            sections.append(f"Workspace context: {', '.join(parts)}")
    elif workspace_context and workspace_context.strip():
        sections.append(f"Workspace context: {workspace_context.strip()}")

    return "\n\n".join(sections)


# ============================================================================
# Plan step instructions
# ============================================================================

STEP_INSTRUCTION_TEMPLATE = """Original request: "{request}"

You are executing step {step_number} of {step_count}: {action}
{previous}
Complete only this step. Use tools if needed, then reply with the step's result."""


def format_step_instruction(
    request: str,
    step_number: int,
    step_count: int,
    action: str,
    previous_results: dict[int, Any],
) -> str:
    """Build the user message that drives one plan step."""
    if previous_results:
        rendered = json.dumps(
            {str(k): v for k, v in sorted(previous_results.items())}, default=str
        )[:4000]
        previous = f"\nResults from earlier steps (by step number): {rendered}\n"
    else:
        previous = ""
    return STEP_INSTRUCTION_TEMPLATE.format(
        request=request,
        step_number=step_number,
        step_count=step_count,
        action=action,
        previous=previous,
    )
