"""Core types for the orchestrator.

- SendMessageRequest / SendMessageResponse: the public turn contract
- TurnState: mutable state container passed through one turn
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from workspace_assistant.telemetry import TraceContext
from workspace_assistant.tools.executor import InvocationContext
from workspace_assistant.tools.types import ExternalApp, ToolResult

if TYPE_CHECKING:
    from workspace_assistant.analysis.classifier import Intent
    from workspace_assistant.analysis.planner import Plan
    from workspace_assistant.analysis.selector import ToolSelection
    from workspace_assistant.tools.registry import ToolRegistry


class SendMessageRequest(BaseModel):
    """One user message for a conversation.

    workspace_id and user_id may be omitted when the conversation directory
    can resolve them.
    """

    conversation_id: str = Field(..., description="Conversation the message belongs to")
    message: str = Field(..., description="User message text")
    workspace_id: str | None = Field(None, description="Workspace of the conversation")
    user_id: str | None = Field(None, description="Acting user")


class SendMessageResponse(BaseModel):
    """Result of one turn."""

    success: bool = Field(..., description="Whether the turn produced a usable reply")
    content: str | None = Field(None, description="Reply text")
    error: str | None = Field(None, description="Plain-language error when success is False")
    metadata: dict[str, Any] | None = Field(None, description="Versioned response metadata")


@dataclass
class TurnState:
    """Mutable state container for one turn.

    Attributes:
        conversation_id: Conversation being served.
        message: Instruction the turn works on (the original instruction when
            resuming after a confirmation).
        context: Workspace/user identity injected into tool calls.
        trace_ctx: Trace context for telemetry.
        intent: Classified intent.
        connected_apps: Apps with an active gateway connection.
        usable_apps: Requested apps that are connected.
        registry: Tools available this turn.
        selection: Tools exposed to the model.
        plan: Plan, when the planner ran.
        tool_results: Results of every executed call, in order.
        external_used: Names of external tools actually executed.
        fallback_reasons: One entry per stage that degraded to its fallback.
        system_prompt: System prompt for the function-calling model.
        confirmation: Confirmation status for the response metadata.
    """

    conversation_id: str
    message: str
    context: InvocationContext
    trace_ctx: TraceContext
    intent: "Intent | None" = None
    connected_apps: list[ExternalApp] = field(default_factory=list)
    usable_apps: list[ExternalApp] = field(default_factory=list)
    registry: "ToolRegistry | None" = None
    selection: "ToolSelection | None" = None
    plan: "Plan | None" = None
    tool_results: list[ToolResult] = field(default_factory=list)
    external_used: list[str] = field(default_factory=list)
    system_prompt: str = ""
    fallback_reasons: list[str] = field(default_factory=list)
    confirmation: dict[str, Any] | None = None

    def record_fallback(self, stage: str, reason: str | None) -> None:
        """Note that a stage used its deterministic fallback."""
        self.fallback_reasons.append(f"{stage}:{reason or 'unknown'}")

    @property
    def exposed_tool_names(self) -> list[str]:
        """Names of the tools the model may call this turn."""
        return self.selection.tool_names if self.selection else []
