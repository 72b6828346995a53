"""Pending confirmations, keyed by conversation.

When the risk gate holds back a batch of tool calls, the exact calls (with
their final, context-injected arguments) are stored here together with
what is needed to continue the turn. The next message in the conversation
is then read as a reply to the confirmation prompt instead of a new
instruction. Records are consumed on confirm or cancel and expire after a
TTL.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable

from workspace_assistant.analysis.classifier import Intent
from workspace_assistant.analysis.confirmation import RiskAssessment
from workspace_assistant.analysis.planner import Plan, StepResult
from workspace_assistant.config.settings import get_settings
from workspace_assistant.telemetry import PENDING_CONFIRMATION_EXPIRED, get_logger
from workspace_assistant.tools.executor import InvocationContext
from workspace_assistant.tools.types import ExternalApp

log = get_logger(__name__)


@dataclass(frozen=True)
class PendingCall:
    """A tool call held back for confirmation."""

    tool_call_id: str
    tool_name: str
    arguments: dict[str, Any]


@dataclass
class PendingConfirmation:
    """Everything needed to finish a turn once the user confirms.

    Attributes:
        conversation_id: Conversation awaiting the reply.
        instruction: The original user instruction.
        context: Identity the calls were prepared with.
        calls: Calls to run verbatim on confirm, in order.
        assessment: Risk verdict shown to the user.
        intent: Intent of the original instruction.
        usable_apps: Connected apps the turn was allowed to use.
        connected_apps: All connected apps at the time.
        tool_names: Tools exposed to the model when the calls were proposed.
        selected_tools: Tools selected for the whole turn.
        messages: Function-calling transcript up to the held-back calls.
        iteration: Tool-loop iteration the calls were proposed in.
        plan: Plan being executed, if any.
        plan_completed: Results of completed plan steps.
        plan_results: Step outcomes recorded before the pause, failures
            included.
        suspended_step: Plan step the run paused at.
        system_prompt: System prompt the transcript was produced under.
        created_at: Clock time the record was stored.
    """

    conversation_id: str
    instruction: str
    context: InvocationContext
    calls: list[PendingCall]
    assessment: RiskAssessment
    intent: Intent
    usable_apps: list[ExternalApp] = field(default_factory=list)
    connected_apps: list[ExternalApp] = field(default_factory=list)
    tool_names: list[str] = field(default_factory=list)
    selected_tools: list[str] = field(default_factory=list)
    messages: list[dict[str, Any]] = field(default_factory=list)
    iteration: int = 0
    plan: Plan | None = None
    plan_completed: dict[int, Any] = field(default_factory=dict)
    plan_results: list[StepResult] = field(default_factory=list)
    suspended_step: int | None = None
    system_prompt: str = ""
    created_at: float = 0.0


class PendingConfirmationStore:
    """In-process store of pending confirmations with expiry."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the store.

        Args:
            ttl_seconds: Lifetime of a record (defaults to
                settings.pending_confirmation_ttl_seconds).
            clock: Time source, injectable for tests.
        """
        self.ttl_seconds = ttl_seconds or get_settings().pending_confirmation_ttl_seconds
        self._clock = clock
        self._pending: dict[str, PendingConfirmation] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def put(self, pending: PendingConfirmation) -> None:
        """Store a record, replacing any earlier one for the conversation."""
        pending.created_at = self._clock()
        self._pending[pending.conversation_id] = pending

    def get(self, conversation_id: str) -> PendingConfirmation | None:
        """Return the live record for a conversation, dropping it if expired."""
        pending = self._pending.get(conversation_id)
        if pending is None:
            return None
        if self._clock() - pending.created_at > self.ttl_seconds:
            del self._pending[conversation_id]
            log.info(PENDING_CONFIRMATION_EXPIRED, conversation_id=conversation_id)
            return None
        return pending

    def pop(self, conversation_id: str) -> PendingConfirmation | None:
        """Remove and return the live record for a conversation."""
        pending = self.get(conversation_id)
        if pending is not None:
            del self._pending[conversation_id]
        return pending

    def clear_expired(self) -> int:
        """Drop every expired record and return how many were dropped."""
        now = self._clock()
        expired = [
            cid for cid, p in self._pending.items() if now - p.created_at > self.ttl_seconds
        ]
        for cid in expired:
            del self._pending[cid]
            log.info(PENDING_CONFIRMATION_EXPIRED, conversation_id=cid)
        return len(expired)
