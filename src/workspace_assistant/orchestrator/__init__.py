"""Turn orchestration: context, decisions, tool loop and confirmations."""

from workspace_assistant.orchestrator.context import (
    ConversationDirectory,
    InMemoryConversationDirectory,
    WorkspaceContext,
)
from workspace_assistant.orchestrator.errors import MissingContextError, OrchestratorError
from workspace_assistant.orchestrator.metadata import (
    METADATA_SCHEMA_VERSION,
    build_response_metadata,
)
from workspace_assistant.orchestrator.orchestrator import (
    MISSING_CONTEXT_MESSAGE,
    AssistantOrchestrator,
)
from workspace_assistant.orchestrator.pending import (
    PendingCall,
    PendingConfirmation,
    PendingConfirmationStore,
)
from workspace_assistant.orchestrator.types import (
    SendMessageRequest,
    SendMessageResponse,
    TurnState,
)

__all__ = [
    "AssistantOrchestrator",
    "MISSING_CONTEXT_MESSAGE",
    "SendMessageRequest",
    "SendMessageResponse",
    "TurnState",
    "ConversationDirectory",
    "InMemoryConversationDirectory",
    "WorkspaceContext",
    "OrchestratorError",
    "MissingContextError",
    "METADATA_SCHEMA_VERSION",
    "build_response_metadata",
    "PendingCall",
    "PendingConfirmation",
    "PendingConfirmationStore",
]
