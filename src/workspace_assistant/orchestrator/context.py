"""Resolution of the workspace and user behind a conversation."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class WorkspaceContext:
    """Who a conversation belongs to.

    Attributes:
        workspace_id: Workspace the conversation belongs to.
        user_id: User who owns the conversation.
        member_id: Workspace membership of the user, if known.
        workspace_name: Display name used in the system prompt.
        user_name: Display name used in the system prompt.
    """

    workspace_id: str
    user_id: str
    member_id: str | None = None
    workspace_name: str | None = None
    user_name: str | None = None


class ConversationDirectory(Protocol):
    """Looks up the owner of a conversation."""

    async def get_context(self, conversation_id: str) -> WorkspaceContext | None:
        """Return the conversation's context, or None when unknown."""
        ...


class InMemoryConversationDirectory:
    """Directory backed by a dict. Used in tests and the developer CLI."""

    def __init__(self, contexts: dict[str, WorkspaceContext] | None = None) -> None:
        self._contexts: dict[str, WorkspaceContext] = dict(contexts or {})

    def register(self, conversation_id: str, context: WorkspaceContext) -> None:
        self._contexts[conversation_id] = context

    async def get_context(self, conversation_id: str) -> WorkspaceContext | None:
        return self._contexts.get(conversation_id)
