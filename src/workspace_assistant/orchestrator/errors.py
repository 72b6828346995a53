"""Errors raised inside the orchestrator.

None of these escape send_message(); they are turned into responses.
"""


class OrchestratorError(Exception):
    """Base exception for orchestrator errors."""

    pass


class MissingContextError(OrchestratorError):
    """Raised when a turn has no resolvable workspace or user."""

    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Missing workspace or user context for conversation {conversation_id}")
        self.conversation_id = conversation_id
