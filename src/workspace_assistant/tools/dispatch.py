"""Handler-kind dispatch.

Every tool call goes through dispatch(), which maps the closed set of
HandlerKind values onto the three primitives of an InvocationBackend.
"""

import inspect
from typing import Any, Protocol

from workspace_assistant.tools.types import HandlerKind


class ToolExecutionError(Exception):
    """Raised when a tool cannot be invoked."""

    pass


class InvocationBackend(Protocol):
    """Backend that executes tool handlers.

    The workspace data service implements all three primitives; the gateway
    backend only supports run_action. Methods may be sync or async.
    """

    def query(self, handler: str, arguments: dict[str, Any]) -> Any:
        """Run a read-only handler."""
        ...

    def mutate(self, handler: str, arguments: dict[str, Any]) -> Any:
        """Run a transactional write handler."""
        ...

    def run_action(self, handler: str, arguments: dict[str, Any]) -> Any:
        """Run a side-effecting action handler."""
        ...


async def dispatch(
    kind: HandlerKind,
    backend: InvocationBackend,
    handler: str,
    arguments: dict[str, Any],
) -> Any:
    """Invoke a handler through the primitive matching its kind.

    Args:
        kind: Handler kind of the tool.
        backend: Backend that owns the handler.
        handler: Handler reference.
        arguments: Final arguments (context already injected).

    Returns:
        Whatever the backend primitive returns.

    Raises:
        ToolExecutionError: If the kind is not a HandlerKind.
    """
    match kind:
        case HandlerKind.READ:
            result = backend.query(handler, arguments)
        case HandlerKind.WRITE:
            result = backend.mutate(handler, arguments)
        case HandlerKind.ASYNC_ACTION:
            result = backend.run_action(handler, arguments)
        case _:
            raise ToolExecutionError(f"Unsupported handler kind: {kind!r}")

    if inspect.isawaitable(result):
        result = await result
    return result
