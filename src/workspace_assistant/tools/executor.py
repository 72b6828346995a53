"""Tool execution layer: argument filtering, context injection and telemetry.

Wraps dispatch() with the per-call rules that hold for every tool:
- arguments the definition does not declare are dropped
- workspace/user ids are injected from the turn, overriding model values
- one attempt per call; failures are captured as ToolResult(success=False)
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any

from workspace_assistant.telemetry import (
    TOOL_CALL_COMPLETED,
    TOOL_CALL_FAILED,
    TOOL_CALL_STARTED,
    TraceContext,
    get_logger,
)
from workspace_assistant.tools.dispatch import dispatch
from workspace_assistant.tools.registry import ToolRegistry
from workspace_assistant.tools.types import (
    USER_ID_PARAM,
    WORKSPACE_ID_PARAM,
    ToolDefinition,
    ToolResult,
)

log = get_logger(__name__)


@dataclass(frozen=True)
class InvocationContext:
    """Identity of the turn on whose behalf tools run.

    Attributes:
        workspace_id: Workspace the conversation belongs to.
        user_id: Acting user.
        member_id: Workspace membership of the acting user, if known.
    """

    workspace_id: str
    user_id: str
    member_id: str | None = None


def prepare_arguments(
    tool_def: ToolDefinition,
    arguments: dict[str, Any],
    context: InvocationContext,
) -> tuple[dict[str, Any], list[str]]:
    """Filter model-supplied arguments and inject identity parameters.

    Args:
        tool_def: Tool being called.
        arguments: Arguments proposed by the model.
        context: Turn identity.

    Returns:
        Tuple of (final arguments, names of dropped arguments).
    """
    injected = tool_def.context.injected_params()
    declared = {param.name for param in tool_def.parameters} - injected
    # External tool schemas come from the gateway and may be open-ended
    if tool_def.is_external and not declared:
        filtered = {k: v for k, v in arguments.items() if k not in injected}
    else:
        filtered = {k: v for k, v in arguments.items() if k in declared}
    dropped = sorted(set(arguments) - set(filtered) - injected)

    if tool_def.context.workspace_id:
        filtered[WORKSPACE_ID_PARAM] = context.workspace_id
    if tool_def.context.user_id:
        filtered[USER_ID_PARAM] = context.user_id
    return filtered, dropped


class ToolExecutionLayer:
    """Executes registered tools with observability and failure isolation."""

    def __init__(self, registry: ToolRegistry) -> None:
        """Initialize the execution layer.

        Args:
            registry: Registry holding definitions and backends for this turn.
        """
        self.registry = registry

    async def execute_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any],
        context: InvocationContext,
        trace_ctx: TraceContext,
    ) -> ToolResult:
        """Execute one tool call.

        Args:
            tool_name: Name of the tool to execute.
            arguments: Arguments proposed by the model.
            context: Turn identity used for injection.
            trace_ctx: Trace context for telemetry.

        Returns:
            ToolResult; never raises for tool failures.
        """
        entry = self.registry.get_tool(tool_name)
        if entry is None:
            error_msg = f"Tool '{tool_name}' not found"
            log.warning(
                TOOL_CALL_FAILED,
                tool_name=tool_name,
                error=error_msg,
                trace_id=trace_ctx.trace_id,
            )
            return ToolResult(tool_name=tool_name, success=False, error=error_msg, latency_ms=0.0)

        tool_def, backend = entry
        final_arguments, dropped = prepare_arguments(tool_def, arguments, context)
        if dropped:
            log.warning(
                "tool_call_invalid_parameters_filtered",
                tool_name=tool_name,
                invalid_parameters=dropped,
                trace_id=trace_ctx.trace_id,
            )

        _, span_id = trace_ctx.new_span()
        log.info(
            TOOL_CALL_STARTED,
            tool_name=tool_name,
            handler_kind=tool_def.handler_kind.value,
            external_app=tool_def.external_app.value if tool_def.external_app else None,
            argument_names=sorted(final_arguments),
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )

        start_time = time.time()
        try:
            output = await asyncio.wait_for(
                dispatch(tool_def.handler_kind, backend, tool_def.handler_ref, final_arguments),
                timeout=tool_def.timeout_seconds,
            )
        except asyncio.TimeoutError:
            latency_ms = (time.time() - start_time) * 1000
            error_msg = f"Tool '{tool_name}' timed out after {tool_def.timeout_seconds}s"
            log.error(
                TOOL_CALL_FAILED,
                tool_name=tool_name,
                error=error_msg,
                latency_ms=latency_ms,
                trace_id=trace_ctx.trace_id,
                span_id=span_id,
            )
            return ToolResult(
                tool_name=tool_name,
                success=False,
                error=error_msg,
                latency_ms=latency_ms,
                metadata={"arguments": final_arguments},
            )
        except Exception as e:
            latency_ms = (time.time() - start_time) * 1000
            log.error(
                TOOL_CALL_FAILED,
                tool_name=tool_name,
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=latency_ms,
                trace_id=trace_ctx.trace_id,
                span_id=span_id,
                exc_info=True,
            )
            return ToolResult(
                tool_name=tool_name,
                success=False,
                error=str(e) or type(e).__name__,
                latency_ms=latency_ms,
                metadata={"arguments": final_arguments},
            )

        latency_ms = (time.time() - start_time) * 1000
        log.info(
            TOOL_CALL_COMPLETED,
            tool_name=tool_name,
            success=True,
            latency_ms=latency_ms,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        return ToolResult(
            tool_name=tool_name,
            success=True,
            output=output,
            latency_ms=latency_ms,
            metadata={"arguments": final_arguments},
        )
