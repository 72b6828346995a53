"""Telemetry: structured logging, trace correlation and event names."""

from workspace_assistant.telemetry.events import (
    APPROVAL_CONTEXT_MISMATCH,
    APPROVAL_DENIED,
    APPROVAL_GRANTED,
    APPROVAL_REQUIRED,
    APPROVAL_UNCLEAR,
    AUDIT_RECORD_APPENDED,
    AUDIT_SINK_ERROR,
    CACHE_EVICTED,
    CACHE_HIT,
    CACHE_SERVICE_STARTED,
    CACHE_SERVICE_STOPPED,
    CACHE_SWEEP,
    GATEWAY_CONNECTION_MISSING,
    GATEWAY_ERROR,
    GATEWAY_TOOL_REJECTED,
    GATEWAY_TOOLS_LOADED,
    MODEL_CALL_COMPLETED,
    MODEL_CALL_ERROR,
    MODEL_CALL_STARTED,
    PENDING_CONFIRMATION_EXPIRED,
    PLAN_CREATED,
    PLAN_DEPENDENCY_VIOLATION,
    PLAN_STEP_COMPLETED,
    PLAN_STEP_FAILED,
    PLAN_SUSPENDED,
    QUERY_CLASSIFIED,
    REPLY_CLASSIFIED,
    RISK_ASSESSED,
    STRUCTURED_CALL_COMPLETED,
    STRUCTURED_CALL_FALLBACK,
    TOOL_CALL_COMPLETED,
    TOOL_CALL_FAILED,
    TOOL_CALL_STARTED,
    TOOLS_SELECTED,
    TURN_COMPLETED,
    TURN_CONTEXT_MISSING,
    TURN_FAILED,
    TURN_STARTED,
)
from workspace_assistant.telemetry.logger import configure_logging, get_logger
from workspace_assistant.telemetry.trace import TraceContext

__all__ = [
    "TraceContext",
    "get_logger",
    "configure_logging",
    "TURN_STARTED",
    "TURN_COMPLETED",
    "TURN_FAILED",
    "TURN_CONTEXT_MISSING",
    "MODEL_CALL_STARTED",
    "MODEL_CALL_COMPLETED",
    "MODEL_CALL_ERROR",
    "STRUCTURED_CALL_COMPLETED",
    "STRUCTURED_CALL_FALLBACK",
    "QUERY_CLASSIFIED",
    "TOOLS_SELECTED",
    "RISK_ASSESSED",
    "REPLY_CLASSIFIED",
    "PLAN_CREATED",
    "PLAN_DEPENDENCY_VIOLATION",
    "PLAN_STEP_COMPLETED",
    "PLAN_STEP_FAILED",
    "PLAN_SUSPENDED",
    "CACHE_HIT",
    "CACHE_EVICTED",
    "CACHE_SWEEP",
    "CACHE_SERVICE_STARTED",
    "CACHE_SERVICE_STOPPED",
    "TOOL_CALL_STARTED",
    "TOOL_CALL_COMPLETED",
    "TOOL_CALL_FAILED",
    "APPROVAL_REQUIRED",
    "APPROVAL_GRANTED",
    "APPROVAL_DENIED",
    "APPROVAL_UNCLEAR",
    "APPROVAL_CONTEXT_MISMATCH",
    "PENDING_CONFIRMATION_EXPIRED",
    "GATEWAY_TOOLS_LOADED",
    "GATEWAY_TOOL_REJECTED",
    "GATEWAY_CONNECTION_MISSING",
    "GATEWAY_ERROR",
    "AUDIT_RECORD_APPENDED",
    "AUDIT_SINK_ERROR",
]
