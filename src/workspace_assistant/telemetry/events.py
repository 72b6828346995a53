"""Semantic event constants for structured logging.

Log events use these constants rather than magic strings so that events can
be queried reliably.
"""

# Turn lifecycle
TURN_STARTED = "turn_started"
TURN_COMPLETED = "turn_completed"
TURN_FAILED = "turn_failed"
TURN_CONTEXT_MISSING = "turn_context_missing"

# LLM client
MODEL_CALL_STARTED = "model_call_started"
MODEL_CALL_COMPLETED = "model_call_completed"
MODEL_CALL_ERROR = "model_call_error"

# Structured decisions
STRUCTURED_CALL_COMPLETED = "structured_call_completed"
STRUCTURED_CALL_FALLBACK = "structured_call_fallback"
QUERY_CLASSIFIED = "query_classified"
TOOLS_SELECTED = "tools_selected"
RISK_ASSESSED = "risk_assessed"
REPLY_CLASSIFIED = "reply_classified"
PLAN_CREATED = "plan_created"
PLAN_DEPENDENCY_VIOLATION = "plan_dependency_violation"
PLAN_STEP_COMPLETED = "plan_step_completed"
PLAN_STEP_FAILED = "plan_step_failed"
PLAN_SUSPENDED = "plan_suspended"

# Cache
CACHE_HIT = "cache_hit"
CACHE_EVICTED = "cache_evicted"
CACHE_SWEEP = "cache_sweep"
CACHE_SERVICE_STARTED = "cache_service_started"
CACHE_SERVICE_STOPPED = "cache_service_stopped"

# Tool execution
TOOL_CALL_STARTED = "tool_call_started"
TOOL_CALL_COMPLETED = "tool_call_completed"
TOOL_CALL_FAILED = "tool_call_failed"

# Confirmation gate
APPROVAL_REQUIRED = "approval_required"
APPROVAL_GRANTED = "approval_granted"
APPROVAL_DENIED = "approval_denied"
APPROVAL_UNCLEAR = "approval_unclear"
APPROVAL_CONTEXT_MISMATCH = "approval_context_mismatch"
PENDING_CONFIRMATION_EXPIRED = "pending_confirmation_expired"

# External gateway
GATEWAY_TOOLS_LOADED = "gateway_tools_loaded"
GATEWAY_TOOL_REJECTED = "gateway_tool_rejected"
GATEWAY_CONNECTION_MISSING = "gateway_connection_missing"
GATEWAY_ERROR = "gateway_error"

# Audit
AUDIT_RECORD_APPENDED = "audit_record_appended"
AUDIT_SINK_ERROR = "audit_sink_error"
