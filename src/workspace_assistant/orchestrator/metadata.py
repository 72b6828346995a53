"""Versioned response metadata.

Schema v1:
    {
        "schema_version": "v1",
        "assistant_type": str,
        "execution_path": str,
        "intent": {"mode", "requires_external_tools", "requested_external_apps"},
        "tools": {"internal_enabled", "external_enabled", "external_used",
                  "external_tools_called", "connected_apps"},
        "fallback": {"attempted", "reason"},
        "plan": {...},            # only when the planner ran
        "confirmation": {...},    # only when the risk gate was involved
        "trace_id": str,
    }
"""

from typing import Any

from workspace_assistant.config.settings import get_settings
from workspace_assistant.orchestrator.types import TurnState

METADATA_SCHEMA_VERSION = "v1"


def build_response_metadata(state: TurnState, **extra: Any) -> dict[str, Any]:
    """Build the metadata attached to a turn's response.

    Args:
        state: Turn state at the end of the turn.
        **extra: Additional top-level keys (e.g. recoverable, next_step).

    Returns:
        Metadata dict following schema v1.
    """
    settings = get_settings()
    intent = state.intent
    registry = state.registry

    metadata: dict[str, Any] = {
        "schema_version": METADATA_SCHEMA_VERSION,
        "assistant_type": settings.assistant_type,
        "execution_path": settings.execution_path,
        "intent": {
            "mode": intent.mode.value if intent else "internal",
            "requires_external_tools": intent.requires_external_tools if intent else False,
            "requested_external_apps": (
                [app.value for app in intent.requested_external_apps] if intent else []
            ),
        },
        "tools": {
            "internal_enabled": bool(registry and registry.list_internal_tools()),
            "external_enabled": bool(registry and registry.list_external_tools()),
            "external_used": bool(state.external_used),
            "external_tools_called": list(state.external_used),
            "connected_apps": [app.value for app in state.connected_apps],
        },
        "fallback": {
            "attempted": bool(state.fallback_reasons),
            "reason": "; ".join(state.fallback_reasons) if state.fallback_reasons else None,
        },
        "trace_id": state.trace_ctx.trace_id,
    }
    if state.plan is not None:
        metadata["plan"] = state.plan.summary()
    if state.confirmation is not None:
        metadata["confirmation"] = state.confirmation
    metadata.update(extra)
    return metadata
