"""Pydantic model for audit records of external tool-call attempts."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from workspace_assistant.audit.sanitizer import sanitize_for_audit
from workspace_assistant.security import sanitize_error_message


class AuditOutcome(str, Enum):
    """Outcome of an audited call."""

    SUCCESS = "success"
    ERROR = "error"


class AuditRecord(BaseModel):
    """One external tool-call attempt, redacted.

    Records are immutable once created. Use AuditRecord.create() so that the
    argument snapshot and error text are always sanitized.
    """

    workspace_id: str = Field(..., description="Workspace the call ran for")
    member_id: str | None = Field(None, description="Workspace membership of the acting user")
    user_id: str = Field(..., description="Acting user")
    tool_name: str = Field(..., description="Tool that was called")
    toolkit: str = Field(..., description="External app the tool belongs to")
    arguments_snapshot: Any = Field(None, description="Sanitized arguments")
    outcome: AuditOutcome = Field(..., description="success or error")
    error: str | None = Field(None, description="Sanitized error text")
    execution_path: str = Field(..., description="Code path that made the call")
    tool_call_id: str | None = Field(None, description="Function-call id from the model")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), description="Creation time (UTC)"
    )

    model_config = {"frozen": True}

    @classmethod
    def create(
        cls,
        *,
        workspace_id: str,
        user_id: str,
        tool_name: str,
        toolkit: str,
        arguments: Any,
        success: bool,
        execution_path: str,
        error: str | None = None,
        member_id: str | None = None,
        tool_call_id: str | None = None,
    ) -> "AuditRecord":
        """Build a record, sanitizing arguments and error text."""
        return cls(
            workspace_id=workspace_id,
            member_id=member_id,
            user_id=user_id,
            tool_name=tool_name,
            toolkit=toolkit,
            arguments_snapshot=sanitize_for_audit(arguments),
            outcome=AuditOutcome.SUCCESS if success else AuditOutcome.ERROR,
            error=sanitize_error_message(error) if error else None,
            execution_path=execution_path,
            tool_call_id=tool_call_id,
        )
