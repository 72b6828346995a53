"""Audit trail for external tool calls: redaction, records and sinks."""

from workspace_assistant.audit.models import AuditOutcome, AuditRecord
from workspace_assistant.audit.sanitizer import (
    MAX_DEPTH,
    MAX_STRING_LENGTH,
    REDACTED_VALUE,
    TRUNCATED_VALUE,
    is_sensitive_key,
    parse_and_sanitize_arguments,
    sanitize_for_audit,
)
from workspace_assistant.audit.sink import AuditSink, InMemoryAuditSink, JsonlAuditSink

__all__ = [
    "AuditOutcome",
    "AuditRecord",
    "AuditSink",
    "InMemoryAuditSink",
    "JsonlAuditSink",
    "MAX_DEPTH",
    "MAX_STRING_LENGTH",
    "REDACTED_VALUE",
    "TRUNCATED_VALUE",
    "is_sensitive_key",
    "parse_and_sanitize_arguments",
    "sanitize_for_audit",
]
