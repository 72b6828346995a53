"""Tests for audit records and sinks."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from workspace_assistant.audit import (
    REDACTED_VALUE,
    AuditOutcome,
    AuditRecord,
    InMemoryAuditSink,
    JsonlAuditSink,
)


@pytest.fixture
def record() -> AuditRecord:
    return AuditRecord.create(
        workspace_id="ws-1",
        user_id="user-1",
        member_id="member-1",
        tool_name="GITHUB_CREATE_ISSUE",
        toolkit="github",
        arguments={"title": "Bug", "token": "ghp_123"},
        success=False,
        error="401 from https://api.github.com with Bearer ghp_123",
        execution_path="workspace-assistant",
        tool_call_id="call_1",
    )


class TestAuditRecord:
    """Test AuditRecord.create."""

    def test_arguments_and_error_sanitized(self, record: AuditRecord) -> None:
        assert record.arguments_snapshot == {"title": "Bug", "token": REDACTED_VALUE}
        assert record.outcome == AuditOutcome.ERROR
        assert record.error is not None
        assert "ghp_123" not in record.error

    def test_success_has_no_error(self) -> None:
        record = AuditRecord.create(
            workspace_id="ws-1",
            user_id="user-1",
            tool_name="SLACK_SEND_MESSAGE",
            toolkit="slack",
            arguments={},
            success=True,
            execution_path="workspace-assistant",
        )
        assert record.outcome == AuditOutcome.SUCCESS
        assert record.error is None
        assert record.created_at.tzinfo is not None

    def test_records_are_immutable(self, record: AuditRecord) -> None:
        with pytest.raises(ValidationError):
            record.tool_name = "OTHER"  # type: ignore[misc]


class TestSinks:
    """Test audit sinks."""

    @pytest.mark.asyncio
    async def test_in_memory_sink(self, record: AuditRecord) -> None:
        sink = InMemoryAuditSink()
        await sink.append(record)
        assert sink.records == [record]

    @pytest.mark.asyncio
    async def test_jsonl_sink_appends_lines(self, record: AuditRecord, tmp_path: Path) -> None:
        path = tmp_path / "audit" / "tool_calls.jsonl"
        sink = JsonlAuditSink(path)

        await sink.append(record)
        await sink.append(record)

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        entry = json.loads(lines[0])
        assert entry["tool_name"] == "GITHUB_CREATE_ISSUE"
        assert entry["outcome"] == "error"
        assert entry["arguments_snapshot"]["token"] == REDACTED_VALUE
