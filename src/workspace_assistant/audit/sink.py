"""Append-only receivers for audit records."""

import asyncio
from pathlib import Path
from typing import Protocol

from workspace_assistant.audit.models import AuditRecord
from workspace_assistant.telemetry import AUDIT_RECORD_APPENDED, get_logger

log = get_logger(__name__)


class AuditSink(Protocol):
    """Receiver of one record per external tool-call attempt."""

    async def append(self, record: AuditRecord) -> None:
        """Persist a record. Records are never updated afterwards."""
        ...


class InMemoryAuditSink:
    """Keeps records in a list. Used in tests and the developer CLI."""

    def __init__(self) -> None:
        self.records: list[AuditRecord] = []

    async def append(self, record: AuditRecord) -> None:
        self.records.append(record)
        log.debug(AUDIT_RECORD_APPENDED, tool_name=record.tool_name, outcome=record.outcome.value)


class JsonlAuditSink:
    """Appends records to a JSON Lines file, one record per line.

    Usage:
        sink = JsonlAuditSink(settings.audit_log_path)
        await sink.append(record)
    """

    def __init__(self, path: Path | str) -> None:
        """Initialize the sink.

        Args:
            path: File to append to. Parent directories are created on first
                write.
        """
        self.path = Path(path)
        self._lock = asyncio.Lock()

    def _write_line(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    async def append(self, record: AuditRecord) -> None:
        """Append one record.

        Raises:
            OSError: If the file cannot be written.
        """
        line = record.model_dump_json()
        async with self._lock:
            await asyncio.to_thread(self._write_line, line)
        log.debug(
            AUDIT_RECORD_APPENDED,
            tool_name=record.tool_name,
            outcome=record.outcome.value,
            path=str(self.path),
        )
