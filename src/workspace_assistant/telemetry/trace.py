"""Trace context for correlating the log events of one conversation turn."""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class TraceContext:
    """Lightweight, immutable trace context.

    One trace covers one ``send_message`` call; every model call, tool call
    and audit record of that turn logs the same ``trace_id``. Nested work
    takes a child span via new_span() instead of mutating the context.

    Attributes:
        trace_id: Unique identifier for the turn (UUID string).
        parent_span_id: Span that the current work is nested under, if any.
    """

    trace_id: str
    parent_span_id: str | None = None

    @classmethod
    def new_trace(cls) -> "TraceContext":
        """Start a new trace with a generated trace_id."""
        return cls(trace_id=str(uuid.uuid4()))

    def new_span(self) -> tuple["TraceContext", str]:
        """Create a child span within this trace.

        Returns:
            Tuple of (child context whose parent is the new span, new span id).
        """
        span_id = str(uuid.uuid4())
        return TraceContext(trace_id=self.trace_id, parent_span_id=span_id), span_id
