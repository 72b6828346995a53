"""Query classification: internal, external or hybrid intent.

Decides, per user message, whether the turn needs internal workspace data,
external app tools, or both, and which external apps are involved. The
decision gates everything downstream (which catalog is built, whether the
planner runs), so a failed model call must still produce a usable answer:
the fallback is internal mode with no apps.
"""

import asyncio
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field, field_validator

from workspace_assistant.analysis.prompts import (
    CLASSIFICATION_SYSTEM_PROMPT,
    CLASSIFICATION_USER_TEMPLATE,
)
from workspace_assistant.analysis.structured import StructuredCall
from workspace_assistant.cache import TTLCache
from workspace_assistant.telemetry import QUERY_CLASSIFIED, TraceContext, get_logger
from workspace_assistant.tools.types import ExternalApp

if TYPE_CHECKING:
    from workspace_assistant.llm_client.client import LocalLLMClient

log = get_logger(__name__)

FALLBACK_REASONING = "AI classification failed, defaulted to internal mode"


class IntentMode(str, Enum):
    """Which tool families a turn needs."""

    INTERNAL = "internal"
    EXTERNAL = "external"
    HYBRID = "hybrid"


def derive_mode(requires_external: bool, requires_internal: bool) -> IntentMode:
    """Derive the intent mode from the two requirement flags.

    Both flags give HYBRID, only the external flag gives EXTERNAL, anything
    else (including neither) gives INTERNAL.
    """
    if requires_external and requires_internal:
        return IntentMode.HYBRID
    if requires_external:
        return IntentMode.EXTERNAL
    return IntentMode.INTERNAL


def _dedupe_apps(values: list[Any]) -> list[ExternalApp]:
    apps: list[ExternalApp] = []
    for value in values:
        app = value if isinstance(value, ExternalApp) else ExternalApp.from_str(str(value))
        if app is not None and app not in apps:
            apps.append(app)
    return apps


class ClassificationOutput(BaseModel):
    """Answer shape expected from the model."""

    requires_external_tools: bool = Field(..., description="Request needs an external app")
    requires_internal_tools: bool = Field(..., description="Request needs workspace data")
    requested_external_apps: list[str] = Field(
        default_factory=list, description="External apps named by the request"
    )
    reasoning: str = Field("", description="One-sentence justification")


class Intent(BaseModel):
    """Classified intent of one user message.

    Attributes:
        mode: Derived from the two requirement flags.
        requires_external_tools: External app tools are needed.
        requires_internal_tools: Internal workspace tools are needed.
        requested_external_apps: Apps involved, deduplicated, order preserved.
        reasoning: Short justification.
        used_fallback: True when the deterministic fallback produced this.
        fallback_reason: Why the fallback was used.
    """

    mode: IntentMode
    requires_external_tools: bool
    requires_internal_tools: bool
    requested_external_apps: list[ExternalApp] = Field(default_factory=list)
    reasoning: str = ""
    used_fallback: bool = False
    fallback_reason: str | None = None

    @field_validator("requested_external_apps", mode="before")
    @classmethod
    def dedupe_apps(cls, v: Any) -> list[ExternalApp]:
        """Drop unknown and duplicate app names, keeping first occurrence order."""
        return _dedupe_apps(list(v or []))

    @classmethod
    def from_output(cls, output: ClassificationOutput) -> "Intent":
        """Build an intent from a validated model answer."""
        return cls(
            mode=derive_mode(output.requires_external_tools, output.requires_internal_tools),
            requires_external_tools=output.requires_external_tools,
            requires_internal_tools=output.requires_internal_tools,
            requested_external_apps=output.requested_external_apps,
            reasoning=output.reasoning,
        )

    @classmethod
    def internal_fallback(cls, reason: str | None = None) -> "Intent":
        """Internal-only intent used when classification fails."""
        return cls(
            mode=IntentMode.INTERNAL,
            requires_external_tools=False,
            requires_internal_tools=True,
            requested_external_apps=[],
            reasoning=FALLBACK_REASONING,
            used_fallback=True,
            fallback_reason=reason,
        )


def _fallback_output() -> ClassificationOutput:
    return ClassificationOutput(
        requires_external_tools=False,
        requires_internal_tools=True,
        requested_external_apps=[],
        reasoning=FALLBACK_REASONING,
    )


class QueryClassifier:
    """Classifies user messages into an Intent, with caching.

    Usage:
        classifier = QueryClassifier(llm_client, caches.classification)
        intent = await classifier.classify("Email my tasks to a@b.com", trace_ctx)
        intent.mode  # IntentMode.HYBRID
    """

    def __init__(
        self,
        llm_client: "LocalLLMClient",
        cache: TTLCache[Intent] | None = None,
        timeout_s: float | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            llm_client: Client used for the classification call.
            cache: Classification cache tier. None disables caching.
            timeout_s: Bound for the model call (defaults to settings).
        """
        self.cache = cache
        self._call = StructuredCall(
            "query_classification",
            ClassificationOutput,
            llm_client,
            timeout_s=timeout_s,
            max_tokens=300,
        )

    async def classify(self, query: str, trace_ctx: TraceContext) -> Intent:
        """Classify one message.

        Args:
            query: Raw user message.
            trace_ctx: Trace context for telemetry.

        Returns:
            Intent. Never raises for model failures; fallback results are
            returned but not cached.
        """
        if self.cache is not None:
            cached = self.cache.get(query)
            if cached is not None:
                return cached

        outcome = await self._call.run(
            system_prompt=CLASSIFICATION_SYSTEM_PROMPT,
            user_prompt=CLASSIFICATION_USER_TEMPLATE.format(query=query),
            fallback=_fallback_output,
            trace_ctx=trace_ctx,
        )

        if outcome.used_fallback:
            intent = Intent.internal_fallback(outcome.fallback_reason)
        else:
            intent = Intent.from_output(outcome.value)
            if self.cache is not None:
                self.cache.set(query, intent)

        log.info(
            QUERY_CLASSIFIED,
            mode=intent.mode.value,
            requested_external_apps=[app.value for app in intent.requested_external_apps],
            used_fallback=intent.used_fallback,
            trace_id=trace_ctx.trace_id,
        )
        return intent

    async def classify_many(self, queries: list[str], trace_ctx: TraceContext) -> list[Intent]:
        """Classify several messages concurrently, preserving order."""
        return list(await asyncio.gather(*(self.classify(q, trace_ctx) for q in queries)))
