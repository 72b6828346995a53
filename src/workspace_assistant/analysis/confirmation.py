"""Risk assessment of proposed tool calls and confirmation reply parsing.

Two decisions share the confirmation cache tier:
- analyze(): should these calls wait for explicit user confirmation?
- parse_reply(): did the user's next message confirm, cancel, or neither?

Both fall back to keyword rules when the model call fails. The risk
fallback is conservative: any high-impact word in a tool name requires
confirmation.
"""

import re
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from workspace_assistant.analysis.prompts import (
    REPLY_SYSTEM_PROMPT,
    REPLY_USER_TEMPLATE,
    RISK_SYSTEM_PROMPT,
    RISK_USER_TEMPLATE,
)
from workspace_assistant.analysis.structured import StructuredCall
from workspace_assistant.cache import TTLCache
from workspace_assistant.telemetry import (
    REPLY_CLASSIFIED,
    RISK_ASSESSED,
    TraceContext,
    get_logger,
)

if TYPE_CHECKING:
    from workspace_assistant.llm_client.client import LocalLLMClient

log = get_logger(__name__)

HIGH_IMPACT_KEYWORDS = (
    "send",
    "delete",
    "remove",
    "archive",
    "merge",
    "deploy",
    "release",
    "grant",
    "revoke",
    "permission",
    "access",
    "collaborator",
    "admin",
)

CONFIRM_KEYWORDS = ("confirm", "yes", "proceed", "go ahead", "do it", "approve", "ok", "okay")
CANCEL_KEYWORDS = ("cancel", "stop", "abort", "no", "don't", "never mind", "nope")


def _keyword_pattern(keywords: tuple[str, ...]) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_CONFIRM_RE = _keyword_pattern(CONFIRM_KEYWORDS)
_CANCEL_RE = _keyword_pattern(CANCEL_KEYWORDS)


class RiskLevel(str, Enum):
    """Ordinal blast radius of a set of tool calls."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the ordering low < medium < high < critical."""
        return list(RiskLevel).index(self)

    def at_least(self, other: "RiskLevel") -> bool:
        """Whether this level is as severe as other or more."""
        return self.rank >= other.rank


RISK_INDICATORS: dict[RiskLevel, str] = {
    RiskLevel.LOW: "ℹ️",
    RiskLevel.MEDIUM: "⚠️",
    RiskLevel.HIGH: "🚨",
    RiskLevel.CRITICAL: "⛔",
}


class ReplyIntent(str, Enum):
    """Classification of a reply to a confirmation prompt."""

    CONFIRM = "confirm"
    CANCEL = "cancel"
    UNCLEAR = "unclear"


class ProposedToolCall(BaseModel):
    """A tool call the model proposed, with its resolved arguments."""

    tool_name: str = Field(..., description="Tool to call")
    description: str = Field("", description="Tool description")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Resolved arguments")


class RiskOutput(BaseModel):
    """Answer shape expected from the model for risk assessment."""

    requires_confirmation: bool
    risk_level: RiskLevel
    impact_description: str = ""
    affected_resources: list[str] = Field(default_factory=list)
    reasoning: str = ""


class ReplyOutput(BaseModel):
    """Answer shape expected from the model for reply parsing."""

    intent: ReplyIntent
    reasoning: str = ""


class RiskAssessment(BaseModel):
    """Verdict on whether proposed calls need confirmation.

    Attributes:
        requires_confirmation: Calls must wait for an explicit confirm.
        risk_level: Ordinal risk.
        impact_description: One-sentence summary of what will happen.
        affected_resources: Concrete targets, most important first.
        reasoning: Why.
        used_fallback: True when keyword rules produced this verdict.
        fallback_reason: Why the fallback was used.
    """

    requires_confirmation: bool
    risk_level: RiskLevel
    impact_description: str
    affected_resources: list[str] = Field(default_factory=list)
    reasoning: str = ""
    used_fallback: bool = False
    fallback_reason: str | None = None


def fallback_risk(calls: list[ProposedToolCall]) -> RiskOutput:
    """Keyword-based risk verdict used when the model call fails."""
    names = [call.tool_name for call in calls]
    joined = " ".join(names).lower()
    high_impact = any(keyword in joined for keyword in HIGH_IMPACT_KEYWORDS)
    return RiskOutput(
        requires_confirmation=high_impact,
        risk_level=RiskLevel.HIGH if high_impact else RiskLevel.MEDIUM,
        impact_description=f"Executing {len(calls)} action(s): {', '.join(names)}",
        affected_resources=names,
        reasoning="AI analysis failed, used fallback keyword detection",
    )


def fallback_reply(text: str) -> ReplyOutput:
    """Keyword-based reply classification used when the model call fails.

    Keywords match on word boundaries, so "know" is not read as "no". A
    reply matching both lists, or neither, is unclear.
    """
    has_confirm = _CONFIRM_RE.search(text) is not None
    has_cancel = _CANCEL_RE.search(text) is not None
    if has_cancel and not has_confirm:
        return ReplyOutput(intent=ReplyIntent.CANCEL, reasoning="Fallback: detected cancel keywords")
    if has_confirm and not has_cancel:
        return ReplyOutput(
            intent=ReplyIntent.CONFIRM, reasoning="Fallback: detected confirm keywords"
        )
    return ReplyOutput(
        intent=ReplyIntent.UNCLEAR,
        reasoning="Fallback: no clear confirmation or cancellation detected",
    )


class ConfirmationAnalyzer:
    """Risk gate for external tool calls.

    Usage:
        analyzer = ConfirmationAnalyzer(llm_client, caches.confirmation)
        assessment = await analyzer.analyze(calls, "Post my tasks to #eng", trace_ctx)
        if assessment.requires_confirmation:
            reply = build_confirmation_prompt(assessment)
    """

    def __init__(
        self,
        llm_client: "LocalLLMClient",
        cache: TTLCache[RiskAssessment] | None = None,
        timeout_s: float | None = None,
    ) -> None:
        """Initialize the analyzer.

        Args:
            llm_client: Client used for both decisions.
            cache: Confirmation cache tier. None disables caching.
            timeout_s: Bound for each model call (defaults to settings).
        """
        self.cache = cache
        self._risk_call = StructuredCall(
            "risk_assessment", RiskOutput, llm_client, timeout_s=timeout_s, max_tokens=400
        )
        self._reply_call = StructuredCall(
            "confirmation_reply", ReplyOutput, llm_client, timeout_s=timeout_s, max_tokens=150
        )

    async def analyze(
        self,
        calls: list[ProposedToolCall],
        instruction: str,
        trace_ctx: TraceContext,
    ) -> RiskAssessment:
        """Assess the risk of a set of proposed calls.

        Args:
            calls: Proposed calls with resolved arguments.
            instruction: Originating user request.
            trace_ctx: Trace context for telemetry.

        Returns:
            RiskAssessment. Never raises for model failures.
        """
        if not calls:
            return RiskAssessment(
                requires_confirmation=False,
                risk_level=RiskLevel.LOW,
                impact_description="No actions to perform",
                reasoning="No tool calls proposed",
            )

        key = {
            "instruction": instruction.strip().lower(),
            "calls": [{"tool": c.tool_name, "arguments": c.arguments} for c in calls],
        }
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        actions = "\n".join(
            f"{i}. {call.tool_name}: {call.description or 'No description'}\n"
            f"   Arguments: {call.arguments}"
            for i, call in enumerate(calls, start=1)
        )
        outcome = await self._risk_call.run(
            system_prompt=RISK_SYSTEM_PROMPT,
            user_prompt=RISK_USER_TEMPLATE.format(instruction=instruction, actions=actions),
            fallback=lambda: fallback_risk(calls),
            trace_ctx=trace_ctx,
        )

        assessment = RiskAssessment(
            **outcome.value.model_dump(),
            used_fallback=outcome.used_fallback,
            fallback_reason=outcome.fallback_reason,
        )
        if not assessment.affected_resources:
            assessment.affected_resources = [call.tool_name for call in calls]
        if self.cache is not None and not outcome.used_fallback:
            self.cache.set(key, assessment)

        log.info(
            RISK_ASSESSED,
            tools=[call.tool_name for call in calls],
            requires_confirmation=assessment.requires_confirmation,
            risk_level=assessment.risk_level.value,
            used_fallback=assessment.used_fallback,
            trace_id=trace_ctx.trace_id,
        )
        return assessment

    async def parse_reply(self, text: str, trace_ctx: TraceContext) -> ReplyIntent:
        """Classify the user's answer to a confirmation prompt.

        Args:
            text: The user's reply.
            trace_ctx: Trace context for telemetry.

        Returns:
            ReplyIntent. Never raises for model failures.
        """
        outcome = await self._reply_call.run(
            system_prompt=REPLY_SYSTEM_PROMPT,
            user_prompt=REPLY_USER_TEMPLATE.format(reply=text),
            fallback=lambda: fallback_reply(text),
            trace_ctx=trace_ctx,
        )
        log.info(
            REPLY_CLASSIFIED,
            intent=outcome.value.intent.value,
            used_fallback=outcome.used_fallback,
            trace_id=trace_ctx.trace_id,
        )
        return outcome.value.intent


def build_confirmation_prompt(assessment: RiskAssessment) -> str:
    """Render the confirmation prompt returned in place of execution."""
    indicator = RISK_INDICATORS.get(assessment.risk_level, RISK_INDICATORS[RiskLevel.MEDIUM])
    lines = [
        f"{indicator} **Confirmation Required** ({assessment.risk_level.value} risk)",
        "",
        f"**Action:** {assessment.impact_description}",
        "",
    ]
    if assessment.affected_resources:
        lines.append("**Affected Resources:**")
        lines.extend(f"- {resource}" for resource in assessment.affected_resources)
        lines.append("")
    lines.append("Type **confirm** to proceed or **cancel** to abort.")
    return "\n".join(lines)


def build_cancellation_message(impact_description: str | None = None) -> str:
    """Render the notice returned when the user cancels."""
    if impact_description:
        return (
            "✅ **Action Cancelled**\n\n"
            f"The following action has been cancelled:\n{impact_description}\n\n"
            "No changes were made."
        )
    return "✅ **Action Cancelled**\n\nNo changes were made."


def build_unclear_reply_message(assessment: RiskAssessment) -> str:
    """Render the re-prompt used when a reply is neither confirm nor cancel."""
    return (
        "I need a clear answer before continuing.\n\n"
        f"**Pending action:** {assessment.impact_description}\n\n"
        "Type **confirm** to proceed or **cancel** to abort."
    )
