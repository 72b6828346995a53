"""Tool selection: narrow a large catalog to the tools one request needs.

External catalogs can hold hundreds of tools, far more than fit in a
function-calling request. The selector trims the catalog in three passes:
required-app filter, a cheap keyword pre-filter above a size threshold, and
one model call choosing the final subset. When the model call fails, a
keyword score ranks the candidates instead. A non-empty catalog never
yields an empty selection.
"""

import hashlib
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from workspace_assistant.analysis.prompts import SELECTION_SYSTEM_PROMPT, SELECTION_USER_TEMPLATE
from workspace_assistant.analysis.structured import StructuredCall
from workspace_assistant.cache import TTLCache
from workspace_assistant.config.settings import get_settings
from workspace_assistant.telemetry import TOOLS_SELECTED, TraceContext, get_logger
from workspace_assistant.tools.types import ExternalApp, ToolDefinition

if TYPE_CHECKING:
    from workspace_assistant.llm_client.client import LocalLLMClient

log = get_logger(__name__)

PrimaryAction = Literal["create", "read", "update", "delete", "send", "list", "search", "get"]

APP_KEYWORDS = ("gmail", "github", "slack", "notion", "clickup", "linear")
ACTION_KEYWORDS = ("create", "send", "list", "get", "update", "delete", "search", "find", "show")
ENTITY_KEYWORDS = (
    "email", "mail", "inbox", "message",
    "issue", "pr", "pull", "commit", "repo", "repository", "branch",
    "channel", "dm", "conversation", "workspace",
    "page", "database", "block", "note", "doc",
    "task", "project", "list", "folder", "goal",
    "ticket", "bug", "feature", "cycle", "sprint",
)  # fmt: skip

# Actions that earn the bonus when present in both the query and the tool name
SCORED_ACTIONS = ("create", "list", "get", "update", "delete", "send", "search")

NAME_HIT_SCORE = 30
DESCRIPTION_HIT_SCORE = 15
ACTION_BONUS = 40

FALLBACK_REASONING = "AI selection failed, used fallback keyword matching"


def extract_keywords(query: str) -> list[str]:
    """Extract app, action and entity keywords contained in a query.

    Matching is by substring on the lowercased query. The result is
    deduplicated and keeps vocabulary order.

    Example:
        >>> extract_keywords("Send my tasks to slack")
        ['slack', 'send', 'task']
    """
    query_lower = query.lower()
    keywords: list[str] = []
    for vocabulary in (APP_KEYWORDS, ACTION_KEYWORDS, ENTITY_KEYWORDS):
        for word in vocabulary:
            if word in query_lower and word not in keywords:
                keywords.append(word)
    return keywords


def _matches_any(tool: ToolDefinition, keywords: list[str]) -> bool:
    name = tool.name.lower()
    description = tool.description.lower()
    return any(k in name or k in description for k in keywords)


def score_tool(tool: ToolDefinition, query: str, keywords: list[str]) -> int:
    """Keyword relevance score of one tool for a query."""
    query_lower = query.lower()
    name = tool.name.lower()
    description = tool.description.lower()

    score = 0
    for keyword in keywords:
        if keyword in name:
            score += NAME_HIT_SCORE
        elif keyword in description:
            score += DESCRIPTION_HIT_SCORE
    for action in SCORED_ACTIONS:
        if action in query_lower and action in name:
            score += ACTION_BONUS
    return score


def score_tools_fallback(
    tools: list[ToolDefinition], query: str, max_tools: int
) -> list[ToolDefinition]:
    """Rank tools by keyword score, never returning empty for a non-empty list.

    Args:
        tools: Candidate tools in catalog order.
        query: User request.
        max_tools: Maximum number of tools to return.

    Returns:
        Tools scoring above zero, highest first (ties keep catalog order), or
        the first max_tools candidates when nothing scores.
    """
    keywords = extract_keywords(query)
    scored = [(score_tool(tool, query, keywords), tool) for tool in tools]
    ranked = sorted((pair for pair in scored if pair[0] > 0), key=lambda pair: -pair[0])
    if ranked:
        return [tool for _, tool in ranked[:max_tools]]
    return tools[:max_tools]


@dataclass
class SelectionConstraints:
    """Limits applied to one selection.

    Attributes:
        max_tools: Upper bound on the number of selected tools.
        required_apps: When non-empty, only tools tagged with these apps are
            candidates.
    """

    max_tools: int = 20
    required_apps: list[ExternalApp] = field(default_factory=list)


class SelectionOutput(BaseModel):
    """Answer shape expected from the model."""

    selected_tools: list[str] = Field(default_factory=list, description="Chosen tool names")
    reasoning: str = Field("", description="One-sentence justification")
    primary_action: PrimaryAction = Field("get", description="Main action of the request")


@dataclass
class ToolSelection:
    """Selected subset of a catalog.

    Attributes:
        tools: Selected tool definitions, most relevant first.
        reasoning: Why these tools were chosen.
        primary_action: Main action of the request.
        used_fallback: True when keyword scoring replaced the model.
        fallback_reason: Why the fallback was used.
    """

    tools: list[ToolDefinition]
    reasoning: str
    primary_action: PrimaryAction = "get"
    used_fallback: bool = False
    fallback_reason: str | None = None

    @property
    def tool_names(self) -> list[str]:
        """Names of the selected tools, in order."""
        return [tool.name for tool in self.tools]


@dataclass(frozen=True)
class _CachedSelection:
    tool_names: tuple[str, ...]
    reasoning: str
    primary_action: PrimaryAction


class ToolSelector:
    """Selects the tools relevant to a request from a catalog.

    Usage:
        selector = ToolSelector(llm_client, caches.selection)
        selection = await selector.select(catalog, "Email the team", SelectionConstraints(), ctx)
    """

    def __init__(
        self,
        llm_client: "LocalLLMClient",
        cache: TTLCache[_CachedSelection] | None = None,
        prefilter_threshold: int | None = None,
        hard_cap: int | None = None,
        timeout_s: float | None = None,
    ) -> None:
        """Initialize the selector.

        Args:
            llm_client: Client used for the selection call.
            cache: Selection cache tier. None disables caching.
            prefilter_threshold: Candidate count above which the keyword
                pre-filter runs (defaults to settings).
            hard_cap: Maximum number of candidates sent to the model
                (defaults to settings).
            timeout_s: Bound for the model call (defaults to settings).
        """
        settings = get_settings()
        self.cache = cache
        self.prefilter_threshold = prefilter_threshold or settings.selector_prefilter_threshold
        self.hard_cap = hard_cap or settings.selector_hard_cap
        self._call = StructuredCall(
            "tool_selection",
            SelectionOutput,
            llm_client,
            timeout_s=timeout_s,
            max_tokens=500,
        )

    def candidates(
        self, tools: list[ToolDefinition], query: str, constraints: SelectionConstraints
    ) -> list[ToolDefinition]:
        """Apply the required-app filter, keyword pre-filter and hard cap.

        Each filter falls back to its input when it would leave nothing, so
        the candidate list is empty only for an empty catalog.
        """
        candidates = tools
        if constraints.required_apps:
            required = set(constraints.required_apps)
            by_app = [tool for tool in tools if tool.external_app in required]
            candidates = by_app or tools

        if len(candidates) > self.prefilter_threshold:
            keywords = extract_keywords(query)
            by_keyword = [tool for tool in candidates if _matches_any(tool, keywords)]
            candidates = by_keyword or candidates
            if len(candidates) > self.hard_cap:
                candidates = candidates[: self.hard_cap]

        return candidates

    @staticmethod
    def cache_key(
        query: str, candidates: list[ToolDefinition], required_apps: list[ExternalApp]
    ) -> str:
        """Cache key tying a selection to the exact candidate set."""
        names = "\n".join(sorted(tool.name for tool in candidates))
        names_hash = hashlib.sha256(names.encode("utf-8")).hexdigest()
        apps = ",".join(sorted(app.value for app in required_apps))
        return f"{query.strip().lower()}|{names_hash}|{apps}"

    async def select(
        self,
        tools: list[ToolDefinition],
        query: str,
        constraints: SelectionConstraints | None,
        trace_ctx: TraceContext,
    ) -> ToolSelection:
        """Select tools for a request.

        Args:
            tools: Full catalog in catalog order.
            query: User request.
            constraints: Selection limits (defaults to SelectionConstraints()).
            trace_ctx: Trace context for telemetry.

        Returns:
            ToolSelection of at most constraints.max_tools tools; non-empty
            whenever the catalog is non-empty.
        """
        constraints = constraints or SelectionConstraints()
        if not tools:
            return ToolSelection(tools=[], reasoning="No tools available", primary_action="get")

        candidates = self.candidates(tools, query, constraints)
        by_name = {tool.name: tool for tool in candidates}
        key = self.cache_key(query, candidates, constraints.required_apps)

        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return ToolSelection(
                    tools=[by_name[n] for n in cached.tool_names if n in by_name][
                        : constraints.max_tools
                    ],
                    reasoning=cached.reasoning,
                    primary_action=cached.primary_action,
                )

        catalog = "\n".join(
            f"- {tool.name} ({tool.external_app.value if tool.external_app else 'INTERNAL'}): "
            f"{tool.description or 'No description available'}"
            for tool in candidates
        )
        outcome = await self._call.run(
            system_prompt=SELECTION_SYSTEM_PROMPT.format(max_tools=constraints.max_tools),
            user_prompt=SELECTION_USER_TEMPLATE.format(
                query=query, count=len(candidates), catalog=catalog
            ),
            fallback=SelectionOutput,
            trace_ctx=trace_ctx,
        )

        selected: list[ToolDefinition] = []
        if not outcome.used_fallback:
            for name in outcome.value.selected_tools:
                tool = by_name.get(name)
                if tool is not None and tool not in selected:
                    selected.append(tool)
            selected = selected[: constraints.max_tools]

        if selected:
            selection = ToolSelection(
                tools=selected,
                reasoning=outcome.value.reasoning,
                primary_action=outcome.value.primary_action,
            )
            if self.cache is not None:
                self.cache.set(
                    key,
                    _CachedSelection(
                        tool_names=tuple(selection.tool_names),
                        reasoning=selection.reasoning,
                        primary_action=selection.primary_action,
                    ),
                )
        else:
            selection = ToolSelection(
                tools=score_tools_fallback(candidates, query, constraints.max_tools),
                reasoning=FALLBACK_REASONING,
                primary_action="get",
                used_fallback=True,
                fallback_reason=outcome.fallback_reason or "empty_selection",
            )

        log.info(
            TOOLS_SELECTED,
            catalog_size=len(tools),
            candidate_count=len(candidates),
            selected=selection.tool_names,
            primary_action=selection.primary_action,
            used_fallback=selection.used_fallback,
            trace_id=trace_ctx.trace_id,
        )
        return selection
