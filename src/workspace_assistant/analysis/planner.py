"""Multi-step planning and sequential plan execution.

The planner asks the model for an ordered, dependency-annotated list of
steps. The dependency graph comes from model output, so it is validated
before use: every dependency must point to a strictly earlier step. A plan
that fails validation is flattened into a single step rather than executed.

execute_plan() walks steps in order. A step whose dependencies did not
complete is recorded as a dependency failure; a step that raises is
recorded as failed. Neither stops later steps, and nothing is rolled back.
A step may raise PlanSuspended to pause the run (for example while a
confirmation is pending); the run can later resume from that step.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from pydantic import BaseModel, Field

from workspace_assistant.analysis.prompts import PLANNING_SYSTEM_PROMPT, PLANNING_USER_TEMPLATE
from workspace_assistant.analysis.structured import StructuredCall
from workspace_assistant.config.settings import get_settings
from workspace_assistant.telemetry import (
    PLAN_CREATED,
    PLAN_DEPENDENCY_VIOLATION,
    PLAN_STEP_COMPLETED,
    PLAN_STEP_FAILED,
    PLAN_SUSPENDED,
    TraceContext,
    get_logger,
)

if TYPE_CHECKING:
    from workspace_assistant.llm_client.client import LocalLLMClient

log = get_logger(__name__)

DEPENDENCIES_NOT_MET = "Dependencies not met"


class PlanComplexity(str, Enum):
    """Rough size of a plan."""

    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"


class PlanStep(BaseModel):
    """One step of a plan.

    Attributes:
        step_number: 1-based position in the plan.
        action: What the step does.
        tools_needed: Tool names the step expects to use.
        reasoning: Why the step is needed.
        depends_on: Earlier step numbers whose results the step needs.
    """

    step_number: int = Field(..., ge=1)
    action: str
    tools_needed: list[str] = Field(default_factory=list)
    reasoning: str = ""
    depends_on: list[int] = Field(default_factory=list)


class PlanOutput(BaseModel):
    """Answer shape expected from the model."""

    requires_multi_step: bool
    steps: list[PlanStep] = Field(default_factory=list)
    overall_goal: str = ""
    estimated_complexity: PlanComplexity = PlanComplexity.SIMPLE


class Plan(PlanOutput):
    """Validated plan for one request."""

    used_fallback: bool = False
    fallback_reason: str | None = None

    def step(self, step_number: int) -> PlanStep | None:
        """Look up a step by number."""
        for step in self.steps:
            if step.step_number == step_number:
                return step
        return None

    def summary(self) -> dict[str, Any]:
        """Compact description for response metadata."""
        return {
            "requires_multi_step": self.requires_multi_step,
            "step_count": len(self.steps),
            "overall_goal": self.overall_goal,
            "complexity": self.estimated_complexity.value,
        }


def single_step_plan(query: str, tools_needed: list[str] | None = None, **extra: Any) -> Plan:
    """Plan that runs the whole request as one dependency-free step."""
    return Plan(
        requires_multi_step=False,
        steps=[
            PlanStep(
                step_number=1,
                action=query,
                tools_needed=tools_needed or [],
                reasoning="Planning failed, executing as single step",
                depends_on=[],
            )
        ],
        overall_goal=query,
        estimated_complexity=PlanComplexity.SIMPLE,
        **extra,
    )


def validate_plan(plan: PlanOutput) -> list[str]:
    """Check the step numbering and dependency graph of a plan.

    Rules: at least one step; steps numbered 1..n in listed order; step 1
    has no dependencies; every dependency names a strictly smaller step
    number; no duplicate dependencies.

    Returns:
        Human-readable violations; empty when the plan is valid.
    """
    if not plan.steps:
        return ["plan has no steps"]

    violations: list[str] = []
    for index, step in enumerate(plan.steps, start=1):
        if step.step_number != index:
            violations.append(f"step at position {index} is numbered {step.step_number}")
        if len(set(step.depends_on)) != len(step.depends_on):
            violations.append(f"step {step.step_number} lists a dependency twice")
        for dep in step.depends_on:
            if dep >= step.step_number or dep < 1:
                violations.append(f"step {step.step_number} depends on step {dep}")
    return violations


def flatten_plan(plan: PlanOutput, query: str) -> Plan:
    """Collapse a plan into a single step, keeping every tool it named."""
    tools: list[str] = []
    for step in plan.steps:
        for name in step.tools_needed:
            if name not in tools:
                tools.append(name)
    flat = single_step_plan(query, tools)
    flat.overall_goal = plan.overall_goal or query
    return flat


class MultiStepPlanner:
    """Creates validated plans for compound requests.

    Usage:
        planner = MultiStepPlanner(llm_client)
        plan = await planner.plan("Send my tasks to #eng on slack", tool_names, trace_ctx)
    """

    def __init__(
        self,
        llm_client: "LocalLLMClient",
        max_tool_names: int | None = None,
        timeout_s: float | None = None,
    ) -> None:
        """Initialize the planner.

        Args:
            llm_client: Client used for the planning call.
            max_tool_names: How many tool names to offer the model (defaults
                to settings).
            timeout_s: Bound for the model call (defaults to settings).
        """
        self.max_tool_names = max_tool_names or get_settings().planner_max_tool_names
        self._call = StructuredCall(
            "multi_step_plan", PlanOutput, llm_client, timeout_s=timeout_s, max_tokens=800
        )

    async def plan(self, query: str, tool_names: list[str], trace_ctx: TraceContext) -> Plan:
        """Plan a request.

        Args:
            query: User request.
            tool_names: Available tool names; only the first max_tool_names
                are offered.
            trace_ctx: Trace context for telemetry.

        Returns:
            A plan whose dependency graph is valid. Never raises for model
            failures.
        """
        offered = tool_names[: self.max_tool_names]
        outcome = await self._call.run(
            system_prompt=PLANNING_SYSTEM_PROMPT,
            user_prompt=PLANNING_USER_TEMPLATE.format(
                query=query, tool_names=", ".join(offered) or "(none)"
            ),
            fallback=lambda: single_step_plan(query),
            trace_ctx=trace_ctx,
        )

        if outcome.used_fallback:
            plan = Plan(
                **outcome.value.model_dump(exclude={"used_fallback", "fallback_reason"}),
                used_fallback=True,
                fallback_reason=outcome.fallback_reason,
            )
        else:
            violations = validate_plan(outcome.value)
            if violations:
                log.warning(
                    PLAN_DEPENDENCY_VIOLATION,
                    violations=violations,
                    step_count=len(outcome.value.steps),
                    trace_id=trace_ctx.trace_id,
                )
                plan = flatten_plan(outcome.value, query)
            else:
                plan = Plan(**outcome.value.model_dump())

        log.info(
            PLAN_CREATED,
            requires_multi_step=plan.requires_multi_step,
            step_count=len(plan.steps),
            complexity=plan.estimated_complexity.value,
            used_fallback=plan.used_fallback,
            trace_id=trace_ctx.trace_id,
        )
        return plan


@dataclass
class StepContext:
    """What a step executor receives.

    Attributes:
        step: The step to run.
        previous_results: Results of completed steps, keyed by step number.
    """

    step: PlanStep
    previous_results: dict[int, Any]


@dataclass
class StepResult:
    """Recorded outcome of one step."""

    step_number: int
    result: Any = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class PlanSuspended(Exception):
    """Raised by a step executor to pause the plan at the current step.

    The step is not recorded; resuming with start_at set to the step number
    runs it again.
    """

    def __init__(self, reason: str = "suspended", payload: Any = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.payload = payload


@dataclass
class PlanExecutionResult:
    """Outcome of a plan run.

    Attributes:
        success: True when every recorded step succeeded and the run was not
            suspended.
        results: Step results recorded in this run, in step order.
        final_result: Result of the last recorded step.
        completed: Results of all completed steps, including seeded ones.
        suspended_at: Step number the run paused at, if any.
        suspension: The PlanSuspended raised, if any.
    """

    success: bool
    results: list[StepResult]
    final_result: Any
    completed: dict[int, Any] = field(default_factory=dict)
    suspended_at: int | None = None
    suspension: PlanSuspended | None = None


StepExecutor = Callable[[StepContext], Awaitable[Any]]


async def execute_plan(
    plan: Plan,
    execute_step: StepExecutor,
    completed: dict[int, Any] | None = None,
    start_at: int = 1,
    trace_ctx: TraceContext | None = None,
) -> PlanExecutionResult:
    """Run plan steps sequentially with per-step failure isolation.

    Args:
        plan: Plan to run.
        execute_step: Coroutine function running one step.
        completed: Results of steps completed in an earlier run.
        start_at: First step number to run; earlier steps are skipped.
        trace_ctx: Trace context for telemetry.

    Returns:
        PlanExecutionResult. Step failures never raise.
    """
    completed = dict(completed or {})
    results: list[StepResult] = []
    trace_id = trace_ctx.trace_id if trace_ctx else None

    for step in plan.steps:
        if step.step_number < start_at:
            continue

        if not all(dep in completed for dep in step.depends_on):
            log.warning(
                PLAN_STEP_FAILED,
                step_number=step.step_number,
                error=DEPENDENCIES_NOT_MET,
                depends_on=step.depends_on,
                trace_id=trace_id,
            )
            results.append(StepResult(step_number=step.step_number, error=DEPENDENCIES_NOT_MET))
            continue

        try:
            result = await execute_step(
                StepContext(step=step, previous_results=dict(completed))
            )
        except PlanSuspended as suspension:
            log.info(
                PLAN_SUSPENDED,
                step_number=step.step_number,
                reason=suspension.reason,
                trace_id=trace_id,
            )
            return PlanExecutionResult(
                success=False,
                results=results,
                final_result=results[-1].result if results else None,
                completed=completed,
                suspended_at=step.step_number,
                suspension=suspension,
            )
        except Exception as e:
            log.error(
                PLAN_STEP_FAILED,
                step_number=step.step_number,
                error=str(e),
                error_type=type(e).__name__,
                trace_id=trace_id,
            )
            results.append(
                StepResult(step_number=step.step_number, error=str(e) or "Step execution failed")
            )
            continue

        completed[step.step_number] = result
        results.append(StepResult(step_number=step.step_number, result=result))
        log.debug(PLAN_STEP_COMPLETED, step_number=step.step_number, trace_id=trace_id)

    return PlanExecutionResult(
        success=all(r.success for r in results),
        results=results,
        final_result=results[-1].result if results else None,
        completed=completed,
    )
