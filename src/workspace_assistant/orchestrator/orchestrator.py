"""Turn orchestration for the workspace assistant.

One call to ``send_message`` runs one turn:

1. Resolve the workspace/user behind the conversation.
2. If a confirmation is pending, read the message as a reply to it.
3. Classify the request, check connections, build the per-turn registry.
4. Select the tools to expose and, for multi-app or hybrid requests, plan.
5. Run the function-calling loop (once, or once per plan step), holding
   back external calls that the risk gate says need confirmation.

Every decision degrades to its deterministic fallback; only missing context
and unexpected failures end a turn with success=False.
"""

import json
import time
from typing import Any

from workspace_assistant.analysis.classifier import IntentMode, QueryClassifier
from workspace_assistant.analysis.confirmation import (
    ConfirmationAnalyzer,
    ProposedToolCall,
    ReplyIntent,
    RiskAssessment,
    build_cancellation_message,
    build_confirmation_prompt,
    build_unclear_reply_message,
)
from workspace_assistant.analysis.planner import (
    MultiStepPlanner,
    PlanExecutionResult,
    PlanSuspended,
    StepContext,
    StepResult,
    execute_plan,
)
from workspace_assistant.analysis.selector import SelectionConstraints, ToolSelection, ToolSelector
from workspace_assistant.audit import AuditRecord, AuditSink, JsonlAuditSink
from workspace_assistant.audit.sanitizer import sanitize_for_audit
from workspace_assistant.cache import CacheService
from workspace_assistant.config import ConfigLoadError, get_settings
from workspace_assistant.config.settings import AppConfig
from workspace_assistant.gateway import ExternalGateway, GatewayError, GatewayToolSource
from workspace_assistant.llm_client import LLMClientError, ModelRole
from workspace_assistant.llm_client.adapters import tool_call_message, tool_result_message
from workspace_assistant.orchestrator.context import ConversationDirectory, WorkspaceContext
from workspace_assistant.orchestrator.errors import MissingContextError
from workspace_assistant.orchestrator.metadata import build_response_metadata
from workspace_assistant.orchestrator.pending import (
    PendingCall,
    PendingConfirmation,
    PendingConfirmationStore,
)
from workspace_assistant.orchestrator.prompts import build_system_prompt, format_step_instruction
from workspace_assistant.orchestrator.types import (
    SendMessageRequest,
    SendMessageResponse,
    TurnState,
)
from workspace_assistant.security import (
    build_actionable_error,
    build_recoverable_fallback,
    categorize_error,
    format_user_friendly_error,
    sanitize_error_message,
)
from workspace_assistant.telemetry import (
    APPROVAL_CONTEXT_MISMATCH,
    APPROVAL_DENIED,
    APPROVAL_GRANTED,
    APPROVAL_REQUIRED,
    APPROVAL_UNCLEAR,
    AUDIT_SINK_ERROR,
    GATEWAY_CONNECTION_MISSING,
    MODEL_CALL_ERROR,
    TURN_COMPLETED,
    TURN_CONTEXT_MISSING,
    TURN_FAILED,
    TURN_STARTED,
    TraceContext,
    get_logger,
)
from workspace_assistant.tools.catalog import WorkspaceBackend, register_internal_tools
from workspace_assistant.tools.executor import (
    InvocationContext,
    ToolExecutionLayer,
    prepare_arguments,
)
from workspace_assistant.tools.registry import ToolRegistry
from workspace_assistant.tools.types import ExternalApp, ToolResult

log = get_logger(__name__)

MISSING_CONTEXT_MESSAGE = "Missing workspace or user context for this conversation."
MAX_TOOL_RESULT_CHARS = 8000


class _ConfirmationRequired(Exception):
    """Raised inside the tool loop when a batch of calls must wait for the user."""

    def __init__(
        self,
        calls: list[PendingCall],
        assessment: RiskAssessment,
        messages: list[dict[str, Any]],
        iteration: int,
        tool_names: list[str],
    ) -> None:
        super().__init__("confirmation_required")
        self.calls = calls
        self.assessment = assessment
        self.messages = messages
        self.iteration = iteration
        self.tool_names = tool_names


def _tool_result_content(result: ToolResult) -> str:
    """Serialize a tool result for the tool message sent back to the model."""
    if result.success:
        payload: dict[str, Any] = {"success": True, "output": result.output}
    else:
        payload = {"success": False, "error": result.error or "Tool execution failed"}
    return json.dumps(payload, default=str)[:MAX_TOOL_RESULT_CHARS]


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 1)


def _fallback_reply_from_tool_results(results: list[ToolResult], reason: str | None = None) -> str:
    """Build a safe, user-facing reply when the model fails to synthesize after tools."""
    base = build_recoverable_fallback(reason)
    if not results:
        return base

    lines = [base, "", "Latest tool results:"]
    for r in results[-3:]:
        if r.success:
            lines.append(f"- {r.tool_name}: success")
        else:
            lines.append(f"- {r.tool_name}: failed ({r.error or 'Unknown error'})")
    return "\n".join(lines)


class AssistantOrchestrator:
    """Runs conversation turns against the internal catalog and external apps.

    Usage:
        orchestrator = AssistantOrchestrator(llm_client, backend, gateway=gateway)
        await orchestrator.start()
        response = await orchestrator.send_message(
            SendMessageRequest(conversation_id="c1", message="What's on today?",
                               workspace_id="w1", user_id="u1")
        )
        await orchestrator.stop()
    """

    def __init__(
        self,
        llm_client: Any,
        workspace_backend: WorkspaceBackend,
        gateway: ExternalGateway | None = None,
        directory: ConversationDirectory | None = None,
        audit_sink: AuditSink | None = None,
        cache_service: CacheService | None = None,
        pending_store: PendingConfirmationStore | None = None,
        settings: AppConfig | None = None,
    ) -> None:
        """Wire the orchestrator.

        Args:
            llm_client: Client exposing ``respond()`` (LocalLLMClient or a fake).
            workspace_backend: Backend executing internal tools.
            gateway: External tool gateway; None disables external apps.
            directory: Resolves context for requests that omit it.
            audit_sink: Destination of external call audit records (defaults
                to the JSONL file at settings.audit_log_path).
            cache_service: Decision caches (defaults to settings-sized tiers).
            pending_store: Store of pending confirmations.
            settings: Configuration (defaults to get_settings()).
        """
        self.settings = settings or get_settings()
        self.llm_client = llm_client
        self.workspace_backend = workspace_backend
        self.tool_source = GatewayToolSource(gateway) if gateway is not None else None
        self.directory = directory
        if audit_sink is None:
            audit_sink = JsonlAuditSink(self.settings.audit_log_path)
        if cache_service is None:
            cache_service = CacheService.from_settings(self.settings)
        if pending_store is None:
            pending_store = PendingConfirmationStore(self.settings.pending_confirmation_ttl_seconds)
        self.audit_sink: AuditSink = audit_sink
        self.caches = cache_service
        self.pending = pending_store
        self.caches.register_sweep("pending_confirmations", self.pending.clear_expired)

        self.classifier = QueryClassifier(llm_client, cache=self.caches.classification)
        self.selector = ToolSelector(llm_client, cache=self.caches.selection)
        self.confirmation = ConfirmationAnalyzer(llm_client, cache=self.caches.confirmation)
        self.planner = MultiStepPlanner(llm_client)

    async def start(self) -> None:
        """Start the background sweep of caches and pending confirmations."""
        await self.caches.start()

    async def stop(self) -> None:
        """Stop the background sweep."""
        await self.caches.stop()

    # ------------------------------------------------------------------
    # Turn entry point
    # ------------------------------------------------------------------

    async def send_message(
        self, request: SendMessageRequest, trace_ctx: TraceContext | None = None
    ) -> SendMessageResponse:
        """Run one turn.

        Args:
            request: Conversation, message and optional identity.
            trace_ctx: Trace to log under (a new one is created if omitted).

        Returns:
            SendMessageResponse with versioned metadata. Never raises.
        """
        trace_ctx = trace_ctx or TraceContext.new_trace()
        started = time.perf_counter()
        log.info(
            TURN_STARTED,
            conversation_id=request.conversation_id,
            message_length=len(request.message),
            trace_id=trace_ctx.trace_id,
        )

        try:
            workspace = await self._resolve_context(request)
        except MissingContextError:
            log.warning(
                TURN_CONTEXT_MISSING,
                conversation_id=request.conversation_id,
                outcome="error",
                error_category="missing_context",
                duration_ms=_elapsed_ms(started),
                execution_path=self.settings.execution_path,
                trace_id=trace_ctx.trace_id,
            )
            return SendMessageResponse(success=False, error=MISSING_CONTEXT_MESSAGE)

        try:
            pending = self.pending.get(request.conversation_id)
            if pending is not None:
                response = await self._handle_confirmation_reply(
                    request, workspace, pending, trace_ctx
                )
            else:
                response = await self._handle_instruction(request, workspace, trace_ctx)
        except Exception as e:
            log.error(
                TURN_FAILED,
                conversation_id=request.conversation_id,
                workspace_id=workspace.workspace_id,
                user_id=workspace.user_id,
                outcome="error",
                error=sanitize_error_message(e),
                error_type=type(e).__name__,
                error_category=categorize_error(e),
                duration_ms=_elapsed_ms(started),
                execution_path=self.settings.execution_path,
                trace_id=trace_ctx.trace_id,
                exc_info=True,
            )
            return SendMessageResponse(success=False, error=format_user_friendly_error(e))

        log.info(
            TURN_COMPLETED,
            conversation_id=request.conversation_id,
            workspace_id=workspace.workspace_id,
            user_id=workspace.user_id,
            success=response.success,
            outcome="success" if response.success else "error",
            error_category=(response.metadata or {}).get("code") if not response.success else None,
            duration_ms=_elapsed_ms(started),
            execution_path=self.settings.execution_path,
            trace_id=trace_ctx.trace_id,
        )
        return response

    async def _resolve_context(self, request: SendMessageRequest) -> WorkspaceContext:
        known = None
        if self.directory is not None:
            known = await self.directory.get_context(request.conversation_id)

        if request.workspace_id and request.user_id:
            if known and known.workspace_id == request.workspace_id and known.user_id == request.user_id:
                return known
            return WorkspaceContext(workspace_id=request.workspace_id, user_id=request.user_id)

        if known is None or not known.workspace_id or not known.user_id:
            raise MissingContextError(request.conversation_id)
        return known

    # ------------------------------------------------------------------
    # New instruction
    # ------------------------------------------------------------------

    async def _handle_instruction(
        self,
        request: SendMessageRequest,
        workspace: WorkspaceContext,
        trace_ctx: TraceContext,
    ) -> SendMessageResponse:
        state = TurnState(
            conversation_id=request.conversation_id,
            message=request.message,
            context=InvocationContext(
                workspace_id=workspace.workspace_id,
                user_id=workspace.user_id,
                member_id=workspace.member_id,
            ),
            trace_ctx=trace_ctx,
        )

        intent = await self.classifier.classify(request.message, trace_ctx)
        state.intent = intent
        if intent.used_fallback:
            state.record_fallback("classification", intent.fallback_reason)

        wants_external = intent.requires_external_tools and bool(intent.requested_external_apps)
        if self.tool_source is not None:
            try:
                state.connected_apps = await self.tool_source.connected_apps(workspace.workspace_id)
            except GatewayError:
                # Internal-only turns carry on without the gateway
                if wants_external:
                    return self._gateway_unavailable(state)

        if wants_external:
            requested = intent.requested_external_apps
            state.usable_apps = [app for app in requested if app in state.connected_apps]
            missing = [app for app in requested if app not in state.connected_apps]
            if missing:
                log.warning(
                    GATEWAY_CONNECTION_MISSING,
                    apps=[app.value for app in missing],
                    workspace_id=workspace.workspace_id,
                    trace_id=trace_ctx.trace_id,
                )
            if not state.usable_apps:
                return self._connection_required(state, missing)

        state.registry = await self._build_registry(workspace.workspace_id, state.usable_apps)
        state.system_prompt = build_system_prompt(
            workspace, state.usable_apps, external_tools_allowed=bool(state.usable_apps)
        )

        state.selection = await self.selector.select(
            state.registry.list_tools(),
            request.message,
            SelectionConstraints(max_tools=self.settings.selector_max_tools),
            trace_ctx,
        )
        if state.selection.used_fallback:
            state.record_fallback("selection", state.selection.fallback_reason)

        if intent.mode == IntentMode.HYBRID or len(intent.requested_external_apps) >= 2:
            state.plan = await self.planner.plan(
                request.message, state.exposed_tool_names, trace_ctx
            )
            if state.plan.used_fallback:
                state.record_fallback("planning", state.plan.fallback_reason)

        if state.plan is not None and state.plan.requires_multi_step and len(state.plan.steps) > 1:
            return await self._run_plan(state)
        return await self._run_single(state)

    def _connection_required(
        self, state: TurnState, missing: list[ExternalApp]
    ) -> SendMessageResponse:
        names = ", ".join(app.value for app in missing)
        payload = build_actionable_error(
            message=f"No active connection for {names}.",
            next_step=f"Connect {names} in workspace integrations, then try again.",
            code="connection_required",
            recoverable=True,
        )
        return SendMessageResponse(
            success=False,
            error=f"{payload['error']} {payload['next_step']}",
            metadata=build_response_metadata(
                state,
                code=payload["code"],
                recoverable=payload["recoverable"],
                next_step=payload["next_step"],
            ),
        )

    def _gateway_unavailable(self, state: TurnState) -> SendMessageResponse:
        payload = build_actionable_error(
            message="Connected apps are unreachable right now.",
            next_step="No changes were made. Try again in a few minutes.",
            code="gateway_unavailable",
            recoverable=True,
        )
        return SendMessageResponse(
            success=False,
            error=f"{payload['error']} {payload['next_step']}",
            metadata=build_response_metadata(
                state,
                code=payload["code"],
                recoverable=payload["recoverable"],
                next_step=payload["next_step"],
            ),
        )

    async def _build_registry(self, workspace_id: str, apps: list[ExternalApp]) -> ToolRegistry:
        registry = ToolRegistry()
        register_internal_tools(registry, self.workspace_backend)
        if apps and self.tool_source is not None:
            await self.tool_source.register_tools(registry, workspace_id, apps)
        return registry

    async def _run_single(self, state: TurnState) -> SendMessageResponse:
        messages: list[dict[str, Any]] = [{"role": "user", "content": state.message}]
        try:
            content = await self._run_tool_loop(state, messages, state.exposed_tool_names)
        except _ConfirmationRequired as pause:
            return self._await_confirmation(state, pause)
        return self._respond(state, content)

    async def _run_plan(
        self,
        state: TurnState,
        completed: dict[int, Any] | None = None,
        start_at: int = 1,
        prior_results: list[StepResult] | None = None,
    ) -> SendMessageResponse:
        plan = state.plan
        prior_results = list(prior_results or [])
        exposed = state.exposed_tool_names

        async def run_step(step_ctx: StepContext) -> str:
            step = step_ctx.step
            tool_names = [name for name in step.tools_needed if name in exposed] or exposed
            messages: list[dict[str, Any]] = [
                {
                    "role": "user",
                    "content": format_step_instruction(
                        state.message,
                        step.step_number,
                        len(plan.steps),
                        step.action,
                        step_ctx.previous_results,
                    ),
                }
            ]
            try:
                return await self._run_tool_loop(state, messages, tool_names)
            except _ConfirmationRequired as pause:
                raise PlanSuspended("confirmation_required", payload=pause) from pause

        result = await execute_plan(plan, run_step, completed, start_at, state.trace_ctx)
        if result.suspended_at is not None:
            return self._await_confirmation(
                state,
                result.suspension.payload,
                plan_completed=result.completed,
                plan_results=prior_results + result.results,
                suspended_step=result.suspended_at,
            )
        return self._respond(state, self._plan_reply(result, prior_results))

    @staticmethod
    def _plan_reply(
        result: PlanExecutionResult, prior_results: list[StepResult] | None = None
    ) -> str:
        """Final step's answer, plus a note on every failed step of the plan.

        Args:
            result: Outcome of the last run.
            prior_results: Step outcomes from runs before a confirmation pause.
        """
        if result.results:
            final = result.final_result
        elif result.completed:
            final = result.completed[max(result.completed)]
        else:
            final = None

        text = final if isinstance(final, str) and final.strip() else ""
        failed = [r for r in [*(prior_results or []), *result.results] if not r.success]
        if failed:
            notes = "; ".join(f"step {r.step_number} ({r.error})" for r in failed)
            text = f"{text}\n\nSome steps could not be completed: {notes}".strip()
        return text or "I couldn't complete any step of this request."

    # ------------------------------------------------------------------
    # Function-calling loop
    # ------------------------------------------------------------------

    async def _run_tool_loop(
        self,
        state: TurnState,
        messages: list[dict[str, Any]],
        tool_names: list[str],
        start_iteration: int = 0,
    ) -> str:
        """Let the model call tools until it answers or the iteration limit hits.

        The last iteration offers no tools, forcing a text answer.

        Raises:
            _ConfirmationRequired: When external calls must wait for the user.
        """
        max_iterations = self.settings.orchestrator_max_tool_iterations
        tools = state.registry.get_tool_definitions_for_llm(tool_names) if tool_names else []

        for iteration in range(start_iteration, max_iterations + 1):
            offered = tools if tools and iteration < max_iterations else None
            try:
                response = await self.llm_client.respond(
                    role=ModelRole.STANDARD,
                    messages=messages,
                    tools=offered,
                    tool_choice="auto" if offered else None,
                    system_prompt=state.system_prompt,
                    trace_ctx=state.trace_ctx,
                )
            except (LLMClientError, ConfigLoadError) as e:
                reason = sanitize_error_message(e)
                log.warning(
                    MODEL_CALL_ERROR,
                    stage="response",
                    error=reason,
                    error_type=type(e).__name__,
                    trace_id=state.trace_ctx.trace_id,
                )
                state.record_fallback("response", type(e).__name__)
                return _fallback_reply_from_tool_results(state.tool_results, reason)

            tool_calls = (response.get("tool_calls") or []) if offered else []
            content = (response.get("content") or "").strip()
            if not tool_calls:
                return content or _fallback_reply_from_tool_results(
                    state.tool_results, "the model returned an empty answer"
                )

            messages.append(tool_call_message(tool_calls, response.get("content") or ""))
            await self._handle_tool_calls(state, messages, tool_calls, tool_names, iteration)

        return _fallback_reply_from_tool_results(state.tool_results)

    async def _handle_tool_calls(
        self,
        state: TurnState,
        messages: list[dict[str, Any]],
        tool_calls: list[dict[str, Any]],
        tool_names: list[str],
        iteration: int,
    ) -> None:
        calls: list[PendingCall] = []
        for tool_call in tool_calls:
            name = tool_call["name"]
            entry = state.registry.get_tool(name) if name in tool_names else None
            if entry is None:
                messages.append(
                    tool_result_message(
                        tool_call["id"],
                        json.dumps({"error": f"Tool '{name}' is not available for this request"}),
                    )
                )
                continue

            try:
                arguments = json.loads(tool_call.get("arguments") or "{}")
                if not isinstance(arguments, dict):
                    raise ValueError("arguments must be a JSON object")
            except ValueError as e:
                messages.append(
                    tool_result_message(
                        tool_call["id"],
                        json.dumps({"error": f"Invalid tool arguments: {sanitize_error_message(e)}"}),
                    )
                )
                continue

            final_arguments, _ = prepare_arguments(entry[0], arguments, state.context)
            calls.append(PendingCall(tool_call["id"], name, final_arguments))

        external = [c for c in calls if state.registry.get_tool(c.tool_name)[0].is_external]
        if external:
            proposals = [
                ProposedToolCall(
                    tool_name=c.tool_name,
                    description=state.registry.get_tool(c.tool_name)[0].description,
                    arguments=sanitize_for_audit(c.arguments),
                )
                for c in external
            ]
            assessment = await self.confirmation.analyze(proposals, state.message, state.trace_ctx)
            if assessment.used_fallback:
                state.record_fallback("risk", assessment.fallback_reason)
            if state.confirmation is None:
                state.confirmation = {
                    "status": "not_required",
                    "risk_level": assessment.risk_level.value,
                }
            if assessment.requires_confirmation:
                log.info(
                    APPROVAL_REQUIRED,
                    tools=[c.tool_name for c in calls],
                    risk_level=assessment.risk_level.value,
                    trace_id=state.trace_ctx.trace_id,
                )
                raise _ConfirmationRequired(calls, assessment, messages, iteration, tool_names)

        await self._execute_calls(state, messages, calls)

    async def _execute_calls(
        self,
        state: TurnState,
        messages: list[dict[str, Any]],
        calls: list[PendingCall],
    ) -> None:
        layer = ToolExecutionLayer(state.registry)
        for call in calls:
            result = await layer.execute_tool(
                call.tool_name, call.arguments, state.context, state.trace_ctx
            )
            state.tool_results.append(result)
            entry = state.registry.get_tool(call.tool_name)
            if entry is not None and entry[0].is_external:
                state.external_used.append(call.tool_name)
                await self._audit(state, call, result, entry[0].external_app)
            messages.append(tool_result_message(call.tool_call_id, _tool_result_content(result)))

    async def _audit(
        self,
        state: TurnState,
        call: PendingCall,
        result: ToolResult,
        app: ExternalApp | None,
    ) -> None:
        record = AuditRecord.create(
            workspace_id=state.context.workspace_id,
            user_id=state.context.user_id,
            member_id=state.context.member_id,
            tool_name=call.tool_name,
            toolkit=app.value.lower() if app else "unknown",
            arguments=result.metadata.get("arguments", call.arguments),
            success=result.success,
            error=result.error,
            execution_path=self.settings.execution_path,
            tool_call_id=call.tool_call_id,
        )
        try:
            await self.audit_sink.append(record)
        except Exception as e:
            log.error(
                AUDIT_SINK_ERROR,
                tool_name=call.tool_name,
                error=sanitize_error_message(e),
                error_type=type(e).__name__,
                trace_id=state.trace_ctx.trace_id,
            )

    # ------------------------------------------------------------------
    # Confirmation round-trip
    # ------------------------------------------------------------------

    def _await_confirmation(
        self,
        state: TurnState,
        pause: _ConfirmationRequired,
        plan_completed: dict[int, Any] | None = None,
        plan_results: list[StepResult] | None = None,
        suspended_step: int | None = None,
    ) -> SendMessageResponse:
        self.pending.put(
            PendingConfirmation(
                conversation_id=state.conversation_id,
                instruction=state.message,
                context=state.context,
                calls=pause.calls,
                assessment=pause.assessment,
                intent=state.intent,
                usable_apps=list(state.usable_apps),
                connected_apps=list(state.connected_apps),
                tool_names=pause.tool_names,
                selected_tools=state.exposed_tool_names,
                messages=pause.messages,
                iteration=pause.iteration,
                plan=state.plan,
                plan_completed=dict(plan_completed or {}),
                plan_results=list(plan_results or []),
                suspended_step=suspended_step,
                system_prompt=state.system_prompt,
            )
        )
        state.confirmation = {
            "status": "pending",
            "risk_level": pause.assessment.risk_level.value,
            "tools": [call.tool_name for call in pause.calls],
        }
        return SendMessageResponse(
            success=True,
            content=build_confirmation_prompt(pause.assessment),
            metadata=build_response_metadata(state),
        )

    async def _handle_confirmation_reply(
        self,
        request: SendMessageRequest,
        workspace: WorkspaceContext,
        pending: PendingConfirmation,
        trace_ctx: TraceContext,
    ) -> SendMessageResponse:
        if (
            workspace.workspace_id != pending.context.workspace_id
            or workspace.user_id != pending.context.user_id
        ):
            # Only the user who was asked can answer; the record stays as is
            log.warning(
                APPROVAL_CONTEXT_MISMATCH,
                conversation_id=request.conversation_id,
                workspace_id=workspace.workspace_id,
                user_id=workspace.user_id,
                trace_id=trace_ctx.trace_id,
            )
            payload = build_actionable_error(
                message="This conversation is waiting on a confirmation from another user.",
                next_step="No changes were made.",
                code="confirmation_context_mismatch",
            )
            return SendMessageResponse(
                success=False,
                error=f"{payload['error']} {payload['next_step']}",
                metadata=build_response_metadata(
                    TurnState(
                        conversation_id=request.conversation_id,
                        message=request.message,
                        context=InvocationContext(
                            workspace_id=workspace.workspace_id,
                            user_id=workspace.user_id,
                            member_id=workspace.member_id,
                        ),
                        trace_ctx=trace_ctx,
                    ),
                    code=payload["code"],
                    recoverable=payload["recoverable"],
                    next_step=payload["next_step"],
                ),
            )

        state = TurnState(
            conversation_id=request.conversation_id,
            message=pending.instruction,
            context=pending.context,
            trace_ctx=trace_ctx,
            intent=pending.intent,
            connected_apps=list(pending.connected_apps),
            usable_apps=list(pending.usable_apps),
            plan=pending.plan,
            system_prompt=pending.system_prompt,
        )
        risk_level = pending.assessment.risk_level.value

        reply = await self.confirmation.parse_reply(request.message, trace_ctx)
        if reply == ReplyIntent.UNCLEAR:
            log.info(APPROVAL_UNCLEAR, conversation_id=request.conversation_id, trace_id=trace_ctx.trace_id)
            state.confirmation = {"status": "awaiting", "risk_level": risk_level}
            return SendMessageResponse(
                success=True,
                content=build_unclear_reply_message(pending.assessment),
                metadata=build_response_metadata(state),
            )

        self.pending.pop(request.conversation_id)
        if reply == ReplyIntent.CANCEL:
            log.info(APPROVAL_DENIED, conversation_id=request.conversation_id, trace_id=trace_ctx.trace_id)
            state.confirmation = {"status": "cancelled", "risk_level": risk_level}
            return SendMessageResponse(
                success=True,
                content=build_cancellation_message(pending.assessment.impact_description),
                metadata=build_response_metadata(state),
            )

        log.info(
            APPROVAL_GRANTED,
            conversation_id=request.conversation_id,
            tools=[call.tool_name for call in pending.calls],
            trace_id=trace_ctx.trace_id,
        )
        state.confirmation = {"status": "confirmed", "risk_level": risk_level}
        state.registry = await self._build_registry(pending.context.workspace_id, state.usable_apps)
        state.selection = ToolSelection(
            tools=[
                entry[0]
                for entry in (state.registry.get_tool(name) for name in pending.selected_tools)
                if entry is not None
            ],
            reasoning="Selection of the confirmed turn",
        )

        messages = list(pending.messages)
        await self._execute_calls(state, messages, pending.calls)
        try:
            content = await self._run_tool_loop(
                state, messages, pending.tool_names, start_iteration=pending.iteration + 1
            )
        except _ConfirmationRequired as pause:
            return self._await_confirmation(
                state,
                pause,
                plan_completed=pending.plan_completed,
                plan_results=pending.plan_results,
                suspended_step=pending.suspended_step,
            )

        if pending.plan is not None and pending.suspended_step is not None:
            completed = dict(pending.plan_completed)
            completed[pending.suspended_step] = content
            return await self._run_plan(
                state,
                completed=completed,
                start_at=pending.suspended_step + 1,
                prior_results=[
                    *pending.plan_results,
                    StepResult(step_number=pending.suspended_step, result=content),
                ],
            )
        return self._respond(state, content)

    def _respond(self, state: TurnState, content: str) -> SendMessageResponse:
        return SendMessageResponse(
            success=True,
            content=content,
            metadata=build_response_metadata(state),
        )
