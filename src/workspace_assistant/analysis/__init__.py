"""Model-driven decisions with deterministic fallbacks.

- classifier: internal / external / hybrid intent
- selector: tool subset for a request
- confirmation: risk gate and confirmation reply parsing
- planner: dependency-annotated steps and their sequential execution
"""

from workspace_assistant.analysis.classifier import (
    Intent,
    IntentMode,
    QueryClassifier,
    derive_mode,
)
from workspace_assistant.analysis.confirmation import (
    ConfirmationAnalyzer,
    ProposedToolCall,
    ReplyIntent,
    RiskAssessment,
    RiskLevel,
    build_cancellation_message,
    build_confirmation_prompt,
    build_unclear_reply_message,
)
from workspace_assistant.analysis.planner import (
    MultiStepPlanner,
    Plan,
    PlanComplexity,
    PlanExecutionResult,
    PlanStep,
    PlanSuspended,
    StepContext,
    StepResult,
    execute_plan,
    flatten_plan,
    validate_plan,
)
from workspace_assistant.analysis.selector import (
    SelectionConstraints,
    ToolSelection,
    ToolSelector,
    extract_keywords,
    score_tools_fallback,
)
from workspace_assistant.analysis.structured import StructuredCall, StructuredOutcome

__all__ = [
    "StructuredCall",
    "StructuredOutcome",
    "Intent",
    "IntentMode",
    "QueryClassifier",
    "derive_mode",
    "SelectionConstraints",
    "ToolSelection",
    "ToolSelector",
    "extract_keywords",
    "score_tools_fallback",
    "ConfirmationAnalyzer",
    "ProposedToolCall",
    "ReplyIntent",
    "RiskAssessment",
    "RiskLevel",
    "build_cancellation_message",
    "build_confirmation_prompt",
    "build_unclear_reply_message",
    "MultiStepPlanner",
    "Plan",
    "PlanComplexity",
    "PlanExecutionResult",
    "PlanStep",
    "PlanSuspended",
    "StepContext",
    "StepResult",
    "execute_plan",
    "flatten_plan",
    "validate_plan",
]
