"""CLI for inspecting the assistant's decisions.

Each command runs one decision stage in isolation against the configured
model server, which makes it easy to see how a request would be classified,
planned or gated without running a whole turn.
"""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from workspace_assistant.analysis import MultiStepPlanner, QueryClassifier
from workspace_assistant.analysis.confirmation import ConfirmationAnalyzer, fallback_reply
from workspace_assistant.audit import parse_and_sanitize_arguments
from workspace_assistant.config import ModelConfigError, load_model_config
from workspace_assistant.llm_client import LocalLLMClient
from workspace_assistant.telemetry import TraceContext
from workspace_assistant.tools import INTERNAL_TOOLS

app = typer.Typer(help="Workspace Assistant - decision inspection tools")
console = Console()


@app.command(name="classify")
def classify_command(
    query: str = typer.Argument(..., help="Request to classify"),
) -> None:
    """Classify a request as internal, external or hybrid.

    Examples:
        workspace-assistant classify "What's on my calendar today?"
        workspace-assistant classify "Summarize my sprint and post it to Slack"
    """
    classifier = QueryClassifier(LocalLLMClient())
    intent = asyncio.run(classifier.classify(query, TraceContext.new_trace()))

    table = Table(title="Intent")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white", overflow="fold")
    table.add_row("mode", intent.mode.value)
    table.add_row("requires_external_tools", str(intent.requires_external_tools))
    table.add_row("requires_internal_tools", str(intent.requires_internal_tools))
    table.add_row(
        "requested_external_apps",
        ", ".join(app.value for app in intent.requested_external_apps) or "-",
    )
    table.add_row("reasoning", intent.reasoning)
    if intent.used_fallback:
        table.add_row("fallback_reason", intent.fallback_reason or "unknown")
    console.print(table)


@app.command(name="plan")
def plan_command(
    query: str = typer.Argument(..., help="Request to plan"),
    tools: Optional[str] = typer.Option(
        None, "--tools", "-t", help="Comma-separated tool names (defaults to the internal catalog)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output the plan as JSON"),
) -> None:
    """Break a request into dependency-annotated steps.

    Examples:
        workspace-assistant plan "Find open bugs in GitHub and post a summary to Slack"
        workspace-assistant plan "Create a task" --tools GITHUB_CREATE_ISSUE,SLACK_SEND_MESSAGE
    """
    tool_names = (
        [name.strip() for name in tools.split(",") if name.strip()]
        if tools
        else [tool.name for tool in INTERNAL_TOOLS]
    )
    planner = MultiStepPlanner(LocalLLMClient())
    plan = asyncio.run(planner.plan(query, tool_names, TraceContext.new_trace()))

    if json_output:
        console.print(json.dumps(plan.model_dump(mode="json"), indent=2))
        return

    console.print(f"\n[bold blue]Goal:[/bold blue] {plan.overall_goal}")
    console.print(f"[dim]Complexity: {plan.estimated_complexity.value}[/dim]")
    if plan.used_fallback:
        console.print(f"[yellow]Fallback plan ({plan.fallback_reason})[/yellow]")

    table = Table(title=f"Steps ({len(plan.steps)})")
    table.add_column("#", style="cyan")
    table.add_column("Action", style="white", overflow="fold")
    table.add_column("Tools", style="green", overflow="fold")
    table.add_column("Depends on", style="magenta")
    for step in plan.steps:
        table.add_row(
            str(step.step_number),
            step.action,
            ", ".join(step.tools_needed) or "-",
            ", ".join(str(dep) for dep in step.depends_on) or "-",
        )
    console.print(table)


@app.command(name="check-reply")
def check_reply_command(
    reply: str = typer.Argument(..., help="Reply to a confirmation prompt"),
    offline: bool = typer.Option(
        False, "--offline", help="Use keyword rules only, without calling the model"
    ),
) -> None:
    """Show how a reply to a confirmation prompt would be read.

    Examples:
        workspace-assistant check-reply "yes, go ahead"
        workspace-assistant check-reply "no wait" --offline
    """
    if offline:
        intent = fallback_reply(reply).intent
    else:
        analyzer = ConfirmationAnalyzer(LocalLLMClient())
        intent = asyncio.run(analyzer.parse_reply(reply, TraceContext.new_trace()))

    colors = {"confirm": "green", "cancel": "red", "unclear": "yellow"}
    console.print(f"[{colors[intent.value]}]{intent.value}[/{colors[intent.value]}]")


@app.command(name="sanitize")
def sanitize_command(
    arguments: str = typer.Argument(..., help="Tool arguments as a JSON string"),
) -> None:
    """Show tool arguments as they would be written to the audit log.

    Examples:
        workspace-assistant sanitize '{"title": "Bug", "api_key": "sk-123"}'
    """
    sanitized = parse_and_sanitize_arguments(arguments)
    console.print(json.dumps(sanitized, indent=2, default=str))


@app.command(name="tools")
def tools_command() -> None:
    """List the internal tool catalog."""
    table = Table(title=f"Internal tools ({len(INTERNAL_TOOLS)})")
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Description", style="white", overflow="fold")
    for tool in INTERNAL_TOOLS:
        table.add_row(tool.name, tool.handler_kind.value, tool.description)
    console.print(table)


@app.command(name="models")
def models_command() -> None:
    """Show the configured model for each role."""
    try:
        config = load_model_config()
    except ModelConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title="Models")
    table.add_column("Role", style="cyan")
    table.add_column("Model", style="green")
    table.add_column("Timeout", style="white")
    table.add_column("Function calling", style="white")
    table.add_column("Structured output", style="white")
    for role, model in config.models.items():
        table.add_row(
            role,
            model.id,
            f"{model.default_timeout}s",
            "yes" if model.supports_function_calling else "no",
            "yes" if model.supports_structured_output else "no",
        )
    console.print(table)
    console.print(Markdown("Roles are defined in `config/models.yaml`."))


if __name__ == "__main__":
    app()
