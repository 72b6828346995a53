"""Tests for the decision inspection CLI."""

import json
from typing import Any
from unittest.mock import patch

from typer.testing import CliRunner

from workspace_assistant.config import ModelConfigError
from workspace_assistant.ui.cli import app

runner = CliRunner()


class FakeLLM:
    """Returns one fixed structured answer for every call."""

    def __init__(self, answer: dict[str, Any]) -> None:
        self.answer = answer

    async def respond(self, **kwargs: Any) -> dict[str, Any]:
        return {"role": "assistant", "content": json.dumps(self.answer), "tool_calls": []}


def test_check_reply_offline() -> None:
    assert "confirm" in runner.invoke(app, ["check-reply", "yes please", "--offline"]).output
    assert "cancel" in runner.invoke(app, ["check-reply", "nope", "--offline"]).output
    assert "unclear" in runner.invoke(app, ["check-reply", "hmm", "--offline"]).output


def test_sanitize_redacts_secrets() -> None:
    result = runner.invoke(app, ["sanitize", '{"title": "Bug", "api_key": "sk-123"}'])
    assert result.exit_code == 0
    assert "sk-123" not in result.output
    assert "[REDACTED]" in result.output


def test_tools_lists_catalog() -> None:
    result = runner.invoke(app, ["tools"])
    assert result.exit_code == 0
    assert "Internal tools (11)" in result.output


def test_classify_uses_model() -> None:
    fake = FakeLLM(
        {
            "requires_external_tools": True,
            "requires_internal_tools": True,
            "requested_external_apps": ["SLACK"],
            "reasoning": "Tasks and Slack",
        }
    )
    with patch("workspace_assistant.ui.cli.LocalLLMClient", return_value=fake):
        result = runner.invoke(app, ["classify", "Post my tasks to Slack"])

    assert result.exit_code == 0
    assert "hybrid" in result.output
    assert "SLACK" in result.output


def test_plan_json_output() -> None:
    fake = FakeLLM(
        {
            "requires_multi_step": False,
            "steps": [{"step_number": 1, "action": "List tasks"}],
            "overall_goal": "List tasks",
        }
    )
    with patch("workspace_assistant.ui.cli.LocalLLMClient", return_value=fake):
        result = runner.invoke(app, ["plan", "List my tasks", "--json"])

    assert result.exit_code == 0
    assert json.loads(result.output)["steps"][0]["action"] == "List tasks"


def test_models_config_error_exits() -> None:
    with patch(
        "workspace_assistant.ui.cli.load_model_config",
        side_effect=ModelConfigError("Model config file not found"),
    ):
        result = runner.invoke(app, ["models"])

    assert result.exit_code == 1
    assert "not found" in result.output
