"""Tests for ToolRegistry and tool types."""

from typing import Any

import pytest
from pydantic import ValidationError

from workspace_assistant.tools import (
    INTERNAL_TOOLS,
    ContextRequirements,
    ExternalApp,
    HandlerKind,
    ToolDefinition,
    ToolParameter,
    ToolRegistry,
    register_internal_tools,
)


class NullBackend:
    def query(self, handler: str, arguments: dict[str, Any]) -> Any:
        return None

    def mutate(self, handler: str, arguments: dict[str, Any]) -> Any:
        return None

    def run_action(self, handler: str, arguments: dict[str, Any]) -> Any:
        return None


@pytest.fixture
def slack_tool() -> ToolDefinition:
    return ToolDefinition(
        name="SLACK_SEND_MESSAGE",
        description="Send a message to a Slack channel",
        parameters=[
            ToolParameter(name="channel", type="string", description="Channel name"),
            ToolParameter(name="text", type="string", description="Message text"),
        ],
        handler_kind=HandlerKind.ASYNC_ACTION,
        external_app=ExternalApp.SLACK,
    )


class TestToolTypes:
    """Test tool type validation."""

    def test_external_app_from_str(self) -> None:
        assert ExternalApp.from_str("slack") == ExternalApp.SLACK
        assert ExternalApp.from_str(" GitHub ") == ExternalApp.GITHUB
        assert ExternalApp.from_str("jira") is None

    def test_name_rules(self) -> None:
        with pytest.raises(ValidationError):
            ToolDefinition(name="bad name!", description="x", handler_kind=HandlerKind.READ)
        with pytest.raises(ValidationError):
            ToolDefinition(name="a" * 65, description="x", handler_kind=HandlerKind.READ)

    def test_handler_ref_defaults_to_name(self) -> None:
        tool = ToolDefinition(name="t", description="x", handler_kind=HandlerKind.READ)
        assert tool.handler_ref == "t"
        assert tool.model_copy(update={"handler": "tasks.today"}).handler_ref == "tasks.today"

    def test_injected_params(self) -> None:
        assert ContextRequirements(workspace_id=True, user_id=True).injected_params() == {
            "workspace_id",
            "user_id",
        }
        assert ContextRequirements().injected_params() == set()


class TestToolRegistry:
    """Test ToolRegistry class."""

    def test_register_and_get(self, slack_tool: ToolDefinition) -> None:
        registry = ToolRegistry()
        backend = NullBackend()
        registry.register(slack_tool, backend)

        assert "SLACK_SEND_MESSAGE" in registry
        assert len(registry) == 1
        tool_def, tool_backend = registry.get_tool("SLACK_SEND_MESSAGE")
        assert tool_def is slack_tool
        assert tool_backend is backend
        assert registry.get_tool("missing") is None

    def test_duplicate_registration_raises(self, slack_tool: ToolDefinition) -> None:
        registry = ToolRegistry()
        registry.register(slack_tool, NullBackend())
        with pytest.raises(ValueError, match="already registered"):
            registry.register(slack_tool, NullBackend())

    def test_register_many_skips_duplicates(self) -> None:
        registry = ToolRegistry()
        count = registry.register_many(list(INTERNAL_TOOLS) + [INTERNAL_TOOLS[0]], NullBackend())
        assert count == len(INTERNAL_TOOLS)

    def test_internal_external_split(self, slack_tool: ToolDefinition) -> None:
        registry = ToolRegistry()
        register_internal_tools(registry, NullBackend())
        registry.register(slack_tool, NullBackend())

        assert len(registry.list_internal_tools()) == len(INTERNAL_TOOLS)
        assert registry.list_external_tools() == [slack_tool]
        assert registry.list_external_tools([ExternalApp.GITHUB]) == []
        assert registry.list_tool_names()[-1] == "SLACK_SEND_MESSAGE"

    def test_definitions_for_llm_hide_injected_params(self) -> None:
        registry = ToolRegistry()
        tool = ToolDefinition(
            name="scoped_search",
            description="Search",
            parameters=[
                ToolParameter(name="query", type="string", description="Query"),
                ToolParameter(name="workspace_id", type="string", description="Workspace"),
                ToolParameter(
                    name="labels",
                    type="array",
                    required=False,
                    json_schema={"type": "array", "items": {"type": "string"}},
                ),
            ],
            handler_kind=HandlerKind.READ,
            context=ContextRequirements(workspace_id=True),
        )
        registry.register(tool, NullBackend())

        [definition] = registry.get_tool_definitions_for_llm()
        parameters = definition["function"]["parameters"]

        assert definition["type"] == "function"
        assert set(parameters["properties"]) == {"query", "labels"}
        assert parameters["required"] == ["query"]
        assert parameters["properties"]["labels"]["items"] == {"type": "string"}

    def test_definitions_for_llm_by_name_keeps_order(self, slack_tool: ToolDefinition) -> None:
        registry = ToolRegistry()
        register_internal_tools(registry, NullBackend())
        registry.register(slack_tool, NullBackend())

        definitions = registry.get_tool_definitions_for_llm(
            ["SLACK_SEND_MESSAGE", "unknown", "get_my_tasks_today"]
        )
        assert [d["function"]["name"] for d in definitions] == [
            "SLACK_SEND_MESSAGE",
            "get_my_tasks_today",
        ]


class TestInternalCatalog:
    """Test the internal tool catalog."""

    def test_catalog_names_unique(self) -> None:
        names = [tool.name for tool in INTERNAL_TOOLS]
        assert len(names) == len(set(names)) == 11

    def test_catalog_is_internal_and_scoped(self) -> None:
        for tool in INTERNAL_TOOLS:
            assert tool.external_app is None
            assert tool.context.workspace_id is True

    def test_catalog_uses_read_or_action(self) -> None:
        kinds = {tool.handler_kind for tool in INTERNAL_TOOLS}
        assert kinds <= {HandlerKind.READ, HandlerKind.ASYNC_ACTION}
