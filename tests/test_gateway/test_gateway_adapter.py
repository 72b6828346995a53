"""Tests for the gateway tool source and backend."""

from typing import Any

import pytest

from workspace_assistant.gateway import (
    Connection,
    GatewayBackend,
    GatewayConnectionError,
    GatewayToolSource,
)
from workspace_assistant.tools import (
    ExternalApp,
    HandlerKind,
    ToolDefinition,
    ToolExecutionError,
    ToolRegistry,
)


class FakeGateway:
    """In-memory ExternalGateway."""

    def __init__(
        self,
        connections: list[Connection] | None = None,
        tools: list[dict[str, Any]] | None = None,
        fail: bool = False,
    ) -> None:
        self.connections = connections or []
        self.tools = tools or []
        self.fail = fail
        self.executed: list[tuple[str, str, dict[str, Any]]] = []

    async def list_connections(self, entity_id: str) -> list[Connection]:
        if self.fail:
            raise GatewayConnectionError("gateway down")
        return self.connections

    async def list_tools(self, entity_id: str, apps: list[ExternalApp]) -> list[dict[str, Any]]:
        if self.fail:
            raise GatewayConnectionError("gateway down")
        return self.tools

    async def execute_tool(self, entity_id: str, tool_name: str, arguments: dict[str, Any]) -> Any:
        self.executed.append((entity_id, tool_name, arguments))
        return {"ok": True}


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(
        connections=[
            Connection(app=ExternalApp.SLACK),
            Connection(app=ExternalApp.SLACK, connection_id="dup"),
            Connection(app=ExternalApp.GITHUB, status="EXPIRED"),
            Connection(app=ExternalApp.GMAIL),
        ],
        tools=[
            {"name": "SLACK_SEND_MESSAGE", "description": "Send", "toolkit": "slack"},
            {"name": "SLACK_SEND_MESSAGE", "description": "Dup", "toolkit": "slack"},
            {"name": "GMAIL_SEND_EMAIL", "description": "Email", "toolkit": "gmail"},
            {"name": "bad name", "toolkit": "slack"},
        ],
    )


class TestGatewayToolSource:
    """Test GatewayToolSource."""

    @pytest.mark.asyncio
    async def test_connected_apps_active_only(self, gateway: FakeGateway) -> None:
        apps = await GatewayToolSource(gateway).connected_apps("ws-1")
        assert apps == [ExternalApp.SLACK, ExternalApp.GMAIL]

    @pytest.mark.asyncio
    async def test_connected_apps_gateway_failure_propagates(self) -> None:
        """Test an outage is not mistaken for a workspace with no connections."""
        with pytest.raises(GatewayConnectionError, match="gateway down"):
            await GatewayToolSource(FakeGateway(fail=True)).connected_apps("ws-1")

    @pytest.mark.asyncio
    async def test_load_tools_filters(self, gateway: FakeGateway) -> None:
        tools = await GatewayToolSource(gateway).load_tools("ws-1", [ExternalApp.SLACK])
        assert [t.name for t in tools] == ["SLACK_SEND_MESSAGE"]
        assert tools[0].description == "Send"

    @pytest.mark.asyncio
    async def test_load_tools_failure_is_empty(self) -> None:
        source = GatewayToolSource(FakeGateway(fail=True))
        assert await source.load_tools("ws-1", [ExternalApp.SLACK]) == []

    @pytest.mark.asyncio
    async def test_register_tools_binds_gateway_backend(self, gateway: FakeGateway) -> None:
        registry = ToolRegistry()
        registry.register(
            ToolDefinition(
                name="GMAIL_SEND_EMAIL",
                description="Already here",
                handler_kind=HandlerKind.READ,
            ),
            GatewayBackend(gateway, "other"),
        )

        registered = await GatewayToolSource(gateway).register_tools(
            registry, "ws-1", [ExternalApp.SLACK, ExternalApp.GMAIL]
        )

        assert [t.name for t in registered] == ["SLACK_SEND_MESSAGE"]
        _, backend = registry.get_tool("SLACK_SEND_MESSAGE")  # type: ignore[misc]
        assert isinstance(backend, GatewayBackend)
        assert backend.entity_id == "workspace_ws-1"


class TestGatewayBackend:
    """Test GatewayBackend primitives."""

    @pytest.mark.asyncio
    async def test_run_action(self, gateway: FakeGateway) -> None:
        backend = GatewayBackend(gateway, "workspace_ws-1")
        assert await backend.run_action("SLACK_SEND_MESSAGE", {"text": "hi"}) == {"ok": True}
        assert gateway.executed == [("workspace_ws-1", "SLACK_SEND_MESSAGE", {"text": "hi"})]

    def test_query_and_mutate_rejected(self, gateway: FakeGateway) -> None:
        backend = GatewayBackend(gateway, "workspace_ws-1")
        with pytest.raises(ToolExecutionError):
            backend.query("SLACK_SEND_MESSAGE", {})
        with pytest.raises(ToolExecutionError):
            backend.mutate("SLACK_SEND_MESSAGE", {})
