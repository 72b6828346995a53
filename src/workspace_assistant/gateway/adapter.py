"""Gateway adapter for the tool execution layer.

Discovers a workspace's connected apps and their tools through the gateway,
converts them into ToolDefinitions and registers them with a per-turn
ToolRegistry, bound to a backend that executes them through the gateway.
"""

from typing import Any

from workspace_assistant.gateway.types import (
    ExternalGateway,
    GatewayError,
    entity_id_for_workspace,
    remote_tool_to_definition,
)
from workspace_assistant.telemetry import GATEWAY_ERROR, GATEWAY_TOOLS_LOADED, get_logger
from workspace_assistant.tools.dispatch import ToolExecutionError
from workspace_assistant.tools.registry import ToolRegistry
from workspace_assistant.tools.types import ExternalApp, ToolDefinition

log = get_logger(__name__)


class GatewayBackend:
    """Invocation backend running external tools for one gateway entity.

    External tools are always ASYNC_ACTION tools; query and mutate are not
    available through the gateway.
    """

    def __init__(self, gateway: ExternalGateway, entity_id: str) -> None:
        self.gateway = gateway
        self.entity_id = entity_id

    def query(self, handler: str, arguments: dict[str, Any]) -> Any:
        raise ToolExecutionError(f"External tool '{handler}' does not support read dispatch")

    def mutate(self, handler: str, arguments: dict[str, Any]) -> Any:
        raise ToolExecutionError(f"External tool '{handler}' does not support write dispatch")

    async def run_action(self, handler: str, arguments: dict[str, Any]) -> Any:
        return await self.gateway.execute_tool(self.entity_id, handler, arguments)


class GatewayToolSource:
    """Loads external tools for a workspace from the gateway.

    Usage:
        source = GatewayToolSource(HttpGatewayClient())
        apps = await source.connected_apps(workspace_id)
        tools = await source.register_tools(registry, workspace_id, apps)
    """

    def __init__(self, gateway: ExternalGateway) -> None:
        """Initialize the source.

        Args:
            gateway: Gateway client.
        """
        self.gateway = gateway

    async def connected_apps(self, workspace_id: str) -> list[ExternalApp]:
        """Apps with an active connection for the workspace.

        Raises:
            GatewayError: When the gateway cannot list connections. The
                caller decides whether the turn can go on without it.
        """
        entity_id = entity_id_for_workspace(workspace_id)
        try:
            connections = await self.gateway.list_connections(entity_id)
        except GatewayError as e:
            log.warning(GATEWAY_ERROR, stage="list_connections", entity_id=entity_id, error=str(e))
            raise

        apps: list[ExternalApp] = []
        for connection in connections:
            if connection.is_active and connection.app not in apps:
                apps.append(connection.app)
        return apps

    async def load_tools(self, workspace_id: str, apps: list[ExternalApp]) -> list[ToolDefinition]:
        """Fetch and convert the tools of some apps.

        Invalid tools are skipped; duplicate names keep the first occurrence.
        """
        if not apps:
            return []
        entity_id = entity_id_for_workspace(workspace_id)
        try:
            raw_tools = await self.gateway.list_tools(entity_id, apps)
        except GatewayError as e:
            log.warning(GATEWAY_ERROR, stage="list_tools", entity_id=entity_id, error=str(e))
            return []

        wanted = set(apps)
        tools: list[ToolDefinition] = []
        seen: set[str] = set()
        for raw_tool in raw_tools:
            tool_def = remote_tool_to_definition(raw_tool)
            if tool_def is None or tool_def.name in seen or tool_def.external_app not in wanted:
                continue
            seen.add(tool_def.name)
            tools.append(tool_def)

        log.info(
            GATEWAY_TOOLS_LOADED,
            entity_id=entity_id,
            apps=[app.value for app in apps],
            raw_count=len(raw_tools),
            tools_count=len(tools),
        )
        return tools

    async def register_tools(
        self, registry: ToolRegistry, workspace_id: str, apps: list[ExternalApp]
    ) -> list[ToolDefinition]:
        """Load tools for some apps and register them, bound to the gateway.

        Returns:
            The definitions that were registered.
        """
        tools = await self.load_tools(workspace_id, apps)
        backend = GatewayBackend(self.gateway, entity_id_for_workspace(workspace_id))
        registered = []
        for tool_def in tools:
            if tool_def.name in registry:
                log.warning("tool_registration_skipped", tool_name=tool_def.name, reason="duplicate")
                continue
            registry.register(tool_def, backend)
            registered.append(tool_def)
        return registered
