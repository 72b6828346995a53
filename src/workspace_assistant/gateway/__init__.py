"""External app gateway: connections, remote tool discovery and execution."""

from workspace_assistant.gateway.adapter import GatewayBackend, GatewayToolSource
from workspace_assistant.gateway.client import HttpGatewayClient
from workspace_assistant.gateway.types import (
    Connection,
    ExternalGateway,
    GatewayConnectionError,
    GatewayError,
    GatewayToolError,
    entity_id_for_workspace,
    remote_tool_to_definition,
)

__all__ = [
    "Connection",
    "ExternalGateway",
    "GatewayBackend",
    "GatewayConnectionError",
    "GatewayError",
    "GatewayToolError",
    "GatewayToolSource",
    "HttpGatewayClient",
    "entity_id_for_workspace",
    "remote_tool_to_definition",
]
