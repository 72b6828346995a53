"""HTTP client for the external app gateway.

REST endpoints used (relative to the configured base URL):
- GET  /connections?entity_id=...            -> {"items": [connection, ...]}
- GET  /tools?entity_id=...&toolkits=A,B     -> {"items": [tool schema, ...]}
- POST /tools/{name}/execute                 -> {"successful": bool, "data": ..., "error": ...}

Tool execution is never retried: one attempt per call.
"""

import time
from typing import Any

import httpx

from workspace_assistant.config.settings import get_settings
from workspace_assistant.gateway.types import (
    Connection,
    GatewayConnectionError,
    GatewayError,
    GatewayToolError,
)
from workspace_assistant.telemetry import GATEWAY_ERROR, get_logger
from workspace_assistant.tools.types import ExternalApp

log = get_logger(__name__)


def _parse_connection(item: dict[str, Any]) -> Connection | None:
    toolkit = item.get("toolkit")
    slug = toolkit.get("slug") if isinstance(toolkit, dict) else toolkit
    app = None
    for candidate in (slug, item.get("app_name"), item.get("appName"), item.get("integration_id")):
        if candidate:
            app = ExternalApp.from_str(str(candidate))
            if app is not None:
                break
    if app is None:
        return None
    return Connection(
        app=app,
        status=str(item.get("status", "")),
        connection_id=item.get("id"),
    )


class HttpGatewayClient:
    """ExternalGateway implementation over the gateway's REST API.

    Usage:
        gateway = HttpGatewayClient()
        connections = await gateway.list_connections("workspace_42")
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Gateway base URL (defaults to settings.gateway_base_url).
            api_key: Bearer token (defaults to settings.gateway_api_key).
            timeout_seconds: Request timeout (defaults to settings).
        """
        settings = get_settings()
        self.base_url = (base_url or settings.gateway_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.gateway_api_key
        self.timeout_seconds = timeout_seconds or settings.gateway_timeout_seconds

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.request(
                    method, url, params=params, json=json_body, headers=self._headers()
                )
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            raise self._failed(
                GatewayConnectionError(f"Gateway request timed out: {path}"), method, start_time
            ) from e
        except httpx.ConnectError as e:
            raise self._failed(
                GatewayConnectionError(f"Failed to connect to gateway: {e}"), method, start_time
            ) from e
        except httpx.HTTPStatusError as e:
            raise self._failed(
                GatewayError(f"Gateway HTTP error {e.response.status_code} for {path}"),
                method,
                start_time,
            ) from e
        except httpx.RequestError as e:
            raise self._failed(
                GatewayConnectionError(f"Gateway request error: {e}"), method, start_time
            ) from e
        except ValueError as e:
            raise self._failed(
                GatewayError(f"Gateway returned invalid JSON for {path}"), method, start_time
            ) from e

    def _failed(self, error: GatewayError, method: str, start_time: float) -> GatewayError:
        log.error(
            GATEWAY_ERROR,
            method=method,
            error=str(error),
            error_type=type(error).__name__,
            latency_ms=int((time.time() - start_time) * 1000),
        )
        return error

    async def list_connections(self, entity_id: str) -> list[Connection]:
        """List the entity's connections, skipping apps the assistant does not support."""
        data = await self._request("GET", "/connections", params={"entity_id": entity_id})
        items = data.get("items", []) if isinstance(data, dict) else []
        connections = []
        for item in items:
            if isinstance(item, dict):
                connection = _parse_connection(item)
                if connection is not None:
                    connections.append(connection)
        return connections

    async def list_tools(self, entity_id: str, apps: list[ExternalApp]) -> list[dict[str, Any]]:
        """List raw tool schemas for the given apps."""
        if not apps:
            return []
        data = await self._request(
            "GET",
            "/tools",
            params={"entity_id": entity_id, "toolkits": ",".join(app.value for app in apps)},
        )
        items = data.get("items", []) if isinstance(data, dict) else data
        return [item for item in items or [] if isinstance(item, dict)]

    async def execute_tool(
        self, entity_id: str, tool_name: str, arguments: dict[str, Any]
    ) -> Any:
        """Execute one tool.

        Returns:
            The "data" field of the gateway response.

        Raises:
            GatewayToolError: If the gateway reports the execution failed.
            GatewayError: If the request itself fails.
        """
        data = await self._request(
            "POST",
            f"/tools/{tool_name}/execute",
            json_body={"entity_id": entity_id, "arguments": arguments},
        )
        if not isinstance(data, dict):
            return data
        if data.get("successful") is False or data.get("error"):
            raise GatewayToolError(str(data.get("error") or f"Tool '{tool_name}' failed"))
        return data.get("data")
