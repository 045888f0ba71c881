"""HTTP client used by the bridge to reach the tool host service."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from toolbridge.core.config import config
from toolbridge.core.errors import ToolCallFailed, TransportUnavailable
from toolbridge.models import MCPResponse, ToolList, ToolSchema

logger = logging.getLogger("mcp-toolbridge")


class HostClient:
    """One HTTP round-trip per request; transport problems become ``TransportUnavailable``."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url or config.host_url
        self.timeout = timeout if timeout is not None else config.request_timeout
        self._transport = transport

    async def request(self, method: str, params: Any = None) -> MCPResponse:
        body: dict[str, Any] = {"method": method}
        if params is not None:
            # The host expects params as a JSON-encoded string
            body["params"] = json.dumps(params, ensure_ascii=False)

        try:
            # Loopback traffic must not be routed through proxies from the environment
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, trust_env=False,
            ) as client:
                response = await client.post(self.url, json=body)
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise TransportUnavailable(self.url, f"request timed out ({type(e).__name__})") from e
        except httpx.HTTPStatusError as e:
            raise TransportUnavailable(self.url, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportUnavailable(self.url, str(e) or type(e).__name__) from e

        try:
            return MCPResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise TransportUnavailable(
                self.url, f"invalid response format ({e.error_count()} errors)") from e

    async def list_tools(self) -> list[ToolSchema]:
        response = await self.request("listtools")
        if not response.success:
            raise ToolCallFailed("listtools", response.error)
        try:
            return ToolList.model_validate(response.result or {}).tools
        except ValidationError as e:
            raise TransportUnavailable(self.url, f"invalid tool list ({e.error_count()} errors)") from e

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        response = await self.request("calltool", {"name": name, "arguments": arguments or {}})
        if not response.success:
            raise ToolCallFailed(name, response.error)
        return response.result
