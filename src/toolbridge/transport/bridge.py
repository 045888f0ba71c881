"""
Stdio MCP bridge: answers tools/list and tools/call by forwarding them to the host service.
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from toolbridge.core.config import config
from toolbridge.core.errors import InvalidArgument, ToolBridgeError
from toolbridge.core.logging_setup import setup_logging
from toolbridge.transport.host_client import HostClient

logger = logging.getLogger("mcp-toolbridge")


def result_text(result: Any) -> str:
    """Strings pass through untouched; anything else is sent as JSON text."""
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False)


class ToolBridge:
    """Protocol translator between an MCP client on stdio and the HTTP host.

    Holds no tool logic of its own. A failing request only affects its own
    response: listing degrades to an empty list, calls come back as errors.
    """

    def __init__(self, client: HostClient | None = None, name: str | None = None) -> None:
        self.client = client or HostClient()
        self.server = Server(name or config.bridge_name, version=config.bridge_version)
        self.server.list_tools()(self.list_tools)
        # Schemas use "<T>[]" type strings, so the SDK must not validate against them
        self.server.call_tool(validate_input=False)(self.call_tool)

    async def list_tools(self) -> list[types.Tool]:
        try:
            tools = await self.client.list_tools()
        except Exception as e:
            logger.error(f"Error listing tools from host service: {e}")
            return []
        return [
            types.Tool(
                name=t.name,
                description=t.description,
                inputSchema=t.inputSchema.model_dump(mode="json", exclude_none=True),
            )
            for t in tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> list[types.TextContent]:
        if not name or not name.strip():
            raise InvalidArgument(name or "", None, "tool name is required but was empty")
        logger.info(f"Calling tool: {name}")
        try:
            result = await self.client.call_tool(name, arguments or {})
        except ToolBridgeError as e:
            logger.warning(str(e))
            raise
        return [types.TextContent(type="text", text=result_text(result))]

    async def run_stdio(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream, write_stream, self.server.create_initialization_options())


def main() -> None:
    """Entry point for MCP client configurations."""
    parser = argparse.ArgumentParser(
        description="Stdio MCP bridge for the tool host service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  TOOLBRIDGE_URL         Host service URL (default http://127.0.0.1:8080/mcp/)
  TOOLBRIDGE_LOG_LEVEL   Log level for stderr and the log file
        """
    )
    parser.add_argument("--url", type=str, default=None,
                        help="Host service URL; overrides TOOLBRIDGE_URL")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds to wait for each host service response")
    args = parser.parse_args()

    config.apply_env()
    setup_logging(config, "toolbridge_bridge.log")
    bridge = ToolBridge(HostClient(url=args.url, timeout=args.timeout))
    logger.info(f"Bridge forwarding to {bridge.client.url}")
    asyncio.run(bridge.run_stdio())


if __name__ == "__main__":
    main()
