"""MCP method handlers for JSON-RPC requests."""

import logging
from typing import Any

from pydantic import ValidationError

from mcpie.config.loader import Settings
from mcpie.mcp.errors import INTERNAL_ERROR, METHOD_NOT_FOUND, make_error_data
from mcpie.mcp.models import (
    Capabilities,
    InitializeParams,
    InitializeResult,
    ServerInfo,
    ToolCallParams,
    ToolsListResult,
)
from mcpie.mcp.registry import ToolRegistry
from mcpie.mcp.results import error_result

logger = logging.getLogger(__name__)

# MCP protocol version we support
PROTOCOL_VERSION = "2024-11-05"


class MCPHandlers:
    """Handlers for MCP protocol methods."""

    def __init__(self, registry: ToolRegistry, settings: Settings):
        self.registry = registry
        self.settings = settings

    async def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle the initialize request."""
        try:
            init_params = InitializeParams(**params)
            logger.info(
                f"Initialize from {init_params.clientInfo.name} "
                f"{init_params.clientInfo.version} ({init_params.protocolVersion})"
            )
        except ValidationError as e:
            # Still proceed with defaults
            logger.warning(f"Invalid initialize params: {e}")

        result = InitializeResult(
            protocolVersion=PROTOCOL_VERSION,
            capabilities=Capabilities(tools={"listChanged": False}),
            serverInfo=ServerInfo(
                name=self.settings.server_name,
                version=self.settings.server_version,
            ),
            instructions=self.settings.server_description,
        )
        return result.model_dump(exclude_none=True)

    async def handle_initialized(self, params: dict[str, Any]) -> None:
        """Handle the notifications/initialized notification (no response)."""
        logger.info("Client confirmed initialization")
        return None

    async def handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle the tools/list request."""
        result = ToolsListResult(tools=self.registry.list_tools())
        return result.model_dump()

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle the tools/call request. Tool failures stay inside the result."""
        try:
            call_params = ToolCallParams(**params)
        except ValidationError as e:
            logger.warning(f"Invalid tools/call params: {e}")
            return error_result(f"Invalid parameters: {e}").model_dump()

        logger.info(f"Calling tool: {call_params.name}")
        result = await self.registry.call_tool(
            call_params.name, call_params.arguments or {}
        )
        return result.model_dump()

    async def dispatch(
        self, method: str, params: dict[str, Any]
    ) -> tuple[Any | None, dict[str, Any] | None]:
        """
        Dispatch a method call to the appropriate handler.

        Returns (result, error) tuple. One will be None.
        """
        handlers = {
            "initialize": self.handle_initialize,
            "notifications/initialized": self.handle_initialized,
            "ping": self.handle_ping,
            "tools/list": self.handle_tools_list,
            "tools/call": self.handle_tools_call,
        }

        handler = handlers.get(method)
        if handler is None:
            return None, make_error_data(
                METHOD_NOT_FOUND, f"Method not found: {method}"
            )

        try:
            result = await handler(params)
            return result, None
        except Exception as e:
            logger.exception(f"Error handling method {method}")
            return None, make_error_data(
                INTERNAL_ERROR, f"Error processing request: {str(e)}"
            )
