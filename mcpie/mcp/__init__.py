"""MCP (Model Context Protocol) implementation with JSON-RPC 2.0."""

from mcpie.mcp.models import (
    JsonRpcRequest,
    JsonRpcResponse,
    JsonRpcError,
    Tool,
    TextContent,
    ToolCallResult,
)
from mcpie.mcp.registry import ToolRegistry, ToolHandler
from mcpie.mcp.results import text_result, error_result, json_result
from mcpie.mcp.errors import (
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
)

__all__ = [
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
    "Tool",
    "TextContent",
    "ToolCallResult",
    "ToolRegistry",
    "ToolHandler",
    "text_result",
    "error_result",
    "json_result",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
]
