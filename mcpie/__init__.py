"""MCPie - a modular MCP tool server."""

__version__ = "1.0.0"
