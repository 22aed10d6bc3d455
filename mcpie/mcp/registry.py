"""Tool registry for managing MCP tools."""

import importlib
import logging
from typing import Any, Iterable, Protocol, runtime_checkable

from mcpie.mcp.models import Tool, ToolCallResult
from mcpie.mcp.results import error_result

logger = logging.getLogger(__name__)


@runtime_checkable
class ToolHandler(Protocol):
    """Anything that can execute a tool call."""

    async def invoke(self, arguments: dict[str, Any]) -> ToolCallResult:
        ...


@runtime_checkable
class ToolProvider(Protocol):
    """An object that carries its own descriptor and is its own handler."""

    def descriptor(self) -> Tool:
        ...

    async def invoke(self, arguments: dict[str, Any]) -> ToolCallResult:
        ...


class RegistryEntry:
    """A registered tool: its descriptor paired with its handler."""

    __slots__ = ("tool", "handler")

    def __init__(self, tool: Tool, handler: ToolHandler):
        self.tool = tool
        self.handler = handler

    @property
    def name(self) -> str:
        return self.tool.name

    @property
    def description(self) -> str:
        return self.tool.description

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.tool.inputSchema


async def invoke_safely(
    name: str, handler: ToolHandler, arguments: dict[str, Any]
) -> ToolCallResult:
    """
    Run a handler and fold every failure into an error result.

    This is the only place tool exceptions are caught; nothing raised by a
    handler escapes it.
    """
    try:
        result = await handler.invoke(arguments)
    except Exception as e:
        logger.exception(f"Error executing tool {name}")
        return error_result(f"Tool execution error: {e}")

    if not isinstance(result, ToolCallResult):
        logger.error(
            f"Tool {name} returned {type(result).__name__} instead of a ToolCallResult"
        )
        return error_result(f"Tool execution error: {name} returned an invalid result")
    return result


class ToolRegistry:
    """Registry for MCP tools with plugin-style provider loading."""

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}
        self._providers: set[str] = set()

    def register(self, descriptor: Tool, handler: ToolHandler) -> None:
        """
        Register a tool, replacing any tool already registered under the name.

        A replaced tool keeps its position in the listing order.
        """
        if not descriptor.name:
            raise ValueError("Tool name must not be empty")
        if descriptor.name in self._entries:
            logger.warning(f"Tool '{descriptor.name}' already registered, overwriting")
        self._entries[descriptor.name] = RegistryEntry(
            descriptor.model_copy(deep=True), handler
        )
        logger.info(f"Registered tool: {descriptor.name}")

    def register_tool(self, tool: ToolProvider) -> None:
        """Register an object that is both descriptor source and handler."""
        self.register(tool.descriptor(), tool)

    def register_all(
        self, entries: Iterable[ToolProvider | tuple[Tool, ToolHandler]]
    ) -> None:
        """Register entries in order; later duplicates win."""
        for entry in entries:
            if isinstance(entry, tuple):
                self.register(*entry)
            else:
                self.register_tool(entry)

    def get(self, name: str) -> RegistryEntry | None:
        """Get a tool by name."""
        return self._entries.get(name)

    def list_tools(self) -> list[Tool]:
        """
        List all registered tool descriptors in registration order.

        Callers get copies, so editing a listed schema never changes the
        registered one.
        """
        return [entry.tool.model_copy(deep=True) for entry in self._entries.values()]

    async def call_tool(
        self, name: str, arguments: dict[str, Any] | None = None
    ) -> ToolCallResult:
        """Call a tool by name. Always returns a result envelope."""
        entry = self.get(name)
        if entry is None:
            return error_result(f"Unknown tool: {name}")
        return await invoke_safely(name, entry.handler, arguments or {})

    def load_provider(self, provider_name: str) -> bool:
        """
        Load a provider module and register its tools.

        Providers live in mcpie/tools/<provider_name>/ and expose a
        register_tools(registry) function.
        """
        if provider_name in self._providers:
            logger.debug(f"Provider '{provider_name}' already loaded")
            return True

        module_path = f"mcpie.tools.{provider_name}.tools"
        try:
            module = importlib.import_module(module_path)
        except ImportError as e:
            logger.warning(f"Could not import provider '{provider_name}': {e}")
            return False

        register_tools = getattr(module, "register_tools", None)
        if register_tools is None:
            logger.warning(f"Provider '{provider_name}' has no register_tools function")
            return False

        try:
            register_tools(self)
        except Exception:
            logger.exception(f"Error loading provider '{provider_name}'")
            return False

        self._providers.add(provider_name)
        logger.info(f"Loaded provider: {provider_name}")
        return True

    def load_providers(self, provider_names: Iterable[str]) -> dict[str, bool]:
        """Load multiple providers, returning success status for each."""
        return {name: self.load_provider(name) for name in provider_names}

    @property
    def tool_names(self) -> list[str]:
        return list(self._entries)

    @property
    def tool_count(self) -> int:
        """Return the number of registered tools."""
        return len(self._entries)

    @property
    def provider_count(self) -> int:
        """Return the number of loaded providers."""
        return len(self._providers)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)
