"""Process-lifetime server context.

The registry and the session map live here instead of in module globals so
every app instance (and every test) gets its own.
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable

from mcpie.config.loader import Settings, get_enabled_providers, get_settings
from mcpie.mcp.handlers import MCPHandlers
from mcpie.mcp.jsonrpc import JsonRpcProcessor
from mcpie.mcp.registry import ToolRegistry
from mcpie.mcp.transport_sse import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class ServerContext:
    """Everything a running server shares between requests."""

    settings: Settings
    registry: ToolRegistry = field(default_factory=ToolRegistry)
    sessions: SessionManager = field(default_factory=SessionManager)

    def __post_init__(self) -> None:
        self.processor = JsonRpcProcessor(MCPHandlers(self.registry, self.settings))


def build_context(
    settings: Settings | None = None,
    providers: Iterable[str] | None = None,
) -> ServerContext:
    """
    Create a context and register the enabled tool providers.

    Args:
        settings: Settings to use; the cached environment settings by default.
        providers: Provider names to load; read from the tools config by default.
    """
    settings = settings or get_settings()
    context = ServerContext(
        settings=settings,
        sessions=SessionManager(
            session_timeout=timedelta(seconds=settings.session_timeout_seconds)
        ),
    )

    names = list(providers) if providers is not None else get_enabled_providers()
    results = context.registry.load_providers(names)
    failed = [name for name, ok in results.items() if not ok]
    if failed:
        logger.warning(f"Failed to load providers: {', '.join(failed)}")

    logger.info(
        f"Tool registry ready with {context.registry.tool_count} tools "
        f"from {context.registry.provider_count} providers"
    )
    return context
