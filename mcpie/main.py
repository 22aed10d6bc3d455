"""FastAPI MCP Server - Main application entrypoint."""

import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.requests import ClientDisconnect

from mcpie.config.loader import get_settings
from mcpie.context import ServerContext, build_context
from mcpie.mcp.errors import PARSE_ERROR, make_error_data
from mcpie.mcp.handlers import PROTOCOL_VERSION
from mcpie.mcp.transport_sse import create_sse_response
from mcpie.utils.logging import get_logger, set_request_id, setup_logging

logger = logging.getLogger(__name__)

MESSAGE_ENDPOINT = "/message"


def get_context(request: Request) -> ServerContext:
    return request.app.state.context


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    context: ServerContext = app.state.context
    setup_logging(context.settings)
    log = get_logger("startup")

    log.info(
        "Starting MCP server",
        server_name=context.settings.server_name,
        version=context.settings.server_version,
        port=context.settings.port,
        tools=context.registry.tool_names,
    )

    await context.sessions.start_cleanup_task()

    yield

    log.info("Shutting down MCP server", open_sessions=context.sessions.session_count)
    context.sessions.stop_cleanup_task()
    context.sessions.close_all()


async def _handle_message(request: Request, session_id: str | None) -> Response:
    """
    Run one JSON-RPC message.

    Without a session the response only goes back in the HTTP body. With a
    session it is also pushed on that session's SSE stream, unless the
    session closed while the call was running.
    """
    context = get_context(request)

    if session_id is not None and context.sessions.get_session(session_id) is None:
        return PlainTextResponse("Connection not found", status_code=404)

    try:
        body = await request.body()
    except ClientDisconnect as e:
        return JSONResponse(
            content={
                "jsonrpc": "2.0",
                "id": None,
                "error": make_error_data(PARSE_ERROR, f"Could not read request body: {e}"),
            }
        )

    response = await context.processor.handle_message(body)

    if response is None:
        # Notification - no response needed
        return JSONResponse(content={"status": "ok"}, status_code=202)

    response_data = response.model_dump()

    if session_id is not None:
        await context.sessions.deliver(
            session_id, "message", json.dumps(response_data, ensure_ascii=False)
        )

    return JSONResponse(content=response_data)


def create_app(context: ServerContext | None = None) -> FastAPI:
    """Build the FastAPI app around a server context."""
    context = context or build_context()
    settings = context.settings

    app = FastAPI(
        title="MCPie Tool Server",
        description=settings.server_description,
        version=settings.server_version,
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # MCP clients connect from anywhere
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id_middleware(request: Request, call_next):
        """Add request ID to all requests."""
        request_id = set_request_id(request.headers.get("X-Request-ID"))
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    # =========================================================================
    # Health and Info Endpoints
    # =========================================================================

    @app.get("/health")
    async def health() -> dict:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/")
    async def root(request: Request) -> dict:
        """Server info, including the tools on offer."""
        context = get_context(request)
        return {
            "name": context.settings.server_name,
            "version": context.settings.server_version,
            "description": context.settings.server_description,
            "endpoints": {
                "health": "/health",
                "sse": "/sse",
                "message": MESSAGE_ENDPOINT,
                "docs": "/docs",
            },
            "tools": [
                {"name": tool.name, "description": tool.description}
                for tool in context.registry.list_tools()
            ],
            "tools_available": context.registry.tool_count,
            "mcp_protocol_version": PROTOCOL_VERSION,
        }

    # =========================================================================
    # MCP Endpoints
    # =========================================================================

    @app.get("/sse")
    async def sse_endpoint(request: Request):
        """
        SSE endpoint for MCP session establishment.

        The stream first sends an 'endpoint' event with the message URL, then
        every response produced for the session.
        """
        context = get_context(request)
        session = context.sessions.create_session()

        get_logger("sse").info("SSE session created", session_id=session.session_id)

        return await create_sse_response(
            session,
            MESSAGE_ENDPOINT,
            context.sessions,
            keepalive=context.settings.keepalive_seconds,
        )

    @app.post(MESSAGE_ENDPOINT)
    async def message_endpoint(request: Request) -> Response:
        """JSON-RPC requests, optionally tied to a session via ?session_id=."""
        return await _handle_message(request, request.query_params.get("session_id"))

    @app.post(MESSAGE_ENDPOINT + "/{session_id}")
    async def session_message_endpoint(session_id: str, request: Request) -> Response:
        """JSON-RPC requests for the session named in the path."""
        return await _handle_message(request, session_id)

    return app


app = create_app()


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "mcpie.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
