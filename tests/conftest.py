"""Pytest configuration and fixtures."""

import httpx
import pytest
from fastapi.testclient import TestClient

from mcpie.config.loader import BUILTIN_PROVIDERS, Settings
from mcpie.context import build_context
from mcpie.main import create_app
from mcpie.mcp.registry import ToolRegistry


@pytest.fixture
def settings():
    """Settings independent of any .env file in the working directory."""
    return Settings(_env_file=None, log_format="console")


@pytest.fixture
def context(settings):
    """A server context with every built-in provider loaded."""
    return build_context(settings=settings, providers=BUILTIN_PROVIDERS)


@pytest.fixture
def app(context):
    return create_app(context)


@pytest.fixture
def client(app):
    """Synchronous test client for FastAPI app."""
    return TestClient(app)


@pytest.fixture
async def async_client(app):
    """Async test client for FastAPI app."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def registry():
    """A fresh, empty tool registry."""
    return ToolRegistry()


@pytest.fixture
def mock_http(monkeypatch):
    """
    Route outbound HTTP through an httpx.MockTransport.

    Call the fixture with a handler ``(httpx.Request) -> httpx.Response``.
    The list it returns collects every request that was sent.
    """
    def install(handler):
        sent: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        def create_client(timeout=None, base_url=None):
            return httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))

        monkeypatch.setattr("mcpie.utils.http.create_http_client", create_client)
        return sent

    return install


@pytest.fixture
def sample_jsonrpc_request():
    """Sample JSON-RPC request factory."""
    def _make_request(method: str, params: dict = None, id: int = 1):
        return {
            "jsonrpc": "2.0",
            "id": id,
            "method": method,
            "params": params or {},
        }
    return _make_request
