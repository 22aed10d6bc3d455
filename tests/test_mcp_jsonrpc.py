"""Tests for MCP JSON-RPC protocol handling."""

import json

import pytest
from fastapi.testclient import TestClient

from mcpie.mcp.errors import INTERNAL_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND, PARSE_ERROR
from mcpie.mcp.results import text_result
from mcpie.tools.base import tool


@pytest.fixture
def failing_tool(context):
    """Register a tool whose handler always raises."""
    @tool(name="always-fails", description="Raises on every call")
    async def always_fails(arguments):
        raise RuntimeError("upstream exploded")

    context.registry.register(*always_fails)
    return always_fails


class TestJsonRpcParsing:
    """Tests for JSON-RPC message parsing."""

    def test_invalid_json_returns_parse_error(self, client: TestClient):
        """Test that invalid JSON returns parse error."""
        response = client.post(
            "/message",
            content="not valid json{",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["jsonrpc"] == "2.0"
        assert data["id"] is None
        assert data["error"]["code"] == PARSE_ERROR
        assert "invalid json" in data["error"]["message"].lower()

    def test_non_object_returns_invalid_request(self, client: TestClient):
        response = client.post("/message", json=[1, 2, 3])
        assert response.json()["error"]["code"] == INVALID_REQUEST

    def test_wrong_jsonrpc_version_returns_invalid_request(self, client: TestClient):
        """Test that wrong jsonrpc version returns invalid request."""
        response = client.post(
            "/message",
            json={"jsonrpc": "1.0", "id": 1, "method": "test"},
        )
        assert response.status_code == 200
        assert response.json()["error"]["code"] == INVALID_REQUEST


class TestMcpMethods:
    """Tests for MCP protocol methods."""

    def test_unknown_method_returns_not_found(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test that unknown method returns method not found."""
        response = client.post("/message", json=sample_jsonrpc_request("unknown/method"))
        assert response.status_code == 200

        data = response.json()
        assert data["error"]["code"] == METHOD_NOT_FOUND
        assert "not found" in data["error"]["message"].lower()

    def test_initialize_returns_capabilities(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test that initialize returns server capabilities."""
        response = client.post(
            "/message",
            json=sample_jsonrpc_request(
                "initialize",
                {
                    "protocolVersion": "2024-11-05",
                    "capabilities": {},
                    "clientInfo": {"name": "test", "version": "1.0"},
                },
            ),
        )
        data = response.json()
        assert data["result"]["protocolVersion"] == "2024-11-05"
        assert "tools" in data["result"]["capabilities"]
        assert data["result"]["serverInfo"]["name"] == "mcpie"

    def test_initialize_tolerates_missing_client_info(
        self, client: TestClient, sample_jsonrpc_request
    ):
        response = client.post("/message", json=sample_jsonrpc_request("initialize"))
        assert response.json()["result"]["protocolVersion"] == "2024-11-05"

    def test_ping(self, client: TestClient, sample_jsonrpc_request):
        response = client.post("/message", json=sample_jsonrpc_request("ping"))
        assert response.json()["result"] == {}

    def test_tools_list_returns_tools(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test that tools/list returns available tools in registration order."""
        response = client.post("/message", json=sample_jsonrpc_request("tools/list"))
        data = response.json()

        tool_names = [t["name"] for t in data["result"]["tools"]]
        assert tool_names == ["fetch-meta-tags", "readpo-poster", "format-date", "text-stats"]

    def test_tools_list_tool_has_required_fields(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test that listed tools have all required fields."""
        response = client.post("/message", json=sample_jsonrpc_request("tools/list"))

        for listed in response.json()["result"]["tools"]:
            assert listed["name"]
            assert listed["description"]
            assert listed["inputSchema"]["type"] == "object"
            assert isinstance(listed["inputSchema"]["properties"], dict)

    def test_tools_call_text_stats(
        self, client: TestClient, sample_jsonrpc_request
    ):
        response = client.post(
            "/message",
            json=sample_jsonrpc_request(
                "tools/call",
                {"name": "text-stats", "arguments": {"text": "a a b"}},
            ),
        )
        result = response.json()["result"]
        assert result["isError"] is False
        assert len(result["content"]) == 1
        assert result["content"][0]["type"] == "text"

        stats = json.loads(result["content"][0]["text"])
        assert stats["characters"] == 5
        assert stats["words"] == 3
        assert stats["lines"] == 1

    def test_tools_call_format_date(
        self, client: TestClient, sample_jsonrpc_request
    ):
        response = client.post(
            "/message",
            json=sample_jsonrpc_request(
                "tools/call",
                {
                    "name": "format-date",
                    "arguments": {"format": "YYYY-MM-DD", "timestamp": 1704412800},
                },
            ),
        )
        result = response.json()["result"]
        assert result["isError"] is False
        assert result["content"][0]["text"] == "2024-01-05"

    def test_tools_call_without_arguments(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """A missing arguments object is treated as empty; validation reports it."""
        response = client.post(
            "/message",
            json=sample_jsonrpc_request("tools/call", {"name": "text-stats"}),
        )
        result = response.json()["result"]
        assert result["isError"] is True
        assert "text" in result["content"][0]["text"]

    def test_tools_call_unknown_tool(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test calling an unknown tool returns an error result, not an RPC error."""
        response = client.post(
            "/message",
            json=sample_jsonrpc_request(
                "tools/call",
                {"name": "unknown-tool", "arguments": {}},
            ),
        )
        data = response.json()
        assert "error" not in data
        assert data["result"]["isError"] is True
        assert "unknown-tool" in data["result"]["content"][0]["text"]

    def test_tools_call_missing_name(
        self, client: TestClient, sample_jsonrpc_request
    ):
        response = client.post(
            "/message",
            json=sample_jsonrpc_request("tools/call", {"arguments": {}}),
        )
        result = response.json()["result"]
        assert result["isError"] is True
        assert "invalid parameters" in result["content"][0]["text"].lower()

    def test_failing_tool_is_isolated(
        self, client: TestClient, sample_jsonrpc_request, failing_tool
    ):
        """A raising handler yields an error result and other tools keep working."""
        response = client.post(
            "/message",
            json=sample_jsonrpc_request(
                "tools/call", {"name": "always-fails", "arguments": {}}
            ),
        )
        result = response.json()["result"]
        assert result["isError"] is True
        assert "upstream exploded" in result["content"][0]["text"]

        response = client.post(
            "/message",
            json=sample_jsonrpc_request(
                "tools/call",
                {"name": "readpo-poster", "arguments": {"markdown": "# Hi"}},
                id=2,
            ),
        )
        result = response.json()["result"]
        assert result["isError"] is False
        assert result["content"][0]["text"] == "https://readpo.com/p/%23%20Hi"

    def test_unexpected_failure_is_internal_error(
        self, client: TestClient, context, monkeypatch, sample_jsonrpc_request
    ):
        def broken():
            raise RuntimeError("internal bug")

        monkeypatch.setattr(context.registry, "list_tools", broken)

        response = client.post("/message", json=sample_jsonrpc_request("tools/list"))

        error = response.json()["error"]
        assert error["code"] == INTERNAL_ERROR
        assert "internal bug" in error["message"]

    def test_notification_returns_accepted(self, client: TestClient):
        """Test that notifications (no id) return 202 Accepted."""
        response = client.post(
            "/message",
            json={"jsonrpc": "2.0", "method": "notifications/initialized"},
        )
        assert response.status_code == 202


class TestResponseFormat:
    """Tests for JSON-RPC response format compliance."""

    def test_response_has_matching_id(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test that response id matches request id."""
        response = client.post("/message", json=sample_jsonrpc_request("tools/list", id=42))
        data = response.json()
        assert data["jsonrpc"] == "2.0"
        assert data["id"] == 42

    def test_string_ids_are_preserved(self, client: TestClient, sample_jsonrpc_request):
        response = client.post(
            "/message", json=sample_jsonrpc_request("tools/list", id="req-7")
        )
        assert response.json()["id"] == "req-7"

    def test_success_response_has_result(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test that successful responses have result field."""
        data = client.post("/message", json=sample_jsonrpc_request("tools/list")).json()
        assert "result" in data
        assert "error" not in data

    def test_error_response_has_error(
        self, client: TestClient, sample_jsonrpc_request
    ):
        """Test that error responses have error field."""
        data = client.post("/message", json=sample_jsonrpc_request("unknown/method")).json()
        assert "result" not in data
        assert data["error"]["code"] is not None
        assert data["error"]["message"] is not None


class TestRegisteredAtRuntime:
    def test_tool_registered_on_context_is_callable(
        self, client: TestClient, context, sample_jsonrpc_request
    ):
        @tool(name="hello", description="Says hello")
        async def hello(arguments):
            return text_result(f"hello {arguments.get('who', 'world')}")

        context.registry.register(*hello)

        response = client.post(
            "/message",
            json=sample_jsonrpc_request(
                "tools/call", {"name": "hello", "arguments": {"who": "mcp"}}
            ),
        )
        assert response.json()["result"]["content"][0]["text"] == "hello mcp"
