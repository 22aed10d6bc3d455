"""JSON-RPC 2.0 message processing."""

import json
import logging

from pydantic import ValidationError

from mcpie.mcp.errors import INVALID_REQUEST, PARSE_ERROR, make_error_data
from mcpie.mcp.handlers import MCPHandlers
from mcpie.mcp.models import JsonRpcError, JsonRpcRequest, JsonRpcResponse

logger = logging.getLogger(__name__)


class JsonRpcProcessor:
    """Process JSON-RPC 2.0 messages."""

    def __init__(self, handlers: MCPHandlers):
        self.handlers = handlers

    def parse_request(self, raw_data: str | bytes) -> tuple[JsonRpcRequest | None, dict | None]:
        """
        Parse a JSON-RPC request from raw data.

        Returns (request, error) tuple. One will be None.
        """
        try:
            if isinstance(raw_data, bytes):
                raw_data = raw_data.decode("utf-8")
            data = json.loads(raw_data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return None, make_error_data(PARSE_ERROR, f"Invalid JSON: {e}")

        if not isinstance(data, dict):
            return None, make_error_data(
                INVALID_REQUEST, "Invalid JSON-RPC request: expected an object"
            )

        try:
            return JsonRpcRequest(**data), None
        except ValidationError as e:
            return None, make_error_data(
                INVALID_REQUEST, f"Invalid JSON-RPC request: {e}"
            )

    async def process_request(
        self, request: JsonRpcRequest
    ) -> JsonRpcResponse | None:
        """
        Process a validated JSON-RPC request.

        Returns None for notifications (requests without id).
        """
        result, error = await self.handlers.dispatch(request.method, request.params)

        # Notifications don't get responses
        if request.id is None:
            return None

        if error is not None:
            return JsonRpcResponse(id=request.id, error=JsonRpcError(**error))
        return JsonRpcResponse(id=request.id, result=result)

    async def handle_message(self, raw_data: str | bytes) -> JsonRpcResponse | None:
        """
        Handle a raw JSON-RPC message end-to-end.

        Returns a response or None for notifications.
        """
        request, parse_error = self.parse_request(raw_data)

        if parse_error is not None:
            # Parse errors don't have a request id
            return JsonRpcResponse(id=None, error=JsonRpcError(**parse_error))

        return await self.process_request(request)  # type: ignore

    def serialize_response(self, response: JsonRpcResponse) -> str:
        """Serialize a JSON-RPC response to JSON string."""
        return json.dumps(response.model_dump(), ensure_ascii=False)
