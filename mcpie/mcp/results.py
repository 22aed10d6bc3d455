"""Result envelope construction.

Every tool invocation, successful or not, ends up as a ``ToolCallResult``
holding exactly one text block. Structured payloads are serialized to JSON
inside that block.
"""

import json
from typing import Any

from mcpie.mcp.models import TextContent, ToolCallResult


def text_result(text: str, is_error: bool = False) -> ToolCallResult:
    """Wrap plain text in a result envelope."""
    return ToolCallResult(content=[TextContent(text=text)], isError=is_error)


def error_result(message: str) -> ToolCallResult:
    """Build an error envelope carrying ``message``."""
    return text_result(message, is_error=True)


def json_result(data: Any) -> ToolCallResult:
    """Serialize ``data`` as indented JSON inside a single text block."""
    return text_result(json.dumps(data, indent=2, ensure_ascii=False))
