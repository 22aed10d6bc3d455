"""Base tool class and decorator for tool registration."""

import functools
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, ClassVar

from pydantic import BaseModel, ValidationError

from mcpie.mcp.models import Tool, ToolCallResult
from mcpie.mcp.results import error_result

ToolFunction = Callable[[dict[str, Any]], Awaitable[ToolCallResult]]


def _clean_schema(node: Any) -> Any:
    """Strip pydantic noise (titles, null branches) from a JSON schema."""
    if isinstance(node, list):
        return [_clean_schema(item) for item in node]
    if not isinstance(node, dict):
        return node

    cleaned: dict[str, Any] = {}
    for key, value in node.items():
        if key == "title":
            continue
        if key == "default" and value is None:
            continue
        if key == "properties" and isinstance(value, dict):
            # Keys here are argument names, not schema keywords
            cleaned[key] = {name: _clean_schema(prop) for name, prop in value.items()}
            continue
        cleaned[key] = _clean_schema(value)

    any_of = cleaned.get("anyOf")
    if isinstance(any_of, list):
        branches = [b for b in any_of if b != {"type": "null"}]
        if len(branches) == 1:
            del cleaned["anyOf"]
            cleaned.update(branches[0])
        else:
            cleaned["anyOf"] = branches
    return cleaned


def describe_validation_error(error: ValidationError) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"].removeprefix("Value error, ")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class BaseTool(ABC):
    """
    Base class for tool implementations.

    A tool is its own handler: ``invoke`` validates the raw argument bag with
    ``arguments_model`` and only then hands a typed model to ``execute``.
    Invalid arguments produce an error result, never an exception.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    arguments_model: ClassVar[type[BaseModel]]

    @property
    def input_schema(self) -> dict[str, Any]:
        schema = _clean_schema(self.arguments_model.model_json_schema())
        schema.setdefault("properties", {})
        schema.setdefault("required", [])
        return schema

    def descriptor(self) -> Tool:
        """Build the MCP descriptor for this tool."""
        return Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema,
        )

    async def invoke(self, arguments: dict[str, Any]) -> ToolCallResult:
        try:
            args = self.arguments_model.model_validate(arguments)
        except ValidationError as e:
            return error_result(
                f"Invalid arguments for {self.name}: {describe_validation_error(e)}"
            )
        return await self.execute(args)

    @abstractmethod
    async def execute(self, args: Any) -> ToolCallResult:
        """Execute the tool with validated arguments."""


class FunctionHandler:
    """Adapts a plain ``async def handler(arguments)`` to the handler interface."""

    def __init__(self, func: ToolFunction):
        self.func = func
        functools.update_wrapper(self, func)

    async def invoke(self, arguments: dict[str, Any]) -> ToolCallResult:
        return await self.func(arguments)


def tool(
    name: str,
    description: str,
    input_schema: dict[str, Any] | None = None,
) -> Callable[[ToolFunction], tuple[Tool, FunctionHandler]]:
    """
    Decorator turning a function into a registrable (descriptor, handler) pair.

    Usage:
        @tool(name="ping", description="Returns pong")
        async def ping(arguments: dict) -> ToolCallResult:
            return text_result("pong")

        registry.register(*ping)
    """
    def decorator(func: ToolFunction) -> tuple[Tool, FunctionHandler]:
        descriptor = Tool(
            name=name,
            description=description,
            inputSchema=input_schema or {"type": "object", "properties": {}},
        )
        return descriptor, FunctionHandler(func)

    return decorator
