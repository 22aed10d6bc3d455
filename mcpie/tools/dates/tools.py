"""Date formatting tools."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from mcpie.mcp.models import ToolCallResult
from mcpie.mcp.registry import ToolRegistry
from mcpie.mcp.results import error_result, text_result
from mcpie.tools.base import BaseTool
from mcpie.tools.dates.formatting import format_datetime, parse_timestamp, resolve_timezone

DEFAULT_PATTERN = "YYYY-MM-DD HH:mm:ss"


class FormatDateArguments(BaseModel):
    format: str = Field(
        DEFAULT_PATTERN,
        description=(
            "Output pattern using tokens YYYY YY MMMM MMM MM M DD D dddd ddd "
            "HH H hh h mm m ss s SSS A a Z ZZ; wrap literal text in [brackets]"
        ),
    )
    timestamp: int | float | str | None = Field(
        None,
        description=(
            "Unix timestamp in seconds (or milliseconds for 13-digit values), "
            "or an ISO 8601 date string. Defaults to the current time."
        ),
    )
    timezone: str = Field("UTC", description="IANA time zone name, e.g. Asia/Shanghai")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _not_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("Timestamp must be a number or an ISO 8601 string")
        return value

    @field_validator("format")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Format pattern must not be empty")
        return value


class FormatDateTool(BaseTool):
    name = "format-date"
    description = (
        "Format a date/time with a pattern such as YYYY-MM-DD or "
        "dddd, MMMM D YYYY HH:mm, in any time zone."
    )
    arguments_model = FormatDateArguments

    async def execute(self, args: FormatDateArguments) -> ToolCallResult:
        try:
            tz = resolve_timezone(args.timezone)
            moment = parse_timestamp(args.timestamp, tz)
        except ValueError as e:
            return error_result(str(e))

        return text_result(format_datetime(moment, args.format))


def register_tools(registry: ToolRegistry) -> None:
    """Register date tools with the registry."""
    registry.register_tool(FormatDateTool())
