"""ReadPo poster tools."""

from urllib.parse import quote

from pydantic import BaseModel, Field, field_validator

from mcpie.config.loader import get_settings
from mcpie.mcp.models import ToolCallResult
from mcpie.mcp.registry import ToolRegistry
from mcpie.mcp.results import text_result
from mcpie.tools.base import BaseTool

# Characters JavaScript's encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def poster_url(markdown: str, base_url: str | None = None) -> str:
    """Build the ReadPo image link for a Markdown document."""
    base_url = (base_url or get_settings().readpo_base_url).rstrip("/")
    return f"{base_url}/p/{quote(markdown, safe=_URI_COMPONENT_SAFE)}"


class ReadpoPosterArguments(BaseModel):
    markdown: str = Field(..., description="Markdown content to render as a poster")

    @field_validator("markdown")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Please provide the Markdown content to render as a poster")
        return value


class ReadpoPosterTool(BaseTool):
    name = "readpo-poster"
    description = (
        "Render Markdown content as a poster image and return the direct image "
        "link (https://readpo.com/p/<markdown>)."
    )
    arguments_model = ReadpoPosterArguments

    async def execute(self, args: ReadpoPosterArguments) -> ToolCallResult:
        return text_result(poster_url(args.markdown))


def register_tools(registry: ToolRegistry) -> None:
    """Register ReadPo tools with the registry."""
    registry.register_tool(ReadpoPosterTool())
