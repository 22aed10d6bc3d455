"""Meta tag provider tools."""

import logging
import re

import httpx
from pydantic import BaseModel, Field, field_validator

from mcpie.mcp.models import ToolCallResult
from mcpie.mcp.registry import ToolRegistry
from mcpie.mcp.results import error_result, json_result
from mcpie.security.urls import UnsafeURLError, ensure_public_url
from mcpie.tools.base import BaseTool
from mcpie.tools.metatags.client import MetaThiefClient

logger = logging.getLogger(__name__)

SUPPORTED_META = [
    "language", "charset", "viewport", "title", "description", "keywords",
    "favicon", "author", "generator", "theme", "canonical",
    "ogUrl", "ogTitle", "ogSiteName", "ogDescription", "ogImage", "ogImageAlt", "ogType",
    "twitterSite", "twitterCard", "twitterTitle", "twitterCreator",
    "twitterDescription", "twitterImage", "robots", "icons",
]

_HTTP_URL = re.compile(r"^https?://.+", re.IGNORECASE)


class FetchMetaTagsArguments(BaseModel):
    url: str = Field(
        ...,
        description="Full URL of the page to inspect, e.g. https://example.com",
    )
    meta: list[str] = Field(
        default_factory=list,
        description=(
            "Optional list of meta tag names to return, from: "
            + ", ".join(SUPPORTED_META)
            + ". Omit to return every supported tag."
        ),
    )

    @field_validator("url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        value = value.strip()
        if not _HTTP_URL.match(value):
            raise ValueError("Please provide a valid URL starting with http:// or https://")
        return value

    @field_validator("meta")
    @classmethod
    def _drop_blank(cls, value: list[str]) -> list[str]:
        return [name.strip() for name in value if name.strip()]


class FetchMetaTagsTool(BaseTool):
    """Fetch a page's meta information (title, description, OpenGraph, Twitter...)."""

    name = "fetch-meta-tags"
    description = (
        "Fetch the meta information of a web page: title, description, favicon, "
        "OpenGraph, Twitter card tags and more."
    )
    arguments_model = FetchMetaTagsArguments

    def __init__(self, client: MetaThiefClient | None = None):
        self.client = client or MetaThiefClient()

    async def execute(self, args: FetchMetaTagsArguments) -> ToolCallResult:
        try:
            url = ensure_public_url(args.url)
        except UnsafeURLError as e:
            return error_result(f"Refusing to fetch meta tags: {e}")

        try:
            status, data = await self.client.fetch_meta(url, args.meta)
        except httpx.HTTPError as e:
            logger.warning(f"MetaThief request for {url} failed: {e!r}")
            return error_result(f"Error fetching meta tags: {str(e) or type(e).__name__}")

        if not 200 <= status < 300:
            return error_result(f"MetaThief API request failed with status {status}")

        if not isinstance(data, dict):
            return error_result("MetaThief API returned an unexpected response")

        if "error" in data:
            message = f"MetaThief API error: {data.get('error') or ''}"
            if data.get("message"):
                message += f" - {data['message']}"
            return error_result(message)

        return json_result(data)


def register_tools(registry: ToolRegistry) -> None:
    """Register meta tag tools with the registry."""
    registry.register_tool(FetchMetaTagsTool())
