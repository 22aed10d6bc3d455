"""MetaThief API client."""

import logging
from typing import Any

from mcpie.config.loader import get_settings
from mcpie.utils.http import get_json

logger = logging.getLogger(__name__)


class MetaThiefClient:
    """Client for the MetaThief meta tag extraction API."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or get_settings().meta_thief_base_url).rstrip("/")
        self.timeout = timeout

    async def fetch_meta(
        self, url: str, meta: list[str] | None = None
    ) -> tuple[int, Any]:
        """
        Ask MetaThief for the meta tags of a page.

        Args:
            url: Page to inspect.
            meta: Optional tag names to restrict the answer to.

        Returns:
            (status_code, decoded JSON body)
        """
        params = {"url": url}
        if meta:
            params["meta"] = ",".join(meta)

        logger.debug(f"MetaThief lookup for {url}")
        return await get_json(
            f"{self.base_url}/api/meta", params=params, timeout=self.timeout
        )
