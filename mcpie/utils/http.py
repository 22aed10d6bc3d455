"""HTTP client utilities with retry and timeout handling.

Clients are created per call and closed when the call finishes; nothing is
pooled or cached across tool invocations.
"""

import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mcpie.config.loader import get_settings

logger = logging.getLogger(__name__)


def create_http_client(
    timeout: float | None = None,
    base_url: str | None = None,
) -> httpx.AsyncClient:
    """
    Create an async HTTP client with sensible defaults.

    Args:
        timeout: Request timeout in seconds. Uses default from settings if None.
        base_url: Optional base URL for all requests.

    Returns:
        Configured httpx.AsyncClient instance. Use it as an async context
        manager so the connection is released on every exit path.
    """
    settings = get_settings()

    if timeout is None:
        timeout = float(settings.default_timeout)

    return httpx.AsyncClient(
        base_url=base_url or "",
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={
            "User-Agent": f"{settings.server_name}/{settings.server_version}",
            "Accept": "application/json",
        },
    )


# Retry decorator for HTTP requests
http_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
    reraise=True,
)


@http_retry
async def get_json(
    url: str,
    params: dict[str, Any] | None = None,
    timeout: float | None = None,
) -> tuple[int, Any]:
    """
    GET a URL and decode its JSON body.

    Unlike a raise_for_status() helper this hands back the status code so the
    caller can turn non-2xx answers into its own error messages.

    Returns:
        (status_code, parsed JSON or None when the body is not JSON)

    Raises:
        httpx.TransportError: On connection problems, after retries.
    """
    async with create_http_client(timeout=timeout) as client:
        response = await client.get(url, params=params)

    try:
        data = response.json()
    except ValueError:
        logger.debug(f"Non-JSON response from {url} (status {response.status_code})")
        data = None
    return response.status_code, data
