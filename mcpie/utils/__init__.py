"""Utility modules: logging, HTTP client."""

from mcpie.utils.logging import setup_logging, get_logger
from mcpie.utils.http import create_http_client, get_json

__all__ = [
    "setup_logging",
    "get_logger",
    "create_http_client",
    "get_json",
]
