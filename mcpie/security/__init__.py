"""Security helpers for outbound requests."""

from mcpie.security.urls import UnsafeURLError, check_url, ensure_public_url

__all__ = ["UnsafeURLError", "check_url", "ensure_public_url"]
