"""Checks for URLs that tools forward to upstream services.

Only public http(s) URLs are passed on; loopback, private, link-local and
otherwise reserved addresses are refused.
"""

import ipaddress
import logging
import re
import socket
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class UnsafeURLError(ValueError):
    """Raised when a URL points somewhere a tool must not send requests."""


ALLOWED_SCHEMES = ("http", "https")

BLOCKED_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "metadata",
    "metadata.google.internal",
}

# Shorthand IPv4 forms such as 2130706433, 0x7f.1 or 127.1
_LEGACY_IPV4 = re.compile(r"^(0x[0-9a-f]+|\d+)(\.(0x[0-9a-f]+|\d+)){0,3}$", re.IGNORECASE)


def is_ip_blocked(ip_str: str) -> bool:
    """Check whether a literal IP address is non-public."""
    try:
        ip = ipaddress.ip_address(ip_str)
    except ValueError:
        return False
    return not ip.is_global or ip.is_multicast


def check_url(url: str) -> tuple[bool, str]:
    """
    Check if a URL is a public http(s) URL.

    No DNS lookups are made; only the literal host is inspected. Shorthand
    IPv4 hosts (integer, hex, octal or short dotted) are expanded first.

    Returns:
        Tuple of (is_safe, reason).
    """
    try:
        parsed = urlparse(url.strip())
    except ValueError as e:
        return False, f"Invalid URL: {e}"

    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        return False, f"Invalid scheme: {parsed.scheme or '(none)'}. Only http/https allowed."

    try:
        hostname = parsed.hostname
    except ValueError as e:
        return False, f"Invalid URL: {e}"
    if not hostname:
        return False, "No hostname in URL"

    if hostname.lower().rstrip(".") in BLOCKED_HOSTNAMES:
        return False, f"Blocked hostname: {hostname}"

    host = hostname.rstrip(".")
    if _LEGACY_IPV4.match(host):
        # Resolvers read these as IPv4, e.g. 2130706433 is 127.0.0.1
        try:
            host = socket.inet_ntoa(socket.inet_aton(host))
        except OSError:
            return False, f"Invalid IP address: {hostname}"

    if is_ip_blocked(host):
        return False, f"Blocked IP address: {hostname}"

    return True, "URL is safe"


def ensure_public_url(url: str) -> str:
    """
    Validate a URL, raising UnsafeURLError if it is not a public http(s) URL.

    Returns the stripped URL.
    """
    is_safe, reason = check_url(url)
    if not is_safe:
        logger.warning(f"Refused URL {url!r}: {reason}")
        raise UnsafeURLError(reason)
    return url.strip()
