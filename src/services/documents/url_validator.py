"""URL checks for scraped documents.

Blocks non-HTTP schemes and hosts that resolve to loopback, private or
link-local address space so a user cannot make the worker fetch internal
services.  Only literal IPs and ``localhost`` are checked; hostnames are
not resolved.
"""

from __future__ import annotations

import ipaddress
from urllib.parse import urlsplit, urlunsplit

from src.utils.errors import InvalidUrlError

MAX_URL_LENGTH = 2048

_BLOCKED_NETWORKS = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/32"),
    ipaddress.ip_network("::1/128"),
]


def validate_url(url: str) -> str:
    """Return the stripped *url* if it is a fetchable public http(s) URL.

    Raises
    ------
    InvalidUrlError
        With a message naming the rule that failed.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise InvalidUrlError(message="URL is required")
    if len(candidate) > MAX_URL_LENGTH:
        raise InvalidUrlError(message=f"URL exceeds maximum length of {MAX_URL_LENGTH} characters")

    try:
        parts = urlsplit(candidate)
        hostname = parts.hostname
        _ = parts.port
    except ValueError as exc:
        raise InvalidUrlError(message="Invalid URL format") from exc

    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidUrlError(message=f"Unsupported URL scheme: {parts.scheme or '(none)'}")
    if not hostname:
        raise InvalidUrlError(message="Invalid URL format")

    if hostname == "localhost" or hostname.endswith(".localhost"):
        raise InvalidUrlError(message="URLs pointing to private or local addresses are not allowed")
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return candidate
    if any(address in network for network in _BLOCKED_NETWORKS if network.version == address.version):
        raise InvalidUrlError(message="URLs pointing to private or local addresses are not allowed")
    return candidate


def normalize_url(url: str) -> str:
    """Lowercase scheme and host and drop the fragment."""
    parts = urlsplit(url.strip())
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, ""))
