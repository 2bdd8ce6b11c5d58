"""Client identity resolution for rate limiting and audit records.

Identity is taken from the forwarded-address headers set by the edge proxy,
in priority order. When none is present the key falls back to a hash of the
user agent and the public API key header, so it is still stable per client and
never empty.
"""

from __future__ import annotations

import hashlib
from typing import Mapping

# Checked in order; the first non-blank value wins.
FORWARDED_HEADERS: tuple[str, ...] = (
    "x-forwarded-for",
    "x-real-ip",
    "cf-connecting-ip",
)

FALLBACK_PREFIX = "fallback-"


def _first_forwarded_address(value: str) -> str:
    # X-Forwarded-For is "client, proxy1, proxy2"; the client is leftmost.
    return value.split(",")[0].strip()


def resolve_client_identity(headers: Mapping[str, str]) -> str:
    """Derive a deterministic, non-empty client key from request headers.

    Args:
        headers: Request headers. Lookups are case-insensitive when given a
            Starlette ``Headers`` object; plain dicts must use lowercase keys.

    Returns:
        The client address, or ``fallback-<hash>`` when no address header is set.

    Examples:
        >>> resolve_client_identity({"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
        '203.0.113.7'
        >>> resolve_client_identity({}).startswith("fallback-")
        True
    """
    for header in FORWARDED_HEADERS:
        raw = headers.get(header)
        if not raw:
            continue
        address = _first_forwarded_address(raw)
        if address:
            return address

    user_agent = headers.get("user-agent") or ""
    api_key = headers.get("apikey") or ""
    digest = hashlib.sha256(f"{user_agent}|{api_key}".encode("utf-8")).hexdigest()[:16]
    return f"{FALLBACK_PREFIX}{digest}"
