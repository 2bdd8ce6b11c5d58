"""HTTP-facing helpers around the rate limiting adapter.

Both public endpoints (chat and standalone CAPTCHA verification) run the same
check: consume one unit for the client, log the outcome with a hashed key, and
render ``X-RateLimit-*`` / ``Retry-After`` headers from the result.
"""

from __future__ import annotations

import logging
import math

from chatgate.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from chatgate.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def enforce_rate_limit(
    limiter: AbstractRateLimiter,
    identity: str,
    *,
    scope: str,
) -> RateLimitResult:
    """Consume one request from ``identity``'s budget and log the outcome.

    Args:
        limiter: Limiter owning the window counters for this endpoint.
        identity: Resolved client identity.
        scope: Endpoint label used in log events (e.g. "chat").

    Returns:
        The limiter result; callers decide how to reject.
    """

    result = limiter.check(identity)
    extra = {
        "scope": scope,
        "key_hash": hash_identifier(identity),
        "limit": result.limit,
        "remaining": result.remaining,
    }
    if result.allowed:
        logger.info("rate_limit.allowed", extra=extra)
    else:
        logger.warning(
            "rate_limit.exceeded",
            extra={**extra, "retry_after_s": result.retry_after_seconds},
        )
    return result


def rate_limit_headers(
    result: RateLimitResult,
    *,
    include_retry_after: bool = False,
) -> dict[str, str]:
    """Render the rate limit headers attached to every terminal response.

    Args:
        result: Outcome of the stage-one check.
        include_retry_after: Add ``Retry-After`` (client throttled responses only).

    Returns:
        Header mapping with string values.
    """

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(max(0, result.remaining)),
        "X-RateLimit-Reset": str(int(math.ceil(result.reset_at))),
    }
    if include_retry_after and result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers
