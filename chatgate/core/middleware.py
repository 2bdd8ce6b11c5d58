"""HTTP middleware for request correlation and response hardening.

``request_id_middleware`` accepts an incoming ``X-Request-ID`` header (name
configurable via ``LOG_REQUEST_ID_HEADER``) or generates a UUID, stores it in
contextvars for log correlation, and echoes it back together with the request
duration.

``security_headers_middleware`` adds conservative browser security headers to
every response; headers already set by a route are kept.

Usage:
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from chatgate.core.config import settings
from chatgate.core.logging import clear_request_id, set_request_id

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a correlation id through the request and back to the client.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The downstream response with ``X-Request-ID`` and
            ``X-Request-Duration-ms`` headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def security_headers_middleware(request: Request, call_next) -> Response:
    response: Response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
