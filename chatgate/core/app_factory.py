"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build an app around hand-made services.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chatgate.api.routes import captcha_router, chat_router, health_router
from chatgate.core.config import Settings, settings as default_settings
from chatgate.core.exception_handlers import setup_exception_handlers
from chatgate.core.logging import configure_logging
from chatgate.core.middleware import request_id_middleware, security_headers_middleware
from chatgate.core.openapi import apply_openapi_customizations
from chatgate.services.container import GateServices, build_services

logger = logging.getLogger(__name__)

EXPOSED_HEADERS = [
    "X-RateLimit-Limit",
    "X-RateLimit-Remaining",
    "X-RateLimit-Reset",
    "Retry-After",
    "X-Request-ID",
]


def create_app(
    services: GateServices | None = None,
    app_settings: Settings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        services: Pre-built services (tests). Built from settings when omitted.
        app_settings: Settings to use instead of the module-level instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    gate_services = services or build_services(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await gate_services.startup()
        logger.info("app.started", extra={"app_env": cfg.app_env})
        try:
            yield
        finally:
            await gate_services.shutdown()
            logger.info("app.stopped")

    app = FastAPI(
        title="Chatgate",
        description=(
            "Admission control in front of a public AI chat endpoint: per-client "
            "rate limiting, input normalization, prompt-injection screening and "
            "CAPTCHA verification with an audit log."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
        lifespan=lifespan,
    )
    app.state.services = gate_services

    # Middleware (last added runs first: CORS answers preflight before anything else)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.app.cors_allowed_origins,
        allow_origin_regex=cfg.app.cors_allowed_origin_regex,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
        expose_headers=EXPOSED_HEADERS,
    )

    setup_exception_handlers(app)

    app.include_router(chat_router)
    app.include_router(captcha_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
