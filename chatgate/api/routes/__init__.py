from __future__ import annotations

from chatgate.api.routes.captcha import router as captcha_router
from chatgate.api.routes.chat import router as chat_router
from chatgate.api.routes.health import router as health_router

__all__ = ["captcha_router", "chat_router", "health_router"]
