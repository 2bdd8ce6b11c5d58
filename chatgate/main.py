"""ASGI entry point: ``uvicorn chatgate.main:app``."""

from chatgate.core.app_factory import create_app

app = create_app()
