"""FastAPI dependencies shared by the public routes."""

from __future__ import annotations

from fastapi import Request

from chatgate.core.identity import resolve_client_identity
from chatgate.services.admission_pipeline import ClientContext
from chatgate.services.container import GateServices


def get_services(request: Request) -> GateServices:
    return request.app.state.services


def get_client_context(request: Request) -> ClientContext:
    """Resolve the caller's identity from proxy headers."""
    return ClientContext(
        identity=resolve_client_identity(request.headers),
        user_agent=request.headers.get("user-agent", ""),
    )
