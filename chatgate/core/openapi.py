"""OpenAPI tag metadata.

The public endpoints are anonymous (protected by rate limiting and CAPTCHA,
not credentials), so no security scheme is declared.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA: list[dict[str, str]] = [
    {
        "name": "Chat",
        "description": "AI chat behind rate limiting, injection screening and CAPTCHA.",
    },
    {
        "name": "Captcha",
        "description": "Standalone CAPTCHA verification for public forms.",
    },
    {
        "name": "Health",
        "description": "Liveness checks.",
    },
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tag descriptions."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()
        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
