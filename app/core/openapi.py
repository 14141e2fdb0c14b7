"""OpenAPI metadata and customization utilities.

Adds the ``X-API-Key`` security scheme to the collaborator endpoints and
exempts the health probe, keeping documentation concerns out of the app
factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and security."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "ApiKeyAuth",
            {
                "type": "apiKey",
                "in": "header",
                "name": "X-API-Key",
                "description": "Required when APP_API_KEY_REQUIRED is enabled.",
            },
        )
        schema.setdefault("security", [{"ApiKeyAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Rooms",
                "description": "Broadcast into club rooms and query room presence.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        paths = schema.get("paths", {})
        for path, methods in paths.items():
            if path.endswith("/healthz"):
                for method_obj in methods.values():
                    if isinstance(method_obj, dict):
                        method_obj["security"] = []

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
