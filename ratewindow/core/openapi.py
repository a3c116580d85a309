"""OpenAPI customization utilities.

Enriches the generated schema with tag metadata and documents the 429
response (and its rate limit headers) on every rate limited operation.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

RATE_LIMITED_PREFIX = "/api/"

_RATE_LIMIT_HEADERS = {
    "Retry-After": "Seconds until the current window resets.",
    "X-RateLimit-Limit": "Requests admitted per window.",
    "X-RateLimit-Remaining": "Requests left in the current window.",
    "X-RateLimit-Reset": "UNIX time (seconds) when the current window resets.",
}


def _too_many_requests_response() -> Dict[str, Any]:
    return {
        "description": "Too many requests from this client in the current window.",
        "headers": {
            name: {"description": description, "schema": {"type": "string"}}
            for name, description in _RATE_LIMIT_HEADERS.items()
        },
    }


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and 429 documentation."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Status",
                "description": "Rate limited diagnostics endpoints.",
            },
            {
                "name": "Health",
                "description": "Liveness check, never rate limited.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            if not path.startswith(RATE_LIMITED_PREFIX):
                continue
            for method_obj in methods.values():
                if isinstance(method_obj, dict):
                    responses = method_obj.setdefault("responses", {})
                    responses.setdefault("429", _too_many_requests_response())

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
