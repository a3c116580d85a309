"""Client identity resolution for rate limiting and request logs."""

from __future__ import annotations

from fastapi import Request

from ratewindow.core.config import settings

UNKNOWN_CLIENT = "unknown"


def resolve_client_ip(request: Request) -> str:
    """Return the address that identifies the caller.

    With ``APP_TRUST_FORWARDED_FOR`` enabled the first address of
    ``X-Forwarded-For`` wins (the service sits behind a trusted proxy);
    otherwise the socket peer address is used.
    """

    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT
