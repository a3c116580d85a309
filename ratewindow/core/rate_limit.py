"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

- The limiter instance is owned by the application (``app.state``), created
  by the app factory and reset at shutdown. There is no module-level limiter.
- Requests are keyed by client IP (``ip:<address>``).
- A rejected request becomes a ``RateLimitExceededError`` which the
  exception handlers turn into HTTP 429.
"""

from __future__ import annotations

import hashlib
import logging
import math

from fastapi import Request, Response

from ratewindow.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from ratewindow.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from ratewindow.core.client_identity import resolve_client_ip
from ratewindow.core.config import AppSettings, settings
from ratewindow.core.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


def build_rate_limiter(app_settings: AppSettings | None = None) -> InMemoryFixedWindowRateLimiter:
    """Create a limiter configured from application settings.

    Args:
        app_settings: Settings to use; defaults to the global settings.

    Returns:
        A fresh in-memory fixed-window limiter.
    """

    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        window_ms=cfg.rate_limit_window_ms,
        max_count=cfg.rate_limit_max_requests,
        sweep_interval_ms=cfg.rate_limit_sweep_interval_ms or None,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the application serving ``request``."""

    return request.app.state.rate_limiter


def build_rate_limit_key(request: Request) -> str:
    """Build the namespaced limiter key for the current request."""

    return f"ip:{resolve_client_ip(request)}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Build X-RateLimit-* (and Retry-After when blocked) response headers.

    Reset and Retry-After are expressed in whole seconds, rounded up.
    """

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(math.ceil(result.reset_at_ms / 1000)),
    }
    if result.retry_after_ms is not None:
        headers["Retry-After"] = str(math.ceil(result.retry_after_ms / 1000))
    return headers


async def enforce_rate_limit(request: Request, response: Response) -> None:
    """FastAPI dependency enforcing the per-client rate limit.

    When enabled, counts the request against the caller's window. If the
    window is exhausted, raises ``RateLimitExceededError`` (HTTP 429).

    Args:
        request: FastAPI request.
        response: Response being built; receives X-RateLimit-* headers.

    Raises:
        RateLimitExceededError: When the limiter rejects the request.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter(request)
    key = build_rate_limit_key(request)
    key_hash = _hash_limiter_key(key)

    result = limiter.consume(key)
    include_headers = settings.app.rate_limit_include_headers

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        if include_headers:
            response.headers.update(rate_limit_headers(result))
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "path": request.url.path,
            "retry_after_ms": result.retry_after_ms,
            "user_agent": request.headers.get("user-agent"),
        },
    )

    raise RateLimitExceededError(
        details={
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at_ms": result.reset_at_ms,
            "retry_after_ms": result.retry_after_ms or 0,
        },
        headers=rate_limit_headers(result) if include_headers else None,
    )
