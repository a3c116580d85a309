"""Application factory for the FastAPI app.

Centralizes app construction (state, middleware, handlers, routers) so tests
can build isolated instances with their own limiter.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI

from ratewindow.adapters.rate_limit.base import AbstractRateLimiter
from ratewindow.api.routes import health_router, status_router
from ratewindow.core.config import settings
from ratewindow.core.exception_handlers import setup_exception_handlers
from ratewindow.core.logging import configure_logging
from ratewindow.core.middleware import request_id_middleware, request_logging_middleware
from ratewindow.core.openapi import apply_openapi_customizations
from ratewindow.core.rate_limit import build_rate_limiter, enforce_rate_limit
from ratewindow.services.monitoring import MonitoringService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    limiter = app.state.rate_limiter
    logger.info(
        "app.startup",
        extra={
            "environment": settings.app_env,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
            "rate_limit_max_requests": limiter.max_count,
            "rate_limit_window_ms": limiter.window_ms,
        },
    )
    try:
        yield
    finally:
        stats = limiter.stats()
        limiter.reset()
        logger.info(
            "app.shutdown",
            extra={
                "admitted": stats["admitted"],
                "rejected": stats["rejected"],
                "tracked_keys": stats["tracked_keys"],
            },
        )


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to install; built from settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Rate Window API",
        description=(
            "HTTP service guarded by a per-client fixed-window rate limiter. "
            "Routes under /api are limited; /health is always reachable."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    limiter = rate_limiter if rate_limiter is not None else build_rate_limiter(settings.app)
    app.state.rate_limiter = limiter
    app.state.monitoring = MonitoringService(
        limiter=limiter,
        environment=settings.app_env,
    )

    # Middleware (last registered is outermost)
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(
        status_router,
        prefix="/api",
        dependencies=[Depends(enforce_rate_limit)],
    )

    apply_openapi_customizations(app)

    return app
