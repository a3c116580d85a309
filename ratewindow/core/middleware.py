"""HTTP middleware for request correlation and request monitoring.

- ``request_id_middleware`` accepts an incoming X-Request-ID (or generates a
  UUID), stores it in contextvars for log correlation and echoes it back
  together with the request duration.
- ``request_logging_middleware`` emits one ``http.request`` record per
  request and flags slow requests.

Unhandled exceptions are turned into the generic 500 inside
``request_id_middleware`` so that response still carries the request id.

Usage (last registered runs first):
    app.middleware("http")(request_logging_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request, Response

from ratewindow.core.client_identity import resolve_client_ip
from ratewindow.core.config import settings
from ratewindow.core.exception_handlers import general_exception_handler
from ratewindow.core.logging import clear_request_id, set_request_id

logger = logging.getLogger(__name__)


async def request_id_middleware(request: Request, call_next) -> Response:
    """Propagate a request correlation id through the request lifecycle.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response with the request id and X-Request-Duration-ms headers.

    Example:
        >>> # Request arrives with {"X-Request-ID": "req-abc-123"}
        >>> # Response includes:
        >>> # {"X-Request-ID": "req-abc-123", "X-Request-Duration-ms": "45.67"}
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        # Build the 500 here so the body and headers still carry the id
        response = await general_exception_handler(request, exc)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log method, path, status, duration and caller for every request.

    Responses with status >= 400 are logged at warning level. Requests that
    take longer than ``LOG_SLOW_REQUEST_MS`` additionally emit
    ``http.slow_request``.
    """

    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception:
        logger.exception(
            "http.request_failed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_ip": resolve_client_ip(request),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        raise

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    fields = {
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "duration_ms": duration_ms,
        "client_ip": resolve_client_ip(request),
        "user_agent": request.headers.get("user-agent"),
    }

    level = logging.WARNING if response.status_code >= 400 else logging.INFO
    logger.log(level, "http.request", extra=fields)

    if duration_ms > settings.log.slow_request_ms:
        logger.warning(
            "http.slow_request",
            extra={
                "operation": f"{request.method} {request.url.path}",
                "duration_ms": duration_ms,
                "threshold_ms": settings.log.slow_request_ms,
            },
        )

    return response
