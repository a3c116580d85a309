"""Application-level exception types.

Errors raised by the HTTP layer and services share one base class so the
exception handlers can map them to status codes and a single JSON envelope.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    limit: int
    remaining: int
    reset_at_ms: int
    retry_after_ms: int


@dataclass
class AppError(Exception):
    """Base error for application failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    status_code = 400

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


@dataclass
class RateLimitExceededError(AppError):
    """Raised by the HTTP layer when the limiter rejects a request.

    ``headers`` are copied onto the 429 response.
    """

    code: str = "rate_limit_exceeded"
    message: str = "Too many requests"
    details: ErrorDetails | None = None
    headers: dict[str, str] | None = None

    status_code = 429
