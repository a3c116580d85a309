"""Pydantic schemas for status and diagnostics responses."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProcessInfo(BaseModel):
    """Identity of the serving process."""

    pid: int = Field(..., description="Operating system process id.")
    python_version: str = Field(..., description="Interpreter version, e.g. '3.12.1'.")
    platform: str = Field(..., description="Platform identifier, e.g. 'linux'.")


class MemoryInfo(BaseModel):
    """Resident memory of the serving process (where the OS reports it)."""

    max_rss_mb: float | None = Field(
        default=None,
        description="Peak resident set size in megabytes; null when unavailable.",
    )


class RateLimitStats(BaseModel):
    """Snapshot of the in-process rate limiter."""

    enabled: bool
    limit: int = Field(..., description="Requests admitted per client per window.")
    window_ms: int = Field(..., description="Window length in milliseconds.")
    sweep_interval_ms: int | None = None
    tracked_keys: int = Field(..., description="Clients with a live or expired counter.")
    admitted: int
    rejected: int
    sweeps: int
    swept_keys: int


class SystemStatusResponse(BaseModel):
    """System health report for the serving instance."""

    status: str = Field("healthy", description="Overall status.")
    timestamp: str = Field(..., description="ISO-8601 UTC time of the report.")
    environment: str = Field(..., description="Value of APP_ENV.")
    uptime: str = Field(..., description="Human-readable uptime, e.g. '2h 5m'.")
    uptime_seconds: float
    memory: MemoryInfo
    process: ProcessInfo
    rate_limit: RateLimitStats


class EchoResponse(BaseModel):
    """What the pipeline saw for the current request."""

    method: str
    path: str
    client_ip: str
    user_agent: str | None = None
    request_id: str | None = None
