"""System health reporting.

Collects uptime, process identity, memory usage and rate limiter metrics for
the ``/api/status`` endpoint.
"""

from __future__ import annotations

import logging
import os
import platform
import sys
import time
from datetime import datetime, timezone

from ratewindow.adapters.rate_limit.base import AbstractRateLimiter
from ratewindow.core.config import settings
from ratewindow.schemas.status import (
    MemoryInfo,
    ProcessInfo,
    RateLimitStats,
    SystemStatusResponse,
)

logger = logging.getLogger(__name__)


def format_uptime(seconds: float) -> str:
    """Format an uptime as ``'<hours>h <minutes>m'``.

    Examples:
        >>> format_uptime(0)
        '0h 0m'
        >>> format_uptime(7530)
        '2h 5m'
    """
    total = int(seconds)
    return f"{total // 3600}h {(total % 3600) // 60}m"


def _max_rss_mb() -> float | None:
    if sys.platform == "win32":
        return None

    import resource

    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS, kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(max_rss / divisor, 2)


class MonitoringService:
    """Builds status reports for a running application instance."""

    def __init__(
        self,
        *,
        limiter: AbstractRateLimiter,
        environment: str,
        clock=time.monotonic,
    ) -> None:
        self._limiter = limiter
        self._environment = environment
        self._clock = clock
        self._started_at = clock()

    def uptime_seconds(self) -> float:
        return max(0.0, self._clock() - self._started_at)

    def system_status(self) -> SystemStatusResponse:
        """Return the current health report.

        The enabled flag is read from settings on every call, the same source
        the rate limit dependency consults per request.
        """

        uptime = self.uptime_seconds()
        stats = self._limiter.stats()

        report = SystemStatusResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            environment=self._environment,
            uptime=format_uptime(uptime),
            uptime_seconds=round(uptime, 3),
            memory=MemoryInfo(max_rss_mb=_max_rss_mb()),
            process=ProcessInfo(
                pid=os.getpid(),
                python_version=platform.python_version(),
                platform=sys.platform,
            ),
            rate_limit=RateLimitStats(enabled=settings.app.rate_limit_enabled, **stats),
        )

        logger.debug(
            "monitoring.status",
            extra={
                "uptime_s": report.uptime_seconds,
                "tracked_keys": stats["tracked_keys"],
                "rejected": stats["rejected"],
            },
        )
        return report
