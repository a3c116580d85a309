"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards the whole counter map.
- Windows start at the first request of a key, not on clock boundaries.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from ratewindow.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Decision,
    RateLimitResult,
    WindowCounter,
)

logger = logging.getLogger(__name__)


def wall_clock_ms() -> int:
    """Return the current UNIX time in whole milliseconds."""
    return time.time_ns() // 1_000_000


def _require_positive_int(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{name} must be a positive integer")


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    Each key gets a window of ``window_ms`` starting at its first request. Up
    to ``max_count`` requests are admitted in that window; the rest are
    rejected until the window expires, at which point the next request opens
    a new window.

    Important:
        Because windows are fixed, a client may get up to ``2 * max_count``
        requests admitted inside any ``window_ms`` span that straddles the end
        of one window and the start of the next.
    """

    def __init__(
        self,
        *,
        window_ms: int,
        max_count: int,
        clock_ms: Callable[[], int] = wall_clock_ms,
        sweep_interval_ms: int | None = None,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            window_ms: Size of the fixed window in milliseconds.
            max_count: Maximum number of admitted requests per window.
            clock_ms: Time source returning epoch milliseconds.
            sweep_interval_ms: When set, expired counters are purged at most
                once per interval during evaluation.

        Raises:
            ValueError: If window_ms, max_count or sweep_interval_ms are invalid.
        """
        _require_positive_int("window_ms", window_ms)
        _require_positive_int("max_count", max_count)
        if sweep_interval_ms is not None:
            _require_positive_int("sweep_interval_ms", sweep_interval_ms)

        self._window_ms = window_ms
        self._max_count = max_count
        self._clock_ms = clock_ms
        self._sweep_interval_ms = sweep_interval_ms
        self._next_sweep_at: int | None = None
        self._lock = threading.RLock()
        self._counters: dict[str, WindowCounter] = {}
        self._admitted = 0
        self._rejected = 0
        self._sweeps = 0
        self._swept_keys = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryFixedWindowRateLimiter(window_ms={self._window_ms}, "
            f"max_count={self._max_count}, keys={len(self._counters)})"
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def max_count(self) -> int:
        return self._max_count

    def evaluate(self, key: str, now_ms: int) -> RateLimitResult:
        """Evaluate and record one request for ``key``.

        Args:
            key: Non-empty client identity.
            now_ms: Current time in epoch milliseconds.

        Returns:
            RateLimitResult with the decision and window metadata.

        Raises:
            ValueError: If key is empty or not a string.
            TypeError: If now_ms is not an integer.
        """
        if not isinstance(key, str) or not key:
            raise ValueError("key must be a non-empty string")
        if isinstance(now_ms, bool) or not isinstance(now_ms, int):
            raise TypeError("now_ms must be an integer number of milliseconds")

        with self._lock:
            self._maybe_sweep_locked(now_ms)

            counter = self._counters.get(key)
            if counter is None or counter.is_expired(now_ms):
                counter = WindowCounter(count=1, reset_at=now_ms + self._window_ms)
                self._counters[key] = counter
                return self._admit_locked(counter)

            if counter.count < self._max_count:
                counter.count += 1
                return self._admit_locked(counter)

            self._rejected += 1
            return RateLimitResult(
                decision=Decision.REJECT,
                limit=self._max_count,
                remaining=0,
                reset_at_ms=counter.reset_at,
                retry_after_ms=max(0, counter.reset_at - now_ms),
            )

    def consume(self, key: str) -> RateLimitResult:
        return self.evaluate(key, self._clock_ms())

    def peek(self, key: str) -> WindowCounter | None:
        """Return a copy of the counter for ``key`` without counting a request."""
        with self._lock:
            counter = self._counters.get(key)
            if counter is None:
                return None
            return WindowCounter(count=counter.count, reset_at=counter.reset_at)

    def sweep(self, now_ms: int | None = None) -> int:
        """Drop counters whose window has expired.

        An absent counter and an expired one both open a fresh window on the
        next request, so sweeping never changes a decision.

        Args:
            now_ms: Reference time; defaults to the limiter clock.

        Returns:
            Number of counters removed.
        """
        if now_ms is None:
            now_ms = self._clock_ms()
        with self._lock:
            return self._sweep_locked(now_ms)

    def reset(self) -> None:
        """Remove all counters and reset statistics."""
        with self._lock:
            self._counters.clear()
            self._next_sweep_at = None
            self._admitted = 0
            self._rejected = 0
            self._sweeps = 0
            self._swept_keys = 0

    def stats(self) -> dict[str, int | None]:
        """Return limiter metrics without exposing keys."""
        with self._lock:
            return {
                "limit": self._max_count,
                "window_ms": self._window_ms,
                "sweep_interval_ms": self._sweep_interval_ms,
                "tracked_keys": len(self._counters),
                "admitted": self._admitted,
                "rejected": self._rejected,
                "sweeps": self._sweeps,
                "swept_keys": self._swept_keys,
            }

    def _admit_locked(self, counter: WindowCounter) -> RateLimitResult:
        self._admitted += 1
        return RateLimitResult(
            decision=Decision.ADMIT,
            limit=self._max_count,
            remaining=self._max_count - counter.count,
            reset_at_ms=counter.reset_at,
        )

    def _maybe_sweep_locked(self, now_ms: int) -> None:
        if self._sweep_interval_ms is None:
            return
        if self._next_sweep_at is None:
            self._next_sweep_at = now_ms + self._sweep_interval_ms
            return
        if now_ms >= self._next_sweep_at:
            self._sweep_locked(now_ms)
            self._next_sweep_at = now_ms + self._sweep_interval_ms

    def _sweep_locked(self, now_ms: int) -> int:
        expired = [k for k, c in self._counters.items() if c.is_expired(now_ms)]
        for key in expired:
            del self._counters[key]

        self._sweeps += 1
        self._swept_keys += len(expired)
        logger.debug(
            "rate_limit.sweep",
            extra={
                "removed": len(expired),
                "tracked_keys": len(self._counters),
            },
        )
        return len(expired)
