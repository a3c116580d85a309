"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the counter store can be swapped later (e.g., Redis) with minimal changes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Decision(str, Enum):
    """Admission outcome for a single request."""

    ADMIT = "admit"
    REJECT = "reject"


@dataclass
class WindowCounter:
    """Per-key counter for the current fixed window.

    Attributes:
        count: Requests counted in the current window.
        reset_at: Epoch milliseconds at which the window expires.
    """

    count: int
    reset_at: int

    def is_expired(self, now_ms: int) -> bool:
        return now_ms >= self.reset_at


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit evaluation.

    Attributes:
        decision: ADMIT or REJECT.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at_ms: Epoch milliseconds when the current window resets.
        retry_after_ms: Time until the window resets, only set when blocked.
    """

    decision: Decision
    limit: int
    remaining: int
    reset_at_ms: int
    retry_after_ms: int | None = None

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ADMIT


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @property
    @abstractmethod
    def window_ms(self) -> int:
        """Window length in milliseconds."""
        raise NotImplementedError

    @property
    @abstractmethod
    def max_count(self) -> int:
        """Requests admitted per key per window."""
        raise NotImplementedError

    @abstractmethod
    def stats(self) -> dict[str, int | None]:
        """Return metrics without exposing keys.

        Keys: ``limit``, ``window_ms``, ``sweep_interval_ms``,
        ``tracked_keys``, ``admitted``, ``rejected``, ``sweeps``,
        ``swept_keys``.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Drop all per-key state and statistics."""
        raise NotImplementedError

    @abstractmethod
    def evaluate(self, key: str, now_ms: int) -> RateLimitResult:
        """Evaluate one request for ``key`` observed at ``now_ms``.

        Evaluation is not idempotent: every call counts as a distinct request
        and may mutate the state for ``key``.

        Args:
            key: Client identity (e.g., ``ip:10.0.0.1``).
            now_ms: Current time in epoch milliseconds.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError

    @abstractmethod
    def consume(self, key: str) -> RateLimitResult:
        """Evaluate one request for ``key`` at the limiter's own clock."""
        raise NotImplementedError

    def check(self, key: str, now_ms: int) -> Decision:
        """Return only the ADMIT/REJECT decision for one request."""
        return self.evaluate(key, now_ms).decision
