"""
Rate Governor - client-side admission control for the upstream model.

Sliding window over recent call timestamps plus a cooldown deadline that is
set when the provider reports quota exhaustion.

Design:
- In-memory, process-wide (one instance wired into the model client)
- Lazy pruning: entries older than the window are dropped on each check
- Cooldown overrides the window until it elapses
- Advisory only: each process keeps its own view of quota usage

Usage:
    from app.services.ai.rate_governor import rate_governor

    rate_governor.admit()          # raises AIQuotaError when rejected
    ...
    rate_governor.mark_exhausted() # after the provider returns 429
"""

import math
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.services.ai.errors import AIQuotaError

logger = get_logger(__name__)


class RateGovernor:
    """
    Sliding-window admission controller with a quota cooldown.

    Example:
        With a ceiling of 10 and calls at t=0..9, the call at t=10 is
        rejected; from t=60 onwards the first timestamp has left the
        window and calls are admitted again.

    Thread Safety:
        admit() and mark_exhausted() hold a lock for their whole
        read-modify-write. Neither awaits, so concurrent asyncio tasks
        cannot interleave inside a check either.
    """

    def __init__(
        self,
        max_calls: int = 10,
        window_seconds: float = 60.0,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate governor.

        Args:
            max_calls: Calls admitted per window
            window_seconds: Sliding window length in seconds
            cooldown_seconds: Rejection period after mark_exhausted()
            clock: Source of "now" in seconds
        """
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._timestamps: deque[float] = deque()
        self._exhausted_until: float | None = None
        self._lock = threading.Lock()

    def admit(self) -> None:
        """
        Admit one upstream call or reject it.

        Raises:
            AIQuotaError: During cooldown, or when the window is full
        """
        with self._lock:
            now = self._clock()

            if self._exhausted_until is not None and now < self._exhausted_until:
                wait_seconds = math.ceil(self._exhausted_until - now)
                logger.warning("Model call rejected during quota cooldown", wait_seconds=wait_seconds)
                raise AIQuotaError(
                    f"AI quota temporarily exhausted. Please wait ~{wait_seconds}s and try again.",
                    retry_after_seconds=wait_seconds,
                )

            self._prune(now)

            if len(self._timestamps) >= self.max_calls:
                oldest = self._timestamps[0]
                wait_seconds = max(1, math.ceil(oldest + self.window_seconds - now))
                logger.warning(
                    "Model call rejected by sliding window",
                    calls_in_window=len(self._timestamps),
                    limit=self.max_calls,
                    wait_seconds=wait_seconds,
                )
                raise AIQuotaError(
                    "Too many AI requests. Please wait a minute before trying again.",
                    retry_after_seconds=wait_seconds,
                )

            self._timestamps.append(now)

    def mark_exhausted(self) -> None:
        """Start the cooldown after the provider signalled quota exhaustion."""
        with self._lock:
            self._exhausted_until = self._clock() + self.cooldown_seconds

        logger.warning("Model quota exhausted, cooldown started", cooldown_seconds=self.cooldown_seconds)

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._timestamps and self._timestamps[0] < cutoff:
            self._timestamps.popleft()

    def status(self) -> dict[str, Any]:
        """Snapshot for readiness checks. Prunes like admit() but records nothing."""
        with self._lock:
            now = self._clock()
            self._prune(now)
            cooldown_remaining = 0
            if self._exhausted_until is not None and now < self._exhausted_until:
                cooldown_remaining = math.ceil(self._exhausted_until - now)

            return {
                "calls_in_window": len(self._timestamps),
                "limit": self.max_calls,
                "window_seconds": self.window_seconds,
                "remaining": max(0, self.max_calls - len(self._timestamps)),
                "cooldown_remaining_seconds": cooldown_remaining,
            }


# Global governor instance
rate_governor = RateGovernor(
    max_calls=settings.AI_MAX_CALLS_PER_MINUTE,
    window_seconds=settings.AI_RATE_WINDOW_SECONDS,
    cooldown_seconds=settings.AI_QUOTA_COOLDOWN_SECONDS,
)
