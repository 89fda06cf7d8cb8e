"""Sliding-window rate limiter for outbound image provider calls."""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Admit at most ``max_requests`` calls within any trailing ``window`` seconds.

    Callers await ``admit()`` before each request. When the window is full the
    caller is suspended until the oldest recorded request leaves the window
    (plus ``safety_margin``), then the window is re-checked. Admissions are
    serialized so waiting callers are released in arrival order.

    Single-process only: nothing is shared across processes.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window: float = 60.0,
        safety_margin: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Args:
            max_requests: Requests allowed per window
            window: Window length in seconds
            safety_margin: Extra seconds added to every computed wait
            clock: Monotonic time source (seconds)
            sleep: Coroutine used to suspend the caller
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window <= 0:
            raise ValueError("window must be positive")

        self.max_requests = max_requests
        self.window = window
        self.safety_margin = safety_margin
        self._clock = clock
        self._sleep = sleep
        self._timestamps: List[float] = []
        self._lock = asyncio.Lock()

    @property
    def in_window(self) -> int:
        """Number of admissions currently inside the trailing window."""
        self._prune(self._clock())
        return len(self._timestamps)

    def _prune(self, now: float) -> None:
        cutoff = now - self.window
        self._timestamps = [t for t in self._timestamps if t > cutoff]

    async def admit(self) -> None:
        """Wait until one more request fits in the window, then record it."""
        async with self._lock:
            while True:
                now = self._clock()
                self._prune(now)
                if len(self._timestamps) < self.max_requests:
                    break

                oldest = min(self._timestamps)
                wait = self.window - (now - oldest) + self.safety_margin
                logger.info(f"Rate limit reached. Waiting {wait:.1f} seconds...")
                await self._sleep(wait)

            self._timestamps.append(now)
