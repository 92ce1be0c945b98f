"""Sliding-window rate limiting for review providers."""

import time
from collections import deque
from collections.abc import Callable


class RateLimiter:
    """Sliding window rate limiter.

    Tracks request times over the last ``period_seconds`` and sleeps before a
    request that would exceed ``requests_per_period``.

    Example:
        >>> limiter = RateLimiter(requests_per_period=60, period_seconds=60)
        >>> limiter.wait_if_needed()  # Blocks if rate limit would be exceeded
    """

    def __init__(
        self,
        requests_per_period: int,
        period_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize rate limiter.

        Args:
            requests_per_period: Maximum number of requests allowed per period (0 disables limiting)
            period_seconds: Time period in seconds for the rate limit window
            clock: Time source (injectable for tests)
            sleep: Sleep function (injectable for tests)
        """
        self.requests_per_period = requests_per_period
        self.period_seconds = period_seconds
        self.request_times: deque[float] = deque()
        self._clock = clock
        self._sleep = sleep

    def _expire(self, now: float) -> None:
        while self.request_times and self.request_times[0] <= now - self.period_seconds:
            self.request_times.popleft()

    def wait_if_needed(self) -> None:
        """Block until another request fits in the window, then record it."""
        if self.requests_per_period <= 0:
            return

        now = self._clock()
        self._expire(now)

        if len(self.request_times) >= self.requests_per_period:
            sleep_time = self.period_seconds - (now - self.request_times[0])
            if sleep_time > 0:
                self._sleep(sleep_time)
            now = self._clock()
            self._expire(now)

        self.request_times.append(now)
