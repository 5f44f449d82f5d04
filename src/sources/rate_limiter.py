"""Client-side request pacing for API clients."""

import threading
import time
from collections import deque


class RateLimiter:
    """Sliding-window limiter shared by all threads of one client.

    Requests are delayed, never re-issued: the limiter keeps a client under
    its budget but does not retry anything the server rejected.

    Example:
        >>> limiter = RateLimiter(requests_per_period=60, period_seconds=60)
        >>> limiter.wait_if_needed()  # Blocks if the budget is spent
    """

    def __init__(self, requests_per_period: int, period_seconds: float):
        """Initialize rate limiter.

        Args:
            requests_per_period: Maximum number of requests allowed per period
            period_seconds: Length of the sliding window in seconds
        """
        self.requests_per_period = requests_per_period
        self.period_seconds = period_seconds
        self.request_times: deque[float] = deque()
        self._lock = threading.Lock()

    def _expire(self, now: float) -> None:
        while self.request_times and self.request_times[0] < now - self.period_seconds:
            self.request_times.popleft()

    def wait_if_needed(self) -> None:
        """Block until another request fits in the window, then record it."""
        if self.requests_per_period <= 0:
            return

        with self._lock:
            now = time.time()
            self._expire(now)

            if len(self.request_times) >= self.requests_per_period:
                sleep_time = self.period_seconds - (now - self.request_times[0]) + 0.1
                if sleep_time > 0:
                    time.sleep(sleep_time)
                self._expire(time.time())

            self.request_times.append(time.time())

    def reset(self) -> None:
        """Clear all tracked requests."""
        with self._lock:
            self.request_times.clear()
