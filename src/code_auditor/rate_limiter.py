"""Per-client sliding window rate limiter.

State is in-memory and per-process: it resets on restart and is not shared
between replicas.
"""

import logging
import threading
import time
from collections import deque
from typing import Callable

from .errors import RateLimitExceeded

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Rate limiter using a sliding window of request instants per client.

    Each client keeps an ordered deque of the instants of its admitted
    requests. On every check, instants that have fallen out of the trailing
    window are dropped; the request is admitted only if fewer than
    ``max_requests`` remain.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter.

        Args:
            max_requests: Requests allowed per client within the window
            window_seconds: Length of the trailing window in seconds
            clock: Source of the current time in seconds
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def check_and_record(self, client_id: str) -> None:
        """
        Admit a request for client_id or raise.

        A rejected attempt is not recorded, so a client that keeps retrying
        while over budget is admitted again as soon as old requests expire.

        Raises:
            RateLimitExceeded: If the client already used its budget in the window
        """
        with self._lock:
            now = self._clock()
            window_start = now - self.window_seconds
            requests = self._windows.setdefault(client_id, deque())

            while requests and requests[0] <= window_start:
                requests.popleft()

            if len(requests) >= self.max_requests:
                logger.warning(
                    f"Rate limit exceeded for client {client_id}: "
                    f"{len(requests)} requests in {self.window_seconds:g}s"
                )
                raise RateLimitExceeded(limit=self.max_requests, window_seconds=self.window_seconds)

            requests.append(now)

    def remaining(self, client_id: str) -> int:
        """Requests client_id can still make in the current window."""
        with self._lock:
            window_start = self._clock() - self.window_seconds
            requests = self._windows.get(client_id, ())
            used = sum(1 for t in requests if t > window_start)
        return max(0, self.max_requests - used)

    def size(self) -> int:
        """Number of clients being tracked."""
        with self._lock:
            return len(self._windows)

    def clear(self) -> None:
        """Forget every client's window."""
        with self._lock:
            self._windows.clear()
        logger.info("Rate limiter state cleared")
