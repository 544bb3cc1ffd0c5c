import time
import logging
from typing import List, Optional

from .models import RequestCounterStats, RATE_WINDOW_SECONDS

logger = logging.getLogger(__name__)


class RequestCounter:
    """
    Rolling count of requests sent in the last ``window`` seconds.

    The count is advisory: nothing here waits or refuses requests. Old
    entries are pruned lazily whenever the count is read.
    """

    def __init__(self, window: float = RATE_WINDOW_SECONDS):
        self.window = window
        self.requests: List[float] = []

        # Statistics
        self.total_requests: int = 0
        self.rate_limit_hits: int = 0
        self.last_request_time: Optional[float] = None

    @property
    def count(self) -> int:
        """Number of requests recorded inside the current window."""
        self._cleanup_old_requests(time.time())
        return len(self.requests)

    def record(self) -> float:
        """Record a new request and return its timestamp."""
        now = time.time()
        self.requests.append(now)
        self.total_requests += 1
        self.last_request_time = now
        return now

    def release(self, timestamp: float) -> bool:
        """
        Forget a request the exchange rejected for exceeding its rate limit.

        Only the most recent entry equal to ``timestamp`` is removed.

        Args:
            timestamp: The value returned by ``record()`` for that request

        Returns:
            True if an entry was removed
        """
        self.rate_limit_hits += 1
        for i in range(len(self.requests) - 1, -1, -1):
            if self.requests[i] == timestamp:
                del self.requests[i]
                logger.debug(f"Released rate limited request recorded at {timestamp:.3f}")
                return True
        return False

    def reset(self) -> None:
        """Drop every tracked request."""
        self.requests = []
        logger.info("Request counter reset")

    def _cleanup_old_requests(self, now: float) -> None:
        """Remove requests older than the window"""
        cutoff = now - self.window
        self.requests = [req_time for req_time in self.requests if req_time >= cutoff]

    def get_stats(self) -> RequestCounterStats:
        """Get current request counter statistics"""
        return RequestCounterStats(
            total_requests=self.total_requests,
            current_rate=self.count,
            rate_limit_hits=self.rate_limit_hits,
            window=self.window,
            last_request_time=self.last_request_time,
        )
