"""
Rate Limiting

Process-wide admission control using the token bucket algorithm.

Design Decisions:
- One bucket shared by every request (not per client IP)
- Bucket is created by the application factory and kept on app.state,
  so tests can build as many independent buckets as they need
- threading.Lock guards refill + consume as one critical section; it works
  from the event loop and from worker threads alike
- Refused requests are never retried here, the caller answers 429
"""

import logging
import math
import threading
import time
from typing import Callable

from fastapi import Depends, Request

from shortener.core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Token bucket rate limiter.

    The bucket starts full. Every whole refill interval that has elapsed since
    the last refill adds one token, capped at max_tokens. Each admitted call
    consumes one token.
    """

    def __init__(
        self,
        max_tokens: int,
        refill_interval: float,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the bucket.

        Args:
            max_tokens: Bucket capacity (0 refuses everything)
            refill_interval: Seconds needed to regain one token
            clock: Monotonic time source, injectable for tests
        """
        if max_tokens < 0:
            raise ValueError(f"max_tokens must be >= 0, got {max_tokens}")
        if refill_interval <= 0:
            raise ValueError(f"refill_interval must be > 0, got {refill_interval}")

        self.max_tokens = max_tokens
        self.refill_interval = refill_interval
        self._clock = clock
        self._tokens = max_tokens
        self._last_refill = clock()
        self._lock = threading.Lock()

    @property
    def tokens(self) -> int:
        """Tokens currently available."""
        with self._lock:
            return self._tokens

    def allow(self) -> bool:
        """
        Refill the bucket, then try to consume one token.

        Returns:
            True if the request is admitted, False if the bucket is empty
        """
        with self._lock:
            now = self._clock()
            refill = math.floor((now - self._last_refill) / self.refill_interval)
            if refill > 0:
                self._tokens = min(self._tokens + refill, self.max_tokens)
                self._last_refill = now

            if self._tokens > 0:
                self._tokens -= 1
                return True

            return False


def get_rate_limiter(request: Request) -> TokenBucket:
    """Return the bucket created for this application instance."""
    return request.app.state.rate_limiter


def enforce_rate_limit(limiter: TokenBucket = Depends(get_rate_limiter)) -> None:
    """
    Admission gate dependency, evaluated before any endpoint logic.

    Raises:
        RateLimitExceededError: If the bucket is empty
    """
    if not limiter.allow():
        logger.warning("Rate limit exceeded: request refused")
        raise RateLimitExceededError()
