"""Request gates: API key authentication and per-client rate limiting."""

import logging
import math
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from devtoolbox.errors import RateLimitExceededError, UnauthorizedError

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class FixedWindowRateLimiter:
    """Counts requests per client in fixed one-minute windows (thread-safe)."""

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}  # client -> (count, reset_at)
        self._lock = threading.Lock()

    def hit(self, client: str) -> Optional[int]:
        """Record a request.

        Returns:
            None if allowed, otherwise seconds until the window resets
        """
        now = self._clock()
        with self._lock:
            count, reset_at = self._windows.get(client, (0, 0.0))
            if now >= reset_at:
                count, reset_at = 0, now + self.window_seconds
            count += 1
            self._windows[client] = (count, reset_at)
            self._prune(now)
            if count > self.max_requests:
                return max(1, math.ceil(reset_at - now))
        return None

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        if len(self._windows) < 1024:
            return
        expired = [c for c, (_, reset_at) in self._windows.items() if now >= reset_at]
        for client in expired:
            del self._windows[client]


def _presented_key(request: Request) -> Optional[str]:
    key = request.headers.get("x-api-key")
    if key:
        return key
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    return None


async def require_api_key(request: Request) -> None:
    """Dependency that checks X-API-Key / Bearer token when a key is configured."""
    expected = request.app.state.server_config.api_key
    if not expected:
        return
    key = _presented_key(request)
    if not key or not secrets.compare_digest(key.encode(), expected.encode()):
        logger.warning(f"Rejected unauthenticated request to {request.url.path}")
        raise UnauthorizedError()


async def enforce_rate_limit(request: Request) -> None:
    """Dependency that rejects clients over the per-minute limit."""
    limiter: Optional[FixedWindowRateLimiter] = request.app.state.rate_limiter
    if limiter is None:
        return
    client = request.client.host if request.client else "unknown"
    retry_after = limiter.hit(client)
    if retry_after is not None:
        logger.warning(f"Rate limit exceeded for {client}")
        raise RateLimitExceededError(limiter.max_requests, retry_after)
