"""
Readlog Backend - Rate Limiting Middleware
===========================================

What:  Per-IP sliding window rate limits.
How:   Two windows of the same length (RATE_LIMIT_WINDOW seconds):
         - general: RATE_LIMIT_REQUESTS per IP over every endpoint
         - login:   LOGIN_RATE_LIMIT_REQUESTS per IP for POST /auth/login,
                    which slows down password guessing
       Over the limit, the request is answered with 429, the error envelope
       and a Retry-After header; the route is never reached.

Algorithm: Sliding Window Log
    Each key (client IP) keeps the timestamps of its recent requests.
    Timestamps older than the window are dropped on every check; if the
    remainder has reached the limit the request is rejected.

State is in-memory and per process. With several workers each one
enforces its own limits.
"""

import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from readlog.config import settings
from readlog.exceptions import RateLimitExceededError
from readlog.schemas.envelope import error_response

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"


class SlidingWindowLimiter:
    """Counts hits per key over the last `window` seconds."""

    def __init__(self, limit: int, window: int, clock: Callable[[], float] = time.monotonic):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._checks = 0

    def hit(self, key: str) -> Optional[int]:
        """
        Record a hit for `key`.

        Returns None when the hit is allowed, otherwise the number of
        seconds until the oldest hit leaves the window.
        """
        now = self._clock()
        window_start = now - self.window
        hits = self._hits[key]
        while hits and hits[0] <= window_start:
            hits.popleft()

        if len(hits) >= self.limit:
            return int(hits[0] + self.window - now) + 1

        hits.append(now)

        self._checks += 1
        if self._checks % 1000 == 0:
            self._cleanup(window_start)
        return None

    def _cleanup(self, window_start: float) -> None:
        """Forget keys with no hits inside the window."""
        inactive = [key for key, hits in self._hits.items() if not hits or hits[-1] <= window_start]
        for key in inactive:
            del self._hits[key]
        if inactive:
            logger.debug("Cleaned up %d inactive rate limit keys", len(inactive))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies the general and login sliding windows per client IP."""

    EXCLUDED_PATHS = {"/health", "/ping", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self.general = SlidingWindowLimiter(settings.rate_limit_requests, settings.rate_limit_window)
        self.login = SlidingWindowLimiter(settings.login_rate_limit_requests, settings.rate_limit_window)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        retry_after = self.general.hit(client_ip)
        if retry_after is None and request.method == "POST" and path == LOGIN_PATH:
            retry_after = self.login.hit(client_ip)

        if retry_after is not None:
            exc = RateLimitExceededError(retry_after=retry_after)
            logger.warning("Rate limit exceeded for %s on %s %s", client_ip, request.method, path)
            return error_response(
                status_code=429,
                error=exc.message,
                headers={"Retry-After": str(exc.retry_after)},
            )

        return await call_next(request)
