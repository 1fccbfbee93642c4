"""
Profile Service - Rate Limiting Middleware
===========================================

What:  Per-IP sliding window rate limiter (default 100 requests / 15 minutes).
How:   Tracks request timestamps per IP in memory. Over-quota requests are
       answered with the 429 envelope and never reach the routes.
When:  After the session middleware, so rejections are logged with the
       request's session token.

Algorithm: Sliding Window Log
    1. Each IP gets a list of request timestamps
    2. On each request, drop timestamps older than the window
    3. If remaining count >= limit, reject with 429
    4. Otherwise, record the current timestamp and let the request through

    Time complexity: O(k) where k = number of requests in window
    Space complexity: O(n × k) where n = unique IPs, k = requests per IP

Scope:
    Counting is in-memory and per process. Several workers or instances
    would each count separately; a shared counter (e.g. Redis INCR with TTL)
    would be needed for that and is not provided here.
"""

import logging
import time
from collections import defaultdict
from typing import Callable, Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from profile_service.config import settings
from profile_service.context import get_request_context
from profile_service.envelope import responses
from profile_service.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding window counter keyed by client address.

    hit() checks and records in one step with no await point, so on a single
    event loop concurrent requests cannot interleave inside it.
    """

    # Prune inactive keys every N admitted requests
    CLEANUP_EVERY = 1000

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._admitted = 0

    def hit(self, key: str, now: Optional[float] = None) -> Optional[int]:
        """
        Record a request for `key`.

        Returns None if the request is admitted, otherwise the number of
        seconds until the oldest request in the window expires.
        """
        now = self._clock() if now is None else now
        window_start = now - self.window_seconds

        timestamps = [ts for ts in self._requests[key] if ts > window_start]
        self._requests[key] = timestamps

        if len(timestamps) >= self.max_requests:
            return int(timestamps[0] + self.window_seconds - now) + 1

        timestamps.append(now)
        self._admitted += 1
        if self._admitted % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive(window_start)
        return None

    def count(self, key: str) -> int:
        return len(self._requests.get(key, ()))

    def reset(self) -> None:
        self._requests.clear()
        self._admitted = 0

    def _cleanup_inactive(self, window_start: float) -> None:
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for key in inactive:
            del self._requests[key]
        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit entries", len(inactive))


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Rejects over-quota clients with the uniform envelope.

    Response on rate limit:
        HTTP 429 Too Many Requests
        Retry-After header: seconds until the oldest request leaves the window
        Body: {"success": false, "code": 429, "message": <table 429>, "data": {}}
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: Optional[int] = None,
        window_seconds: Optional[float] = None,
        limiter: Optional[RateLimiter] = None,
    ):
        super().__init__(app)
        self.limiter = limiter or RateLimiter(
            max_requests or settings.rate_limit_requests,
            window_seconds or settings.rate_limit_window,
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Behind a proxy this is the proxy's address unless uvicorn is run
        # with --proxy-headers
        client_ip = request.client.host if request.client else "unknown"

        retry_after = self.limiter.hit(client_ip)
        if retry_after is not None:
            ctx = get_request_context(request)
            ctx.logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ss window",
                client_ip,
                self.limiter.count(client_ip),
                self.limiter.window_seconds,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return responses.output(
                responses.payload(exc.success, exc.code, exc.message, exc.data),
                exc.http_status,
                headers=exc.headers,
            )

        return await call_next(request)
