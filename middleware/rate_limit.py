"""
Per-client request rate limiting for every route.

Requests are counted in fixed windows keyed by client IP using ``limits``,
the engine behind flask-limiter. Once any configured limit is used up the
request is answered with the usual 429 error envelope and never reaches a
router.
"""

from __future__ import annotations

import math
import time
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from limits import RateLimitItem, parse_many
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter

from config import RateLimitSettings
from errors import RateLimitError
from shared.ip_utils import get_client_ip
from shared.logging import get_logger

log = get_logger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."


class RateLimiter:
    """Fixed-window limiter over one or more limits sharing one storage."""

    def __init__(self, settings: RateLimitSettings) -> None:
        self.limits: list[RateLimitItem] = parse_many(settings.rate_limit_default)
        self._strategy = FixedWindowRateLimiter(
            storage_from_string(settings.rate_limit_storage_uri)
        )

    def hit(self, key: str) -> Optional[int]:
        """Count one request for *key*; return seconds to wait when over a limit."""
        for item in self.limits:
            if not self._strategy.hit(item, key):
                stats = self._strategy.get_window_stats(item, key)
                return max(1, math.ceil(stats.reset_time - time.time()))
        return None

    def remaining(self, key: str) -> int:
        return min(
            self._strategy.get_window_stats(item, key).remaining for item in self.limits
        )


def install_rate_limiter(app: FastAPI, settings: RateLimitSettings) -> None:
    """Register the limiter as HTTP middleware on *app* unless disabled."""
    if not settings.rate_limit_enabled:
        return

    limiter = RateLimiter(settings)
    app.state.rate_limiter = limiter

    @app.middleware("http")
    async def rate_limit(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        key = get_client_ip(request) or "unknown"
        retry_after = limiter.hit(key)
        if retry_after is not None:
            log.warning(
                "rate_limit_exceeded",
                client_ip=key,
                path=request.url.path,
                retry_after=retry_after,
            )
            # Middleware sits outside the AppError handlers, so render here
            error = RateLimitError(RATE_LIMIT_MESSAGE, details={"retry_after": retry_after})
            return JSONResponse(
                error.to_dict(),
                status_code=error.status_code,
                headers={"Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(limiter.limits[0].amount)
        response.headers["RateLimit-Remaining"] = str(limiter.remaining(key))
        return response
