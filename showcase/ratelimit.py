"""Fixed-window rate limiting for the API routes using throttled-py"""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from throttled import RateLimiterType, Throttled, rate_limiter, store

from showcase.errors import RateLimited

logger = logging.getLogger(__name__)


def build_throttle(window_seconds: int, max_requests: int) -> Throttled:
    # In-memory counters are per process; run behind a shared limiter when scaling out.
    return Throttled(
        using=RateLimiterType.FIXED_WINDOW.value,
        quota=rate_limiter.per_duration(
            timedelta(seconds=window_seconds), limit=max_requests
        ),
        store=store.MemoryStore(),
    )


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def is_allowed(throttle: Throttled, key: str) -> bool:
    try:
        result = throttle.limit(f"api:{key}", cost=1)
    except Exception as ex:
        logger.warning("Rate limit check failed, allowing request: %s", ex)
        return True
    return not result.limited


def install_rate_limit(
    app: FastAPI, *, path_prefix: str, window_seconds: int, max_requests: int
) -> Throttled:
    """Throttle every request under ``path_prefix`` per client address."""
    throttle = build_throttle(window_seconds, max_requests)
    prefix = path_prefix.rstrip("/") + "/"

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        if request.url.path.startswith(prefix) and not is_allowed(
            throttle, client_key(request)
        ):
            return JSONResponse(RateLimited().payload(), status_code=429)
        return await call_next(request)

    return throttle
