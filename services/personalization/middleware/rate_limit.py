"""
Per-client request budget over a one-minute sliding window in Redis.

Buckets (requests per minute, from settings):
  - rebuild  /profile/* calls, which replay a user's whole activity history
  - auth     callers identified by an upstream auth layer
  - anon     everyone else, keyed by client IP

Each bucket is a sorted set of request timestamps. Scoring never depends on
Redis: with no client, or when Redis errors, requests are let through.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request, Response
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from services.personalization.config import settings

logger = logging.getLogger(__name__)

REBUILD_PREFIX = "/profile/"
EXEMPT_PATHS = frozenset({"/health"})
WINDOW_SECONDS = 60.0


def get_rate_limit(path: str, is_authenticated: bool) -> tuple[int, str]:
    """(requests per minute, bucket name) for a request."""
    if path.startswith(REBUILD_PREFIX):
        return settings.rate_limit_rebuild_per_min, "rebuild"
    if is_authenticated:
        return settings.rate_limit_auth_per_min, "auth"
    return settings.rate_limit_anon_per_min, "anon"


def get_client_key(request: Request) -> tuple[str, bool]:
    """Identify the caller: user id when one was attached upstream, else IP."""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return f"user:{user_id}", True

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}", False
    return f"ip:{request.client.host if request.client else 'unknown'}", False


@dataclass(frozen=True)
class WindowUsage:
    limit: int
    tier: str
    used: int
    reset_at: float

    @property
    def exceeded(self) -> bool:
        return self.used >= self.limit

    def headers(self) -> dict[str, str]:
        out = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(max(0, self.limit - self.used - 1)),
            "X-RateLimit-Reset": str(int(self.reset_at)),
        }
        if self.exceeded:
            out["Retry-After"] = str(int(WINDOW_SECONDS))
        return out


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, redis_client=None):
        super().__init__(app)
        self.redis = redis_client

    async def _record_hit(self, key: str, request_tag: str, now: float) -> int:
        """Trim the window, count what is left, then log this request. Returns the prior count."""
        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(key, 0, now - WINDOW_SECONDS)
        pipe.zcard(key)
        pipe.zadd(key, {f"{now}:{request_tag}": now})
        pipe.expire(key, int(WINDOW_SECONDS * 2))
        _, count, _, _ = await pipe.execute()
        return count

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.redis is None or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_key, is_authenticated = get_client_key(request)
        limit, tier = get_rate_limit(request.url.path, is_authenticated)
        now = time.time()

        try:
            used = await self._record_hit(f"ratelimit:{tier}:{client_key}", str(id(request)), now)
        except RedisError:
            logger.warning("Rate limiter unavailable, passing request through", exc_info=True)
            return await call_next(request)

        usage = WindowUsage(limit=limit, tier=tier, used=used, reset_at=now + WINDOW_SECONDS)
        if usage.exceeded:
            logger.info("Rate limited %s on tier=%s", client_key, tier)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": {
                        "code": "RATE_LIMITED",
                        "message": f"Too many requests: {tier} allows {limit} per minute.",
                    },
                    "requestId": getattr(request.state, "request_id", ""),
                },
                headers=usage.headers(),
            )

        response = await call_next(request)
        response.headers.update(usage.headers())
        return response
