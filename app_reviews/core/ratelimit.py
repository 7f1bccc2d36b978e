"""Address-based sliding-window rate limiting on Redis sorted sets.

Each hit is a sorted-set member scored by its timestamp. Members older
than the window are trimmed on every hit, so the set size is the number of
attempts in the trailing window. Blocked attempts count too.

Without Redis the limiter allows everything.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from uuid import uuid4

import redis.asyncio as redis
from fastapi import HTTPException, status

from app_reviews.core.logging import get_logger
from app_reviews.core.redis import get_redis, rate_limit_key


logger = get_logger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one limiter hit."""

    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0

    def headers(self) -> dict[str, str]:
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


class SlidingWindowRateLimiter:
    """At most ``max_requests`` per client address per ``window_seconds``."""

    def __init__(
        self,
        scope: str,
        max_requests: int,
        window_seconds: int,
        message: str = "Too many requests. Please try again later.",
        redis_getter: Callable[[], redis.Redis | None] = get_redis,
    ):
        self.scope = scope
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._redis_getter = redis_getter
        self._warned_unavailable = False

    def _allow_unlimited(self) -> RateLimitResult:
        return RateLimitResult(
            allowed=True, limit=self.max_requests, remaining=self.max_requests
        )

    async def hit(self, client_ip: str | None) -> RateLimitResult:
        """Record an attempt from ``client_ip`` and decide whether it passes."""
        redis_client = self._redis_getter()
        if redis_client is None:
            if not self._warned_unavailable:
                logger.warning("rate_limiter_disabled", scope=self.scope)
                self._warned_unavailable = True
            return self._allow_unlimited()

        key = rate_limit_key(self.scope, client_ip or "unknown")
        now = time.time()

        try:
            pipe = redis_client.pipeline()
            pipe.zremrangebyscore(key, 0, now - self.window_seconds)
            pipe.zadd(key, {f"{now}:{uuid4().hex}": now})
            pipe.zcard(key)
            pipe.expire(key, self.window_seconds)
            results = await pipe.execute()
        except redis.RedisError as e:
            logger.warning("rate_limiter_error", scope=self.scope, error=str(e))
            return self._allow_unlimited()

        count = int(results[2])
        if count > self.max_requests:
            logger.info(
                "rate_limit_exceeded",
                scope=self.scope,
                client_ip=client_ip,
                count=count,
            )
            return RateLimitResult(
                allowed=False,
                limit=self.max_requests,
                remaining=0,
                retry_after=self.window_seconds,
            )

        return RateLimitResult(
            allowed=True,
            limit=self.max_requests,
            remaining=self.max_requests - count,
        )

    async def enforce(self, client_ip: str | None) -> RateLimitResult:
        """Like ``hit`` but raises 429 when the limit is exceeded."""
        result = await self.hit(client_ip)
        if not result.allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=self.message,
                headers=result.headers(),
            )
        return result
