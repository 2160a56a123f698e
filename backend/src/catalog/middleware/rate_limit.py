"""Rate limiting middleware using Redis with an atomic Lua script."""

import logging
import random
import time
from typing import Callable

from fastapi import Request, Response
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from catalog.core.redis import get_redis

logger = logging.getLogger(__name__)

WRITE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP sliding window rate limits.

    Storefront reads and admin writes are counted in separate windows so a
    burst of page views cannot starve curation edits, and the write limit
    is much lower than the read limit. If Redis is unreachable requests
    are let through.
    """

    RATE_LIMIT_SCRIPT = """
    local key = KEYS[1]
    local now = tonumber(ARGV[1])
    local window = tonumber(ARGV[2])
    local limit = tonumber(ARGV[3])
    local request_id = ARGV[4]
    local window_start = now - window

    redis.call('ZREMRANGEBYSCORE', key, 0, window_start)

    local count = redis.call('ZCARD', key)

    if count < limit then
        redis.call('ZADD', key, now, request_id)
        redis.call('EXPIRE', key, window + 1)
        return {1, 0}
    else
        local oldest = redis.call('ZRANGE', key, 0, 0, 'WITHSCORES')
        local retry_after = 1
        if oldest and #oldest >= 2 then
            retry_after = math.ceil(oldest[2] + window - now)
            if retry_after < 1 then retry_after = 1 end
        end
        return {0, retry_after}
    end
    """

    EXEMPT_PATHS = ("/health", "/metrics")

    def __init__(self, app, read_limit: int = 100, write_limit: int = 10):
        super().__init__(app)
        self.read_limit = read_limit
        self.write_limit = write_limit
        self._rate_limit_script = None

    async def _get_rate_limit_script(self, redis):
        """Get or register the rate limit Lua script."""
        if self._rate_limit_script is None:
            self._rate_limit_script = redis.register_script(self.RATE_LIMIT_SCRIPT)
        return self._rate_limit_script

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in self.EXEMPT_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        if request.method in WRITE_METHODS:
            key, limit = f"ratelimit:write:{client_ip}", self.write_limit
        else:
            key, limit = f"ratelimit:read:{client_ip}", self.read_limit

        try:
            redis = await get_redis()
            allowed, retry_after = await self._check_rate_limit_lua(redis, key, limit)
        except (RedisError, OSError) as e:
            logger.warning(f"Rate limiter unavailable, allowing request: {e}")
            return await call_next(request)

        if not allowed:
            return JSONResponse(
                status_code=429,
                content={"success": False, "message": "Too many requests, try again shortly"},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    async def _check_rate_limit_lua(
        self, redis, key: str, limit: int, window: int = 1
    ) -> tuple[bool, int]:
        """Check and record one request in a single atomic Redis call.

        Args:
            redis: Redis client
            key: Rate limit key
            limit: Maximum requests per window
            window: Window size in seconds

        Returns:
            Tuple of (allowed, retry_after_seconds)
        """
        now = time.time()
        request_id = f"{now}:{random.randint(0, 999999)}"

        script = await self._get_rate_limit_script(redis)
        result = await script(
            keys=[key],
            args=[now, window, limit, request_id],
        )

        return bool(result[0]), int(result[1])
