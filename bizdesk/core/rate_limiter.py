from fastapi import Request
from redis import asyncio as aioredis
from typing import Optional
import logging

from .errors import RateLimitExceededError

logger = logging.getLogger(__name__)

class RateLimiter:
    def __init__(
        self,
        redis_url: Optional[str] = None,
        max_requests: int = 1000,
        window_seconds: int = 900,
        redis=None
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.redis = redis
        if self.redis is None and redis_url:
            try:
                self.redis = aioredis.from_url(
                    redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_timeout=5,
                    socket_connect_timeout=5,
                    retry_on_timeout=True,
                    max_connections=10
                )
            except Exception as e:
                logger.error(f"Failed to initialize Redis connection: {str(e)}")
                # Without Redis every request is allowed
                self.redis = None

    @staticmethod
    def identify(request: Request) -> str:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            return f"jwt_{auth_header[len('Bearer '):]}"
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return f"ip_{forwarded.split(',')[0].strip()}"
        host = request.client.host if request.client else "unknown"
        return f"ip_{host}"

    async def is_rate_limited(self, request: Request) -> bool:
        if self.redis is None:
            return False

        key = f"rate_limit:{self.identify(request)}"
        try:
            requests = await self.redis.get(key)

            if requests is None:
                # First request in this window
                await self.redis.setex(key, self.window_seconds, 1)
                return False

            if int(requests) >= self.max_requests:
                return True

            await self.redis.incr(key)
            return False

        except Exception as e:
            logger.error(f"Rate limiter error: {str(e)}")
            # On error, allow request to proceed
            return False

    async def close(self):
        if self.redis is not None:
            try:
                await self.redis.close()
            except Exception as e:
                logger.error(f"Error closing Redis connection: {str(e)}")

async def check_rate_limit(request: Request):
    """Router dependency applying the app's rate limiter."""
    limiter: RateLimiter = request.app.state.rate_limiter
    if await limiter.is_rate_limited(request):
        logger.warning(f"Rate limit exceeded: {request.method} {request.url.path}")
        raise RateLimitExceededError("too many requests")
