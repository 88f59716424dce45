import time

from fastapi import Request
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware

from wcag_audit.platform.config import settings
from wcag_audit.platform.logger import get_logger
from wcag_audit.platform.response import error_response

logger = get_logger(__name__)

WINDOW_SECONDS = 60


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP fixed window limit on the POST endpoints listed in settings.RATE_LIMITS."""

    def __init__(self, app):
        super().__init__(app)
        self.redis = None
        self.memory_store = {}

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "testclient"

        # Skip limit if whitelisted
        if client_ip in settings.WHITELIST_IPS:
            return await call_next(request)

        path = request.url.path
        limit = settings.RATE_LIMITS.get(path)

        # Only submissions are limited; page views and polling are free
        if limit is None or request.method != "POST":
            return await call_next(request)

        if settings.FORCE_IN_MEMORY_RATE_LIMITER:
            retry_after = self._hit_memory(f"{client_ip}:{path}", limit)
        else:
            retry_after = await self._hit_redis(f"rl:{client_ip}:{path}", limit)

        if retry_after is not None:
            logger.warning(f"Rate limit exceeded for {client_ip} on {path}")
            return error_response(
                error="Trop de requêtes, réessayez dans une minute",
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _hit_memory(self, key: str, limit: int):
        now = time.time()
        count, expiry = self.memory_store.get(key, (0, now + WINDOW_SECONDS))

        if now > expiry:
            count = 0
            expiry = now + WINDOW_SECONDS

        if count >= limit:
            return max(int(expiry - now), 1)

        self.memory_store[key] = (count + 1, expiry)
        return None

    async def _hit_redis(self, key: str, limit: int):
        if self.redis is None:
            self.redis = Redis.from_url(settings.REDIS_URL, decode_responses=True)

        current_count = await self.redis.get(key)
        if current_count is None:
            await self.redis.set(key, 1, ex=WINDOW_SECONDS)
            return None

        if int(current_count) >= limit:
            ttl = await self.redis.ttl(key)
            return max(ttl, 1)

        await self.redis.incr(key)
        return None
