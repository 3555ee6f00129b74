"""
Redis-backed fixed-window rate limiting

The limiter is created by the application factory and kept on
``app.state.rate_limiter``; routes opt in through dependencies built with
``create_rate_limiter``.
"""

import logging
from typing import Optional

import redis
from fastapi import Request

from . import config
from .errors import RateLimitExceeded, ServiceUnavailable

logger = logging.getLogger(__name__)


def create_redis_client(redis_url: str = config.REDIS_URL) -> redis.Redis:
    """Create a Redis client for rate limiting (connection is tested lazily)"""
    if "@" in redis_url:
        url_parts = redis_url.split("@")
        protocol = url_parts[0].split(":")[0]
        masked_url = f"{protocol}:****@{url_parts[1]}"
    else:
        masked_url = redis_url
    logger.info(f"📡 Using Redis URL connection: {masked_url}")

    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
        health_check_interval=30,
        max_connections=20,
    )


class RateLimiter:
    """Counts hits per key in fixed windows using INCR + EXPIRE"""

    def __init__(self, client: Optional[redis.Redis], enabled: bool = True):
        self.client = client
        self.enabled = enabled and client is not None

    def hit(self, key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
        """
        Record one hit for key.

        Returns:
            Tuple of (is_allowed, current_count, ttl_seconds)
        """
        pipe = self.client.pipeline()
        pipe.incr(key)
        pipe.ttl(key)
        count, ttl = pipe.execute()

        # First hit in a window (or a key that lost its expiry)
        if ttl is None or ttl < 0:
            self.client.expire(key, window_seconds)
            ttl = window_seconds

        return count <= limit, count, ttl

    def ping(self) -> bool:
        if self.client is None:
            return False
        try:
            return bool(self.client.ping())
        except Exception as e:
            logger.warning(f"⚠️ Redis ping failed: {e}")
            return False

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request,
    limit: int,
    window_seconds: int,
    key_prefix: str = "rate_limit",
    use_ip: bool = True,
):
    """
    FastAPI dependency for rate limiting

    Args:
        request: FastAPI request object
        limit: Maximum requests allowed
        window_seconds: Time window in seconds
        key_prefix: Prefix for Redis key
        use_ip: If True, use client IP in key (per-IP limit), otherwise global
    """
    limiter: Optional[RateLimiter] = getattr(request.app.state, "rate_limiter", None)
    if limiter is None or not limiter.enabled:
        return

    key = f"{key_prefix}:{get_client_ip(request)}" if use_ip else f"{key_prefix}:global"

    try:
        is_allowed, current_count, ttl = limiter.hit(key, limit, window_seconds)
    except Exception as e:
        logger.error(f"❌ Rate limiting error: {str(e)}")
        logger.warning("🔒 Denying request due to rate limiting error (fail-closed mode)")
        raise ServiceUnavailable("Rate limiting service temporarily unavailable") from e

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit} requests used")
        raise RateLimitExceeded(
            f"Too many requests. Maximum {limit} requests per {window_seconds} seconds.",
            headers={"Retry-After": str(ttl)},
        )

    request.state.rate_limit_remaining = limit - current_count
    request.state.rate_limit_limit = limit


def create_rate_limiter(
    limit: int, window_seconds: int, key_prefix: str = "rate_limit", use_ip: bool = True
):
    """
    Create a rate limiter dependency with specific parameters

    Example usage:
        rate_limit_login = create_rate_limiter(limit=5, window_seconds=900, key_prefix="auth_login")

        @router.post("/login")
        async def login(data: LoginRequest, _: None = Depends(rate_limit_login)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix, use_ip)

    return rate_limiter


rate_limit_api = create_rate_limiter(
    limit=config.RATE_LIMIT_MAX_REQUESTS,
    window_seconds=config.RATE_LIMIT_WINDOW_SECONDS,
    key_prefix="api",
)

rate_limit_auth = create_rate_limiter(
    limit=config.AUTH_RATE_LIMIT_MAX_REQUESTS,
    window_seconds=config.AUTH_RATE_LIMIT_WINDOW_SECONDS,
    key_prefix="auth",
)
