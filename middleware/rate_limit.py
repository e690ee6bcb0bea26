"""
Rate Limiting

Protects checkout and payment verification from abuse using Redis-based
fixed-window counters.

Features:
- Per-client counters per operation (logged-in user id, else client IP)
- Configurable limits via environment variables
- Automatic expiry using Redis TTL
- Fails open: a Redis outage never blocks a customer

Configuration:
- REDIS_URL: empty disables rate limiting
- MAX_ORDERS_PER_USER_PER_HOUR: Maximum checkouts per client per hour
- MAX_PAYMENT_CHECKS_PER_MINUTE: Maximum payment verifications per client per minute
"""

import logging

from redis.asyncio import Redis

import config
from enums.rate_limit_operation import RateLimitOperation
from exceptions.base import RateLimitExceededException

logger = logging.getLogger(__name__)

# Window and limit per operation
OPERATION_LIMITS: dict[RateLimitOperation, tuple[int, int]] = {
    RateLimitOperation.PAYMENT_CHECK: (config.MAX_PAYMENT_CHECKS_PER_MINUTE, 60),
    RateLimitOperation.CART_CHECKOUT: (config.MAX_ORDERS_PER_USER_PER_HOUR, 3600),
}

_redis: Redis | None = None


class RateLimiter:
    """
    Redis-based rate limiter for specific operations.

    Usage:
        limiter = RateLimiter(redis)
        if (await limiter.is_rate_limited("payment_check", client_key, max_count=10, window_seconds=60))[0]:
            # Client exceeded rate limit
            pass
    """

    def __init__(self, redis: Redis):
        self.redis = redis

    async def is_rate_limited(
        self,
        operation: str,
        client_key: str,
        max_count: int,
        window_seconds: int
    ) -> tuple[bool, int, int]:
        """
        Count one more operation for the client and check it against the limit.

        Returns:
            Tuple of (is_limited, current_count, remaining_count)
        """
        key = f"rate_limit:{operation}:{client_key}"

        try:
            current_count = await self.redis.incr(key)

            # Start the window on the first hit
            if current_count == 1:
                await self.redis.expire(key, window_seconds)

            is_limited = current_count > max_count
            remaining = max(0, max_count - current_count)

            if is_limited:
                ttl = await self.redis.ttl(key)
                logger.warning(
                    f"Rate limit exceeded: client={client_key}, operation={operation}, "
                    f"count={current_count}/{max_count}, resets_in={ttl}s"
                )

            return is_limited, current_count, remaining

        except Exception as e:
            # If Redis fails, don't block the operation (fail open)
            logger.error(f"Rate limiter error: {e}")
            return False, 0, max_count

    async def reset_limit(self, operation: str, client_key: str):
        key = f"rate_limit:{operation}:{client_key}"
        await self.redis.delete(key)
        logger.info(f"Rate limit reset: client={client_key}, operation={operation}")

    async def get_remaining_time(self, operation: str, client_key: str) -> int:
        """Seconds until the window resets (0 when no window is open)."""
        key = f"rate_limit:{operation}:{client_key}"
        try:
            ttl = await self.redis.ttl(key)
        except Exception as e:
            logger.error(f"Rate limiter error: {e}")
            return 0
        return ttl if ttl > 0 else 0

    async def enforce(self, operation: RateLimitOperation, client_key: str) -> None:
        """
        Raises:
            RateLimitExceededException: with the seconds until the window resets
        """
        max_count, window_seconds = OPERATION_LIMITS[operation]
        is_limited, _, _ = await self.is_rate_limited(operation.value, client_key, max_count, window_seconds)
        if is_limited:
            retry_after = await self.get_remaining_time(operation.value, client_key) or window_seconds
            raise RateLimitExceededException(operation.value, retry_after)


def set_redis(redis: Redis | None) -> None:
    global _redis
    _redis = redis


async def open_redis() -> None:
    """Connect to REDIS_URL at startup; without it rate limiting stays off."""
    if not config.REDIS_URL:
        logger.info("REDIS_URL not set, rate limiting disabled")
        return
    set_redis(Redis.from_url(config.REDIS_URL))
    logger.info("✅ Redis connected for rate limiting")


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


async def check_rate_limit(operation: RateLimitOperation, client_key: str) -> None:
    """No-op when Redis is not configured."""
    if _redis is None:
        return
    await RateLimiter(_redis).enforce(operation, client_key)
