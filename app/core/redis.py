"""
Redis configuration and connection management
"""

import redis.asyncio as redis
from typing import Optional, Any
import json
import logging
import asyncio
import time
import uuid

from app.config import settings

logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[redis.Redis] = None


async def init_redis():
    """
    Initialize Redis connection
    """
    global redis_client
    try:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True
        )
        # Test connection
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_redis():
    """
    Close Redis connection
    """
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        redis_manager.client = None
        logger.info("Redis connection closed")


async def get_redis() -> redis.Redis:
    """
    Get Redis client
    """
    if not redis_client:
        await init_redis()
    return redis_client


class CircuitBreakerOpen(Exception):
    """Raised while the breaker refuses calls"""


class CircuitBreaker:
    """
    Circuit breaker for Redis operations
    """
    def __init__(self, failure_threshold=5, recovery_timeout=60, half_open_max_calls=3):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.half_open_max_calls = half_open_max_calls

        self.failure_count = 0
        self.last_failure_time = None
        self.state = "CLOSED"  # CLOSED, OPEN, HALF_OPEN
        self.half_open_calls = 0

        self._lock = asyncio.Lock()

    async def is_open(self) -> bool:
        async with self._lock:
            if self.state == "OPEN":
                if time.time() - self.last_failure_time >= self.recovery_timeout:
                    self.state = "HALF_OPEN"
                    self.half_open_calls = 0
                    return False
                return True
            return False

    async def record_success(self):
        async with self._lock:
            self.failure_count = 0
            self.half_open_calls = 0
            self.state = "CLOSED"

    async def record_failure(self):
        async with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.time()
            self.half_open_calls = 0

            if self.state == "HALF_OPEN" or self.failure_count >= self.failure_threshold:
                self.state = "OPEN"

    async def call(self, func, *args, **kwargs):
        if await self.is_open():
            raise CircuitBreakerOpen("Circuit breaker is open")

        async with self._lock:
            if self.state == "HALF_OPEN":
                if self.half_open_calls >= self.half_open_max_calls:
                    raise CircuitBreakerOpen("Half-open call limit exceeded")
                self.half_open_calls += 1

        try:
            result = await func(*args, **kwargs)
            await self.record_success()
            return result
        except Exception:
            await self.record_failure()
            raise


class RedisManager:
    """
    Redis manager with circuit breaker, JSON values and rate limiting
    """

    def __init__(self):
        self.client: Optional[redis.Redis] = None
        self.circuit_breaker = CircuitBreaker()
        self.logger = logging.getLogger(__name__)

    async def get_client(self) -> redis.Redis:
        """Get Redis client"""
        if not self.client:
            self.client = await get_redis()
        return self.client

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = await self.get_client()
        value = await self.circuit_breaker.call(client.get, key)
        if value:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """Set value in cache with optional TTL"""
        client = await self.get_client()
        if not isinstance(value, str):
            value = json.dumps(value)

        if ttl:
            return await self.circuit_breaker.call(client.setex, key, ttl, value)
        return await self.circuit_breaker.call(client.set, key, value)

    async def is_rate_limited(
        self,
        key: str,
        limit: int,
        window: int = 60
    ) -> tuple[bool, int]:
        """
        Check if rate limit is exceeded using atomic Lua script

        Args:
            key: Rate limit key (e.g., "user:123:venue_bookings")
            limit: Maximum number of requests
            window: Time window in seconds

        Returns:
            Tuple of (is_limited, current_count)
        """
        rate_key = f"rate:{key}"

        # Atomic Lua script for sliding window rate limiting
        lua_script = """
        local rate_key = KEYS[1]
        local limit = tonumber(ARGV[1])
        local window = tonumber(ARGV[2])
        local timestamp = tonumber(ARGV[3])
        local unique_id = ARGV[4]

        local window_start = timestamp - (window * 1000)

        redis.call("zremrangebyscore", rate_key, 0, window_start)

        local current_count = redis.call("zcard", rate_key)

        if current_count < limit then
            redis.call("zadd", rate_key, timestamp, unique_id)
            redis.call("expire", rate_key, window + 1)
            return {0, current_count + 1}
        else
            return {1, current_count}
        end
        """

        try:
            client = await self.get_client()
            result = await self.circuit_breaker.call(
                self._execute_rate_limit_script,
                client, lua_script, rate_key, limit, window
            )

            is_limited = bool(result[0])
            current_count = int(result[1])

            return is_limited, current_count
        except Exception as e:
            self.logger.error(f"Error checking rate limit for {key}: {e}")
            return False, 0  # Fail open for rate limiting

    async def _execute_rate_limit_script(self, client, lua_script, rate_key, limit, window):
        """Helper method for rate limiting script execution"""
        now = await client.time()
        timestamp = now[0] * 1000 + now[1] // 1000
        unique_id = str(uuid.uuid4())

        return await client.eval(
            lua_script,
            1,
            rate_key,
            limit,
            window,
            timestamp,
            unique_id
        )


# Create global Redis manager
redis_manager = RedisManager()
