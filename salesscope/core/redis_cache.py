"""
Redis-based cache service for production use.

Provides distributed caching with:
- TTL support with configurable defaults
- Key prefixing per deployment
- Pattern-based invalidation
- Hit/miss statistics
- Circuit breaker for Redis failures

Values are opaque strings; callers own serialization.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError, ConnectionError as RedisConnectionError

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """
    Stops calling Redis after repeated failures.

    closed: calls go through. open: calls are skipped until recovery_timeout
    seconds have passed since the circuit opened. half-open: a trial call is
    allowed; success closes the circuit and failure opens it again.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = timedelta(seconds=recovery_timeout)
        self.failures = 0
        self.opened_at: Optional[datetime] = None
        self.state = self.CLOSED

    def record_success(self) -> None:
        self.failures = 0
        self.opened_at = None
        self.state = self.CLOSED

    def record_failure(self) -> None:
        self.failures += 1
        if self.state == self.HALF_OPEN or self.failures >= self.failure_threshold:
            logger.warning(f"Redis circuit opened after {self.failures} failures")
            self.state = self.OPEN
            self.opened_at = datetime.utcnow()

    def allow_request(self) -> bool:
        if self.state == self.OPEN and datetime.utcnow() - self.opened_at >= self.recovery_timeout:
            self.state = self.HALF_OPEN
        return self.state != self.OPEN


class RedisCacheService:
    """
    Redis cache with the same surface as the in-memory CacheService.

    A failing Redis never fails the caller: reads degrade to misses and
    writes are dropped while the circuit is open.
    """

    def __init__(
        self,
        redis_url: str,
        default_ttl: int = 300,
        key_prefix: str = "salesscope",
        max_connections: int = 50,
        socket_timeout: int = 5,
        socket_connect_timeout: int = 5,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
    ):
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self.key_prefix = key_prefix
        self.redis_client: Optional[redis.Redis] = None
        self.circuit_breaker = CircuitBreaker(failure_threshold, recovery_timeout)

        # Connection pool configuration
        self.pool_kwargs = {
            "max_connections": max_connections,
            "socket_timeout": socket_timeout,
            "socket_connect_timeout": socket_connect_timeout,
            "decode_responses": True,
            "retry_on_timeout": True,
            "retry_on_error": [RedisConnectionError],
        }

        self.stats = {
            "hits": 0,
            "misses": 0,
            "errors": 0,
            "circuit_breaker_trips": 0,
        }

    async def initialize(self):
        """Initialize Redis connection pool."""
        try:
            self.redis_client = redis.Redis.from_url(
                self.redis_url,
                **self.pool_kwargs
            )
            await self.redis_client.ping()
            logger.info(f"Redis cache connected to {self.redis_url}")
        except RedisError as e:
            # Don't raise - allow graceful degradation
            logger.error(f"Failed to connect to Redis: {e}")
            self.circuit_breaker.record_failure()

    async def close(self):
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}:{key}"

    async def get(self, key: str) -> Optional[str]:
        """Get value from cache."""
        if not self.circuit_breaker.allow_request():
            self.stats["circuit_breaker_trips"] += 1
            return None

        if not self.redis_client:
            return None

        full_key = self._make_key(key)

        try:
            data = await self.redis_client.get(full_key)
        except RedisError as e:
            self.stats["errors"] += 1
            self.circuit_breaker.record_failure()
            logger.error(f"Cache get error for {full_key}: {e}")
            return None

        self.circuit_breaker.record_success()
        if data is None:
            self.stats["misses"] += 1
            return None

        self.stats["hits"] += 1
        return data

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> bool:
        """Set value in cache with TTL in seconds."""
        if not self.circuit_breaker.allow_request():
            self.stats["circuit_breaker_trips"] += 1
            return False

        if not self.redis_client:
            return False

        full_key = self._make_key(key)
        ttl = ttl or self.default_ttl

        try:
            await self.redis_client.setex(full_key, ttl, value)
        except RedisError as e:
            self.stats["errors"] += 1
            self.circuit_breaker.record_failure()
            logger.error(f"Cache set error for {full_key}: {e}")
            return False

        self.circuit_breaker.record_success()
        return True

    async def delete(self, key: str) -> bool:
        """Delete a key from cache."""
        if not self.redis_client:
            return False

        full_key = self._make_key(key)

        try:
            result = await self.redis_client.delete(full_key)
            return bool(result)
        except RedisError as e:
            logger.error(f"Cache delete error for {full_key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern."""
        if not self.redis_client:
            return 0

        full_pattern = self._make_key(pattern)
        deleted_count = 0

        try:
            # Use SCAN for better performance
            cursor = 0
            while True:
                cursor, keys = await self.redis_client.scan(
                    cursor,
                    match=full_pattern,
                    count=100
                )

                if keys:
                    deleted_count += await self.redis_client.delete(*keys)

                if cursor == 0:
                    break

            return deleted_count

        except RedisError as e:
            logger.error(f"Cache delete pattern error for {full_pattern}: {e}")
            return deleted_count

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self.stats["hits"] + self.stats["misses"]
        hit_rate = (
            (self.stats["hits"] / total_requests * 100)
            if total_requests > 0
            else 0
        )
        return {
            **self.stats,
            "backend": "redis",
            "hit_rate": f"{hit_rate:.2f}%",
            "circuit_state": self.circuit_breaker.state,
        }
