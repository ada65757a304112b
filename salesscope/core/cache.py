# salesscope/core/cache.py

"""
Simple in-memory cache service.

Used when no Redis URL is configured and in tests. Values are stored as
strings, mirroring what the Redis backend keeps. The map is an LRU capped
at max_size entries.
"""

from collections import OrderedDict
from typing import Any, Dict, Optional
from datetime import datetime, timedelta
import logging

logger = logging.getLogger(__name__)


class CacheService:
    """Simple in-memory LRU cache implementation"""

    def __init__(self, default_ttl: int = 300, max_size: int = 1000):
        self.default_ttl = default_ttl
        self.max_size = max_size
        self._cache: "OrderedDict[str, str]" = OrderedDict()
        self._expiry: Dict[str, datetime] = {}
        self.stats = {
            "hits": 0,
            "misses": 0,
            "evictions": 0,
            "expirations": 0,
        }

    async def get(self, key: str) -> Optional[str]:
        """Get value from cache"""
        if key not in self._cache:
            self.stats["misses"] += 1
            return None

        if key in self._expiry and datetime.utcnow() > self._expiry[key]:
            # Expired, remove it
            await self.delete(key)
            self.stats["expirations"] += 1
            self.stats["misses"] += 1
            return None

        # Move to end (most recently used)
        self._cache.move_to_end(key)
        self.stats["hits"] += 1
        return self._cache[key]

    def _purge_expired(self) -> None:
        now = datetime.utcnow()
        expired = [k for k, expires_at in self._expiry.items() if now > expires_at]
        for key in expired:
            self._cache.pop(key, None)
            self._expiry.pop(key, None)
        self.stats["expirations"] += len(expired)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Set value in cache with TTL in seconds"""
        ttl = ttl or self.default_ttl

        if key not in self._cache and len(self._cache) >= self.max_size:
            self._purge_expired()

        # Remove oldest items if still at capacity
        while key not in self._cache and len(self._cache) >= self.max_size:
            oldest_key, _ = self._cache.popitem(last=False)
            self._expiry.pop(oldest_key, None)
            self.stats["evictions"] += 1

        self._cache[key] = value
        self._cache.move_to_end(key)
        self._expiry[key] = datetime.utcnow() + timedelta(seconds=ttl)

        logger.debug(f"Cached key: {key} with TTL: {ttl}s")

    async def delete(self, key: str) -> None:
        """Delete key from cache"""
        self._cache.pop(key, None)
        self._expiry.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern"""
        # Simple pattern matching (just prefix for now)
        if pattern.endswith("*"):
            prefix = pattern[:-1]
            keys_to_delete = [k for k in self._cache if k.startswith(prefix)]
        else:
            keys_to_delete = [k for k in self._cache if pattern in k]

        for key in keys_to_delete:
            await self.delete(key)

        logger.debug(f"Deleted {len(keys_to_delete)} keys matching pattern: {pattern}")
        return len(keys_to_delete)

    async def close(self) -> None:
        self.clear()

    def clear(self) -> None:
        """Clear entire cache"""
        self._cache.clear()
        self._expiry.clear()

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
            "backend": "memory",
            "size": len(self._cache),
            "max_size": self.max_size,
            "hit_rate": f"{hit_rate:.2f}%",
        }


# Process-wide cache backend, chosen at startup
_cache_backend = None


async def init_cache(
    redis_url: Optional[str],
    default_ttl: int = 300,
    key_prefix: str = "salesscope",
    max_entries: int = 1000,
    failure_threshold: int = 5,
    recovery_timeout: int = 60,
):
    """Select and initialize the cache backend for this process."""
    global _cache_backend
    if redis_url:
        from .redis_cache import RedisCacheService

        backend = RedisCacheService(
            redis_url,
            default_ttl=default_ttl,
            key_prefix=key_prefix,
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
        )
        await backend.initialize()
        _cache_backend = backend
    else:
        logger.info("No Redis URL configured, using in-memory cache")
        _cache_backend = CacheService(default_ttl=default_ttl, max_size=max_entries)
    return _cache_backend


async def close_cache() -> None:
    global _cache_backend
    if _cache_backend is not None:
        await _cache_backend.close()
        _cache_backend = None


def get_cache():
    """FastAPI dependency returning the active cache backend"""
    global _cache_backend
    if _cache_backend is None:
        _cache_backend = CacheService()
    return _cache_backend
