# app/infrastructure/cache.py
"""
Cache Adapter for the chat session store.
Provides a clean interface over Redis (production) or process memory
(tests/development). Backend failures raise CacheError; a miss is None.
"""

import time
import logging
from collections import OrderedDict
from typing import Optional, List, Dict, Any

from redis.exceptions import RedisError

from app.db.redis_client import get_redis

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Cache backend unreachable or operation rejected"""
    pass


class CacheAdapter:
    """
    Abstract interface for cache operations.
    Allows easy swapping of cache backends.
    """

    async def get(self, key: str) -> Optional[str]:
        """Get value by key"""
        raise NotImplementedError

    async def set(self, key: str, value: str, ttl: int) -> bool:
        """Set value with TTL"""
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        """Delete key"""
        raise NotImplementedError

    async def exists(self, key: str) -> bool:
        """Check if key exists"""
        raise NotImplementedError

    async def lpush(self, key: str, value: str) -> bool:
        raise NotImplementedError

    async def lrem(self, key: str, value: str) -> int:
        raise NotImplementedError

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        raise NotImplementedError

    async def lrange(self, key: str, start: int, end: int) -> List[str]:
        raise NotImplementedError

    async def expire(self, key: str, ttl: int) -> bool:
        raise NotImplementedError


class RedisCache(CacheAdapter):
    """
    Redis-based cache implementation.
    Uses the shared redis_client for connection management.
    """

    def __init__(self, redis_client=None):
        """
        Args:
            redis_client: Optional redis.asyncio client (defaults to get_redis())
        """
        self.redis = redis_client or get_redis()
        logger.debug("✓ RedisCache initialized with shared Redis client")

    async def get(self, key: str) -> Optional[str]:
        """
        Get value by key.

        Returns:
            Cached value as string, or None if not found
        """
        try:
            value = await self.redis.get(key)
        except RedisError as e:
            logger.error(f"[RedisCache] Error getting key '{key}': {e}")
            raise CacheError(f"get '{key}' failed: {e}") from e

        if value:
            logger.debug(f"Cache HIT: {key}")
        else:
            logger.debug(f"Cache MISS: {key}")
        return value

    async def set(self, key: str, value: str, ttl: int) -> bool:
        """
        Set value with TTL.

        Args:
            key: Cache key
            value: Value to cache (string)
            ttl: Time-to-live in seconds
        """
        try:
            await self.redis.setex(key, ttl, value)
        except RedisError as e:
            logger.error(f"[RedisCache] Error setting key '{key}': {e}")
            raise CacheError(f"set '{key}' failed: {e}") from e

        logger.debug(f"Cache SET: {key} (TTL={ttl}s)")
        return True

    async def delete(self, key: str) -> bool:
        try:
            result = await self.redis.delete(key)
        except RedisError as e:
            logger.error(f"[RedisCache] Error deleting key '{key}': {e}")
            raise CacheError(f"delete '{key}' failed: {e}") from e

        if result > 0:
            logger.debug(f"Cache DELETE: {key}")
        return result > 0

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis.exists(key))
        except RedisError as e:
            logger.error(f"[RedisCache] Error checking key '{key}': {e}")
            raise CacheError(f"exists '{key}' failed: {e}") from e

    # ============================================================
    # LIST OPERATIONS (per-user session index)
    # ============================================================

    async def lpush(self, key: str, value: str) -> bool:
        """List push operation (prepend to list)."""
        try:
            await self.redis.lpush(key, value)
        except RedisError as e:
            logger.error(f"[RedisCache] Error lpush to '{key}': {e}")
            raise CacheError(f"lpush '{key}' failed: {e}") from e

        logger.debug(f"List LPUSH: {key}")
        return True

    async def lrem(self, key: str, value: str) -> int:
        """Remove every occurrence of value from the list."""
        try:
            return await self.redis.lrem(key, 0, value)
        except RedisError as e:
            logger.error(f"[RedisCache] Error lrem from '{key}': {e}")
            raise CacheError(f"lrem '{key}' failed: {e}") from e

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        """List trim operation (keep only elements in range, end inclusive)."""
        try:
            await self.redis.ltrim(key, start, end)
        except RedisError as e:
            logger.error(f"[RedisCache] Error ltrim '{key}': {e}")
            raise CacheError(f"ltrim '{key}' failed: {e}") from e

        logger.debug(f"List LTRIM: {key} [{start}:{end}]")
        return True

    async def lrange(self, key: str, start: int, end: int) -> List[str]:
        """List range operation (end inclusive, -1 for end of list)."""
        try:
            values = await self.redis.lrange(key, start, end)
        except RedisError as e:
            logger.error(f"[RedisCache] Error lrange '{key}': {e}")
            raise CacheError(f"lrange '{key}' failed: {e}") from e

        logger.debug(f"List LRANGE: {key} [{start}:{end}] -> {len(values)} items")
        return values

    # ============================================================
    # TTL OPERATIONS
    # ============================================================

    async def expire(self, key: str, ttl: int) -> bool:
        """Set/update TTL for existing key."""
        try:
            return bool(await self.redis.expire(key, ttl))
        except RedisError as e:
            logger.error(f"[RedisCache] Error setting expire for '{key}': {e}")
            raise CacheError(f"expire '{key}' failed: {e}") from e


class InMemoryCache(CacheAdapter):
    """
    In-memory cache for testing/development.
    NOT for production use.
    """

    def __init__(self, max_size: int = 1000):
        self._store: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self.max_size = max_size
        logger.warning("⚠️  Using InMemoryCache - NOT RECOMMENDED FOR PRODUCTION")

    def _evict_expired(self):
        """Remove expired items"""
        now = time.time()
        expired = [
            k for k, v in self._store.items()
            if v['expires_at'] is not None and v['expires_at'] < now
        ]
        for k in expired:
            self._store.pop(k, None)

    def _put(self, key: str, data: Any, expires_at: Optional[float]):
        if len(self._store) >= self.max_size and key not in self._store:
            self._store.popitem(last=False)
        self._store[key] = {'data': data, 'expires_at': expires_at}
        self._store.move_to_end(key)

    def _list(self, key: str) -> List[str]:
        self._evict_expired()
        item = self._store.get(key)
        if not item:
            return []
        if not isinstance(item['data'], list):
            raise CacheError(f"Key '{key}' does not hold a list")
        return item['data']

    async def get(self, key: str) -> Optional[str]:
        self._evict_expired()
        item = self._store.get(key)
        if not item:
            return None
        if isinstance(item['data'], list):
            raise CacheError(f"Key '{key}' holds a list")
        self._store.move_to_end(key)
        return item['data']

    async def set(self, key: str, value: str, ttl: int) -> bool:
        self._evict_expired()
        self._put(key, value, time.time() + ttl)
        return True

    async def delete(self, key: str) -> bool:
        if key in self._store:
            del self._store[key]
            return True
        return False

    async def exists(self, key: str) -> bool:
        self._evict_expired()
        return key in self._store

    # List operations (Redis semantics, end index inclusive)
    async def lpush(self, key: str, value: str) -> bool:
        values = self._list(key)
        expires_at = self._store[key]['expires_at'] if key in self._store else None
        self._put(key, [value] + values, expires_at)
        return True

    async def lrem(self, key: str, value: str) -> int:
        values = self._list(key)
        kept = [v for v in values if v != value]
        if key in self._store:
            self._store[key]['data'] = kept
        return len(values) - len(kept)

    async def ltrim(self, key: str, start: int, end: int) -> bool:
        values = self._list(key)
        if key in self._store:
            self._store[key]['data'] = self._slice(values, start, end)
        return True

    async def lrange(self, key: str, start: int, end: int) -> List[str]:
        return list(self._slice(self._list(key), start, end))

    async def expire(self, key: str, ttl: int) -> bool:
        self._evict_expired()
        if key not in self._store:
            return False
        self._store[key]['expires_at'] = time.time() + ttl
        return True

    @staticmethod
    def _slice(values: List[str], start: int, end: int) -> List[str]:
        stop = None if end == -1 else end + 1
        return values[start:stop]


# ============================================================
# FACTORY FUNCTION
# ============================================================

def get_cache_adapter(use_redis: bool = True) -> CacheAdapter:
    """
    Factory function to get appropriate cache adapter.

    Args:
        use_redis: If True, use Redis; otherwise use in-memory cache

    Returns:
        CacheAdapter instance
    """
    if use_redis:
        return RedisCache()
    else:
        return InMemoryCache()


# ============================================================
# EXPORTS
# ============================================================

__all__ = [
    'CacheError',
    'CacheAdapter',
    'RedisCache',
    'InMemoryCache',
    'get_cache_adapter'
]
