# app/infrastructure/__init__.py
"""
Infrastructure Module
Contains adapters for infrastructure concerns (session storage backends).
"""

from app.infrastructure.cache import CacheAdapter, CacheError, RedisCache, InMemoryCache, get_cache_adapter

__all__ = [
    "CacheAdapter",
    "CacheError",
    "RedisCache",
    "InMemoryCache",
    "get_cache_adapter",
]
