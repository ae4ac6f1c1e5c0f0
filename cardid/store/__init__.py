"""Storage package for in-memory caching."""

from .cache import CacheManager, TTLCache

__all__ = ["CacheManager", "TTLCache"]
