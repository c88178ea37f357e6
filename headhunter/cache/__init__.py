"""
In-memory cache layer for the snapshot service.

Provides:
- CacheManager: TTL cache with LRU eviction, pattern invalidation and
  single-flight remember()
- build_cache_key: deterministic namespaced keys
"""

from .cache_manager import CacheManager, CacheStats, build_cache_key

__all__ = [
    "CacheManager",
    "CacheStats",
    "build_cache_key",
]
