"""Response caching: policy evaluation and store integration."""

from fetchplus.fetch.cache.manager import (
    CACHE_KEY_PREFIX,
    CachedResponse,
    CacheEntry,
    CacheManager,
    create_cache_key,
)
from fetchplus.fetch.cache.policy import PRIVATE_CACHE, CachePolicy, CachePolicySnapshot
from fetchplus.fetch.cache.stores import CacheStore, MemoryCacheStore


__all__ = [
    # Manager
    "CacheManager",
    "CacheEntry",
    "CachedResponse",
    "CACHE_KEY_PREFIX",
    "create_cache_key",
    # Policy
    "CachePolicy",
    "CachePolicySnapshot",
    "PRIVATE_CACHE",
    # Stores
    "CacheStore",
    "MemoryCacheStore",
]
