"""HTTP request execution with response caching and retry with backoff."""

from fetchplus.fetch import (
    CacheStoreError,
    EventType,
    FetchClient,
    RequestDescriptor,
    ResponseDescriptor,
    RetryConfig,
    RetryExhaustedError,
    TransportError,
)
from fetchplus.fetch.cache import CacheStore, MemoryCacheStore


__all__ = [
    "CacheStore",
    "CacheStoreError",
    "EventType",
    "FetchClient",
    "MemoryCacheStore",
    "RequestDescriptor",
    "ResponseDescriptor",
    "RetryConfig",
    "RetryExhaustedError",
    "TransportError",
]
