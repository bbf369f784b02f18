"""Cache store contract and an in-memory implementation."""

import asyncio
import time
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for the external key/value cache store.

    Abstracts the storage layer to enable testing and alternative
    implementations (Redis, disk, memory). Implementations must be safe
    for concurrent ``get``/``set`` calls and are responsible for expiring
    entries once their TTL elapses. Entries are JSON-compatible dicts.
    """

    async def get(self, key: str) -> dict[str, Any] | None:
        """Retrieve a stored entry.

        Args:
            key: Cache key.

        Returns:
            The stored entry, or None if absent or expired.
        """
        ...

    async def set(self, key: str, entry: dict[str, Any], ttl_ms: float) -> None:
        """Store an entry.

        Args:
            key: Cache key.
            entry: JSON-compatible entry.
            ttl_ms: Time-to-live in milliseconds.
        """
        ...


class MemoryCacheStore:
    """In-process cache store with per-entry expiry.

    Attributes:
        clock: Monotonic clock in seconds, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> dict[str, Any] | None:
        async with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, entry = item
            if self.clock() >= expires_at:
                del self._entries[key]
                return None
            return entry

    async def set(self, key: str, entry: dict[str, Any], ttl_ms: float) -> None:
        async with self._lock:
            now = self.clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (now + ttl_ms / 1000, entry)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
