"""Cache management for fetch operations.

Bridges CachePolicy to an external CacheStore: answers whether a usable
cached response exists and persists responses the policy allows.
"""

import base64
import time
from collections.abc import Callable
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fetchplus.fetch.cache.policy import CachePolicy, CachePolicySnapshot
from fetchplus.fetch.cache.stores import CacheStore
from fetchplus.fetch.errors import CacheStoreError
from fetchplus.fetch.metrics import FetchMetrics
from fetchplus.fetch.models import RequestDescriptor, ResponseDescriptor
from fetchplus.fetch.redact import redact_url_credentials


logger = structlog.get_logger()

CACHE_KEY_PREFIX = "fetchplus"


def create_cache_key(url: str) -> str:
    """Derive the cache key for a URL.

    Keys are case-insensitive on the URL and namespaced so they do not
    collide with other users of the same store.
    """
    return f"{CACHE_KEY_PREFIX}:{url.lower()}"


class CachedResponse(BaseModel):
    """Stored form of a response; the body is base64 encoded."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = ""
    status: int
    status_text: str = ""
    headers: dict[str, list[str]] = Field(default_factory=dict)
    body: str = Field(default="", description="Base64-encoded body")

    @classmethod
    def from_response(cls, response: ResponseDescriptor) -> "CachedResponse":
        return cls(
            url=response.url,
            status=response.status,
            status_text=response.status_text,
            headers={k: list(v) for k, v in response.headers.items()},
            body=base64.b64encode(response.body).decode("ascii"),
        )

    def body_bytes(self) -> bytes:
        return base64.b64decode(self.body)


class CacheEntry(BaseModel):
    """A policy snapshot and the response it governs."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    policy: CachePolicySnapshot
    response: CachedResponse


class CacheManager:
    """Reads and writes cached responses through a CacheStore.

    Store failures are re-raised as CacheStoreError; they abort the
    current attempt rather than being bypassed.
    """

    def __init__(
        self,
        store: CacheStore,
        now: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache manager.

        Args:
            store: Storage backend for cache entries.
            now: Wall clock in epoch seconds used for freshness.
        """
        self._store = store
        self._now = now
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="cache")

    async def get(self, request: RequestDescriptor) -> ResponseDescriptor | None:
        """Look up a cached response that satisfies the request.

        Args:
            request: Request to answer.

        Returns:
            Reconstructed response on a fresh, matching hit, None otherwise.

        Raises:
            CacheStoreError: If the store raised.
        """
        key = create_cache_key(request.url)
        try:
            raw = await self._store.get(key)
        except Exception as e:
            raise CacheStoreError(f"Cache store get failed: {e}", key) from e

        if raw is None:
            self._metrics.record_cache_miss()
            return None

        try:
            entry = CacheEntry.model_validate(raw)
            policy = CachePolicy.from_snapshot(entry.policy, now=self._now)
        except (ValidationError, ValueError) as e:
            self._log.warning(
                "cache_entry_invalid",
                url=redact_url_credentials(request.url),
                error=str(e),
            )
            self._metrics.record_cache_miss()
            return None

        if not policy.satisfies_without_revalidation(request):
            self._log.debug(
                "cache_entry_unusable",
                url=redact_url_credentials(request.url),
                stale=policy.is_stale(),
            )
            self._metrics.record_cache_miss()
            return None

        stored = entry.response
        self._metrics.record_cache_hit()
        self._log.debug(
            "cache_hit",
            url=redact_url_credentials(request.url),
            status_code=stored.status,
            age=round(policy.age()),
        )
        return ResponseDescriptor(
            status=stored.status,
            status_text=stored.status_text,
            headers=policy.response_headers(),
            body=stored.body_bytes(),
            url=stored.url,
            from_cache=True,
        )

    async def set(self, request: RequestDescriptor, response: ResponseDescriptor) -> None:
        """Persist a response if its policy allows it.

        Args:
            request: Request that produced the response.
            response: Response received from the transport.

        Raises:
            CacheStoreError: If the store raised.
        """
        policy = CachePolicy(request, response, now=self._now)
        ttl_ms = policy.time_to_live()
        if not policy.storable() or ttl_ms <= 0:
            self._log.debug(
                "cache_store_skipped",
                url=redact_url_credentials(request.url),
                status_code=response.status,
                storable=policy.storable(),
                ttl_ms=ttl_ms,
            )
            return

        key = create_cache_key(request.url)
        entry: dict[str, Any] = CacheEntry(
            policy=policy.to_snapshot(),
            response=CachedResponse.from_response(response),
        ).model_dump(mode="json")

        try:
            await self._store.set(key, entry, ttl_ms)
        except Exception as e:
            raise CacheStoreError(f"Cache store set failed: {e}", key) from e

        self._metrics.record_cache_write()
        self._log.debug(
            "cache_update",
            url=redact_url_credentials(request.url),
            status_code=response.status,
            ttl_ms=ttl_ms,
        )
