"""HTTP cache policy for a private (non-shared) cache.

Storability, freshness and reuse decisions come from hishel's sans-IO
RFC 9111 state machine. A policy is serialisable so it can be persisted next
to the cached response and later asked whether that response still satisfies
a new request without revalidation.

Policies assume a single client's security context; never reuse one across
clients.
"""

import time
import uuid
from collections.abc import Callable
from email.utils import formatdate

from hishel._core._headers import Headers, Vary, parse_cache_control
from hishel._core._spec import (
    CacheMiss,
    CacheOptions,
    FromCache,
    IdleClient,
    StoreAndUse,
    exclude_unstorable_headers,
    get_age,
    get_freshness_lifetime,
)
from hishel._core.models import Entry, EntryMeta, Request, Response
from hishel._utils import parse_date
from pydantic import BaseModel, ConfigDict, Field

from fetchplus.fetch.models import HeaderMultiMap, RequestDescriptor, ResponseDescriptor


SNAPSHOT_VERSION = 1

PRIVATE_CACHE = CacheOptions(shared=False)


class CachePolicySnapshot(BaseModel):
    """Serialisable state of a CachePolicy."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    version: int = SNAPSHOT_VERSION
    response_time: float = Field(description="Epoch seconds when the policy was built")
    status: int
    response_headers: dict[str, list[str]] = Field(default_factory=dict)
    method: str
    url: str
    host: str | None = None
    request_cache_control: str | None = None
    vary_request_headers: dict[str, str] = Field(
        default_factory=dict, description="Request headers named by the response's Vary"
    )


def _to_hishel_headers(headers: HeaderMultiMap | dict[str, str]) -> Headers:
    return Headers(
        {
            name: value if isinstance(value, str) else ", ".join(value)
            for name, value in headers.items()
        }
    )


def _hishel_request(method: str, url: str, headers: dict[str, str]) -> Request:
    # URLs match case-insensitively
    return Request(
        method=method, url=url.lower(), headers=_to_hishel_headers(headers), metadata={}
    )


class CachePolicy:
    """Freshness and storability rules for one request/response pair.

    hishel reads the wall clock. Before a stored response is handed to it,
    its Date, Expires and Last-Modified headers are moved together so that
    the wall-clock age hishel computes equals ``age()`` on this policy's
    clock: the upstream Age header plus the time resident in the cache.
    """

    def __init__(
        self,
        request: RequestDescriptor,
        response: ResponseDescriptor,
        now: Callable[[], float] = time.time,
    ) -> None:
        """Build a policy from the exchange that produced a response.

        Args:
            request: Request that was sent.
            response: Response that was received.
            now: Wall clock in epoch seconds.
        """
        vary_request_headers: dict[str, str] = {}
        vary = response.header("vary")
        if vary:
            for name in Vary.from_value(vary).values:
                value = request.header(name)
                if name != "*" and value is not None:
                    vary_request_headers[name.lower()] = value

        snapshot = CachePolicySnapshot(
            response_time=now(),
            status=response.status,
            response_headers={k: list(v) for k, v in response.headers.items()},
            method=request.method,
            url=request.url,
            host=request.header("host"),
            request_cache_control=request.header("cache-control"),
            vary_request_headers=vary_request_headers,
        )
        self._load(snapshot, now)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: CachePolicySnapshot | dict,
        now: Callable[[], float] = time.time,
    ) -> "CachePolicy":
        """Rebuild a policy from a snapshot.

        Raises:
            ValueError: If the snapshot has an unsupported version.
        """
        if not isinstance(snapshot, CachePolicySnapshot):
            snapshot = CachePolicySnapshot.model_validate(snapshot)
        if snapshot.version != SNAPSHOT_VERSION:
            msg = f"Unsupported cache policy snapshot version: {snapshot.version}"
            raise ValueError(msg)

        policy = cls.__new__(cls)
        policy._load(snapshot, now)
        return policy

    def _load(self, snapshot: CachePolicySnapshot, now: Callable[[], float]) -> None:
        self._snapshot = snapshot
        self._now = now
        self._response_headers: HeaderMultiMap = {
            name: tuple(values) for name, values in snapshot.response_headers.items()
        }
        self._response_cc = parse_cache_control(self._response_header("cache-control"))

    def to_snapshot(self) -> CachePolicySnapshot:
        return self._snapshot

    def _response_header(self, name: str) -> str | None:
        values = self._response_headers.get(name)
        if not values:
            return None
        return ", ".join(values)

    def _stored_request(self) -> Request:
        snapshot = self._snapshot
        headers = dict(snapshot.vary_request_headers)
        if snapshot.request_cache_control is not None:
            headers["cache-control"] = snapshot.request_cache_control
        return _hishel_request(snapshot.method, snapshot.url, headers)

    def _stored_response(self) -> Response:
        """Stored response with date headers re-anchored to this policy's clock."""
        headers = {name: ", ".join(values) for name, values in self._response_headers.items()}

        origin = parse_date(headers["date"]) if "date" in headers else None
        if origin is None:
            origin = self._snapshot.response_time
        anchor = time.time() - self.age()
        shift = anchor - origin

        headers["date"] = formatdate(anchor, usegmt=True)
        for name in ("expires", "last-modified"):
            if name not in headers:
                continue
            value = parse_date(headers[name])
            if value is not None:
                headers[name] = formatdate(value + shift, usegmt=True)
            elif name == "expires":
                # An invalid Expires means already expired
                headers[name] = headers["date"]
            else:
                del headers[name]

        return Response(status_code=self._snapshot.status, headers=Headers(headers), metadata={})

    def _entry(self) -> Entry:
        return Entry(
            id=uuid.uuid4(),
            request=self._stored_request(),
            response=self._stored_response(),
            meta=EntryMeta(created_at=self._snapshot.response_time),
            cache_key=self._snapshot.url.lower().encode(),
        )

    def storable(self) -> bool:
        """Check whether the response may be stored in a private cache."""
        request_cc = parse_cache_control(self._snapshot.request_cache_control)
        if request_cc.no_store:
            return False
        state = CacheMiss(options=PRIVATE_CACHE, request=self._stored_request()).next(
            self._stored_response()
        )
        return isinstance(state, StoreAndUse)

    def age(self) -> float:
        """Current age in seconds: Age header plus time resident in cache."""
        resident = max(0.0, self._now() - self._snapshot.response_time)
        try:
            upstream = max(0.0, float(self._response_header("age") or 0))
        except ValueError:
            upstream = 0.0
        return upstream + resident

    def max_age(self) -> float:
        """Freshness lifetime in seconds."""
        if not self.storable() or self._response_cc.no_cache is not False:
            return 0.0

        vary = self._response_header("vary")
        if vary and "*" in Vary.from_value(vary).values:
            return 0.0

        lifetime = get_freshness_lifetime(self._stored_response(), is_cache_shared=False)
        return float(max(0, lifetime or 0))

    def time_to_live(self) -> int:
        """Remaining freshness in milliseconds (0 when not worth storing)."""
        remaining = self.max_age() - get_age(self._stored_response())
        return round(max(0.0, remaining) * 1000)

    def is_stale(self) -> bool:
        return self.max_age() <= self.age()

    def satisfies_without_revalidation(self, request: RequestDescriptor) -> bool:
        """Check whether the stored response can answer a new request as-is.

        Args:
            request: The new request.

        Returns:
            True if the request matches the stored one and the response is
            fresh enough for it.
        """
        if request.header("host") != self._snapshot.host:
            return False

        headers = {name: ", ".join(values) for name, values in request.headers.items()}
        state = IdleClient(options=PRIVATE_CACHE).next(
            _hishel_request(request.method, request.url, headers),
            [self._entry()],
        )
        if not isinstance(state, FromCache):
            return False

        request_cc = parse_cache_control(request.header("cache-control"))
        return request_cc.max_age is None or self.age() <= request_cc.max_age

    def response_headers(self) -> HeaderMultiMap:
        """Headers to present when serving the stored response.

        Hop-by-hop headers are dropped and Age/Date reflect the current time.
        """
        stored = Response(
            status_code=self._snapshot.status,
            headers=_to_hishel_headers(self._response_headers),
            metadata={},
        )
        kept = {name.lower() for name in exclude_unstorable_headers(stored, False).headers}

        headers = {
            name: values for name, values in self._response_headers.items() if name in kept
        }
        headers["age"] = (str(get_age(self._stored_response())),)
        headers["date"] = (formatdate(self._now(), usegmt=True),)
        return headers
