"""Data models for the HTTP fetch layer."""

import json
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from email.message import Message
from typing import Annotated, Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from fetchplus.fetch.constants import HTTP_STATUS_OK_MAX, HTTP_STATUS_OK_MIN


HeaderMultiMap = dict[str, tuple[str, ...]]


def normalize_headers(raw: Any) -> HeaderMultiMap:
    """Normalize headers into a lower-cased multi-map.

    Accepts ``httpx.Headers``, a mapping of name to a value or list of
    values, or an iterable of ``(name, value)`` pairs.

    Args:
        raw: Headers in any supported shape.

    Returns:
        Dictionary of lower-cased header name to a tuple of values.
    """
    if raw is None:
        return {}

    if isinstance(raw, httpx.Headers):
        pairs: Iterable[tuple[str, Any]] = raw.multi_items()
    elif isinstance(raw, Mapping):
        pairs = raw.items()
    else:
        pairs = raw

    result: dict[str, list[str]] = {}
    for name, value in pairs:
        values = [value] if isinstance(value, str) else list(value)
        result.setdefault(name.lower(), []).extend(str(v) for v in values)
    return {name: tuple(values) for name, values in result.items()}


def to_httpx_headers(headers: HeaderMultiMap) -> httpx.Headers:
    """Expand a multi-map into ``httpx.Headers`` preserving repeated values."""
    return httpx.Headers([(name, value) for name, values in headers.items() for value in values])


class _HeaderCarrier(BaseModel):
    """Shared header handling for request and response descriptors."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    headers: HeaderMultiMap = Field(
        default_factory=dict, description="Lower-cased header multi-map"
    )

    @field_validator("headers", mode="before")
    @classmethod
    def _normalize(cls, v: Any) -> HeaderMultiMap:
        return normalize_headers(v)

    def header(self, name: str) -> str | None:
        """Get a header value, joining repeated values with a comma.

        Args:
            name: Header name (case-insensitive).

        Returns:
            Combined header value, or None if absent.
        """
        values = self.headers.get(name.lower())
        if not values:
            return None
        return ", ".join(values)


class RequestDescriptor(_HeaderCarrier):
    """A request to execute.

    Immutable once an attempt begins. The URL is kept as given; only the
    cache key lower-cases it.
    """

    method: Annotated[str, Field(min_length=1)] = "GET"
    url: Annotated[str, Field(min_length=1, description="Request URL")]
    body: bytes | None = Field(default=None, description="Request body")

    @field_validator("method")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.upper()


class ResponseDescriptor(_HeaderCarrier):
    """Result of one HTTP exchange, from the transport or from the cache."""

    status: int = Field(ge=100, le=599, description="HTTP status code")
    status_text: str = Field(default="", description="HTTP reason phrase")
    body: bytes = Field(default=b"", description="Response body")
    url: str = Field(default="", description="Final URL after redirects")
    from_cache: bool = Field(
        default=False, description="Whether response was served from cache"
    )

    @property
    def ok(self) -> bool:
        """Check if the status is 2xx."""
        return HTTP_STATUS_OK_MIN <= self.status < HTTP_STATUS_OK_MAX

    @property
    def text(self) -> str:
        """Decode the body using the Content-Type charset (default UTF-8)."""
        charset = "utf-8"
        content_type = self.header("content-type")
        if content_type:
            msg = Message()
            msg["content-type"] = content_type
            charset = msg.get_content_charset() or charset
        try:
            return self.body.decode(charset, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json.loads(self.body)


@dataclass(frozen=True)
class AttemptContext:
    """State scoped to a single attempt within one fetch call.

    Attributes:
        attempt: 1-based attempt number.
        max_attempts: Total attempts allowed (retries + 1).
        start_time: Monotonic start time in seconds.
    """

    attempt: int
    max_attempts: int
    start_time: float = field(default_factory=time.perf_counter)

    def elapsed_ms(self) -> float:
        """Milliseconds since the attempt started."""
        return (time.perf_counter() - self.start_time) * 1000
