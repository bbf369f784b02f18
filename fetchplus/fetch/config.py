"""Configuration models for the fetch client."""

import math
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fetchplus.fetch.cache.stores import CacheStore
from fetchplus.fetch.constants import (
    DEFAULT_FACTOR,
    DEFAULT_MIN_TIMEOUT_MS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_STATUS_CODES,
)
from fetchplus.fetch.transport import Transport


class RetryConfig(BaseModel):
    """Configuration for retry behavior.

    Uses exponential backoff:
    delay = min(max_timeout_ms, min_timeout_ms * factor ** (attempt - 1))

    Every field has a named default, so a partial mapping is merged over
    the defaults field by field.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    retries: Annotated[int, Field(ge=0)] = DEFAULT_RETRIES
    factor: Annotated[float, Field(ge=0.0)] = DEFAULT_FACTOR
    min_timeout_ms: Annotated[float, Field(ge=0.0)] = DEFAULT_MIN_TIMEOUT_MS
    max_timeout_ms: Annotated[float, Field(ge=0.0)] = math.inf
    retry_on_status_codes: frozenset[int] = DEFAULT_RETRY_STATUS_CODES

    @model_validator(mode="after")
    def validate_timeouts(self) -> "RetryConfig":
        """Validate that max_timeout_ms is not below min_timeout_ms."""
        if self.max_timeout_ms < self.min_timeout_ms:
            msg = (
                f"max_timeout_ms ({self.max_timeout_ms}) must be >= "
                f"min_timeout_ms ({self.min_timeout_ms})"
            )
            raise ValueError(msg)
        return self

    @property
    def max_attempts(self) -> int:
        """Total attempts per fetch (first attempt plus retries)."""
        return self.retries + 1


NON_RETRYING = RetryConfig(retries=0)


class ClientConfig(BaseModel):
    """Construction-time configuration for FetchClient.

    Validated once when the client is created, never per call.
    ``retry`` accepts ``None``/``False`` (single attempt), ``True``
    (defaults), a partial mapping, or a RetryConfig.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    retry: RetryConfig = Field(default=NON_RETRYING)
    cache: CacheStore | None = Field(default=None, description="External cache store")
    transport: Transport | None = Field(
        default=None, description="Transport; defaults to HttpxTransport"
    )

    @field_validator("retry", mode="before")
    @classmethod
    def resolve_retry(cls, v: Any) -> Any:
        """Collapse disabled retry settings to a single attempt."""
        if v is None or v is False:
            return NON_RETRYING
        if v is True:
            return RetryConfig()
        return v
