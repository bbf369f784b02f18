"""HTTP fetch layer with caching, retries, and lifecycle events.

This module provides:
- Transparent response caching through an external cache store
- Configurable retry policy with exponential backoff
- Per-attempt request/response/error notifications
- Header redaction for logging
- Metrics collection for observability
"""

from fetchplus.fetch.client import FetchClient
from fetchplus.fetch.config import NON_RETRYING, ClientConfig, RetryConfig
from fetchplus.fetch.constants import DEFAULT_RETRY_STATUS_CODES
from fetchplus.fetch.errors import (
    CacheStoreError,
    FetchError,
    FetchErrorClass,
    RetryExhaustedError,
    TransportError,
)
from fetchplus.fetch.events import (
    ErrorEvent,
    EventType,
    InstrumentationBus,
    RequestEvent,
    ResponseEvent,
)
from fetchplus.fetch.metrics import FetchMetrics
from fetchplus.fetch.models import AttemptContext, RequestDescriptor, ResponseDescriptor
from fetchplus.fetch.redact import redact_headers, redact_url_credentials
from fetchplus.fetch.retry import (
    FatalFailure,
    Outcome,
    RetryableFailure,
    RetryScheduler,
    Success,
)
from fetchplus.fetch.transport import HttpxTransport, Transport


__all__ = [
    # Client
    "FetchClient",
    # Config
    "ClientConfig",
    "RetryConfig",
    "NON_RETRYING",
    "DEFAULT_RETRY_STATUS_CODES",
    # Models
    "RequestDescriptor",
    "ResponseDescriptor",
    "AttemptContext",
    # Errors
    "FetchError",
    "FetchErrorClass",
    "TransportError",
    "CacheStoreError",
    "RetryExhaustedError",
    # Retry
    "RetryScheduler",
    "Outcome",
    "Success",
    "RetryableFailure",
    "FatalFailure",
    # Events
    "InstrumentationBus",
    "EventType",
    "RequestEvent",
    "ResponseEvent",
    "ErrorEvent",
    # Transport
    "Transport",
    "HttpxTransport",
    # Metrics
    "FetchMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
