"""Error types for the fetch layer.

Transport and cache-store failures abort the current attempt and share one
retry path. Status-code retries never raise; only exhausting every attempt
on failures surfaces to the caller as RetryExhaustedError.
"""

from enum import Enum

from fetchplus.fetch.redact import redact_url_credentials


class FetchErrorClass(str, Enum):
    """Classification of fetch errors for metrics and logging.

    - NETWORK_TIMEOUT: Request timed out
    - CONNECTION_ERROR: Could not establish connection
    - CACHE_STORE: The external cache store raised
    - UNKNOWN: Unclassified transport failure
    """

    NETWORK_TIMEOUT = "NETWORK_TIMEOUT"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    CACHE_STORE = "CACHE_STORE"
    UNKNOWN = "UNKNOWN"


class FetchError(Exception):
    """Base exception for fetch errors.

    Provides structured error information for logging and metrics.
    """

    def __init__(
        self,
        error_class: FetchErrorClass,
        message: str,
        url: str | None = None,
    ) -> None:
        """Initialize the fetch error.

        Args:
            error_class: Classification of the error.
            message: Human-readable error message.
            url: URL of the request that failed.
        """
        super().__init__(message)
        self.error_class = error_class
        self.message = message
        self.url = url

    def to_dict(self) -> dict[str, str | int | None]:
        """Convert error to dictionary for logging/serialization.

        Returns:
            Dictionary representation of the error, with URL credentials
            redacted.
        """
        return {
            "error_class": self.error_class.value,
            "message": self.message,
            "url": redact_url_credentials(self.url) if self.url else self.url,
        }


class TransportError(FetchError):
    """The transport failed to complete an HTTP exchange.

    Always eligible for retry, whatever the configured status codes.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        error_class: FetchErrorClass = FetchErrorClass.UNKNOWN,
    ) -> None:
        super().__init__(error_class, message, url)


class CacheStoreError(FetchError):
    """The external cache store raised during get or set."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(FetchErrorClass.CACHE_STORE, message)
        self.key = key

    def to_dict(self) -> dict[str, str | int | None]:
        result = super().to_dict()
        result["key"] = redact_url_credentials(self.key) if self.key else self.key
        return result


class RetryExhaustedError(Exception):
    """Every attempt of a fetch failed with a transport or cache-store error.

    The message is the last failure's message so callers see the underlying
    cause directly; the failure itself is kept on ``last_error`` and chained
    as ``__cause__``.
    """

    def __init__(self, last_error: FetchError, attempts: int) -> None:
        super().__init__(last_error.message)
        self.last_error = last_error
        self.attempts = attempts
        self.message = last_error.message

    def to_dict(self) -> dict[str, str | int | None]:
        return {
            "message": self.message,
            "attempts": self.attempts,
            "error_class": self.last_error.error_class.value,
        }
