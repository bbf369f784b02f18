"""Retry decisions and backoff for the fetch attempt loop.

The scheduler performs no I/O. Each attempt's result is classified into an
Outcome, which the client interprets; retrying is never signalled by raising.
"""

from dataclasses import dataclass

from fetchplus.fetch.config import RetryConfig
from fetchplus.fetch.errors import FetchError
from fetchplus.fetch.models import ResponseDescriptor


@dataclass(frozen=True)
class Success:
    """Final response; the fetch resolves with it."""

    response: ResponseDescriptor


@dataclass(frozen=True)
class RetryableFailure:
    """Attempt should be retried after backoff.

    Exactly one of ``response`` (retryable status) or ``error``
    (transport or cache-store failure) is set.
    """

    response: ResponseDescriptor | None = None
    error: FetchError | None = None


@dataclass(frozen=True)
class FatalFailure:
    """Attempts are exhausted on a failure; the fetch rejects."""

    error: FetchError


Outcome = Success | RetryableFailure | FatalFailure


class RetryScheduler:
    """Decides retry-or-stop and the backoff before the next attempt."""

    def __init__(self, config: RetryConfig) -> None:
        self._config = config

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def max_attempts(self) -> int:
        return self._config.max_attempts

    def is_retryable_status(self, status: int) -> bool:
        """Check whether a status code is configured for retry."""
        return status in self._config.retry_on_status_codes

    def can_retry_error(self, attempt: int) -> bool:
        """Check whether a failure on this attempt leaves a retry available.

        Args:
            attempt: Current attempt number (1-based).
        """
        return attempt <= self._config.retries

    def should_retry(self, attempt: int, status: int) -> bool:
        """Determine if a response should be retried.

        Args:
            attempt: Current attempt number (1-based).
            status: HTTP status code of the response.

        Returns:
            True if retries remain and the status is retryable.
        """
        return self.can_retry_error(attempt) and self.is_retryable_status(status)

    def backoff_delay_ms(self, attempt: int) -> float:
        """Calculate the delay before the attempt following ``attempt``.

        ``factor ** 0`` is 1, so the first delay is ``min_timeout_ms``
        whatever the factor.

        Args:
            attempt: Attempt that just finished (1-based).

        Returns:
            Delay in milliseconds.
        """
        config = self._config
        delay = config.min_timeout_ms * (config.factor ** (attempt - 1))
        return min(config.max_timeout_ms, delay)

    def evaluate_response(self, attempt: int, response: ResponseDescriptor) -> Outcome:
        """Classify a response. Exhausted status retries still succeed."""
        if self.should_retry(attempt, response.status):
            return RetryableFailure(response=response)
        return Success(response)

    def evaluate_error(self, attempt: int, error: FetchError) -> Outcome:
        """Classify a transport or cache-store failure."""
        if self.can_retry_error(attempt):
            return RetryableFailure(error=error)
        return FatalFailure(error)
