"""Metrics collection for the fetch layer."""

from dataclasses import dataclass, field
from typing import ClassVar

from fetchplus.fetch.errors import FetchErrorClass


@dataclass
class FetchMetrics:
    """Metrics for fetch operations.

    Singleton class that tracks attempts, responses, cache activity,
    retries, and failures.
    """

    attempts_total: int = 0
    responses_total: dict[int, int] = field(default_factory=dict)
    cache_hits_total: int = 0
    cache_misses_total: int = 0
    cache_writes_total: int = 0
    retry_total: int = 0
    failures_total: dict[str, int] = field(default_factory=dict)
    exhausted_total: int = 0
    duration_ms_total: float = 0.0
    fetch_count: int = 0

    _instance: ClassVar["FetchMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "FetchMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_attempt(self) -> None:
        self.attempts_total += 1

    def record_response(self, status_code: int) -> None:
        """Record a response from the transport or the cache.

        Args:
            status_code: HTTP status code.
        """
        self.responses_total[status_code] = self.responses_total.get(status_code, 0) + 1

    def record_cache_hit(self) -> None:
        self.cache_hits_total += 1

    def record_cache_miss(self) -> None:
        self.cache_misses_total += 1

    def record_cache_write(self) -> None:
        self.cache_writes_total += 1

    def record_retry(self) -> None:
        self.retry_total += 1

    def record_failure(self, error_class: FetchErrorClass) -> None:
        """Record a failed attempt.

        Args:
            error_class: Classification of the failure.
        """
        key = error_class.value
        self.failures_total[key] = self.failures_total.get(key, 0) + 1

    def record_exhausted(self) -> None:
        self.exhausted_total += 1

    def record_duration(self, duration_ms: float) -> None:
        """Record the duration of a complete fetch call.

        Args:
            duration_ms: Duration in milliseconds.
        """
        self.duration_ms_total += duration_ms
        self.fetch_count += 1

    def to_dict(self) -> dict[str, int | float | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        return {
            "attempts_total": self.attempts_total,
            "responses_total": dict(self.responses_total),
            "cache_hits_total": self.cache_hits_total,
            "cache_misses_total": self.cache_misses_total,
            "cache_writes_total": self.cache_writes_total,
            "retry_total": self.retry_total,
            "failures_total": dict(self.failures_total),
            "exhausted_total": self.exhausted_total,
            "duration_ms_total": self.duration_ms_total,
            "fetch_count": self.fetch_count,
        }

    @property
    def avg_duration_ms(self) -> float:
        """Calculate average fetch duration.

        Returns:
            Average duration in milliseconds.
        """
        if self.fetch_count == 0:
            return 0.0
        return self.duration_ms_total / self.fetch_count
