"""Fetch client with response caching, retries, and lifecycle events."""

import asyncio
import time
from collections.abc import Callable, Mapping
from typing import Any

import structlog

from fetchplus.fetch.cache.manager import CacheManager
from fetchplus.fetch.cache.stores import CacheStore
from fetchplus.fetch.config import ClientConfig, RetryConfig
from fetchplus.fetch.errors import (
    FetchError,
    RetryExhaustedError,
    TransportError,
)
from fetchplus.fetch.events import (
    ErrorEvent,
    EventType,
    H,
    Handler,
    InstrumentationBus,
    RequestEvent,
    ResponseEvent,
)
from fetchplus.fetch.metrics import FetchMetrics
from fetchplus.fetch.models import AttemptContext, RequestDescriptor, ResponseDescriptor
from fetchplus.fetch.redact import redact_url_credentials
from fetchplus.fetch.retry import FatalFailure, Outcome, RetryScheduler, Success
from fetchplus.fetch.transport import HttpxTransport, Transport


logger = structlog.get_logger()


class FetchClient:
    """HTTP client with transparent caching and retry with backoff.

    Each ``fetch`` call runs its attempts strictly in sequence. Before
    every attempt, the first included, the cache is consulted; on a miss the
    transport is called and a storable response is written back. Responses
    with a retryable status are retried until attempts run out, after which
    the last response is returned. Transport and cache-store failures are
    retried the same way and, once exhausted, raise RetryExhaustedError.

    Independent ``fetch`` calls run concurrently with no coordination.
    """

    def __init__(
        self,
        retry: RetryConfig | Mapping[str, Any] | bool | None = None,
        cache: CacheStore | None = None,
        transport: Transport | None = None,
    ) -> None:
        """Initialize the fetch client.

        Args:
            retry: Retry settings. None or False means a single attempt;
                True uses the defaults; a mapping overrides them per field.
            cache: External cache store; caching is off when omitted.
            transport: Transport performing HTTP exchanges; defaults to
                HttpxTransport.

        Raises:
            pydantic.ValidationError: If the configuration is invalid.
        """
        self._config = ClientConfig(retry=retry, cache=cache, transport=transport)
        self._scheduler = RetryScheduler(self._config.retry)
        self._transport: Transport = (
            self._config.transport if self._config.transport is not None else HttpxTransport()
        )
        self._cache = (
            CacheManager(self._config.cache) if self._config.cache is not None else None
        )
        self._events = InstrumentationBus()
        self._metrics = FetchMetrics.get_instance()
        self._log = logger.bind(component="fetch")

    @property
    def retry_config(self) -> RetryConfig:
        return self._config.retry

    @property
    def events(self) -> InstrumentationBus:
        return self._events

    def on(
        self, event: EventType | str, handler: H | None = None
    ) -> H | Callable[[H], H]:
        """Subscribe to a lifecycle event. See InstrumentationBus.on."""
        return self._events.on(event, handler)

    def off(self, event: EventType | str, handler: Handler) -> None:
        """Unsubscribe from a lifecycle event."""
        self._events.off(event, handler)

    async def __aenter__(self) -> "FetchClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if it supports closing."""
        close = getattr(self._transport, "aclose", None)
        if close is not None:
            await close()

    async def fetch(
        self,
        url_or_request: str | RequestDescriptor,
        *,
        method: str | None = None,
        headers: Any = None,
        body: bytes | str | None = None,
    ) -> ResponseDescriptor:
        """Fetch a URL with caching and retry support.

        Args:
            url_or_request: URL string or a prepared request.
            method: HTTP method; overrides the request's method.
            headers: Request headers; override the request's headers.
            body: Request body; overrides the request's body.

        Returns:
            The final response. Its status may be a retryable one if status
            retries were exhausted.

        Raises:
            RetryExhaustedError: If every attempt failed in the transport
                or cache store.
        """
        request = self._build_request(url_or_request, method, headers, body)
        start_time_ns = time.perf_counter_ns()
        log = self._log.bind(
            method=request.method,
            url=redact_url_credentials(request.url),
        )

        try:
            response = await self._execute_with_retry(request, log)
        finally:
            duration_ms = (time.perf_counter_ns() - start_time_ns) / 1_000_000
            self._metrics.record_duration(duration_ms)

        log.info(
            "fetch_complete",
            status_code=response.status,
            cache_hit=response.from_cache,
            bytes=len(response.body),
            duration_ms=round(duration_ms, 2),
        )
        return response

    def _build_request(
        self,
        url_or_request: str | RequestDescriptor,
        method: str | None,
        headers: Any,
        body: bytes | str | None,
    ) -> RequestDescriptor:
        """Build the request descriptor for a fetch call."""
        if isinstance(url_or_request, RequestDescriptor):
            overrides: dict[str, Any] = {}
            if method is not None:
                overrides["method"] = method
            if headers is not None:
                overrides["headers"] = headers
            if body is not None:
                overrides["body"] = body
            if not overrides:
                return url_or_request
            data = url_or_request.model_dump()
            data.update(overrides)
            return RequestDescriptor.model_validate(data)

        return RequestDescriptor(
            method=method or "GET",
            url=url_or_request,
            headers=headers,
            body=body,
        )

    async def _execute_with_retry(
        self,
        request: RequestDescriptor,
        log: structlog.stdlib.BoundLogger,
    ) -> ResponseDescriptor:
        """Run attempts until one succeeds or attempts are exhausted.

        Args:
            request: Request to execute.
            log: Bound logger.

        Returns:
            Final response.
        """
        max_attempts = self._scheduler.max_attempts

        for attempt in range(1, max_attempts + 1):
            context = AttemptContext(attempt=attempt, max_attempts=max_attempts)
            outcome = await self._execute_single(request, context, log)

            if isinstance(outcome, Success):
                return outcome.response

            if isinstance(outcome, FatalFailure):
                self._metrics.record_exhausted()
                log.warning(
                    "retries_exhausted",
                    attempts=attempt,
                    **outcome.error.to_dict(),
                )
                raise RetryExhaustedError(outcome.error, attempt) from outcome.error

            delay_ms = self._scheduler.backoff_delay_ms(attempt)
            self._metrics.record_retry()
            log.debug(
                "retry_scheduled",
                attempt=attempt,
                max_attempts=max_attempts,
                delay_ms=delay_ms,
                status_code=outcome.response.status if outcome.response else None,
            )
            await asyncio.sleep(delay_ms / 1000.0)

        # The scheduler never allows a retry past the last attempt
        msg = "Retry loop ended without an outcome"
        raise AssertionError(msg)

    async def _execute_single(
        self,
        request: RequestDescriptor,
        context: AttemptContext,
        log: structlog.stdlib.BoundLogger,
    ) -> Outcome:
        """Execute one attempt: cache lookup, then transport on a miss.

        Args:
            request: Request to execute.
            context: Attempt-scoped state.
            log: Bound logger.

        Returns:
            Outcome classified by the retry scheduler.
        """
        base = {
            "attempt": context.attempt,
            "max_attempts": context.max_attempts,
            "method": request.method,
            "url": request.url,
        }
        self._metrics.record_attempt()
        self._events.emit(EventType.REQUEST, RequestEvent(**base))

        try:
            response = await self._perform(request)
        except FetchError as e:
            elapsed_ms = context.elapsed_ms()
            self._metrics.record_failure(e.error_class)
            log.info(
                "attempt_failed",
                attempt=context.attempt,
                response_time_ms=round(elapsed_ms, 2),
                **e.to_dict(),
            )
            self._events.emit(
                EventType.ERROR,
                ErrorEvent(**base, message=e.message, response_time_ms=elapsed_ms),
            )
            return self._scheduler.evaluate_error(context.attempt, e)

        elapsed_ms = context.elapsed_ms()
        self._metrics.record_response(response.status)
        self._events.emit(
            EventType.RESPONSE,
            ResponseEvent(
                **base,
                status_code=response.status,
                response_time_ms=elapsed_ms,
                from_cache=response.from_cache,
            ),
        )
        return self._scheduler.evaluate_response(context.attempt, response)

    async def _perform(self, request: RequestDescriptor) -> ResponseDescriptor:
        """Answer from the cache, or call the transport and store the result."""
        if self._cache is not None:
            cached = await self._cache.get(request)
            if cached is not None:
                return cached

        try:
            response = await self._transport.perform(request)
        except FetchError:
            raise
        except Exception as e:
            raise TransportError(str(e) or type(e).__name__, request.url) from e

        if self._cache is not None:
            await self._cache.set(request, response)
        return response
