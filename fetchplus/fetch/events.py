"""Per-attempt lifecycle notifications.

Handlers are plain callables invoked synchronously in registration order.
Having no handler on a channel, ``error`` included, is a normal state.
"""

from collections.abc import Callable
from enum import Enum
from typing import Annotated, TypeVar

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Lifecycle events emitted by FetchClient."""

    REQUEST = "request"
    RESPONSE = "response"
    ERROR = "error"


class RequestEvent(BaseModel):
    """Emitted before every attempt."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    attempt: Annotated[int, Field(ge=1)]
    max_attempts: Annotated[int, Field(ge=1)]
    method: str
    url: str


class ResponseEvent(RequestEvent):
    """Emitted after an attempt produced a response (cache hit or network)."""

    status_code: int
    response_time_ms: float
    from_cache: bool = False


class ErrorEvent(RequestEvent):
    """Emitted after an attempt failed in the transport or cache store."""

    message: str
    response_time_ms: float


Event = RequestEvent | ResponseEvent | ErrorEvent
Handler = Callable[[Event], object]
H = TypeVar("H", bound=Handler)


class InstrumentationBus:
    """Publish/subscribe channel for attempt lifecycle events."""

    def __init__(self) -> None:
        self._handlers: dict[EventType, list[Handler]] = {
            event: [] for event in EventType
        }

    def on(
        self, event: EventType | str, handler: H | None = None
    ) -> H | Callable[[H], H]:
        """Register a handler for an event.

        Called without a handler, returns a decorator that registers the
        decorated function::

            @bus.on("response")
            def log_status(event: ResponseEvent) -> None: ...

        Args:
            event: Event type or its name.
            handler: Callable receiving the event payload.

        Returns:
            The handler, or a decorator when no handler is given.
        """
        event_type = EventType(event)

        def register(func: H) -> H:
            self._handlers[event_type].append(func)
            return func

        if handler is None:
            return register
        return register(handler)

    def off(self, event: EventType | str, handler: Handler) -> None:
        """Remove a handler. Removing an unknown handler is a no-op."""
        handlers = self._handlers[EventType(event)]
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: EventType | str) -> int:
        return len(self._handlers[EventType(event)])

    def emit(self, event: EventType | str, payload: Event) -> None:
        """Deliver a payload to the handlers registered at emission time.

        Exceptions raised by a handler propagate to the caller.
        """
        for handler in list(self._handlers[EventType(event)]):
            handler(payload)
