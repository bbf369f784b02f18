"""Transport collaborators that perform a single HTTP exchange."""

from typing import Protocol, runtime_checkable

import httpx
import structlog

from fetchplus.fetch.errors import FetchErrorClass, TransportError
from fetchplus.fetch.models import RequestDescriptor, ResponseDescriptor, to_httpx_headers
from fetchplus.fetch.redact import redact_headers, redact_url_credentials
from fetchplus.settings import AppSettings, get_settings


logger = structlog.get_logger()


@runtime_checkable
class Transport(Protocol):
    """Protocol for performing one HTTP exchange.

    Implementations must not retry internally and must raise
    TransportError for transport-level failures.
    """

    async def perform(self, request: RequestDescriptor) -> ResponseDescriptor:
        """Perform the request and return the materialized response.

        Args:
            request: Request to send.

        Returns:
            The response, with its body fully read.

        Raises:
            TransportError: If the exchange could not be completed.
        """
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        settings: AppSettings | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            client: Client to send requests with. When omitted, one is
                created from settings and closed by ``aclose``.
            settings: Settings providing timeout and User-Agent.
        """
        self._owns_client = client is None
        if client is None:
            settings = settings or get_settings()
            client = httpx.AsyncClient(
                timeout=settings.timeout_seconds,
                follow_redirects=True,
                headers={"User-Agent": settings.user_agent},
            )
        self._client = client
        self._log = logger.bind(component="transport")

    async def perform(self, request: RequestDescriptor) -> ResponseDescriptor:
        url = request.url
        self._log.debug(
            "http_request",
            method=request.method,
            url=redact_url_credentials(url),
            headers=redact_headers(request.headers),
        )

        try:
            response = await self._client.request(
                request.method,
                url,
                headers=to_httpx_headers(request.headers),
                content=request.body,
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out: {e}", url, FetchErrorClass.NETWORK_TIMEOUT
            ) from e
        except httpx.ConnectError as e:
            raise TransportError(
                f"Connection failed: {e}", url, FetchErrorClass.CONNECTION_ERROR
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Unexpected error: {e}", url) from e
        except Exception as e:
            raise TransportError(f"Unexpected error: {e}", url) from e

        return ResponseDescriptor(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=response.headers,
            body=response.content,
            url=str(response.url),
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
