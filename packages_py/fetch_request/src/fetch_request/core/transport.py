"""
Transport protocol and the default httpx-backed transports.
"""
import logging
from typing import Any, AsyncIterator, Iterable, Optional, Protocol, runtime_checkable

import httpx

from ..body import body_content, describe_body
from ..config import TimeoutConfig, TransportConfig
from ..errors import TransportError
from ..types import PendingRequest

logger = logging.getLogger(__name__)

# Constants
LOG_PREFIX = "[FetchRequest]"


@runtime_checkable
class Transport(Protocol):
    """Sends a finalized request. Raises TransportError on connection/protocol failure."""
    def execute(self, request: PendingRequest) -> httpx.Response: ...


@runtime_checkable
class AsyncTransport(Protocol):
    async def execute(self, request: PendingRequest) -> httpx.Response: ...


def _check_context(request: PendingRequest) -> None:
    reason = request.context.error()
    if reason is not None:
        raise TransportError(f"{request.method} {request.url}: context {reason}")


def _cap(value: Optional[float], remaining: float) -> float:
    return remaining if value is None else min(value, remaining)


def timeout_for(request: PendingRequest, config: TimeoutConfig) -> httpx.Timeout:
    """Configured per-phase timeouts, each capped by the context deadline."""
    remaining = request.context.remaining()
    if remaining is None:
        return config.to_httpx()
    return httpx.Timeout(
        connect=_cap(config.connect, remaining),
        read=_cap(config.read, remaining),
        write=_cap(config.write, remaining),
        pool=_cap(config.pool, remaining),
    )


async def _aiter_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    # Reads from the caller's stream block the event loop
    for chunk in chunks:
        yield chunk


class HttpxTransport:
    """
    Transport wrapping httpx.Client.

    HTTP error statuses come back as responses; only httpx.RequestError is
    turned into TransportError.
    """
    def __init__(self, config: Optional[TransportConfig] = None, client: Optional[httpx.Client] = None):
        self._config = config or TransportConfig()
        self._client: Optional[httpx.Client] = client
        # Flag to track if we own the client (created it)
        self._own_client = client is None

    def connect(self) -> httpx.Client:
        """Initialize the client if needed."""
        if not self._client:
            self._client = httpx.Client(**self._config.to_httpx_kwargs())
        return self._client

    def close(self) -> None:
        """Close the client if we own it."""
        if self._own_client and self._client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "HttpxTransport":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def execute(self, request: PendingRequest) -> httpx.Response:
        client = self.connect()

        _check_context(request)
        content, _ = body_content(request.body)
        httpx_request = client.build_request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            content=content,
            timeout=timeout_for(request, self._config.timeout),
        )

        logger.debug(f"{LOG_PREFIX} Request: {request.method} {request.url} body={describe_body(request.body)}")
        try:
            response = client.send(httpx_request)
        except httpx.RequestError as e:
            logger.debug(f"{LOG_PREFIX} Request failed: {e!r}")
            raise TransportError(f"{request.method} {request.url}: {e}", cause=e) from e

        logger.debug(f"{LOG_PREFIX} Response: {response.status_code} {response.reason_phrase}")
        return response


class AsyncHttpxTransport:
    """
    Transport wrapping httpx.AsyncClient.

    Opaque (non-replayable) bodies are read from the caller's stream with
    plain blocking reads inside the event loop. Pass bytes, str or a buffer
    when that matters.
    """
    def __init__(self, config: Optional[TransportConfig] = None, client: Optional[httpx.AsyncClient] = None):
        self._config = config or TransportConfig()
        self._client: Optional[httpx.AsyncClient] = client
        self._own_client = client is None

    async def connect(self) -> httpx.AsyncClient:
        if not self._client:
            self._client = httpx.AsyncClient(**self._config.to_httpx_kwargs())
        return self._client

    async def close(self) -> None:
        if self._own_client and self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AsyncHttpxTransport":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def execute(self, request: PendingRequest) -> httpx.Response:
        client = await self.connect()

        _check_context(request)
        content: Any
        content, _ = body_content(request.body)
        if content is not None and not isinstance(content, bytes):
            content = _aiter_chunks(content)

        httpx_request = client.build_request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            content=content,
            timeout=timeout_for(request, self._config.timeout),
        )

        logger.debug(f"{LOG_PREFIX} Request: {request.method} {request.url} body={describe_body(request.body)}")
        try:
            response = await client.send(httpx_request)
        except httpx.RequestError as e:
            logger.debug(f"{LOG_PREFIX} Request failed: {e!r}")
            raise TransportError(f"{request.method} {request.url}: {e}", cause=e) from e

        logger.debug(f"{LOG_PREFIX} Response: {response.status_code} {response.reason_phrase}")
        return response
