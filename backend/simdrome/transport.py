"""Live stream transport — chunked HTTP body from the simulation backend."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

import httpx

from simdrome.config import Settings, get_settings
from simdrome.errors import TransportError
from simdrome.models import SessionParams

logger = logging.getLogger(__name__)


class LiveTransport(Protocol):
    def open(self, params: SessionParams) -> AbstractAsyncContextManager[AsyncIterator[bytes]]:
        """Handshake; the context yields the body as raw byte chunks."""
        ...


class HttpStreamTransport:
    """Streaming GET against the backend simulate endpoint.

    No read timeout: a stalled backend is left to whoever started the
    session. Cancelling the reading task aborts the in-flight read.
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or get_settings()
        self._client = client

    def _make_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(self.settings.connect_timeout, read=None)
        return httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    @asynccontextmanager
    async def open(self, params: SessionParams) -> AsyncIterator[AsyncIterator[bytes]]:
        client = self._client or self._make_client()
        owns_client = self._client is None
        url = self.settings.stream_url
        try:
            logger.info("Opening live stream %s %s", url, params.as_query())
            try:
                async with client.stream("GET", url, params=params.as_query()) as response:
                    if not response.is_success:
                        raise TransportError(
                            f"stream handshake failed: HTTP {response.status_code}",
                            status_code=response.status_code,
                        )
                    yield self._chunks(response)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                raise TransportError(f"stream transport failed: {exc}") from exc
        finally:
            if owns_client:
                await client.aclose()

    @staticmethod
    async def _chunks(response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                if chunk:
                    yield chunk
        except httpx.HTTPError as exc:
            raise TransportError(f"stream read failed: {exc}") from exc
