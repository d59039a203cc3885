"""HTTP transport capability shared by every format adapter.

Adapters never construct ``httpx.AsyncClient`` themselves. They borrow one
from a ``Transport``:
  - PlainTransport: a fresh client per request (closed on exit)
  - PooledTransport: one long-lived keep-alive client shared across requests

Both behave identically from the adapter's point of view; the choice only
affects connection reuse.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import httpx

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Lends an ``httpx.AsyncClient`` for the duration of one request."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        # Optional low-level transport (e.g. httpx.MockTransport in tests)
        self._transport = transport

    @abstractmethod
    def client(self) -> AbstractAsyncContextManager[httpx.AsyncClient]:
        """Async context manager yielding a ready client."""
        ...

    async def aclose(self) -> None:
        return None


class PlainTransport(Transport):
    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        async with httpx.AsyncClient(transport=self._transport) as client:
            yield client


class PooledTransport(Transport):
    """Keep-alive connection pool, created lazily and closed by ``aclose``."""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        max_connections: int = 10,
        keepalive_expiry: float = 30.0,
    ):
        super().__init__(transport)
        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_connections,
            keepalive_expiry=keepalive_expiry,
        )
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(limits=self._limits, transport=self._transport)
            logger.debug("Opened pooled HTTP client (limits=%s)", self._limits)
        return self._client

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        yield self._get_client()

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


def build_transport(
    use_keepalive: bool,
    max_connections: int = 10,
    keepalive_expiry: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Transport:
    if use_keepalive:
        return PooledTransport(transport, max_connections=max_connections, keepalive_expiry=keepalive_expiry)
    return PlainTransport(transport)
