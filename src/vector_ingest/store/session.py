"""Single shared Redis session with lazy, de-duplicated connection.

There is exactly one client per :class:`RedisSession`; no pooling is done
at this level.  Concurrent :meth:`RedisSession.acquire` calls made while a
connection attempt is in flight all await that same attempt.  Dropped
links are re-established by redis-py itself, using exponential backoff
capped at ``max_delay``.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, TypeVar

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from vector_ingest.errors import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ClientFactory = Callable[[str], Redis]


class SessionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class RedisSession:
    """Owns the one Redis client used by the ingestion core.

    Parameters
    ----------
    url:
        Redis connection URL.
    client_factory:
        Callable building an (unconnected) client from *url*.  Defaults to
        :meth:`redis.asyncio.Redis.from_url` with the backoff policy below;
        tests inject an in-memory fake.
    base_delay / max_delay:
        Exponential reconnect backoff, in seconds.
    retries:
        Reconnect attempts per command before the error surfaces.
    """

    def __init__(
        self,
        url: str,
        *,
        client_factory: ClientFactory | None = None,
        base_delay: float = 0.1,
        max_delay: float = 10.0,
        retries: int = 10,
    ) -> None:
        self._url = url
        self._base_delay = base_delay
        self._max_delay = max_delay
        self._retries = retries
        self._client_factory = client_factory or self._build_client
        self._client: Redis | None = None
        self._pending: asyncio.Future[Redis] | None = None
        self.state = SessionState.DISCONNECTED

    # -- lifecycle ------------------------------------------------------------

    async def acquire(self) -> Redis:
        """Return a connected client, connecting first if necessary."""
        if self.state is SessionState.CONNECTED and self._client is not None:
            return self._client

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._connect())
        pending = self._pending
        try:
            # Shielded so one caller giving up does not cancel the shared attempt.
            return await asyncio.shield(pending)
        finally:
            if self._pending is pending and pending.done():
                self._pending = None

    async def release(self) -> None:
        """Close the client; the next :meth:`acquire` reconnects."""
        client, self._client = self._client, None
        self.state = SessionState.DISCONNECTED
        if client is not None:
            await client.aclose()

    async def with_connection(self, operation: Callable[[Redis], Awaitable[T]]) -> T:
        """Run *operation* against a live client.

        Redis failures are logged and re-raised as :class:`StoreError`.
        """
        client = await self.acquire()
        try:
            return await operation(client)
        except RedisError as exc:
            logger.error("Redis operation error: %s", exc)
            raise StoreError(str(exc)) from exc

    async def ping(self) -> bool:
        """Return ``True`` when the store is reachable."""
        try:
            client = await self.acquire()
            return bool(await client.ping())
        except (StoreError, RedisError):
            logger.warning("Redis health-check failed", exc_info=True)
            return False

    # -- internals ------------------------------------------------------------

    def _build_client(self, url: str) -> Redis:
        retry = Retry(
            ExponentialBackoff(cap=self._max_delay, base=self._base_delay),
            self._retries,
        )
        return Redis.from_url(
            url,
            decode_responses=True,
            retry=retry,
            retry_on_error=[RedisConnectionError, RedisTimeoutError],
        )

    async def _connect(self) -> Redis:
        self.state = SessionState.CONNECTING
        client = self._client_factory(self._url)
        try:
            await client.ping()
        except (RedisError, OSError) as exc:
            self.state = SessionState.DISCONNECTED
            logger.error("Redis connection failed: %s", exc)
            try:
                await client.aclose()
            except (RedisError, OSError):
                logger.debug("Ignoring error while closing failed client", exc_info=True)
            raise StoreError(f"Could not connect to Redis: {exc}") from exc

        self._client = client
        self.state = SessionState.CONNECTED
        logger.info("Connected to Redis")
        return client
