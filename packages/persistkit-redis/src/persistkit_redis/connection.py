"""Lazy, shared connection to the Redis server.

``RedisConnectionProvider`` opens a single ``redis.asyncio.Redis`` client on
first use, verifies it with ``PING``, and hands the same client to every
later caller.  Failure to connect is reported as ``None`` rather than an
exception so the caller decides how to surface it.  A failed provider tries
again on the next :meth:`~RedisConnectionProvider.acquire`.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable
from urllib.parse import urlsplit, urlunsplit

import redis.asyncio as redis

from persistkit_redis.config import RedisPersistConfig

logger = logging.getLogger("persistkit_redis")

ClientFactory = Callable[..., "redis.Redis"]


class ConnectionState(str, Enum):
    """Lifecycle of the shared client."""

    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    FAILED = "failed"


def redact_url(url: str) -> str:
    """Return *url* with any password replaced by ``***``."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    netloc = parts.netloc.replace(f":{parts.password}@", ":***@", 1)
    return urlunsplit(parts._replace(netloc=netloc))


class RedisConnectionProvider:
    """Lazily created, reusable Redis client.

    Satisfies :class:`~persistkit_core.protocols.ConnectionProvider` via
    structural subtyping (no inheritance required).

    Parameters
    ----------
    config:
        Backend configuration providing the URL and client timeouts.
    client_factory:
        Callable building a client from ``(url, **kwargs)``.  Defaults to
        ``redis.asyncio.from_url``.
    """

    def __init__(
        self,
        config: RedisPersistConfig | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config or RedisPersistConfig()
        self._client_factory = client_factory or redis.from_url
        self._client: redis.Redis | None = None
        self._state = ConnectionState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    def _client_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"decode_responses": self._config.decode_responses}
        if self._config.socket_connect_timeout is not None:
            kwargs["socket_connect_timeout"] = self._config.socket_connect_timeout
        if self._config.socket_timeout is not None:
            kwargs["socket_timeout"] = self._config.socket_timeout
        return kwargs

    async def acquire(self) -> redis.Redis | None:
        """Return the shared client, connecting first if needed.

        Concurrent callers wait on a single lock, so at most one connection
        attempt is in flight.  Returns ``None`` when the server cannot be
        reached.
        """
        if self._state is ConnectionState.CONNECTED:
            return self._client

        async with self._lock:
            if self._state is ConnectionState.CONNECTED:
                return self._client

            target = redact_url(self._config.url)
            client: redis.Redis | None = None
            try:
                client = self._client_factory(self._config.url, **self._client_kwargs())
                await client.ping()
            except Exception as exc:  # noqa: BLE001
                self._state = ConnectionState.FAILED
                self._client = None
                logger.warning(
                    "persistkit_redis | op=connect | url=%s | detail=%s",
                    target,
                    exc,
                )
                if client is not None:
                    await self._close_client(client)
                return None
            except BaseException:
                # Cancelled mid-connect: discard the half-open client.
                self._state = ConnectionState.FAILED
                self._client = None
                if client is not None:
                    await self._close_client(client)
                raise

            self._client = client
            self._state = ConnectionState.CONNECTED
            logger.info("persistkit_redis | op=connect | url=%s", target)
            return client

    async def aclose(self) -> None:
        """Close the shared client and return to ``UNINITIALIZED``."""
        async with self._lock:
            client, self._client = self._client, None
            self._state = ConnectionState.UNINITIALIZED
        if client is not None:
            await self._close_client(client)

    @staticmethod
    async def _close_client(client: redis.Redis) -> None:
        try:
            await client.aclose()
        except Exception as exc:  # noqa: BLE001
            logger.debug("persistkit_redis | op=close | detail=%s", exc)
