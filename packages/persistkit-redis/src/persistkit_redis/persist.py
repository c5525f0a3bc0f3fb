"""RedisPersist -- persistence backend writing nodes to Redis.

Single nodes are written with ``SET``; batches with one ``MSET``.  Keys and
values come from a :class:`~persistkit_core.protocols.DerivationStrategy`
(by default ``"{path}:{content_hash}"`` and the node's JSON).

Batch writes are all-or-nothing from the caller's point of view:

1. Store unreachable -- every node yields the same connection failure.
2. Any derivation fails -- one derivation failure, nothing written.
3. ``MSET`` fails -- one store failure; which keys landed is not checked.
4. ``MSET`` succeeds -- one success per node, in input order.
"""

from __future__ import annotations

import logging
import time
from typing import AsyncIterator, Sequence

import redis.asyncio as redis
from redis.exceptions import RedisError

from persistkit_core.derivation import apply_derivation, build_derivation
from persistkit_core.errors import DerivationError, PersistConnectionError, StoreError
from persistkit_core.models import Node, PersistOutcome
from persistkit_core.protocols import ConnectionProvider, DerivationStrategy

from persistkit_redis.config import RedisPersistConfig
from persistkit_redis.connection import RedisConnectionProvider

logger = logging.getLogger("persistkit_redis")


class RedisPersist:
    """Redis-backed persistence stage.

    Satisfies :class:`~persistkit_core.protocols.PersistBackend` via
    structural subtyping.

    Parameters
    ----------
    config:
        Backend configuration.  Uses defaults when *None*.
    connection:
        Provider of the shared client.  Built from *config* when *None*.
    derivation:
        Key/value strategy.  Built from ``config.persist_key_fn`` and
        ``config.persist_value_fn`` when *None*.
    """

    def __init__(
        self,
        config: RedisPersistConfig | None = None,
        connection: ConnectionProvider | None = None,
        derivation: DerivationStrategy | None = None,
    ) -> None:
        self._config = config or RedisPersistConfig()
        self._connection = connection or RedisConnectionProvider(self._config)
        self._derivation = derivation or build_derivation(
            self._config.persist_key_fn,
            self._config.persist_value_fn,
        )

    @classmethod
    def from_url(cls, url: str, **overrides: object) -> RedisPersist:
        """Build a backend for *url*; extra kwargs become config fields."""
        return cls(RedisPersistConfig(url=url, **overrides))  # type: ignore[arg-type]

    @property
    def config(self) -> RedisPersistConfig:
        return self._config

    @property
    def derivation(self) -> DerivationStrategy:
        return self._derivation

    # ------------------------------------------------------------------
    # Pipeline API
    # ------------------------------------------------------------------

    async def setup(self) -> None:
        """Nothing to provision for Redis."""
        return None

    def batch_size(self) -> int | None:
        return self._config.batch_size

    async def store(self, node: Node) -> Node:
        """Store *node* with ``SET`` and return it unchanged.

        Raises
        ------
        PersistConnectionError
            The server could not be reached; nothing was written.
        DerivationError
            Key or value derivation failed; nothing was written.
        StoreError
            The ``SET`` command failed.
        """
        start = time.monotonic()
        client = await self._require_client()

        try:
            key = self.persist_key_for_node(node)
            value = self.persist_value_for_node(node)
        except DerivationError as exc:
            logger.error(
                "persistkit_redis | op=store | code=%s | detail=%s",
                exc.code.value,
                exc.message,
            )
            raise

        try:
            await client.set(key, value)
        except (RedisError, OSError) as exc:
            logger.error(
                "persistkit_redis | op=store | key=%s | detail=%s",
                self._loggable(key),
                exc,
            )
            raise StoreError(f"Error persisting to redis: {exc}", key=key) from exc

        logger.info(
            "persistkit_redis | op=store | key=%s | time=%.3fs",
            self._loggable(key),
            time.monotonic() - start,
        )
        return node

    async def batch_store(self, nodes: Sequence[Node]) -> AsyncIterator[PersistOutcome]:
        """Store *nodes* with a single ``MSET``, yielding per-node outcomes.

        See the module docstring for the failure semantics.  An empty batch
        yields nothing and issues no command.
        """
        nodes = list(nodes)
        if not nodes:
            return

        start = time.monotonic()
        client = await self._connection.acquire()
        if client is None:
            error = PersistConnectionError("Failed to connect to Redis").error
            logger.warning(
                "persistkit_redis | op=batch_store | nodes=%d | code=%s",
                len(nodes),
                error.code.value,
            )
            for _ in nodes:
                yield PersistOutcome.failure(error)
            return

        try:
            mapping = self._derive_pairs(nodes)
        except DerivationError as exc:
            logger.error(
                "persistkit_redis | op=batch_store | nodes=%d | code=%s | detail=%s",
                len(nodes),
                exc.code.value,
                exc.message,
            )
            yield PersistOutcome.failure(exc.error)
            return

        try:
            await client.mset(mapping)
        except (RedisError, OSError) as exc:
            logger.error(
                "persistkit_redis | op=batch_store | nodes=%d | detail=%s",
                len(nodes),
                exc,
            )
            error = StoreError(
                f"Error persisting batch of {len(nodes)} nodes to redis: {exc}"
            ).error
            yield PersistOutcome.failure(error)
            return

        logger.info(
            "persistkit_redis | op=batch_store | nodes=%d | keys=%d | time=%.3fs",
            len(nodes),
            len(mapping),
            time.monotonic() - start,
        )
        for node in nodes:
            yield PersistOutcome.success(node)

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    # Any strategy failure, including custom ones, surfaces as DerivationError.

    def persist_key_for_node(self, node: Node) -> str:
        return apply_derivation(self._derivation.derive_key, node, "key")

    def persist_value_for_node(self, node: Node) -> str:
        return apply_derivation(self._derivation.derive_value, node, "value")

    def _derive_pairs(self, nodes: list[Node]) -> dict[str, str]:
        # Later duplicates win, matching MSET's own ordering.
        mapping: dict[str, str] = {}
        for node in nodes:
            mapping[self.persist_key_for_node(node)] = self.persist_value_for_node(node)
        return mapping

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_value(self, node: Node) -> str | None:
        """Return the raw value stored under *node*'s derived key, if any."""
        key = self.persist_key_for_node(node)
        client = await self._require_client()
        try:
            return await client.get(key)
        except (RedisError, OSError) as exc:
            raise StoreError(f"Error reading from redis: {exc}", key=key) from exc

    async def get_node(self, node: Node) -> Node | None:
        """Read back and decode the node stored under *node*'s derived key.

        Only meaningful with the default value derivation.
        """
        value = await self.get_value(node)
        if value is None:
            return None
        return Node.from_json(value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._connection.aclose()

    async def __aenter__(self) -> RedisPersist:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_client(self) -> redis.Redis:
        client = await self._connection.acquire()
        if client is None:
            raise PersistConnectionError("Failed to connect to Redis")
        return client

    def _loggable(self, key: str) -> str:
        return key if self._config.log_keys else "<hidden>"
