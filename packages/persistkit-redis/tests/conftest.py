"""Shared test fixtures for persistkit-redis tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ResponseError

from persistkit_core.models import Node
from persistkit_redis.config import RedisPersistConfig
from persistkit_redis.connection import RedisConnectionProvider
from persistkit_redis.persist import RedisPersist


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis``.

    Records every command name in ``commands`` and keeps values in ``data``.
    Set ``fail_ping`` to simulate an unreachable server and ``fail_writes``
    to make ``SET``/``MSET`` fail after connecting.  ``cancel_ping``
    cancels the task awaiting ``PING``.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.commands: list[str] = []
        self.fail_ping = False
        self.fail_writes = False
        self.cancel_ping = False
        self.closed = False

    async def ping(self) -> bool:
        self.commands.append("PING")
        await asyncio.sleep(0)
        if self.cancel_ping:
            raise asyncio.CancelledError()
        if self.fail_ping:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")
        return True

    async def set(self, key: str, value: str) -> bool:
        self.commands.append("SET")
        if self.fail_writes:
            raise ResponseError("READONLY You can't write against a read only replica.")
        self.data[key] = value
        return True

    async def mset(self, mapping: dict[str, str]) -> bool:
        self.commands.append("MSET")
        if self.fail_writes:
            raise ResponseError("READONLY You can't write against a read only replica.")
        self.data.update(mapping)
        return True

    async def get(self, key: str) -> str | None:
        self.commands.append("GET")
        return self.data.get(key)

    async def aclose(self) -> None:
        self.closed = True

    @property
    def writes(self) -> list[str]:
        return [c for c in self.commands if c in ("SET", "MSET")]


class FakeFactory:
    """Client factory returning one shared :class:`FakeRedis`."""

    def __init__(self, client: FakeRedis) -> None:
        self.client = client
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def __call__(self, url: str, **kwargs: Any) -> FakeRedis:
        self.calls.append((url, kwargs))
        return self.client


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def fake_factory(fake_redis: FakeRedis) -> FakeFactory:
    return FakeFactory(fake_redis)


@pytest.fixture
def default_config() -> RedisPersistConfig:
    """Return a default RedisPersistConfig."""
    return RedisPersistConfig()


@pytest.fixture
def make_persist(fake_factory: FakeFactory):
    """Factory fixture building a RedisPersist wired to the fake client."""

    def _make(**config_overrides: Any) -> RedisPersist:
        config = RedisPersistConfig(**config_overrides)
        provider = RedisConnectionProvider(config, client_factory=fake_factory)
        return RedisPersist(config, connection=provider)

    return _make


@pytest.fixture
def persist(make_persist) -> RedisPersist:
    return make_persist()


@pytest.fixture
def sample_node() -> Node:
    return Node(
        id=1,
        path="docs/readme.md",
        chunk="Persistkit writes pipeline output to Redis.",
        vector=[0.1, 0.2, 0.3],
        metadata={"section": "intro", "page": 1},
    )
