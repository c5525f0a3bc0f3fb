"""persistkit-redis -- Redis persistence backend for ingestion pipelines.

Public API re-exports for convenient access.
"""

from persistkit_redis.config import RedisPersistConfig
from persistkit_redis.connection import ConnectionState, RedisConnectionProvider
from persistkit_redis.persist import RedisPersist

__all__ = [
    "RedisPersist",
    "RedisPersistConfig",
    "RedisConnectionProvider",
    "ConnectionState",
]
