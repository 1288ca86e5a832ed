"""
Infrastructure package for the Redis accessor.

Centralizes store connectivity and the lock manager built on top of it.
Keep this layer focused on I/O and resource management, decoupled from
encoding and accessor logic.
"""

from redis_accessor.infrastructure.locks import Lock, LockManager
from redis_accessor.infrastructure.memory_store import MemoryStore
from redis_accessor.infrastructure.redis_store import (
    RedisStore,
    build_redis_client,
    connect_redis_store,
)
from redis_accessor.infrastructure.store import Store

__all__ = [
    "Lock",
    "LockManager",
    "MemoryStore",
    "RedisStore",
    "Store",
    "build_redis_client",
    "connect_redis_store",
]
