"""
Pytest configuration for the Redis accessor.

Provides fixtures for:
- Settings override for tests
- In-memory store, lock manager and accessors for unit tests
- A real Redis store for integration tests (skipped when unreachable)
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from redis_accessor.accessor import KeyValueAccessor
from redis_accessor.config import Settings
from redis_accessor.connector import Connector
from redis_accessor.domain.models import ModelSchema
from redis_accessor.errors import StoreUnavailableError
from redis_accessor.infrastructure.locks import LockManager
from redis_accessor.infrastructure.memory_store import MemoryStore
from redis_accessor.infrastructure.redis_store import RedisStore, build_redis_client

PERSON_PROPERTIES = {"id": str, "name": str, "age": int}


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        redis_host=os.getenv("REDIS_HOST", "localhost"),
        redis_port=int(os.getenv("REDIS_PORT", "6379")),
        redis_db=int(os.getenv("REDIS_DB", "15")),
        store_backend="memory",
        log_level="DEBUG",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def locks(memory_store: MemoryStore) -> LockManager:
    return LockManager(memory_store, default_ttl_ms=1000)


@pytest.fixture
def person_schema() -> ModelSchema:
    return ModelSchema(name="person", properties=PERSON_PROPERTIES)


@pytest.fixture
def profile_schema() -> ModelSchema:
    return ModelSchema(
        name="profile",
        properties={
            "id": str,
            "bio": "Text",
            "score": float,
            "verified": bool,
            "born_at": datetime,
        },
    )


@pytest.fixture
def person_accessor(
    memory_store: MemoryStore, person_schema: ModelSchema, locks: LockManager
) -> KeyValueAccessor:
    return KeyValueAccessor(memory_store, person_schema, locks)


@pytest.fixture
def connector(test_settings: Settings, memory_store: MemoryStore) -> Connector:
    connector = Connector(settings=test_settings, store=memory_store)
    connector.define_model("person", PERSON_PROPERTIES)
    connector.define_model("noise", PERSON_PROPERTIES)
    return connector


@pytest_asyncio.fixture
async def redis_store(test_settings: Settings) -> AsyncGenerator[RedisStore, None]:
    """
    Real Redis store on the test database, flushed before and after each test.

    Skips tests if Redis is not available.
    """
    store = RedisStore(build_redis_client(test_settings))
    try:
        await store.ping()
    except StoreUnavailableError:
        await store.close()
        pytest.skip("Redis not available for integration tests")

    await store.flush()
    try:
        yield store
    finally:
        await store.flush()
        await store.close()
