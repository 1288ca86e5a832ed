"""
Connector: owns the store connection and hands out per-model accessors.

Usage:
    from redis_accessor.connector import Connector

    async with Connector() as connector:
        connector.define_model("person", {"name": str, "age": int})
        person = await connector.create("person", {"id": "0", "name": "Charlie", "age": 24})
        same = await connector.find_by_id("person", "0")

The store is built from settings (`STORE_BACKEND`, `REDIS_*`) on `connect()`
unless one is passed in, in which case the caller keeps ownership of it.
`connect()` and `disconnect()` are idempotent and safe to call concurrently.
"""

from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager
from types import TracebackType
from typing import Any, Dict, List, Mapping, Optional, Type

from redis_accessor.accessor import KeyValueAccessor
from redis_accessor.config import Settings, get_settings
from redis_accessor.domain.models import ModelSchema, Record
from redis_accessor.errors import StoreUnavailableError
from redis_accessor.infrastructure.locks import Lock, LockManager
from redis_accessor.infrastructure.memory_store import MemoryStore
from redis_accessor.infrastructure.redis_store import connect_redis_store
from redis_accessor.infrastructure.store import Store
from redis_accessor.utils.logging import get_logger

log = get_logger(__name__)


class Connector:
    """
    Store lifecycle plus the model registry.

    Parameters
    ----------
    settings : Settings, optional
        Defaults to the cached environment settings.
    store : Store, optional
        Pre-built store. When given, `disconnect()` leaves it open.
    """

    def __init__(self, settings: Optional[Settings] = None, store: Optional[Store] = None) -> None:
        self.settings = settings or get_settings()
        self._store: Optional[Store] = store
        self._owns_store = store is None
        self._locks: Optional[LockManager] = None
        self._schemas: Dict[str, ModelSchema] = {}
        self._accessors: Dict[str, KeyValueAccessor] = {}
        self._state_lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._store is not None

    async def _open_store(self) -> Store:
        if self.settings.store_backend == "memory":
            return MemoryStore()
        return await connect_redis_store(self.settings)

    async def connect(self) -> Store:
        """Open the store if needed and return it."""
        async with self._state_lock:
            if self._store is None:
                self._store = await self._open_store()
                log.info(
                    "Connected",
                    extra={"backend": self.settings.store_backend, "env": self.settings.app_env},
                )
            return self._store

    async def disconnect(self) -> bool:
        """Close an owned store. Returns True once disconnected, even if already so."""
        async with self._state_lock:
            self._accessors.clear()
            self._locks = None
            if self._store is not None and self._owns_store:
                await self._store.close()
                self._store = None
                log.info("Disconnected", extra={"backend": self.settings.store_backend})
            return True

    async def __aenter__(self) -> "Connector":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.disconnect()

    @property
    def store(self) -> Store:
        if self._store is None:
            raise StoreUnavailableError("Connector is not connected")
        return self._store

    # -------------------------------------------------------------- models

    def define_model(
        self,
        name: str,
        properties: Optional[Mapping[str, Any]] = None,
        id_field: str = "id",
    ) -> ModelSchema:
        """Register (or replace) the field schema of a model."""
        schema = ModelSchema(name=name, id_field=id_field, properties=dict(properties or {}))
        self._schemas[name] = schema
        self._accessors.pop(name, None)
        return schema

    def schema_for(self, model: str) -> ModelSchema:
        """Registered schema, or an empty one (every field COMPLEX)."""
        schema = self._schemas.get(model)
        if schema is None:
            schema = ModelSchema(name=model)
        return schema

    def get_accessor(self, model: str) -> KeyValueAccessor:
        accessor = self._accessors.get(model)
        if accessor is None:
            store = self.store
            if self._locks is None:
                self._locks = LockManager(store, default_ttl_ms=self.settings.lock_ttl_ms)
            accessor = KeyValueAccessor(
                store,
                self.schema_for(model),
                self._locks,
                id_strategy=self.settings.id_strategy,
                strict_predicates=self.settings.strict_predicates,
            )
            self._accessors[model] = accessor
        return accessor

    # ------------------------------------------------------ upstream contract

    async def ping(self) -> bool:
        return await self.store.ping()

    async def create(self, model: str, data: Mapping[str, Any]) -> Record:
        return await self.get_accessor(model).create(data)

    async def save(self, model: str, data: Mapping[str, Any]) -> Record:
        return await self.get_accessor(model).save(data)

    async def update_or_create(self, model: str, data: Mapping[str, Any]) -> Record:
        return await self.get_accessor(model).update_or_create(data)

    async def exists(self, model: str, id: Any) -> bool:
        return await self.get_accessor(model).exists_by_id(id)

    async def find_by_id(self, model: str, id: Any) -> Record:
        return await self.get_accessor(model).find_by_id(id)

    async def find_by_ids(self, model: str, ids: List[Any]) -> List[Record]:
        return await self.get_accessor(model).find_by_ids(ids)

    async def find(self, model: str, where: Optional[Mapping[str, Any]] = None) -> List[Record]:
        return await self.get_accessor(model).find(where)

    async def count(self, model: str, where: Optional[Mapping[str, Any]] = None) -> int:
        return await self.get_accessor(model).count(where)

    async def destroy_by_id(self, model: str, id: Any) -> int:
        return await self.get_accessor(model).destroy_by_id(id)

    async def destroy_all(self, model: str, where: Optional[Mapping[str, Any]] = None) -> int:
        return await self.get_accessor(model).destroy(where)

    def lock_by_id(
        self, model: str, id: Any, ttl_ms: Optional[int] = None
    ) -> AbstractAsyncContextManager[Lock]:
        """Scoped lease on one record id, as taken by the create path."""
        return self.get_accessor(model).lock_by_id(id, ttl_ms)


__all__ = ["Connector"]
