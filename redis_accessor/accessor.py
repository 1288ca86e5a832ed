"""
Key-value accessor: persistence operations for one model over a `Store`.

Key layout
----------
- record:   `<model>:<id>`        hash of field -> encoded string
- lock:     `locks:<model>:<id>`  owner token with a TTL
- sequence: `id:<model>`          integer counter (sequence id strategy only)

Writes are full overwrites of the record hash. Only `create_with_id` takes a
lock, and only to keep concurrent creators of the same id apart; `put` and the
operations built on it are last-writer-wins. Bulk reads and deletes are best
effort: a member that fails is dropped from the result or count instead of
failing the batch.
"""

from __future__ import annotations

import asyncio
import uuid
from contextlib import AbstractAsyncContextManager
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Tuple

from redis_accessor.codec import decode_fields, encode_fields
from redis_accessor.domain.models import LOCK_PREFIX, SEQUENCE_PREFIX, ModelSchema, Record
from redis_accessor.errors import (
    AccessorError,
    ConflictError,
    InvalidIdError,
    LockTimeoutError,
    NotFoundError,
)
from redis_accessor.infrastructure.locks import Lock, LockManager
from redis_accessor.infrastructure.store import Store, escape_pattern
from redis_accessor.predicates import extract_ids
from redis_accessor.utils.logging import get_logger

log = get_logger(__name__)

IdStrategy = Literal["uuid", "sequence"]


class KeyValueAccessor:
    """
    Create/read/update/delete and bulk operations for one model.

    Parameters
    ----------
    store : Store
        Shared store handle; the accessor never opens or closes it.
    schema : ModelSchema
        Field types used to encode and decode values.
    locks : LockManager
        Lease issuer used on the create path.
    id_strategy : {"uuid", "sequence"}
        How ids are generated for records created without one.
    strict_predicates : bool
        Raise instead of returning nothing for unsupported where clauses.
    """

    def __init__(
        self,
        store: Store,
        schema: ModelSchema,
        locks: LockManager,
        id_strategy: IdStrategy = "uuid",
        strict_predicates: bool = False,
    ) -> None:
        self._store = store
        self.schema = schema
        self._locks = locks
        self.id_strategy = id_strategy
        self.strict_predicates = strict_predicates

    @property
    def model_name(self) -> str:
        return self.schema.name

    @property
    def id_field(self) -> str:
        return self.schema.id_field

    # ------------------------------------------------------------------ keys

    def _normalize_id(self, id: Any) -> str:
        if id is None or isinstance(id, bool) or str(id) == "":
            raise InvalidIdError(f"Invalid id for {self.model_name}: {id!r}")
        return str(id)

    def key(self, id: Any) -> str:
        return f"{self.model_name}:{self._normalize_id(id)}"

    def lock_resource(self, id: Any) -> str:
        return f"{LOCK_PREFIX}:{self.model_name}:{self._normalize_id(id)}"

    def _namespace_pattern(self) -> str:
        return f"{escape_pattern(self.model_name)}:*"

    def _id_from_key(self, key: str) -> str:
        return key[len(self.model_name) + 1 :]

    async def generate_id(self) -> str:
        if self.id_strategy == "sequence":
            return str(await self._store.increment(f"{SEQUENCE_PREFIX}:{self.model_name}"))
        return str(uuid.uuid4())

    # -------------------------------------------------------------- encoding

    def _encode(self, id: str, fields: Mapping[str, Any]) -> Dict[str, str]:
        data = dict(fields)
        data[self.id_field] = id
        return encode_fields(self.schema, data)

    def _to_record(self, id: str, raw: Mapping[str, Any]) -> Record:
        data = decode_fields(self.schema, raw)
        data[self.id_field] = id
        return Record(model=self.model_name, id=id, data=data)

    # ----------------------------------------------------------------- locks

    def lock_by_id(
        self, id: Any, ttl_ms: Optional[int] = None
    ) -> AbstractAsyncContextManager[Lock]:
        """Scoped lease on `locks:<model>:<id>`; raises LockTimeoutError if held."""
        return self._locks.acquire(self.lock_resource(id), ttl_ms)

    # ---------------------------------------------------------------- writes

    async def exists_by_id(self, id: Any) -> bool:
        return await self._store.exists(self.key(id))

    async def create_with_id(self, id: Any, fields: Mapping[str, Any]) -> Record:
        """
        Create a record under an explicit id.

        Raises
        ------
        ConflictError
            If the id is taken, or another creator holds its lock.
        """
        id = self._normalize_id(id)
        key = self.key(id)
        if await self._store.exists(key):
            raise ConflictError(f"Conflict: duplicate id {key}")

        encoded = self._encode(id, fields)
        try:
            async with self.lock_by_id(id):
                # A creator may have finished between the first check and the lock.
                if await self._store.exists(key):
                    raise ConflictError(f"Conflict: duplicate id {key}")
                await self._store.hash_set(key, encoded)
        except LockTimeoutError as exc:
            log.info("Create refused: id is locked", extra={"model": self.model_name, "id": id})
            raise ConflictError(f"Conflict: {key} is being created") from exc

        log.debug("Record created", extra={"model": self.model_name, "id": id})
        return self._to_record(id, encoded)

    async def create_without_id(self, fields: Mapping[str, Any]) -> Record:
        id = await self.generate_id()
        return await self.create_with_id(id, fields)

    async def create(self, fields: Mapping[str, Any]) -> Record:
        """Create with the id carried in `fields`, or a generated one."""
        id = fields.get(self.id_field)
        if id is None or id == "":
            return await self.create_without_id(fields)
        return await self.create_with_id(id, fields)

    async def put(self, id: Any, fields: Mapping[str, Any]) -> Record:
        """Overwrite the whole record, creating it if needed. No lock is taken."""
        id = self._normalize_id(id)
        encoded = self._encode(id, fields)
        await self._store.hash_set(self.key(id), encoded)
        log.debug("Record written", extra={"model": self.model_name, "id": id})
        return self._to_record(id, encoded)

    async def save(self, fields: Mapping[str, Any]) -> Record:
        return await self.put(fields.get(self.id_field), fields)

    async def update_or_create(self, fields: Mapping[str, Any]) -> Record:
        id = fields.get(self.id_field)
        if id is None or id == "":
            return await self.create_without_id(fields)
        return await self.put(id, fields)

    # ----------------------------------------------------------------- reads

    async def find_by_id(self, id: Any) -> Record:
        """
        Read one record.

        Raises
        ------
        NotFoundError
            If no hash is stored for the id.
        """
        id = self._normalize_id(id)
        key = self.key(id)
        # HGETALL returns {} for a missing key, so check existence first.
        if not await self._store.exists(key):
            raise NotFoundError(f"Not found: {key}")
        return self._to_record(id, await self._store.hash_get_all(key))

    async def _find_or_none(self, id: str) -> Optional[Record]:
        try:
            return await self.find_by_id(id)
        except AccessorError as exc:
            log.debug(
                "Skipping unreadable record",
                extra={"model": self.model_name, "id": id, "error": str(exc)},
            )
            return None

    async def find_by_ids(self, ids: Sequence[Any]) -> List[Record]:
        """Records for `ids` in request order; missing ids are skipped."""
        records = await asyncio.gather(*(self._find_or_none(id) for id in ids))
        return [record for record in records if record is not None]

    async def find_all(self) -> List[Tuple[str, Record]]:
        """
        Best-effort snapshot of every record of the model, sorted by id.

        Records deleted between listing and reading are left out.
        """
        keys = await self._store.keys(self._namespace_pattern())
        ids = sorted(self._id_from_key(key) for key in keys)
        records = await asyncio.gather(*(self._find_or_none(id) for id in ids))
        return [(record.id, record) for record in records if record is not None]

    async def find(self, where: Optional[Mapping[str, Any]] = None) -> List[Record]:
        ids = extract_ids(where, self.id_field, strict=self.strict_predicates)
        if ids is None:
            return [record for _, record in await self.find_all()]
        return await self.find_by_ids(ids)

    async def count(self, where: Optional[Mapping[str, Any]] = None) -> int:
        ids = extract_ids(where, self.id_field, strict=self.strict_predicates)
        if ids is None:
            return len(await self._store.keys(self._namespace_pattern()))
        found = await asyncio.gather(*(self._store.exists(self.key(id)) for id in ids))
        return sum(1 for exists in found if exists)

    # --------------------------------------------------------------- deletes

    async def destroy_by_id(self, id: Any) -> int:
        """Delete one record; returns 1 if it existed, 0 otherwise."""
        return await self._store.delete(self.key(id))

    async def _destroy_or_zero(self, id: str) -> int:
        try:
            return await self.destroy_by_id(id)
        except AccessorError as exc:
            log.debug(
                "Skipping failed delete",
                extra={"model": self.model_name, "id": id, "error": str(exc)},
            )
            return 0

    async def destroy(self, where: Optional[Mapping[str, Any]] = None) -> int:
        """
        Delete the records selected by `where` and return how many were removed.

        An empty clause deletes the whole model namespace in one atomic batch.
        """
        ids = extract_ids(where, self.id_field, strict=self.strict_predicates)
        if ids is None:
            count = await self._store.delete_matching(self._namespace_pattern())
            log.info("Namespace cleared", extra={"model": self.model_name, "count": count})
            return count
        if not ids:
            return 0
        deleted = await asyncio.gather(*(self._destroy_or_zero(id) for id in ids))
        return sum(deleted)


__all__ = ["IdStrategy", "KeyValueAccessor"]
