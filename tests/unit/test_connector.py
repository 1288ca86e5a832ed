from __future__ import annotations

import asyncio

import pytest

from redis_accessor import connector as connector_module
from redis_accessor.config import Settings
from redis_accessor.connector import Connector
from redis_accessor.domain.models import FieldType
from redis_accessor.errors import ConflictError, NotFoundError, StoreUnavailableError
from redis_accessor.infrastructure.memory_store import MemoryStore

PERSONS = [
    {"id": "0", "name": "Charlie", "age": 24},
    {"id": "1", "name": "Mary", "age": 24},
    {"id": "2", "name": "David", "age": 24},
]


class _CountingStore(MemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.close_calls = 0

    async def close(self) -> None:
        self.close_calls += 1
        await super().close()


@pytest.mark.asyncio
async def test_crud_through_connector(connector: Connector) -> None:
    created = await connector.create("person", PERSONS[0])
    found = await connector.find_by_id("person", "0")

    assert created.data == found.data == PERSONS[0]
    assert await connector.exists("person", "0")

    saved = await connector.save("person", {"id": "0", "name": "Charlie II", "age": 24})
    assert saved["name"] == "Charlie II"

    assert await connector.destroy_by_id("person", "0") == 1
    with pytest.raises(NotFoundError):
        await connector.find_by_id("person", "0")


@pytest.mark.asyncio
async def test_models_share_one_store_but_not_namespaces(connector: Connector) -> None:
    for person in PERSONS[:2]:
        await connector.create("person", person)
    await connector.create("noise", {"id": "0", "name": "Charlie", "age": 99})

    assert len(await connector.find("person")) == 2
    assert await connector.count("noise") == 1
    assert [r.id for r in await connector.find_by_ids("person", ["1", "0"])] == ["1", "0"]


@pytest.mark.asyncio
async def test_lock_by_id_blocks_create(connector: Connector) -> None:
    async with connector.lock_by_id("person", "2"):
        with pytest.raises(ConflictError):
            await connector.create("person", PERSONS[2])

    assert (await connector.create("person", PERSONS[2])).id == "2"


@pytest.mark.asyncio
async def test_destroy_all(connector: Connector) -> None:
    for person in PERSONS:
        await connector.create("person", person)

    assert await connector.destroy_all("person", {"id": {"inq": ["0", "1"]}}) == 2
    assert await connector.destroy_all("person") == 1
    assert await connector.destroy_all("person") == 0


@pytest.mark.asyncio
async def test_update_or_create(connector: Connector) -> None:
    first = await connector.update_or_create("person", PERSONS[0])
    second = await connector.update_or_create("person", {"id": "0", "name": "CharlieLi", "age": 44})

    assert first.id == second.id == "0"
    assert (await connector.find_by_id("person", "0"))["age"] == 44


def test_define_model_resolves_types_and_resets_accessor(connector: Connector) -> None:
    before = connector.get_accessor("person")
    schema = connector.define_model("person", {"name": "Text", "age": float, "tags": list})

    assert schema.properties == {
        "name": FieldType.TEXT,
        "age": FieldType.NUMBER,
        "tags": FieldType.COMPLEX,
    }
    assert connector.get_accessor("person") is not before
    assert connector.get_accessor("person").schema is schema


def test_undefined_model_treats_every_field_as_complex(connector: Connector) -> None:
    schema = connector.get_accessor("unknown").schema

    assert schema.name == "unknown"
    assert schema.field_type("anything") is FieldType.COMPLEX


def test_define_model_rejects_colon_in_name(connector: Connector) -> None:
    with pytest.raises(ValueError):
        connector.define_model("bad:name")


def test_get_accessor_requires_connection(test_settings: Settings) -> None:
    with pytest.raises(StoreUnavailableError):
        Connector(settings=test_settings).get_accessor("person")


@pytest.mark.asyncio
async def test_memory_backend_connects_and_disconnects(test_settings: Settings) -> None:
    connector = Connector(settings=test_settings)

    store = await connector.connect()
    assert isinstance(store, MemoryStore)
    assert await connector.connect() is store
    assert await connector.ping() is True

    assert await connector.disconnect() is True
    assert store.closed is True
    assert connector.connected is False
    assert await connector.disconnect() is True


@pytest.mark.asyncio
async def test_concurrent_connect_opens_one_store(test_settings: Settings, monkeypatch) -> None:
    opened: list[_CountingStore] = []

    async def fake_open(self: Connector) -> _CountingStore:
        await asyncio.sleep(0)
        store = _CountingStore()
        opened.append(store)
        return store

    monkeypatch.setattr(connector_module.Connector, "_open_store", fake_open)
    connector = Connector(settings=test_settings)

    stores = await asyncio.gather(connector.connect(), connector.connect())
    await asyncio.gather(connector.disconnect(), connector.disconnect())

    assert len(opened) == 1
    assert stores[0] is stores[1]
    assert opened[0].close_calls == 1


@pytest.mark.asyncio
async def test_redis_backend_uses_redis_factory(test_settings: Settings, monkeypatch) -> None:
    settings = test_settings.model_copy(update={"store_backend": "redis"})
    fake_store = _CountingStore()
    seen: list[Settings] = []

    async def fake_connect(received: Settings) -> _CountingStore:
        seen.append(received)
        return fake_store

    monkeypatch.setattr(connector_module, "connect_redis_store", fake_connect)

    async with Connector(settings=settings) as connector:
        assert connector.store is fake_store

    assert seen == [settings]
    assert fake_store.close_calls == 1


@pytest.mark.asyncio
async def test_supplied_store_is_left_open(test_settings: Settings) -> None:
    store = _CountingStore()

    async with Connector(settings=test_settings, store=store) as connector:
        assert connector.store is store

    assert store.close_calls == 0


@pytest.mark.asyncio
async def test_settings_drive_id_strategy_and_lock_ttl(test_settings: Settings) -> None:
    settings = test_settings.model_copy(update={"id_strategy": "sequence", "lock_ttl_ms": 250})
    connector = Connector(settings=settings, store=MemoryStore())

    record = await connector.create("person", {"name": "Jason"})
    async with connector.lock_by_id("person", "x") as lock:
        assert lock.ttl_ms == 250

    assert record.id == "1"
