from __future__ import annotations

import pytest

from redis_accessor.errors import StoreCommandError
from redis_accessor.infrastructure.memory_store import MemoryStore, compile_pattern
from redis_accessor.infrastructure.store import Store, escape_pattern


def test_memory_store_satisfies_store_protocol(memory_store: MemoryStore) -> None:
    assert isinstance(memory_store, Store)


@pytest.mark.parametrize(
    ("pattern", "key", "matches"),
    [
        ("person:*", "person:0", True),
        ("person:*", "locks:person:0", False),
        ("person:?", "person:12", False),
        ("person:[01]", "person:1", True),
        ("a\\*:*", "a*:1", True),
        ("a\\*:*", "ab:1", False),
    ],
)
def test_compile_pattern(pattern: str, key: str, matches: bool) -> None:
    assert bool(compile_pattern(pattern).fullmatch(key)) is matches


def test_escape_pattern() -> None:
    assert escape_pattern("a*b?[c]") == "a\\*b\\?\\[c\\]"


@pytest.mark.asyncio
async def test_hash_set_replaces_and_missing_hash_is_empty(memory_store: MemoryStore) -> None:
    await memory_store.hash_set("person:0", {"id": "0", "name": "Charlie"})
    await memory_store.hash_set("person:0", {"id": "0"})

    assert await memory_store.hash_get_all("person:0") == {"id": "0"}
    assert await memory_store.hash_get_all("person:9") == {}


@pytest.mark.asyncio
async def test_keys_expire_lazily(clock, memory_store: MemoryStore) -> None:
    assert await memory_store.set_if_absent("locks:a", "t1", 100) is True
    assert await memory_store.set_if_absent("locks:a", "t2", 100) is False

    clock.advance(0.1)

    assert await memory_store.exists("locks:a") is False
    assert await memory_store.keys("locks:*") == []


@pytest.mark.asyncio
async def test_delete_matching_and_increment(memory_store: MemoryStore) -> None:
    await memory_store.hash_set("person:0", {"id": "0"})
    await memory_store.hash_set("person:1", {"id": "1"})
    await memory_store.hash_set("noise:0", {"id": "0"})

    assert await memory_store.delete_matching("person:*") == 2
    assert await memory_store.delete_matching("person:*") == 0
    assert await memory_store.keys("*") == ["noise:0"]
    assert [await memory_store.increment("id:person") for _ in range(3)] == [1, 2, 3]


@pytest.mark.asyncio
async def test_wrong_type_access_raises(memory_store: MemoryStore) -> None:
    await memory_store.set_if_absent("locks:a", "token", 1000)
    await memory_store.hash_set("person:0", {"id": "0"})

    with pytest.raises(StoreCommandError):
        await memory_store.hash_get_all("locks:a")
    with pytest.raises(StoreCommandError):
        await memory_store.increment("person:0")
