"""
Store capability interface for the Redis accessor.

The accessor and lock manager only ever talk to a `Store`: a narrow set of
asynchronous key/hash commands. Concrete stores (`RedisStore`, `MemoryStore`)
implement this protocol; connection lifecycle stays with whoever owns the
store instance.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, Protocol, runtime_checkable


@runtime_checkable
class Store(Protocol):
    """
    Asynchronous command surface consumed by the accessor.

    All values are strings. Implementations raise `StoreUnavailableError` for
    transport-level failures.
    """

    async def exists(self, key: str) -> bool:
        """Return True if `key` is present, whatever its contents."""
        ...

    async def hash_set(self, key: str, mapping: Mapping[str, str]) -> None:
        """Replace the hash at `key` with `mapping` (not a partial update)."""
        ...

    async def hash_get_all(self, key: str) -> Dict[str, str]:
        """Return every field of the hash at `key` ({} when absent)."""
        ...

    async def delete(self, *keys: str) -> int:
        """Delete keys and return how many existed."""
        ...

    async def keys(self, pattern: str) -> List[str]:
        """List keys matching a glob-style pattern."""
        ...

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        """Atomically set `key` with an expiry only if it does not exist."""
        ...

    async def delete_if_equals(self, key: str, value: str) -> bool:
        """Delete `key` only if it currently holds `value`."""
        ...

    async def expire_if_equals(self, key: str, value: str, ttl_ms: int) -> bool:
        """Reset the expiry of `key` only if it currently holds `value`."""
        ...

    async def delete_matching(self, pattern: str) -> int:
        """Atomically list keys matching `pattern` and delete them."""
        ...

    async def increment(self, key: str) -> int:
        """Atomically increment an integer counter and return the new value."""
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


def escape_pattern(text: str) -> str:
    """Escape glob metacharacters so `text` matches literally in a pattern."""
    return "".join("\\" + char if char in "*?[]\\" else char for char in text)


__all__ = ["Store", "escape_pattern"]
