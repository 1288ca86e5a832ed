"""
In-process store with Redis-like semantics.

Used by the unit tests and by `STORE_BACKEND=memory` for local development.
Each command runs without awaiting, so on a single event loop every command is
atomic, which matches what the Redis store gets from single commands and Lua
scripts. Keys may carry an expiry, evaluated lazily against `clock`.
"""

from __future__ import annotations

import re
import time
from typing import Callable, Dict, List, Mapping, Optional, Pattern, Tuple, Union

from redis_accessor.errors import StoreCommandError

_Value = Union[str, Dict[str, str]]


def compile_pattern(pattern: str) -> Pattern[str]:
    """Translate a Redis glob pattern (`*`, `?`, `[...]`, `\\x`) to a regex."""
    parts: List[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                parts.append(re.escape(char))
            else:
                body = pattern[i + 1 : end].replace("\\", "\\\\")
                parts.append(f"[{body}]")
                i = end
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("".join(parts), re.DOTALL)


class MemoryStore:
    """
    Dictionary-backed `Store`.

    Parameters
    ----------
    clock : callable, optional
        Monotonic clock in seconds; injectable so tests can expire keys.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock = clock or time.monotonic
        self._data: Dict[str, Tuple[_Value, Optional[float]]] = {}
        self.closed = False

    def _get(self, key: str) -> Optional[_Value]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    def _live_keys(self) -> List[str]:
        return [key for key in list(self._data) if self._get(key) is not None]

    async def exists(self, key: str) -> bool:
        return self._get(key) is not None

    async def hash_set(self, key: str, mapping: Mapping[str, str]) -> None:
        self._data.pop(key, None)
        if mapping:
            self._data[key] = ({str(k): str(v) for k, v in mapping.items()}, None)

    async def hash_get_all(self, key: str) -> Dict[str, str]:
        value = self._get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise StoreCommandError(f"WRONGTYPE key {key!r} does not hold a hash")
        return dict(value)

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self._get(key) is not None:
                del self._data[key]
                deleted += 1
        return deleted

    async def keys(self, pattern: str) -> List[str]:
        regex = compile_pattern(pattern)
        return [key for key in self._live_keys() if regex.fullmatch(key)]

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        if self._get(key) is not None:
            return False
        self._data[key] = (value, self._clock() + ttl_ms / 1000.0)
        return True

    async def delete_if_equals(self, key: str, value: str) -> bool:
        if self._get(key) != value:
            return False
        del self._data[key]
        return True

    async def expire_if_equals(self, key: str, value: str, ttl_ms: int) -> bool:
        current = self._get(key)
        if current != value:
            return False
        self._data[key] = (current, self._clock() + ttl_ms / 1000.0)
        return True

    async def delete_matching(self, pattern: str) -> int:
        matched = await self.keys(pattern)
        for key in matched:
            del self._data[key]
        return len(matched)

    async def increment(self, key: str) -> int:
        current = self._get(key)
        if isinstance(current, dict):
            raise StoreCommandError(f"WRONGTYPE key {key!r} holds a hash")
        expires_at = self._data[key][1] if current is not None else None
        value = int(current or 0) + 1
        self._data[key] = (str(value), expires_at)
        return value

    async def ping(self) -> bool:
        return True

    async def flush(self) -> None:
        self._data.clear()

    async def close(self) -> None:
        self.closed = True


__all__ = ["MemoryStore", "compile_pattern"]
