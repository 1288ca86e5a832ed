"""
Redis-backed store and client factory for the Redis accessor.

Provides `RedisStore`, the `Store` implementation over a single shared
`redis.asyncio` client, and `connect_redis_store`, which builds the client
from settings (URL, sentinel or host/port) and verifies it with a PING.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, TypeVar

import redis.exceptions
from redis.asyncio import Redis
from redis.asyncio.sentinel import Sentinel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from redis_accessor.config import Settings, get_settings
from redis_accessor.errors import StoreCommandError, StoreUnavailableError
from redis_accessor.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")

# KEYS[1] = key, ARGV[1] = expected value
_COMPARE_AND_DELETE = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""

# KEYS[1] = key, ARGV[1] = expected value, ARGV[2] = ttl in milliseconds
_COMPARE_AND_EXPIRE = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('PEXPIRE', KEYS[1], ARGV[2])
end
return 0
"""

# ARGV[1] = pattern. DEL is chunked to stay below Lua's unpack() limit.
_DELETE_MATCHING = """
local keys = redis.call('KEYS', ARGV[1])
local deleted = 0
for i = 1, #keys, 500 do
    deleted = deleted + redis.call('DEL', unpack(keys, i, math.min(i + 499, #keys)))
end
return deleted
"""

_TRANSPORT_ERRORS = (redis.exceptions.ConnectionError, redis.exceptions.TimeoutError)


def _translate_errors(
    func: Callable[..., Awaitable[T]],
) -> Callable[..., Awaitable[T]]:
    """
    Re-raise redis-py failures as accessor errors.

    Transport failures become StoreUnavailableError; error replies from the
    server (WRONGTYPE and the like) become StoreCommandError.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except _TRANSPORT_ERRORS as exc:
            raise StoreUnavailableError(f"Redis unavailable: {exc}") from exc
        except redis.exceptions.ResponseError as exc:
            raise StoreCommandError(f"Redis rejected command: {exc}") from exc

    return wrapper


class RedisStore:
    """
    `Store` implementation over one shared `redis.asyncio.Redis` client.

    The client multiplexes commands over its own connection pool, so a single
    instance is shared by every accessor of a connector.
    """

    def __init__(self, client: Redis) -> None:
        self._client = client
        self._compare_and_delete = client.register_script(_COMPARE_AND_DELETE)
        self._compare_and_expire = client.register_script(_COMPARE_AND_EXPIRE)
        self._delete_matching = client.register_script(_DELETE_MATCHING)

    @property
    def client(self) -> Redis:
        return self._client

    @_translate_errors
    async def exists(self, key: str) -> bool:
        return bool(await self._client.exists(key))

    @_translate_errors
    async def hash_set(self, key: str, mapping: Mapping[str, str]) -> None:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(key)
            if mapping:
                pipe.hset(key, mapping=dict(mapping))
            await pipe.execute()

    @_translate_errors
    async def hash_get_all(self, key: str) -> Dict[str, str]:
        return await self._client.hgetall(key)

    @_translate_errors
    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._client.delete(*keys))

    @_translate_errors
    async def keys(self, pattern: str) -> List[str]:
        # SCAN may return a key more than once
        found = [key async for key in self._client.scan_iter(match=pattern, count=500)]
        return list(dict.fromkeys(found))

    @_translate_errors
    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        return bool(await self._client.set(key, value, nx=True, px=ttl_ms))

    @_translate_errors
    async def delete_if_equals(self, key: str, value: str) -> bool:
        return bool(await self._compare_and_delete(keys=[key], args=[value]))

    @_translate_errors
    async def expire_if_equals(self, key: str, value: str, ttl_ms: int) -> bool:
        return bool(await self._compare_and_expire(keys=[key], args=[value, ttl_ms]))

    @_translate_errors
    async def delete_matching(self, pattern: str) -> int:
        return int(await self._delete_matching(keys=[], args=[pattern]))

    @_translate_errors
    async def increment(self, key: str) -> int:
        return int(await self._client.incr(key))

    @_translate_errors
    async def ping(self) -> bool:
        return bool(await self._client.ping())

    @_translate_errors
    async def flush(self) -> None:
        """Drop every key of the selected database (tests and tooling only)."""
        await self._client.flushdb()

    async def close(self) -> None:
        await self._client.aclose()


def build_redis_client(settings: Optional[Settings] = None) -> Redis:
    """
    Build an unconnected `redis.asyncio` client from settings.

    Precedence: `REDIS_URL`, then `REDIS_SENTINELS`, then host/port/db.
    Responses are always decoded to `str`.
    """
    settings = settings or get_settings()
    options: Dict[str, Any] = {
        "decode_responses": True,
        "socket_connect_timeout": settings.redis_connect_timeout,
    }

    if settings.redis_url:
        return Redis.from_url(settings.redis_url, **options)

    sentinels = settings.sentinel_addresses()
    if sentinels:
        sentinel = Sentinel(sentinels, socket_timeout=settings.redis_connect_timeout)
        return sentinel.master_for(
            settings.redis_sentinel_master,
            db=settings.redis_db,
            password=settings.redis_password,
            **options,
        )

    return Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        db=settings.redis_db,
        password=settings.redis_password,
        **options,
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(StoreUnavailableError),
    reraise=True,
)
async def connect_redis_store(settings: Optional[Settings] = None) -> RedisStore:
    """
    Create a RedisStore and verify the connection with automatic retry.

    Retries up to 3 times with exponential backoff for transient connection errors.

    Returns
    -------
    RedisStore
        A store whose client answered PING.

    Raises
    ------
    StoreUnavailableError
        If the server cannot be reached after all retry attempts.
    """
    store = RedisStore(build_redis_client(settings))
    try:
        await store.ping()
    except StoreUnavailableError:
        log.warning("Redis ping failed; closing client before retry")
        await store.close()
        raise
    return store


__all__ = ["RedisStore", "build_redis_client", "connect_redis_store"]
