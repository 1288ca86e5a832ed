"""
Lease-based distributed locks over a `Store`.

A lock is a string key holding a random owner token with a TTL. Acquisition
is a single SET-if-absent with expiry: contention is reported immediately as
`LockTimeoutError`, never queued or retried. Release and extension are
compare-and-act on the owner token, so a holder whose lease expired cannot
free or prolong a lock that somebody else now owns.

Usage:
    locks = LockManager(store)
    async with locks.acquire("locks:person:0", ttl_ms=1000) as lock:
        ...  # critical section; release runs on every exit path
"""

from __future__ import annotations

import asyncio
import secrets
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Optional

from redis_accessor.errors import AccessorError, LockTimeoutError
from redis_accessor.infrastructure.store import Store
from redis_accessor.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_LOCK_TTL_MS = 1000


@dataclass
class Lock:
    """
    Handle for a held lease.

    `expires_at` is a local monotonic estimate; the store's TTL is
    authoritative.
    """

    resource: str
    token: str
    ttl_ms: int
    expires_at: float
    store: Store = field(repr=False)
    released: bool = field(default=False)

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    async def extend(self, ttl_ms: Optional[int] = None) -> None:
        """
        Reset the lease TTL.

        Raises
        ------
        LockTimeoutError
            If this handle no longer owns the lock.
        """
        ttl = ttl_ms or self.ttl_ms
        if self.released or not await self.store.expire_if_equals(self.resource, self.token, ttl):
            raise LockTimeoutError(f"Lock on {self.resource} is no longer held")
        self.ttl_ms = ttl
        self.expires_at = time.monotonic() + ttl / 1000.0

    async def release(self) -> bool:
        """
        Release the lease if still owned.

        Never raises for ownership loss or store errors: the lease heals via
        its TTL, so failures are only logged. Returns True when the key was
        deleted by this call.
        """
        if self.released:
            return False
        self.released = True
        try:
            deleted = await self.store.delete_if_equals(self.resource, self.token)
        except AccessorError as exc:
            log.warning(
                "Failed to unlock",
                extra={"resource": self.resource, "error": str(exc)},
            )
            return False
        if not deleted:
            log.warning("Failed to unlock: lock not owned", extra={"resource": self.resource})
        return deleted


class LockManager:
    """
    Issues leases on resource keys of a shared store.

    Parameters
    ----------
    store : Store
        Store holding the lock keys.
    default_ttl_ms : int
        Lease TTL used when `acquire` is called without one.
    """

    def __init__(self, store: Store, default_ttl_ms: int = DEFAULT_LOCK_TTL_MS) -> None:
        self._store = store
        self.default_ttl_ms = default_ttl_ms

    async def attempt(self, resource: str, ttl_ms: Optional[int] = None) -> Lock:
        """
        Make the single acquisition attempt and return an unscoped handle.

        The caller owns the handle and must `release()` it. The attempt itself
        is bounded by the lease TTL.

        Raises
        ------
        LockTimeoutError
            If the resource is already held or the attempt timed out.
        """
        ttl = ttl_ms or self.default_ttl_ms
        token = secrets.token_hex(16)
        try:
            acquired = await asyncio.wait_for(
                self._store.set_if_absent(resource, token, ttl), timeout=ttl / 1000.0
            )
        except asyncio.TimeoutError as exc:
            raise LockTimeoutError(f"Timed out locking {resource}") from exc
        if not acquired:
            log.debug("Lock contended", extra={"resource": resource})
            raise LockTimeoutError(f"Resource {resource} is locked")
        log.debug("Lock acquired", extra={"resource": resource, "ttl_ms": ttl})
        return Lock(
            resource=resource,
            token=token,
            ttl_ms=ttl,
            expires_at=time.monotonic() + ttl / 1000.0,
            store=self._store,
        )

    @asynccontextmanager
    async def acquire(self, resource: str, ttl_ms: Optional[int] = None) -> AsyncIterator[Lock]:
        """
        Hold a lease for the duration of the `async with` block.

        Release is attempted on success, failure and cancellation alike.
        """
        lock = await self.attempt(resource, ttl_ms)
        try:
            yield lock
        finally:
            await lock.release()


__all__ = ["DEFAULT_LOCK_TTL_MS", "Lock", "LockManager"]
