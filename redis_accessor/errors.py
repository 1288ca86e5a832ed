"""
Error kinds raised by the Redis accessor.

Callers are expected to branch on `ConflictError` and `NotFoundError` only;
everything else is fatal to the operation that raised it. Each error carries
an HTTP-style `status_code` so an upstream web layer can map it directly.
"""

from __future__ import annotations

from typing import Optional


class AccessorError(Exception):
    """Base class for every error raised by this package."""

    status_code: int = 500
    default_message: str = "Accessor error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ConflictError(AccessorError):
    """Duplicate id on create, or lock contention treated as a duplicate."""

    status_code = 409
    default_message = "Conflict: duplicate id"


class NotFoundError(AccessorError):
    """Read of a record that does not exist."""

    status_code = 404
    default_message = "Not found"


class LockTimeoutError(AccessorError):
    """A lock could not be acquired (or extended) on the single attempt made."""

    status_code = 423
    default_message = "Resource is locked"


class UnsupportedPredicateError(AccessorError):
    """Raised in strict mode for a where clause that is not id equality or `inq`."""

    status_code = 400
    default_message = "Unsupported predicate"


class InvalidIdError(AccessorError, ValueError):
    status_code = 400
    default_message = "Invalid id"


class StoreUnavailableError(AccessorError):
    """Transport-level failure talking to the store."""

    status_code = 503
    default_message = "Store unavailable"


class StoreCommandError(AccessorError):
    """The store rejected a command, e.g. WRONGTYPE on a key of another kind."""

    status_code = 500
    default_message = "Store command rejected"


__all__ = [
    "AccessorError",
    "ConflictError",
    "NotFoundError",
    "LockTimeoutError",
    "UnsupportedPredicateError",
    "InvalidIdError",
    "StoreUnavailableError",
    "StoreCommandError",
]
