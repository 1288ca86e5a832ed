"""
redis-accessor - object persistence over Redis hashes.

This package maps a create / save / find / destroy contract onto Redis:

- A value codec that stores typed model fields as hash strings and reads them
  back losslessly
- Lease-based per-record locks that keep concurrent creators of the same id
  apart
- Id lookups, membership queries and namespace-wide deletes over a key space
  with no secondary indexes

The connector owns the connection; accessors only see a narrow store
interface, so the same code runs against Redis or the in-memory store.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from redis_accessor.accessor import KeyValueAccessor
from redis_accessor.codec import decode_fields, decode_value, encode_fields, encode_value
from redis_accessor.config import Settings, get_settings
from redis_accessor.connector import Connector
from redis_accessor.domain.models import FieldType, ModelSchema, Record
from redis_accessor.errors import (
    AccessorError,
    ConflictError,
    InvalidIdError,
    LockTimeoutError,
    NotFoundError,
    StoreCommandError,
    StoreUnavailableError,
    UnsupportedPredicateError,
)
from redis_accessor.infrastructure.locks import Lock, LockManager
from redis_accessor.infrastructure.memory_store import MemoryStore
from redis_accessor.infrastructure.redis_store import RedisStore
from redis_accessor.infrastructure.store import Store
from redis_accessor.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Connector and accessor
    "Connector",
    "KeyValueAccessor",
    # Codec
    "encode_value",
    "decode_value",
    "encode_fields",
    "decode_fields",
    # Domain
    "FieldType",
    "ModelSchema",
    "Record",
    # Errors
    "AccessorError",
    "ConflictError",
    "InvalidIdError",
    "LockTimeoutError",
    "NotFoundError",
    "StoreCommandError",
    "StoreUnavailableError",
    "UnsupportedPredicateError",
    # Store and locks
    "Lock",
    "LockManager",
    "MemoryStore",
    "RedisStore",
    "Store",
    # Logging
    "configure_logging",
    "get_logger",
]
