"""
Domain package for the Redis accessor.

Exports the field types, model schema and record definitions used across the
codec, accessor and connector. Keep this package focused on data definitions
and validation concerns.
"""

from redis_accessor.domain.models import FieldType, ModelSchema, Record

__all__ = [
    "FieldType",
    "ModelSchema",
    "Record",
]
