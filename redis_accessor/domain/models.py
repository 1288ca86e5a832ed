"""
Domain models for the Redis accessor.

Defines the field type enumeration the codec dispatches on, the per-model
schema that maps field names to those types, and the record returned by
accessor operations.
"""
from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

LOCK_PREFIX = "locks"
SEQUENCE_PREFIX = "id"
RESERVED_NAMESPACES = frozenset({LOCK_PREFIX, SEQUENCE_PREFIX})


class FieldType(str, enum.Enum):
    """
    Closed set of field types understood by the codec.

    Anything the codec has no dedicated rule for is COMPLEX and is stored as
    JSON.
    """

    STRING = "string"
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    COMPLEX = "complex"

    @classmethod
    def resolve(cls, declared: Any) -> "FieldType":
        """
        Resolve a declared property type to a FieldType.

        Accepts a FieldType, a type name ("String", "number", ...) or a Python
        type. Unknown declarations resolve to COMPLEX.
        """
        if isinstance(declared, cls):
            return declared
        if isinstance(declared, str):
            try:
                return cls(declared.lower())
            except ValueError:
                return cls.COMPLEX
        if isinstance(declared, type):
            # bool first: it is a subclass of int
            if issubclass(declared, bool):
                return cls.BOOLEAN
            if issubclass(declared, str):
                return cls.STRING
            if issubclass(declared, (int, float, Decimal)):
                return cls.NUMBER
            if issubclass(declared, (datetime, date)):
                return cls.DATE
        return cls.COMPLEX


class ModelSchema(BaseModel):
    """
    Field schema for one model.

    Fields absent from `properties` are treated as COMPLEX by the codec.
    """

    name: str = Field(..., description="Model name, used as the key namespace.")
    id_field: str = Field("id", description="Name of the identifier property.")
    properties: Dict[str, FieldType] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value or ":" in value:
            raise ValueError("model name must be non-empty and must not contain ':'")
        if value in RESERVED_NAMESPACES:
            raise ValueError(f"model name {value!r} is reserved for lock and id keys")
        return value

    @field_validator("properties", mode="before")
    @classmethod
    def _resolve_types(cls, value: Any) -> Dict[str, FieldType]:
        if value is None:
            return {}
        return {str(name): FieldType.resolve(declared) for name, declared in dict(value).items()}

    def field_type(self, name: str) -> FieldType:
        return self.properties.get(name, FieldType.COMPLEX)


class Record(BaseModel):
    """
    A stored entity as returned by the accessor.
    """

    model: str = Field(..., description="Model name.")
    id: str = Field(..., description="Record identifier.")
    data: Dict[str, Any] = Field(default_factory=dict, description="Decoded field values.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "arbitrary_types_allowed": False,
    }

    @property
    def key(self) -> str:
        return f"{self.model}:{self.id}"

    def __getitem__(self, name: str) -> Any:
        return self.data[name]

    def get(self, name: str, default: Any = None) -> Any:
        return self.data.get(name, default)


__all__ = ["FieldType", "ModelSchema", "Record"]
