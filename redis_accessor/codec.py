"""
Value codec: typed model values <-> Redis hash strings.

Redis stores every hash value as a string, so each field is converted on the
way in and converted back on the way out based on the field's `FieldType`.

Rules
-----
- `None` is written as "" and "" is read back as `None` for every type.
- DATE is written as ISO-8601 (`datetime.isoformat()`).
- An empty string given for a DATE field is written as "", i.e. as null.
- NUMBER keeps falsy values: `0` is written as "0", never "".
- BOOLEAN is written as the literals "true" / "false".
- STRING / TEXT pass through.
- COMPLEX (and any field missing from the schema) is JSON.

Decoding never fails on bad stored data: a value that cannot be parsed for
its declared type is returned as the raw string.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from redis_accessor.domain.models import FieldType, ModelSchema
from redis_accessor.utils.logging import get_logger

log = get_logger(__name__)

_TRUE_LITERALS = frozenset({"true", "1"})


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        raise TypeError(f"Cannot interpret {value!r} as a date")
    if isinstance(value, (int, float)):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"Cannot interpret {value!r} as a date")


def _encode_date(value: Any) -> str:
    if value == "":
        return ""
    return _to_datetime(value).isoformat()


def _encode_number(value: Any) -> str:
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _encode_boolean(value: Any) -> str:
    if isinstance(value, str):
        return "true" if value.lower() in _TRUE_LITERALS else "false"
    return "true" if value else "false"


def _encode_string(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _encode_complex(value: Any) -> str:
    return json.dumps(value)


def _decode_date(raw: str) -> Any:
    return datetime.fromisoformat(raw)


def _decode_number(raw: str) -> Any:
    try:
        return int(raw)
    except ValueError:
        return float(raw)


def _decode_boolean(raw: str) -> Any:
    return raw.lower() in _TRUE_LITERALS


def _decode_string(raw: str) -> Any:
    return raw


def _decode_complex(raw: str) -> Any:
    return json.loads(raw)


_ENCODERS: Dict[FieldType, Callable[[Any], str]] = {
    FieldType.STRING: _encode_string,
    FieldType.TEXT: _encode_string,
    FieldType.NUMBER: _encode_number,
    FieldType.BOOLEAN: _encode_boolean,
    FieldType.DATE: _encode_date,
    FieldType.COMPLEX: _encode_complex,
}

_DECODERS: Dict[FieldType, Callable[[str], Any]] = {
    FieldType.STRING: _decode_string,
    FieldType.TEXT: _decode_string,
    FieldType.NUMBER: _decode_number,
    FieldType.BOOLEAN: _decode_boolean,
    FieldType.DATE: _decode_date,
    FieldType.COMPLEX: _decode_complex,
}


def encode_value(field_type: FieldType, value: Any) -> str:
    """
    Encode a single model value for storage.

    Raises
    ------
    TypeError
        If a COMPLEX value is not JSON serializable, or a DATE value cannot be
        interpreted as a point in time.
    """
    if value is None:
        return ""
    return _ENCODERS[field_type](value)


def decode_value(field_type: FieldType, raw: Any, field: Optional[str] = None) -> Any:
    """
    Decode a single stored string back to a model value.

    Falls back to the raw string when the stored text does not parse for the
    declared type.
    """
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if raw is None or raw == "":
        return None
    try:
        return _DECODERS[field_type](raw)
    except (ValueError, TypeError):
        log.debug(
            "Stored value did not parse; returning raw string",
            extra={"field": field, "field_type": field_type.value, "raw_value": raw},
        )
        return raw


def encode_fields(schema: ModelSchema, values: Mapping[str, Any]) -> Dict[str, str]:
    """Encode a mapping of field values according to `schema`."""
    return {name: encode_value(schema.field_type(name), value) for name, value in values.items()}


def decode_fields(schema: ModelSchema, raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Decode a stored hash according to `schema`."""
    decoded: Dict[str, Any] = {}
    for name, value in raw.items():
        if isinstance(name, bytes):
            name = name.decode("utf-8")
        decoded[name] = decode_value(schema.field_type(name), value, field=name)
    return decoded


__all__ = ["encode_value", "decode_value", "encode_fields", "decode_fields"]
