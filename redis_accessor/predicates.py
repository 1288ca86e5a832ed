"""
Id extraction from where clauses.

Redis has no secondary indexes, so the only predicates the accessor can
answer are on the id itself:

- `{}` / `None`                       -> no filter (every record)
- `{"id": "0"}`                       -> `["0"]`
- `{"id": {"inq": ["0", "1"]}}`       -> `["0", "1"]`

Any other shape is unsupported. By default that resolves to an empty id list
(an empty result, not an error); with `strict=True` it raises
`UnsupportedPredicateError`.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from redis_accessor.errors import UnsupportedPredicateError

_SCALAR_TYPES = (str, int, float)


def _is_scalar(value: Any) -> bool:
    return isinstance(value, _SCALAR_TYPES) and not isinstance(value, bool)


def _unsupported(where: Mapping[str, Any], strict: bool) -> List[str]:
    if strict:
        raise UnsupportedPredicateError(f"Unsupported where clause: {where!r}")
    return []


def extract_ids(
    where: Optional[Mapping[str, Any]],
    id_field: str = "id",
    strict: bool = False,
) -> Optional[List[str]]:
    """
    Resolve a where clause to the ids it selects.

    Returns
    -------
    list[str] | None
        None when the clause is empty (select everything), otherwise the
        selected ids as strings, in order and without duplicates.
    """
    if not where:
        return None
    if set(where) != {id_field}:
        return _unsupported(where, strict)

    condition = where[id_field]
    if _is_scalar(condition):
        return [str(condition)]

    if isinstance(condition, Mapping) and set(condition) == {"inq"}:
        members = condition["inq"]
        if isinstance(members, (list, tuple, set, frozenset)) and all(
            _is_scalar(member) for member in members
        ):
            return list(dict.fromkeys(str(member) for member in members))

    return _unsupported(where, strict)


__all__ = ["extract_ids"]
