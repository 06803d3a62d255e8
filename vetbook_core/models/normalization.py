# =============================================================================
# vetbook_core/models/normalization.py
# Storage <-> Application Shape Translation
# =============================================================================
"""
Applied on every read from and every write to a record backend.

Reads:  to_application_shape(row, "pet")   -> {"birthDate": ..., "ownerId": ...}
Writes: to_storage_shape(record, "pet")    -> {"birth_date": ..., "owner_id": ...}
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .records import EntityShape, get_shape

Entity = Union[str, EntityShape]


def _normalize(shape: EntityShape, key: str, value: Any) -> Any:
    normalizer = shape.normalizers.get(key)
    if normalizer is None or value is None:
        return value
    return normalizer(value)


def _normalize_nested(value: Any, entity: str) -> Any:
    if isinstance(value, Mapping):
        return to_application_shape(value, entity)
    if isinstance(value, list) and all(isinstance(v, Mapping) for v in value):
        return [to_application_shape(v, entity) for v in value]
    return value


def to_application_shape(row: Optional[Mapping[str, Any]], entity: Entity) -> Optional[Dict[str, Any]]:
    """
    Translate a storage row into an application record.

    Every known application key is present in the result; missing values are
    None. A storage column wins over an application key carrying the same
    field. Unknown keys pass through, joined entities are normalized too.
    """
    if row is None:
        return None
    shape = get_shape(entity)
    nested = dict(shape.nested)
    consumed = set()
    record: Dict[str, Any] = {}

    for column, key in shape.fields:
        value = row[column] if column in row else row.get(key)
        consumed.update((column, key))
        record[key] = value

    for column, key in shape.read_aliases:
        value = row.get(column)
        # A mapping under an alias key is a joined entity, not a legacy value
        if column in nested and isinstance(value, Mapping):
            continue
        consumed.add(column)
        if record.get(key) is None and value is not None:
            record[key] = value

    for key, value in row.items():
        if key in consumed:
            continue
        record[key] = _normalize_nested(value, nested[key]) if key in nested else value

    for key in shape.application_keys:
        record[key] = _normalize(shape, key, record[key])

    return record


def to_storage_shape(record: Mapping[str, Any], entity: Entity) -> Dict[str, Any]:
    """
    Translate an application record (or partial update) into a storage payload.

    Only fields present in the request are emitted so a partial update leaves
    the other columns untouched. An application key wins over a storage column
    carrying the same field. Keys the entity does not know are dropped.
    """
    shape = get_shape(entity)
    payload: Dict[str, Any] = {}

    for column, key in shape.fields:
        if key in record:
            value = record[key]
        elif column in record:
            value = record[column]
        else:
            continue
        payload[column] = _normalize(shape, key, value)

    return payload


def to_application_records(rows: Optional[Iterable[Mapping[str, Any]]], entity: Entity) -> List[Dict[str, Any]]:
    """Normalize a sequence of rows; None becomes an empty list."""
    if not rows:
        return []
    return [to_application_shape(row, entity) for row in rows]
