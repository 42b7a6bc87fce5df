"""
JSON serializer utility for converting rows, entities and snapshots to JSON-safe values
"""
import dataclasses
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from uuid import UUID
from typing import Any, Dict, Mapping

from pydantic import BaseModel


def to_json_safe(value: Any) -> Any:
    """
    Recursively convert Python objects to JSON-safe values

    Decimals that hold whole numbers become int so amounts do not turn into
    12.0 style floats in responses.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, bytes):
        return value.hex()
    if isinstance(value, Mapping):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_safe(item) for item in value]
    if isinstance(value, BaseModel):
        return to_json_safe(value.model_dump())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_json_safe(dataclasses.asdict(value))
    mapped = entity_fields(value)
    if mapped is not None:
        return to_json_safe(mapped)
    return str(value)


def entity_fields(entity: Any) -> "Dict[str, Any] | None":
    """
    Field name -> value view of an entity

    Works for mappings, pydantic models, dataclasses and SQLAlchemy ORM
    instances; returns None for anything else.
    """
    if isinstance(entity, Mapping):
        return dict(entity)
    if isinstance(entity, BaseModel):
        return entity.model_dump()
    if dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        return dataclasses.asdict(entity)
    table = getattr(entity, "__table__", None)
    if table is not None:
        return {column.key: getattr(entity, column.key, None) for column in table.columns}
    return None


def to_pretty_json(value: Any) -> str:
    """Indented, human-readable JSON text (audit snapshots)"""
    return json.dumps(to_json_safe(value), indent=2, ensure_ascii=False)
