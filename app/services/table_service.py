"""
Table service - generic CRUD on named tables with server-side hashing and auditing
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException, status

from app.core.security import hash_if_needed
from app.repositories.table_repository import TableRepository
from app.services.audit_service import AuditContext, AuditRecorder

logger = logging.getLogger(__name__)


def hash_marked_fields(values: Dict[str, Any], encrypt_fields: Sequence[str]) -> Dict[str, Any]:
    """Copy of values with every encrypt-marked string field hashed (case-insensitive names)"""
    marked = {field.lower() for field in encrypt_fields}
    if not marked:
        return dict(values)
    hashed = {}
    for name, value in values.items():
        if name.lower() in marked and isinstance(value, str):
            value = hash_if_needed(value)
        hashed[name] = value
    return hashed


def hide_columns(row: Optional[Dict[str, Any]], hidden: Sequence[str]) -> Optional[Dict[str, Any]]:
    """Copy of a row without the hidden columns (case-insensitive names)"""
    if row is None:
        return None
    excluded = {column.lower() for column in hidden}
    return {name: value for name, value in row.items() if name.lower() not in excluded}


def _not_found(resource: str, key_field: str, key_value: Any) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"No row in '{resource}' with {key_field} = {key_value}",
    )


def list_records(repository: TableRepository, resource: str, limit: int) -> List[Dict[str, Any]]:
    return repository.list_rows(resource, limit)


def get_record(repository: TableRepository, resource: str, key_field: str, key_value: Any) -> Dict[str, Any]:
    row = repository.get_row(resource, key_field, key_value)
    if row is None:
        raise _not_found(resource, key_field, key_value)
    return row


def create_record(
    repository: TableRepository,
    recorder: AuditRecorder,
    context: AuditContext,
    resource: str,
    values: Dict[str, Any],
    encrypt_fields: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    stored = repository.insert_row(resource, hash_marked_fields(values, encrypt_fields or []))
    logger.info("Created row in %s by %s", resource, context.usuario_id)
    recorder.record_create(stored, context, table=resource)
    return stored


def update_record(
    repository: TableRepository,
    recorder: AuditRecorder,
    context: AuditContext,
    resource: str,
    key_field: str,
    key_value: Any,
    values: Dict[str, Any],
    encrypt_fields: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Full replace of the row identified by key_field = key_value"""
    before = get_record(repository, resource, key_field, key_value)
    repository.update_row(resource, key_field, key_value, hash_marked_fields(values, encrypt_fields or []))

    # The key itself may have been replaced; follow it
    new_key_value = key_value
    for name, value in values.items():
        if name.lower() == key_field.lower() and value is not None:
            new_key_value = value
    after = repository.get_row(resource, key_field, new_key_value)

    logger.info("Updated row in %s by %s", resource, context.usuario_id)
    recorder.record_update(before, after, context, table=resource)
    return after or {}


def delete_record(
    repository: TableRepository,
    recorder: AuditRecorder,
    context: AuditContext,
    resource: str,
    key_field: str,
    key_value: Any,
) -> Dict[str, Any]:
    before = get_record(repository, resource, key_field, key_value)
    deleted = repository.delete_row(resource, key_field, key_value)
    if not deleted:
        raise _not_found(resource, key_field, key_value)
    logger.info("Deleted row from %s by %s", resource, context.usuario_id)
    recorder.record_delete(before, context, table=resource)
    return before
