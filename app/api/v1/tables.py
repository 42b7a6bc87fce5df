"""
Generic table endpoints

GET/POST /api/{resource}
GET/PUT/DELETE /api/{resource}/{key_field}/{key_value}

POST and PUT accept ?encryptFields=a,b naming fields the server hashes
before storing them. Columns listed in HIDDEN_COLUMNS are never returned.
Writes to the security tables need the user administration route.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query

from app.core.config import settings
from app.core.deps import (
    get_audit_context,
    get_audit_recorder,
    get_current_user,
    get_table_repository,
    require_table_write,
)
from app.models.user import Usuario
from app.repositories.table_repository import TableRepository
from app.schemas.envelope import ok
from app.services import table_service
from app.services.audit_service import AuditContext, AuditRecorder
from app.services.query_service import parse_csv
from app.utils.json_serializer import to_json_safe

router = APIRouter()


def _public(row):
    return to_json_safe(table_service.hide_columns(row, settings.get_hidden_columns_list()))


@router.get("/{resource}")
async def list_rows(
    resource: str,
    limite: Optional[int] = Query(None, ge=1, description="Maximum rows to return"),
    repository: TableRepository = Depends(get_table_repository),
    current_user: Usuario = Depends(get_current_user),
):
    limit = min(limite or settings.DEFAULT_ROW_LIMIT, settings.DEFAULT_ROW_LIMIT)
    rows = table_service.list_records(repository, resource, limit)
    return ok([_public(row) for row in rows])


@router.post("/{resource}")
async def create_row(
    resource: str,
    values: Dict[str, Any] = Body(...),
    encrypt_fields: Optional[str] = Query(None, alias="encryptFields"),
    repository: TableRepository = Depends(get_table_repository),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    context: AuditContext = Depends(get_audit_context),
    current_user: Usuario = Depends(require_table_write),
):
    stored = table_service.create_record(
        repository, recorder, context, resource, values, parse_csv(encrypt_fields)
    )
    return ok(_public(stored), "Record created successfully.")


@router.get("/{resource}/{key_field}/{key_value}")
async def get_row(
    resource: str,
    key_field: str,
    key_value: str,
    repository: TableRepository = Depends(get_table_repository),
    current_user: Usuario = Depends(get_current_user),
):
    row = table_service.get_record(repository, resource, key_field, key_value)
    return ok(_public(row))


@router.put("/{resource}/{key_field}/{key_value}")
async def update_row(
    resource: str,
    key_field: str,
    key_value: str,
    values: Dict[str, Any] = Body(...),
    encrypt_fields: Optional[str] = Query(None, alias="encryptFields"),
    repository: TableRepository = Depends(get_table_repository),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    context: AuditContext = Depends(get_audit_context),
    current_user: Usuario = Depends(require_table_write),
):
    updated = table_service.update_record(
        repository, recorder, context, resource, key_field, key_value, values, parse_csv(encrypt_fields)
    )
    return ok(_public(updated), "Record updated successfully.")


@router.delete("/{resource}/{key_field}/{key_value}")
async def delete_row(
    resource: str,
    key_field: str,
    key_value: str,
    repository: TableRepository = Depends(get_table_repository),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    context: AuditContext = Depends(get_audit_context),
    current_user: Usuario = Depends(require_table_write),
):
    table_service.delete_record(repository, recorder, context, resource, key_field, key_value)
    return ok(None, "Record deleted successfully.")
