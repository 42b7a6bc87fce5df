"""
Dynamic query, stored procedure and table structure endpoints
"""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from app.core.config import settings
from app.core.deps import get_current_user, get_query_service
from app.models.user import Usuario
from app.schemas.query import QueryRequest, QueryResult, StoredProcedureResult
from app.services.query_service import QueryService, parse_csv
from app.utils.json_serializer import to_json_safe

logger = logging.getLogger(__name__)

router = APIRouter()

PROCEDURE_NAME_KEY = "procedureName"


@router.post("/consultas/ejecutar", response_model=QueryResult)
async def execute_query(
    request: QueryRequest,
    service: QueryService = Depends(get_query_service),
    current_user: Usuario = Depends(get_current_user),
):
    """
    Run an ad-hoc parametrized SELECT (deny-listed tables rejected)
    """
    rows = service.execute_parametrized_from_json(request.consulta, request.parametros)
    return QueryResult(
        resultados=to_json_safe(rows),
        total=len(rows),
        mensaje="Query executed successfully.",
    )


@router.post("/procedures/execute", response_model=StoredProcedureResult)
async def execute_stored_procedure(
    payload: Dict[str, Any] = Body(..., description='{"procedureName": "...", ...parameters}'),
    encrypt_fields: Optional[str] = Query(
        None,
        alias="encryptFields",
        description="Comma-separated parameter names to hash before execution",
    ),
    service: QueryService = Depends(get_query_service),
    current_user: Usuario = Depends(get_current_user),
):
    """
    Execute a stored procedure; parameters are the remaining body fields
    """
    parameters = dict(payload)
    name = parameters.pop(PROCEDURE_NAME_KEY, None)
    if not isinstance(name, str) or not name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"'{PROCEDURE_NAME_KEY}' is required."
        )

    rows = service.execute_stored_procedure(name, parameters, parse_csv(encrypt_fields))
    logger.info("Stored procedure %s executed by %s (%d rows)", name, current_user.email, len(rows))
    return StoredProcedureResult(
        procedimiento=name,
        resultados=to_json_safe(rows),
        total=len(rows),
        mensaje="Stored procedure executed successfully.",
    )


@router.get("/estructuras/{tabla}")
async def table_structure(
    tabla: str,
    esquema: Optional[str] = Query(None, description="Schema; defaults to DEFAULT_SCHEMA"),
    service: QueryService = Depends(get_query_service),
    current_user: Usuario = Depends(get_current_user),
):
    """
    Column layout of a table (deny-listed tables rejected)
    """
    columns = service.get_table_structure(tabla, esquema or settings.DEFAULT_SCHEMA)
    return {"estado": 200, "mensaje": None, "datos": to_json_safe(columns)}
