"""
Audit trail endpoint
"""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.deps import get_audit_recorder, require_route
from app.models.user import Usuario
from app.schemas.audit import AuditRecord
from app.schemas.envelope import Envelope, ok
from app.services.audit_service import AuditRecorder
from app.services.route_service import AUDIT_ROUTE

router = APIRouter()


@router.get("", response_model=Envelope[List[AuditRecord]])
async def list_audit_records(
    tabla: Optional[str] = Query(None, description="Only records for this table"),
    desde: Optional[datetime] = Query(None, description="Only records at or after this time"),
    hasta: Optional[datetime] = Query(None, description="Only records at or before this time"),
    recorder: AuditRecorder = Depends(get_audit_recorder),
    current_user: Usuario = Depends(require_route(AUDIT_ROUTE)),
):
    """
    Audit records, newest first, in the standard envelope (requires a role granted /auditoria)
    """
    return ok(recorder.query_audit(tabla, desde, hasta))
