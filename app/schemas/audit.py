"""
Audit schemas
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class AuditRecord(BaseModel):
    """One audit entry; mirrors the auditoria table"""

    id: Optional[int] = None
    tabla_afectada: str
    accion: AuditAction
    registro_id: int = 0
    datos_anteriores: Optional[str] = None
    datos_nuevos: Optional[str] = None
    usuario_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    fecha_auditoria: datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
