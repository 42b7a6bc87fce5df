"""
Dynamic query and stored procedure schemas
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Ad-hoc parametrized SELECT"""
    consulta: str = Field(..., description="SELECT statement using @name placeholders")
    parametros: Optional[Dict[str, Any]] = Field(default=None, description="Placeholder values")


class QueryResult(BaseModel):
    resultados: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    mensaje: Optional[str] = None


class StoredProcedureResult(BaseModel):
    procedimiento: Optional[str] = None
    resultados: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    mensaje: Optional[str] = None
