"""
Standard response envelope: {"estado": int, "mensaje": str | None, "datos": T}
"""
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    estado: int
    mensaje: Optional[str] = None
    datos: Optional[T] = None


def ok(datos=None, mensaje: Optional[str] = None, estado: int = 200) -> dict:
    """Build a success envelope as a plain dict (rows may hold arbitrary column types)"""
    return {"estado": estado, "mensaje": mensaje, "datos": datos}
