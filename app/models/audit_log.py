"""
Audit model

Append-only: rows are inserted by the audit recorder and never updated or deleted.
"""
from sqlalchemy import Column, BigInteger, Integer, String, Text, DateTime
from app.db.base import Base


class Auditoria(Base):
    __tablename__ = "auditoria"

    # BigInteger on real engines, INTEGER on SQLite so autoincrement keeps working
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    tabla_afectada = Column(String(100), nullable=False, index=True)
    accion = Column(String(10), nullable=False)  # CREATE, UPDATE, DELETE
    registro_id = Column(Integer, nullable=False, default=0, index=True)
    datos_anteriores = Column(Text, nullable=True)
    datos_nuevos = Column(Text, nullable=True)
    usuario_id = Column(String(150), nullable=True)
    ip_address = Column(String(50), nullable=True)
    user_agent = Column(String(500), nullable=True)
    fecha_auditoria = Column(DateTime, nullable=False, index=True)
