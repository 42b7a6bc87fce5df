"""
User model

Users are never hard-deleted in practice; `activo` is the soft-disable switch.
"""
from sqlalchemy import Column, Integer, String, Boolean
from app.db.base import Base


class Usuario(Base):
    __tablename__ = "usuario"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(150), unique=True, nullable=False, index=True)
    contrasena = Column(String(255), nullable=False)  # bcrypt hash, never plain text
    ruta_avatar = Column(String, nullable=True)
    activo = Column(Boolean, nullable=False, default=True)
