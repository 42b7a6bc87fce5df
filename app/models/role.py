"""
Role and user-role assignment models
"""
from sqlalchemy import Column, Integer, String, ForeignKey
from app.db.base import Base


class Rol(Base):
    __tablename__ = "rol"

    id = Column(Integer, primary_key=True, index=True)
    nombre = Column(String(100), unique=True, nullable=False, index=True)


class RolUsuario(Base):
    """Many-to-many user x role; removed together with the user"""
    __tablename__ = "rol_usuario"

    fkemail = Column(
        String(150),
        ForeignKey("usuario.email", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
    fkidrol = Column(Integer, ForeignKey("rol.id"), primary_key=True)
