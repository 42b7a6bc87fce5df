"""
Route and route-role models

`rutarol` is the authorization matrix: which roles may open which route.
"""
from sqlalchemy import Column, String, ForeignKey
from app.db.base import Base


class Ruta(Base):
    __tablename__ = "ruta"

    ruta = Column(String(100), primary_key=True)
    descripcion = Column(String(255), nullable=False)


class RutaRol(Base):
    __tablename__ = "rutarol"

    ruta = Column(
        String(100),
        ForeignKey("ruta.ruta", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
    rol = Column(
        String(100),
        ForeignKey("rol.nombre", onupdate="CASCADE", ondelete="CASCADE"),
        primary_key=True,
    )
