"""
Project management tables

These are served through the generic table API; the models exist so SQLite
test databases and local setups get the same tables the real schema has.
"""
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from app.db.base import Base


class Proyecto(Base):
    __tablename__ = "proyecto"

    id = Column(Integer, primary_key=True, index=True)
    id_proyecto_padre = Column(Integer, ForeignKey("proyecto.id"), nullable=True)
    codigo = Column(String(50), nullable=False, unique=True)
    titulo = Column(String(255), nullable=False)
    descripcion = Column(String, nullable=False, default="")
    fecha_inicio = Column(DateTime, nullable=True)
    fecha_fin_prevista = Column(DateTime, nullable=True)
    fecha_modificacion = Column(DateTime, nullable=True)
    fecha_finalizacion = Column(DateTime, nullable=True)
    ruta_logo = Column(String, nullable=True)


class Producto(Base):
    __tablename__ = "producto"

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(String(50), nullable=True)
    titulo = Column(String(255), nullable=False)
    descripcion = Column(String, nullable=True)
    fecha_inicio = Column(DateTime, nullable=True)
    fecha_fin_prevista = Column(DateTime, nullable=True)
    fecha_finalizacion = Column(DateTime, nullable=True)


class Entregable(Base):
    __tablename__ = "entregable"

    id = Column(Integer, primary_key=True, index=True)
    codigo = Column(String(50), nullable=False)
    titulo = Column(String(255), nullable=False)
    descripcion = Column(String, nullable=False, default="")
    fecha_inicio = Column(DateTime, nullable=True)
    fecha_fin_prevista = Column(DateTime, nullable=True)
    fecha_finalizacion = Column(DateTime, nullable=True)


class Presupuesto(Base):
    __tablename__ = "presupuesto"

    id = Column(Integer, primary_key=True, index=True)
    id_proyecto = Column(Integer, ForeignKey("proyecto.id"), nullable=False)
    monto_solicitado = Column(Numeric(18, 2), nullable=False)
    estado = Column(String(20), nullable=False, default="Pendiente")
    monto_aprobado = Column(Numeric(18, 2), nullable=True)
    periodo_anio = Column(Integer, nullable=True)
    fecha_solicitud = Column(DateTime, nullable=True)
    fecha_aprobacion = Column(DateTime, nullable=True)
    observaciones = Column(String, nullable=True)
