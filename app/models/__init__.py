"""
Database models
"""
from app.models.user import Usuario
from app.models.role import Rol, RolUsuario
from app.models.route import Ruta, RutaRol
from app.models.audit_log import Auditoria
from app.models.project import Proyecto, Producto, Entregable, Presupuesto

__all__ = [
    "Usuario",
    "Rol",
    "RolUsuario",
    "Ruta",
    "RutaRol",
    "Auditoria",
    "Proyecto",
    "Producto",
    "Entregable",
    "Presupuesto",
]
