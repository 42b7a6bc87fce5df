"""
Route service - resolves which application routes a user's roles grant
"""
from typing import List, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.role import Rol, RolUsuario
from app.models.route import RutaRol
from app.schemas.route import RouteRole

AUDIT_ROUTE = "/auditoria"
USER_ADMIN_ROUTE = "/usuarios"

# Writing these tables changes who may do what; it takes the user administration route
SECURITY_TABLES = frozenset({"usuario", "rol", "rol_usuario", "ruta", "rutarol"})


def get_user_role_names(db: Session, email: str) -> Set[str]:
    """Names of every role assigned to the user (email compared case-insensitively)"""
    rows = (
        db.query(Rol.nombre)
        .join(RolUsuario, RolUsuario.fkidrol == Rol.id)
        .filter(func.lower(RolUsuario.fkemail) == email.lower())
        .all()
    )
    return {nombre for (nombre,) in rows}


def resolve_route_roles(db: Session, email: str) -> List[RouteRole]:
    """
    Union of the routes granted to each of the user's roles

    One entry per (route, role) pair: a route granted by two roles appears twice.
    """
    role_names = get_user_role_names(db, email)
    if not role_names:
        return []
    rows = db.query(RutaRol).filter(RutaRol.rol.in_(role_names)).all()
    pairs = {RouteRole(route=row.ruta, role=row.rol) for row in rows}
    return sorted(pairs, key=lambda pair: (pair.route.lower(), pair.role))


def user_can_access(db: Session, email: str, path: str) -> bool:
    """Case-insensitive exact match of path against the user's resolved routes"""
    wanted = path.lower()
    return any(pair.route.lower() == wanted for pair in resolve_route_roles(db, email))
