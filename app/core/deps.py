"""
Dependencies and guards for FastAPI endpoints
"""
from typing import Generator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import decode_token
from app.db.session import SessionLocal
from app.models.user import Usuario
from app.repositories.query_repository import QueryRepository
from app.repositories.table_repository import TableRepository
from app.services.audit_service import AuditContext, AuditRecorder, SqlAuditRepository
from app.services.query_service import QueryService
from app.services.route_service import SECURITY_TABLES, USER_ADMIN_ROUTE, user_can_access


security = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Usuario:
    """
    Get current authenticated user from the bearer token (sub = email)
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_token(credentials.credentials)
    except ValueError:
        raise _unauthorized("Invalid authentication credentials")

    email = payload.get("sub")
    if not email:
        raise _unauthorized("Invalid authentication credentials")

    user = db.query(Usuario).filter(Usuario.email == email).first()
    if user is None:
        raise _unauthorized("User not found")

    if not user.activo:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


def require_route(path: str):
    """
    Dependency factory for route-based access control

    Usage:
        @router.get("/auditoria")
        async def audit(user: Usuario = Depends(require_route("/auditoria"))):
            ...
    """
    def route_checker(current_user: Usuario = Depends(get_current_user), db: Session = Depends(get_db)) -> Usuario:
        if not user_can_access(db, current_user.email, path):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. None of your roles grants {path}"
            )
        return current_user
    return route_checker


def require_table_write(
    resource: str,
    current_user: Usuario = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Usuario:
    """
    Write guard for the generic table API

    Any authenticated user may write domain tables. Writing a security table
    (users, roles and their route grants) requires the user administration route.
    """
    if resource.lower() in SECURITY_TABLES and not user_can_access(db, current_user.email, USER_ADMIN_ROUTE):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Changing '{resource}' requires {USER_ADMIN_ROUTE}"
        )
    return current_user


def get_audit_context(request: Request, current_user: Usuario = Depends(get_current_user)) -> AuditContext:
    """Acting user, client IP and user agent of the current request"""
    return AuditContext(
        usuario_id=current_user.email,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_audit_recorder(db: Session = Depends(get_db)) -> AuditRecorder:
    return AuditRecorder(SqlAuditRepository(db))


def get_table_repository(db: Session = Depends(get_db)) -> TableRepository:
    return TableRepository(
        db,
        schema=settings.DEFAULT_SCHEMA,
        forbidden_tables=settings.get_forbidden_tables_list(),
    )


def get_query_service(db: Session = Depends(get_db)) -> QueryService:
    return QueryService(
        QueryRepository(db),
        forbidden_tables=settings.get_forbidden_tables_list(),
        max_rows=settings.MAX_QUERY_ROWS,
    )
