"""
Project Administration API - Main Application Entry Point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    DomainError,
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from app.core.logging import setup_logging
from app.core.security import hash_password
from app.db.session import SessionLocal, create_sqlite_tables
from app.models.role import Rol, RolUsuario
from app.models.route import Ruta, RutaRol
from app.models.user import Usuario
from app.services.route_service import AUDIT_ROUTE, USER_ADMIN_ROUTE

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)

ADMIN_ROLE = "Administrador"
ADMIN_ROUTES = {
    AUDIT_ROUTE: "Audit trail",
    USER_ADMIN_ROUTE: "User administration",
}


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
        if parsed.scheme.startswith("sqlite"):
            return url
        if parsed.password:
            netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(parsed._replace(netloc=netloc))
    except ValueError:
        return "***"
    return url


# Create FastAPI app
app = FastAPI(
    title="Project Administration API",
    description="Role-based administration of projects, budgets and deliverables",
    version=settings.VERSION or "1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(DomainError, domain_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# CRUD route shape is /api/{resource}, so routes are mounted without a version segment
app.include_router(api_router, prefix="/api")


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL at startup so the target database can be verified."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))
    create_sqlite_tables()


def bootstrap_admin(db) -> bool:
    """
    Create the administrator role, its routes and the initial admin user when
    no user exists yet. Returns True when something was created.
    """
    if db.query(Usuario).first() is not None:
        logger.info("Users already exist, skipping initial bootstrap")
        return False

    logger.info("No user found, creating initial admin setup...")

    admin_role = db.query(Rol).filter(Rol.nombre == ADMIN_ROLE).first()
    if not admin_role:
        admin_role = Rol(nombre=ADMIN_ROLE)
        db.add(admin_role)
        db.flush()

    for path, description in ADMIN_ROUTES.items():
        if not db.query(Ruta).filter(Ruta.ruta == path).first():
            db.add(Ruta(ruta=path, descripcion=description))
    db.flush()
    for path in ADMIN_ROUTES:
        if not db.query(RutaRol).filter(RutaRol.ruta == path, RutaRol.rol == ADMIN_ROLE).first():
            db.add(RutaRol(ruta=path, rol=ADMIN_ROLE))

    admin = Usuario(
        email=settings.INITIAL_ADMIN_EMAIL,
        contrasena=hash_password(settings.INITIAL_ADMIN_PASSWORD),
        activo=True,
    )
    db.add(admin)
    db.flush()
    db.add(RolUsuario(fkemail=admin.email, fkidrol=admin_role.id))
    db.commit()

    logger.info("Initial admin user created: %s", admin.email)
    logger.info("Password: [set via INITIAL_ADMIN_PASSWORD environment variable]")
    return True


@app.on_event("startup")
def bootstrap_initial_admin() -> None:
    """Ensure the system always has at least one administrator."""
    db = SessionLocal()
    try:
        bootstrap_admin(db)
    except OperationalError as e:
        db.rollback()
        # Tables might not exist yet on a fresh database
        if "no such table" in str(e).lower() or "does not exist" in str(e).lower():
            logger.warning("Database tables not ready yet, skipping initial bootstrap")
        else:
            logger.error("Database error during admin bootstrap: %s", e)
    finally:
        db.close()
