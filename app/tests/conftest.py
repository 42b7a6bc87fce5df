"""
Pytest configuration and fixtures
"""
import os

# Settings are read at import time; give the test run its own values
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "local")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine

from app.main import app
from app.db.base import Base
from app.core.deps import get_db
from app.core.security import hash_password
from app.client.api_client import GenericApiClient
from app.client.session_store import SessionStore

# Import all models to ensure they're registered with Base.metadata
from app.models import (  # noqa: F401
    Usuario,
    Rol,
    RolUsuario,
    Ruta,
    RutaRol,
    Auditoria,
    Proyecto,
    Producto,
    Entregable,
    Presupuesto,
)


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_user(db: Session, email: str, password: str, roles=(), active: bool = True) -> Usuario:
    user = Usuario(email=email, contrasena=hash_password(password), activo=active)
    db.add(user)
    db.flush()
    for role_name in roles:
        role = db.query(Rol).filter(Rol.nombre == role_name).first()
        if role is None:
            role = Rol(nombre=role_name)
            db.add(role)
            db.flush()
        db.add(RolUsuario(fkemail=email, fkidrol=role.id))
    db.commit()
    db.refresh(user)
    return user


def _grant_routes(db: Session, grants) -> None:
    for path, role_name in grants:
        if db.query(Rol).filter(Rol.nombre == role_name).first() is None:
            db.add(Rol(nombre=role_name))
        if db.get(Ruta, path) is None:
            db.add(Ruta(ruta=path, descripcion=f"Page {path}"))
        db.flush()
        db.add(RutaRol(ruta=path, rol=role_name))
    db.commit()


def _get_auth_token(client, email: str, password: str) -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


@pytest.fixture
def create_user(db: Session):
    """Create a user and assign it the named roles (roles are created when missing)"""
    def _create(email: str, password: str, roles=(), active: bool = True) -> Usuario:
        return _create_user(db, email, password, roles, active)
    return _create


@pytest.fixture
def grant_routes(db: Session):
    """Insert (route, role) pairs into the matrix, creating routes and roles when missing"""
    def _grant(grants) -> None:
        _grant_routes(db, grants)
    return _grant


@pytest.fixture
def get_auth_token(client):
    """Helper to get auth token"""
    def _login(email: str, password: str) -> str:
        return _get_auth_token(client, email, password)
    return _login


@pytest.fixture
def admin_user(db: Session) -> Usuario:
    user = _create_user(db, "admin@correo.com", "admin123", roles=["Administrador"])
    _grant_routes(db, [("/auditoria", "Administrador"), ("/usuarios", "Administrador")])
    return user


@pytest.fixture
def admin_token(client, admin_user) -> str:
    return _get_auth_token(client, "admin@correo.com", "admin123")


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def api_client(client, store) -> GenericApiClient:
    """CRUD client talking to the app in-process (TestClient is an httpx.Client)"""
    return GenericApiClient(store, http_client=client)
