"""
Main API router

Fixed endpoints are registered before the generic table routes so that
/api/{resource} never shadows them.
"""
from fastapi import APIRouter

from app.api.v1 import (
    health,
    version,
    auth,
    audit,
    queries,
    tables,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(audit.router, prefix="/auditoria", tags=["audit"])
api_router.include_router(queries.router, tags=["queries"])
api_router.include_router(tables.router, tags=["tables"])
