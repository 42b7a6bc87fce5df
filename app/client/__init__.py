"""
Python client for the Project Administration API
"""
from app.client.access_guard import AccessDecision, GuardedPage, PUBLIC_ROUTES, check_access
from app.client.api_client import GenericApiClient
from app.client.auth_service import AuthService
from app.client.errors import (
    ApiError,
    BadRequest,
    Forbidden,
    NotFound,
    ServerError,
    Unauthorized,
    Unexpected,
)
from app.client.route_resolver import RouteResolver
from app.client.session_store import MemorySessionStorage, SessionStore

__all__ = [
    "AccessDecision",
    "GuardedPage",
    "PUBLIC_ROUTES",
    "check_access",
    "GenericApiClient",
    "AuthService",
    "ApiError",
    "BadRequest",
    "Forbidden",
    "NotFound",
    "ServerError",
    "Unauthorized",
    "Unexpected",
    "RouteResolver",
    "MemorySessionStorage",
    "SessionStore",
]
