"""
Role-route resolver

Fetches the (route, role) pairs a user may open. The join of rol_usuario,
rol and rutarol runs on the server (GET /api/auth/routes?email=), so the
result never depends on reading a row-limited table in full. Resolution
happens once per login; a role change on the server takes effect at the
next login.
"""
import logging
from typing import FrozenSet

import httpx

from app.client.api_client import GenericApiClient
from app.client.errors import ApiError
from app.client.session_store import SessionStore
from app.schemas.route import RouteRole

logger = logging.getLogger(__name__)

ROUTES_ENDPOINT = "/api/auth/routes"


class RouteResolver:
    def __init__(self, api_client: GenericApiClient):
        self.api = api_client

    def resolve_routes(self, email: str) -> FrozenSet[RouteRole]:
        """
        Union over the user's roles of the routes each grants, deduplicated
        by (route, role) value. Never raises: a failed request (HTTP status,
        transport or unreadable body) is logged and yields an empty set.
        """
        try:
            rows = self.api.get(ROUTES_ENDPOINT, params={"email": email})
        except (ApiError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not resolve routes for {email}: {e}")
            return frozenset()

        if not isinstance(rows, list):
            logger.warning(f"Unexpected route list for {email}: {type(rows).__name__}")
            return frozenset()

        resolved = set()
        for row in rows:
            try:
                resolved.add(RouteRole.model_validate(row))
            except ValueError as e:
                logger.warning(f"Skipping malformed route grant {row!r}: {e}")
        return frozenset(resolved)

    def load_into(self, store: SessionStore, email: str) -> bool:
        """Resolve and swap the result into the session store; False when nothing was granted"""
        resolved = self.resolve_routes(email)
        store.replace_route_roles(resolved)
        logger.info("Resolved %d route grants for %s", len(resolved), email)
        return bool(resolved)
