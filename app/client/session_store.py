"""
Credential/session store

Holds the bearer token, the user's email and the resolved route roles for one
browser-tab-like session. The three values are written and cleared together;
storage holding only some of them is treated as logged out.
"""
import json
import logging
from typing import Dict, Iterable, List, Optional, Protocol

from pydantic import ValidationError

from app.schemas.route import RouteRole

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
EMAIL_KEY = "email"
ROUTE_ROLES_KEY = "routeRoles"
SESSION_KEYS = (TOKEN_KEY, EMAIL_KEY, ROUTE_ROLES_KEY)


class SessionStorage(Protocol):
    """Tab-scoped string key/value storage"""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemorySessionStorage:
    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


def dump_route_roles(route_roles: Iterable[RouteRole]) -> str:
    ordered = sorted(set(route_roles), key=lambda pair: (pair.route.lower(), pair.role))
    return json.dumps([pair.model_dump() for pair in ordered])


def load_route_roles(raw: str) -> frozenset:
    return frozenset(RouteRole.model_validate(item) for item in json.loads(raw))


class SessionStore:
    def __init__(self, storage: Optional[SessionStorage] = None):
        self.storage = storage if storage is not None else MemorySessionStorage()
        self._route_roles: Optional[frozenset] = None

    def start(self, token: str, email: str, route_roles: Iterable[RouteRole] = ()) -> None:
        """Persist a new session; token and email are mandatory"""
        if not token or not token.strip():
            raise ValueError("The token cannot be empty")
        if not email or not email.strip():
            raise ValueError("The email cannot be empty")

        snapshot = frozenset(route_roles)
        self.storage.set_item(TOKEN_KEY, token)
        self.storage.set_item(EMAIL_KEY, email)
        self.storage.set_item(ROUTE_ROLES_KEY, dump_route_roles(snapshot))
        self._route_roles = snapshot

    def replace_route_roles(self, route_roles: Iterable[RouteRole]) -> None:
        """Swap in a freshly resolved set; readers see the old or the new set, never a mix"""
        snapshot = frozenset(route_roles)
        self.storage.set_item(ROUTE_ROLES_KEY, dump_route_roles(snapshot))
        self._route_roles = snapshot

    def clear(self) -> None:
        for key in SESSION_KEYS:
            self.storage.remove_item(key)
        self._route_roles = None

    def _complete(self) -> bool:
        present = [self.storage.get_item(key) for key in SESSION_KEYS]
        if all(present):
            return True
        if any(present):
            logger.warning("Incomplete session state found; clearing it")
            self.clear()
        return False

    @property
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY) if self._complete() else None

    @property
    def email(self) -> Optional[str]:
        return self.storage.get_item(EMAIL_KEY) if self._complete() else None

    @property
    def route_roles(self) -> frozenset:
        if not self._complete():
            return frozenset()
        if self._route_roles is None:
            try:
                self._route_roles = load_route_roles(self.storage.get_item(ROUTE_ROLES_KEY))
            except (ValueError, TypeError, ValidationError) as e:
                logger.warning(f"Stored route roles are unreadable: {e}")
                return frozenset()
        return self._route_roles

    def routes(self) -> List[str]:
        return sorted({pair.route for pair in self.route_roles})

    def is_authenticated(self) -> bool:
        return bool(self.token)
