"""
Access guard for page navigation

check_access decides; GuardedPage runs the decision exactly once per page
instance, on its first render.
"""
import logging
import string
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urlsplit

from app.client.session_store import SessionStore

logger = logging.getLogger(__name__)

LOGIN_ROUTE = "/login"
HOME_ROUTE = "/home"
PUBLIC_ROUTES = ("/", LOGIN_ROUTE, HOME_ROUTE)

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    redirect_to: Optional[str] = None


ALLOW = AccessDecision(True)


def normalize_path(path: str) -> str:
    """Absolute path without query string or fragment"""
    return urlsplit(path).path or "/"


def same_route(a: str, b: str) -> bool:
    """ASCII case-insensitive comparison; non-ASCII letters must match exactly"""
    return a.translate(_ASCII_LOWER) == b.translate(_ASCII_LOWER)


def check_access(store: SessionStore, path: str) -> AccessDecision:
    current = normalize_path(path)

    if same_route(current, LOGIN_ROUTE):
        return ALLOW

    if not store.is_authenticated():
        return AccessDecision(False, LOGIN_ROUTE)

    if any(same_route(current, public) for public in PUBLIC_ROUTES):
        return ALLOW

    if any(same_route(current, pair.route) for pair in store.route_roles):
        return ALLOW

    logger.info("Access to %s denied for %s", current, store.email)
    return AccessDecision(False, HOME_ROUTE)


class GuardedPage:
    """
    Base for pages that require authentication

    Subclasses override on_access_verified() to load their data. The check
    runs on the first render only; later re-renders of the same instance are
    not re-checked.
    """

    def __init__(self, store: SessionStore, navigate: Callable[[str], None], path: str):
        self.store = store
        self.navigate = navigate
        self.path = path
        self.access_verified = False
        self._checked = False

    def on_after_render(self, first_render: bool) -> None:
        if not first_render or self._checked:
            return
        self._checked = True
        try:
            decision = check_access(self.store, self.path)
        except Exception as e:
            logger.warning(f"Access check for {self.path} failed: {e}")
            self.navigate(LOGIN_ROUTE)
            return

        if not decision.allowed:
            self.navigate(decision.redirect_to)
            return

        self.access_verified = True
        self.on_access_verified()

    def on_access_verified(self) -> None:
        """Hook for subclasses; called once after access is granted"""
