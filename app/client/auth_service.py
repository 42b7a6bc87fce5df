"""
Client-side login/logout flow

login: credentials -> token -> session store -> route roles resolved once.
"""
import logging

from app.client.api_client import GenericApiClient
from app.client.route_resolver import RouteResolver
from app.client.session_store import SessionStore
from app.schemas.auth import LoginRequest, TokenResponse

logger = logging.getLogger(__name__)

LOGIN_ENDPOINT = "/api/auth/login"


class AuthService:
    def __init__(self, api_client: GenericApiClient, store: SessionStore, resolver: RouteResolver):
        self.api = api_client
        self.store = store
        self.resolver = resolver

    def login(self, email: str, password: str) -> TokenResponse:
        """
        Authenticate and open a session

        Raises the client ApiError subclasses (Unauthorized, Forbidden, ...)
        when the API rejects the credentials. Route resolution failures do not
        fail the login; the user just keeps public-route access.
        """
        self.store.clear()
        response = TokenResponse.model_validate(
            self.api.post(LOGIN_ENDPOINT, LoginRequest(email=email, password=password))
        )
        self.store.start(response.access_token, response.email)
        if not self.resolver.load_into(self.store, response.email):
            logger.info("No protected routes granted to %s", response.email)
        return response

    def logout(self) -> None:
        self.store.clear()

    def is_authenticated(self) -> bool:
        return self.store.is_authenticated()
