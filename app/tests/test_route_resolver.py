"""
Tests for resolving a user's route grants
"""
from unittest.mock import MagicMock

import httpx
import pytest

from app.client.access_guard import check_access
from app.client.api_client import GenericApiClient
from app.client.errors import Forbidden, ServerError
from app.client.route_resolver import ROUTES_ENDPOINT, RouteResolver
from app.client.session_store import SessionStore
from app.core.config import settings
from app.schemas.route import RouteRole

ANA_GRANTS = [
    {"route": "/caja", "role": "Cajero"},
    {"route": "/cierre", "role": "Cajero"},
    {"route": "/clientes", "role": "Cajero"},
    {"route": "/clientes", "role": "Vendedor"},
    {"route": "/pedidos", "role": "Vendedor"},
]


@pytest.fixture
def fake_api():
    api = MagicMock()
    api.get.return_value = list(ANA_GRANTS)
    return api


@pytest.fixture
def ana_grants(create_user, grant_routes):
    """ana holds Vendedor and Cajero; Bodeguero belongs to someone else"""
    create_user("ana@correo.com", "secret123", roles=["Vendedor", "Cajero"])
    grant_routes([
        ("/clientes", "Vendedor"),
        ("/pedidos", "Vendedor"),
        ("/clientes", "Cajero"),
        ("/caja", "Cajero"),
        ("/cierre", "Cajero"),
        ("/productos", "Bodeguero"),
    ])


def test_asks_the_server_for_the_user(fake_api):
    RouteResolver(fake_api).resolve_routes("ana@correo.com")

    fake_api.get.assert_called_once_with(ROUTES_ENDPOINT, params={"email": "ana@correo.com"})


def test_keeps_one_entry_per_route_and_role(fake_api):
    fake_api.get.return_value = ANA_GRANTS + [{"route": "/caja", "role": "Cajero"}]

    resolved = RouteResolver(fake_api).resolve_routes("ana@correo.com")

    assert len(resolved) == 5
    assert RouteRole(route="/clientes", role="Vendedor") in resolved
    assert RouteRole(route="/clientes", role="Cajero") in resolved


def test_user_without_roles_gets_nothing(fake_api):
    fake_api.get.return_value = []

    assert RouteResolver(fake_api).resolve_routes("nobody@correo.com") == frozenset()


def test_resolved_routes_drive_access(fake_api):
    store = SessionStore()
    store.start("tok", "ana@correo.com")

    assert RouteResolver(fake_api).load_into(store, "ana@correo.com") is True

    assert check_access(store, "/clientes").allowed
    assert check_access(store, "/productos").redirect_to == "/home"


@pytest.mark.parametrize(
    "error",
    [
        ServerError(500, "Internal server error."),
        Forbidden(403, "Access denied. You do not have sufficient permissions."),
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
        ValueError("not json"),
    ],
)
def test_request_failure_yields_empty_set(fake_api, error):
    fake_api.get.side_effect = error

    assert RouteResolver(fake_api).resolve_routes("ana@correo.com") == frozenset()


def test_transport_failure_over_http_client_is_not_raised():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    store = SessionStore()
    store.start("tok", "ana@correo.com", [RouteRole(route="/old", role="Viejo")])
    http = httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler))
    resolver = RouteResolver(GenericApiClient(store, http_client=http))

    assert resolver.resolve_routes("ana@correo.com") == frozenset()
    assert resolver.load_into(store, "ana@correo.com") is False
    assert store.route_roles == frozenset()
    assert store.is_authenticated()


@pytest.mark.parametrize("body", [{"route": "/caja"}, "not a list", None])
def test_unexpected_body_yields_empty_set(fake_api, body):
    fake_api.get.return_value = body

    assert RouteResolver(fake_api).resolve_routes("ana@correo.com") == frozenset()


def test_malformed_rows_are_skipped(fake_api):
    fake_api.get.return_value = [{"route": "/caja", "role": "Cajero"}, {"path": "/x"}, "garbage", 7]

    resolved = RouteResolver(fake_api).resolve_routes("ana@correo.com")

    assert resolved == frozenset({RouteRole(route="/caja", role="Cajero")})


def test_failed_resolution_replaces_previous_grants(fake_api):
    store = SessionStore()
    store.start("tok", "ana@correo.com", [RouteRole(route="/old", role="Viejo")])
    fake_api.get.side_effect = ServerError(500, "Internal server error.")

    assert RouteResolver(fake_api).load_into(store, "ana@correo.com") is False

    assert store.route_roles == frozenset()
    assert store.is_authenticated()


def test_resolution_against_the_api(api_client, store, admin_token, ana_grants):
    store.start(admin_token, "admin@correo.com")

    resolved = RouteResolver(api_client).resolve_routes("ana@correo.com")

    assert len(resolved) == 5
    assert {pair.route for pair in resolved} == {"/clientes", "/pedidos", "/caja", "/cierre"}


def test_own_routes_resolve_without_admin_grant(api_client, store, ana_grants, get_auth_token):
    store.start(get_auth_token("ana@correo.com", "secret123"), "ana@correo.com")

    assert len(RouteResolver(api_client).resolve_routes("ana@correo.com")) == 5


def test_resolution_ignores_table_row_limit(api_client, store, create_user, grant_routes, get_auth_token, monkeypatch):
    for index in range(5):
        create_user(f"other{index}@correo.com", "secret123", roles=["Bodeguero"])
    create_user("ana@correo.com", "secret123", roles=["Vendedor"])
    grant_routes([("/productos", "Bodeguero"), ("/clientes", "Vendedor")])
    store.start(get_auth_token("ana@correo.com", "secret123"), "ana@correo.com")
    monkeypatch.setattr(settings, "DEFAULT_ROW_LIMIT", 3)

    # The table API is capped below the number of role assignments...
    assert len(api_client.get_all("rol_usuario")) == 3
    # ...but resolution still sees every role of the user
    resolved = RouteResolver(api_client).resolve_routes("ana@correo.com")

    assert resolved == frozenset({RouteRole(route="/clientes", role="Vendedor")})
