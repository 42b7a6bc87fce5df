"""
Tests for the CRUD client's HTTP handling
"""
import json

import httpx
import pytest

from app.client.api_client import GenericApiClient
from app.client.errors import (
    ApiError,
    BadRequest,
    Forbidden,
    NotFound,
    ServerError,
    Unauthorized,
    Unexpected,
    error_for_status,
)
from app.client.session_store import SessionStore


def make_client(handler, token=None):
    store = SessionStore()
    if token:
        store.start(token, "ana@correo.com")
    http = httpx.Client(base_url="http://api.test", transport=httpx.MockTransport(handler))
    return GenericApiClient(store, http_client=http)


@pytest.mark.parametrize(
    "status_code,error_class",
    [
        (400, BadRequest),
        (401, Unauthorized),
        (403, Forbidden),
        (404, NotFound),
        (500, ServerError),
        (409, Unexpected),
        (503, Unexpected),
    ],
)
def test_status_maps_to_error(status_code, error_class):
    client = make_client(lambda request: httpx.Response(status_code, json={"estado": status_code, "mensaje": "nope"}))

    with pytest.raises(error_class) as exc_info:
        client.get_all("producto")

    assert exc_info.value.status_code == status_code
    assert isinstance(exc_info.value, ApiError)


def test_bad_request_carries_server_message():
    client = make_client(lambda request: httpx.Response(400, json={"estado": 400, "mensaje": "Column 'x' does not exist"}))

    with pytest.raises(BadRequest) as exc_info:
        client.create("producto", {"x": 1})

    assert exc_info.value.detail == "Column 'x' does not exist"
    assert "Column 'x' does not exist" in exc_info.value.message


def test_plain_text_error_body_is_used_as_detail():
    client = make_client(lambda request: httpx.Response(502, text="Bad gateway"))

    with pytest.raises(Unexpected) as exc_info:
        client.get_all("producto")

    assert "502" in exc_info.value.message
    assert exc_info.value.detail == "Bad gateway"


def test_error_for_status_messages():
    assert error_for_status(401).message == "Unauthorized access. Check your credentials or the token."
    assert error_for_status(404).message == "Resource not found on the server."
    assert error_for_status(418, "teapot").message == "Unexpected error (418). teapot"


def test_bearer_header_sent_when_token_present():
    seen = []

    def handler(request):
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json={"estado": 200, "mensaje": None, "datos": []})

    make_client(handler, token="tok-1").get_all("producto")
    make_client(handler).get_all("producto")

    assert seen == ["Bearer tok-1", None]


def test_missing_datos_means_empty_list():
    client = make_client(lambda request: httpx.Response(200, json={"estado": 200, "mensaje": None}))

    assert client.get_all("producto") == []


def test_non_envelope_body_means_empty_list():
    client = make_client(lambda request: httpx.Response(200, json=[{"id": 1}]))

    assert client.get_all("producto") == []


def test_requests_target_resource_paths():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path, request.url.params.get("encryptFields")))
        return httpx.Response(200, json={"estado": 200, "mensaje": "ok", "datos": {}})

    client = make_client(handler, token="tok")
    client.get_by_key("usuario", "email", "a b@correo.com")
    client.create("usuario", {"email": "x"}, encrypt_fields=["contrasena", "pin"])
    client.update("usuario", "id", 3, {"email": "x"})
    client.delete("usuario", "id", 3)

    assert seen == [
        ("GET", "/api/usuario/email/a b@correo.com", None),
        ("POST", "/api/usuario", "contrasena,pin"),
        ("PUT", "/api/usuario/id/3", None),
        ("DELETE", "/api/usuario/id/3", None),
    ]


def test_stored_procedure_body_flattens_parameters():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"procedimiento": "crear_usuario", "resultados": [{"id": 1}], "total": 1, "mensaje": "ok"},
        )

    client = make_client(handler, token="tok")
    result = client.execute_stored_procedure("crear_usuario", {"email": "x", "contrasena": "y"})

    assert bodies == [{"procedureName": "crear_usuario", "email": "x", "contrasena": "y"}]
    assert result.total == 1
    assert result.resultados == [{"id": 1}]


def test_execute_query_returns_rows():
    def handler(request):
        assert json.loads(request.content) == {"consulta": "SELECT 1 AS uno", "parametros": None}
        return httpx.Response(200, json={"resultados": [{"uno": 1}], "total": 1, "mensaje": "ok"})

    assert make_client(handler, token="tok").execute_query("SELECT 1 AS uno") == [{"uno": 1}]


def test_get_sends_query_parameters():
    seen = []

    def handler(request):
        seen.append((request.url.path, request.url.params.get("email")))
        return httpx.Response(200, json=[])

    client = make_client(handler, token="tok")

    assert client.get("/api/auth/routes", params={"email": "ana@correo.com"}) == []
    assert seen == [("/api/auth/routes", "ana@correo.com")]


def test_transport_errors_propagate_from_requests():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler, token="tok")

    with pytest.raises(httpx.ConnectError):
        client.get_all("producto")
