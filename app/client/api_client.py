"""
Generic CRUD client for the table API

Every call carries "Authorization: Bearer <token>" when the session store
holds a token. A missing token is not an error here; the server decides.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from app.client.errors import error_for_status
from app.client.session_store import SessionStore
from app.schemas.envelope import Envelope
from app.schemas.query import QueryResult, StoredProcedureResult
from app.utils.json_serializer import to_json_safe

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

PROCEDURE_ENDPOINT = "/api/procedures/execute"
QUERY_ENDPOINT = "/api/consultas/ejecutar"


def _payload(entity: Any) -> Dict[str, Any]:
    if isinstance(entity, BaseModel):
        return entity.model_dump(mode="json")
    return to_json_safe(entity)


def _encrypt_params(encrypt_fields: Optional[Sequence[str]]) -> Optional[Dict[str, str]]:
    if not encrypt_fields:
        return None
    if isinstance(encrypt_fields, str):
        return {"encryptFields": encrypt_fields}
    return {"encryptFields": ",".join(encrypt_fields)}


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


class GenericApiClient:
    def __init__(
        self,
        store: SessionStore,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.store = store
        if http_client is None:
            from app.core.config import settings
            http_client = httpx.Client(base_url=base_url or settings.API_BASE_URL)
        self.http = http_client

    def _headers(self) -> Dict[str, str]:
        token = self.store.token
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = self.http.request(method, url, headers=self._headers(), **kwargs)
        self._raise_for_error(response)
        return response

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
            detail = body.get("mensaje") if isinstance(body, dict) else None
            detail = "" if detail is None else str(detail)
        except ValueError:
            detail = response.text
        error = error_for_status(response.status_code, detail)
        logger.warning("%s %s -> %s", response.request.method, response.request.url, error.message)
        raise error

    @staticmethod
    def _data(response: httpx.Response) -> Any:
        """Unwrap {"estado", "mensaje", "datos"}; a missing body or datos is None"""
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        try:
            return Envelope[Any].model_validate(body).datos
        except ValidationError:
            logger.warning("Response is not a standard envelope; treating it as empty")
            return None

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request("GET", endpoint, params=params).json()

    def post(self, endpoint: str, payload: Any) -> Any:
        return self._request("POST", endpoint, json=_payload(payload)).json()

    def get_all(self, resource: str, model: Optional[Type[M]] = None) -> List[Any]:
        """All rows of a resource; never None"""
        response = self._request("GET", f"/api/{_segment(resource)}")
        rows = self._data(response) or []
        if model is not None:
            return [model.model_validate(row) for row in rows]
        return list(rows)

    def get_by_key(self, resource: str, key_field: str, key_value: Any, model: Optional[Type[M]] = None) -> Any:
        """One row by key; raises NotFound when the row does not exist"""
        response = self._request(
            "GET", f"/api/{_segment(resource)}/{_segment(key_field)}/{_segment(key_value)}"
        )
        row = self._data(response)
        if row is not None and model is not None:
            return model.model_validate(row)
        return row

    def create(self, resource: str, entity: Any, encrypt_fields: Optional[Sequence[str]] = None) -> str:
        """Insert a row; encrypt_fields are hashed by the server, never here"""
        self._request(
            "POST",
            f"/api/{_segment(resource)}",
            json=_payload(entity),
            params=_encrypt_params(encrypt_fields),
        )
        return "Record created successfully."

    def update(
        self,
        resource: str,
        key_field: str,
        key_value: Any,
        entity: Any,
        encrypt_fields: Optional[Sequence[str]] = None,
    ) -> str:
        """Full replace of a row (send every field, not a patch)"""
        self._request(
            "PUT",
            f"/api/{_segment(resource)}/{_segment(key_field)}/{_segment(key_value)}",
            json=_payload(entity),
            params=_encrypt_params(encrypt_fields),
        )
        return "Record updated successfully."

    def delete(self, resource: str, key_field: str, key_value: Any) -> str:
        self._request("DELETE", f"/api/{_segment(resource)}/{_segment(key_field)}/{_segment(key_value)}")
        return "Record deleted successfully."

    def execute_stored_procedure(
        self,
        name: str,
        params: Any = None,
        encrypt_fields: Optional[Sequence[str]] = None,
    ) -> StoredProcedureResult:
        """Run a stored procedure; parameters are flattened next to procedureName"""
        body: Dict[str, Any] = {"procedureName": name}
        if params is not None:
            body.update(_payload(params))
        response = self._request(
            "POST", PROCEDURE_ENDPOINT, json=body, params=_encrypt_params(encrypt_fields)
        )
        try:
            return StoredProcedureResult.model_validate(response.json())
        except ValueError:
            return StoredProcedureResult(procedimiento=name)

    def execute_query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        response = self._request(
            "POST", QUERY_ENDPOINT, json={"consulta": sql, "parametros": to_json_safe(params)}
        )
        return QueryResult.model_validate(response.json()).resultados

    def close(self) -> None:
        self.http.close()
