"""
Tests for the audit recorder, its repositories and the audit endpoint
"""
import json
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi import status

from app.models.project import Producto
from app.schemas.audit import AuditAction
from app.services.audit_service import (
    AuditContext,
    AuditRecorder,
    InMemoryAuditRepository,
    SqlAuditRepository,
    diff_entities,
    entity_table_name,
    extract_identifier,
)

CONTEXT = AuditContext(usuario_id="admin@correo.com", ip_address="10.0.0.1", user_agent="pytest")


@dataclass
class Cliente:
    Id: int
    Nombre: str


class Ticket:
    def __init__(self, number):
        self.number = number

    def identifier(self) -> int:
        return self.number


@pytest.fixture(params=["memory", "sql"])
def recorder(request, db):
    if request.param == "memory":
        return AuditRecorder(InMemoryAuditRepository())
    return AuditRecorder(SqlAuditRepository(db))


def test_record_update_keeps_before_and_after(recorder):
    record = recorder.record_update({"Id": 7, "Nombre": "A"}, {"Id": 7, "Nombre": "B"}, CONTEXT, table="cliente")

    assert record.accion == AuditAction.UPDATE.value
    assert record.registro_id == 7
    assert json.loads(record.datos_anteriores)["Nombre"] == "A"
    assert json.loads(record.datos_nuevos)["Nombre"] == "B"
    assert record.usuario_id == "admin@correo.com"
    assert record.ip_address == "10.0.0.1"


def test_create_has_no_previous_data_and_delete_no_new_data(recorder):
    created = recorder.record_create({"id": 1, "titulo": "X"}, CONTEXT, table="producto")
    deleted = recorder.record_delete({"id": 1, "titulo": "X"}, CONTEXT, table="producto")

    assert created.datos_anteriores is None and created.datos_nuevos is not None
    assert deleted.datos_nuevos is None and deleted.datos_anteriores is not None


def test_records_are_returned_newest_first(recorder):
    recorder.record_create({"id": 1}, CONTEXT, table="producto")
    recorder.record_update({"id": 1}, {"id": 1}, CONTEXT, table="producto")
    recorder.record_delete({"id": 1}, CONTEXT, table="producto")

    actions = [record.accion for record in recorder.query_audit("producto")]
    assert actions == ["DELETE", "UPDATE", "CREATE"]


def test_query_filters_by_table_and_time(recorder):
    recorder.record_create({"id": 1}, CONTEXT, table="producto")
    recorder.record_create({"id": 2}, CONTEXT, table="proyecto")

    assert [r.registro_id for r in recorder.query_audit("proyecto")] == [2]
    assert len(recorder.query_audit()) == 2
    future = datetime.utcnow() + timedelta(days=1)
    assert recorder.query_audit(since=future) == []


def test_orm_entity_uses_table_name_and_id(db):
    recorder = AuditRecorder(SqlAuditRepository(db))
    product = Producto(titulo="Portal")
    db.add(product)
    db.commit()

    record = recorder.record_create(product, CONTEXT)

    assert record.tabla_afectada == "producto"
    assert record.registro_id == product.id
    assert json.loads(record.datos_nuevos)["titulo"] == "Portal"


def test_extract_identifier():
    assert extract_identifier(Ticket(42)) == 42
    assert extract_identifier(Cliente(Id=5, Nombre="Ana")) == 5
    assert extract_identifier({"id": "9"}) == 9
    assert extract_identifier({"id": "abc"}) == 0
    assert extract_identifier({"nombre": "no id"}) == 0
    assert extract_identifier(object()) == 0


def test_entity_table_name():
    assert entity_table_name(Producto(titulo="x")) == "producto"
    assert entity_table_name(Cliente(Id=1, Nombre="x")) == "Cliente"


def test_diff_entities_lists_changed_fields():
    changes = diff_entities({"Nombre": "A", "Edad": 30}, {"Nombre": "B", "Edad": 30})

    assert changes == ["Nombre: 'A' -> 'B'"]


def test_repository_failure_is_swallowed():
    repository = MagicMock()
    repository.add.side_effect = RuntimeError("database is down")
    repository.query.side_effect = RuntimeError("database is down")
    recorder = AuditRecorder(repository)

    assert recorder.record_create({"id": 1}, CONTEXT, table="producto") is None
    assert recorder.query_audit() == []


def test_in_memory_ids_are_unique_under_concurrency():
    repository = InMemoryAuditRepository()
    recorder = AuditRecorder(repository)

    def work():
        for i in range(50):
            recorder.record_create({"id": i}, CONTEXT, table="producto")

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    ids = [record.id for record in repository.query()]
    assert len(ids) == 400
    assert len(set(ids)) == 400


def test_audit_endpoint_requires_route_grant(client, create_user, get_auth_token):
    create_user("plain@correo.com", "secret123", roles=["Vendedor"])
    token = get_auth_token("plain@correo.com", "secret123")

    response = client.get("/api/auditoria", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_audit_endpoint_lists_records(client, auth_headers):
    client.post("/api/producto", json={"titulo": "Audited"}, headers=auth_headers)

    response = client.get("/api/auditoria", params={"tabla": "producto"}, headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["estado"] == 200
    records = body["datos"]
    assert len(records) == 1
    assert records[0]["accion"] == "CREATE"
    assert records[0]["usuario_id"] == "admin@correo.com"


def test_audit_table_not_writable_through_table_api(client, auth_headers):
    response = client.post("/api/auditoria", json={"tabla_afectada": "x"}, headers=auth_headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN
