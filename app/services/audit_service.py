"""
Audit recording service

Recording is best-effort: a failed audit write is logged and swallowed, and
never undoes or fails the mutation it describes. Callers that need a
guaranteed trail must write the audit row in the same transaction instead.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Protocol, runtime_checkable

from sqlalchemy.orm import Session

from app.models.audit_log import Auditoria
from app.schemas.audit import AuditAction, AuditRecord
from app.utils.json_serializer import entity_fields, to_pretty_json

logger = logging.getLogger(__name__)


@runtime_checkable
class HasIdentifier(Protocol):
    """Entities that know their own numeric id"""

    def identifier(self) -> int:
        ...


@dataclass(frozen=True)
class AuditContext:
    """Who performed a mutation and from where"""
    usuario_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def extract_identifier(entity: Any) -> int:
    """
    Numeric id of an entity: identifier() when implemented, otherwise an
    "id"/"Id" field; 0 when absent or not numeric.
    """
    try:
        if isinstance(entity, HasIdentifier):
            return int(entity.identifier())
        fields = entity_fields(entity)
        if fields is None:
            fields = {name: getattr(entity, name) for name in ("id", "Id") if hasattr(entity, name)}
        for name in ("id", "Id", "ID"):
            if name in fields and fields[name] is not None:
                value = fields[name]
                if isinstance(value, bool):
                    return 0
                return int(value)
    except (TypeError, ValueError):
        return 0
    return 0


def entity_table_name(entity: Any) -> str:
    """Table an entity belongs to: __tablename__ for ORM models, class name otherwise"""
    return getattr(entity, "__tablename__", None) or type(entity).__name__


def diff_entities(before: Any, after: Any) -> List[str]:
    """Field-by-field changes as "name: 'old' -> 'new'" lines (string comparison)"""
    before_fields = entity_fields(before) or {}
    after_fields = entity_fields(after) or {}
    changes = []
    for name in list(dict.fromkeys([*before_fields, *after_fields])):
        old = before_fields.get(name)
        new = after_fields.get(name)
        old_text = None if old is None else str(old)
        new_text = None if new is None else str(new)
        if old_text != new_text:
            changes.append(f"{name}: '{old_text}' -> '{new_text}'")
    return changes


class AuditRepository(Protocol):
    def add(self, record: AuditRecord) -> AuditRecord:
        ...

    def query(
        self,
        table: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[AuditRecord]:
        ...


class SqlAuditRepository:
    """Audit rows in the auditoria table; each add is its own committed insert"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, record: AuditRecord) -> AuditRecord:
        row = Auditoria(**record.model_dump(exclude={"id"}))
        self.db.add(row)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(row)
        return AuditRecord.model_validate(row)

    def query(self, table=None, since=None, until=None) -> List[AuditRecord]:
        query = self.db.query(Auditoria)
        if table:
            query = query.filter(Auditoria.tabla_afectada == table)
        if since is not None:
            query = query.filter(Auditoria.fecha_auditoria >= since)
        if until is not None:
            query = query.filter(Auditoria.fecha_auditoria <= until)
        rows = query.order_by(Auditoria.fecha_auditoria.desc(), Auditoria.id.desc()).all()
        return [AuditRecord.model_validate(row) for row in rows]


class InMemoryAuditRepository:
    """Process-local audit list; history is lost on restart"""

    def __init__(self):
        self._records: List[AuditRecord] = []
        self._next_id = 1
        self._lock = threading.Lock()

    def add(self, record: AuditRecord) -> AuditRecord:
        with self._lock:
            stored = record.model_copy(update={"id": self._next_id})
            self._next_id += 1
            self._records.append(stored)
        return stored

    def query(self, table=None, since=None, until=None) -> List[AuditRecord]:
        with self._lock:
            records = list(self._records)
        if table:
            records = [r for r in records if r.tabla_afectada == table]
        if since is not None:
            records = [r for r in records if r.fecha_auditoria >= since]
        if until is not None:
            records = [r for r in records if r.fecha_auditoria <= until]
        return sorted(records, key=lambda r: (r.fecha_auditoria, r.id), reverse=True)


class AuditRecorder:
    """Records create/update/delete events with before/after snapshots"""

    def __init__(self, repository: AuditRepository):
        self.repository = repository

    def _record(
        self,
        action: AuditAction,
        table: str,
        entity_id: int,
        before: Any,
        after: Any,
        context: AuditContext,
    ) -> Optional[AuditRecord]:
        try:
            record = AuditRecord(
                tabla_afectada=table,
                accion=action,
                registro_id=entity_id,
                datos_anteriores=to_pretty_json(before) if before is not None else None,
                datos_nuevos=to_pretty_json(after) if after is not None else None,
                usuario_id=context.usuario_id,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                fecha_auditoria=datetime.utcnow(),
            )
            return self.repository.add(record)
        except Exception as e:
            logger.warning(f"Failed to record {action.value} audit for {table}: {e}")
            return None

    def record_create(
        self,
        entity: Any,
        context: AuditContext,
        table: Optional[str] = None,
    ) -> Optional[AuditRecord]:
        return self._record(
            AuditAction.CREATE,
            table or entity_table_name(entity),
            extract_identifier(entity),
            None,
            entity,
            context,
        )

    def record_update(
        self,
        before: Any,
        after: Any,
        context: AuditContext,
        table: Optional[str] = None,
    ) -> Optional[AuditRecord]:
        table = table or entity_table_name(after)
        try:
            changes = diff_entities(before, after)
            if changes:
                logger.info("Changes in %s: %s", table, "; ".join(changes))
            else:
                logger.info("Update on %s changed no fields", table)
        except Exception as e:
            logger.debug(f"Could not diff {table} snapshots: {e}")
        return self._record(
            AuditAction.UPDATE,
            table,
            extract_identifier(after),
            before,
            after,
            context,
        )

    def record_delete(
        self,
        entity: Any,
        context: AuditContext,
        table: Optional[str] = None,
    ) -> Optional[AuditRecord]:
        return self._record(
            AuditAction.DELETE,
            table or entity_table_name(entity),
            extract_identifier(entity),
            entity,
            None,
            context,
        )

    def query_audit(
        self,
        table: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[AuditRecord]:
        """Audit records, newest first; empty list when the store cannot be read"""
        try:
            return self.repository.query(table, since, until)
        except Exception as e:
            logger.warning(f"Failed to read audit records: {e}")
            return []
