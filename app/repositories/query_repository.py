"""
Query repository - runs dynamic SQL against whichever engine the session is bound to

Statements use SQL Server style @name placeholders; they are rewritten to
SQLAlchemy bind parameters before execution, so values are always bound and
never interpolated.
"""
import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import DBAPIError, NoSuchTableError
from sqlalchemy.orm import Session

from app.core.errors import DomainError, InvalidParameterError, UnknownTableError

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"(?<![@\w])@(\w+)")
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class UnsupportedDialectError(DomainError):
    """Operation has no equivalent on the connected database engine"""


def strip_at(name: str) -> str:
    return name[1:] if name.startswith("@") else name


def rows_to_dicts(result, max_rows: Optional[int] = None) -> List[Dict[str, Any]]:
    rows = result.fetchmany(max_rows) if max_rows else result.fetchall()
    return [dict(row._mapping) for row in rows]


class QueryRepository:
    def __init__(self, db: Session):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    def _bind_statement(self, sql: str, parameters: Dict[str, Any]):
        """Rewrite @name placeholders that have a value into :name binds"""
        binds = {strip_at(name): value for name, value in parameters.items()}
        by_lower = {name.lower(): name for name in binds}

        def replace(match: "re.Match[str]") -> str:
            bind_name = by_lower.get(match.group(1).lower())
            return f":{bind_name}" if bind_name else match.group(0)

        return text(PLACEHOLDER_PATTERN.sub(replace, sql)), binds

    def _use_schema(self, schema: Optional[str]) -> None:
        if not schema:
            return
        if not IDENTIFIER_PATTERN.match(schema):
            raise InvalidParameterError(f"Invalid schema name: {schema}")
        if self.dialect == "postgresql":
            self.db.execute(text(f'SET LOCAL search_path TO "{schema}"'))

    def execute_query(
        self,
        sql: str,
        parameters: Dict[str, Any],
        max_rows: int,
        schema: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Execute a parametrized SELECT and return at most max_rows rows"""
        self._use_schema(schema)
        statement, binds = self._bind_statement(sql, parameters)
        result = self.db.execute(statement, binds)
        rows = rows_to_dicts(result, max_rows)
        if schema:
            self.db.rollback()  # ends the transaction that holds SET LOCAL
        return rows

    def execute_stored_procedure(self, name: str, parameters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Invoke a stored procedure and return the rows it produces (possibly none)

        PostgreSQL: CALL name(...), falling back to SELECT * FROM name(...) for
        set-returning functions. SQL Server: EXEC name @p = :p, ...
        """
        binds = {strip_at(param): value for param, value in parameters.items()}
        dialect = self.dialect

        if dialect == "postgresql":
            placeholders = ", ".join(f":{param}" for param in binds)
            try:
                with self.db.begin_nested():
                    result = self.db.execute(text(f"CALL {name}({placeholders})"), binds)
                    rows = rows_to_dicts(result) if result.returns_rows else []
            except DBAPIError as exc:
                logger.info("CALL %s failed (%s); retrying as a function", name, exc.orig)
                result = self.db.execute(text(f"SELECT * FROM {name}({placeholders})"), binds)
                rows = rows_to_dicts(result)
        elif dialect == "mssql":
            assignments = ", ".join(f"@{param} = :{param}" for param in binds)
            result = self.db.execute(text(f"EXEC {name} {assignments}".rstrip()), binds)
            rows = rows_to_dicts(result) if result.returns_rows else []
        else:
            raise UnsupportedDialectError(f"Stored procedures are not supported on {dialect}.")

        self.db.commit()
        return rows

    def get_table_structure(self, table_name: str, schema: Optional[str] = None) -> List[Dict[str, Any]]:
        """Column layout of a table, in ordinal order"""
        if not IDENTIFIER_PATTERN.match(table_name):
            raise InvalidParameterError(f"Invalid table name: {table_name}")
        inspector = inspect(self.db.connection())
        try:
            columns = inspector.get_columns(table_name, schema=schema)
        except NoSuchTableError:
            raise UnknownTableError(f"Table '{table_name}' does not exist.")
        if not columns:
            raise UnknownTableError(f"Table '{table_name}' does not exist.")
        return [
            {
                "esquema": schema,
                "tabla": table_name,
                "columna": column["name"],
                "posicion": position,
                "tipo_dato": str(column["type"]),
                "es_nulo": bool(column.get("nullable", True)),
                "valor_por_defecto": column.get("default"),
            }
            for position, column in enumerate(columns, start=1)
        ]
