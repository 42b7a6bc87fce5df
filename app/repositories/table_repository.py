"""
Table repository - generic CRUD over any table, resolved by name through reflection
"""
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, MetaData, Table, select
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenTableError, InvalidParameterError, UnknownTableError
from app.repositories.query_repository import IDENTIFIER_PATTERN

logger = logging.getLogger(__name__)

TRUE_STRINGS = {"true", "1", "yes", "si", "sí"}
FALSE_STRINGS = {"false", "0", "no"}


def coerce_value(column: Column, value: Any) -> Any:
    """Convert a JSON or path value to the python type the column expects"""
    if value is None:
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    if isinstance(value, python_type) and not (python_type is int and isinstance(value, bool)):
        return value

    try:
        if python_type is bool:
            if isinstance(value, str):
                lowered = value.strip().lower()
                if lowered in TRUE_STRINGS:
                    return True
                if lowered in FALSE_STRINGS:
                    return False
                raise ValueError(value)
            return bool(value)
        if python_type is int:
            if isinstance(value, float) and not value.is_integer():
                raise ValueError(value)
            return int(value)
        if python_type is float:
            return float(value)
        if python_type is Decimal:
            return Decimal(str(value))
        if python_type is datetime:
            return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        if python_type is date:
            return date.fromisoformat(str(value)[:10])
        if python_type is str:
            return str(value)
    except (ValueError, TypeError, InvalidOperation):
        raise InvalidParameterError(
            f"Value '{value}' is not valid for column '{column.name}' ({python_type.__name__})."
        )
    return value


class TableRepository:
    """CRUD on reflected tables; deny-listed tables are never reachable"""

    def __init__(self, db: Session, schema: Optional[str] = None, forbidden_tables: Iterable[str] = ()):
        self.db = db
        self.schema = schema
        self.forbidden_tables = {table.lower() for table in forbidden_tables}

    def get_table(self, name: str) -> Table:
        if not IDENTIFIER_PATTERN.match(name or ""):
            raise InvalidParameterError(f"Invalid table name: {name}")
        if name.lower() in self.forbidden_tables:
            raise ForbiddenTableError(f"Access to table '{name}' is not allowed.")
        try:
            return Table(name, MetaData(), autoload_with=self.db.connection(), schema=self.schema)
        except NoSuchTableError:
            raise UnknownTableError(f"Table '{name}' does not exist.")

    @staticmethod
    def get_column(table: Table, name: str) -> Column:
        for column in table.columns:
            if column.name.lower() == name.lower():
                return column
        raise InvalidParameterError(f"Column '{name}' does not exist in table '{table.name}'.")

    def _values(self, table: Table, values: Dict[str, Any]) -> Dict[str, Any]:
        if not values:
            raise InvalidParameterError("No values were provided.")
        converted = {}
        for name, value in values.items():
            column = self.get_column(table, name)
            converted[column.name] = coerce_value(column, value)
        return converted

    def list_rows(self, name: str, limit: int) -> List[Dict[str, Any]]:
        table = self.get_table(name)
        result = self.db.execute(select(table).limit(limit))
        return [dict(row._mapping) for row in result]

    def get_row(self, name: str, key_field: str, key_value: Any) -> Optional[Dict[str, Any]]:
        table = self.get_table(name)
        column = self.get_column(table, key_field)
        row = self.db.execute(
            select(table).where(column == coerce_value(column, key_value))
        ).first()
        return dict(row._mapping) if row is not None else None

    def insert_row(self, name: str, values: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a row; returns the stored values including a generated primary key"""
        table = self.get_table(name)
        converted = self._values(table, values)

        # Generated integer keys are left to the database (clients send 0 or null for new rows)
        for column in table.primary_key.columns:
            if column.autoincrement in (True, "auto") and converted.get(column.name) in (None, 0):
                converted.pop(column.name, None)

        result = self.db.execute(table.insert().values(**converted))
        self.db.commit()

        stored = dict(converted)
        inserted_key = result.inserted_primary_key
        if inserted_key is not None:
            for column, key in zip(table.primary_key.columns, inserted_key):
                if key is not None:
                    stored[column.name] = key
        return stored

    def update_row(self, name: str, key_field: str, key_value: Any, values: Dict[str, Any]) -> int:
        """Replace the supplied columns of the matching rows; returns affected row count"""
        table = self.get_table(name)
        column = self.get_column(table, key_field)
        converted = self._values(table, values)
        result = self.db.execute(
            table.update().where(column == coerce_value(column, key_value)).values(**converted)
        )
        self.db.commit()
        return result.rowcount

    def delete_row(self, name: str, key_field: str, key_value: Any) -> int:
        table = self.get_table(name)
        column = self.get_column(table, key_field)
        result = self.db.execute(table.delete().where(column == coerce_value(column, key_value)))
        self.db.commit()
        return result.rowcount
