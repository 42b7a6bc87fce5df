"""
Dynamic query service - validation, parameter conversion and execution of
ad-hoc SELECT statements and stored procedures.

Validation is intentionally coarse: the statement must start with SELECT and
must not mention any deny-listed table as a substring. It does not parse SQL,
so it can reject harmless statements (a table name inside a longer identifier)
and miss aliased or obfuscated references. Database permissions remain the
real access boundary.
"""
import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app.core.errors import (
    ForbiddenTableError,
    InvalidParameterError,
    QueryValidationError,
)
from app.core.security import hash_if_needed

logger = logging.getLogger(__name__)

PARAMETER_NAME_PATTERN = re.compile(r"^@\w+$")
PROCEDURE_NAME_PATTERN = re.compile(r"^[A-Za-z_][\w]*(\.[A-Za-z_][\w]*)?$")

# Row cap used when a JSON request does not say otherwise
DEFAULT_JSON_QUERY_LIMIT = 10000


def check_sql(sql: Optional[str], forbidden_tables: Iterable[str]) -> None:
    """
    Raise when the statement is not an allowed ad-hoc query

    Raises:
        QueryValidationError: empty statement or a verb other than SELECT
        ForbiddenTableError: a deny-listed table name appears in the text
    """
    if sql is None or not sql.strip():
        raise QueryValidationError("The query cannot be empty.")

    if not sql.strip().upper().startswith("SELECT"):
        raise QueryValidationError("Only SELECT queries are allowed.")

    lowered = sql.lower()
    for table in forbidden_tables:
        if table and table.lower() in lowered:
            raise ForbiddenTableError(f"The query tries to access the forbidden table '{table}'.")


def validate_sql(sql: Optional[str], forbidden_tables: Iterable[str]) -> Tuple[bool, Optional[str]]:
    """Non-raising form of check_sql: (True, None) or (False, reason)"""
    try:
        check_sql(sql, forbidden_tables)
    except (QueryValidationError, ForbiddenTableError) as exc:
        return False, exc.message
    return True, None


def normalize_parameter_name(name: str) -> str:
    """Prefix with @ when missing and validate against ^@\\w+$"""
    normalized = name if name.startswith("@") else "@" + name
    if not PARAMETER_NAME_PATTERN.match(normalized):
        raise InvalidParameterError(f"Invalid parameter name: {normalized}")
    return normalized


def convert_value(value: Any) -> Any:
    """
    Turn a loosely-typed JSON value into the value bound to the statement

    str, bool and int pass through; a float that is an exact integer becomes
    int; None stays None (SQL NULL); lists and objects become JSON text and
    anything else its str().
    """
    if value is None:
        return None
    if isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


def convert_parameters(
    parameters: Optional[Dict[str, Any]],
    encrypt_fields: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """
    Convert a JSON parameter mapping into {"@name": value}

    String values whose name is listed in encrypt_fields (case-insensitive)
    are hashed here, before anything reaches the database layer. Empty values
    and values already in bcrypt form are left as they are.
    """
    converted: Dict[str, Any] = {}
    if not parameters:
        return converted

    marked = {field.strip().lstrip("@").lower() for field in (encrypt_fields or []) if field and field.strip()}

    for raw_name, raw_value in parameters.items():
        name = normalize_parameter_name(raw_name)
        value = convert_value(raw_value)
        if name[1:].lower() in marked and isinstance(value, str):
            value = hash_if_needed(value)
        converted[name] = value
    return converted


def parse_csv(value: Optional[str]) -> List[str]:
    """Split an ?encryptFields=a,b style marker into names"""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class QueryService:
    """Validates and runs ad-hoc SELECTs and stored procedures through a repository"""

    def __init__(self, repository, forbidden_tables: Iterable[str], max_rows: int = DEFAULT_JSON_QUERY_LIMIT):
        self.repository = repository
        self.forbidden_tables = list(forbidden_tables)
        self.max_rows = max_rows

    def validate(self, sql: Optional[str]) -> Tuple[bool, Optional[str]]:
        return validate_sql(sql, self.forbidden_tables)

    def execute_parametrized(
        self,
        sql: str,
        parameters: Dict[str, Any],
        limit: int,
        schema: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Run an already-converted parametrized SELECT, capped at min(limit, max_rows) rows"""
        check_sql(sql, self.forbidden_tables)
        row_cap = min(limit, self.max_rows) if limit and limit > 0 else self.max_rows
        logger.debug("Executing ad-hoc query with %d parameters (cap %d)", len(parameters), row_cap)
        return self.repository.execute_query(sql, parameters, row_cap, schema)

    def execute_parametrized_from_json(
        self,
        sql: str,
        parameters: Optional[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        converted = convert_parameters(parameters)
        return self.execute_parametrized(sql, converted, DEFAULT_JSON_QUERY_LIMIT, None)

    def execute_stored_procedure(
        self,
        name: str,
        parameters: Optional[Dict[str, Any]],
        encrypt_fields: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        if name is None or not name.strip():
            raise InvalidParameterError("The stored procedure name cannot be empty.")
        name = name.strip()
        if not PROCEDURE_NAME_PATTERN.match(name):
            raise InvalidParameterError(f"Invalid stored procedure name: {name}")

        converted = convert_parameters(parameters, encrypt_fields)
        logger.info("Executing stored procedure %s with %d parameters", name, len(converted))
        return self.repository.execute_stored_procedure(name, converted)

    def get_table_structure(self, table_name: str, schema: Optional[str] = None) -> List[Dict[str, Any]]:
        """Column layout of a table; deny-listed tables are refused like in queries"""
        if table_name and table_name.lower() in {table.lower() for table in self.forbidden_tables}:
            raise ForbiddenTableError(f"Access to table '{table_name}' is not allowed.")
        return self.repository.get_table_structure(table_name, schema)
