# File: ormgen/defaults.py
"""
ormgen - Default-Value Normaliser
==================================
Turns the raw default reported by the database into an expression that is
valid inside a generated attribute block.

The decision tree is type- and dialect-coupled and is reproduced exactly:
boolean columns become ``true``/``false``, array literals become bracketed
lists, numeric and JSON defaults are emitted bare, well-known UUID
generators become ``DataTypes.UUIDV4``, zero-argument function calls are
wrapped in ``Sequelize.fn``, date keywords in ``Sequelize.literal``, and
everything else is a double-quoted string.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ormgen.type_mapper import (
    DATA_TYPES,
    is_array_type,
    is_json_type,
    is_number_type,
    is_string_type,
)
from ormgen.utils import js_literal

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.defaults")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SEQUELIZE_FN: str = "Sequelize.Sequelize.fn"
SEQUELIZE_LITERAL: str = "Sequelize.Sequelize.literal"
UUIDV4: str = f"{DATA_TYPES}.UUIDV4"

_MSSQL: str = "mssql"
_MSSQL_NULL_DEFAULTS: tuple = ("(NULL)", "NULL")

_BOOLEAN_COLUMN_TYPES: tuple = ("bit(1)", "bit", "boolean")
_UUID_GENERATORS: tuple = ("gen_random_uuid()", "uuid_generate_v4()")
_DATE_KEYWORDS: tuple = (
    "current_timestamp",
    "current_date",
    "current_time",
    "localtime",
    "localtimestamp",
)

# Order matters: backslashes first so later escapes are not doubled.
_ESCAPES: Dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "/": "\\/",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_special(value: Any) -> Any:
    """Escape characters that would break a double-quoted JS string."""
    if not isinstance(value, str):
        return value
    for char, escaped in _ESCAPES.items():
        value = value.replace(char, escaped)
    return value


def _strip_parens(value: str) -> str:
    return value.replace("(", "").replace(")", "")


def _quoted(value: str) -> str:
    return f'"{value}"'


def normalize_default(
    raw_default: Any,
    sql_type: str,
    dialect: str,
    is_serial_key: bool,
    element_type: Optional[str] = None,
) -> Optional[str]:
    """
    Return the default-value expression for a column, or None for no default.

    Args:
        raw_default: Default as reported by introspection (usually a string).
        sql_type: Raw SQL type of the column.
        dialect: Source dialect name.
        is_serial_key: True when the database generates the value.
        element_type: Element type for array columns.

    Examples:
        >>> normalize_default("CURRENT_TIMESTAMP", "timestamp", "mysql", False)
        "Sequelize.Sequelize.literal('CURRENT_TIMESTAMP')"
        >>> normalize_default("1", "boolean", "postgres", False)
        'true'
    """
    if dialect == _MSSQL:
        if isinstance(raw_default, str) and raw_default.lower() == "(newid())":
            raw_default = None
        elif raw_default in _MSSQL_NULL_DEFAULTS:
            raw_default = None

    if raw_default is None or is_serial_key:
        return None

    if not isinstance(raw_default, str):
        return js_literal(raw_default)

    field_type: str = sql_type.lower()
    value: str = escape_special(raw_default)

    if field_type in _BOOLEAN_COLUMN_TYPES:
        return "true" if ("1" in value or "true" in value.lower()) else "false"

    if is_array_type(field_type):
        inner: str = value
        if inner.startswith("{"):
            inner = inner[1:]
        if inner.endswith("}"):
            inner = inner[:-1]
        if inner and is_string_type(element_type):
            inner = ",".join(_quoted(s) for s in inner.split(","))
        return f"[{inner}]"

    if is_number_type(field_type) or is_json_type(field_type):
        return _strip_parens(value)

    if field_type == "uuid" and value in _UUID_GENERATORS:
        return UUIDV4

    if value.endswith("()") or value.endswith("())"):
        return f"{SEQUELIZE_FN}('{_strip_parens(value)}')"

    if field_type.startswith("date") or field_type.startswith("timestamp"):
        if value.lower() in _DATE_KEYWORDS:
            return f"{SEQUELIZE_LITERAL}('{value}')"
        return _quoted(value)

    return _quoted(value)


__all__: List[str] = [
    "SEQUELIZE_FN",
    "SEQUELIZE_LITERAL",
    "UUIDV4",
    "escape_special",
    "normalize_default",
]

logger.debug("ormgen.defaults loaded.")
