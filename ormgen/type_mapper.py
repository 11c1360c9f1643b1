# File: ormgen/type_mapper.py
"""
ormgen - SQL Type Mapper
=========================
Translates raw, dialect-specific SQL type text into

    1. a Sequelize ``DataTypes`` expression for the attribute block, and
    2. a TypeScript type for the generated row / creation shapes.

Both translations are ordered rule tables evaluated top to bottom; the
first matching rule wins.  Several patterns overlap (``float`` also
matches ``float8``, ``int`` also matches ``interval``), so the order of the
tables is part of the contract and must not be rearranged.

The raw type is parsed once into a ``SqlType`` record; every rule
dispatches on that record.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from ormgen.models import ColumnInfo

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.type_mapper")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DATA_TYPES: str = "DataTypes"
STATIC_FALLBACK: str = "any"
JSON_STATIC_TYPE: str = "JSONValue"

_LENGTH_RE: re.Pattern[str] = re.compile(r"\(\d+\)")
_PRECISION_RE: re.Pattern[str] = re.compile(r"\(\d+,\d+\)")

_BOOLEAN_TYPES: Tuple[str, ...] = ("boolean", "bit(1)", "bit", "tinyint(1)")
_RANGE_TYPES: Dict[str, str] = {
    "numrange": "DECIMAL",
    "int4range": "INTEGER",
    "int8range": "BIGINT",
    "daterange": "DATEONLY",
    "tsrange": "DATE",
    "tstzrange": "DATE",
}
_UNBOUNDED_TEXT_TYPES: Tuple[str, ...] = ("nvarchar(max)", "varchar(max)")

_INTEGER_RE: re.Pattern[str] = re.compile(r"^(bigint|smallint|mediumint|tinyint|int)")
_VARCHAR_RE: re.Pattern[str] = re.compile(r"n?varchar|string|varying")
_CHAR_RE: re.Pattern[str] = re.compile(r"^n?char")
_TEXT_RE: re.Pattern[str] = re.compile(r"text$")
_DATETIME_RE: re.Pattern[str] = re.compile(r"^(date|timestamp)")
_FLOAT_RE: re.Pattern[str] = re.compile(r"^(float|float4)")
_DECIMAL_RE: re.Pattern[str] = re.compile(r"^(decimal|numeric)")
_DOUBLE_RE: re.Pattern[str] = re.compile(r"^(float8|double)")
_UUID_RE: re.Pattern[str] = re.compile(r"^uuid|uniqueidentifier")
_BLOB_RE: re.Pattern[str] = re.compile(r"binary|image|blob")
_ENUM_RE: re.Pattern[str] = re.compile(r"^enum(\(.*\))?$")

# Family predicates shared with the default-value normaliser
_NUMBER_FAMILY_RE: re.Pattern[str] = re.compile(
    r"^(smallint|mediumint|tinyint|int|bigint|float|money|smallmoney|double|decimal|numeric|real)"
)
_BOOLEAN_FAMILY_RE: re.Pattern[str] = re.compile(r"^(boolean|bit)")
_DATE_FAMILY_RE: re.Pattern[str] = re.compile(r"^(datetime|timestamp)")
_STRING_FAMILY_RE: re.Pattern[str] = re.compile(
    r"^(char|nchar|string|varying|varchar|nvarchar|text|longtext|mediumtext|tinytext"
    r"|ntext|uuid|uniqueidentifier|date|time)"
)
_ARRAY_FAMILY_RE: re.Pattern[str] = re.compile(r"(^array)|(range$)")


# ---------------------------------------------------------------------------
# Parsed type record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SqlType:
    """
    Raw SQL type text parsed once into the pieces the rules look at.

    ``length`` and ``precision`` keep their parentheses (``"(45)"``,
    ``"(10,2)"``) and are empty strings when the raw type carries none.
    """

    raw: str
    text: str
    length: str = ""
    precision: str = ""
    unsigned: bool = False
    zerofill: bool = False

    @classmethod
    def parse(cls, raw: str) -> "SqlType":
        text: str = raw.strip().lower()
        length_match: Optional[re.Match[str]] = _LENGTH_RE.search(text)
        precision_match: Optional[re.Match[str]] = _PRECISION_RE.search(text)
        return cls(
            raw=raw,
            text=text,
            length=length_match.group(0) if length_match else "",
            precision=precision_match.group(0) if precision_match else "",
            unsigned="unsigned" in text,
            zerofill="zerofill" in text,
        )


class _Context(NamedTuple):
    element_type: Optional[str]
    special: Optional[Sequence[str]]
    warnings: Optional[List[str]]


class TypeRule(NamedTuple):
    """One ``(predicate, producer)`` pair of an ordered rule table."""

    name: str
    matches: Callable[[SqlType], bool]
    produce: Callable[[SqlType, _Context], Optional[str]]


# ---------------------------------------------------------------------------
# Type-family predicates
# ---------------------------------------------------------------------------


def is_number_type(text: str) -> bool:
    return bool(_NUMBER_FAMILY_RE.match(text))


def is_boolean_type(text: str) -> bool:
    return bool(_BOOLEAN_FAMILY_RE.match(text))


def is_date_type(text: str) -> bool:
    return bool(_DATE_FAMILY_RE.match(text))


def is_string_type(text: Optional[str]) -> bool:
    return bool(text) and bool(_STRING_FAMILY_RE.match(text.lower()))


def is_array_type(text: str) -> bool:
    return bool(_ARRAY_FAMILY_RE.search(text))


def is_enum_type(text: str) -> bool:
    return text.startswith("enum")


def is_json_type(text: str) -> bool:
    return text.startswith("json")


# ---------------------------------------------------------------------------
# Enum values
# ---------------------------------------------------------------------------


def resolve_enum_values(raw_type: str, special: Optional[Sequence[str]] = None) -> List[str]:
    """
    Return enum members as ready-to-emit literals.

    An explicit value list (postgres) is double-quoted; otherwise the members
    are read out of a MySQL-style ``ENUM('a','b')`` type, keeping their quotes.
    """
    if special:
        return [f'"{v}"' for v in special]
    stripped: str = raw_type.strip()
    if not (stripped.lower().startswith("enum(") and stripped.endswith(")")):
        return []
    return [v.strip() for v in stripped[5:-1].split(",") if v.strip()]


# ---------------------------------------------------------------------------
# ORM (DataTypes) rule table
# ---------------------------------------------------------------------------


def _dt(name: str) -> str:
    return f"{DATA_TYPES}.{name}"


def _const(name: str) -> Callable[[SqlType, _Context], Optional[str]]:
    return lambda t, ctx: _dt(name)


def _with_length(name: str) -> Callable[[SqlType, _Context], Optional[str]]:
    return lambda t, ctx: _dt(name) + t.length


def _with_precision(name: str) -> Callable[[SqlType, _Context], Optional[str]]:
    return lambda t, ctx: _dt(name) + t.precision


def _integer(t: SqlType, ctx: _Context) -> Optional[str]:
    match: Optional[re.Match[str]] = _INTEGER_RE.match(t.text)
    if match is None:
        return None
    name: str = "INTEGER" if match.group(0) == "int" else match.group(0).upper()
    val: str = _dt(name)
    if t.unsigned:
        val += ".UNSIGNED"
    if t.zerofill:
        val += ".ZEROFILL"
    return val


def _spatial(name: str) -> Callable[[SqlType, _Context], Optional[str]]:
    def produce(t: SqlType, ctx: _Context) -> Optional[str]:
        if ctx.element_type:
            return f"{_dt(name)}('{ctx.element_type}')"
        return _dt(name)

    return produce


def _array(t: SqlType, ctx: _Context) -> Optional[str]:
    if not ctx.element_type:
        return _dt("ARRAY")
    element: Optional[str] = map_sql_type(ctx.element_type)
    if element is None:
        logger.warning("Unmapped array element type: %s", ctx.element_type)
        return _dt("ARRAY")
    return f"{_dt('ARRAY')}({element})"


def _enum(t: SqlType, ctx: _Context) -> Optional[str]:
    values: List[str] = resolve_enum_values(t.raw, ctx.special)
    return f"{_dt('ENUM')}({','.join(values)})"


ORM_TYPE_RULES: Tuple[TypeRule, ...] = (
    TypeRule("boolean", lambda t: t.text in _BOOLEAN_TYPES, _const("BOOLEAN")),
    TypeRule(
        "range",
        lambda t: t.text in _RANGE_TYPES,
        lambda t, ctx: f"{_dt('RANGE')}({_dt(_RANGE_TYPES[t.text])})",
    ),
    TypeRule("integer", lambda t: bool(_INTEGER_RE.match(t.text)), _integer),
    TypeRule("unbounded-text", lambda t: t.text in _UNBOUNDED_TEXT_TYPES, _const("TEXT")),
    TypeRule("varchar", lambda t: bool(_VARCHAR_RE.search(t.text)), _with_length("STRING")),
    TypeRule("char", lambda t: bool(_CHAR_RE.match(t.text)), _with_length("CHAR")),
    TypeRule("real", lambda t: t.text.startswith("real"), _const("REAL")),
    TypeRule("text", lambda t: bool(_TEXT_RE.search(t.text)), _with_length("TEXT")),
    TypeRule("date-only", lambda t: t.text == "date", _const("DATEONLY")),
    TypeRule("datetime", lambda t: bool(_DATETIME_RE.match(t.text)), _with_length("DATE")),
    TypeRule("time", lambda t: t.text.startswith("time"), _const("TIME")),
    TypeRule("float", lambda t: bool(_FLOAT_RE.match(t.text)), _with_precision("FLOAT")),
    TypeRule("decimal", lambda t: bool(_DECIMAL_RE.match(t.text)), _with_precision("DECIMAL")),
    TypeRule("money", lambda t: t.text.startswith("money"), _const("DECIMAL(19,4)")),
    TypeRule("smallmoney", lambda t: t.text.startswith("smallmoney"), _const("DECIMAL(10,4)")),
    TypeRule("double", lambda t: bool(_DOUBLE_RE.match(t.text)), _with_precision("DOUBLE")),
    TypeRule("uuid", lambda t: bool(_UUID_RE.search(t.text)), _const("UUID")),
    TypeRule("jsonb", lambda t: t.text.startswith("jsonb"), _const("JSONB")),
    TypeRule("json", lambda t: t.text.startswith("json"), _const("JSON")),
    TypeRule("geometry", lambda t: t.text.startswith("geometry"), _spatial("GEOMETRY")),
    TypeRule("geography", lambda t: t.text.startswith("geography"), _spatial("GEOGRAPHY")),
    TypeRule("array", lambda t: t.text.startswith("array"), _array),
    TypeRule("blob", lambda t: bool(_BLOB_RE.search(t.text)), _const("BLOB")),
    TypeRule("hstore", lambda t: t.text.startswith("hstore"), _const("HSTORE")),
    TypeRule("enum", lambda t: bool(_ENUM_RE.match(t.text)), _enum),
)


def map_sql_type(
    raw_type: str,
    element_type: Optional[str] = None,
    special: Optional[Sequence[str]] = None,
) -> Optional[str]:
    """
    Map raw SQL type text to a ``DataTypes`` expression.

    Returns None when no rule matches; the caller decides the fallback.

    Examples:
        >>> map_sql_type("varchar(45)")
        'DataTypes.STRING(45)'
        >>> map_sql_type("int(10) unsigned zerofill")
        'DataTypes.INTEGER.UNSIGNED.ZEROFILL'
    """
    parsed: SqlType = SqlType.parse(raw_type)
    ctx: _Context = _Context(element_type, special, None)
    for rule in ORM_TYPE_RULES:
        if rule.matches(parsed):
            return rule.produce(parsed, ctx)
    return None


# ---------------------------------------------------------------------------
# Static (TypeScript) rule table
# ---------------------------------------------------------------------------


def _static_array(t: SqlType, ctx: _Context) -> Optional[str]:
    if not ctx.element_type:
        return f"{STATIC_FALLBACK}[]"
    return map_static_type(ctx.element_type, warnings=ctx.warnings) + "[]"


def _static_enum(t: SqlType, ctx: _Context) -> Optional[str]:
    values: List[str] = resolve_enum_values(t.raw, ctx.special)
    return " | ".join(values) if values else "string"


STATIC_TYPE_RULES: Tuple[TypeRule, ...] = (
    TypeRule("array", lambda t: is_array_type(t.text), _static_array),
    TypeRule("tinyint-boolean", lambda t: t.text == "tinyint(1)", lambda t, ctx: "boolean"),
    TypeRule("number", lambda t: is_number_type(t.text), lambda t, ctx: "number"),
    TypeRule("boolean", lambda t: is_boolean_type(t.text), lambda t, ctx: "boolean"),
    TypeRule("date", lambda t: is_date_type(t.text), lambda t, ctx: "Date"),
    TypeRule("string", lambda t: is_string_type(t.text), lambda t, ctx: "string"),
    TypeRule("enum", lambda t: is_enum_type(t.text), _static_enum),
    TypeRule("json", lambda t: t.text in ("json", "jsonb"), lambda t, ctx: JSON_STATIC_TYPE),
)


def map_static_type(
    raw_type: str,
    element_type: Optional[str] = None,
    special: Optional[Sequence[str]] = None,
    warnings: Optional[List[str]] = None,
) -> str:
    """
    Map raw SQL type text to a TypeScript type.

    Unrecognised types fall back to ``any``; a warning naming the raw type is
    logged and, when *warnings* is given, appended to it.
    """
    parsed: SqlType = SqlType.parse(raw_type)
    ctx: _Context = _Context(element_type, special, warnings)
    for rule in STATIC_TYPE_RULES:
        if rule.matches(parsed):
            result: Optional[str] = rule.produce(parsed, ctx)
            if result is not None:
                return result

    message: str = f"Missing TypeScript type: {raw_type}"
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)
    return STATIC_FALLBACK


def map_column_type(column: ColumnInfo) -> Optional[str]:
    return map_sql_type(column.sql_type, column.element_type, column.special)


def map_column_static_type(
    column: ColumnInfo, warnings: Optional[List[str]] = None
) -> str:
    return map_static_type(
        column.sql_type, column.element_type, column.special, warnings=warnings
    )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "DATA_TYPES",
    "STATIC_FALLBACK",
    "JSON_STATIC_TYPE",
    "SqlType",
    "TypeRule",
    "ORM_TYPE_RULES",
    "STATIC_TYPE_RULES",
    "is_number_type",
    "is_boolean_type",
    "is_date_type",
    "is_string_type",
    "is_array_type",
    "is_enum_type",
    "is_json_type",
    "resolve_enum_values",
    "map_sql_type",
    "map_static_type",
    "map_column_type",
    "map_column_static_type",
]

logger.debug("ormgen.type_mapper loaded.")
