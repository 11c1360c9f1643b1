"""
tests/test_type_mapper.py
Unit tests for ormgen.type_mapper.

Tests cover:
- SqlType parsing (length, precision, unsigned / zerofill)
- Every ORM rule family, including precedence between overlapping prefixes
- Static (TypeScript) type rules and the ``any`` fallback diagnostic
- Enum value resolution
"""

from __future__ import annotations

import logging
from typing import List

import pytest

from ormgen.type_mapper import (
    SqlType,
    map_column_static_type,
    map_sql_type,
    map_static_type,
    resolve_enum_values,
)
from ormgen.models import ColumnInfo


# ===========================================================================
# SqlType
# ===========================================================================


class TestSqlTypeParse:

    def test_length_is_kept_with_parentheses(self):
        parsed = SqlType.parse("VARCHAR(45)")
        assert parsed.text == "varchar(45)"
        assert parsed.length == "(45)"
        assert parsed.precision == ""

    def test_precision_is_kept_with_parentheses(self):
        parsed = SqlType.parse("decimal(10,2)")
        assert parsed.precision == "(10,2)"
        assert parsed.length == ""

    def test_unsigned_zerofill_flags(self):
        parsed = SqlType.parse("int(10) UNSIGNED ZEROFILL")
        assert parsed.unsigned is True
        assert parsed.zerofill is True

    def test_raw_text_preserved(self):
        assert SqlType.parse("  Text ").raw == "  Text "


# ===========================================================================
# ORM rules
# ===========================================================================


class TestMapSqlType:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("boolean", "DataTypes.BOOLEAN"),
            ("bit(1)", "DataTypes.BOOLEAN"),
            ("tinyint(1)", "DataTypes.BOOLEAN"),
            ("int4range", "DataTypes.RANGE(DataTypes.INTEGER)"),
            ("tstzrange", "DataTypes.RANGE(DataTypes.DATE)"),
            ("integer", "DataTypes.INTEGER"),
            ("int(11)", "DataTypes.INTEGER"),
            ("bigint", "DataTypes.BIGINT"),
            ("smallint", "DataTypes.SMALLINT"),
            ("varchar(max)", "DataTypes.TEXT"),
            ("nvarchar(max)", "DataTypes.TEXT"),
            ("varchar(45)", "DataTypes.STRING(45)"),
            ("character varying(255)", "DataTypes.STRING(255)"),
            ("char(2)", "DataTypes.CHAR(2)"),
            ("real", "DataTypes.REAL"),
            ("text", "DataTypes.TEXT"),
            ("mediumtext", "DataTypes.TEXT"),
            ("date", "DataTypes.DATEONLY"),
            ("datetime", "DataTypes.DATE"),
            ("timestamp(6)", "DataTypes.DATE(6)"),
            ("timestamp with time zone", "DataTypes.DATE"),
            ("time", "DataTypes.TIME"),
            ("float", "DataTypes.FLOAT"),
            ("float(10,2)", "DataTypes.FLOAT(10,2)"),
            ("decimal(10,2)", "DataTypes.DECIMAL(10,2)"),
            ("numeric", "DataTypes.DECIMAL"),
            ("money", "DataTypes.DECIMAL(19,4)"),
            ("smallmoney", "DataTypes.DECIMAL(10,4)"),
            ("double precision", "DataTypes.DOUBLE"),
            ("uuid", "DataTypes.UUID"),
            ("uniqueidentifier", "DataTypes.UUID"),
            ("jsonb", "DataTypes.JSONB"),
            ("json", "DataTypes.JSON"),
            ("geometry", "DataTypes.GEOMETRY"),
            ("blob", "DataTypes.BLOB"),
            ("varbinary(16)", "DataTypes.BLOB"),
            ("hstore", "DataTypes.HSTORE"),
            ("enum('a','b')", "DataTypes.ENUM('a','b')"),
        ],
    )
    def test_documented_mappings(self, raw: str, expected: str):
        assert map_sql_type(raw) == expected

    def test_integer_unsigned_zerofill(self):
        assert (
            map_sql_type("int(10) unsigned zerofill")
            == "DataTypes.INTEGER.UNSIGNED.ZEROFILL"
        )
        assert map_sql_type("bigint unsigned") == "DataTypes.BIGINT.UNSIGNED"

    def test_float8_hits_float_rule_first(self):
        # Overlapping prefixes resolve by rule order, not by best match.
        assert map_sql_type("float8") == "DataTypes.FLOAT"

    def test_case_insensitive(self):
        assert map_sql_type("VARCHAR(45)") == map_sql_type("varchar(45)")

    def test_idempotent(self):
        assert map_sql_type("decimal(10,2)") == map_sql_type("decimal(10,2)")

    def test_spatial_with_element_type(self):
        assert map_sql_type("geometry", element_type="POINT") == "DataTypes.GEOMETRY('POINT')"
        assert map_sql_type("geography", element_type="POLYGON") == "DataTypes.GEOGRAPHY('POLYGON')"

    def test_array_with_element_type(self):
        assert map_sql_type("ARRAY", element_type="integer") == "DataTypes.ARRAY(DataTypes.INTEGER)"
        assert map_sql_type("array", element_type="varchar(20)") == "DataTypes.ARRAY(DataTypes.STRING(20))"

    def test_array_without_element_type(self):
        assert map_sql_type("ARRAY") == "DataTypes.ARRAY"

    def test_array_with_unmapped_element_type(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="ormgen.type_mapper"):
            assert map_sql_type("ARRAY", element_type="xml") == "DataTypes.ARRAY"
        assert "xml" in caplog.text

    def test_enum_with_special_values(self):
        assert (
            map_sql_type("ENUM", special=["a", "b", "c"])
            == 'DataTypes.ENUM("a","b","c")'
        )

    @pytest.mark.parametrize("raw", ["xml", "inet", "bytea", "tsvector"])
    def test_unrecognised_returns_none(self, raw: str):
        assert map_sql_type(raw) is None


# ===========================================================================
# Static rules
# ===========================================================================


class TestMapStaticType:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("varchar(45)", "string"),
            ("character varying", "string"),
            ("text", "string"),
            ("uuid", "string"),
            ("date", "string"),
            ("time", "string"),
            ("int", "number"),
            ("bigint", "number"),
            ("decimal(10,2)", "number"),
            ("double precision", "number"),
            ("real", "number"),
            ("money", "number"),
            ("tinyint(1)", "boolean"),
            ("boolean", "boolean"),
            ("bit", "boolean"),
            ("datetime", "Date"),
            ("timestamp with time zone", "Date"),
            ("json", "JSONValue"),
            ("jsonb", "JSONValue"),
        ],
    )
    def test_documented_mappings(self, raw: str, expected: str):
        assert map_static_type(raw) == expected

    def test_enum_with_special_values(self):
        assert map_static_type("ENUM", special=["a", "b", "c"]) == '"a" | "b" | "c"'

    def test_mysql_enum_values(self):
        assert map_static_type("enum('x','y')") == "'x' | 'y'"

    def test_enum_without_values_is_string(self):
        assert map_static_type("enum") == "string"

    def test_array_of_element(self):
        assert map_static_type("ARRAY", element_type="integer") == "number[]"
        assert map_static_type("ARRAY", element_type="text") == "string[]"

    def test_array_or_range_without_element(self):
        assert map_static_type("ARRAY") == "any[]"
        assert map_static_type("int4range") == "any[]"

    def test_unrecognised_falls_back_to_any(self, caplog: pytest.LogCaptureFixture):
        warnings: List[str] = []
        with caplog.at_level(logging.WARNING, logger="ormgen.type_mapper"):
            assert map_static_type("xml", warnings=warnings) == "any"
        assert warnings == ["Missing TypeScript type: xml"]
        assert "Missing TypeScript type: xml" in caplog.text

    def test_unrecognised_without_collector_does_not_raise(self):
        assert map_static_type("geometry") == "any"

    def test_column_helper(self):
        col = ColumnInfo(name="tags", type="ARRAY", elementType="varchar(10)")
        assert map_column_static_type(col) == "string[]"


# ===========================================================================
# Enum resolution
# ===========================================================================


class TestResolveEnumValues:

    def test_special_values_are_double_quoted(self):
        assert resolve_enum_values("USER-DEFINED", ["on", "off"]) == ['"on"', '"off"']

    def test_mysql_values_keep_quotes(self):
        assert resolve_enum_values("ENUM('a', 'b')") == ["'a'", "'b'"]

    def test_empty_members_are_dropped(self):
        assert resolve_enum_values("enum('a',,'b')") == ["'a'", "'b'"]

    def test_non_enum_text(self):
        assert resolve_enum_values("varchar(10)") == []
