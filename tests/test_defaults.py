"""
tests/test_defaults.py
Unit tests for ormgen.defaults (default-value normaliser).
"""

from __future__ import annotations

import pytest

from ormgen.defaults import escape_special, normalize_default


class TestEscapeSpecial:

    def test_quotes_and_backslashes(self):
        assert escape_special('C:\\tmp "x"') == 'C:\\\\tmp \\"x\\"'

    def test_control_characters(self):
        assert escape_special("a\nb\tc\r") == "a\\nb\\tc\\r"

    def test_forward_slash(self):
        assert escape_special("a/b") == "a\\/b"

    def test_non_string_passthrough(self):
        assert escape_special(5) == 5


class TestAbsentDefaults:

    def test_none(self):
        assert normalize_default(None, "varchar(10)", "postgres", False) is None

    def test_serial_key_suppresses_default(self):
        assert (
            normalize_default("nextval('users_id_seq'::regclass)", "integer", "postgres", True)
            is None
        )

    @pytest.mark.parametrize("raw", ["(newid())", "(NEWID())", "(NULL)", "NULL"])
    def test_mssql_sentinels(self, raw: str):
        assert normalize_default(raw, "uniqueidentifier", "mssql", False) is None

    def test_sentinels_only_apply_to_mssql(self):
        assert normalize_default("NULL", "varchar(10)", "postgres", False) == '"NULL"'


class TestBooleanDefaults:

    @pytest.mark.parametrize(
        "raw,sql_type,expected",
        [
            ("1", "boolean", "true"),
            ("TRUE", "boolean", "true"),
            ("false", "boolean", "false"),
            ("b'1'", "bit(1)", "true"),
            ("b'0'", "bit(1)", "false"),
            ("0", "bit", "false"),
        ],
    )
    def test_boolean_literal(self, raw: str, sql_type: str, expected: str):
        assert normalize_default(raw, sql_type, "mysql", False) == expected


class TestArrayDefaults:

    def test_string_elements_are_quoted(self):
        assert normalize_default("{a,b}", "ARRAY", "postgres", False, "text") == '["a","b"]'

    def test_numeric_elements_are_bare(self):
        assert normalize_default("{1,2}", "ARRAY", "postgres", False, "integer") == "[1,2]"

    def test_empty_array(self):
        assert normalize_default("{}", "ARRAY", "postgres", False, "text") == "[]"


class TestBareDefaults:

    def test_number_strips_parentheses(self):
        assert normalize_default("((0))", "int", "mssql", False) == "0"
        assert normalize_default("1.5", "decimal(10,2)", "postgres", False) == "1.5"

    def test_json_is_bare(self):
        assert normalize_default("{}", "json", "mysql", False) == "{}"

    def test_non_string_default(self):
        assert normalize_default(5, "int", "sqlite", False) == "5"
        assert normalize_default(True, "boolean", "sqlite", False) == "true"


class TestGeneratedDefaults:

    @pytest.mark.parametrize("raw", ["gen_random_uuid()", "uuid_generate_v4()"])
    def test_uuid_generators(self, raw: str):
        assert normalize_default(raw, "uuid", "postgres", False) == "DataTypes.UUIDV4"

    def test_other_uuid_function(self):
        assert (
            normalize_default("my_uuid()", "uuid", "postgres", False)
            == "Sequelize.Sequelize.fn('my_uuid')"
        )

    def test_function_call(self):
        assert (
            normalize_default("now()", "timestamp with time zone", "postgres", False)
            == "Sequelize.Sequelize.fn('now')"
        )

    def test_wrapped_function_call(self):
        assert (
            normalize_default("(getdate())", "datetime", "mssql", False)
            == "Sequelize.Sequelize.fn('getdate')"
        )


class TestDateDefaults:

    @pytest.mark.parametrize(
        "raw,sql_type",
        [
            ("CURRENT_TIMESTAMP", "timestamp"),
            ("current_date", "date"),
            ("LOCALTIMESTAMP", "timestamp without time zone"),
        ],
    )
    def test_keywords_become_literals(self, raw: str, sql_type: str):
        assert (
            normalize_default(raw, sql_type, "postgres", False)
            == f"Sequelize.Sequelize.literal('{raw}')"
        )

    def test_other_dates_are_quoted(self):
        assert normalize_default("2020-01-01", "date", "mysql", False) == '"2020-01-01"'


class TestStringDefaults:

    def test_plain_string(self):
        assert normalize_default("reader", "varchar(10)", "postgres", False) == '"reader"'

    def test_string_is_escaped(self):
        assert (
            normalize_default('say "hi"', "varchar(20)", "mysql", False)
            == '"say \\"hi\\""'
        )

    def test_already_quoted_string(self):
        assert normalize_default("'abc'", "varchar(10)", "mysql", False) == "\"'abc'\""
