"""
tests/test_templates.py
Unit tests for ormgen.templates module (TemplateGenerator).

Tests cover:
- Exact document layout for a small table
- The four output variants (header, opening, footer)
- Placeholder substitution and model-name casing
- Type declarations (row / creation shapes, JSON import, enum unions)
- Options block (schema, trigger, timestamps, paranoid, additional options)
- Associations and indexes inside the full document
- Non-fatal diagnostics for unmapped types
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

import pytest

from ormgen.dialects import MYSQL, POSTGRES
from ormgen.models import (
    DialectInfo,
    GenerationOptions,
    OutputLang,
    SchemaDefinition,
    TableInfo,
)
from ormgen.templates import (
    TABLE_PLACEHOLDER,
    UPPER_TABLE_PLACEHOLDER,
    ColumnScan,
    TableOutput,
    TemplateGenerator,
    generate_text,
    get_variant,
    scan_columns,
)


def _options(**data: Any) -> GenerationOptions:
    return GenerationOptions.model_validate(data)


def _generate(table: TableInfo, dialect: DialectInfo = POSTGRES, **options: Any) -> str:
    return TemplateGenerator(dialect, _options(**options)).generate_table(table).text


def _lines(text: str) -> List[str]:
    return text.split("\n")


@pytest.fixture()
def example_outputs(parsed_example) -> Dict[str, TableOutput]:
    schema, dialect, options = parsed_example
    return TemplateGenerator(dialect, options).generate_all(schema)


# ===========================================================================
# Document layout
# ===========================================================================


class TestDocumentLayout:

    def test_exact_factory_document(self, tags_table: TableInfo):
        expected: str = "\n".join([
            "import { DataTypes, Model } from 'sequelize';",
            "import { sequelize } from '../../infrastructure/db';",
            "",
            "export type TagsDB = {",
            "  id: number;",
            "  label: string;",
            "};",
            "",
            "export type TagsCreationDB = {",
            "  id?: number;",
            "  label: string;",
            "};",
            "",
            "export type TagsModel = Model<TagsDB, TagsCreationDB> & TagsDB;",
            "",
            "export const tagsModel = sequelize.define<TagsModel>('tags', {",
            "    id: {",
            "      type: DataTypes.INTEGER,",
            "      autoIncrement: true,",
            "      primaryKey: true,",
            "      allowNull: false",
            "    },",
            "    label: {",
            "      type: DataTypes.STRING(40),",
            "      allowNull: false",
            "    }",
            "  }, {",
            "    tableName: 'tags',",
            "    timestamps: false,",
            "    // eslint-disable-next-line",
            "    associate: models => {",
            "    }",
            "  });",
            "",
        ])
        assert _generate(tags_table) == expected

    def test_no_placeholders_survive(self, example_outputs: Dict[str, TableOutput]):
        for out in example_outputs.values():
            assert TABLE_PLACEHOLDER not in out.text
            assert UPPER_TABLE_PLACEHOLDER not in out.text
            assert "#SP#" not in out.text
            assert "#DBMODULE#" not in out.text

    def test_model_name_casing_and_singularize(self, tags_table: TableInfo):
        text: str = _generate(tags_table, caseModel="p", singularize=True)
        assert "export type TagDB = {" in text
        assert "export const TagModel = sequelize.define<TagModel>('Tag', {" in text
        assert "tableName: 'tags'," in text

    def test_property_casing(self):
        table = TableInfo.model_validate({
            "name": "accounts",
            "columns": [{"name": "owner_id", "type": "integer", "allowNull": False}],
        })
        text: str = _generate(table, caseProp="c")
        assert "  ownerId: number;" in text
        assert "    ownerId: {" in text
        assert "      field: 'owner_id'" in text

    def test_tab_indentation(self, tags_table: TableInfo):
        lines: List[str] = _lines(_generate(tags_table, indentation=1, spaces=False))
        assert "\tid: number;" in lines
        assert "\t\tid: {" in lines
        assert "\t\t\ttype: DataTypes.INTEGER," in lines
        assert "\t}, {" in lines
        assert "\t});" in lines

    def test_wider_indentation(self, tags_table: TableInfo):
        lines: List[str] = _lines(_generate(tags_table, indentation=4))
        assert "        id: {" in lines
        assert "            type: DataTypes.INTEGER," in lines


# ===========================================================================
# Output variants
# ===========================================================================


class TestVariants:

    def test_typed_header(self, tags_table: TableInfo):
        lines: List[str] = _lines(_generate(tags_table, lang="ts", dbModule="@/db"))
        assert lines[:4] == [
            "import * as Sequelize from 'sequelize';",
            "import { DataTypes, Model, Optional } from 'sequelize';",
            "import { sequelize } from '@/db';",
            "",
        ]

    def test_commonjs_class_variant(self, tags_table: TableInfo):
        text: str = _generate(tags_table, lang="es6")
        lines: List[str] = _lines(text)
        assert lines[:4] == [
            "const Sequelize = require('sequelize');",
            "module.exports = (sequelize, DataTypes) => {",
            "  return tags.init(sequelize, DataTypes);",
            "}",
        ]
        assert "class tags extends Sequelize.Model {" in lines
        assert "  static init(sequelize, DataTypes) {" in lines
        assert "  super.init({" in lines
        assert text.endswith("  });\n  return tags;\n  }\n}\n")

    def test_module_class_variant(self, tags_table: TableInfo):
        text: str = _generate(tags_table, lang="esm")
        assert text.startswith(
            "import _sequelize from 'sequelize';\nconst { Model, Sequelize } = _sequelize;\n"
        )
        assert "export default class tags extends Model {" in text
        assert text.endswith("  return tags;\n  }\n}\n")

    def test_factory_variants_have_no_footer(self, tags_table: TableInfo):
        for lang in ("es5", "ts"):
            assert _generate(tags_table, lang=lang).endswith("  });\n")

    def test_get_variant_accepts_enum(self):
        assert get_variant(OutputLang.ESM).lang == "esm"
        assert get_variant("es6").class_based is True
        assert get_variant("es5").class_based is False

    def test_get_variant_unknown(self):
        with pytest.raises(ValueError, match="Unknown output language"):
            get_variant("coffee")


# ===========================================================================
# Type declarations & column scan
# ===========================================================================


class TestTypeDeclarations:

    def test_example_users_shapes(self, example_outputs: Dict[str, TableOutput]):
        lines: List[str] = _lines(example_outputs["public.users"].text)
        assert "import { context } from '../../services/context/context';" in lines
        assert "import { JSONValue } from './types';" in lines
        assert '  role: "admin" | "author" | "reader";' in lines
        assert '  role?: "admin" | "author" | "reader";' in lines
        assert "  settings: JSONValue;" in lines
        assert "  createdAt: Date;" in lines
        assert "  createdAt?: Date | string;" in lines
        assert "  updatedAt?: Date | string;" in lines
        assert "  email: string;" in lines

    def test_tables_without_json_or_timestamps_skip_imports(
        self, example_outputs: Dict[str, TableOutput]
    ):
        text: str = example_outputs["public.tags"].text
        assert "./types" not in text
        assert "context" not in text

    def test_array_static_type(self, example_outputs: Dict[str, TableOutput]):
        assert "  tags_cache?: string[];" in _lines(example_outputs["public.posts"].text)

    def test_scan_columns(self, example_schema: SchemaDefinition):
        users: TableInfo = example_schema.get_table("public.users")
        static_types: Dict[str, str] = {c.name: "any" for c in users.columns}
        static_types["settings"] = "JSONValue"
        scan: ColumnScan = scan_columns(users.columns, {}, static_types)
        assert scan == ColumnScan(
            has_timestamp_field=True,
            has_paranoid_field=False,
            has_created_field=True,
            has_updated_field=True,
            uses_json=True,
        )

    def test_scan_columns_respects_disabled_timestamps(self, example_schema: SchemaDefinition):
        users: TableInfo = example_schema.get_table("public.users")
        static_types: Dict[str, str] = {c.name: "any" for c in users.columns}
        scan: ColumnScan = scan_columns(users.columns, {"timestamps": False}, static_types)
        assert scan.has_timestamp_field is False
        assert scan.uses_json is False


# ===========================================================================
# Options block
# ===========================================================================


class TestOptionsBlock:

    def test_example_users_options(self, example_outputs: Dict[str, TableOutput]):
        lines: List[str] = _lines(example_outputs["public.users"].text)
        start: int = lines.index("  }, {")
        assert lines[start + 1:start + 4] == [
            "    tableName: 'users',",
            "    schema: 'public',",
            "    timestamps: true,",
        ]
        assert "    updatedAt: false," not in lines
        assert "    createdAt: false," not in lines

    def test_paranoid_table(self, example_outputs: Dict[str, TableOutput]):
        lines: List[str] = _lines(example_outputs["public.posts"].text)
        assert "    paranoid: true," in lines
        assert "    timestamps: false," in lines

    def test_schema_needs_dialect_support(self, example_schema: SchemaDefinition):
        users: TableInfo = example_schema.get_table("public.users")
        assert "schema: 'public'" not in _generate(users, MYSQL)

    def test_schema_override(self, tags_table: TableInfo):
        assert "    schema: 'audit'," in _lines(_generate(tags_table, schema="audit"))

    def test_trigger_flag(self, tags_table: TableInfo):
        table: TableInfo = tags_table.model_copy(update={"has_trigger": True})
        lines: List[str] = _lines(_generate(table))
        assert lines[lines.index("    tableName: 'tags',") + 1] == "    hasTrigger: true,"

    def test_forced_timestamps_suppress_missing_columns(self, tags_table: TableInfo):
        lines: List[str] = _lines(_generate(tags_table, additional={"timestamps": True}))
        start: int = lines.index("    tableName: 'tags',")
        assert lines[start + 1:start + 4] == [
            "    timestamps: true,",
            "    updatedAt: false,",
            "    createdAt: false,",
        ]

    def test_renamed_timestamp_is_not_suppressed(self, tags_table: TableInfo):
        lines: List[str] = _lines(
            _generate(tags_table, additional={"timestamps": True, "createdAt": "created_on"})
        )
        assert "    updatedAt: false," in lines
        assert "    createdAt: false," not in lines
        assert "    createdAt: 'created_on'," in lines

    def test_forced_paranoid(self, tags_table: TableInfo):
        assert "    paranoid: true," in _lines(_generate(tags_table, additional={"paranoid": True}))

    def test_additional_options_in_order(self, tags_table: TableInfo):
        additional: Dict[str, Any] = {"name": True, "freezeTableName": True, "comment": "lookup"}
        lines: List[str] = _lines(_generate(tags_table, additional=additional))
        start: int = lines.index("    timestamps: false,")
        assert lines[start + 1:start + 7] == [
            "    name: {",
            "      singular: 'tags',",
            "      plural: 'tags'",
            "    },",
            "    freezeTableName: true,",
            "    comment: 'lookup',",
        ]


# ===========================================================================
# Associations, indexes & diagnostics in context
# ===========================================================================


class TestFullDocuments:

    def test_many_to_many_emitted_once_on_parent(self, example_outputs: Dict[str, TableOutput]):
        assert example_outputs["public.posts"].text.count("belongsToMany") == 1
        assert "belongsTo(models.users" in example_outputs["public.posts"].text
        assert "belongsTo" not in example_outputs["public.tags"].text
        assert "(autogenerated)" not in example_outputs["public.post_tags"].text

    def test_indexes_close_the_options(self, example_outputs: Dict[str, TableOutput]):
        lines: List[str] = _lines(example_outputs["public.users"].text)
        assert lines[-4:] == ["      },", "    ]", "  });", ""]

    def test_uuid_default(self, example_outputs: Dict[str, TableOutput]):
        assert "      defaultValue: DataTypes.UUIDV4" in _lines(
            example_outputs["public.posts"].text
        )

    def test_unmapped_type_warnings(self):
        table = TableInfo.model_validate({
            "name": "docs",
            "columns": [
                {"name": "id", "type": "integer", "primaryKey": True},
                {"name": "body", "type": "xml"},
            ],
        })
        out: TableOutput = TemplateGenerator(POSTGRES, GenerationOptions()).generate_table(table)
        assert out.warnings == ["Missing TypeScript type: xml"]
        assert '      type: "xml",' in _lines(out.text)
        assert "  body: any;" in _lines(out.text)

    def test_generation_is_independent_of_order(self, parsed_example):
        schema, dialect, options = parsed_example
        engine = TemplateGenerator(dialect, options)
        forward: List[Tuple[str, str]] = [
            (t.name, engine.generate_table(t, schema.relations).text) for t in schema.tables
        ]
        backward: List[Tuple[str, str]] = [
            (t.name, engine.generate_table(t, schema.relations).text)
            for t in reversed(schema.tables)
        ]
        assert dict(forward) == dict(backward)

    def test_generate_text_keys(self, parsed_example):
        schema, dialect, options = parsed_example
        texts: Dict[str, str] = generate_text(schema, dialect, options)
        assert list(texts) == [
            "public.users",
            "public.posts",
            "public.tags",
            "public.post_tags",
        ]
        assert all(text.endswith("\n") for text in texts.values())

    def test_generate_text_default_options(self, example_schema: SchemaDefinition):
        texts: Dict[str, str] = generate_text(example_schema, POSTGRES)
        assert texts["public.tags"].startswith("import { DataTypes, Model } from 'sequelize';")
