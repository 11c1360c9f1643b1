# File: ormgen/templates.py
"""
ormgen - Model Source Template Engine
======================================
Turns one ``TableInfo`` into the complete source text of a Sequelize model.

A generated document is assembled in a fixed order:

    1. header imports (one of four output variants),
    2. structural type declarations (row shape, creation shape, model alias),
    3. the model registration call with one attribute block per column,
    4. the options block (table name, schema, trigger / timestamp flags,
       additional options, associations, indexes),
    5. the variant footer.

The ``#TABLE#`` / ``#UTABLE#`` placeholders used by the variant templates are
substituted last with the recased model name and its capitalised form.

**Performance contract:**
    - All string assembly uses ``List[str]`` + ``"\\n".join()``.
    - ``TemplateGenerator`` holds no mutable state; tables can be generated
      independently and in any order.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ormgen.emitters import (
    EmitContext,
    emit_associations,
    emit_attribute,
    emit_indexes,
    is_created_field,
    is_paranoid_field,
    is_timestamp_field,
    is_updated_field,
)
from ormgen.models import (
    ColumnInfo,
    DialectInfo,
    GenerationOptions,
    OutputLang,
    RelationInfo,
    SchemaDefinition,
    TableInfo,
)
from ormgen.type_mapper import JSON_STATIC_TYPE, map_column_static_type
from ormgen.utils import quote_name, recase, upper_first

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.templates")

# ---------------------------------------------------------------------------
# Placeholders
# ---------------------------------------------------------------------------

TABLE_PLACEHOLDER: str = "#TABLE#"
UPPER_TABLE_PLACEHOLDER: str = "#UTABLE#"
_SP: str = "#SP#"
_DB_MODULE: str = "#DBMODULE#"

# Keys of ``additional`` that are rendered by dedicated rules.
_HANDLED_ADDITIONAL: Tuple[str, ...] = ("timestamps", "paranoid", "name")


# ---------------------------------------------------------------------------
# Output variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class OutputVariant:
    """
    Header, registration-open and footer lines for one output shape.

    ``#SP#`` expands to one indentation unit, ``#DBMODULE#`` to the import
    path of the shared ``sequelize`` instance.
    """

    lang: OutputLang
    header: Tuple[str, ...]
    opening: Tuple[str, ...]
    footer: Tuple[str, ...] = ()

    @property
    def class_based(self) -> bool:
        return bool(self.footer)

    def render(self, lines: Sequence[str], unit: str, db_module: str) -> List[str]:
        return [ln.replace(_SP, unit).replace(_DB_MODULE, db_module) for ln in lines]


_DEFINE_OPENING: Tuple[str, ...] = (
    "export const #TABLE#Model = sequelize.define<#UTABLE#Model>('#TABLE#', {",
)
_CLASS_FOOTER: Tuple[str, ...] = (
    "#SP#return #TABLE#;",
    "#SP#}",
    "}",
)

VARIANTS: Dict[str, OutputVariant] = {
    OutputLang.ES5.value: OutputVariant(
        lang=OutputLang.ES5,
        header=(
            "import { DataTypes, Model } from 'sequelize';",
            "import { sequelize } from '#DBMODULE#';",
        ),
        opening=_DEFINE_OPENING,
    ),
    OutputLang.TS.value: OutputVariant(
        lang=OutputLang.TS,
        header=(
            "import * as Sequelize from 'sequelize';",
            "import { DataTypes, Model, Optional } from 'sequelize';",
            "import { sequelize } from '#DBMODULE#';",
        ),
        opening=_DEFINE_OPENING,
    ),
    OutputLang.ES6.value: OutputVariant(
        lang=OutputLang.ES6,
        header=(
            "const Sequelize = require('sequelize');",
            "module.exports = (sequelize, DataTypes) => {",
            "#SP#return #TABLE#.init(sequelize, DataTypes);",
            "}",
        ),
        opening=(
            "class #TABLE# extends Sequelize.Model {",
            "#SP#static init(sequelize, DataTypes) {",
            "#SP#super.init({",
        ),
        footer=_CLASS_FOOTER,
    ),
    OutputLang.ESM.value: OutputVariant(
        lang=OutputLang.ESM,
        header=(
            "import _sequelize from 'sequelize';",
            "const { Model, Sequelize } = _sequelize;",
        ),
        opening=(
            "export default class #TABLE# extends Model {",
            "#SP#static init(sequelize, DataTypes) {",
            "#SP#super.init({",
        ),
        footer=_CLASS_FOOTER,
    ),
}


def get_variant(lang: str) -> OutputVariant:
    try:
        return VARIANTS[str(getattr(lang, "value", lang))]
    except KeyError:
        raise ValueError(
            f"Unknown output language '{lang}'. Known: {sorted(VARIANTS)}"
        ) from None


# ---------------------------------------------------------------------------
# Column scan (fold state)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ColumnScan:
    """Facts about a table's columns gathered in one pass."""

    has_timestamp_field: bool = False
    has_paranoid_field: bool = False
    has_created_field: bool = False
    has_updated_field: bool = False
    uses_json: bool = False


def _scan_step(
    additional: Mapping[str, Any],
    static_types: Mapping[str, str],
    state: ColumnScan,
    column: ColumnInfo,
) -> ColumnScan:
    name: str = column.name
    return replace(
        state,
        has_timestamp_field=state.has_timestamp_field or is_timestamp_field(name, additional),
        has_paranoid_field=state.has_paranoid_field or is_paranoid_field(name, additional),
        has_created_field=state.has_created_field or is_created_field(name, additional),
        has_updated_field=state.has_updated_field or is_updated_field(name, additional),
        uses_json=state.uses_json or static_types[name] == JSON_STATIC_TYPE,
    )


def scan_columns(
    columns: Sequence[ColumnInfo],
    additional: Mapping[str, Any],
    static_types: Mapping[str, str],
) -> ColumnScan:
    step = functools.partial(_scan_step, additional, static_types)
    return functools.reduce(step, columns, ColumnScan())


# ---------------------------------------------------------------------------
# Per-table result
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class TableOutput:
    """Generated text for one table plus its non-fatal diagnostics."""

    table: str
    model_name: str
    text: str
    warnings: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Template generator
# ---------------------------------------------------------------------------


class TemplateGenerator:
    """
    Stateless model-source engine.

    Built once per run from a dialect and options; ``generate_table`` can then
    be called for any table of the schema, in any order.
    """

    def __init__(self, dialect: DialectInfo, options: GenerationOptions) -> None:
        self._dialect: DialectInfo = dialect
        self._options: GenerationOptions = options
        self._ctx: EmitContext = EmitContext.build(dialect, options)
        self._variant: OutputVariant = get_variant(options.lang)
        logger.debug(
            "TemplateGenerator initialised (dialect=%s, lang=%s).",
            dialect.name,
            options.lang,
        )

    @property
    def variant(self) -> OutputVariant:
        return self._variant

    def model_name(self, table: TableInfo) -> str:
        return recase(self._options.case_model, table.table_name, self._options.singularize)

    # ===================================================================
    # 1. Header
    # ===================================================================

    def _header(self, scan: ColumnScan) -> List[str]:
        sp: Tuple[str, ...] = self._ctx.space
        lines: List[str] = self._variant.render(
            self._variant.header, sp[1], self._options.db_module
        )
        if scan.has_timestamp_field:
            lines.append(f"import {{ context }} from '{self._options.context_module}';")
        if scan.uses_json:
            lines.append(f"import {{ {JSON_STATIC_TYPE} }} from './types';")
        lines.append("")
        return lines

    # ===================================================================
    # 2. Type declarations
    # ===================================================================

    def _shape_fields(
        self,
        table: TableInfo,
        static_types: Mapping[str, str],
        creation: bool,
    ) -> List[str]:
        sp: Tuple[str, ...] = self._ctx.space
        lines: List[str] = []
        for col in table.columns:
            prop: str = quote_name(recase(self._options.case_prop, col.name))
            ts_type: str = static_types[col.name]
            optional: bool = False
            if creation:
                optional = (
                    col.allow_null
                    or col.has_default
                    or col.auto_increment
                    or is_timestamp_field(col.name, self._ctx.additional)
                )
                if ts_type == "Date":
                    ts_type = "Date | string"
            marker: str = "?" if optional else ""
            lines.append(f"{sp[1]}{prop}{marker}: {ts_type};")
        return lines

    def _type_declarations(
        self, table: TableInfo, static_types: Mapping[str, str]
    ) -> List[str]:
        u: str = UPPER_TABLE_PLACEHOLDER
        lines: List[str] = [f"export type {u}DB = {{"]
        lines.extend(self._shape_fields(table, static_types, creation=False))
        lines.append("};")
        lines.append("")
        lines.append(f"export type {u}CreationDB = {{")
        lines.extend(self._shape_fields(table, static_types, creation=True))
        lines.append("};")
        lines.append("")
        lines.append(f"export type {u}Model = Model<{u}DB, {u}CreationDB> & {u}DB;")
        lines.append("")
        return lines

    # ===================================================================
    # 3. Options block
    # ===================================================================

    def _options_block(self, table: TableInfo, scan: ColumnScan) -> List[str]:
        sp: Tuple[str, ...] = self._ctx.space
        additional: Mapping[str, Any] = self._ctx.additional
        lines: List[str] = [f"{sp[2]}tableName: '{table.table_name}',"]

        schema_name: Optional[str] = self._options.schema_override or table.schema_name
        if schema_name and self._dialect.has_schema:
            lines.append(f"{sp[2]}schema: '{schema_name}',")

        if table.has_trigger:
            lines.append(f"{sp[2]}hasTrigger: true,")

        timestamps: bool = additional.get("timestamps") is True or scan.has_timestamp_field
        lines.append(f"{sp[2]}timestamps: {'true' if timestamps else 'false'},")

        paranoid: bool = additional.get("paranoid") is True or scan.has_paranoid_field
        if paranoid:
            lines.append(f"{sp[2]}paranoid: true,")

        if timestamps:
            # Sequelize expects both columns once timestamps are on.
            if not scan.has_updated_field and "updatedAt" not in additional:
                lines.append(f"{sp[2]}updatedAt: false,")
            if not scan.has_created_field and "createdAt" not in additional:
                lines.append(f"{sp[2]}createdAt: false,")

        for key, value in additional.items():
            if key == "name":
                lines.append(f"{sp[2]}name: {{")
                lines.append(f"{sp[3]}singular: '{table.table_name}',")
                lines.append(f"{sp[3]}plural: '{table.table_name}'")
                lines.append(f"{sp[2]}}},")
            elif key in _HANDLED_ADDITIONAL:
                continue
            elif isinstance(value, bool):
                lines.append(f"{sp[2]}{key}: {'true' if value else 'false'},")
            else:
                lines.append(f"{sp[2]}{key}: '{value}',")
        return lines

    # ===================================================================
    # 4. Whole document
    # ===================================================================

    def generate_table(
        self,
        table: TableInfo,
        relations: Sequence[RelationInfo] = (),
    ) -> TableOutput:
        """
        Generate the complete model source for *table*.

        Unmapped types never abort generation; their diagnostics are returned
        on the result.
        """
        sp: Tuple[str, ...] = self._ctx.space
        warnings: List[str] = []
        model_name: str = self.model_name(table)

        static_types: Dict[str, str] = {
            col.name: map_column_static_type(col, warnings) for col in table.columns
        }
        scan: ColumnScan = scan_columns(table.columns, self._ctx.additional, static_types)

        lines: List[str] = self._header(scan)
        lines.extend(self._type_declarations(table, static_types))
        lines.extend(
            self._variant.render(self._variant.opening, sp[1], self._options.db_module)
        )

        # --- Attributes ---
        for col in table.columns:
            lines.extend(emit_attribute(col, self._ctx))
        lines[-1] = lines[-1].rstrip(",")

        # --- Options ---
        lines.append(f"{sp[1]}}}, {{")
        lines.extend(self._options_block(table, scan))
        lines.extend(emit_associations(table, model_name, relations, self._ctx))
        lines.extend(emit_indexes(table.indexes, self._ctx))
        lines[-1] = lines[-1].rstrip(",")
        lines.append(f"{sp[1]}}});")

        lines.extend(
            self._variant.render(self._variant.footer, sp[1], self._options.db_module)
        )

        text: str = "\n".join(lines) + "\n"
        text = text.replace(UPPER_TABLE_PLACEHOLDER, upper_first(model_name))
        text = text.replace(TABLE_PLACEHOLDER, model_name)

        logger.debug(
            "Generated model '%s' for table '%s' (%d lines, %d warnings).",
            model_name,
            table.name,
            len(lines),
            len(warnings),
        )
        return TableOutput(table=table.name, model_name=model_name, text=text, warnings=warnings)

    def generate_all(self, schema: SchemaDefinition) -> Dict[str, TableOutput]:
        """Generate every table of *schema*, keyed by qualified table name."""
        return {
            table.name: self.generate_table(table, schema.relations)
            for table in schema.tables
        }


def generate_text(
    schema: SchemaDefinition,
    dialect: DialectInfo,
    options: Optional[GenerationOptions] = None,
) -> Dict[str, str]:
    """
    Generate model source for every table: ``{table name: source text}``.

    Examples:
        >>> texts = generate_text(schema, get_dialect("postgres"))
        >>> print(texts["public.users"])
    """
    engine: TemplateGenerator = TemplateGenerator(dialect, options or GenerationOptions())
    return {name: out.text for name, out in engine.generate_all(schema).items()}


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "TABLE_PLACEHOLDER",
    "UPPER_TABLE_PLACEHOLDER",
    "OutputVariant",
    "VARIANTS",
    "get_variant",
    "ColumnScan",
    "scan_columns",
    "TableOutput",
    "TemplateGenerator",
    "generate_text",
]

logger.debug("ormgen.templates loaded.")
