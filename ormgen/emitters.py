# File: ormgen/emitters.py
"""
ormgen - Block Emitters
========================
Builders for the three repeated blocks of a generated model:

    1. one attribute block per column,
    2. the association comments derived from the relation list,
    3. the ``indexes`` option.

Every builder is a pure function of its inputs plus an ``EmitContext``
(dialect, options, indentation) and returns a list of already-indented
source lines.  Nothing here mutates the schema model.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple

from ormgen.defaults import escape_special, normalize_default
from ormgen.models import (
    ColumnInfo,
    DialectInfo,
    ForeignKeyInfo,
    GenerationOptions,
    IndexInfo,
    RelationInfo,
    TableInfo,
)
from ormgen.type_mapper import map_column_type
from ormgen.utils import build_space, js_literal, quote_name, recase, to_plural

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.emitters")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_INDEX_KINDS: Tuple[str, ...] = ("UNIQUE", "FULLTEXT", "SPATIAL")
_IDENTITY_DIALECT: str = "postgres"
_ASSOC_PREFIX: str = "// (autogenerated) "


@dataclass(frozen=True, slots=True)
class EmitContext:
    """Per-run settings every emitter needs."""

    dialect: DialectInfo
    options: GenerationOptions
    space: Tuple[str, ...]

    @classmethod
    def build(cls, dialect: DialectInfo, options: GenerationOptions) -> "EmitContext":
        return cls(
            dialect=dialect,
            options=options,
            space=build_space(options.indentation, options.spaces),
        )

    @property
    def additional(self) -> Mapping[str, Any]:
        return self.options.additional


# ---------------------------------------------------------------------------
# Timestamp / paranoid classification
# ---------------------------------------------------------------------------


def _named_field(field: str, additional: Mapping[str, Any], key: str) -> bool:
    override: Any = additional.get(key)
    return (not override and field.lower() == key.lower()) or override == field


def is_created_field(field: str, additional: Mapping[str, Any]) -> bool:
    return additional.get("timestamps") is not False and _named_field(
        field, additional, "createdAt"
    )


def is_updated_field(field: str, additional: Mapping[str, Any]) -> bool:
    return additional.get("timestamps") is not False and _named_field(
        field, additional, "updatedAt"
    )


def is_timestamp_field(field: str, additional: Mapping[str, Any]) -> bool:
    """True for the create/update timestamp columns, unless timestamps are disabled."""
    return is_created_field(field, additional) or is_updated_field(field, additional)


def is_paranoid_field(field: str, additional: Mapping[str, Any]) -> bool:
    """True for the soft-delete column, unless timestamps or paranoid are disabled."""
    if additional.get("timestamps") is False or additional.get("paranoid") is False:
        return False
    return _named_field(field, additional, "deletedAt")


# ---------------------------------------------------------------------------
# Attribute emitter
# ---------------------------------------------------------------------------


def is_serial_key(column: ColumnInfo, dialect: DialectInfo) -> bool:
    fk: Optional[ForeignKeyInfo] = column.foreign_key
    return bool(fk and fk.is_serial_key) or dialect.is_serial_key(column)


def _type_expression(column: ColumnInfo) -> str:
    mapped: Optional[str] = map_column_type(column)
    if mapped is None:
        logger.debug("No DataTypes rule for %s; emitting raw type.", column.sql_type)
        return f'"{escape_special(column.sql_type)}"'
    return mapped


def _passthrough_value(value: Any) -> str:
    if isinstance(value, str):
        return f'"{escape_special(value)}"'
    return js_literal(value)


def _unique_value(column: ColumnInfo) -> Any:
    fk: Optional[ForeignKeyInfo] = column.foreign_key
    return column.unique or (fk.is_unique if fk else False)


def _writes_field_override(column: ColumnInfo, prop_name: str, dialect: DialectInfo) -> bool:
    if column.name == prop_name:
        return False
    # Case-insensitive dialects would request an aliased key column twice in joins.
    return (
        not column.primary_key
        or dialect.can_alias_pk
        or column.name.upper() != prop_name.upper()
    )


def column_attributes(column: ColumnInfo, ctx: EmitContext) -> List[str]:
    """
    Return the ``key: value`` entries of one attribute block, in emission order.

    Multi-line values (``references``) carry their own inner indentation.
    """
    sp: Tuple[str, ...] = ctx.space
    dialect: DialectInfo = ctx.dialect
    fk: Optional[ForeignKeyInfo] = column.foreign_key
    serial: bool = is_serial_key(column, dialect)
    prop_name: str = recase(ctx.options.case_prop, column.name)

    attrs: List[str] = [f"type: {_type_expression(column)}"]

    if serial or column.auto_increment:
        attrs.append("autoIncrement: true")
        if (
            dialect.name == _IDENTITY_DIALECT
            and fk is not None
            and fk.is_primary_key
            and fk.has_identity
        ):
            attrs.append("autoIncrementIdentity: true")

    if fk is not None and fk.is_foreign_key:
        attrs.append(
            "references: {\n"
            f"{sp[4]}model: '{fk.target_table}',\n"
            f"{sp[4]}key: '{fk.target_column}'\n"
            f"{sp[3]}}}"
        )

    if column.primary_key and (fk is None or fk.is_primary_key):
        attrs.append("primaryKey: true")

    attrs.append(f"allowNull: {js_literal(column.allow_null)}")

    default: Optional[str] = normalize_default(
        column.default_value,
        column.sql_type,
        dialect.name,
        serial,
        column.element_type,
    )
    if default is not None:
        attrs.append(f"defaultValue: {default}")

    if column.comment:
        attrs.append(f'comment: "{escape_special(column.comment)}"')

    for key, value in column.extra_attributes.items():
        attrs.append(f"{key}: {_passthrough_value(value)}")

    if is_timestamp_field(column.name, ctx.additional):
        attrs.append("defaultValue: () => context.timestamp")

    unique: Any = _unique_value(column)
    if unique:
        if isinstance(unique, str):
            attrs.append(f'unique: "{escape_special(unique)}"')
        else:
            attrs.append("unique: true")

    if _writes_field_override(column, prop_name, dialect):
        attrs.append(f"field: '{column.name}'")

    return attrs


def emit_attribute(column: ColumnInfo, ctx: EmitContext) -> List[str]:
    """Return the full ``prop: { ... },`` block for one column."""
    sp: Tuple[str, ...] = ctx.space
    prop_name: str = quote_name(recase(ctx.options.case_prop, column.name))
    attrs: List[str] = column_attributes(column, ctx)

    lines: List[str] = [f"{sp[2]}{prop_name}: {{"]
    for i, attr in enumerate(attrs):
        suffix: str = "," if i < len(attrs) - 1 else ""
        lines.append(f"{sp[3]}{attr}{suffix}")
    lines.append(f"{sp[2]}}},")
    return lines


# ---------------------------------------------------------------------------
# Association emitter
# ---------------------------------------------------------------------------


def _is_side(
    table: TableInfo,
    model_name: str,
    rel_table: Optional[str],
    rel_model: str,
) -> bool:
    if rel_table is not None and rel_table == table.name:
        return True
    return rel_model in (table.table_name, model_name)


def relation_declarations(
    relation: RelationInfo,
    table: TableInfo,
    model_name: str,
    no_alias: bool,
) -> List[str]:
    """Return the association declarations *relation* contributes to *table*."""
    rel: RelationInfo = relation
    is_parent: bool = _is_side(table, model_name, rel.parent_table, rel.parent_model)
    is_child: bool = _is_side(table, model_name, rel.child_table, rel.child_model)
    declarations: List[str] = []

    if rel.is_m2m:
        if is_parent:
            declarations.append(
                f"models.{rel.parent_model}.belongsToMany(models.{rel.child_model}, "
                f"{{ as: '{to_plural(rel.child_prop)}', through: models.{rel.join_model}, "
                f'foreignKey: "{rel.parent_id}", otherKey: "{rel.child_id}" }});'
            )
        return declarations

    if is_child:
        omit: bool = no_alias and rel.parent_model.lower() == rel.parent_prop.lower()
        alias: str = "" if omit else f'as: "{rel.parent_prop}", '
        declarations.append(
            f"models.{rel.child_model}.belongsTo(models.{rel.parent_model}, "
            f'{{ {alias}foreignKey: "{rel.parent_id}" }});'
        )

    if is_parent:
        method: str = "hasOne" if rel.is_one else "hasMany"
        omit = no_alias and to_plural(rel.child_model.lower()) == rel.child_prop.lower()
        alias = "" if omit else f'as: "{rel.child_prop}", '
        declarations.append(
            f"models.{rel.parent_model}.{method}(models.{rel.child_model}, "
            f'{{ {alias}foreignKey: "{rel.parent_id}" }});'
        )

    return declarations


def emit_associations(
    table: TableInfo,
    model_name: str,
    relations: Sequence[RelationInfo],
    ctx: EmitContext,
) -> List[str]:
    """
    Return the ``associate`` option block.

    Declarations are emitted as comments: the application wires the real
    associations when it registers its models.
    """
    sp: Tuple[str, ...] = ctx.space
    seen: Set[str] = set()
    lines: List[str] = [
        f"{sp[2]}// eslint-disable-next-line",
        f"{sp[2]}associate: models => {{",
    ]
    for rel in relations:
        for decl in relation_declarations(rel, table, model_name, ctx.options.no_alias):
            if decl in seen:
                continue
            seen.add(decl)
            lines.append(f"{sp[3]}{_ASSOC_PREFIX}{decl}")
    lines.append(f"{sp[2]}}},")
    return lines


# ---------------------------------------------------------------------------
# Index emitter
# ---------------------------------------------------------------------------


def _index_field(field_spec: Any) -> str:
    part: str = f'{{ name: "{field_spec.attribute}"'
    if field_spec.collate:
        part += f', collate: "{field_spec.collate}"'
    if field_spec.length:
        part += f", length: {field_spec.length}"
    if field_spec.order and field_spec.order != "ASC":
        part += f', order: "{field_spec.order}"'
    return part + " },"


def emit_indexes(indexes: Sequence[IndexInfo], ctx: EmitContext) -> List[str]:
    """Return the ``indexes: [...]`` option, or nothing when there are none."""
    if not indexes:
        return []

    sp: Tuple[str, ...] = ctx.space
    lines: List[str] = [f"{sp[2]}indexes: ["]
    for idx in indexes:
        lines.append(f"{sp[3]}{{")
        if idx.name:
            lines.append(f'{sp[4]}name: "{idx.name}",')
        if idx.unique:
            lines.append(f"{sp[4]}unique: true,")
        if idx.type:
            key: str = "type" if idx.type.upper() in _INDEX_KINDS else "using"
            lines.append(f'{sp[4]}{key}: "{idx.type}",')
        lines.append(f"{sp[4]}fields: [")
        lines.extend(f"{sp[5]}{_index_field(ff)}" for ff in idx.fields)
        lines.append(f"{sp[4]}]")
        lines.append(f"{sp[3]}}},")
    lines.append(f"{sp[2]}],")
    return lines


__all__: List[str] = [
    "EmitContext",
    "is_created_field",
    "is_updated_field",
    "is_timestamp_field",
    "is_paranoid_field",
    "is_serial_key",
    "column_attributes",
    "emit_attribute",
    "relation_declarations",
    "emit_associations",
    "emit_indexes",
]

logger.debug("ormgen.emitters loaded.")
