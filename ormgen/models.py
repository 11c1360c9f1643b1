# File: ormgen/models.py
"""
ormgen - Core Data Models
==========================
Pydantic V2 models describing an introspected relational schema and the
options that steer model-source generation.  These models are the single
source of truth for the pipeline: Schema Loading → Generation → Export.

Every model accepts both snake_case field names and the camelCase keys that
schema-introspection dumps usually carry (``allowNull``, ``primaryKey``,
``isM2M`` ...), so a raw dump can be validated without reshaping it first.

All instances are treated as read-only once a generation run starts.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    computed_field,
    field_validator,
    model_validator,
)

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.models")

# ---------------------------------------------------------------------------
# Enums: fixed sets used across the entire project
# ---------------------------------------------------------------------------


class OutputLang(str, Enum):
    """Shape of the generated model source."""

    ES5 = "es5"  # sequelize.define() factory with typed shapes
    TS = "ts"
    ES6 = "es6"  # CommonJS class extending Sequelize.Model
    ESM = "esm"  # ES module default-export class


class CaseOption(str, Enum):
    """Case-conversion policies for model names, properties and file names."""

    CAMEL = "c"
    KEBAB = "k"
    LOWER = "l"
    ORIGINAL = "o"
    PASCAL = "p"
    UPPER = "u"


class IdentityGeneration(str, Enum):
    """Identity-column generation strategy reported by the database."""

    ALWAYS = "ALWAYS"
    BY_DEFAULT = "BY DEFAULT"


class RelationCardinality(str, Enum):
    """Cardinality of an inferred relation."""

    ONE_TO_ONE = "one_to_one"
    ONE_TO_MANY = "one_to_many"
    MANY_TO_MANY = "many_to_many"


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=True,
    validate_default=True,
    frozen=False,
    extra="forbid",
)


# ---------------------------------------------------------------------------
# Foreign keys & columns
# ---------------------------------------------------------------------------


class ForeignKeyInfo(BaseModel):
    """Key metadata attached to a single column."""

    model_config = _SHARED_CONFIG

    source_table: Optional[str] = Field(default=None, description="Owning table.")
    source_column: Optional[str] = Field(default=None, description="Owning column.")
    target_table: Optional[str] = Field(
        default=None, description="Referenced table (foreign keys only)."
    )
    target_column: Optional[str] = Field(
        default=None, description="Referenced column (foreign keys only)."
    )
    target_schema: Optional[str] = Field(default=None, description="Referenced schema.")
    constraint_name: Optional[str] = Field(default=None, description="Constraint name.")
    generation: Optional[IdentityGeneration] = Field(
        default=None, description="Identity generation strategy (postgres)."
    )
    is_unique: Union[bool, str] = Field(
        default=False,
        alias="isUnique",
        description="True, or the name of the unique group the column belongs to.",
    )
    is_primary_key: bool = Field(default=False, alias="isPrimaryKey")
    is_foreign_key: bool = Field(default=False, alias="isForeignKey")
    is_serial_key: bool = Field(default=False, alias="isSerialKey")

    @property
    def has_identity(self) -> bool:
        return self.generation in (
            IdentityGeneration.ALWAYS.value,
            IdentityGeneration.BY_DEFAULT.value,
        )

    def __repr__(self) -> str:
        return (
            f"<FK {self.source_table}.{self.source_column} → "
            f"{self.target_table}.{self.target_column}>"
        )


class ColumnInfo(BaseModel):
    """
    Complete description of a single introspected column.

    ``sql_type`` is the raw, dialect-specific type text (``varchar(45)``,
    ``INT(11) UNSIGNED``, ``ENUM('a','b')`` ...).  It is never parsed here;
    the type mapper owns that.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Raw column name.")
    sql_type: str = Field(..., min_length=1, alias="type", description="Raw SQL type.")
    allow_null: bool = Field(default=True, alias="allowNull")
    default_value: Any = Field(
        default=None,
        alias="defaultValue",
        description="Raw default literal / expression, or None when absent.",
    )
    primary_key: bool = Field(default=False, alias="primaryKey")
    auto_increment: bool = Field(default=False, alias="autoIncrement")
    unique: Union[bool, str] = Field(
        default=False, description="True, or the unique constraint group name."
    )
    comment: Optional[str] = Field(default=None)
    special: Optional[List[str]] = Field(
        default=None, description="Enum values reported by the dialect (postgres)."
    )
    element_type: Optional[str] = Field(
        default=None,
        alias="elementType",
        description="Element type for array / range / geometry columns.",
    )
    foreign_key: Optional[ForeignKeyInfo] = Field(default=None, alias="foreignKey")
    extra_attributes: Dict[str, Any] = Field(
        default_factory=dict,
        alias="extra",
        description="Additional attributes copied verbatim into the output.",
    )

    @computed_field  # type: ignore[misc]
    @property
    def has_default(self) -> bool:
        return self.default_value is not None

    @field_validator("sql_type")
    @classmethod
    def _strip_type(cls, v: str) -> str:
        stripped: str = v.strip()
        if not stripped:
            raise ValueError("Column type must not be blank.")
        return stripped

    def __repr__(self) -> str:
        pk_flag: str = " PK" if self.primary_key else ""
        null_flag: str = " NULL" if self.allow_null else " NOT NULL"
        return f"<Column {self.name} {self.sql_type}{pk_flag}{null_flag}>"


# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------


class IndexField(BaseModel):
    """One column reference inside an index."""

    model_config = _SHARED_CONFIG

    attribute: str = Field(..., min_length=1, description="Column name.")
    collate: Optional[str] = Field(default=None)
    length: Optional[int] = Field(default=None, ge=1)
    order: Optional[str] = Field(default=None, description="ASC or DESC.")

    @field_validator("order")
    @classmethod
    def _upper_order(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class IndexInfo(BaseModel):
    """Single or composite index on a table."""

    model_config = _SHARED_CONFIG

    name: Optional[str] = Field(default=None, description="Index name.")
    unique: bool = Field(default=False)
    type: Optional[str] = Field(
        default=None,
        description="Index kind (UNIQUE, FULLTEXT, SPATIAL) or access method (BTREE, GIN ...).",
    )
    fields: List[IndexField] = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Relations
# ---------------------------------------------------------------------------


class RelationInfo(BaseModel):
    """
    A pre-computed relation between two tables.

    ``parent_*`` describes the referenced side, ``child_*`` the referencing
    side.  Many-to-many relations additionally name the join model.
    """

    model_config = _SHARED_CONFIG

    parent_table: Optional[str] = Field(default=None, alias="parentTable")
    parent_model: str = Field(..., min_length=1, alias="parentModel")
    parent_prop: str = Field(..., min_length=1, alias="parentProp")
    parent_id: str = Field(..., min_length=1, alias="parentId")
    child_table: Optional[str] = Field(default=None, alias="childTable")
    child_model: str = Field(..., min_length=1, alias="childModel")
    child_prop: str = Field(..., min_length=1, alias="childProp")
    child_id: Optional[str] = Field(default=None, alias="childId")
    join_model: Optional[str] = Field(default=None, alias="joinModel")
    cardinality: RelationCardinality = Field(default=RelationCardinality.ONE_TO_MANY)

    @model_validator(mode="before")
    @classmethod
    def _cardinality_from_flags(cls, data: Any) -> Any:
        """Accept the ``isOne`` / ``isM2M`` flag pair used by introspection dumps."""
        if not isinstance(data, dict) or "cardinality" in data:
            return data
        if "isM2M" not in data and "isOne" not in data:
            return data
        data = dict(data)
        is_m2m: bool = bool(data.pop("isM2M", False))
        is_one: bool = bool(data.pop("isOne", False))
        if is_m2m:
            data["cardinality"] = RelationCardinality.MANY_TO_MANY
        elif is_one:
            data["cardinality"] = RelationCardinality.ONE_TO_ONE
        else:
            data["cardinality"] = RelationCardinality.ONE_TO_MANY
        return data

    @model_validator(mode="after")
    def _validate_join_model(self) -> "RelationInfo":
        if not self.is_m2m:
            return self
        missing: List[str] = [
            key for key in ("join_model", "child_id") if not getattr(self, key)
        ]
        if missing:
            raise ValueError(
                f"Many-to-many relation {self.parent_model} ↔ {self.child_model} "
                f"requires {', '.join(repr(k) for k in missing)}."
            )
        return self

    @property
    def is_m2m(self) -> bool:
        return self.cardinality == RelationCardinality.MANY_TO_MANY

    @property
    def is_one(self) -> bool:
        return self.cardinality == RelationCardinality.ONE_TO_ONE

    def __repr__(self) -> str:
        return f"<Relation {self.parent_model} → {self.child_model} ({self.cardinality})>"


# ---------------------------------------------------------------------------
# Table
# ---------------------------------------------------------------------------


class TableInfo(BaseModel):
    """
    One introspected table.

    ``name`` may be schema-qualified (``public.users``).  Column order is
    declaration order and is preserved in every generated block.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Optionally schema-qualified name.")
    columns: List[ColumnInfo] = Field(..., min_length=1)
    indexes: List[IndexInfo] = Field(default_factory=list)
    has_trigger: bool = Field(default=False, alias="hasTrigger")

    @computed_field  # type: ignore[misc]
    @property
    def schema_name(self) -> Optional[str]:
        return self.name.split(".", 1)[0] if "." in self.name else None

    @computed_field  # type: ignore[misc]
    @property
    def table_name(self) -> str:
        return self.name.split(".", 1)[1] if "." in self.name else self.name

    @model_validator(mode="after")
    def _validate_unique_column_names(self) -> "TableInfo":
        seen: Set[str] = set()
        for col in self.columns:
            if col.name in seen:
                raise ValueError(
                    f"Duplicate column '{col.name}' in table '{self.name}'."
                )
            seen.add(col.name)
        return self

    def __repr__(self) -> str:
        return (
            f"<Table {self.name} "
            f"({len(self.columns)} cols, {len(self.indexes)} indexes)>"
        )


# ---------------------------------------------------------------------------
# Dialect descriptor
# ---------------------------------------------------------------------------


class DialectInfo(BaseModel):
    """
    What the generator needs to know about the source database dialect.

    ``serial_default_prefixes`` drives the serial-key predicate: a column whose
    raw default starts with one of these prefixes (case-insensitive) has its
    value generated by the database.
    """

    model_config = _SHARED_CONFIG

    name: str = Field(..., min_length=1, description="Dialect name, e.g. 'postgres'.")
    has_schema: bool = Field(default=False, alias="hasSchema")
    can_alias_pk: bool = Field(default=True, alias="canAliasPK")
    serial_default_prefixes: Tuple[str, ...] = Field(default=())

    def is_serial_key(self, column: ColumnInfo) -> bool:
        default: Any = column.default_value
        if not isinstance(default, str) or not self.serial_default_prefixes:
            return False
        lowered: str = default.strip().lower()
        return any(lowered.startswith(p) for p in self.serial_default_prefixes)


# ---------------------------------------------------------------------------
# Generation options
# ---------------------------------------------------------------------------


class GenerationOptions(BaseModel):
    """
    Controls the shape and naming of the generated source.

    A single instance (combined with a ``SchemaDefinition`` and a
    ``DialectInfo``) is all the generator needs.
    """

    model_config = _SHARED_CONFIG

    indentation: int = Field(default=2, ge=1, le=8, description="Units per indent level.")
    spaces: bool = Field(default=True, description="Indent with spaces (False = tabs).")
    lang: OutputLang = Field(default=OutputLang.ES5)
    case_model: CaseOption = Field(default=CaseOption.ORIGINAL, alias="caseModel")
    case_prop: CaseOption = Field(default=CaseOption.ORIGINAL, alias="caseProp")
    case_file: CaseOption = Field(default=CaseOption.ORIGINAL, alias="caseFile")
    singularize: bool = Field(default=False)
    no_alias: bool = Field(default=True, alias="noAlias")
    schema_override: Optional[str] = Field(default=None, alias="schema")
    additional: Dict[str, Any] = Field(default_factory=dict)
    db_module: str = Field(default="../../infrastructure/db", alias="dbModule")
    context_module: str = Field(
        default="../../services/context/context", alias="contextModule"
    )

    @computed_field  # type: ignore[misc]
    @property
    def file_extension(self) -> str:
        return ".js" if self.lang in (OutputLang.ES6, OutputLang.ESM) else ".ts"


# ---------------------------------------------------------------------------
# Schema Definition (top-level container)
# ---------------------------------------------------------------------------


class SchemaDefinition(BaseModel):
    """
    The root model: every table plus the flat cross-table relation list.

    Invariant: table names are unique, and ``get_table`` is an O(1) lookup
    over a cache built upon construction.
    """

    model_config = _SHARED_CONFIG

    tables: List[TableInfo] = Field(..., min_length=1)
    relations: List[RelationInfo] = Field(default_factory=list)

    _table_map: Dict[str, TableInfo] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def _validate_unique_table_names(self) -> "SchemaDefinition":
        names: List[str] = [t.name for t in self.tables]
        if len(names) != len(set(names)):
            dupes: List[str] = [n for n in names if names.count(n) > 1]
            raise ValueError(f"Duplicate table names: {sorted(set(dupes))}")
        return self

    @model_validator(mode="after")
    def _build_table_map(self) -> "SchemaDefinition":
        self._table_map = {t.name: t for t in self.tables}
        return self

    def get_table(self, name: str) -> Optional[TableInfo]:
        return self._table_map.get(name)

    def __repr__(self) -> str:
        return (
            f"<SchemaDefinition {len(self.tables)} tables, "
            f"{len(self.relations)} relations>"
        )


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "OutputLang",
    "CaseOption",
    "IdentityGeneration",
    "RelationCardinality",
    "ForeignKeyInfo",
    "ColumnInfo",
    "IndexField",
    "IndexInfo",
    "RelationInfo",
    "TableInfo",
    "DialectInfo",
    "GenerationOptions",
    "SchemaDefinition",
]

logger.debug("ormgen.models loaded, %d public symbols.", len(__all__))
