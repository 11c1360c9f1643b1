# File: ormgen/__init__.py
"""
ormgen — Sequelize Model Generator
===================================

Turns an introspected relational schema (tables, columns, keys, indexes and
pre-computed relations, as JSON/YAML or in-memory models) into one Sequelize
model source file per table, in one of four module shapes (``es5``, ``ts``,
``es6``, ``esm``).

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│ ModelGenerator │────▶│ TemplateGenerator│
    │   (cli.py)   │     │ (generator.py) │     │  (templates.py)  │
    └──────────────┘     └───────┬────────┘     └────────┬─────────┘
                                 │                       │
                    ┌────────────┼──────────┐   ┌────────┼─────────┐
                    ▼            ▼          ▼   ▼        ▼         ▼
             ┌──────────┐ ┌───────────┐ ┌─────────┐ ┌─────────┐ ┌──────────┐
             │ dialects │ │  models   │ │exporters│ │emitters │ │type_mapper│
             │  (.py)   │ │  (.py)    │ │  (.py)  │ │ (.py)   │ │defaults  │
             └──────────┘ └───────────┘ └─────────┘ └─────────┘ └──────────┘

Usage::

    # As a library
    from ormgen import SchemaDefinition, generate_text, get_dialect
    texts = generate_text(schema, get_dialect("postgres"))

    # From the command line
    python -m ormgen --schema schema.json --output ./models --verbose
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from ormgen.models import (
    CaseOption,
    ColumnInfo,
    DialectInfo,
    ForeignKeyInfo,
    GenerationOptions,
    IdentityGeneration,
    IndexField,
    IndexInfo,
    OutputLang,
    RelationCardinality,
    RelationInfo,
    SchemaDefinition,
    TableInfo,
)
from ormgen.dialects import DIALECTS, get_dialect
from ormgen.type_mapper import map_sql_type, map_static_type
from ormgen.defaults import normalize_default
from ormgen.templates import TemplateGenerator, generate_text
from ormgen.exporters import ExportManifest, ExportResult, ModelExporter
from ormgen.generator import GenerationReport, ModelGenerator

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Core orchestrator
    "ModelGenerator",
    "GenerationReport",
    # Models
    "CaseOption",
    "ColumnInfo",
    "DialectInfo",
    "ForeignKeyInfo",
    "GenerationOptions",
    "IdentityGeneration",
    "IndexField",
    "IndexInfo",
    "OutputLang",
    "RelationCardinality",
    "RelationInfo",
    "SchemaDefinition",
    "TableInfo",
    # Dialects
    "DIALECTS",
    "get_dialect",
    # Generation core
    "map_sql_type",
    "map_static_type",
    "normalize_default",
    "TemplateGenerator",
    "generate_text",
    # Exporters
    "ModelExporter",
    "ExportManifest",
    "ExportResult",
]
