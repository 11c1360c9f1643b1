"""
tests/conftest.py
Shared fixtures for the ormgen test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import json
import logging
import pathlib
from typing import Any, Dict, Tuple

import pytest
import yaml

from ormgen.dialects import POSTGRES
from ormgen.emitters import EmitContext
from ormgen.generator import parse_raw_schema
from ormgen.models import (
    DialectInfo,
    GenerationOptions,
    SchemaDefinition,
    TableInfo,
)


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
SCHEMA_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "schema_example.yaml"


# ---------------------------------------------------------------------------
# Logging isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_ormgen_logger():
    """The CLI reconfigures the ``ormgen`` logger; undo that after every test."""
    yield
    root = logging.getLogger("ormgen")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)
    root.propagate = True


# ---------------------------------------------------------------------------
# Raw schema data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_schema_dict() -> Dict[str, Any]:
    """Load the reference schema_example.yaml once per session and return as dict."""
    assert SCHEMA_EXAMPLE_PATH.exists(), (
        f"Reference schema not found at {SCHEMA_EXAMPLE_PATH}. "
        "Make sure schema_example.yaml is in the project root."
    )
    with open(SCHEMA_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def schema_dict(raw_schema_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_schema_dict)


@pytest.fixture()
def schema_yaml_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "schema.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(schema_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def schema_json_path(schema_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(schema_dict, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Parsed model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def parsed_example(
    schema_dict: Dict[str, Any],
) -> Tuple[SchemaDefinition, DialectInfo, GenerationOptions]:
    return parse_raw_schema(schema_dict)


@pytest.fixture()
def example_schema(parsed_example) -> SchemaDefinition:
    return parsed_example[0]


@pytest.fixture()
def tags_table() -> TableInfo:
    """Two-column table with an auto-increment key and no relations."""
    return TableInfo.model_validate({
        "name": "tags",
        "columns": [
            {
                "name": "id",
                "type": "integer",
                "allowNull": False,
                "primaryKey": True,
                "autoIncrement": True,
            },
            {"name": "label", "type": "varchar(40)", "allowNull": False},
        ],
    })


@pytest.fixture()
def pg_ctx() -> EmitContext:
    """Emitter context: postgres, default options (2 spaces, original case)."""
    return EmitContext.build(POSTGRES, GenerationOptions())
