# File: ormgen/dialects.py
"""
ormgen - Built-in Dialect Descriptors
======================================
Static knowledge about the source databases the introspection step can
produce schemas for.  Callers normally pick one by name via
``get_dialect``; a fully custom ``DialectInfo`` can be passed instead.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Union

from ormgen.models import DialectInfo

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.dialects")

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

POSTGRES: DialectInfo = DialectInfo(
    name="postgres",
    has_schema=True,
    can_alias_pk=True,
    serial_default_prefixes=("nextval(",),
)
MYSQL: DialectInfo = DialectInfo(name="mysql", has_schema=False, can_alias_pk=True)
MARIADB: DialectInfo = DialectInfo(name="mariadb", has_schema=False, can_alias_pk=True)
SQLITE: DialectInfo = DialectInfo(name="sqlite", has_schema=False, can_alias_pk=True)
# MSSQL compares key columns case-insensitively, so aliased PKs are requested twice.
MSSQL: DialectInfo = DialectInfo(name="mssql", has_schema=True, can_alias_pk=False)

DIALECTS: Dict[str, DialectInfo] = {
    d.name: d for d in (POSTGRES, MYSQL, MARIADB, SQLITE, MSSQL)
}

_ALIASES: Dict[str, str] = {
    "postgresql": "postgres",
    "pg": "postgres",
    "sqlserver": "mssql",
    "tedious": "mssql",
}


def get_dialect(spec: Union[str, Mapping[str, Any], DialectInfo]) -> DialectInfo:
    """
    Resolve a dialect from a name, a mapping, or an existing descriptor.

    Raises:
        ValueError: If *spec* names an unknown dialect.
    """
    if isinstance(spec, DialectInfo):
        return spec
    if isinstance(spec, Mapping):
        return DialectInfo.model_validate(dict(spec))

    key: str = spec.strip().lower()
    key = _ALIASES.get(key, key)
    try:
        return DIALECTS[key]
    except KeyError:
        raise ValueError(
            f"Unknown dialect '{spec}'. Known dialects: {sorted(DIALECTS)}"
        ) from None


__all__: List[str] = [
    "POSTGRES",
    "MYSQL",
    "MARIADB",
    "SQLITE",
    "MSSQL",
    "DIALECTS",
    "get_dialect",
]

logger.debug("ormgen.dialects loaded.")
