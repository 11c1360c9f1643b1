# File: ormgen/utils.py
"""
ormgen - Utility Functions & Helpers
=====================================
Naming, quoting and file helpers shared by the generation pipeline.

Performance strategy:
- Case-conversion and inflection functions are decorated with
  ``@lru_cache(maxsize=None)``; the same table and column names are
  recased many times per run.
- File writes go through a temp file + ``os.replace`` so a crash never
  leaves a half-written model behind.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ormgen.models import CaseOption

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
_JS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[$A-Z_][0-9A-Z_$]*$", re.IGNORECASE)

_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "datum": "data",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "status": "statuses",
    "address": "addresses",
}
_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}


# ---------------------------------------------------------------------------
# Word splitting & case conversion
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """Split any casing style into a tuple of lowercase words."""
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    return tuple(w.lower() for w in _SPLIT_WORDS_RE.findall(cleaned) if w)


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("UserProfile")
        'user_profile'
        >>> to_snake_case("getHTTPResponse")
        'get_http_response'
    """
    return "_".join(_extract_words(name))


@functools.lru_cache(maxsize=None)
def to_kebab_case(name: str) -> str:
    return "-".join(_extract_words(name))


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("user_profile")
        'userProfile'
        >>> to_camel_case("HTTPResponse")
        'httpResponse'
    """
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    return "".join(w.capitalize() for w in _extract_words(name))


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation sufficient for association aliases.

    Words that already end in a single ``s`` are returned unchanged.
    """
    if not name:
        return ""

    lower: str = name.lower()

    if lower in _IRREGULAR_PLURALS:
        plural: str = _IRREGULAR_PLURALS[lower]
        if name[0].isupper():
            return plural[0].upper() + plural[1:]
        return plural

    if lower.endswith("s") and not lower.endswith("ss"):
        return name

    if lower.endswith(("sh", "ch", "x", "z", "ss")):
        return name + "es"
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith("fe"):
        return name[:-2] + "ves"
    if lower.endswith("f") and not lower.endswith("ff"):
        return name[:-1] + "ves"

    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """Naive English singularisation (reverse of ``to_plural``)."""
    if not name:
        return ""

    lower: str = name.lower()

    if lower in _IRREGULAR_SINGULARS:
        singular: str = _IRREGULAR_SINGULARS[lower]
        if name[0].isupper():
            return singular[0].upper() + singular[1:]
        return singular

    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith("ves"):
        return name[:-3] + "f"
    if lower.endswith(("ses", "xes", "zes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return name[:-1]

    return name


@functools.lru_cache(maxsize=None)
def recase(option: Optional[str], value: str, singularize: bool = False) -> str:
    """
    Apply a ``CaseOption`` to *value*, optionally singularising it first.

    Examples:
        >>> recase("p", "order_items", True)
        'OrderItem'
        >>> recase("o", "order_items")
        'order_items'
    """
    if singularize and value:
        value = to_singular(value)
    if not option or option == CaseOption.ORIGINAL or not value:
        return value
    if option == CaseOption.CAMEL:
        return to_camel_case(value)
    if option == CaseOption.KEBAB:
        return to_kebab_case(value)
    if option == CaseOption.LOWER:
        return to_snake_case(value)
    if option == CaseOption.PASCAL:
        return to_pascal_case(value)
    if option == CaseOption.UPPER:
        return to_snake_case(value).upper()
    return value


def upper_first(value: str) -> str:
    return value[:1].upper() + value[1:]


# ---------------------------------------------------------------------------
# Qualified names
# ---------------------------------------------------------------------------


def qname_split(qname: str) -> Tuple[Optional[str], str]:
    """Split ``schema.table`` into ``(schema, table)``; schema is None if absent."""
    if "." in qname:
        schema_name, table_name = qname.split(".", 1)
        return schema_name, table_name
    return None, qname


# ---------------------------------------------------------------------------
# Source-text helpers
# ---------------------------------------------------------------------------


def quote_name(name: str) -> str:
    """Single-quote *name* unless it is already a valid JS identifier."""
    return name if _JS_IDENTIFIER_RE.match(name) else f"'{name}'"


def js_literal(value: Any) -> str:
    """Render a plain Python value as a JS literal (strings are not quoted)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_space(indentation: int, spaces: bool, levels: int = 6) -> Tuple[str, ...]:
    """Return indentation prefixes for levels ``0 .. levels-1``."""
    unit: str = (" " if spaces else "\t") * indentation
    return tuple(unit * i for i in range(levels))


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path* and return the number of bytes written.

    With *atomic* the data goes to a temp file in the same directory first
    and is moved into place with ``os.replace``.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    encoded: bytes = content.encode("utf-8")

    if not atomic:
        path.write_bytes(encoded)
        return len(encoded)

    fd, tmp_path = tempfile.mkstemp(
        dir=str(path.parent),
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(encoded)
        os.replace(tmp_path, str(path))
    except OSError:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def sha256_hex(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("generate") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "to_snake_case",
    "to_kebab_case",
    "to_camel_case",
    "to_pascal_case",
    "to_plural",
    "to_singular",
    "recase",
    "upper_first",
    "qname_split",
    "quote_name",
    "js_literal",
    "build_space",
    "write_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("ormgen.utils loaded, %d public symbols.", len(__all__))
