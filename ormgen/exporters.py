# File: ormgen/exporters.py
"""
ormgen - Model File Exporter
=============================
Writes generated model sources to disk:

    1. One file per table, named by the file case policy plus the output
       language's extension (``.ts`` or ``.js``).
    2. Every write is atomic (temp file + ``os.replace``).
    3. An optional ``manifest.json`` records sizes and SHA-256 checksums.

A failed write is recorded and the remaining files are still written; the
caller decides what a partial export means.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from ormgen.models import GenerationOptions
from ormgen.utils import Timer, count_lines, qname_split, recase, sha256_hex, write_file

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.exporters")

MANIFEST_NAME: str = "manifest.json"


# ---------------------------------------------------------------------------
# Data classes for export results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Immutable record of a single exported file."""

    table: str
    relative_path: str
    absolute_path: str
    size_bytes: int
    line_count: int
    sha256: str


@dataclass(frozen=False, slots=True)
class ExportManifest:
    """Manifest of every exported model file, serialisable to JSON."""

    generator_version: str = ""
    export_timestamp: str = ""
    output_directory: str = ""
    lang: str = ""
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    files: List[FileRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generator_version": self.generator_version,
            "export_timestamp": self.export_timestamp,
            "output_directory": self.output_directory,
            "lang": self.lang,
            "total_files": self.total_files,
            "total_bytes": self.total_bytes,
            "total_lines": self.total_lines,
            "files": [
                {
                    "table": f.table,
                    "relative_path": f.relative_path,
                    "size_bytes": f.size_bytes,
                    "line_count": f.line_count,
                    "sha256": f.sha256,
                }
                for f in self.files
            ],
        }

    def to_json(self, indent_size: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent_size, ensure_ascii=False)


@dataclass(frozen=True, slots=True)
class ExportResult:
    """Final result returned by ``ModelExporter.export()``."""

    success: bool
    manifest: ExportManifest
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    elapsed_seconds: float


# ---------------------------------------------------------------------------
# File naming
# ---------------------------------------------------------------------------


def model_file_name(table: str, options: GenerationOptions) -> str:
    """
    Return the output file name for *table*.

    Examples:
        >>> model_file_name("public.order_items", GenerationOptions(caseFile="k"))
        'order-items.ts'
    """
    _, table_name = qname_split(table)
    stem: str = recase(options.case_file, table_name, options.singularize)
    return stem + options.file_extension


# ---------------------------------------------------------------------------
# ModelExporter class
# ---------------------------------------------------------------------------


class ModelExporter:
    """
    Writes a ``{table: source}`` mapping into an output directory.

    Usage::

        exporter = ModelExporter(options, output_dir=Path("./models"))
        result = exporter.export(texts)
        print(result.manifest.to_json())

    Thread-safety: NOT thread-safe.  Use one exporter per output directory.
    """

    def __init__(
        self,
        options: GenerationOptions,
        output_dir: Path,
        *,
        atomic_writes: bool = True,
        generate_manifest: bool = True,
    ) -> None:
        self._options: GenerationOptions = options
        self._output_dir: Path = output_dir.resolve()
        self._atomic_writes: bool = atomic_writes
        self._generate_manifest: bool = generate_manifest

        self._errors: List[str] = []
        self._warnings: List[str] = []
        self._file_records: List[FileRecord] = []

        logger.debug(
            "ModelExporter initialised: output_dir=%s, atomic=%s.",
            self._output_dir,
            self._atomic_writes,
        )

    # -----------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------

    def export(self, texts: Dict[str, str]) -> ExportResult:
        """
        Write every generated model to the output directory.

        Args:
            texts: Mapping of table name → generated source.

        Returns:
            ExportResult with success flag, manifest and error details.
        """
        with Timer("export") as timer:
            try:
                self._output_dir.mkdir(parents=True, exist_ok=True)
                self._write_models(texts)
                if self._generate_manifest:
                    self._write_manifest_file()
            except OSError as exc:
                error_msg: str = f"Fatal export error: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg, exc_info=True)

        manifest: ExportManifest = self._build_manifest()
        success: bool = len(self._errors) == 0

        if success:
            logger.info(
                "Export completed successfully: %d files, %d bytes, %.3fs.",
                manifest.total_files,
                manifest.total_bytes,
                timer.elapsed,
            )
        else:
            logger.error(
                "Export completed with %d error(s) in %.3fs.",
                len(self._errors),
                timer.elapsed,
            )

        return ExportResult(
            success=success,
            manifest=manifest,
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            elapsed_seconds=timer.elapsed,
        )

    # -----------------------------------------------------------------
    # Internal: file writing
    # -----------------------------------------------------------------

    def _write_models(self, texts: Dict[str, str]) -> None:
        claimed: Dict[str, str] = {}

        for table, content in texts.items():
            rel_path: str = model_file_name(table, self._options)

            if rel_path in claimed:
                error_msg: str = (
                    f"Tables '{claimed[rel_path]}' and '{table}' both map to "
                    f"{rel_path}; '{table}' was not written."
                )
                self._errors.append(error_msg)
                logger.error(error_msg)
                continue
            claimed[rel_path] = table

            try:
                record: FileRecord = self._write_single_file(table, rel_path, content)
                self._file_records.append(record)
            except OSError as exc:
                error_msg = f"Failed to write {rel_path}: {type(exc).__name__}: {exc}"
                self._errors.append(error_msg)
                logger.error(error_msg)

        logger.info(
            "Wrote %d model files to %s.",
            len(self._file_records),
            self._output_dir,
        )

    def _write_single_file(self, table: str, rel_path: str, content: str) -> FileRecord:
        full_path: Path = self._output_dir / rel_path
        size_bytes: int = write_file(full_path, content, atomic=self._atomic_writes)
        line_count: int = count_lines(content)

        logger.debug("Wrote file: %s (%d bytes, %d lines).", rel_path, size_bytes, line_count)

        return FileRecord(
            table=table,
            relative_path=rel_path,
            absolute_path=str(full_path),
            size_bytes=size_bytes,
            line_count=line_count,
            sha256=sha256_hex(content),
        )

    # -----------------------------------------------------------------
    # Internal: manifest
    # -----------------------------------------------------------------

    def _build_manifest(self) -> ExportManifest:
        from ormgen import __version__

        return ExportManifest(
            generator_version=__version__,
            export_timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
            output_directory=str(self._output_dir),
            lang=str(self._options.lang),
            total_files=len(self._file_records),
            total_bytes=sum(r.size_bytes for r in self._file_records),
            total_lines=sum(r.line_count for r in self._file_records),
            files=list(self._file_records),
        )

    def _write_manifest_file(self) -> None:
        manifest_path: Path = self._output_dir / MANIFEST_NAME
        try:
            write_file(manifest_path, self._build_manifest().to_json(), atomic=self._atomic_writes)
            logger.debug("Wrote manifest to %s.", manifest_path)
        except OSError as exc:
            self._warnings.append(f"Could not write manifest: {exc}")
            logger.warning("Failed to write manifest: %s", exc)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "MANIFEST_NAME",
    "FileRecord",
    "ExportManifest",
    "ExportResult",
    "model_file_name",
    "ModelExporter",
]

logger.debug("ormgen.exporters loaded.")
