# File: ormgen/generator.py
"""
ormgen - Generation Pipeline (Orchestrator)
============================================
Connects every phase of a run:

    Schema Input → Parsing → Model Generation → File Export

The ``ModelGenerator`` class backs both the programmatic API and the CLI.

Workflow::

    1. Load the input from a JSON/YAML file (or accept in-memory objects).
    2. Parse into ``SchemaDefinition`` + ``DialectInfo`` + ``GenerationOptions``.
    3. Feed each table to ``TemplateGenerator`` (templates.py).
    4. Collect the generated sources and their diagnostics.
    5. Hand off to ``ModelExporter`` (exporters.py).
    6. Return a ``GenerationReport`` with metrics and status.

Error handling strategy:
    - Unmapped types are diagnostics, not errors; they land in
      ``GenerationReport.warnings``.
    - Generation errors are isolated per table: one bad table doesn't stop
      the others.
    - Export errors are recorded per file.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import ValidationError

from ormgen.dialects import POSTGRES, get_dialect
from ormgen.exporters import ExportManifest, ExportResult, ModelExporter
from ormgen.models import DialectInfo, GenerationOptions, SchemaDefinition
from ormgen.templates import TableOutput, TemplateGenerator
from ormgen.utils import Timer, count_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen.generator")


# ---------------------------------------------------------------------------
# Generation report
# ---------------------------------------------------------------------------


@dataclass(frozen=False, slots=True)
class GenerationStepMetric:
    """Timing and outcome for a single pipeline step."""

    step_name: str = ""
    success: bool = True
    elapsed_seconds: float = 0.0
    detail: str = ""


@dataclass(frozen=False, slots=True)
class GenerationReport:
    """
    Report produced by ``ModelGenerator.generate()``.

    ``texts`` holds the generated source per table even when nothing was
    written (dry runs), so callers can print or inspect it.
    """

    success: bool = False
    dialect: str = ""
    lang: str = ""
    output_directory: str = ""

    # Metrics
    total_files: int = 0
    total_bytes: int = 0
    total_lines: int = 0
    total_tables_processed: int = 0
    total_elapsed_seconds: float = 0.0

    # Sub-reports
    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    input_errors: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    export_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped_tables: List[str] = field(default_factory=list)

    texts: Dict[str, str] = field(default_factory=dict)
    manifest: Optional[ExportManifest] = None

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        lines.append(f"{'=' * 60}")
        lines.append("  ormgen — Generation Report")
        lines.append(f"{'=' * 60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Dialect:          {self.dialect}")
        lines.append(f"  Output language:  {self.lang}")
        lines.append(f"  Output:           {self.output_directory or '(not written)'}")
        lines.append(f"  Tables processed: {self.total_tables_processed}")
        lines.append(f"  Files written:    {self.total_files}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total bytes:      {self.total_bytes:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─' * 60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        sections: Tuple[Tuple[str, List[str], str], ...] = (
            ("Input Errors", self.input_errors, "✗"),
            ("Generation Errors", self.generation_errors, "✗"),
            ("Export Errors", self.export_errors, "✗"),
            ("Warnings", self.warnings, "⚠"),
            ("Skipped Tables", self.skipped_tables, "⊘"),
        )
        for title, entries, icon in sections:
            if not entries:
                continue
            lines.append(f"{'─' * 60}")
            lines.append(f"  {title} ({len(entries)}):")
            for entry in entries:
                lines.append(f"    {icon} {entry}")

        lines.append(f"{'=' * 60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Schema loader helpers
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Dict[str, Any]:
    """Load and parse a JSON file. Raises ValueError on parse errors."""
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object at top level, got {type(data).__name__}.")
    return data


def _load_yaml_file(path: Path) -> Dict[str, Any]:
    """Load and parse a YAML file. Raises ValueError on parse errors."""
    try:
        data: Any = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected a YAML mapping at top level, got {type(data).__name__}.")
    return data


def load_schema_file(path: Path) -> Dict[str, Any]:
    """
    Load an introspected schema file (JSON or YAML), dispatching on extension.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file can't be parsed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Schema path is not a file: {path}")

    suffix: str = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml_file(path)
    if suffix == ".json":
        return _load_json_file(path)

    logger.info("Unknown extension '%s'; trying JSON then YAML.", suffix)
    try:
        return _load_json_file(path)
    except ValueError:
        return _load_yaml_file(path)


def parse_raw_schema(
    raw: Dict[str, Any],
) -> Tuple[SchemaDefinition, DialectInfo, GenerationOptions]:
    """
    Parse a raw dictionary (from JSON/YAML) into validated models.

    Expected top-level keys:
        - ``tables`` (required) and ``relations``
        - ``dialect``: a dialect name or a full dialect mapping (default postgres)
        - ``options`` or ``config``: generation options

    Raises:
        ValueError: If required keys are missing or validation fails.
    """
    if "tables" not in raw:
        raise ValueError("Cannot find schema definition in input. Expected top-level key: 'tables'.")

    schema_data: Dict[str, Any] = {
        "tables": raw["tables"],
        "relations": raw.get("relations") or [],
    }

    options_data: Any = raw.get("options", raw.get("config"))
    if options_data is None:
        logger.info("No generation options found in input; using defaults.")
        options_data = {}

    try:
        schema: SchemaDefinition = SchemaDefinition.model_validate(schema_data)
    except ValidationError as exc:
        raise ValueError(f"Schema validation failed: {exc}") from exc

    try:
        options: GenerationOptions = GenerationOptions.model_validate(options_data)
    except ValidationError as exc:
        raise ValueError(f"Options validation failed: {exc}") from exc

    try:
        dialect: DialectInfo = get_dialect(raw.get("dialect") or POSTGRES)
    except ValidationError as exc:
        raise ValueError(f"Dialect validation failed: {exc}") from exc

    return schema, dialect, options


def apply_option_overrides(
    options: GenerationOptions, overrides: Dict[str, Any]
) -> GenerationOptions:
    """
    Return a copy of *options* with *overrides* (keyed by field name) applied.

    Raises:
        ValueError: If the merged options fail validation.
    """
    data: Dict[str, Any] = options.model_dump(exclude={"file_extension"})
    data.update(overrides)
    try:
        return GenerationOptions.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Options validation failed: {exc}") from exc


# ---------------------------------------------------------------------------
# ModelGenerator (orchestrator)
# ---------------------------------------------------------------------------


class ModelGenerator:
    """
    Pipeline orchestrator.

    Usage::

        generator = ModelGenerator()

        # From a file
        report = generator.generate_from_file(
            schema_path=Path("schema.yaml"),
            output_dir=Path("./models"),
        )

        # From in-memory objects, without writing anything
        report = generator.generate(schema, dialect, options)
        print(report.texts["users"])

    The generator is reusable: create once, call generate() many times.
    """

    def __init__(self, *, generate_manifest: bool = True) -> None:
        self._generate_manifest: bool = generate_manifest
        logger.debug("ModelGenerator initialised: manifest=%s.", generate_manifest)

    # -----------------------------------------------------------------
    # Public: generate from file
    # -----------------------------------------------------------------

    def generate_from_file(
        self,
        schema_path: Path,
        output_dir: Optional[Path] = None,
        *,
        option_overrides: Optional[Dict[str, Any]] = None,
        dialect_override: Optional[str] = None,
    ) -> GenerationReport:
        """
        Full pipeline: load file → parse → generate → export.

        Args:
            schema_path: Path to a JSON/YAML schema file.
            output_dir: Output directory; None generates without writing.
            option_overrides: Option values that replace those in the file.
            dialect_override: Dialect name that replaces the one in the file.
        """
        report: GenerationReport = GenerationReport()
        if output_dir is not None:
            report.output_directory = str(output_dir.resolve())

        with Timer("load_schema") as t_load:
            try:
                raw_data: Dict[str, Any] = load_schema_file(schema_path)
            except (FileNotFoundError, ValueError) as exc:
                load_error: Optional[str] = str(exc)
            else:
                load_error = None

        report.step_metrics.append(GenerationStepMetric(
            step_name="Load Schema File",
            success=load_error is None,
            elapsed_seconds=t_load.elapsed,
            detail=load_error or f"from {schema_path.name}",
        ))
        if load_error is not None:
            report.input_errors.append(load_error)
            return self._finalise_report(report, t_load.elapsed)

        logger.info("Loaded schema file: %s (%d top-level keys).", schema_path, len(raw_data))

        with Timer("parse_schema") as t_parse:
            try:
                if dialect_override:
                    raw_data["dialect"] = dialect_override
                schema, dialect, options = parse_raw_schema(raw_data)
                if option_overrides:
                    options = apply_option_overrides(options, option_overrides)
            except ValueError as exc:
                parse_error: Optional[str] = str(exc)
            else:
                parse_error = None

        report.step_metrics.append(GenerationStepMetric(
            step_name="Parse Schema",
            success=parse_error is None,
            elapsed_seconds=t_parse.elapsed,
            detail=parse_error or f"{len(schema.tables)} tables parsed",
        ))
        if parse_error is not None:
            report.input_errors.append(parse_error)
            return self._finalise_report(report, t_load.elapsed + t_parse.elapsed)

        logger.info(
            "Parsed schema: %d tables, %d relations, dialect=%s.",
            len(schema.tables),
            len(schema.relations),
            dialect.name,
        )
        return self._run_pipeline(schema, dialect, options, output_dir, report)

    # -----------------------------------------------------------------
    # Public: generate from in-memory objects
    # -----------------------------------------------------------------

    def generate(
        self,
        schema: SchemaDefinition,
        dialect: DialectInfo,
        options: Optional[GenerationOptions] = None,
        output_dir: Optional[Path] = None,
    ) -> GenerationReport:
        """Full pipeline from pre-parsed models; nothing is written without *output_dir*."""
        report: GenerationReport = GenerationReport()
        if output_dir is not None:
            report.output_directory = str(output_dir.resolve())
        return self._run_pipeline(
            schema, dialect, options or GenerationOptions(), output_dir, report
        )

    # -----------------------------------------------------------------
    # Internal: master pipeline
    # -----------------------------------------------------------------

    def _run_pipeline(
        self,
        schema: SchemaDefinition,
        dialect: DialectInfo,
        options: GenerationOptions,
        output_dir: Optional[Path],
        report: GenerationReport,
    ) -> GenerationReport:
        pipeline_start: float = time.perf_counter()
        report.dialect = dialect.name
        report.lang = str(options.lang)

        texts: Dict[str, str] = self._step_generate(schema, dialect, options, report)
        report.texts = texts

        if output_dir is not None:
            if texts:
                self._step_export(texts, options, output_dir, report)
            else:
                report.generation_errors.append("No models were generated; aborting export.")

        total_elapsed: float = time.perf_counter() - pipeline_start
        return self._finalise_report(report, total_elapsed)

    # -----------------------------------------------------------------
    # Pipeline step: model generation
    # -----------------------------------------------------------------

    def _step_generate(
        self,
        schema: SchemaDefinition,
        dialect: DialectInfo,
        options: GenerationOptions,
        report: GenerationReport,
    ) -> Dict[str, str]:
        """Run the template engine table by table, isolating failures."""
        texts: Dict[str, str] = {}

        with Timer("model_generation") as t:
            engine: TemplateGenerator = TemplateGenerator(dialect, options)
            for table in schema.tables:
                try:
                    output: TableOutput = engine.generate_table(table, schema.relations)
                except Exception as exc:
                    error_msg: str = (
                        f"Table '{table.name}': {type(exc).__name__}: {exc}"
                    )
                    report.generation_errors.append(error_msg)
                    report.skipped_tables.append(table.name)
                    logger.error(error_msg, exc_info=True)
                    continue
                texts[table.name] = output.text
                report.warnings.extend(f"{table.name}: {w}" for w in output.warnings)

        report.total_tables_processed = len(texts)
        total_lines: int = sum(count_lines(content) for content in texts.values())
        detail_str: str = f"{len(texts)} models, ~{total_lines:,} lines"
        if report.warnings:
            detail_str += f", {len(report.warnings)} warning(s)"

        report.step_metrics.append(GenerationStepMetric(
            step_name="Model Generation",
            success=len(report.generation_errors) == 0,
            elapsed_seconds=t.elapsed,
            detail=detail_str,
        ))
        logger.info("Model generation complete: %s in %.3fs.", detail_str, t.elapsed)
        return texts

    # -----------------------------------------------------------------
    # Pipeline step: export
    # -----------------------------------------------------------------

    def _step_export(
        self,
        texts: Dict[str, str],
        options: GenerationOptions,
        output_dir: Path,
        report: GenerationReport,
    ) -> None:
        with Timer("export") as t:
            exporter: ModelExporter = ModelExporter(
                options,
                output_dir,
                atomic_writes=True,
                generate_manifest=self._generate_manifest,
            )
            export_result: ExportResult = exporter.export(texts)

        report.total_files = export_result.manifest.total_files
        report.total_bytes = export_result.manifest.total_bytes
        report.total_lines = export_result.manifest.total_lines
        report.export_errors.extend(export_result.errors)
        report.warnings.extend(export_result.warnings)
        report.manifest = export_result.manifest

        report.step_metrics.append(GenerationStepMetric(
            step_name="Export to Filesystem",
            success=export_result.success,
            elapsed_seconds=t.elapsed,
            detail=(
                f"{export_result.manifest.total_files} files, "
                f"{export_result.manifest.total_bytes:,} bytes"
            ),
        ))

    # -----------------------------------------------------------------
    # Internal: finalise report
    # -----------------------------------------------------------------

    def _finalise_report(self, report: GenerationReport, total_elapsed: float) -> GenerationReport:
        report.total_elapsed_seconds = total_elapsed
        report.success = not (
            report.input_errors or report.generation_errors or report.export_errors
        )
        return report


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ModelGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_schema_file",
    "parse_raw_schema",
    "apply_option_overrides",
]

logger.debug("ormgen.generator loaded.")
