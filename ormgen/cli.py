# File: ormgen/cli.py
"""
ormgen - Command-Line Interface
================================
CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Generate TypeScript models next to the schema dump
    python -m ormgen --schema schema.json --output ./models

    # Class-based ES modules with camelCase properties, tab indentation
    python -m ormgen -s schema.yaml -o ./models -l esm --case-prop c --tabs

    # Print the generated sources instead of writing them
    python -m ormgen -s schema.yaml --dry-run

Exit codes:
    0: success
    2: generation error
    3: export error
    4: input or argument error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from ormgen.models import CaseOption, OutputLang

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("ormgen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4

_CASE_CHOICES: List[str] = [c.value for c in CaseOption]
_LANG_CHOICES: List[str] = [lang.value for lang in OutputLang]


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``ormgen`` logger.

    Args:
        verbosity: -1 = silent, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    elif verbosity == 0:
        level = logging.WARNING
    else:
        level = logging.CRITICAL + 1

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("ormgen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from ormgen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="ormgen",
        description=(
            "ormgen — Sequelize model generator.\n\n"
            "Turns an introspected database schema (JSON/YAML) into one "
            "Sequelize model source file per table."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s schema.json -o ./models\n"
            "  %(prog)s -s schema.yaml -o ./models -l esm --case-prop c\n"
            "  %(prog)s -s schema.yaml --dry-run\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    # --- Required inputs ---
    parser.add_argument(
        "-s", "--schema",
        required=True,
        metavar="PATH",
        help="Path to the introspected schema file (JSON or YAML).",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        metavar="DIR",
        help="Output directory for the generated model files.",
    )

    # --- Modes ---
    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Print the generated sources to stdout instead of writing files.",
    )
    mode_group.add_argument(
        "--no-manifest",
        action="store_true",
        default=False,
        help="Do not write manifest.json next to the models.",
    )

    # --- Option overrides ---
    config_group = parser.add_argument_group("generation options")
    config_group.add_argument(
        "--dialect",
        default=None,
        help="Source database dialect (postgres, mysql, mariadb, sqlite, mssql).",
    )
    config_group.add_argument(
        "-l", "--lang",
        choices=_LANG_CHOICES,
        default=None,
        help="Output language / module shape.",
    )
    config_group.add_argument(
        "--case-model",
        choices=_CASE_CHOICES,
        default=None,
        help="Case of model names: c=camel k=kebab l=lower_snake o=original p=Pascal u=UPPER.",
    )
    config_group.add_argument(
        "--case-prop",
        choices=_CASE_CHOICES,
        default=None,
        help="Case of property names.",
    )
    config_group.add_argument(
        "--case-file",
        choices=_CASE_CHOICES,
        default=None,
        help="Case of output file names.",
    )
    config_group.add_argument(
        "--indentation",
        type=int,
        default=None,
        metavar="N",
        help="Indentation units per level.",
    )
    config_group.add_argument(
        "--tabs",
        action="store_true",
        default=False,
        help="Indent with tabs instead of spaces.",
    )
    config_group.add_argument(
        "--singularize",
        action="store_true",
        default=False,
        help="Singularize model and file names.",
    )
    alias_group = config_group.add_mutually_exclusive_group()
    alias_group.add_argument(
        "--no-alias",
        dest="no_alias",
        action="store_const",
        const=True,
        default=None,
        help="Omit association aliases that match the derived model name (default).",
    )
    alias_group.add_argument(
        "--keep-alias",
        dest="no_alias",
        action="store_const",
        const=False,
        help="Write every association alias, even redundant ones.",
    )
    config_group.add_argument(
        "--db-schema",
        default=None,
        metavar="NAME",
        help="Schema name written into every model's options.",
    )
    config_group.add_argument(
        "-a", "--additional",
        default=None,
        metavar="PATH",
        help="JSON file with additional model options (timestamps, paranoid, ...).",
    )

    # --- Verbosity ---
    verbosity_group = parser.add_argument_group("verbosity")
    verbosity_group.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v for INFO, -vv for DEBUG).",
    )
    verbosity_group.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=False,
        help="Suppress all log output.",
    )

    return parser


# ---------------------------------------------------------------------------
# Option override builder
# ---------------------------------------------------------------------------


def _load_additional(path: Path) -> Dict[str, Any]:
    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Additional options in {path} must be a JSON object.")
    return data


def _build_option_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build an options override dictionary from CLI arguments.

    Raises:
        FileNotFoundError / ValueError: If the additional-options file is unusable.
    """
    overrides: Dict[str, Any] = {}

    if args.lang is not None:
        overrides["lang"] = args.lang
    if args.case_model is not None:
        overrides["case_model"] = args.case_model
    if args.case_prop is not None:
        overrides["case_prop"] = args.case_prop
    if args.case_file is not None:
        overrides["case_file"] = args.case_file
    if args.indentation is not None:
        overrides["indentation"] = args.indentation
    if args.tabs:
        overrides["spaces"] = False
    if args.singularize:
        overrides["singularize"] = True
    if args.no_alias is not None:
        overrides["no_alias"] = args.no_alias
    if args.db_schema is not None:
        overrides["schema_override"] = args.db_schema

    if args.additional is not None:
        additional_path: Path = Path(args.additional)
        if not additional_path.is_file():
            raise FileNotFoundError(f"Additional options file not found: {additional_path}")
        overrides["additional"] = _load_additional(additional_path)

    return overrides


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(
    schema_path: Path,
    output_dir: Optional[Path],
    overrides: Dict[str, Any],
    args: argparse.Namespace,
) -> int:
    """Run the pipeline and return the appropriate exit code."""
    from ormgen.generator import GenerationReport, ModelGenerator

    generator: ModelGenerator = ModelGenerator(generate_manifest=not args.no_manifest)
    report: GenerationReport = generator.generate_from_file(
        schema_path=schema_path,
        output_dir=output_dir,
        option_overrides=overrides or None,
        dialect_override=args.dialect,
    )

    if args.dry_run:
        for table, text in report.texts.items():
            print(f"// ---- {table} ----")
            print(text)

    if not args.quiet:
        print(report.summary(), file=sys.stderr if args.dry_run else sys.stdout)

    if not report.success:
        if report.input_errors:
            return EXIT_INPUT_ERROR
        if report.generation_errors:
            return EXIT_GENERATION_ERROR
        if report.export_errors:
            return EXIT_EXPORT_ERROR
        return EXIT_GENERATION_ERROR

    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """
    Main CLI entry point.

    Can be called from ``__main__.py`` or directly for testing.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    verbosity: int = -1 if args.quiet else args.verbose
    _setup_logging(verbosity)

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Schema file not found: %s", schema_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.output is None and not args.dry_run:
        logger.error("Output directory is required. Use -o/--output or --dry-run.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    try:
        overrides: Dict[str, Any] = _build_option_overrides(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        sys.exit(EXIT_INPUT_ERROR)

    output_dir: Optional[Path] = None if args.dry_run else Path(args.output).resolve()

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", output_dir or "(dry run)")

    exit_code: int = _run_generation(schema_path, output_dir, overrides, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("ormgen.cli loaded.")
