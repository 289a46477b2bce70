# File: schemagen/cli.py
"""
schemagen - Command-Line Interface
==================================

CLI built with the standard-library ``argparse`` module.

Usage examples::

    # Basic generation
    schemagen --schema schema.yaml --output ./generated

    # Raw Prisma DMMF dump, one artifact set per schema-file domain
    schemagen -s dmmf.json -o ./libs --multi-domain -v

    # Render without writing, print the report as JSON
    schemagen -s schema.yaml -o ./generated --dry-run --json

Exit codes:
    0 - success
    2 - generation error
    3 - export error
    4 - input / configuration error
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from schemagen.errors import SchemaGenError, SchemaLoadError, UnconfiguredOutputError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemagen")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``schemagen`` logger.

    Args:
        verbosity: -1 = ERROR, 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity < 0:
        level = logging.ERROR
    elif verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    formatter: logging.Formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s", datefmt="%H:%M:%S"
    )
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("schemagen")
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from schemagen import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="schemagen",
        description=(
            "Generate Effect Schema + Kysely TypeScript types from a "
            "Prisma-style schema document (normalized JSON / YAML or DMMF)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -s schema.yaml -o ./generated\n"
            "  %(prog)s -s dmmf.json -o ./libs --multi-domain\n"
            "  %(prog)s -s schema.yaml -o ./generated --dry-run --json\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"schemagen v{__version__}",
    )
    parser.add_argument(
        "-s", "--schema",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the schema document (JSON or YAML).",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory. Overrides the document's generator output.",
    )

    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Render everything but don't write files to disk.",
    )
    mode_group.add_argument(
        "--json",
        dest="json_report",
        action="store_true",
        default=False,
        help="Print the generation report as JSON instead of text.",
    )

    config_group = parser.add_argument_group("configuration overrides")
    config_group.add_argument(
        "--multi-domain",
        action="store_true",
        default=None,
        help="Emit one artifact set per schema-file domain.",
    )
    config_group.add_argument(
        "--runtime-module",
        type=str,
        default=None,
        metavar="MODULE",
        help="Module providing columnType / generated / getSchemas.",
    )
    config_group.add_argument(
        "--clean",
        action="store_true",
        default=None,
        help="Clean the output directory before writing.",
    )

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
        help="Suppress all output except errors.",
    )

    return parser


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Build a config override dictionary from CLI arguments."""
    overrides: Dict[str, Any] = {}
    if args.output is not None:
        overrides["output"] = args.output
    if args.multi_domain:
        overrides["multi_file_domains"] = True
    if args.runtime_module is not None:
        overrides["runtime_module"] = args.runtime_module
    if args.clean:
        overrides["clean_output"] = True
    return overrides


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


def _run_generation(schema_path: Path, args: argparse.Namespace) -> int:
    """Run the full pipeline and return the exit code."""
    from schemagen.generator import GenerationReport, SchemaGenerator

    generator: SchemaGenerator = SchemaGenerator()
    try:
        report: GenerationReport = generator.generate_from_file(
            schema_path,
            _build_config_overrides(args),
            dry_run=args.dry_run,
        )
    except (FileNotFoundError, SchemaLoadError, UnconfiguredOutputError) as exc:
        logger.error("%s", exc)
        return EXIT_INPUT_ERROR
    except SchemaGenError as exc:
        logger.error("Generation failed: %s", exc)
        return EXIT_GENERATION_ERROR

    if args.json_report:
        print(json.dumps(report.to_dict(), indent=2))
    elif not args.quiet:
        print(report.summary())

    if report.export_errors:
        return EXIT_EXPORT_ERROR
    if not report.success:
        return EXIT_GENERATION_ERROR
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# Main entry points
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Parse *argv*, run generation and return the exit code.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    _setup_logging(-1 if args.quiet else args.verbose)

    schema_path: Path = Path(args.schema).resolve()
    if not schema_path.is_file():
        logger.error("Schema file not found: %s", schema_path)
        return EXIT_INPUT_ERROR

    logger.info("Schema:  %s", schema_path)
    logger.info("Output:  %s", args.output or "(from document)")

    exit_code: int = _run_generation(schema_path, args)
    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    return exit_code


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Console-script entry point; exits with the code returned by ``main``."""
    sys.exit(main(argv))


__all__: List[str] = [
    "main",
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("schemagen.cli loaded.")
