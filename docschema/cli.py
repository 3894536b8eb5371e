# File: docschema/cli.py
"""
docschema - Command-Line Interface
==================================

Offline CLI built with the standard-library ``argparse`` module.  It runs
the pipeline over recorded sample documents; live containers are wired up
programmatically through ``SchemaGenerator.generate()``.

Usage examples::

    # Generate schema.graphql + manifest.json
    docschema -c docschema.yaml -s samples.json -o ./schema

    # Validate the config only
    docschema -c docschema.yaml --validate-only

    # Run everything, print the SDL, write nothing
    docschema -c docschema.yaml -s samples.json --dry-run

Exit codes:
    0 — success
    1 — validation error
    2 — generation error
    3 — export error
    4 — input/argument error
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

from docschema.errors import ConfigurationError

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("docschema")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_EXPORT_ERROR: int = 3
EXIT_INPUT_ERROR: int = 4


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the ``docschema`` logger.

    Args:
        verbosity: 0 = WARNING, 1 = INFO, 2+ = DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler: logging.StreamHandler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    fmt: str = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
    formatter: logging.Formatter = logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler.setFormatter(formatter)

    root_logger: logging.Logger = logging.getLogger("docschema")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    from docschema import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="docschema",
        description=(
            "docschema — GraphQL schema inference for document stores.\n\n"
            "Infers types from sampled documents and emits the complete SDL:\n"
            "output types, operation inputs, payloads and batch variants."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  %(prog)s -c docschema.yaml -s samples.json -o ./schema\n"
            "  %(prog)s -c docschema.yaml --validate-only\n"
            "  %(prog)s -c docschema.yaml -s samples.json --dry-run\n"
        ),
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"docschema v{__version__}",
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        required=True,
        metavar="PATH",
        help="Path to the configuration file (JSON or YAML).",
    )
    parser.add_argument(
        "-s", "--samples",
        type=str,
        default=None,
        metavar="PATH",
        help=(
            "Recorded sample documents (JSON or YAML): a list, or a mapping "
            "of container name to list. Required unless --validate-only is set."
        ),
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        metavar="DIR",
        help="Output directory for schema.graphql and manifest.json.",
    )

    mode_group = parser.add_argument_group("operation modes")
    mode_group.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Only validate the configuration.",
    )
    mode_group.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Run the full pipeline and print the SDL without writing files.",
    )

    behaviour_group = parser.add_argument_group("behaviour flags")
    behaviour_group.add_argument(
        "--no-strict",
        action="store_true",
        default=False,
        help="Continue even if validation has errors.",
    )
    behaviour_group.add_argument(
        "--fail-on-warnings",
        action="store_true",
        default=False,
        help="Treat validation warnings as errors.",
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


# ---------------------------------------------------------------------------
# Validate-only mode
# ---------------------------------------------------------------------------


def _run_validate_only(config_path: Path) -> int:
    from docschema.generator import load_config_file, parse_raw_config
    from docschema.utils import Timer
    from docschema.validators import validate_config

    try:
        config = parse_raw_config(load_config_file(config_path))
    except ConfigurationError as exc:
        logger.error("Failed to load config: %s", exc)
        return EXIT_INPUT_ERROR

    with Timer("validation") as t:
        result = validate_config(config)

    print(f"\n{'='*50}")
    print("  Config Validation Report")
    print(f"{'='*50}")
    print(f"  File:       {config_path.name}")
    print(f"  Containers: {len(config.containers)}")
    print(f"  Time:       {t.elapsed:.3f}s")
    print(f"  Valid:      {'Yes' if result.is_valid else 'No'}")

    if result.errors:
        print(f"\n  Errors ({len(result.errors)}):")
        for err in result.errors:
            print(f"    ✗ {err}")

    if result.warnings:
        print(f"\n  Warnings ({len(result.warnings)}):")
        for warn in result.warnings:
            print(f"    ⚠ {warn}")

    if result.is_valid and not result.warnings:
        print("\n  ✅ All validations passed!")

    print(f"{'='*50}\n")

    return EXIT_SUCCESS if result.is_valid else EXIT_VALIDATION_ERROR


# ---------------------------------------------------------------------------
# Full generation mode
# ---------------------------------------------------------------------------


def _run_generation(
    config_path: Path,
    samples_path: Path,
    output_dir: Optional[Path],
    args: argparse.Namespace,
) -> int:
    from docschema.generator import (
        GenerationReport,
        SchemaGenerator,
        load_config_file,
        load_samples_file,
        parse_raw_config,
    )

    try:
        config = parse_raw_config(load_config_file(config_path))
        samples = load_samples_file(samples_path)
    except ConfigurationError as exc:
        logger.error("Failed to load input: %s", exc)
        return EXIT_INPUT_ERROR

    generator: SchemaGenerator = SchemaGenerator(
        strict_validation=not args.no_strict,
        fail_on_warnings=args.fail_on_warnings,
    )
    report: GenerationReport = generator.generate_from_samples(
        samples, config, output_dir=None if args.dry_run else output_dir
    )

    if args.dry_run and report.sdl:
        print(report.sdl, end="")
    if not args.quiet:
        print(report.summary(), file=sys.stderr if args.dry_run else sys.stdout)

    if not report.success:
        if report.validation_errors:
            return EXIT_VALIDATION_ERROR
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

    Args:
        argv: Optional argument list (defaults to sys.argv[1:]).
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        _setup_logging(0)
        logging.getLogger("docschema").setLevel(logging.ERROR)
    else:
        _setup_logging(args.verbose)

    config_path: Path = Path(args.config).resolve()
    if not config_path.is_file():
        logger.error("Config file not found: %s", config_path)
        sys.exit(EXIT_INPUT_ERROR)

    if args.validate_only:
        sys.exit(_run_validate_only(config_path))

    if args.samples is None:
        logger.error("Sample documents are required for generation. Use -s/--samples.")
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    if args.output is None and not args.dry_run:
        logger.error(
            "Output directory is required for generation. "
            "Use -o/--output, --dry-run or --validate-only."
        )
        parser.print_usage(sys.stderr)
        sys.exit(EXIT_INPUT_ERROR)

    samples_path: Path = Path(args.samples).resolve()
    output_dir: Optional[Path] = Path(args.output).resolve() if args.output else None

    logger.info("Config:  %s", config_path)
    logger.info("Samples: %s", samples_path)
    logger.info("Output:  %s", output_dir if output_dir else "(dry run)")

    exit_code: int = _run_generation(config_path, samples_path, output_dir, args)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)

    sys.exit(exit_code)


def main() -> None:
    """Console-script entry point."""
    cli_main()


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "cli_main",
    "main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_EXPORT_ERROR",
    "EXIT_INPUT_ERROR",
]
