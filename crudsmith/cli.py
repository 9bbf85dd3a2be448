# File: crudsmith/cli.py
"""
crudsmith - Command-Line Interface
===================================

Thin ``argparse`` front-end over ``crudsmith.generator``.

Usage examples::

    # One resource from a field spec
    crudsmith make BlogPost --fields "title:string:unique,body:text,author_id:integer"

    # Soft deletes, UUID keys, web controller, no factory/seeder
    crudsmith make Invoice --fields "total:decimal" --soft-deletes --uuid \\
        --web --no-factory --no-seeder

    # One resource per table created by the existing migrations
    crudsmith from-migrations --path migrations/versions

    # Preview without touching the disk
    crudsmith make Tag --fields "name:string:unique" --dry-run -v

Exit codes:
    0 - success (skipped files included)
    1 - validation error
    2 - generation error
    4 - input error (bad config file, missing migration directory)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Sequence

from crudsmith.models import ArtifactKind, CrudsmithError, GenerationConfig

# ---------------------------------------------------------------------------
# Logger (configured in _setup_logging)
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudsmith")


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

EXIT_SUCCESS: int = 0
EXIT_VALIDATION_ERROR: int = 1
EXIT_GENERATION_ERROR: int = 2
EXIT_INPUT_ERROR: int = 4

# --no-<flag> switch per skippable artifact kind.
SKIP_FLAGS: Dict[str, ArtifactKind] = {
    "model": ArtifactKind.MODEL,
    "migration": ArtifactKind.MIGRATION,
    "controller": ArtifactKind.CONTROLLER,
    "service": ArtifactKind.SERVICE,
    "repository": ArtifactKind.REPOSITORY,
    "requests": ArtifactKind.CREATE_REQUEST,
    "transformer": ArtifactKind.TRANSFORMER,
    "policy": ArtifactKind.POLICY,
    "factory": ArtifactKind.FACTORY,
    "seeder": ArtifactKind.SEEDER,
    "routes": ArtifactKind.ROUTES,
}


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(verbosity: int) -> None:
    """
    Configure the root crudsmith logger based on verbosity level.

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
    datefmt: str = "%H:%M:%S"
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root_logger: logging.Logger = logging.getLogger("crudsmith")
    root_logger.setLevel(level)

    # Remove existing handlers to prevent duplication
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.propagate = False


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="FILE",
        help="YAML or JSON config file.",
    )
    parser.add_argument(
        "--root",
        type=str,
        default=".",
        metavar="DIR",
        help="Project root the artifact paths are relative to (default: .).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=None,
        help="Overwrite existing files and re-append routes.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        help="Report what would be written without touching the disk.",
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
        help="Suppress all output except the report.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    from crudsmith import __version__

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="crudsmith",
        description=(
            "crudsmith - CRUD resource generator.\n\n"
            "Generates the model, migration, router, service, repository, "
            "request validators, transformer, policy, factory and seeder of "
            "a FastAPI + SQLAlchemy resource from a compact field spec."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # --- make ---
    make = subparsers.add_parser(
        "make",
        help="Generate one resource.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Field spec:\n"
            "  name:type[:modifier...] joined by commas, e.g.\n"
            '  "title:string:unique,price:decimal:precision(8),author_id:foreign_id"\n'
        ),
    )
    make.add_argument("name", help="Entity name (BlogPost, blog_posts, blog-post ...).")
    make.add_argument(
        "--fields",
        type=str,
        default="",
        metavar="SPEC",
        help="Field spec string.",
    )

    skip_group = make.add_argument_group("artifact selection")
    for flag in SKIP_FLAGS:
        skip_group.add_argument(
            f"--no-{flag}",
            dest=f"no_{flag}",
            action="store_true",
            default=False,
            help=f"Do not generate the {flag}.",
        )

    shape_group = make.add_argument_group("configuration overrides")
    shape_group.add_argument(
        "--soft-deletes",
        action="store_true",
        default=None,
        help="Add a deleted_at column and soft-delete queries.",
    )
    shape_group.add_argument(
        "--uuid",
        action="store_true",
        default=None,
        help="Use UUID primary keys.",
    )
    shape_group.add_argument(
        "--web",
        action="store_true",
        default=False,
        help="Generate a web controller (303 redirects) instead of an API one.",
    )
    _add_common_arguments(make)

    # --- from-migrations ---
    batch = subparsers.add_parser(
        "from-migrations",
        help="Generate one resource per table created by existing migrations.",
    )
    batch.add_argument(
        "--path",
        type=str,
        default=None,
        metavar="DIR",
        help="Migration scripts directory (default: the configured migration path).",
    )
    batch.add_argument(
        "--web",
        action="store_true",
        default=False,
        help="Generate web controllers instead of API ones.",
    )
    _add_common_arguments(batch)

    return parser


# ---------------------------------------------------------------------------
# Config override builder
# ---------------------------------------------------------------------------


def _build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Config override dictionary from CLI arguments (unset flags omitted)."""
    overrides: Dict[str, Any] = {}
    if getattr(args, "soft_deletes", None):
        overrides["soft_deletes"] = True
    if getattr(args, "uuid", None):
        overrides["uuid"] = True
    if args.web:
        overrides["api"] = False
    if args.force:
        overrides["force"] = True
    if getattr(args, "no_routes", False):
        overrides["add_routes"] = False
    if getattr(args, "no_repository", False):
        overrides["use_repository"] = False
    return overrides


def _skipped_kinds(args: argparse.Namespace) -> List[ArtifactKind]:
    kinds: List[ArtifactKind] = []
    for flag, kind in SKIP_FLAGS.items():
        if getattr(args, f"no_{flag}", False):
            kinds.append(kind)
            if kind == ArtifactKind.CREATE_REQUEST:
                kinds.append(ArtifactKind.UPDATE_REQUEST)
    return kinds


def _load_config(args: argparse.Namespace) -> GenerationConfig:
    from crudsmith.generator import load_config_file, resolve_config

    file_data: Dict[str, Any] = {}
    if args.config:
        file_data = load_config_file(Path(args.config))
    return resolve_config(file_data, _build_config_overrides(args))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _exit_code(report: Any) -> int:
    if report.validation_errors:
        return EXIT_VALIDATION_ERROR
    if report.generation_errors:
        return EXIT_GENERATION_ERROR
    return EXIT_SUCCESS


def _run_make(args: argparse.Namespace) -> int:
    from crudsmith.generator import CrudGenerator, GenerationReport

    config: GenerationConfig = _load_config(args)
    generator: CrudGenerator = CrudGenerator(config, Path(args.root), dry_run=args.dry_run)
    if args.dry_run:
        logger.info("Dry-run mode: files will not be written to disk.")

    report: GenerationReport = generator.generate_entity(
        args.name,
        args.fields,
        skip=_skipped_kinds(args),
    )
    print(report.summary())
    return _exit_code(report)


def _run_from_migrations(args: argparse.Namespace) -> int:
    from crudsmith.generator import CrudGenerator, GenerationReport

    config: GenerationConfig = _load_config(args)
    root: Path = Path(args.root)
    directory: Path = (
        Path(args.path) if args.path else root / config.path_for(ArtifactKind.MIGRATION)
    )
    generator: CrudGenerator = CrudGenerator(config, root, dry_run=args.dry_run)

    report: GenerationReport = generator.generate_from_migrations(directory)
    print(report.summary())
    return _exit_code(report)


_COMMANDS = {
    "make": _run_make,
    "from-migrations": _run_from_migrations,
}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Run the CLI and return its exit code.

    Can be called directly for testing; ``cli_main`` wraps it with
    ``sys.exit``.
    """
    parser: argparse.ArgumentParser = _build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.quiet:
        verbosity: int = -1
        logging.disable(logging.CRITICAL)
    else:
        verbosity = args.verbose
    _setup_logging(verbosity)

    try:
        exit_code: int = _COMMANDS[args.command](args)
    except CrudsmithError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_INPUT_ERROR
    finally:
        if args.quiet:
            logging.disable(logging.NOTSET)

    if exit_code == EXIT_SUCCESS:
        logger.info("Generation completed successfully.")
    else:
        logger.error("Generation failed with exit code %d.", exit_code)
    return exit_code


def cli_main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    """Console-script entry point."""
    sys.exit(main(argv))


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "main",
    "cli_main",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_ERROR",
    "EXIT_GENERATION_ERROR",
    "EXIT_INPUT_ERROR",
]

logger.debug("crudsmith.cli loaded.")
