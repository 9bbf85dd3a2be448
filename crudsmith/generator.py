# File: crudsmith/generator.py
"""
crudsmith - Generation Pipeline (Orchestrator)
===============================================

Connects every phase together:

    Field Spec / Migrations → Relations → Validation → Generators → File Writer

The ``CrudGenerator`` class provides both a programmatic API and the
backend for the CLI.

Workflow (single entity)::

    1. Parse the field spec (or take a ready field list).
    2. Merge field-derived relations with explicitly supplied hints.
    3. Run the entity validators; errors abort this entity.
    4. Derive the naming bundle.
    5. Run every enabled artifact generator.
    6. Hand the artifacts to ``ArtifactExporter``.
    7. Record everything in a ``GenerationReport``.

Workflow (batch, from migrations)::

    1. Discover and extract every migration script.
    2. Infer pivot relations over the whole batch (barrier).
    3. Run the single-entity workflow per table, migration suppressed,
       with the table's relations threaded in explicitly.

Error handling strategy:
    - Validation errors are collected and surfaced, not swallowed.
    - Skipped writes and failed route appends are warnings; the run is
      still a success.
    - A missing or empty migration directory raises
      ``MigrationDirectoryError``.
    - A bad config file raises ``ConfigError``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from crudsmith.exporters import ArtifactExporter
from crudsmith.extractor import discover_scripts, extract_file
from crudsmith.generators import generator_for
from crudsmith.models import (
    ArtifactKind,
    ConfigError,
    EntityNaming,
    ExtractedTable,
    FieldSpec,
    GeneratedArtifact,
    GenerationConfig,
    MigrationDirectoryError,
    RelationHint,
    WriteOutcome,
    WriteStatus,
)
from crudsmith.naming import derive_naming
from crudsmith.parser import parse_fields
from crudsmith.relations import build_relations, infer_pivots
from crudsmith.utils import Timer
from crudsmith.validators import ValidationResult, validate_config, validate_entity

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudsmith.generator")

# Emission order; the repository precedes the service that wraps it.
ARTIFACT_ORDER: List[ArtifactKind] = [
    ArtifactKind.MODEL,
    ArtifactKind.MIGRATION,
    ArtifactKind.REPOSITORY,
    ArtifactKind.SERVICE,
    ArtifactKind.CREATE_REQUEST,
    ArtifactKind.UPDATE_REQUEST,
    ArtifactKind.TRANSFORMER,
    ArtifactKind.POLICY,
    ArtifactKind.CONTROLLER,
    ArtifactKind.FACTORY,
    ArtifactKind.SEEDER,
    ArtifactKind.ROUTES,
]

CONFIG_WRAPPER_KEY: str = "crudsmith"


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
    Report produced by ``CrudGenerator.generate_entity()`` and
    ``CrudGenerator.generate_from_migrations()``.

    A run succeeds when nothing failed validation or generation; skipped
    files and unregistered routes only add warnings.
    """

    success: bool = False
    root: str = ""
    dry_run: bool = False

    entities: List[str] = field(default_factory=list)
    artifacts: List[GeneratedArtifact] = field(default_factory=list)
    outcomes: List[WriteOutcome] = field(default_factory=list)
    total_elapsed_seconds: float = 0.0

    step_metrics: List[GenerationStepMetric] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)
    generation_errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped_scripts: List[str] = field(default_factory=list)

    @property
    def written(self) -> List[str]:
        return [o.path for o in self.outcomes if o.status == WriteStatus.WRITTEN]

    @property
    def skipped(self) -> List[str]:
        return [o.path for o in self.outcomes if o.status == WriteStatus.SKIPPED]

    @property
    def appended(self) -> List[str]:
        return [o.path for o in self.outcomes if o.status == WriteStatus.APPENDED]

    @property
    def total_lines(self) -> int:
        return sum(a.line_count for a in self.artifacts)

    def merge(self, other: "GenerationReport") -> None:
        """Fold a per-entity report into a batch report."""
        self.entities.extend(other.entities)
        self.artifacts.extend(other.artifacts)
        self.outcomes.extend(other.outcomes)
        self.step_metrics.extend(other.step_metrics)
        self.validation_errors.extend(other.validation_errors)
        self.validation_warnings.extend(other.validation_warnings)
        self.generation_errors.extend(other.generation_errors)
        self.warnings.extend(other.warnings)

    def finalise(self, elapsed: float) -> "GenerationReport":
        self.total_elapsed_seconds = elapsed
        self.success = not self.validation_errors and not self.generation_errors
        return self

    def summary(self) -> str:
        """Return a human-readable summary string."""
        lines: List[str] = []
        status: str = "✅ SUCCESS" if self.success else "❌ FAILED"
        if self.dry_run:
            status += " (dry run)"
        lines.append(f"{'='*60}")
        lines.append("  crudsmith - Generation Report")
        lines.append(f"{'='*60}")
        lines.append(f"  Status:           {status}")
        lines.append(f"  Root:             {self.root}")
        lines.append(f"  Entities:         {', '.join(self.entities) or '-'}")
        lines.append(f"  Files written:    {len(self.written)}")
        lines.append(f"  Files skipped:    {len(self.skipped)}")
        lines.append(f"  Routes appended:  {len(self.appended)}")
        lines.append(f"  Total lines:      {self.total_lines:,}")
        lines.append(f"  Total time:       {self.total_elapsed_seconds:.3f}s")
        lines.append(f"{'─'*60}")

        if self.step_metrics:
            lines.append("  Pipeline Steps:")
            for step in self.step_metrics:
                icon: str = "✓" if step.success else "✗"
                lines.append(
                    f"    {icon} {step.step_name:<28s} "
                    f"{step.elapsed_seconds:>7.3f}s  "
                    f"{step.detail}"
                )

        if self.validation_errors:
            lines.append(f"{'─'*60}")
            lines.append(f"  Validation Errors ({len(self.validation_errors)}):")
            for err in self.validation_errors:
                lines.append(f"    ✗ {err}")

        if self.validation_warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Validation Warnings ({len(self.validation_warnings)}):")
            for warn in self.validation_warnings:
                lines.append(f"    ⚠ {warn}")

        if self.generation_errors:
            lines.append(f"{'─'*60}")
            lines.append(f"  Generation Errors ({len(self.generation_errors)}):")
            for err in self.generation_errors:
                lines.append(f"    ✗ {err}")

        if self.warnings:
            lines.append(f"{'─'*60}")
            lines.append(f"  Warnings ({len(self.warnings)}):")
            for warn in self.warnings:
                lines.append(f"    ⚠ {warn}")

        if self.skipped_scripts:
            lines.append(f"{'─'*60}")
            lines.append(f"  Skipped Scripts ({len(self.skipped_scripts)}):")
            for script in self.skipped_scripts:
                lines.append(f"    ⊘ {script}")

        lines.append(f"{'='*60}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------


def _load_json_file(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc


def _load_yaml_file(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Load a configuration file (YAML or JSON).

    The options may sit at the top level or under a ``crudsmith:`` key.
    An empty file is an empty configuration.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        if path.suffix.lower() == ".json":
            data: Any = _load_json_file(path)
        else:
            data = _load_yaml_file(path)
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a mapping at top level of {path}, got {type(data).__name__}."
        )
    if CONFIG_WRAPPER_KEY in data:
        wrapped: Any = data[CONFIG_WRAPPER_KEY]
        if wrapped is None:
            return {}
        if not isinstance(wrapped, dict):
            raise ConfigError(f"'{CONFIG_WRAPPER_KEY}' in {path} must be a mapping.")
        data = wrapped

    logger.info("Loaded config file: %s (%d option(s)).", path, len(data))
    return data


def resolve_config(
    file_data: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> GenerationConfig:
    """
    Merge defaults ← *file_data* ← *overrides* into a ``GenerationConfig``.

    ``None`` override values are ignored so unset CLI flags leave the file
    value alone. ``paths`` and ``modules`` are merged key by key.

    Raises:
        ConfigError: If the merged options do not validate, or if the
            output paths or module names they describe are unusable.
    """
    merged: Dict[str, Any] = dict(file_data or {})
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key in ("paths", "modules") and isinstance(value, Mapping):
            merged[key] = {**dict(merged.get(key) or {}), **dict(value)}
        else:
            merged[key] = value

    try:
        config: GenerationConfig = GenerationConfig.model_validate(merged)
    except PydanticValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    result: ValidationResult = validate_config(config)
    if result.has_errors:
        raise ConfigError(f"Invalid configuration: {result.format_report()}")
    for warning in result.warnings:
        logger.warning("%s", warning)
    return config


# ---------------------------------------------------------------------------
# CrudGenerator - Master orchestrator
# ---------------------------------------------------------------------------


class CrudGenerator:
    """
    Master pipeline orchestrator.

    Usage::

        generator = CrudGenerator(resolve_config(), root=Path("."))

        report = generator.generate_entity(
            "BlogPost",
            "title:string:unique,body:text,author_id:integer",
        )

        report = generator.generate_from_migrations(Path("migrations/versions"))

        print(report.summary())

    The generator is reusable: create once, generate many entities.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        root: Union[str, Path] = ".",
        *,
        dry_run: bool = False,
    ) -> None:
        self._config: GenerationConfig = config or GenerationConfig()
        self._exporter: ArtifactExporter = ArtifactExporter(Path(root), dry_run=dry_run)
        logger.debug(
            "CrudGenerator initialised: root=%s, dry_run=%s.",
            self._exporter.root,
            dry_run,
        )

    @property
    def config(self) -> GenerationConfig:
        return self._config

    @property
    def root(self) -> Path:
        return self._exporter.root

    # -----------------------------------------------------------------
    # Artifact assembly (no I/O)
    # -----------------------------------------------------------------

    def enabled_kinds(self, skip: Iterable[ArtifactKind] = ()) -> List[ArtifactKind]:
        """Artifact kinds this run emits, in emission order."""
        skipped = set(skip)
        kinds: List[ArtifactKind] = []
        for kind in ARTIFACT_ORDER:
            if kind in skipped:
                continue
            if kind == ArtifactKind.REPOSITORY and not self._config.use_repository:
                continue
            if kind == ArtifactKind.ROUTES and not self._config.add_routes:
                continue
            kinds.append(kind)
        return kinds

    def build_artifacts(
        self,
        naming: EntityNaming,
        fields: Sequence[FieldSpec],
        relations: Sequence[RelationHint],
        skip: Iterable[ArtifactKind] = (),
    ) -> List[GeneratedArtifact]:
        """Run every enabled generator over the same inputs."""
        artifacts: List[GeneratedArtifact] = []
        for kind in self.enabled_kinds(skip):
            generator_cls = generator_for(kind, self._config)
            artifacts.append(
                generator_cls(naming, fields, relations, self._config).generate()
            )
        return artifacts

    # -----------------------------------------------------------------
    # Public: single entity
    # -----------------------------------------------------------------

    def generate_entity(
        self,
        name: str,
        fields: Union[str, Sequence[FieldSpec], None] = None,
        relations: Optional[Sequence[RelationHint]] = None,
        skip: Iterable[ArtifactKind] = (),
        table: Optional[str] = None,
    ) -> GenerationReport:
        """
        Generate and write every artifact of one entity.

        Args:
            name: Entity name in any casing (``blog_posts``, ``BlogPost`` …).
            fields: Field spec string, or an already built field list.
            relations: Extra relation hints, merged after the field-derived ones.
            skip: Artifact kinds not to emit.
            table: Database table name, when it differs from the
                   snake plural of *name*.

        Returns:
            GenerationReport for this entity.
        """
        pipeline_start: float = time.perf_counter()
        report: GenerationReport = GenerationReport(
            root=str(self.root), dry_run=self._exporter.dry_run
        )

        field_list: List[FieldSpec] = (
            parse_fields(fields) if fields is None or isinstance(fields, str) else list(fields)
        )
        hints: List[RelationHint] = build_relations(field_list, relations)

        # --- Step: Validation ---
        with Timer(f"validate {name}") as t_validate:
            result: ValidationResult = validate_entity(name, field_list, hints, self._config)
        report.validation_errors.extend(f"{name}: {e}" for e in result.errors)
        report.validation_warnings.extend(f"{name}: {w}" for w in result.warnings)
        report.step_metrics.append(GenerationStepMetric(
            step_name=f"Validate {name}",
            success=result.is_valid,
            elapsed_seconds=t_validate.elapsed,
            detail=f"{result.error_count} error(s), {result.warning_count} warning(s)",
        ))
        if not result.is_valid:
            for err in result.errors:
                logger.error("  ✗ %s", err)
            return report.finalise(time.perf_counter() - pipeline_start)

        # --- Step: Code generation ---
        naming: EntityNaming = derive_naming(name, table)
        report.entities.append(naming.base)
        with Timer(f"generate {naming.base}") as t_generate:
            try:
                artifacts: List[GeneratedArtifact] = self.build_artifacts(
                    naming, field_list, hints, skip
                )
            except ValueError as exc:
                error_msg: str = f"{naming.base}: {type(exc).__name__}: {exc}"
                report.generation_errors.append(error_msg)
                logger.error(error_msg, exc_info=True)
                artifacts = []
        report.artifacts.extend(artifacts)
        report.step_metrics.append(GenerationStepMetric(
            step_name=f"Generate {naming.base}",
            success=not report.generation_errors,
            elapsed_seconds=t_generate.elapsed,
            detail=f"{len(artifacts)} artifact(s)",
        ))
        if report.generation_errors:
            return report.finalise(time.perf_counter() - pipeline_start)

        # --- Step: Export ---
        with Timer(f"export {naming.base}") as t_export:
            for artifact in artifacts:
                outcome: WriteOutcome = self._exporter.export(artifact, force=self._config.force)
                report.outcomes.append(outcome)
                warning: Optional[str] = _outcome_warning(outcome)
                if warning:
                    report.warnings.append(warning)
        report.step_metrics.append(GenerationStepMetric(
            step_name=f"Export {naming.base}",
            success=True,
            elapsed_seconds=t_export.elapsed,
            detail=(
                f"{sum(1 for o in report.outcomes if o.ok)} written, "
                f"{len(report.warnings)} warning(s)"
            ),
        ))

        logger.info(
            "Generated %s: %d artifact(s), %d warning(s).",
            naming.base,
            len(artifacts),
            len(report.warnings),
        )
        return report.finalise(time.perf_counter() - pipeline_start)

    # -----------------------------------------------------------------
    # Public: batch from migrations
    # -----------------------------------------------------------------

    def extract_tables(self, directory: Path) -> List[ExtractedTable]:
        """
        Extract every usable migration script under *directory*.

        Raises:
            MigrationDirectoryError: If *directory* is missing or holds no
                usable script.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise MigrationDirectoryError(f"Migration directory not found: {directory}")

        tables: List[ExtractedTable] = []
        for script in discover_scripts(directory):
            extracted: Optional[ExtractedTable] = extract_file(
                script, self._config.ignore_tables
            )
            if extracted is not None:
                tables.append(extracted)

        if not tables:
            raise MigrationDirectoryError(f"No usable migration scripts in {directory}.")
        return tables

    def generate_from_migrations(self, directory: Path) -> GenerationReport:
        """
        Generate one entity per table created by the scripts in *directory*.

        Every script is extracted before pivot inference runs. The
        migration artifact is never emitted: the scripts already exist.

        Raises:
            MigrationDirectoryError: If *directory* is missing or holds no
                usable script.
        """
        pipeline_start: float = time.perf_counter()
        report: GenerationReport = GenerationReport(
            root=str(self.root), dry_run=self._exporter.dry_run
        )

        with Timer("extract migrations") as t_extract:
            tables: List[ExtractedTable] = self.extract_tables(directory)
            pivots: Dict[str, List[RelationHint]] = infer_pivots(tables)
        report.step_metrics.append(GenerationStepMetric(
            step_name="Extract Migrations",
            success=True,
            elapsed_seconds=t_extract.elapsed,
            detail=f"{len(tables)} table(s), {len(pivots)} with pivots",
        ))
        extracted_sources = {t.source_file for t in tables}
        report.skipped_scripts.extend(
            str(p) for p in discover_scripts(Path(directory)) if str(p) not in extracted_sources
        )

        for table in tables:
            hints: List[RelationHint] = [*table.relations, *pivots.get(table.entity, [])]
            entity_report: GenerationReport = self.generate_entity(
                table.entity,
                table.fields,
                relations=hints,
                skip=(ArtifactKind.MIGRATION,),
                table=table.table,
            )
            report.merge(entity_report)

        logger.info(
            "Batch complete: %d table(s), %d file(s) written.",
            len(tables),
            len(report.written),
        )
        return report.finalise(time.perf_counter() - pipeline_start)


def _outcome_warning(outcome: WriteOutcome) -> Optional[str]:
    if outcome.status == WriteStatus.SKIPPED:
        return f"{outcome.path} exists, skipped (use --force to overwrite)."
    if outcome.status == WriteStatus.MISSING:
        return f"{outcome.path} not found, routes not registered."
    if outcome.status == WriteStatus.ALREADY_PRESENT:
        return f"{outcome.path} already registers these routes."
    return None


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ARTIFACT_ORDER",
    "CrudGenerator",
    "GenerationReport",
    "GenerationStepMetric",
    "load_config_file",
    "resolve_config",
]

logger.debug("crudsmith.generator loaded (%d public symbols).", len(__all__))
