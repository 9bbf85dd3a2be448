# File: crudsmith/__init__.py
"""
crudsmith - CRUD Resource Generator
====================================

Turns a compact field spec (or the tables created by existing Alembic
migrations) into a consistent set of FastAPI + SQLAlchemy 2.0 artifacts
for one resource: model, migration, router, service, repository, request
validators, transformer, policy, factory, seeder and route registration.

Architecture overview::

    ┌──────────────┐     ┌────────────────┐     ┌──────────────────┐
    │  CLI / Entry │────▶│  CrudGenerator │────▶│    generators/   │
    │   (cli.py)   │     │ (generator.py) │     │ one per artifact │
    └──────────────┘     └───────┬────────┘     └──────────────────┘
                                 │
          ┌──────────┬───────────┼───────────┬───────────┐
          ▼          ▼           ▼           ▼           ▼
     ┌────────┐ ┌─────────┐ ┌─────────┐ ┌──────────┐ ┌───────────┐
     │ parser │ │extractor│ │relations│ │validators│ │ exporters │
     └────────┘ └─────────┘ └─────────┘ └──────────┘ └───────────┘

Usage::

    # As a library
    from crudsmith import CrudGenerator, resolve_config
    gen = CrudGenerator(resolve_config(), root=".")
    gen.generate_entity("BlogPost", "title:string:unique,body:text,author_id:integer")

    # From the command line
    crudsmith make BlogPost --fields "title:string:unique,body:text"
"""

from __future__ import annotations

__version__: str = "0.1.0"
__license__: str = "MIT"

from crudsmith.exporters import ArtifactExporter
from crudsmith.extractor import discover_scripts, extract, extract_file
from crudsmith.generator import (
    CrudGenerator,
    GenerationReport,
    load_config_file,
    resolve_config,
)
from crudsmith.models import (
    ArtifactKind,
    ConfigError,
    CrudsmithError,
    EntityNaming,
    ExtractedTable,
    FieldSpec,
    ForeignRef,
    GeneratedArtifact,
    GenerationConfig,
    MigrationDirectoryError,
    RelationHint,
    RelationType,
    WriteOutcome,
    WriteStatus,
)
from crudsmith.naming import derive_naming
from crudsmith.parser import parse_fields
from crudsmith.relations import build_relations, infer_pivots, relation_accessor
from crudsmith.utils import Timer
from crudsmith.validators import ValidationResult, validate_entity

# ---------------------------------------------------------------------------
# Public API surface
# ---------------------------------------------------------------------------

__all__: list[str] = [
    # Version info
    "__version__",
    "__license__",
    # Orchestrator
    "CrudGenerator",
    "GenerationReport",
    "load_config_file",
    "resolve_config",
    # Models
    "ArtifactKind",
    "EntityNaming",
    "ExtractedTable",
    "FieldSpec",
    "ForeignRef",
    "GeneratedArtifact",
    "GenerationConfig",
    "RelationHint",
    "RelationType",
    "WriteOutcome",
    "WriteStatus",
    # Errors
    "CrudsmithError",
    "ConfigError",
    "MigrationDirectoryError",
    # Pipeline stages
    "parse_fields",
    "extract",
    "extract_file",
    "discover_scripts",
    "build_relations",
    "infer_pivots",
    "relation_accessor",
    "derive_naming",
    "ArtifactExporter",
    # Validation
    "validate_entity",
    "ValidationResult",
    # Utilities
    "Timer",
]
