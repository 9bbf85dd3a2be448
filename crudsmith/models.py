# File: crudsmith/models.py
"""
crudsmith - Core Data Models
=============================
Pydantic V2 models shared by the whole pipeline:
Field Spec / Migration Extraction → Relation Inference → Naming → Generators → Export.

Every generator receives the *same* instances of these models for one
entity, so names, types and relations can never drift between artifacts.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from crudsmith.utils import count_lines, is_identifier, sha256_hex, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudsmith.models")

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class CrudsmithError(Exception):
    """Base class for every error raised on purpose by crudsmith."""


class ConfigError(CrudsmithError):
    """The configuration file is missing, unreadable, or invalid."""


class MigrationDirectoryError(CrudsmithError):
    """The migration directory does not exist or holds no usable scripts."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ArtifactKind(str, Enum):
    """Every kind of artifact the generator can emit."""

    MODEL = "model"
    MIGRATION = "migration"
    CONTROLLER = "controller"
    SERVICE = "service"
    REPOSITORY = "repository"
    CREATE_REQUEST = "create_request"
    UPDATE_REQUEST = "update_request"
    TRANSFORMER = "transformer"
    POLICY = "policy"
    FACTORY = "factory"
    SEEDER = "seeder"
    ROUTES = "routes"


class RelationType(str, Enum):
    """Relation cardinalities understood by the generators."""

    BELONGS_TO = "belongs_to"
    BELONGS_TO_MANY = "belongs_to_many"


class WriteStatus(str, Enum):
    """Outcome of a single file-system operation."""

    WRITTEN = "written"
    SKIPPED = "skipped"
    APPENDED = "appended"
    ALREADY_PRESENT = "already_present"
    MISSING = "missing"


# ---------------------------------------------------------------------------
# Type vocabulary
# ---------------------------------------------------------------------------

KNOWN_TYPES: FrozenSet[str] = frozenset({
    "string", "char", "text", "email", "uuid",
    "integer", "big_integer", "small_integer", "tiny_integer", "foreign_id",
    "decimal", "float", "boolean",
    "date", "datetime", "time",
    "json", "array",
})

TYPE_ALIASES: Dict[str, str] = {
    "str": "string",
    "varchar": "string",
    "int": "integer",
    "bigint": "big_integer",
    "smallint": "small_integer",
    "bool": "boolean",
    "timestamp": "datetime",
    "date_time": "datetime",
    "double": "float",
    "numeric": "decimal",
    "long_text": "text",
    "medium_text": "text",
    "jsonb": "json",
}

AUTO_COLUMNS: FrozenSet[str] = frozenset({"id", "created_at", "updated_at", "deleted_at"})


def normalize_type(tag: str) -> str:
    """
    Map a raw type tag onto the canonical vocabulary.

    ``foreignId`` → ``foreign_id``, ``bool`` → ``boolean``. Unknown tags are
    snake-cased and kept; generators treat them as ``string``.
    """
    snake: str = to_snake_case(tag.strip())
    return TYPE_ALIASES.get(snake, snake)


# ---------------------------------------------------------------------------
# Mixin: shared model configuration
# ---------------------------------------------------------------------------

_SHARED_CONFIG: ConfigDict = ConfigDict(
    strict=False,
    populate_by_name=True,
    validate_assignment=True,
    use_enum_values=False,
    frozen=False,
    extra="forbid",
)

_FROZEN_CONFIG: ConfigDict = ConfigDict(**{**_SHARED_CONFIG, "frozen": True})


# ---------------------------------------------------------------------------
# Field model
# ---------------------------------------------------------------------------


class ForeignRef(BaseModel):
    """The entity/table a foreign-key field points at."""

    model_config = _FROZEN_CONFIG

    related_entity: str = Field(..., min_length=1, description="Pascal-case entity name.")
    related_table: str = Field(..., min_length=1, description="Snake-case plural table name.")

    def __repr__(self) -> str:
        return f"<ForeignRef {self.related_entity} ({self.related_table})>"


class FieldSpec(BaseModel):
    """
    One column/attribute of the target entity.

    Instances are immutable and hashable so field lists can be deduplicated
    by value.
    """

    model_config = _FROZEN_CONFIG

    name: str = Field(..., min_length=1, description="Column name.")
    type: str = Field(..., min_length=1, description="Canonical type tag.")
    nullable: bool = Field(default=False, description="Column accepts NULL.")
    unique: bool = Field(default=False, description="Column carries a UNIQUE constraint.")
    indexed: bool = Field(default=False, description="Column gets a single-column index.")
    length: Optional[int] = Field(default=None, ge=1, description="Max length for strings.")
    precision: Optional[int] = Field(default=None, ge=1, description="Precision for decimals.")
    default: Optional[str] = Field(
        default=None, description="Raw default literal, typed at emission time."
    )
    foreign: Optional[ForeignRef] = Field(
        default=None, description="Foreign-key target, when the field references one."
    )

    @field_validator("name")
    @classmethod
    def _valid_identifier(cls, v: str) -> str:
        if not is_identifier(v):
            raise ValueError(f"Field name '{v}' is not a valid identifier.")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip():
            return normalize_type(v)
        return v

    @property
    def effective_type(self) -> str:
        """Type tag every generator switches on (unknown tags read as ``string``)."""
        return self.type if self.type in KNOWN_TYPES else "string"

    def __repr__(self) -> str:
        null_flag: str = " NULL" if self.nullable else ""
        fk: str = f" → {self.foreign.related_table}" if self.foreign else ""
        return f"<Field {self.name} {self.type}{null_flag}{fk}>"


class RelationHint(BaseModel):
    """A relation the entity exposes: ``belongs_to`` or ``belongs_to_many``."""

    model_config = _FROZEN_CONFIG

    type: RelationType = Field(..., description="Relation cardinality.")
    related: str = Field(..., min_length=1, description="Related entity (Pascal case).")
    through: Optional[str] = Field(
        default=None, description="Pivot table for belongs_to_many."
    )
    foreign_key: Optional[str] = Field(
        default=None, description="Local column for belongs_to."
    )

    @model_validator(mode="after")
    def _check_shape(self) -> "RelationHint":
        if self.type == RelationType.BELONGS_TO_MANY and not self.through:
            raise ValueError(
                f"belongs_to_many relation to '{self.related}' needs a pivot table."
            )
        return self

    def __repr__(self) -> str:
        via: str = f" via {self.through}" if self.through else ""
        return f"<RelationHint {self.type.value} {self.related}{via}>"


class ExtractedTable(BaseModel):
    """What the migration extractor recovers from one schema script."""

    model_config = _SHARED_CONFIG

    table: str = Field(..., min_length=1, description="Table name in the script.")
    entity: str = Field(..., min_length=1, description="Pascal singular entity name.")
    fields: List[FieldSpec] = Field(default_factory=list)
    relations: List[RelationHint] = Field(default_factory=list)
    source_file: Optional[str] = Field(default=None, description="Script path.")

    @computed_field  # type: ignore[misc]
    @property
    def foreign_count(self) -> int:
        return sum(1 for r in self.relations if r.type == RelationType.BELONGS_TO)

    def __repr__(self) -> str:
        return f"<ExtractedTable {self.table}: {len(self.fields)} fields>"


# ---------------------------------------------------------------------------
# Naming bundle
# ---------------------------------------------------------------------------


class EntityNaming(BaseModel):
    """Every lexical form of one entity name, derived once per run."""

    model_config = _FROZEN_CONFIG

    base: str = Field(..., min_length=1, description="Pascal singular, e.g. BlogPost.")
    plural: str = Field(..., min_length=1, description="Pascal plural, e.g. BlogPosts.")
    snake: str = Field(..., min_length=1, description="blog_post")
    snake_plural: str = Field(..., min_length=1, description="blog_posts (table name)")
    camel: str = Field(..., min_length=1, description="blogPost")
    camel_plural: str = Field(..., min_length=1, description="blogPosts")
    kebab_plural: str = Field(..., min_length=1, description="blog-posts (URL segment)")
    title_plural: str = Field(..., min_length=1, description="Blog Posts (OpenAPI tag)")
    table: str = Field(..., min_length=1, description="Database table, normally snake_plural.")

    def __repr__(self) -> str:
        return f"<EntityNaming {self.base} ({self.snake_plural})>"


# ---------------------------------------------------------------------------
# Generation Configuration
# ---------------------------------------------------------------------------

DEFAULT_PATHS: Dict[str, str] = {
    ArtifactKind.MODEL.value: "app/models",
    ArtifactKind.MIGRATION.value: "migrations/versions",
    ArtifactKind.CONTROLLER.value: "app/routers",
    ArtifactKind.SERVICE.value: "app/services",
    ArtifactKind.REPOSITORY.value: "app/repositories",
    ArtifactKind.CREATE_REQUEST.value: "app/requests",
    ArtifactKind.UPDATE_REQUEST.value: "app/requests",
    ArtifactKind.TRANSFORMER.value: "app/transformers",
    ArtifactKind.POLICY.value: "app/policies",
    ArtifactKind.FACTORY.value: "database/factories",
    ArtifactKind.SEEDER.value: "database/seeders",
    ArtifactKind.ROUTES.value: "app/routes",
}

DEFAULT_IGNORE_TABLES: List[str] = [
    "alembic_version",
    "jobs",
    "failed_jobs",
    "job_batches",
    "sessions",
    "cache",
    "cache_locks",
    "password_reset_tokens",
    "personal_access_tokens",
    "migrations",
    "audits",
    "activity_log",
]


def _path_to_module(path: str) -> str:
    return path.strip("/").replace("/", ".")


class GenerationConfig(BaseModel):
    """
    Resolved option set for one invocation.

    Built once from defaults, the optional config file and CLI overrides,
    then handed unchanged to every generator.
    """

    model_config = _FROZEN_CONFIG

    # -- Layout -------------------------------------------------------------
    paths: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_PATHS),
        description="Output directory per artifact kind.",
    )
    modules: Dict[str, str] = Field(
        default_factory=dict,
        description="Dotted import root per artifact kind (derived from paths when absent).",
    )

    # -- Listing ------------------------------------------------------------
    default_pagination: int = Field(default=15, ge=1, description="Default page size.")
    max_pagination: int = Field(default=100, ge=1, description="Largest page size accepted.")

    # -- Entity shape -------------------------------------------------------
    soft_deletes: bool = Field(default=False, description="Add a deleted_at column.")
    uuid: bool = Field(default=False, description="Opaque UUID primary keys.")
    timestamps: bool = Field(default=True, description="Add created_at/updated_at.")

    # -- Layers -------------------------------------------------------------
    use_repository: bool = Field(default=True, description="Generate a repository layer.")
    add_routes: bool = Field(default=True, description="Append a route registration block.")
    api: bool = Field(default=True, description="API controller flavour (web when False).")
    database_module: str = Field(
        default="app.database",
        description="Module of the generated app exposing Base and get_db.",
    )

    # -- Writing ------------------------------------------------------------
    force: bool = Field(default=False, description="Overwrite existing files.")
    ignore_tables: List[str] = Field(
        default_factory=lambda: list(DEFAULT_IGNORE_TABLES),
        description="System tables the migration extractor skips.",
    )
    migration_timestamp: datetime = Field(
        default_factory=datetime.now,
        description="Timestamp embedded in migration filenames and revisions.",
    )

    @field_validator("paths", mode="before")
    @classmethod
    def _merge_default_paths(cls, v: Any) -> Any:
        if isinstance(v, dict):
            merged: Dict[str, Any] = dict(DEFAULT_PATHS)
            merged.update({_kind_key(k): p for k, p in v.items()})
            return merged
        return v

    @field_validator("modules", mode="before")
    @classmethod
    def _normalize_module_keys(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {_kind_key(k): m for k, m in v.items()}
        return v

    @model_validator(mode="after")
    def _validate_pagination(self) -> "GenerationConfig":
        if self.default_pagination > self.max_pagination:
            raise ValueError(
                f"default_pagination ({self.default_pagination}) must be "
                f"<= max_pagination ({self.max_pagination})."
            )
        return self

    # -- Helpers ------------------------------------------------------------

    def path_for(self, kind: ArtifactKind) -> str:
        """Output directory for *kind*, without a trailing slash."""
        return self.paths.get(kind.value, DEFAULT_PATHS[kind.value]).rstrip("/")

    def module_for(self, kind: ArtifactKind) -> str:
        """Dotted import root for *kind* (``app.models`` …)."""
        explicit: Optional[str] = self.modules.get(kind.value)
        if explicit:
            return explicit
        return _path_to_module(self.path_for(kind))

    def with_overrides(self, **changes: Any) -> "GenerationConfig":
        """Return a validated copy with *changes* applied (never mutates self)."""
        data: Dict[str, Any] = self.model_dump()
        data.update(changes)
        return GenerationConfig.model_validate(data)


def _kind_key(key: Any) -> str:
    """Accept ``ArtifactKind`` members or their string values as dict keys."""
    value: str = key.value if isinstance(key, ArtifactKind) else str(key)
    try:
        return ArtifactKind(value).value
    except ValueError:
        raise ValueError(f"Unknown artifact kind '{value}'.") from None


# ---------------------------------------------------------------------------
# Generation Result
# ---------------------------------------------------------------------------


class GeneratedArtifact(BaseModel):
    """A single artifact produced by a generator (no I/O has happened yet)."""

    model_config = _SHARED_CONFIG

    kind: ArtifactKind = Field(..., description="Artifact kind.")
    path: str = Field(..., min_length=1, description="Path relative to the project root.")
    content: str = Field(..., description="Full file content, or the block to append.")
    append: bool = Field(default=False, description="Append to an existing file.")
    identifier: Optional[str] = Field(
        default=None,
        description="Marker whose presence means an append was already done.",
    )

    @computed_field  # type: ignore[misc]
    @property
    def line_count(self) -> int:
        return count_lines(self.content)

    @computed_field  # type: ignore[misc]
    @property
    def checksum(self) -> str:
        return sha256_hex(self.content)

    def __repr__(self) -> str:
        return f"<GeneratedArtifact {self.kind.value} {self.path}>"


class WriteOutcome(BaseModel):
    """What the exporter did with one artifact."""

    model_config = _FROZEN_CONFIG

    path: str
    status: WriteStatus

    @property
    def ok(self) -> bool:
        return self.status in {WriteStatus.WRITTEN, WriteStatus.APPENDED}

    def __repr__(self) -> str:
        return f"<WriteOutcome {self.status.value} {self.path}>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CrudsmithError",
    "ConfigError",
    "MigrationDirectoryError",
    "ArtifactKind",
    "RelationType",
    "WriteStatus",
    "KNOWN_TYPES",
    "TYPE_ALIASES",
    "AUTO_COLUMNS",
    "normalize_type",
    "ForeignRef",
    "FieldSpec",
    "RelationHint",
    "ExtractedTable",
    "EntityNaming",
    "DEFAULT_PATHS",
    "DEFAULT_IGNORE_TABLES",
    "GenerationConfig",
    "GeneratedArtifact",
    "WriteOutcome",
]

logger.debug("crudsmith.models loaded (%d public symbols).", len(__all__))
