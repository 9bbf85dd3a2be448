# File: crudsmith/validators.py
"""
crudsmith - Field, Relation & Configuration Validators
=======================================================
Semantic checks that run before anything is generated.

Pydantic already guarantees structural correctness of each ``FieldSpec``
(non-empty name and type, identifier-shaped name). This module adds what
only makes sense for the *generated* code: names that would collide with
automatic columns, Python keywords or framework attributes, unknown type
tags, relations pointing nowhere, and configuration sanity checks.

Errors abort generation of the entity; warnings are reported and the run
carries on.

Usage by downstream modules:
    from crudsmith.validators import validate_entity
    result = validate_entity("BlogPost", fields, relations, config)
    if not result.is_valid:
        ...
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Set

from crudsmith.models import (
    AUTO_COLUMNS,
    KNOWN_TYPES,
    ArtifactKind,
    FieldSpec,
    GenerationConfig,
    RelationHint,
    RelationType,
)
from crudsmith.relations import relation_accessor
from crudsmith.utils import PYTHON_KEYWORDS, to_snake_case

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("crudsmith.validators")

# ---------------------------------------------------------------------------
# Validation result container
# ---------------------------------------------------------------------------


class ValidationError:
    """Lightweight error descriptor (no Pydantic overhead)."""

    __slots__ = ("level", "code", "message", "context")

    def __init__(
        self,
        level: str,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.level: str = level  # "error" | "warning" | "info"
        self.code: str = code
        self.message: str = message
        self.context: Dict[str, Any] = context or {}

    @property
    def is_error(self) -> bool:
        return self.level == "error"

    @property
    def is_warning(self) -> bool:
        return self.level == "warning"

    def __repr__(self) -> str:
        return f"[{self.level.upper()}] {self.code}: {self.message}"

    def __str__(self) -> str:
        return self.__repr__()


class ValidationResult:
    """Accumulates ``ValidationError`` instances produced by the checks."""

    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: List[ValidationError] = []

    # -- Mutation -----------------------------------------------------------

    def add_error(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("error", code, message, context))

    def add_warning(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("warning", code, message, context))

    def add_info(
        self,
        code: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._items.append(ValidationError("info", code, message, context))

    def merge(self, other: "ValidationResult") -> None:
        self._items.extend(other._items)

    # -- Query --------------------------------------------------------------

    @property
    def errors(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_error]

    @property
    def warnings(self) -> List[ValidationError]:
        return [e for e in self._items if e.is_warning]

    @property
    def all_items(self) -> List[ValidationError]:
        return list(self._items)

    @property
    def has_errors(self) -> bool:
        return any(e.is_error for e in self._items)

    @property
    def error_count(self) -> int:
        return sum(1 for e in self._items if e.is_error)

    @property
    def warning_count(self) -> int:
        return sum(1 for e in self._items if e.is_warning)

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    def codes(self) -> Set[str]:
        return {e.code for e in self._items}

    def summary(self) -> str:
        return (
            f"Validation: {self.error_count} error(s), "
            f"{self.warning_count} warning(s), "
            f"{len(self._items)} total item(s)."
        )

    def __repr__(self) -> str:
        return f"<ValidationResult {self.summary()}>"

    def __bool__(self) -> bool:
        """Truthy when there are NO errors (i.e. valid)."""
        return self.is_valid

    def __len__(self) -> int:
        return len(self._items)

    def format_report(self, include_info: bool = False) -> str:
        """Human-readable multi-line report."""
        lines: List[str] = [self.summary(), ""]
        for item in self._items:
            if not include_info and item.level == "info":
                continue
            prefix: str = {
                "error": "❌",
                "warning": "⚠️",
                "info": "ℹ️",
            }.get(item.level, "•")
            lines.append(f"  {prefix} [{item.code}] {item.message}")
            if item.context:
                for k, v in item.context.items():
                    lines.append(f"       {k}: {v}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Name tables
# ---------------------------------------------------------------------------

_SNAKE_CASE_RE: re.Pattern[str] = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")
_PASCAL_CASE_RE: re.Pattern[str] = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_DOTTED_MODULE_RE: re.Pattern[str] = re.compile(
    r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$"
)

# Attributes the generated entity and request classes define themselves,
# or that SQLAlchemy's declarative base reserves.
_RESERVED_ATTRIBUTES: FrozenSet[str] = frozenset({
    "metadata",
    "registry",
    "fill",
    "check_constraints",
})

# Names imported at module level by the generated entity/request modules.
_SHADOWING_NAMES: FrozenSet[str] = frozenset({
    "date", "datetime", "time", "uuid", "Decimal", "func",
    "List", "Optional", "Any", "Dict", "Field", "ConfigDict",
})

# Pydantic reserves the ``model_`` namespace on BaseModel subclasses.
_PYDANTIC_PROTECTED_PREFIX: str = "model_"


# ---------------------------------------------------------------------------
# Individual validation functions
# ---------------------------------------------------------------------------


def validate_entity_name(name: str) -> ValidationResult:
    """
    The entity name must produce a usable class name.

    Any casing is accepted (``blog_posts``, ``BlogPost`` …); the check is
    that something is left after normalisation and that the result does
    not start with a digit.
    """
    result: ValidationResult = ValidationResult()
    snake: str = to_snake_case(name or "")
    if not snake:
        result.add_error(
            "ENTITY_NAME_EMPTY",
            f"Entity name '{name}' contains no letters or digits.",
            {"entity": name},
        )
    elif snake[0].isdigit():
        result.add_error(
            "ENTITY_NAME_INVALID",
            f"Entity name '{name}' starts with a digit.",
            {"entity": name},
        )
    elif snake in PYTHON_KEYWORDS:
        result.add_error(
            "ENTITY_NAME_PYTHON_RESERVED",
            f"Entity name '{name}' clashes with a Python keyword.",
            {"entity": name},
        )
    return result


def validate_fields(fields: Sequence[FieldSpec]) -> ValidationResult:
    """
    Validate field names and type tags.

    Errors:
        - name of an automatic column (``id``, ``created_at`` …)
        - Python keyword
        - attribute reserved by the generated classes or the ORM base
        - duplicate name (the parser drops duplicates, hand-built lists may not)

    Warnings:
        - name not snake_case
        - name shadowing a module-level import of the generated code
        - name in Pydantic's protected ``model_`` namespace
        - type tag outside the known vocabulary (treated as ``string``)

    Complexity: O(F).
    """
    result: ValidationResult = ValidationResult()
    seen: Set[str] = set()

    for field in fields:
        name: str = field.name
        ctx: Dict[str, Any] = {"field": name}

        if name in seen:
            result.add_error(
                "DUPLICATE_FIELD_NAME",
                f"Field '{name}' is declared more than once.",
                ctx,
            )
        seen.add(name)

        if name in AUTO_COLUMNS:
            result.add_error(
                "FIELD_NAME_RESERVED",
                f"Field '{name}' collides with an automatic column.",
                ctx,
            )
            continue

        if name in PYTHON_KEYWORDS:
            result.add_error(
                "FIELD_NAME_PYTHON_RESERVED",
                f"Field '{name}' is a Python keyword.",
                ctx,
            )
            continue

        if name in _RESERVED_ATTRIBUTES:
            result.add_error(
                "FIELD_NAME_ATTRIBUTE_CLASH",
                f"Field '{name}' collides with an attribute of the generated classes.",
                ctx,
            )

        if not _SNAKE_CASE_RE.match(name):
            result.add_warning(
                "FIELD_NAME_NOT_SNAKE_CASE",
                f"Field '{name}' is not snake_case.",
                ctx,
            )

        if name in _SHADOWING_NAMES:
            result.add_warning(
                "FIELD_NAME_SHADOWS_IMPORT",
                f"Field '{name}' shadows an imported name in the generated modules.",
                ctx,
            )

        if name.startswith(_PYDANTIC_PROTECTED_PREFIX):
            result.add_warning(
                "FIELD_NAME_PROTECTED_NAMESPACE",
                f"Field '{name}' uses Pydantic's protected 'model_' prefix.",
                ctx,
            )

        if field.type not in KNOWN_TYPES:
            result.add_warning(
                "UNKNOWN_FIELD_TYPE",
                f"Field '{name}' has unknown type '{field.type}'; it is generated as a string.",
                {"field": name, "type": field.type},
            )

    return result


def validate_relations(
    relations: Sequence[RelationHint],
    fields: Sequence[FieldSpec],
) -> ValidationResult:
    """
    Validate relation hints against the field list.

    - ``related`` must be a Pascal-case entity name (error).
    - a ``belongs_to`` whose ``foreign_key`` is not a declared field is
      still generated on the entity but has no column to join on (warning).
    - two relations sharing one accessor: only the first is kept (warning).

    Complexity: O(R + F).
    """
    result: ValidationResult = ValidationResult()
    field_names: Set[str] = {f.name for f in fields}
    taken: Set[str] = set(field_names) | set(AUTO_COLUMNS)

    for hint in relations:
        ctx: Dict[str, Any] = {"relation": repr(hint)}

        if not _PASCAL_CASE_RE.match(hint.related):
            result.add_error(
                "RELATION_TARGET_INVALID",
                f"Related entity '{hint.related}' is not a Pascal-case class name.",
                ctx,
            )
            continue

        if (
            hint.type == RelationType.BELONGS_TO
            and hint.foreign_key
            and hint.foreign_key not in field_names
        ):
            result.add_warning(
                "RELATION_COLUMN_MISSING",
                f"belongs_to {hint.related} refers to column '{hint.foreign_key}' "
                f"which is not a declared field.",
                ctx,
            )

        accessor: str = relation_accessor(hint)
        if accessor in taken:
            result.add_warning(
                "RELATION_ACCESSOR_TAKEN",
                f"Relation accessor '{accessor}' is already taken; the relation is skipped.",
                {**ctx, "accessor": accessor},
            )
        taken.add(accessor)

    return result


def validate_generation_config(config: GenerationConfig) -> ValidationResult:
    """
    Validate the generation configuration for semantic correctness
    beyond what Pydantic field constraints enforce.

    Complexity: O(K) where K = number of artifact kinds.
    """
    result: ValidationResult = ValidationResult()

    for kind in ArtifactKind:
        path: str = config.path_for(kind)
        ctx: Dict[str, Any] = {"kind": kind.value, "path": path}
        if not path:
            result.add_error(
                "EMPTY_OUTPUT_PATH",
                f"Output path for '{kind.value}' must not be empty.",
                ctx,
            )
            continue
        if path.startswith("/"):
            result.add_warning(
                "ABSOLUTE_OUTPUT_PATH",
                f"Output path '{path}' is absolute; paths are relative to the project root.",
                ctx,
            )
        if ".." in path.split("/"):
            result.add_warning(
                "OUTPUT_PATH_ESCAPES_ROOT",
                f"Output path '{path}' points outside the project root.",
                ctx,
            )
        if kind == ArtifactKind.ROUTES or kind == ArtifactKind.MIGRATION:
            continue
        module: str = config.module_for(kind)
        if not _DOTTED_MODULE_RE.match(module):
            result.add_error(
                "INVALID_MODULE_PATH",
                f"Import path '{module}' for '{kind.value}' is not a dotted module name.",
                {"kind": kind.value, "module": module},
            )

    if not _DOTTED_MODULE_RE.match(config.database_module):
        result.add_error(
            "INVALID_DATABASE_MODULE",
            f"database_module '{config.database_module}' is not a dotted module name.",
            {"database_module": config.database_module},
        )

    if config.max_pagination > 1000:
        result.add_warning(
            "MAX_PAGINATION_TOO_HIGH",
            f"max_pagination of {config.max_pagination} lets a single request "
            f"load a very large page.",
            {"max_pagination": config.max_pagination},
        )

    return result


# ---------------------------------------------------------------------------
# Aggregate entry points
# ---------------------------------------------------------------------------


def validate_config(config: GenerationConfig) -> ValidationResult:
    """Run all configuration-level validators."""
    result: ValidationResult = validate_generation_config(config)
    logger.info("Config validation complete: %s", result.summary())
    return result


def validate_entity(
    name: str,
    fields: Sequence[FieldSpec],
    relations: Sequence[RelationHint],
    config: GenerationConfig,
) -> ValidationResult:
    """
    **Master validation entry point** for one entity.

    This is the single function that ``generator.py`` calls before
    generating an entity's artifacts.
    """
    result: ValidationResult = ValidationResult()

    result.merge(validate_entity_name(name))
    result.merge(validate_fields(fields))
    result.merge(validate_relations(relations, fields))
    result.merge(validate_generation_config(config))

    if not fields:
        result.add_info(
            "NO_FIELDS",
            f"Entity '{name}' has no declared fields; only automatic columns are generated.",
            {"entity": name},
        )

    if result.has_errors:
        logger.error(
            "Validation of '%s' FAILED with %d error(s). %s",
            name,
            result.error_count,
            result.summary(),
        )
    else:
        logger.info("Validation of '%s' PASSED. %s", name, result.summary())

    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "ValidationError",
    "ValidationResult",
    "validate_entity_name",
    "validate_fields",
    "validate_relations",
    "validate_generation_config",
    "validate_config",
    "validate_entity",
]

logger.debug("crudsmith.validators loaded (%d public symbols).", len(__all__))
