# File: crudsmith/generators/base.py
"""
crudsmith - Generator Base
===========================
Shared contract for every artifact generator.

A generator is built from the four inputs of one run::

    (EntityNaming, List[FieldSpec], List[RelationHint], GenerationConfig)

and ``generate()`` returns a ``GeneratedArtifact``. Generators never touch
the file system.

**Code assembly contract** (same for all subclasses):
    - Source is assembled as ``List[str]`` and joined once with ``"\\n"``.
    - Imports are collected in a ``Dict[str, Set[str]]`` and rendered by
      ``build_import_block``.
    - Class and module names of sibling artifacts come from
      ``artifact_class`` / ``artifact_module`` so every file refers to the
      others under the same names.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Dict, List, Optional, Sequence, Set

from crudsmith.models import (
    ArtifactKind,
    EntityNaming,
    FieldSpec,
    GeneratedArtifact,
    GenerationConfig,
    RelationHint,
)
from crudsmith.naming import derive_naming
from crudsmith.relations import resolve_accessors

logger: logging.Logger = logging.getLogger("crudsmith.generators")

GENERATED_BANNER: str = "Auto-generated by crudsmith."

_INDENT: str = "    "

# File stem of each artifact, formatted with the entity's naming fields.
_FILE_STEMS: Dict[str, str] = {
    ArtifactKind.MODEL.value: "{snake}",
    ArtifactKind.CONTROLLER.value: "{snake}",
    ArtifactKind.SERVICE.value: "{snake}_service",
    ArtifactKind.REPOSITORY.value: "{snake}_repository",
    ArtifactKind.CREATE_REQUEST.value: "create_{snake}_request",
    ArtifactKind.UPDATE_REQUEST.value: "update_{snake}_request",
    ArtifactKind.TRANSFORMER.value: "{snake}_transformer",
    ArtifactKind.POLICY.value: "{snake}_policy",
    ArtifactKind.FACTORY.value: "{snake}_factory",
    ArtifactKind.SEEDER.value: "{snake}_seeder",
}

# Public class (or object) each artifact module exposes.
_CLASS_NAMES: Dict[str, str] = {
    ArtifactKind.MODEL.value: "{base}",
    ArtifactKind.CONTROLLER.value: "router",
    ArtifactKind.SERVICE.value: "{base}Service",
    ArtifactKind.REPOSITORY.value: "{base}Repository",
    ArtifactKind.CREATE_REQUEST.value: "Create{base}Request",
    ArtifactKind.UPDATE_REQUEST.value: "Update{base}Request",
    ArtifactKind.TRANSFORMER.value: "{base}Transformer",
    ArtifactKind.POLICY.value: "{base}Policy",
    ArtifactKind.FACTORY.value: "{base}Factory",
    ArtifactKind.SEEDER.value: "{base}Seeder",
}


def artifact_stem(kind: ArtifactKind, naming: EntityNaming) -> str:
    """File stem (no extension) of *kind* for *naming*."""
    return _FILE_STEMS[kind.value].format(snake=naming.snake)


def artifact_class(kind: ArtifactKind, naming: EntityNaming) -> str:
    """Name of the class the *kind* module defines for *naming*."""
    return _CLASS_NAMES[kind.value].format(base=naming.base)


def artifact_module(kind: ArtifactKind, naming: EntityNaming, config: GenerationConfig) -> str:
    """Dotted module path of the *kind* artifact (``app.models.blog_post``)."""
    return f"{config.module_for(kind)}.{artifact_stem(kind, naming)}"


# ---------------------------------------------------------------------------
# ArtifactGenerator
# ---------------------------------------------------------------------------


class ArtifactGenerator(ABC):
    """
    Base class of all generators.

    Subclasses set ``kind`` and implement ``render()``; most of them also
    rely on the default ``filename()``.
    """

    kind: ClassVar[ArtifactKind]

    def __init__(
        self,
        naming: EntityNaming,
        fields: Sequence[FieldSpec],
        relations: Sequence[RelationHint],
        config: GenerationConfig,
    ) -> None:
        self.naming: EntityNaming = naming
        self.fields: List[FieldSpec] = list(fields)
        self.relations: List[RelationHint] = list(relations)
        self.config: GenerationConfig = config
        self._indent: str = _INDENT
        self._double_indent: str = _INDENT * 2
        self._triple_indent: str = _INDENT * 3
        self.accessors: Dict[str, RelationHint] = resolve_accessors(
            self.relations, reserved=self.column_names
        )

    # -- Contract ----------------------------------------------------------

    @abstractmethod
    def render(self) -> str:
        """Full source of the artifact."""

    def filename(self) -> str:
        return f"{artifact_stem(self.kind, self.naming)}.py"

    def target_path(self) -> str:
        return f"{self.config.path_for(self.kind)}/{self.filename()}"

    def generate(self) -> GeneratedArtifact:
        content: str = self.render()
        artifact: GeneratedArtifact = GeneratedArtifact(
            kind=self.kind,
            path=self.target_path(),
            content=content,
        )
        logger.debug(
            "Generated %s for '%s': %d lines.",
            self.kind.value,
            self.naming.base,
            artifact.line_count,
        )
        return artifact

    # -- Shared helpers ------------------------------------------------------

    @property
    def column_names(self) -> List[str]:
        """Every column of the table, automatic ones included, in table order."""
        names: List[str] = ["id"]
        names.extend(f.name for f in self.fields)
        if self.config.soft_deletes:
            names.append("deleted_at")
        if self.config.timestamps:
            names.extend(["created_at", "updated_at"])
        return names

    @property
    def default_sort(self) -> str:
        return "created_at" if self.config.timestamps else "id"

    @property
    def id_type(self) -> str:
        """Python type of the primary key."""
        return "str" if self.config.uuid else "int"

    def class_of(self, kind: ArtifactKind) -> str:
        return artifact_class(kind, self.naming)

    def module_of(self, kind: ArtifactKind) -> str:
        return artifact_module(kind, self.naming, self.config)

    def import_of(self, kind: ArtifactKind) -> Dict[str, Set[str]]:
        """Import entry for the *kind* artifact of this entity."""
        return {self.module_of(kind): {self.class_of(kind)}}

    def related_naming(self, entity: str) -> EntityNaming:
        return derive_naming(entity)

    def header(self, title: str) -> List[str]:
        """Module docstring plus the ``__future__`` import."""
        return [
            '"""',
            title,
            GENERATED_BANNER,
            '"""',
            "",
            "from __future__ import annotations",
            "",
        ]

    def field_by_name(self, name: str) -> Optional[FieldSpec]:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    @staticmethod
    def finish(lines: List[str]) -> str:
        """Join *lines*, ensuring exactly one trailing newline."""
        while lines and lines[-1] == "":
            lines.pop()
        return "\n".join(lines) + "\n"


__all__: List[str] = [
    "GENERATED_BANNER",
    "ArtifactGenerator",
    "artifact_stem",
    "artifact_class",
    "artifact_module",
]
