# File: crudsmith/generators/service.py
"""
crudsmith - Service Generators
===============================
Two strategies behind one contract:

    RepositoryServiceGenerator   service delegating to ``{Entity}Repository``
    InlineServiceGenerator       service owning the queries itself

``service_generator_for(config)`` picks one from ``use_repository``.
Both emit ``{Entity}Service(session)`` with the same public methods, so
the controller never knows which one it got.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set, Type

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.generators.repository import DataAccessRenderer
from crudsmith.models import ArtifactKind, GenerationConfig
from crudsmith.utils import build_import_block, merge_import_dicts

logger: logging.Logger = logging.getLogger("crudsmith.generators.service")


class ServiceGenerator(ArtifactGenerator):
    """Common parts of both service strategies."""

    kind = ArtifactKind.SERVICE

    def _class_header(self) -> List[str]:
        return [
            f"class {self.class_of(ArtifactKind.SERVICE)}:",
        ]


class RepositoryServiceGenerator(ServiceGenerator):
    """Service that forwards every call to the repository."""

    def render(self) -> str:
        model: str = self.naming.base
        repository: str = self.class_of(ArtifactKind.REPOSITORY)
        id_type: str = self.id_type
        i1, i2 = self._indent, self._double_indent

        imports: Dict[str, Set[str]] = merge_import_dicts(
            {
                "typing": {"Any", "Dict", "List", "Optional"},
                "sqlalchemy.ext.asyncio": {"AsyncSession"},
            },
            self.import_of(ArtifactKind.MODEL),
            self.import_of(ArtifactKind.REPOSITORY),
        )

        lines: List[str] = self.header(f"Service layer for {model}.")
        lines.append(build_import_block(imports))
        lines.append("")
        lines.append("")
        lines.extend(self._class_header())
        lines.append(f'{i1}"""Business operations on {model}, persisted through {repository}."""')
        lines.append("")
        lines.extend([
            f"{i1}def __init__(self, session: AsyncSession) -> None:",
            f"{i2}self.repository = {repository}(session)",
            "",
            f"{i1}async def search(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:",
            f"{i2}return await self.repository.search(params)",
            "",
            f"{i1}async def all(self) -> List[{model}]:",
            f"{i2}return await self.repository.all()",
            "",
            f"{i1}async def find(self, record_id: {id_type}) -> Optional[{model}]:",
            f"{i2}return await self.repository.find(record_id)",
            "",
            f"{i1}async def find_or_fail(self, record_id: {id_type}) -> {model}:",
            f"{i2}return await self.repository.find_or_fail(record_id)",
            "",
            f"{i1}async def create(self, data: Dict[str, Any]) -> {model}:",
            f"{i2}return await self.repository.create(data)",
            "",
            f"{i1}async def update(self, record: {model}, data: Dict[str, Any]) -> {model}:",
            f"{i2}return await self.repository.update(record, data)",
            "",
            f"{i1}async def delete(self, record: {model}) -> bool:",
            f"{i2}return await self.repository.delete(record)",
        ])
        if self.config.soft_deletes:
            lines.extend([
                "",
                f"{i1}async def restore(self, record_id: {id_type}) -> Optional[{model}]:",
                f"{i2}return await self.repository.restore(record_id)",
            ])
        return self.finish(lines)


class InlineServiceGenerator(ServiceGenerator):
    """Service holding the data-access code itself (no repository layer)."""

    def render(self) -> str:
        renderer: DataAccessRenderer = DataAccessRenderer(self)
        model: str = self.naming.base

        lines: List[str] = self.header(f"Service layer for {model}.")
        lines.append(build_import_block(renderer.imports()))
        lines.append("")
        lines.extend(renderer.module_level())
        lines.append("")
        lines.append("")
        lines.extend(self._class_header())
        lines.append(f'{self._indent}"""Business operations and persistence for {model}."""')
        lines.append("")
        lines.append(f"{self._indent}def __init__(self, session: AsyncSession) -> None:")
        lines.append(f"{self._double_indent}self.session = session")
        lines.append("")
        lines.extend(renderer.methods())
        return self.finish(lines)


def service_generator_for(config: GenerationConfig) -> Type[ServiceGenerator]:
    """Service strategy matching ``config.use_repository``."""
    if config.use_repository:
        return RepositoryServiceGenerator
    return InlineServiceGenerator


__all__: List[str] = [
    "ServiceGenerator",
    "RepositoryServiceGenerator",
    "InlineServiceGenerator",
    "service_generator_for",
]
