# File: crudsmith/generators/seeder.py
"""Seed runner inserting a batch of factory-built rows."""

from __future__ import annotations

import logging
from typing import List

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind
from crudsmith.utils import build_import_block, merge_import_dicts

logger: logging.Logger = logging.getLogger("crudsmith.generators.seeder")

DEFAULT_SEED_COUNT: int = 10


class SeederGenerator(ArtifactGenerator):
    kind = ArtifactKind.SEEDER

    def render(self) -> str:
        base: str = self.naming.base
        factory_class: str = self.class_of(ArtifactKind.FACTORY)
        i1, i2 = self._indent, self._double_indent

        lines: List[str] = self.header(f"Seeder for the {self.naming.table} table.")
        lines.append(build_import_block(merge_import_dicts(
            {"sqlalchemy.ext.asyncio": {"AsyncSession"}},
            self.import_of(ArtifactKind.FACTORY),
        )))
        lines.append("")
        lines.append(f"DEFAULT_COUNT = {DEFAULT_SEED_COUNT}")
        lines.append("")
        lines.append("")
        lines.append(f"class {self.class_of(ArtifactKind.SEEDER)}:")
        lines.append(f'{i1}"""Fills {self.naming.table} with {base} rows built by {factory_class}."""')
        lines.append("")
        lines.append(
            f"{i1}async def run(self, session: AsyncSession, count: int = DEFAULT_COUNT) -> None:"
        )
        lines.append(f"{i2}session.add_all({factory_class}.build_batch(count))")
        lines.append(f"{i2}await session.commit()")
        return self.finish(lines)


__all__: List[str] = ["DEFAULT_SEED_COUNT", "SeederGenerator"]
