# File: crudsmith/generators/factory.py
"""factory_boy factory producing unsaved entity instances with fake data."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind, EntityNaming, RelationType
from crudsmith.typemap import sample_value
from crudsmith.utils import build_import_block, py_string

logger: logging.Logger = logging.getLogger("crudsmith.generators.factory")


class FactoryGenerator(ArtifactGenerator):
    """
    Generates ``{Entity}Factory``.

    A foreign-key field whose relation has an accessor becomes a
    ``SubFactory`` on that accessor, except when it points back at the
    entity itself. Every other field gets a sample declaration.
    """

    kind = ArtifactKind.FACTORY

    def render(self) -> str:
        base: str = self.naming.base
        i1, i2 = self._indent, self._double_indent

        lines: List[str] = self.header(f"factory_boy factory for {base}.")
        lines.append(build_import_block({
            "factory": set(),
            self.module_of(ArtifactKind.MODEL): {base},
        }))
        lines.append("")
        lines.append("")
        lines.append(f"class {self.class_of(ArtifactKind.FACTORY)}(factory.Factory):")
        lines.append(f'{i1}"""Builds unsaved {base} instances with fake data."""')
        lines.append("")
        lines.append(f"{i1}class Meta:")
        lines.append(f"{i2}model = {base}")
        declarations: List[str] = self._declarations()
        if declarations:
            lines.append("")
            lines.extend(f"{i1}{line}" for line in declarations)
        return self.finish(lines)

    def _declarations(self) -> List[str]:
        by_column: Dict[str, str] = {
            hint.foreign_key: accessor
            for accessor, hint in self.accessors.items()
            if hint.type == RelationType.BELONGS_TO and hint.foreign_key
        }
        lines: List[str] = []
        for field in self.fields:
            accessor: Optional[str] = by_column.get(field.name)
            if (
                field.foreign is not None
                and accessor is not None
                and field.foreign.related_entity != self.naming.base
            ):
                lines.append(f"{accessor} = {self._sub_factory(field.foreign.related_entity)}")
            else:
                lines.append(f"{field.name} = {sample_value(field)}")
        return lines

    def _sub_factory(self, related_entity: str) -> str:
        related: EntityNaming = self.related_naming(related_entity)
        path: str = (
            f"{self.config.module_for(ArtifactKind.FACTORY)}."
            f"{related.snake}_factory.{related.base}Factory"
        )
        return f"factory.SubFactory({py_string(path)})"


__all__: List[str] = ["FactoryGenerator"]
