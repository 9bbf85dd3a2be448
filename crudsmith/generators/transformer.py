# File: crudsmith/generators/transformer.py
"""Output transformer: entity instance → JSON-ready ``dict``."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind, EntityNaming, FieldSpec, RelationHint, RelationType
from crudsmith.typemap import python_type
from crudsmith.utils import build_import_block, py_string

logger: logging.Logger = logging.getLogger("crudsmith.generators.transformer")

_ISO_TYPES: Set[str] = {"date", "datetime", "time"}


class TransformerGenerator(ArtifactGenerator):
    """
    Generates ``{Entity}Transformer``.

    Keys follow the entity: ``id``, each field, then the relations under
    the accessor names the model uses (belongs_to in column order first),
    then timestamps. Relations are only rendered when already loaded, so
    transforming never triggers lazy IO.
    """

    kind = ArtifactKind.TRANSFORMER

    def render(self) -> str:
        base: str = self.naming.base
        var: str = "instance"
        i1, i2, i3 = self._indent, self._double_indent, self._triple_indent

        imports: Dict[str, Set[str]] = {
            "typing": {"Any", "Dict", "Iterable", "List", "Optional"},
            "sqlalchemy": {"inspect"},
            self.module_of(ArtifactKind.MODEL): {base},
        }

        by_column: Dict[str, str] = {
            hint.foreign_key: accessor
            for accessor, hint in self.accessors.items()
            if hint.type == RelationType.BELONGS_TO and hint.foreign_key
        }
        placed: Set[str] = set()

        body: List[str] = [f"{i2}data: Dict[str, Any] = {{", f'{i3}"id": {var}.id,']
        for field in self.fields:
            body.append(f"{i3}{py_string(field.name)}: {self._value(field, var)},")
        body.append(f"{i2}}}")

        relation_lines: List[str] = []
        lazy_imports: List[str] = []
        ordered: List[str] = []
        for field in self.fields:
            accessor: Optional[str] = by_column.get(field.name)
            if accessor is not None:
                ordered.append(accessor)
        ordered.extend(a for a in self.accessors if a not in ordered)

        for accessor in ordered:
            hint: RelationHint = self.accessors[accessor]
            related: EntityNaming = self.related_naming(hint.related)
            transformer: str = f"{related.base}Transformer"
            if related.base != base and transformer not in placed:
                module: str = f"{self.config.module_for(ArtifactKind.TRANSFORMER)}.{related.snake}_transformer"
                lazy_imports.append(f"{i2}from {module} import {transformer}")
                placed.add(transformer)
            target: str = "cls" if related.base == base else transformer
            method: str = "collection" if hint.type == RelationType.BELONGS_TO_MANY else "transform"
            relation_lines.append(f"{i2}related = _when_loaded({var}, {py_string(accessor)})")
            relation_lines.append(
                f"{i2}data[{py_string(accessor)}] = "
                f"{target}.{method}(related) if related is not None else None"
            )

        timestamp_lines: List[str] = []
        if self.config.timestamps:
            for column in ("created_at", "updated_at"):
                timestamp_lines.append(f'{i2}data["{column}"] = _iso({var}.{column})')
        if self.config.soft_deletes:
            timestamp_lines.append(f'{i2}data["deleted_at"] = _iso({var}.deleted_at)')

        lines: List[str] = self.header(f"Output transformer for {base}.")
        lines.append(build_import_block(imports))
        lines.append("")
        lines.append("")
        lines.extend([
            "def _when_loaded(instance: Any, relation: str) -> Any:",
            f'{i1}"""Relation value if already loaded, else None (no lazy load)."""',
            f"{i1}if relation in inspect(instance).unloaded:",
            f"{i2}return None",
            f"{i1}return getattr(instance, relation)",
            "",
            "",
            "def _iso(value: Any) -> Optional[str]:",
            f"{i1}return value.isoformat() if value is not None else None",
            "",
            "",
            f"class {base}Transformer:",
            f'{i1}"""Turns {base} instances into plain dicts."""',
            "",
            f"{i1}@classmethod",
            f"{i1}def transform(cls, {var}: {base}) -> Dict[str, Any]:",
        ])
        lines.extend(lazy_imports)
        if lazy_imports:
            lines.append("")
        lines.extend(body)
        lines.extend(relation_lines)
        lines.extend(timestamp_lines)
        lines.append(f"{i2}return data")
        lines.append("")
        lines.append(f"{i1}@classmethod")
        lines.append(f"{i1}def collection(cls, items: Iterable[{base}]) -> List[Dict[str, Any]]:")
        lines.append(f"{i2}return [cls.transform(item) for item in items]")
        return self.finish(lines)

    @staticmethod
    def _value(field: FieldSpec, var: str) -> str:
        if python_type(field) in _ISO_TYPES:
            return f"_iso({var}.{field.name})"
        return f"{var}.{field.name}"


__all__: List[str] = ["TransformerGenerator"]
