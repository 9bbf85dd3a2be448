# File: crudsmith/generators/model.py
"""SQLAlchemy 2.0 ORM entity (``Mapped[]`` / ``mapped_column()``)."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind, FieldSpec, RelationHint, RelationType
from crudsmith.typemap import (
    python_default,
    python_type,
    python_type_imports,
    storage_import,
    storage_type,
)
from crudsmith.utils import build_import_block, merge_import_dicts, py_string

logger: logging.Logger = logging.getLogger("crudsmith.generators.model")


class ModelGenerator(ArtifactGenerator):
    """
    Generates the ORM entity.

    Column order matches the migration: ``id``, declared fields,
    ``deleted_at``, timestamps. Each relation in ``self.accessors``
    becomes a ``relationship()`` attribute under its accessor name.
    """

    kind = ArtifactKind.MODEL

    def render(self) -> str:
        base: str = self.naming.base
        imports: Dict[str, Set[str]] = {
            "typing": {"Any", "Dict"},
            "sqlalchemy": set(),
            "sqlalchemy.orm": {"Mapped", "mapped_column"},
            self.config.database_module: {"Base"},
        }

        column_lines: List[str] = [self._id_column(imports)]
        for field in self.fields:
            column_lines.extend(self._column(field, imports))
        if self.config.soft_deletes:
            imports = merge_import_dicts(imports, {"datetime": {"datetime"}, "typing": {"Optional"}})
            imports["sqlalchemy"].add("DateTime")
            column_lines.append(
                f"{self._indent}deleted_at: Mapped[Optional[datetime]] = "
                "mapped_column(DateTime(timezone=True), nullable=True, default=None)"
            )
        if self.config.timestamps:
            imports = merge_import_dicts(imports, {"datetime": {"datetime"}})
            imports["sqlalchemy"].update({"DateTime", "func"})
            column_lines.append(
                f"{self._indent}created_at: Mapped[datetime] = mapped_column("
                "DateTime(timezone=True), server_default=func.now())"
            )
            column_lines.append(
                f"{self._indent}updated_at: Mapped[datetime] = mapped_column("
                "DateTime(timezone=True), server_default=func.now(), onupdate=func.now())"
            )

        relation_lines: List[str] = []
        for accessor, hint in self.accessors.items():
            relation_lines.append(self._relationship(accessor, hint, imports))

        lines: List[str] = self.header(f"SQLAlchemy model for the {self.naming.table} table.")
        lines.append(build_import_block(imports))
        lines.append("")
        lines.append("")
        lines.append(f"class {base}(Base):")
        lines.append(f'{self._indent}"""ORM model for the \'{self.naming.table}\' table."""')
        lines.append("")
        lines.append(f"{self._indent}__tablename__ = {py_string(self.naming.table)}")
        lines.append("")
        lines.extend(self._fillable())
        lines.append("")
        lines.append(f"{self._indent}# --- Columns ---")
        lines.extend(column_lines)

        if relation_lines:
            lines.append("")
            lines.append(f"{self._indent}# --- Relationships ---")
            lines.extend(relation_lines)

        lines.append("")
        lines.append(f'{self._indent}def fill(self, data: Dict[str, Any]) -> "{base}":')
        lines.append(f'{self._double_indent}"""Assign the fillable keys present in *data*."""')
        lines.append(f"{self._double_indent}for key in self.FILLABLE:")
        lines.append(f"{self._triple_indent}if key in data:")
        lines.append(f"{self._triple_indent}{self._indent}setattr(self, key, data[key])")
        lines.append(f"{self._double_indent}return self")
        lines.append("")
        lines.append(f"{self._indent}def __repr__(self) -> str:")
        lines.append(f'{self._double_indent}return f"<{base} id={{self.id!r}}>"')
        return self.finish(lines)

    # -- Pieces ----------------------------------------------------------------

    def _fillable(self) -> List[str]:
        if not self.fields:
            return [f"{self._indent}FILLABLE = ()"]
        lines: List[str] = [f"{self._indent}FILLABLE = ("]
        for field in self.fields:
            lines.append(f"{self._double_indent}{py_string(field.name)},")
        lines.append(f"{self._indent})")
        return lines

    def _id_column(self, imports: Dict[str, Set[str]]) -> str:
        if self.config.uuid:
            imports["sqlalchemy"].add("String")
            imports.setdefault("uuid", set())
            return (
                f"{self._indent}id: Mapped[str] = mapped_column("
                "String(length=36), primary_key=True, default=lambda: str(uuid.uuid4()))"
            )
        imports["sqlalchemy"].add("Integer")
        return (
            f"{self._indent}id: Mapped[int] = mapped_column("
            "Integer, primary_key=True, autoincrement=True)"
        )

    def _column(self, field: FieldSpec, imports: Dict[str, Set[str]]) -> List[str]:
        imports["sqlalchemy"].add(storage_import(field))
        for module, names in python_type_imports(field).items():
            imports.setdefault(module, set()).update(names)

        annotation: str = python_type(field)
        if field.nullable:
            imports["typing"].add("Optional")
            annotation = f"Optional[{annotation}]"

        args: List[str] = [storage_type(field)]
        if field.foreign is not None:
            imports["sqlalchemy"].add("ForeignKey")
            target: str = py_string(f"{field.foreign.related_table}.id")
            args.append(f'ForeignKey({target}, ondelete="CASCADE")')
        args.append(f"nullable={field.nullable}")
        if field.unique:
            args.append("unique=True")
        if field.indexed:
            args.append("index=True")
        default: Optional[str] = python_default(field)
        if default is not None:
            args.append(f"default={default}")

        line: str = f"{self._indent}{field.name}: Mapped[{annotation}] = mapped_column({', '.join(args)})"
        if len(line) <= 99:
            return [line]
        wrapped: List[str] = [f"{self._indent}{field.name}: Mapped[{annotation}] = mapped_column("]
        wrapped.append(f"{self._double_indent}{', '.join(args)}")
        wrapped.append(f"{self._indent})")
        return wrapped

    def _relationship(
        self, accessor: str, hint: RelationHint, imports: Dict[str, Set[str]]
    ) -> str:
        imports["sqlalchemy.orm"].add("relationship")
        related: str = py_string(hint.related)
        if hint.type == RelationType.BELONGS_TO_MANY:
            imports["typing"].add("List")
            return (
                f"{self._indent}{accessor}: Mapped[List[{related}]] = relationship("
                f"{related}, secondary={py_string(hint.through or '')})"
            )
        imports["typing"].add("Optional")
        foreign_keys: str = ""
        column: Optional[FieldSpec] = self.field_by_name(hint.foreign_key or "")
        if column is not None and column.foreign is not None:
            foreign_keys = f", foreign_keys=[{hint.foreign_key}]"
        # Self reference: the parent row is on the id side.
        remote_side: str = ""
        if hint.related == self.naming.base:
            remote_side = f", remote_side={py_string(f'{self.naming.base}.id')}"
        return (
            f"{self._indent}{accessor}: Mapped[Optional[{related}]] = relationship("
            f"{related}{foreign_keys}{remote_side})"
        )


__all__: List[str] = ["ModelGenerator"]
