# File: crudsmith/generators/requests.py
"""
crudsmith - Request Validator Generators
=========================================
Pydantic V2 payload models for the create and update endpoints.

Static rules (types, required/optional, length, email/url shape) live in
the model fields. Rules that need the database (uniqueness, referenced row
exists) live in ``check_constraints(session)``, which the controller
awaits before touching the service.

    Create   non-nullable fields required; nullable ones optional
    Update   every field optional; uniqueness ignores the row being updated
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind, FieldSpec
from crudsmith.typemap import (
    EMAIL_PATTERN,
    URL_PATTERN,
    name_format,
    python_type,
    python_type_imports,
    validation_annotation,
    validation_constraints,
)
from crudsmith.utils import build_import_block, py_string

logger: logging.Logger = logging.getLogger("crudsmith.generators.requests")


class RequestGenerator(ArtifactGenerator):
    """Shared body of both request validators; ``is_update`` switches the rules."""

    is_update: bool = False

    def render(self) -> str:
        base: str = self.naming.base
        class_name: str = self.class_of(self.kind)
        action: str = "updating" if self.is_update else "creating"
        i1: str = self._indent

        imports: Dict[str, Set[str]] = {
            "typing": {"Dict", "List", "Optional"},
            "pydantic": {"BaseModel", "ConfigDict", "Field"},
        }
        for field in self.fields:
            if validation_annotation(field) == python_type(field):
                for module, names in python_type_imports(field).items():
                    imports.setdefault(module, set()).update(names)

        unique_fields: List[FieldSpec] = [f for f in self.fields if f.unique]
        foreign_fields: List[FieldSpec] = [f for f in self.fields if f.foreign is not None]
        if unique_fields or foreign_fields:
            imports["fastapi"] = {"HTTPException"}
            imports["sqlalchemy"] = set()
        imports["sqlalchemy.ext.asyncio"] = {"AsyncSession"}

        lines: List[str] = self.header(f"Payload validator used when {action} a {base}.")
        lines.append(build_import_block(imports))
        lines.append("")
        lines.extend(self._patterns())
        if unique_fields:
            columns: str = ", ".join(
                f"sqlalchemy.column({py_string(name)})"
                for name in ["id"] + [f.name for f in unique_fields]
            )
            lines.append(
                f"TABLE = sqlalchemy.table({py_string(self.naming.table)}, {columns})"
            )
            lines.append("")
        lines.append("")
        lines.append(f"class {class_name}(BaseModel):")
        lines.append(f'{i1}"""Fields accepted when {action} a {base}."""')
        lines.append("")
        lines.append(f'{i1}model_config = ConfigDict(extra="forbid")')
        lines.append("")
        for field in self.fields:
            lines.append(f"{i1}{self._field_line(field)}")
        if self.fields:
            lines.append("")

        lines.extend(self._check_constraints(unique_fields, foreign_fields))
        return self.finish(lines)

    # -- Pieces ----------------------------------------------------------------

    def _patterns(self) -> List[str]:
        formats: Set[str] = {fmt for fmt in map(name_format, self.fields) if fmt}
        lines: List[str] = []
        if "email" in formats:
            lines.append(f'EMAIL_PATTERN = r"{EMAIL_PATTERN}"')
        if "url" in formats:
            lines.append(f'URL_PATTERN = r"{URL_PATTERN}"')
        if lines:
            lines.append("")
        return lines

    def _field_line(self, field: FieldSpec) -> str:
        annotation: str = validation_annotation(field)
        constraints: List[str] = validation_constraints(field)
        required: bool = not self.is_update and not field.nullable
        if required:
            args: str = ", ".join(["..."] + constraints)
            return f"{field.name}: {annotation} = Field({args})"
        args = ", ".join(["default=None"] + constraints)
        return f"{field.name}: Optional[{annotation}] = Field({args})"

    def _check_constraints(
        self, unique_fields: List[FieldSpec], foreign_fields: List[FieldSpec]
    ) -> List[str]:
        i1, i2, i3 = self._indent, self._double_indent, self._triple_indent
        i4: str = i3 + self._indent
        signature: str = "self, session: AsyncSession"
        if self.is_update:
            signature += f", current_id: Optional[{self.id_type}] = None"

        lines: List[str] = [
            f"{i1}async def check_constraints({signature}) -> None:",
            f'{i2}"""',
            f"{i2}Rules that need the database: unique columns and referenced rows.",
            "",
            f"{i2}Raises:",
            f"{i2}    HTTPException: 422 with the messages keyed by field.",
            f'{i2}"""',
        ]
        if not unique_fields and not foreign_fields:
            lines.append(f"{i2}return None")
            return lines

        lines.append(f"{i2}errors: Dict[str, List[str]] = {{}}")
        for field in unique_fields:
            name: str = field.name
            lines.append(f"{i2}if self.{name} is not None:")
            lines.append(
                f"{i3}stmt = sqlalchemy.select(TABLE.c.id).where(TABLE.c.{name} == self.{name})"
            )
            if self.is_update:
                lines.append(f"{i3}if current_id is not None:")
                lines.append(f"{i4}stmt = stmt.where(TABLE.c.id != current_id)")
            lines.append(f"{i3}if (await session.execute(stmt.limit(1))).first() is not None:")
            lines.append(
                f"{i4}errors.setdefault({py_string(name)}, [])"
                f".append({py_string(f'The {name} has already been taken.')})"
            )
        for field in foreign_fields:
            name = field.name
            if field.foreign is None:
                continue
            related: str = py_string(field.foreign.related_table)
            lines.append(f"{i2}if self.{name} is not None:")
            lines.append(f"{i3}stmt = (")
            lines.append(f'{i4}sqlalchemy.select(sqlalchemy.column("id"))')
            lines.append(f"{i4}.select_from(sqlalchemy.table({related}))")
            lines.append(f'{i4}.where(sqlalchemy.column("id") == self.{name})')
            lines.append(f"{i3})")
            lines.append(f"{i3}if (await session.execute(stmt.limit(1))).first() is None:")
            lines.append(
                f"{i4}errors.setdefault({py_string(name)}, [])"
                f".append({py_string(f'The selected {name} is invalid.')})"
            )
        lines.append(f"{i2}if errors:")
        lines.append(f"{i3}raise HTTPException(status_code=422, detail=errors)")
        return lines


class CreateRequestGenerator(RequestGenerator):
    kind = ArtifactKind.CREATE_REQUEST
    is_update = False


class UpdateRequestGenerator(RequestGenerator):
    kind = ArtifactKind.UPDATE_REQUEST
    is_update = True


__all__: List[str] = [
    "RequestGenerator",
    "CreateRequestGenerator",
    "UpdateRequestGenerator",
]
