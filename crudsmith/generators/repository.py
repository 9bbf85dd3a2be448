# File: crudsmith/generators/repository.py
"""
crudsmith - Repository Generator
=================================
Data-access layer: ``search`` / ``all`` / ``find`` / ``find_or_fail`` /
``create`` / ``update`` / ``delete`` / ``find_by`` / ``get_by`` over an
``AsyncSession``.

``DataAccessRenderer`` holds the query code. The inline service variant
renders the very same methods, so search behaves identically whichever
layer ends up owning it.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set, Tuple

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind, FieldSpec
from crudsmith.typemap import filter_coercion, is_searchable
from crudsmith.utils import build_import_block, py_string

logger: logging.Logger = logging.getLogger("crudsmith.generators.repository")

# Query keys read by search(); a field with one of these names gets no filter.
QUERY_PARAMS: Tuple[str, ...] = ("search", "sort", "order", "limit", "page")


# ---------------------------------------------------------------------------
# Shared renderer
# ---------------------------------------------------------------------------


class DataAccessRenderer:
    """
    Renders the data-access code of one entity.

    Output comes in three parts so the owning generator can place them:
    ``imports()``, ``module_level()`` (constants and helpers), and
    ``methods()`` (already indented for a class body).
    """

    def __init__(self, owner: ArtifactGenerator) -> None:
        self.owner: ArtifactGenerator = owner
        self.model: str = owner.naming.base
        self._i1: str = owner._indent
        self._i2: str = owner._double_indent
        self._i3: str = owner._triple_indent

    # -- Derived facts ---------------------------------------------------------

    @property
    def searchable(self) -> List[str]:
        return [f.name for f in self.owner.fields if is_searchable(f)]

    @property
    def sortable(self) -> List[str]:
        names: List[str] = ["id"]
        names.extend(f.name for f in self.owner.fields)
        if self.owner.config.timestamps:
            names.extend(["created_at", "updated_at"])
        return names

    def _filters(self) -> List[FieldSpec]:
        return [
            f for f in self.owner.fields
            if filter_coercion(f) is not None and f.name not in QUERY_PARAMS
        ]

    # -- Parts -----------------------------------------------------------------

    def imports(self) -> Dict[str, Set[str]]:
        imports: Dict[str, Set[str]] = {
            "typing": {"Any", "Dict", "List", "Optional"},
            "fastapi": {"HTTPException"},
            "sqlalchemy": {"Select", "func", "select"},
            "sqlalchemy.ext.asyncio": {"AsyncSession"},
            self.owner.module_of(ArtifactKind.MODEL): {self.model},
        }
        if self.searchable:
            imports["sqlalchemy"].add("or_")
        datetime_names: Set[str] = set()
        for field in self._filters():
            coercion: str = filter_coercion(field) or ""
            if coercion.startswith("date."):
                datetime_names.add("date")
            elif coercion.startswith("datetime."):
                datetime_names.add("datetime")
        if self.owner.config.soft_deletes:
            datetime_names.update({"datetime", "timezone"})
        if datetime_names:
            imports["datetime"] = datetime_names
        return imports

    def module_level(self) -> List[str]:
        config = self.owner.config
        lines: List[str] = [
            f"DEFAULT_LIMIT = {config.default_pagination}",
            f"MAX_LIMIT = {config.max_pagination}",
            f"DEFAULT_SORT = {py_string(self.owner.default_sort)}",
            f"SEARCHABLE_FIELDS = {self._tuple(self.searchable)}",
            f"SORTABLE_FIELDS = {self._tuple(self.sortable)}",
            "",
            "",
            "def _as_int(value: Any, default: int) -> int:",
            f"{self._i1}try:",
            f"{self._i2}return int(value)",
            f"{self._i1}except (TypeError, ValueError):",
            f"{self._i2}return default",
            "",
            "",
            "def _as_bool(value: Any) -> bool:",
            f"{self._i1}if isinstance(value, bool):",
            f"{self._i2}return value",
            f'{self._i1}return str(value).strip().lower() in ("1", "true", "yes", "on")',
        ]
        return lines

    def methods(self) -> List[str]:
        lines: List[str] = []
        lines.extend(self._query_method())
        lines.append("")
        lines.extend(self._search_method())
        lines.append("")
        lines.extend(self._lookup_methods())
        lines.append("")
        lines.extend(self._write_methods())
        return lines

    # -- Methods ---------------------------------------------------------------

    def _query_method(self) -> List[str]:
        i1, i2 = self._i1, self._i2
        lines: List[str] = [f"{i1}def _query(self) -> Select:"]
        if self.owner.config.soft_deletes:
            lines.append(f'{i2}"""Base query; soft-deleted rows are excluded."""')
            lines.append(f"{i2}return select({self.model}).where({self.model}.deleted_at.is_(None))")
        else:
            lines.append(f"{i2}return select({self.model})")
        return lines

    def _search_method(self) -> List[str]:
        i1, i2, i3 = self._i1, self._i2, self._i3
        model: str = self.model
        plural: str = self.owner.naming.title_plural.lower()
        searchable: str = ", ".join(self.searchable) or "no fields"
        lines: List[str] = [
            f"{i1}async def search(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:",
            f'{i2}"""',
            f"{i2}Search and paginate {plural}.",
            "",
            f"{i2}Recognised params:",
            f"{i2}    search  free text matched against {searchable}",
            f"{i2}    sort    one of SORTABLE_FIELDS (default DEFAULT_SORT)",
            f"{i2}    order   asc or desc (default desc)",
            f"{i2}    limit   page size (default DEFAULT_LIMIT, at most MAX_LIMIT)",
            f"{i2}    page    1-based page number",
            f"{i2}    <field> exact match on a declared field",
            f'{i2}"""',
            f"{i2}params = params or {{}}",
            f"{i2}query = self._query()",
            "",
        ]

        if self.searchable:
            lines.append(f'{i2}term = params.get("search")')
            lines.append(f"{i2}if term:")
            lines.append(f'{i3}pattern = f"%{{term}}%"')
            lines.append(f"{i3}query = query.where(")
            lines.append(f"{i3}{i1}or_(")
            for name in self.searchable:
                lines.append(f"{i3}{i2}{model}.{name}.ilike(pattern),")
            lines.append(f"{i3}{i1})")
            lines.append(f"{i3})")
            lines.append("")

        filters: List[FieldSpec] = self._filters()
        if filters:
            lines.append(f"{i2}try:")
            for field in filters:
                key: str = py_string(field.name)
                value: str = (filter_coercion(field) or "{}").format(f"params[{key}]")
                lines.append(f"{i3}if params.get({key}) is not None:")
                lines.append(f"{i3}{i1}query = query.where({model}.{field.name} == {value})")
            lines.append(f"{i2}except (TypeError, ValueError) as exc:")
            lines.append(
                f'{i3}raise HTTPException(status_code=422, detail=f"Invalid filter value: {{exc}}") from exc'
            )
            lines.append("")

        lines.extend([
            f'{i2}sort = params.get("sort")',
            f"{i2}if sort not in SORTABLE_FIELDS:",
            f"{i3}sort = DEFAULT_SORT",
            f"{i2}column = getattr({model}, sort)",
            f'{i2}if str(params.get("order", "desc")).lower() == "asc":',
            f"{i3}query = query.order_by(column.asc())",
            f"{i2}else:",
            f"{i3}query = query.order_by(column.desc())",
            "",
            f'{i2}limit = min(max(_as_int(params.get("limit"), DEFAULT_LIMIT), 1), MAX_LIMIT)',
            f'{i2}page = max(_as_int(params.get("page"), 1), 1)',
            "",
            f"{i2}total = await self.session.scalar(",
            f"{i3}select(func.count()).select_from(query.order_by(None).subquery())",
            f"{i2})",
            f"{i2}result = await self.session.scalars(query.limit(limit).offset((page - 1) * limit))",
            f'{i2}return {{"items": list(result.all()), "total": total or 0, "page": page, "limit": limit}}',
        ])
        return lines

    def _lookup_methods(self) -> List[str]:
        i1, i2, i3 = self._i1, self._i2, self._i3
        model: str = self.model
        id_type: str = self.owner.id_type
        return [
            f"{i1}async def all(self) -> List[{model}]:",
            f"{i2}result = await self.session.scalars(self._query())",
            f"{i2}return list(result.all())",
            "",
            f"{i1}async def find(self, record_id: {id_type}) -> Optional[{model}]:",
            f"{i2}result = await self.session.scalars(self._query().where({model}.id == record_id))",
            f"{i2}return result.first()",
            "",
            f"{i1}async def find_or_fail(self, record_id: {id_type}) -> {model}:",
            f"{i2}record = await self.find(record_id)",
            f"{i2}if record is None:",
            f'{i3}raise HTTPException(status_code=404, detail="{model} not found.")',
            f"{i2}return record",
            "",
            f"{i1}async def find_by(self, field: str, value: Any) -> Optional[{model}]:",
            f"{i2}result = await self.session.scalars(",
            f"{i3}self._query().where(self._column(field) == value).limit(1)",
            f"{i2})",
            f"{i2}return result.first()",
            "",
            f"{i1}async def get_by(self, field: str, value: Any) -> List[{model}]:",
            f"{i2}result = await self.session.scalars(self._query().where(self._column(field) == value))",
            f"{i2}return list(result.all())",
            "",
            f"{i1}@staticmethod",
            f"{i1}def _column(field: str) -> Any:",
            f"{i2}if field not in SORTABLE_FIELDS:",
            f'{i3}raise ValueError(f"Unknown {model} field: {{field}}")',
            f"{i2}return getattr({model}, field)",
        ]

    def _write_methods(self) -> List[str]:
        i1, i2 = self._i1, self._i2
        model: str = self.model
        lines: List[str] = [
            f"{i1}async def create(self, data: Dict[str, Any]) -> {model}:",
            f"{i2}record = {model}().fill(data)",
            f"{i2}self.session.add(record)",
            f"{i2}await self.session.commit()",
            f"{i2}await self.session.refresh(record)",
            f"{i2}return record",
            "",
            f"{i1}async def update(self, record: {model}, data: Dict[str, Any]) -> {model}:",
            f"{i2}record.fill(data)",
            f"{i2}await self.session.commit()",
            f"{i2}await self.session.refresh(record)",
            f"{i2}return record",
            "",
            f"{i1}async def delete(self, record: {model}) -> bool:",
        ]
        if self.owner.config.soft_deletes:
            lines.append(f"{i2}record.deleted_at = datetime.now(timezone.utc)")
        else:
            lines.append(f"{i2}await self.session.delete(record)")
        lines.append(f"{i2}await self.session.commit()")
        lines.append(f"{i2}return True")
        if self.owner.config.soft_deletes:
            lines.extend(self._restore_method())
        return lines

    def _restore_method(self) -> List[str]:
        i1, i2, i3 = self._i1, self._i2, self._i3
        model: str = self.model
        return [
            "",
            f"{i1}async def restore(self, record_id: {self.owner.id_type}) -> Optional[{model}]:",
            f'{i2}"""Clear deleted_at on a soft-deleted record; None when there is none."""',
            f"{i2}result = await self.session.scalars(",
            f"{i3}select({model}).where({model}.id == record_id, {model}.deleted_at.is_not(None))",
            f"{i2})",
            f"{i2}record = result.first()",
            f"{i2}if record is None:",
            f"{i3}return None",
            f"{i2}record.deleted_at = None",
            f"{i2}await self.session.commit()",
            f"{i2}await self.session.refresh(record)",
            f"{i2}return record",
        ]

    @staticmethod
    def _tuple(names: List[str]) -> str:
        if not names:
            return "()"
        if len(names) == 1:
            return f"({py_string(names[0])},)"
        return "(" + ", ".join(py_string(n) for n in names) + ")"


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class RepositoryGenerator(ArtifactGenerator):
    """Generates ``{Entity}Repository`` wrapping an ``AsyncSession``."""

    kind = ArtifactKind.REPOSITORY

    def render(self) -> str:
        renderer: DataAccessRenderer = DataAccessRenderer(self)
        class_name: str = self.class_of(ArtifactKind.REPOSITORY)

        lines: List[str] = self.header(f"Data-access layer for {self.naming.base}.")
        lines.append(build_import_block(renderer.imports()))
        lines.append("")
        lines.extend(renderer.module_level())
        lines.append("")
        lines.append("")
        lines.append(f"class {class_name}:")
        lines.append(f'{self._indent}"""Queries and persistence for {self.naming.base}."""')
        lines.append("")
        lines.append(f"{self._indent}def __init__(self, session: AsyncSession) -> None:")
        lines.append(f"{self._double_indent}self.session = session")
        lines.append("")
        lines.extend(renderer.methods())
        return self.finish(lines)


__all__: List[str] = ["DataAccessRenderer", "RepositoryGenerator"]
