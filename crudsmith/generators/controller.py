# File: crudsmith/generators/controller.py
"""
crudsmith - Controller Generator
=================================
FastAPI router with the five resource endpoints::

    GET     /              {camelPlural}.index
    POST    /              {camelPlural}.store
    GET     /{id}          {camelPlural}.show
    PUT     /{id}          {camelPlural}.update   (PATCH accepted too)
    DELETE  /{id}          {camelPlural}.destroy

Two flavours:
    api   JSON bodies everywhere, 201 on store, 204 on destroy
    web   store/update/destroy answer with a 303 redirect to the listing

The router carries no prefix; the routes block mounts it under the
entity's kebab-plural URL segment.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Set

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind
from crudsmith.utils import build_import_block, merge_import_dicts, py_string

logger: logging.Logger = logging.getLogger("crudsmith.generators.controller")


class ControllerGenerator(ArtifactGenerator):
    kind = ArtifactKind.CONTROLLER

    @property
    def route_prefix(self) -> str:
        return self.naming.camel_plural

    def _route_name(self, action: str) -> str:
        return py_string(f"{self.route_prefix}.{action}")

    def render(self) -> str:
        base: str = self.naming.base
        service: str = self.class_of(ArtifactKind.SERVICE)
        api: bool = self.config.api

        fastapi_names: Set[str] = {"APIRouter", "Depends", "Request"}
        if api:
            fastapi_names.add("Response")
        else:
            fastapi_names.add("status")
        imports: Dict[str, Set[str]] = merge_import_dicts(
            {
                "typing": {"Any", "Dict"},
                "fastapi": fastapi_names,
                "sqlalchemy.ext.asyncio": {"AsyncSession"},
                self.config.database_module: {"get_db"},
            },
            self.import_of(ArtifactKind.SERVICE),
            self.import_of(ArtifactKind.CREATE_REQUEST),
            self.import_of(ArtifactKind.UPDATE_REQUEST),
            self.import_of(ArtifactKind.TRANSFORMER),
        )
        if not api:
            imports["fastapi.responses"] = {"RedirectResponse"}

        i1: str = self._indent
        lines: List[str] = self.header(f"FastAPI router for {base}.")
        lines.append(build_import_block(imports))
        lines.append("")
        lines.append(f"router = APIRouter(tags=[{py_string(self.naming.title_plural)}])")
        lines.append("")
        lines.append("")
        lines.append(f"def get_service(db: AsyncSession = Depends(get_db)) -> {service}:")
        lines.append(f"{i1}return {service}(db)")
        lines.append("")
        lines.append("")
        for endpoint in (self._index, self._store, self._show, self._update, self._destroy):
            lines.extend(endpoint())
            lines.append("")
            lines.append("")
        if not api:
            lines.extend(self._redirect_helper())
        return self.finish(lines)

    # -- Endpoints ---------------------------------------------------------------

    def _service_param(self) -> str:
        return f"{self._indent}service: {self.class_of(ArtifactKind.SERVICE)} = Depends(get_service),"

    def _id_param(self) -> str:
        return f"{self._indent}{self.naming.snake}_id: {self.id_type},"

    def _index(self) -> List[str]:
        i1, i2 = self._indent, self._double_indent
        transformer: str = self.class_of(ArtifactKind.TRANSFORMER)
        return [
            f'@router.get("/", name={self._route_name("index")})',
            "async def index(",
            f"{i1}request: Request,",
            self._service_param(),
            ") -> Dict[str, Any]:",
            f'{i1}"""List {self.naming.title_plural.lower()} (search, filters, sort, pagination)."""',
            f"{i1}page = await service.search(dict(request.query_params))",
            f"{i1}return {{",
            f'{i2}"data": {transformer}.collection(page["items"]),',
            f'{i2}"meta": {{"total": page["total"], "page": page["page"], "limit": page["limit"]}},',
            f"{i1}}}",
        ]

    def _store(self) -> List[str]:
        i1 = self._indent
        decorator: str = f'@router.post("/", status_code=201, name={self._route_name("store")})'
        if not self.config.api:
            decorator = f'@router.post("/", name={self._route_name("store")})'
        lines: List[str] = [
            decorator,
            "async def store(",
        ]
        if not self.config.api:
            lines.append(f"{i1}request: Request,")
        lines.extend([
            f"{i1}payload: {self.class_of(ArtifactKind.CREATE_REQUEST)},",
            f"{i1}db: AsyncSession = Depends(get_db),",
            self._service_param(),
            f") -> {self._mutating_return()}:",
            f"{i1}await payload.check_constraints(db)",
            f"{i1}record = await service.create(payload.model_dump())",
        ])
        lines.append(self._respond_with("record"))
        return lines

    def _show(self) -> List[str]:
        i1 = self._indent
        snake: str = self.naming.snake
        return [
            f'@router.get("/{{{snake}_id}}", name={self._route_name("show")})',
            "async def show(",
            self._id_param(),
            self._service_param(),
            ") -> Dict[str, Any]:",
            f"{i1}record = await service.find_or_fail({snake}_id)",
            f'{i1}return {{"data": {self.class_of(ArtifactKind.TRANSFORMER)}.transform(record)}}',
        ]

    def _update(self) -> List[str]:
        i1 = self._indent
        snake: str = self.naming.snake
        lines: List[str] = [
            f'@router.put("/{{{snake}_id}}", name={self._route_name("update")})',
            f'@router.patch("/{{{snake}_id}}", include_in_schema=False)',
            "async def update(",
        ]
        if not self.config.api:
            lines.append(f"{i1}request: Request,")
        lines.extend([
            self._id_param(),
            f"{i1}payload: {self.class_of(ArtifactKind.UPDATE_REQUEST)},",
            f"{i1}db: AsyncSession = Depends(get_db),",
            self._service_param(),
            f") -> {self._mutating_return()}:",
            f"{i1}record = await service.find_or_fail({snake}_id)",
            f"{i1}await payload.check_constraints(db, current_id={snake}_id)",
            f"{i1}record = await service.update(record, payload.model_dump(exclude_unset=True))",
        ])
        lines.append(self._respond_with("record"))
        return lines

    def _destroy(self) -> List[str]:
        i1 = self._indent
        snake: str = self.naming.snake
        if self.config.api:
            lines: List[str] = [
                f'@router.delete("/{{{snake}_id}}", status_code=204, name={self._route_name("destroy")})',
                "async def destroy(",
                self._id_param(),
                self._service_param(),
                ") -> Response:",
            ]
        else:
            lines = [
                f'@router.delete("/{{{snake}_id}}", name={self._route_name("destroy")})',
                "async def destroy(",
                f"{i1}request: Request,",
                self._id_param(),
                self._service_param(),
                ") -> RedirectResponse:",
            ]
        lines.append(f"{i1}record = await service.find_or_fail({snake}_id)")
        lines.append(f"{i1}await service.delete(record)")
        if self.config.api:
            lines.append(f"{i1}return Response(status_code=204)")
        else:
            lines.append(f"{i1}return _to_index(request)")
        return lines

    # -- Flavour helpers -----------------------------------------------------------

    def _mutating_return(self) -> str:
        return "Dict[str, Any]" if self.config.api else "RedirectResponse"

    def _respond_with(self, var: str) -> str:
        if self.config.api:
            transformer: str = self.class_of(ArtifactKind.TRANSFORMER)
            return f'{self._indent}return {{"data": {transformer}.transform({var})}}'
        return f"{self._indent}return _to_index(request)"

    def _redirect_helper(self) -> List[str]:
        i1 = self._indent
        return [
            "def _to_index(request: Request) -> RedirectResponse:",
            f'{i1}"""303 redirect to the listing page."""',
            f"{i1}return RedirectResponse(",
            f'{i1}{i1}str(request.url_for({self._route_name("index")})),',
            f"{i1}{i1}status_code=status.HTTP_303_SEE_OTHER,",
            f"{i1})",
        ]


__all__: List[str] = ["ControllerGenerator"]
