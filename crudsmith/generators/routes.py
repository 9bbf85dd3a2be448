# File: crudsmith/generators/routes.py
"""
Route registration block appended to ``app/routes/api.py`` (or ``web.py``).

The target file is expected to define ``router = APIRouter()``; the block
mounts the entity's router on it under the kebab-plural URL segment. The
``prefix="/..."`` text doubles as the marker telling the exporter that the
block is already there.
"""

from __future__ import annotations

import logging
from typing import List

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind, GeneratedArtifact
from crudsmith.utils import py_string

logger: logging.Logger = logging.getLogger("crudsmith.generators.routes")


class RoutesGenerator(ArtifactGenerator):
    kind = ArtifactKind.ROUTES

    @property
    def routes_file(self) -> str:
        return "api" if self.config.api else "web"

    @property
    def identifier(self) -> str:
        return f"prefix={py_string('/' + self.naming.kebab_plural)}"

    def filename(self) -> str:
        return f"{self.routes_file}.py"

    def render(self) -> str:
        alias: str = f"{self.naming.snake}_router"
        module: str = self.module_of(ArtifactKind.CONTROLLER)
        lines: List[str] = [
            "",
            f"# {self.naming.base} routes",
            f"from {module} import router as {alias}  # noqa: E402",
            "",
            f"router.include_router({alias}, {self.identifier})",
        ]
        return "\n".join(lines) + "\n"

    def generate(self) -> GeneratedArtifact:
        return GeneratedArtifact(
            kind=self.kind,
            path=self.target_path(),
            content=self.render(),
            append=True,
            identifier=self.identifier,
        )


__all__: List[str] = ["RoutesGenerator"]
