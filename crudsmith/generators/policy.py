# File: crudsmith/generators/policy.py
"""Authorization policy stub; every action is allowed until rules are written."""

from __future__ import annotations

import logging
from typing import List, Tuple

from crudsmith.generators.base import ArtifactGenerator
from crudsmith.models import ArtifactKind
from crudsmith.utils import build_import_block

logger: logging.Logger = logging.getLogger("crudsmith.generators.policy")

# (method, takes the instance, docstring)
POLICY_ACTIONS: Tuple[Tuple[str, bool, str], ...] = (
    ("can_view_any", False, "Whether *user* may list {plural}."),
    ("can_view", True, "Whether *user* may view the {entity}."),
    ("can_create", False, "Whether *user* may create {plural}."),
    ("can_update", True, "Whether *user* may update the {entity}."),
    ("can_delete", True, "Whether *user* may delete the {entity}."),
    ("can_restore", True, "Whether *user* may restore the soft-deleted {entity}."),
    ("can_force_delete", True, "Whether *user* may permanently delete the {entity}."),
)


class PolicyGenerator(ArtifactGenerator):
    kind = ArtifactKind.POLICY

    def render(self) -> str:
        base: str = self.naming.base
        plural: str = self.naming.title_plural.lower()
        entity: str = self.naming.snake.replace("_", " ")
        i1, i2 = self._indent, self._double_indent

        lines: List[str] = self.header(f"Authorization policy for {base}.")
        lines.append(build_import_block({
            "typing": {"Any"},
            self.module_of(ArtifactKind.MODEL): {base},
        }))
        lines.append("")
        lines.append("")
        lines.append(f"class {self.class_of(ArtifactKind.POLICY)}:")
        lines.append(f'{i1}"""Access rules for {base}. All actions are allowed by default."""')
        for method, with_instance, doc in POLICY_ACTIONS:
            params: str = "self, user: Any"
            if with_instance:
                params += f", {self.naming.snake}: {base}"
            lines.append("")
            lines.append(f"{i1}def {method}({params}) -> bool:")
            lines.append(f'{i2}"""{doc.format(plural=plural, entity=entity)}"""')
            lines.append(f"{i2}return True")
        return self.finish(lines)


__all__: List[str] = ["POLICY_ACTIONS", "PolicyGenerator"]
