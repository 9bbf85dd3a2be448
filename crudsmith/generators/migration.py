# File: crudsmith/generators/migration.py
"""Alembic schema-creation script (``op.create_table`` / ``op.drop_table``)."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional

from crudsmith.generators.base import GENERATED_BANNER, ArtifactGenerator
from crudsmith.models import ArtifactKind, FieldSpec
from crudsmith.typemap import server_default, storage_type
from crudsmith.utils import py_string, sha256_hex

logger: logging.Logger = logging.getLogger("crudsmith.generators.migration")

FILENAME_STAMP_FORMAT: str = "%Y_%m_%d_%H%M%S"
REVISION_LENGTH: int = 12


def revision_id(table: str, stamp: datetime) -> str:
    """Deterministic revision id: same table and timestamp, same id."""
    return sha256_hex(f"{table}:{stamp.isoformat()}")[:REVISION_LENGTH]


class MigrationGenerator(ArtifactGenerator):
    """
    Generates the Alembic script creating the entity's table.

    Column order: ``id``, declared fields, foreign-key constraints,
    ``deleted_at``, timestamps.
    """

    kind = ArtifactKind.MIGRATION

    @property
    def stamp(self) -> datetime:
        return self.config.migration_timestamp

    def filename(self) -> str:
        return f"{self.stamp.strftime(FILENAME_STAMP_FORMAT)}_create_{self.naming.table}_table.py"

    def render(self) -> str:
        table: str = self.naming.table
        indent2: str = self._double_indent

        lines: List[str] = [
            '"""' + f"create {table} table",
            "",
            f"Revision ID: {revision_id(table, self.stamp)}",
            "Revises:",
            f"Create Date: {self.stamp.isoformat(sep=' ', timespec='seconds')}",
            "",
            GENERATED_BANNER,
            '"""',
            "",
            "from typing import Sequence, Union",
            "",
            "import sqlalchemy as sa",
            "from alembic import op",
            "",
            f"revision: str = {py_string(revision_id(table, self.stamp))}",
            "down_revision: Union[str, None] = None",
            "branch_labels: Union[str, Sequence[str], None] = None",
            "depends_on: Union[str, Sequence[str], None] = None",
            "",
            "",
            "def upgrade() -> None:",
            f"{self._indent}op.create_table(",
            f"{indent2}{py_string(table)},",
        ]

        if self.config.uuid:
            lines.append(f'{indent2}sa.Column("id", sa.String(length=36), primary_key=True),')
        else:
            lines.append(
                f'{indent2}sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),'
            )

        for field in self.fields:
            lines.append(f"{indent2}{self._column(field)},")

        for field in self.fields:
            if field.foreign is None:
                continue
            target: str = py_string(f"{field.foreign.related_table}.id")
            lines.append(
                f"{indent2}sa.ForeignKeyConstraint("
                f'[{py_string(field.name)}], [{target}], ondelete="CASCADE"),'
            )

        if self.config.soft_deletes:
            lines.append(
                f'{indent2}sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),'
            )
        if self.config.timestamps:
            for column in ("created_at", "updated_at"):
                lines.append(
                    f'{indent2}sa.Column("{column}", sa.DateTime(timezone=True), '
                    "server_default=sa.func.now(), nullable=False),"
                )

        lines.append(f"{self._indent})")
        lines.append("")
        lines.append("")
        lines.append("def downgrade() -> None:")
        lines.append(f"{self._indent}op.drop_table({py_string(table)})")
        return self.finish(lines)

    def _column(self, field: FieldSpec) -> str:
        parts: List[str] = [py_string(field.name), storage_type(field, prefix="sa.")]
        parts.append(f"nullable={field.nullable}")
        if field.unique:
            parts.append("unique=True")
        if field.indexed:
            parts.append("index=True")
        default: Optional[str] = server_default(field)
        if default is not None:
            parts.append(f"server_default={default}")
        return f"sa.Column({', '.join(parts)})"


__all__: List[str] = ["FILENAME_STAMP_FORMAT", "MigrationGenerator", "revision_id"]
