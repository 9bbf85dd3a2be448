"""
tests/test_extractor.py
Unit tests for crudsmith.extractor.

Tests cover:
- Column recovery: names, types, sizes, flags and defaults
- Column-level and table-level foreign keys
- Uniqueness from constraints and from op.create_index
- System tables and scripts that create no table
- Script discovery order and unreadable files
"""

from __future__ import annotations

import pathlib
import textwrap
from typing import Dict

from crudsmith.extractor import discover_scripts, extract, extract_file
from crudsmith.models import FieldSpec, ForeignRef, RelationHint, RelationType


def _by_name(fields: list) -> Dict[str, FieldSpec]:
    return {f.name: f for f in fields}


# ===========================================================================
# Tests for a full create_table script
# ===========================================================================


class TestExtractPostsTable:
    """The posts script of the shared fixture directory."""

    def test_table_and_entity(self, migrations_dir: pathlib.Path) -> None:
        table = extract_file(migrations_dir / "0001_create_posts_table.py")
        assert table is not None
        assert table.table == "posts"
        assert table.entity == "Post"
        assert table.source_file == str(migrations_dir / "0001_create_posts_table.py")

    def test_automatic_columns_are_skipped(self, migrations_dir: pathlib.Path) -> None:
        table = extract_file(migrations_dir / "0001_create_posts_table.py")
        assert table is not None
        assert [f.name for f in table.fields] == [
            "title", "slug", "body", "views", "price", "published", "author_id",
        ]

    def test_column_details(self, migrations_dir: pathlib.Path) -> None:
        table = extract_file(migrations_dir / "0001_create_posts_table.py")
        assert table is not None
        fields = _by_name(table.fields)

        assert fields["title"].type == "string"
        assert fields["title"].length == 200
        assert fields["title"].nullable is False
        assert fields["title"].indexed is True
        assert fields["title"].unique is False

        assert fields["slug"].length == 120
        assert fields["slug"].unique is True

        assert fields["body"].type == "text"
        assert fields["body"].nullable is True

        assert fields["views"].type == "integer"
        assert fields["views"].default == "0"

        assert fields["price"].type == "decimal"
        assert fields["price"].precision == 8

        assert fields["published"].type == "boolean"
        assert fields["published"].default == "false"

    def test_column_level_foreign_key(self, migrations_dir: pathlib.Path) -> None:
        table = extract_file(migrations_dir / "0001_create_posts_table.py")
        assert table is not None
        author = _by_name(table.fields)["author_id"]
        assert author.type == "foreign_id"
        assert author.foreign == ForeignRef(related_entity="User", related_table="users")
        assert table.relations == [
            RelationHint(type=RelationType.BELONGS_TO, related="User", foreign_key="author_id"),
        ]
        assert table.foreign_count == 1


# ===========================================================================
# Tests for constraints and pivots
# ===========================================================================


class TestConstraints:
    """Table-level constraints and indexes."""

    def test_unique_constraint(self, migrations_dir: pathlib.Path) -> None:
        table = extract_file(migrations_dir / "0002_create_tags_table.py")
        assert table is not None
        name = _by_name(table.fields)["name"]
        assert name.unique is True
        assert name.length == 50
        assert table.relations == []

    def test_table_level_foreign_keys(self, migrations_dir: pathlib.Path) -> None:
        table = extract_file(migrations_dir / "0003_create_post_tag_table.py")
        assert table is not None
        assert table.entity == "PostTag"
        assert [f.type for f in table.fields] == ["foreign_id", "foreign_id"]
        assert [r.related for r in table.relations] == ["Post", "Tag"]
        assert [r.foreign_key for r in table.relations] == ["post_id", "tag_id"]

    def test_unique_index(self) -> None:
        script = textwrap.dedent(
            """\
            def upgrade() -> None:
                op.create_table(
                    "widgets",
                    sa.Column("id", sa.Integer(), primary_key=True),
                    sa.Column("code", sa.String(length=20), nullable=False),
                )
                op.create_index("ix_widgets_code", "widgets", ["code"], unique=True)
            """
        )
        table = extract(script)
        assert table is not None
        code = table.fields[0]
        assert code.indexed is True
        assert code.unique is True

    def test_integer_id_suffix_without_link(self) -> None:
        script = textwrap.dedent(
            """\
            op.create_table(
                "projects",
                sa.Column("owner_id", sa.Integer(), nullable=True),
            )
            """
        )
        table = extract(script)
        assert table is not None
        owner = table.fields[0]
        assert owner.type == "integer"
        assert owner.nullable is True
        assert owner.foreign == ForeignRef(related_entity="Owner", related_table="owners")
        assert table.relations[0].foreign_key == "owner_id"


# ===========================================================================
# Tests for scripts that yield nothing
# ===========================================================================


class TestNoTable:
    """Scripts the extractor skips."""

    def test_ignored_system_table(self, migrations_dir: pathlib.Path) -> None:
        assert extract_file(migrations_dir / "0004_create_sessions_table.py") is None

    def test_ignore_list_is_configurable(self, migrations_dir: pathlib.Path) -> None:
        table = extract_file(migrations_dir / "0004_create_sessions_table.py", ignore_tables=[])
        assert table is not None
        assert table.entity == "Session"
        assert [f.name for f in table.fields] == ["payload"]

    def test_script_without_create_table(self, migrations_dir: pathlib.Path) -> None:
        assert extract_file(migrations_dir / "0005_add_subtitle_to_posts.py") is None

    def test_only_automatic_columns(self) -> None:
        script = 'op.create_table("markers",\n    sa.Column("id", sa.Integer()),\n)'
        assert extract(script) is None

    def test_unreadable_file(self, tmp_path: pathlib.Path) -> None:
        assert extract_file(tmp_path / "missing.py") is None


# ===========================================================================
# Tests for discover_scripts
# ===========================================================================


class TestDiscoverScripts:
    """Script discovery."""

    def test_sorted_and_dunder_files_excluded(self, migrations_dir: pathlib.Path) -> None:
        names = [p.name for p in discover_scripts(migrations_dir)]
        assert names == [
            "0001_create_posts_table.py",
            "0002_create_tags_table.py",
            "0003_create_post_tag_table.py",
            "0004_create_sessions_table.py",
            "0005_add_subtitle_to_posts.py",
        ]

    def test_empty_directory(self, tmp_path: pathlib.Path) -> None:
        assert discover_scripts(tmp_path) == []
