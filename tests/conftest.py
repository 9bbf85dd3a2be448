"""
tests/conftest.py
Shared fixtures for the crudsmith test suite.

No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
import textwrap
from datetime import datetime
from typing import Any, Dict

import pytest
import yaml

from crudsmith.models import GenerationConfig

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
CONFIG_EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "crudsmith.example.yaml"

FIXED_STAMP: datetime = datetime(2024, 1, 2, 3, 4, 5)

ROUTES_FILE_HEADER: str = textwrap.dedent(
    """\
    from fastapi import APIRouter

    router = APIRouter()
    """
)


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_config_dict() -> Dict[str, Any]:
    """Load the reference crudsmith.example.yaml once per session."""
    assert CONFIG_EXAMPLE_PATH.exists(), (
        f"Reference config not found at {CONFIG_EXAMPLE_PATH}."
    )
    with open(CONFIG_EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def config_dict(raw_config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_config_dict)


@pytest.fixture()
def config() -> GenerationConfig:
    """Default configuration with a fixed migration timestamp."""
    return GenerationConfig(migration_timestamp=FIXED_STAMP)


@pytest.fixture()
def make_config():
    """Factory for configurations with overrides and the fixed timestamp."""

    def _make(**overrides: Any) -> GenerationConfig:
        return GenerationConfig(migration_timestamp=FIXED_STAMP, **overrides)

    return _make


# ---------------------------------------------------------------------------
# Project tree fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def project_root(tmp_path: pathlib.Path) -> pathlib.Path:
    """Empty project with the two route files in place."""
    routes = tmp_path / "app" / "routes"
    routes.mkdir(parents=True)
    (routes / "api.py").write_text(ROUTES_FILE_HEADER, encoding="utf-8")
    (routes / "web.py").write_text(ROUTES_FILE_HEADER, encoding="utf-8")
    return tmp_path


# ---------------------------------------------------------------------------
# Migration script fixtures
# ---------------------------------------------------------------------------

POSTS_SCRIPT: str = textwrap.dedent(
    '''\
    """create posts table

    Revision ID: 0001
    """
    import sqlalchemy as sa
    from alembic import op

    revision = "0001"
    down_revision = None


    def upgrade() -> None:
        op.create_table(
            "posts",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("slug", sa.String(120), nullable=False, unique=True),
            sa.Column("body", sa.Text(), nullable=True),
            sa.Column("views", sa.Integer(), server_default=sa.text("0"), nullable=False),
            sa.Column("price", sa.Numeric(precision=8, scale=2), nullable=True),
            sa.Column("published", sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.Column("author_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_posts_title", "posts", ["title"])


    def downgrade() -> None:
        op.drop_table("posts")
    '''
)

TAGS_SCRIPT: str = textwrap.dedent(
    '''\
    """create tags table"""
    import sqlalchemy as sa
    from alembic import op

    revision = "0002"
    down_revision = "0001"


    def upgrade() -> None:
        op.create_table(
            "tags",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("name", sa.String(length=50), nullable=False),
            sa.UniqueConstraint("name"),
        )


    def downgrade() -> None:
        op.drop_table("tags")
    '''
)

POST_TAG_SCRIPT: str = textwrap.dedent(
    '''\
    """create post_tag table"""
    import sqlalchemy as sa
    from alembic import op

    revision = "0003"
    down_revision = "0002"


    def upgrade() -> None:
        op.create_table(
            "post_tag",
            sa.Column("post_id", sa.Integer(), nullable=False),
            sa.Column("tag_id", sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(["post_id"], ["posts.id"]),
            sa.ForeignKeyConstraint(["tag_id"], ["tags.id"]),
            sa.PrimaryKeyConstraint("post_id", "tag_id"),
        )


    def downgrade() -> None:
        op.drop_table("post_tag")
    '''
)

SESSIONS_SCRIPT: str = textwrap.dedent(
    '''\
    import sqlalchemy as sa
    from alembic import op


    def upgrade() -> None:
        op.create_table(
            "sessions",
            sa.Column("id", sa.String(length=40), primary_key=True),
            sa.Column("payload", sa.Text(), nullable=False),
        )
    '''
)

ADD_COLUMN_SCRIPT: str = textwrap.dedent(
    '''\
    import sqlalchemy as sa
    from alembic import op


    def upgrade() -> None:
        op.add_column("posts", sa.Column("subtitle", sa.String(length=100), nullable=True))
    '''
)


@pytest.fixture()
def migrations_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Alembic versions directory with a blog schema, a system table and noise."""
    versions = tmp_path / "migrations" / "versions"
    versions.mkdir(parents=True)
    scripts: Dict[str, str] = {
        "0001_create_posts_table.py": POSTS_SCRIPT,
        "0002_create_tags_table.py": TAGS_SCRIPT,
        "0003_create_post_tag_table.py": POST_TAG_SCRIPT,
        "0004_create_sessions_table.py": SESSIONS_SCRIPT,
        "0005_add_subtitle_to_posts.py": ADD_COLUMN_SCRIPT,
        "__init__.py": "",
    }
    for name, content in scripts.items():
        (versions / name).write_text(content, encoding="utf-8")
    return versions
