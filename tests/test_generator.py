"""
tests/test_generator.py
Integration tests for crudsmith.generator (the orchestrator).

Tests cover:
- Single entity generation end to end (files on disk, routes appended)
- Re-runs: skipped files, already registered routes, --force
- Missing routes file, dry runs and skipped artifact kinds
- Validation failures stop the entity before anything is written
- Batch generation from migration scripts, pivots included
- Config file loading (YAML, JSON, wrapper key) and override resolution
"""

from __future__ import annotations

import ast
import json
import logging
import pathlib
from typing import Any, Callable, Dict

import pytest

from crudsmith.generator import CrudGenerator, GenerationReport, load_config_file, resolve_config
from crudsmith.models import (
    ArtifactKind,
    ConfigError,
    GenerationConfig,
    MigrationDirectoryError,
)

CONFIG_EXAMPLE_PATH: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent / "crudsmith.example.yaml"
BLOG_POST_SPEC: str = "title:string:unique,body:text,author_id:integer"
GENERATED_FILE_COUNT: int = 11


def _read(root: pathlib.Path, rel_path: str) -> str:
    return (root / rel_path).read_text(encoding="utf-8")


# ===========================================================================
# Single entity
# ===========================================================================


class TestGenerateEntity:
    """``CrudGenerator.generate_entity``."""

    def test_end_to_end(self, config: GenerationConfig, project_root: pathlib.Path) -> None:
        report = CrudGenerator(config, project_root).generate_entity("BlogPost", BLOG_POST_SPEC)

        assert report.success, report.summary()
        assert report.entities == ["BlogPost"]
        assert len(report.written) == GENERATED_FILE_COUNT
        assert report.appended == ["app/routes/api.py"]
        assert report.warnings == []
        for rel_path in report.written:
            ast.parse(_read(project_root, rel_path))

        routes = _read(project_root, "app/routes/api.py")
        assert 'router.include_router(blog_post_router, prefix="/blog-posts")' in routes
        ast.parse(routes)

    def test_rerun_skips_everything(self, config: GenerationConfig, project_root: pathlib.Path) -> None:
        generator = CrudGenerator(config, project_root)
        generator.generate_entity("BlogPost", BLOG_POST_SPEC)
        model_path = project_root / "app" / "models" / "blog_post.py"
        model_path.write_text("# customised\n", encoding="utf-8")

        report = generator.generate_entity("BlogPost", BLOG_POST_SPEC)

        assert report.success
        assert report.written == []
        assert len(report.skipped) == GENERATED_FILE_COUNT
        assert report.appended == []
        assert len(report.warnings) == GENERATED_FILE_COUNT + 1
        assert model_path.read_text(encoding="utf-8") == "# customised\n"
        assert _read(project_root, "app/routes/api.py").count("include_router") == 1

    def test_force_overwrites(
        self,
        make_config: Callable[..., GenerationConfig],
        project_root: pathlib.Path,
    ) -> None:
        CrudGenerator(make_config(), project_root).generate_entity("BlogPost", BLOG_POST_SPEC)
        model_path = project_root / "app" / "models" / "blog_post.py"
        model_path.write_text("# customised\n", encoding="utf-8")

        report = CrudGenerator(make_config(force=True), project_root).generate_entity(
            "BlogPost", BLOG_POST_SPEC
        )

        assert len(report.written) == GENERATED_FILE_COUNT
        assert "class BlogPost(Base):" in model_path.read_text(encoding="utf-8")

    def test_missing_routes_file_is_a_warning(
        self, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        report = CrudGenerator(config, tmp_path).generate_entity("Tag", "name:string:unique")

        assert report.success
        assert any("not found" in w for w in report.warnings)
        assert not (tmp_path / "app" / "routes" / "api.py").exists()
        assert (tmp_path / "app" / "models" / "tag.py").exists()

    def test_dry_run(self, config: GenerationConfig, project_root: pathlib.Path) -> None:
        before = _read(project_root, "app/routes/api.py")
        report = CrudGenerator(config, project_root, dry_run=True).generate_entity(
            "BlogPost", BLOG_POST_SPEC
        )

        assert report.success
        assert report.dry_run is True
        assert len(report.written) == GENERATED_FILE_COUNT
        assert "(dry run)" in report.summary()
        assert not (project_root / "app" / "models").exists()
        assert _read(project_root, "app/routes/api.py") == before

    def test_skipped_kinds(self, config: GenerationConfig, project_root: pathlib.Path) -> None:
        report = CrudGenerator(config, project_root).generate_entity(
            "BlogPost",
            BLOG_POST_SPEC,
            skip=[ArtifactKind.FACTORY, ArtifactKind.SEEDER],
        )
        assert report.success
        assert not (project_root / "database").exists()
        assert len(report.written) == GENERATED_FILE_COUNT - 2

    def test_field_list_input(self, config: GenerationConfig, project_root: pathlib.Path) -> None:
        from crudsmith.parser import parse_fields

        report = CrudGenerator(config, project_root).generate_entity(
            "blog_posts", parse_fields(BLOG_POST_SPEC)
        )
        assert report.entities == ["BlogPost"]
        assert (project_root / "app" / "models" / "blog_post.py").exists()

    def test_validation_error_stops_the_entity(
        self, config: GenerationConfig, project_root: pathlib.Path
    ) -> None:
        report = CrudGenerator(config, project_root).generate_entity(
            "BlogPost", "id:integer,title:string"
        )

        assert not report.success
        assert report.validation_errors
        assert all(e.startswith("BlogPost: ") for e in report.validation_errors)
        assert "FIELD_NAME_RESERVED" in report.validation_errors[0]
        assert report.artifacts == []
        assert not (project_root / "app" / "models").exists()
        assert "FAILED" in report.summary()

    def test_validation_warnings_do_not_stop(
        self, config: GenerationConfig, project_root: pathlib.Path
    ) -> None:
        report = CrudGenerator(config, project_root).generate_entity("Event", "date:date")
        assert report.success
        assert any("FIELD_NAME_SHADOWS_IMPORT" in w for w in report.validation_warnings)

    def test_step_metrics(self, config: GenerationConfig, project_root: pathlib.Path) -> None:
        report = CrudGenerator(config, project_root).generate_entity("Tag", "name:string")
        assert [m.step_name for m in report.step_metrics] == [
            "Validate Tag",
            "Generate Tag",
            "Export Tag",
        ]
        assert report.total_elapsed_seconds >= 0.0
        assert report.total_lines > 0


# ===========================================================================
# Batch from migrations
# ===========================================================================


class TestGenerateFromMigrations:
    """``CrudGenerator.generate_from_migrations``."""

    def test_one_entity_per_table(
        self,
        config: GenerationConfig,
        project_root: pathlib.Path,
        migrations_dir: pathlib.Path,
    ) -> None:
        report = CrudGenerator(config, project_root).generate_from_migrations(migrations_dir)

        assert report.success, report.summary()
        assert report.entities == ["Post", "Tag", "PostTag"]
        assert len(report.skipped_scripts) == 2
        assert all(a.kind != ArtifactKind.MIGRATION for a in report.artifacts)
        assert sorted(p.name for p in migrations_dir.iterdir()) == [
            "0001_create_posts_table.py",
            "0002_create_tags_table.py",
            "0003_create_post_tag_table.py",
            "0004_create_sessions_table.py",
            "0005_add_subtitle_to_posts.py",
            "__init__.py",
        ]

    def test_pivot_relations(
        self,
        config: GenerationConfig,
        project_root: pathlib.Path,
        migrations_dir: pathlib.Path,
    ) -> None:
        CrudGenerator(config, project_root).generate_from_migrations(migrations_dir)

        post = _read(project_root, "app/models/post.py")
        tag = _read(project_root, "app/models/tag.py")
        pivot = _read(project_root, "app/models/post_tag.py")
        assert '__tablename__ = "posts"' in post
        assert 'tags: Mapped[List["Tag"]] = relationship("Tag", secondary="post_tag")' in post
        assert 'author: Mapped[Optional["User"]] = relationship("User", foreign_keys=[author_id])' in post
        assert 'posts: Mapped[List["Post"]] = relationship("Post", secondary="post_tag")' in tag
        assert '__tablename__ = "post_tag"' in pivot

    def test_extracted_details_reach_the_code(
        self,
        config: GenerationConfig,
        project_root: pathlib.Path,
        migrations_dir: pathlib.Path,
    ) -> None:
        CrudGenerator(config, project_root).generate_from_migrations(migrations_dir)

        post_model = _read(project_root, "app/models/post.py")
        create_request = _read(project_root, "app/requests/create_post_request.py")
        assert "String(length=200)" in post_model
        assert "default=False" in post_model
        assert "sqlalchemy.column(\"slug\")" in create_request
        assert "title: str = Field(..., max_length=200)" in create_request

    def test_routes_registered_for_every_entity(
        self,
        config: GenerationConfig,
        project_root: pathlib.Path,
        migrations_dir: pathlib.Path,
    ) -> None:
        CrudGenerator(config, project_root).generate_from_migrations(migrations_dir)
        routes = _read(project_root, "app/routes/api.py")
        assert routes.count("include_router") == 3
        for prefix in ('prefix="/posts"', 'prefix="/tags"', 'prefix="/post-tags"'):
            assert prefix in routes

    def test_ignore_tables_from_config(
        self,
        make_config: Callable[..., GenerationConfig],
        migrations_dir: pathlib.Path,
    ) -> None:
        tables = CrudGenerator(make_config(ignore_tables=[])).extract_tables(migrations_dir)
        assert [t.table for t in tables] == ["posts", "tags", "post_tag", "sessions"]

    def test_missing_directory(self, config: GenerationConfig, tmp_path: pathlib.Path) -> None:
        with pytest.raises(MigrationDirectoryError):
            CrudGenerator(config, tmp_path).generate_from_migrations(tmp_path / "nope")

    def test_directory_without_usable_scripts(
        self, config: GenerationConfig, tmp_path: pathlib.Path
    ) -> None:
        versions = tmp_path / "versions"
        versions.mkdir()
        (versions / "0001_noop.py").write_text("def upgrade() -> None:\n    pass\n", encoding="utf-8")
        with pytest.raises(MigrationDirectoryError):
            CrudGenerator(config, tmp_path).generate_from_migrations(versions)

    def test_report_merge(self) -> None:
        batch = GenerationReport()
        part = GenerationReport(entities=["Post"], warnings=["w"], validation_errors=["e"])
        batch.merge(part)
        batch.finalise(0.5)
        assert batch.entities == ["Post"]
        assert batch.warnings == ["w"]
        assert batch.success is False
        assert batch.total_elapsed_seconds == 0.5


# ===========================================================================
# Configuration loading
# ===========================================================================


class TestConfigLoading:
    """``load_config_file`` and ``resolve_config``."""

    def test_example_file_is_unwrapped(self, raw_config_dict: Dict[str, Any]) -> None:
        data = load_config_file(CONFIG_EXAMPLE_PATH)
        assert data == raw_config_dict["crudsmith"]
        config = resolve_config(data)
        assert config.default_pagination == 20
        assert "sessions" in config.ignore_tables

    def test_top_level_mapping(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "crudsmith.yaml"
        path.write_text("soft_deletes: true\nuuid: true\n", encoding="utf-8")
        assert load_config_file(path) == {"soft_deletes": True, "uuid": True}

    def test_json_file(self, tmp_path: pathlib.Path, config_dict: Dict[str, Any]) -> None:
        path = tmp_path / "crudsmith.json"
        path.write_text(json.dumps(config_dict), encoding="utf-8")
        assert load_config_file(path)["default_pagination"] == 20

    def test_empty_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config_file(path) == {}

    @pytest.mark.parametrize("content", ["key: [unclosed", "- just\n- a list\n", "crudsmith: 5\n"])
    def test_bad_files(self, tmp_path: pathlib.Path, content: str) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_invalid_json(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config_file(path)

    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        with pytest.raises(ConfigError):
            load_config_file(tmp_path / "absent.yaml")

    def test_overrides_win_and_none_is_ignored(self, config_dict: Dict[str, Any]) -> None:
        config = resolve_config(
            config_dict["crudsmith"],
            {"soft_deletes": True, "force": None, "api": False},
        )
        assert config.soft_deletes is True
        assert config.force is False
        assert config.api is False

    def test_paths_are_merged_key_by_key(self) -> None:
        config = resolve_config(
            {"paths": {"model": "src/models"}},
            {"paths": {"seeder": "seeds"}},
        )
        assert config.path_for(ArtifactKind.MODEL) == "src/models"
        assert config.path_for(ArtifactKind.SEEDER) == "seeds"
        assert config.path_for(ArtifactKind.POLICY) == "app/policies"

    @pytest.mark.parametrize("data", [
        {"default_pagination": 500},
        {"bogus_option": 1},
        {"paths": {"widgets": "app/widgets"}},
        {"default_pagination": 0},
    ])
    def test_invalid_options(self, data: Dict[str, Any]) -> None:
        with pytest.raises(ConfigError):
            resolve_config(data)

    @pytest.mark.parametrize("data,code", [
        ({"paths": {"model": ""}}, "EMPTY_OUTPUT_PATH"),
        ({"database_module": "app/db"}, "INVALID_DATABASE_MODULE"),
        ({"modules": {"service": "app.my-services"}}, "INVALID_MODULE_PATH"),
    ])
    def test_unusable_paths_and_modules(self, data: Dict[str, Any], code: str) -> None:
        with pytest.raises(ConfigError) as exc_info:
            resolve_config(data)
        assert f"[{code}]" in str(exc_info.value)

    def test_path_warnings_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="crudsmith.generator"):
            config = resolve_config({"paths": {"seeder": "../seeders"}})
        assert config.path_for(ArtifactKind.SEEDER) == "../seeders"
        assert "OUTPUT_PATH_ESCAPES_ROOT" in caplog.text

    def test_with_overrides_returns_a_validated_copy(self, config: GenerationConfig) -> None:
        forced = config.with_overrides(force=True)
        assert forced.force is True
        assert config.force is False
        assert forced.migration_timestamp == config.migration_timestamp
        with pytest.raises(ValueError):
            config.with_overrides(default_pagination=1000)
