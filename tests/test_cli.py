"""
tests/test_cli.py
Tests for the crudsmith command-line interface.

Tests cover:
- make: success, validation failure, artifact switches, config overrides
- from-migrations: explicit and configured directories, missing directory
- Input errors (missing or invalid config file) map to exit code 4
- Dry runs and quiet mode
"""

from __future__ import annotations

import logging
import pathlib
from typing import Iterator, List

import pytest

from crudsmith.cli import (
    EXIT_INPUT_ERROR,
    EXIT_SUCCESS,
    EXIT_VALIDATION_ERROR,
    main,
)

TAG_ARGS: List[str] = ["make", "Tag", "--fields", "name:string:unique"]


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """The CLI reconfigures the crudsmith logger; put it back after each test."""
    package_logger = logging.getLogger("crudsmith")
    handlers = list(package_logger.handlers)
    propagate = package_logger.propagate
    level = package_logger.level
    yield
    package_logger.handlers[:] = handlers
    package_logger.propagate = propagate
    package_logger.setLevel(level)
    logging.disable(logging.NOTSET)


# ===========================================================================
# Tests for make
# ===========================================================================


class TestMakeCommand:
    """``crudsmith make``."""

    def test_success(
        self, project_root: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main([*TAG_ARGS, "--root", str(project_root)])
        out = capsys.readouterr().out
        assert code == EXIT_SUCCESS
        assert "SUCCESS" in out
        assert "Tag" in out
        assert (project_root / "app" / "models" / "tag.py").exists()
        assert (project_root / "app" / "routers" / "tag.py").exists()
        assert 'prefix="/tags"' in (project_root / "app" / "routes" / "api.py").read_text(
            encoding="utf-8"
        )

    def test_validation_error(
        self, project_root: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["make", "Tag", "--fields", "id:integer", "--root", str(project_root)])
        assert code == EXIT_VALIDATION_ERROR
        assert "FAILED" in capsys.readouterr().out
        assert not (project_root / "app" / "models").exists()

    def test_skip_switches(self, project_root: pathlib.Path) -> None:
        code = main([
            *TAG_ARGS,
            "--root", str(project_root),
            "--no-factory", "--no-seeder", "--no-requests", "--no-routes",
        ])
        assert code == EXIT_SUCCESS
        assert not (project_root / "database").exists()
        assert not (project_root / "app" / "requests").exists()
        assert "include_router" not in (project_root / "app" / "routes" / "api.py").read_text(
            encoding="utf-8"
        )

    def test_no_repository_switches_to_the_inline_service(
        self, project_root: pathlib.Path
    ) -> None:
        code = main([*TAG_ARGS, "--root", str(project_root), "--no-repository"])
        assert code == EXIT_SUCCESS
        assert not (project_root / "app" / "repositories").exists()
        service = (project_root / "app" / "services" / "tag_service.py").read_text(
            encoding="utf-8"
        )
        assert "TagRepository" not in service
        assert "app.repositories" not in service
        assert "self.session = session" in service

    def test_shape_flags(self, project_root: pathlib.Path) -> None:
        code = main([*TAG_ARGS, "--root", str(project_root), "--soft-deletes", "--web"])
        assert code == EXIT_SUCCESS
        model = (project_root / "app" / "models" / "tag.py").read_text(encoding="utf-8")
        router = (project_root / "app" / "routers" / "tag.py").read_text(encoding="utf-8")
        assert "deleted_at" in model
        assert "RedirectResponse" in router

    def test_config_file(self, project_root: pathlib.Path) -> None:
        config_path = project_root / "crudsmith.yaml"
        config_path.write_text(
            "crudsmith:\n  soft_deletes: true\n  paths:\n    model: src/entities\n",
            encoding="utf-8",
        )
        code = main([*TAG_ARGS, "--root", str(project_root), "--config", str(config_path)])
        assert code == EXIT_SUCCESS
        model = project_root / "src" / "entities" / "tag.py"
        assert "deleted_at" in model.read_text(encoding="utf-8")

    def test_rerun_is_still_a_success(self, project_root: pathlib.Path) -> None:
        assert main([*TAG_ARGS, "--root", str(project_root)]) == EXIT_SUCCESS
        assert main([*TAG_ARGS, "--root", str(project_root)]) == EXIT_SUCCESS

    def test_dry_run(
        self, project_root: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main([*TAG_ARGS, "--root", str(project_root), "--dry-run"])
        assert code == EXIT_SUCCESS
        assert "(dry run)" in capsys.readouterr().out
        assert not (project_root / "app" / "models").exists()


# ===========================================================================
# Tests for from-migrations
# ===========================================================================


class TestFromMigrationsCommand:
    """``crudsmith from-migrations``."""

    def test_explicit_path(
        self,
        project_root: pathlib.Path,
        migrations_dir: pathlib.Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = main([
            "from-migrations", "--path", str(migrations_dir), "--root", str(project_root),
        ])
        out = capsys.readouterr().out
        assert code == EXIT_SUCCESS
        assert "Post, Tag, PostTag" in out
        assert "Skipped Scripts (2)" in out

    def test_configured_path(
        self, project_root: pathlib.Path, migrations_dir: pathlib.Path
    ) -> None:
        # migrations_dir lives at <root>/migrations/versions, the default path
        code = main(["from-migrations", "--root", str(project_root)])
        assert code == EXIT_SUCCESS
        assert (project_root / "app" / "models" / "post_tag.py").exists()

    def test_missing_directory(
        self, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["from-migrations", "--path", str(tmp_path / "nowhere")])
        assert code == EXIT_INPUT_ERROR
        assert "Migration directory not found" in capsys.readouterr().err


# ===========================================================================
# Tests for input errors and global options
# ===========================================================================


class TestGlobalBehaviour:
    """Config errors, quiet mode and argument parsing."""

    def test_missing_config_file(
        self, tmp_path: pathlib.Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main([*TAG_ARGS, "--root", str(tmp_path), "--config", str(tmp_path / "none.yaml")])
        assert code == EXIT_INPUT_ERROR
        assert "error: Config file not found" in capsys.readouterr().err

    def test_invalid_config_option(self, tmp_path: pathlib.Path) -> None:
        config_path = tmp_path / "crudsmith.yaml"
        config_path.write_text("default_pagination: 500\n", encoding="utf-8")
        code = main([*TAG_ARGS, "--root", str(tmp_path), "--config", str(config_path)])
        assert code == EXIT_INPUT_ERROR
        assert not (tmp_path / "app").exists()

    def test_quiet_mode_restores_logging(self, project_root: pathlib.Path) -> None:
        code = main([*TAG_ARGS, "--root", str(project_root), "-q"])
        assert code == EXIT_SUCCESS
        assert logging.root.manager.disable == logging.NOTSET

    def test_verbose_sets_level(self, project_root: pathlib.Path) -> None:
        main([*TAG_ARGS, "--root", str(project_root), "-vv"])
        assert logging.getLogger("crudsmith").level == logging.DEBUG

    def test_command_is_required(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 2

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("crudsmith ")
