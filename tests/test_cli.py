# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI tests for install, status and uninstall."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from kitsync.cli.app import app


def _install(runner: CliRunner, project_dir: Path, source_dir: Path, *extra: str):
    return runner.invoke(
        app,
        [
            "install",
            "--directory",
            str(project_dir),
            "--source",
            str(source_dir),
            "--module",
            "planning",
            "--no-emoji",
            *extra,
        ],
    )


def test_install_then_status(project_dir: Path, source_dir: Path) -> None:
    runner = CliRunner()

    result = _install(runner, project_dir, source_dir, "--set", "core.user_name=Riley", "--ide", "cursor")

    assert result.exit_code == 0, result.stdout
    assert "Installed core, planning" in result.stdout
    assert "✅" not in result.stdout
    assert "user_name: Riley" in (project_dir / "_kit" / "core" / "config.yaml").read_text(encoding="utf-8")

    status = runner.invoke(app, ["status", "--directory", str(project_dir), "--no-emoji"])

    assert status.exit_code == 0
    assert "planning 2.1.0" in status.stdout


def test_update_reports_backups(project_dir: Path, source_dir: Path) -> None:
    runner = CliRunner()
    _install(runner, project_dir, source_dir)
    (project_dir / "_kit" / "planning" / "templates" / "prd.md").write_text("# mine\n", encoding="utf-8")

    result = _install(runner, project_dir, source_dir)

    assert result.exit_code == 0
    assert "Updated core, planning" in result.stdout
    assert "planning/templates/prd.md.bak" in result.stdout


def test_install_rejects_malformed_assignment(project_dir: Path, source_dir: Path) -> None:
    result = _install(CliRunner(), project_dir, source_dir, "--set", "user_name=Riley")

    assert result.exit_code == 1
    assert "expected module.key=value" in result.stdout
    assert not (project_dir / "_kit").exists()


def test_install_reports_configuration_errors(project_dir: Path, source_dir: Path) -> None:
    result = _install(CliRunner(), project_dir, source_dir, "--set", "planning.skill_level=wizard")

    assert result.exit_code == 1
    assert "must be one of" in result.stdout


def test_install_honours_folder_option(project_dir: Path, source_dir: Path) -> None:
    result = _install(CliRunner(), project_dir, source_dir, "--folder", "_agents")

    assert result.exit_code == 0
    assert (project_dir / "_agents" / "_config" / "manifest.yaml").is_file()


def test_status_without_installation(project_dir: Path) -> None:
    result = CliRunner().invoke(app, ["status", "--directory", str(project_dir), "--no-emoji"])

    assert result.exit_code == 0
    assert "No installation found" in result.stdout


def test_uninstall_asks_for_confirmation(project_dir: Path, source_dir: Path) -> None:
    runner = CliRunner()
    _install(runner, project_dir, source_dir)

    declined = runner.invoke(app, ["uninstall", "--directory", str(project_dir), "--no-emoji"], input="n\n")

    assert declined.exit_code == 0
    assert "Nothing removed" in declined.stdout
    assert (project_dir / "_kit").is_dir()

    accepted = runner.invoke(
        app,
        ["uninstall", "--directory", str(project_dir), "--module", "planning", "--yes", "--no-emoji"],
    )

    assert accepted.exit_code == 0
    assert "Removed module 'planning'" in accepted.stdout
    assert not (project_dir / "_kit" / "planning").exists()


def test_uninstall_unknown_module_exits_with_error(project_dir: Path, source_dir: Path) -> None:
    runner = CliRunner()
    _install(runner, project_dir, source_dir)

    result = runner.invoke(
        app,
        ["uninstall", "--directory", str(project_dir), "--module", "ghost", "--yes", "--no-emoji"],
    )

    assert result.exit_code == 1
    assert "not installed" in result.stdout
