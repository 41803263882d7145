# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for installation status and uninstall."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from kitsync.content import SourceTreeApplier
from kitsync.errors import KitsyncError
from kitsync.lifecycle import installation_status, uninstall
from kitsync.manifest import CatalogKind, ManifestStore
from kitsync.reconcile import ReconcileRequest, Reconciler


@pytest.fixture
def installed(project_dir: Path, source_dir: Path, ticking_clock: Callable[[], datetime]) -> Path:
    reconciler = Reconciler(SourceTreeApplier(source_dir), clock=ticking_clock)
    reconciler.run(ReconcileRequest(project_dir=project_dir, modules=("planning",)))
    return project_dir / "_kit"


def test_status_without_installation(project_dir: Path) -> None:
    status = installation_status(project_dir)

    assert not status.installed
    assert status.install_root == project_dir / "_kit"


def test_status_reports_drift_without_changing_files(installed: Path, project_dir: Path) -> None:
    edited = installed / "planning" / "templates" / "prd.md"
    edited.write_text("# edited\n", encoding="utf-8")
    (installed / "core" / "notes.txt").write_text("mine", encoding="utf-8")
    manifest_before = (installed / "_config" / "manifest.yaml").read_bytes()

    status = installation_status(project_dir)

    assert status.installed
    assert status.modified_files == ("planning/templates/prd.md",)
    assert status.custom_files == ("core/notes.txt",)
    assert status.catalog_counts[CatalogKind.WORKFLOWS] == 2
    assert not edited.with_name("prd.md.bak").exists()
    assert (installed / "_config" / "manifest.yaml").read_bytes() == manifest_before


def test_uninstall_module_keeps_edited_and_untracked_files(
    installed: Path,
    project_dir: Path,
    ticking_clock: Callable[[], datetime],
) -> None:
    (installed / "planning" / "templates" / "prd.md").write_text("# edited\n", encoding="utf-8")
    (installed / "planning" / "notes.txt").write_text("mine", encoding="utf-8")

    result = uninstall(project_dir, module="planning", clock=ticking_clock)

    assert result.removed_modules == ("planning",)
    assert result.kept_files == ("planning/notes.txt", "planning/templates/prd.md")
    assert not (installed / "planning" / "workflows").exists()
    assert not (installed / "planning" / "config.yaml").exists()
    store = ManifestStore(installed)
    manifest = store.load()
    assert manifest is not None
    assert manifest.module_names == ("core",)
    assert all(row["module"] != "planning" for row in store.load_table(CatalogKind.FILES))
    assert [row["name"] for row in store.load_table(CatalogKind.WORKFLOWS)] == ["brainstorm"]
    help_catalog = (installed / "_config" / "help-catalog.csv").read_text(encoding="utf-8")
    assert "Plan" not in help_catalog


def test_uninstall_everything_removes_install_root(installed: Path, project_dir: Path) -> None:
    result = uninstall(project_dir)

    assert result.removed_root
    assert not installed.exists()


def test_uninstall_unknown_module_fails(installed: Path, project_dir: Path) -> None:
    with pytest.raises(KitsyncError, match="not installed"):
        uninstall(project_dir, module="ghost")


def test_uninstall_without_installation_fails(project_dir: Path) -> None:
    with pytest.raises(KitsyncError, match="No installation"):
        uninstall(project_dir)
