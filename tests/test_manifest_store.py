# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for manifest persistence and catalog schema upgrades."""

from __future__ import annotations

from pathlib import Path

import pytest

from kitsync.errors import ManifestWriteError
from kitsync.manifest import (
    CatalogKind,
    InstallationInfo,
    Manifest,
    ManifestStore,
    ModuleRecord,
    ModuleSource,
    upgrade_row,
    upgrade_rows,
)
from kitsync.manifest.schema import AGENT_SCHEMA, TASK_SCHEMA


def _manifest() -> Manifest:
    return Manifest(
        installation=InstallationInfo(
            version="1.0.0",
            install_date="2025-01-01T00:00:00.000Z",
            last_updated="2025-01-02T00:00:00.000Z",
        ),
        modules=[ModuleRecord(name="core", version="1.0.0", source=ModuleSource.BUILT_IN)],
        ides=["cursor"],
    )


def test_write_then_load_round_trips_manifest(tmp_path: Path) -> None:
    store = ManifestStore(tmp_path / "_kit")

    store.write(_manifest())

    text = store.manifest_path.read_text(encoding="utf-8")
    assert "2025-01-01T00:00:00.000Z" in text
    assert "agentCustomizations" not in text
    assert store.load() == _manifest()


def test_load_accepts_legacy_module_lists(tmp_path: Path) -> None:
    store = ManifestStore(tmp_path)
    store.manifest_path.parent.mkdir(parents=True)
    store.manifest_path.write_text(
        "installation:\n  version: 0.9\n  installDate: a\n  lastUpdated: b\nmodules:\n  - core\n  - name: planning\n    source: npm\n",
        encoding="utf-8",
    )

    manifest = store.load()

    assert manifest is not None
    assert manifest.module_names == ("core", "planning")
    assert manifest.module("planning").source is ModuleSource.EXTERNAL
    assert manifest.ides == []


@pytest.mark.parametrize(
    "content",
    ["installation: [unclosed\n", "- just\n- a list\n", "modules: []\n"],
)
def test_untrusted_manifest_loads_as_none_with_warning(tmp_path: Path, content: str) -> None:
    warnings: list[str] = []
    store = ManifestStore(tmp_path, on_warning=warnings.append)
    store.manifest_path.parent.mkdir(parents=True)
    store.manifest_path.write_text(content, encoding="utf-8")

    assert store.load() is None
    assert len(warnings) == 1


def test_missing_manifest_is_a_fresh_install(tmp_path: Path) -> None:
    warnings: list[str] = []

    assert ManifestStore(tmp_path, on_warning=warnings.append).load() is None
    assert warnings == []


def test_malformed_table_is_treated_as_empty(tmp_path: Path) -> None:
    warnings: list[str] = []
    store = ManifestStore(tmp_path, on_warning=warnings.append)
    path = store.table_path(CatalogKind.WORKFLOWS)
    path.parent.mkdir(parents=True)
    path.write_text('name,module\n"unterminated,core\n', encoding="utf-8")

    assert store.load_table(CatalogKind.WORKFLOWS) == []
    assert "Malformed catalog" in warnings[0]


def test_write_failure_raises_manifest_write_error(tmp_path: Path) -> None:
    blocker = tmp_path / "_kit"
    blocker.write_text("not a directory", encoding="utf-8")
    store = ManifestStore(blocker)

    with pytest.raises(ManifestWriteError) as excinfo:
        store.write(_manifest())

    assert excinfo.value.path == store.manifest_path


def test_load_files_skips_rows_without_path(tmp_path: Path) -> None:
    store = ManifestStore(tmp_path)
    store.write_table(
        CatalogKind.FILES,
        [
            {"type": "md", "name": "a", "module": "core", "path": "core/a.md", "hash": "abc"},
            {"type": "md", "name": "b", "module": "core", "path": "", "hash": ""},
        ],
    )

    files = store.load_files()

    assert [(entry.path, entry.hash) for entry in files] == [("core/a.md", "abc")]


def test_file_paths_keep_their_whitespace(tmp_path: Path) -> None:
    store = ManifestStore(tmp_path)
    store.write_table(
        CatalogKind.FILES,
        [{"type": "md", "name": "my  plan", "module": "planning", "path": "planning/templates/my  plan.md", "hash": "abc"}],
    )

    files = store.load_files()

    assert [entry.path for entry in files] == ["planning/templates/my  plan.md"]


def test_descriptions_round_trip_through_the_workflow_table(tmp_path: Path) -> None:
    store = ManifestStore(tmp_path)
    store.write_table(
        CatalogKind.WORKFLOWS,
        [
            {
                "name": "plan",
                "description": 'Draft a "plan", then\nreview it',
                "module": "planning",
                "path": "planning/workflows/plan.yaml",
            },
        ],
    )

    rows = store.load_table(CatalogKind.WORKFLOWS)

    assert rows == [
        {
            "name": "plan",
            "description": 'Draft a "plan", then review it',
            "module": "planning",
            "path": "planning/workflows/plan.yaml",
        },
    ]


def test_upgrade_row_adds_defaults_and_drops_retired_columns() -> None:
    row = {"name": "review", "module": "core", "path": "_kit/core/tasks/review.xml", "legacy": "x"}

    upgraded = upgrade_row(row, TASK_SCHEMA)

    assert upgraded == {
        "name": "review",
        "displayName": "",
        "description": "",
        "module": "core",
        "path": "_kit/core/tasks/review.xml",
        "standalone": "true",
    }


def test_upgrade_rows_filters_by_module() -> None:
    rows = [{"name": "a", "module": "core"}, {"name": "b", "module": "planning"}]

    upgraded = upgrade_rows(rows, AGENT_SCHEMA, modules=["planning"])

    assert [row["name"] for row in upgraded] == ["b"]
    assert list(upgraded[0]) == list(AGENT_SCHEMA.columns)
