# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for staging and restoring user files."""

from __future__ import annotations

from pathlib import Path

import pytest

from kitsync.detection import Classification, CustomizationRecord
from kitsync.staging import STAGING_PREFIX, BackupStager, RestoreMode


def _record(root: Path, relative: str, classification: Classification) -> CustomizationRecord:
    return CustomizationRecord(root / relative, relative, classification)


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    root = tmp_path / "project" / "_kit"
    (root / "core").mkdir(parents=True)
    (root / "core" / "notes.txt").write_text("mine", encoding="utf-8")
    (root / "core" / "prd.md").write_text("edited", encoding="utf-8")
    return root


def test_verbatim_restore_overwrites_original(install_root: Path) -> None:
    notes = install_root / "core" / "notes.txt"
    with BackupStager(install_root) as stager:
        handle = stager.stage([_record(install_root, "core/notes.txt", Classification.CUSTOM)], RestoreMode.VERBATIM)
        notes.unlink()

        written = stager.restore(handle)
        staging_dir = stager.staging_dir

    assert written == [notes]
    assert notes.read_text(encoding="utf-8") == "mine"
    assert handle.restored
    assert staging_dir.name.startswith(STAGING_PREFIX)
    assert not staging_dir.exists()


def test_sibling_restore_writes_bak_next_to_new_content(install_root: Path) -> None:
    target = install_root / "core" / "prd.md"
    with BackupStager(install_root) as stager:
        handle = stager.stage([_record(install_root, "core/prd.md", Classification.MODIFIED)], RestoreMode.SIBLING_BACKUP)
        target.write_text("shipped v2", encoding="utf-8")
        written = stager.restore(handle)

    assert written == [install_root / "core" / "prd.md.bak"]
    assert target.read_text(encoding="utf-8") == "shipped v2"
    assert written[0].read_text(encoding="utf-8") == "edited"


def test_unrestored_handle_keeps_staging_directory(install_root: Path) -> None:
    with BackupStager(install_root) as stager:
        stager.stage([_record(install_root, "core/notes.txt", Classification.CUSTOM)], RestoreMode.VERBATIM)

    assert stager.retained_path is not None
    assert (stager.retained_path / "verbatim" / "core" / "notes.txt").read_text(encoding="utf-8") == "mine"


def test_stage_reports_unreadable_files(install_root: Path) -> None:
    with BackupStager(install_root) as stager:
        handle = stager.stage([_record(install_root, "core/missing.txt", Classification.CUSTOM)], RestoreMode.VERBATIM)

    assert handle.records == ()
    assert handle.failures and handle.failures[0].startswith("could not stage core/missing.txt")
    assert handle.restored
    assert stager.retained_path is None


def test_staging_dir_outside_context_raises(install_root: Path) -> None:
    with pytest.raises(RuntimeError):
        _ = BackupStager(install_root).staging_dir
