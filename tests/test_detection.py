# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for customization detection."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from kitsync.detection import Classification, CustomizationDetector
from kitsync.hashing import hash_bytes
from kitsync.manifest import InstalledFile


def _tracked(path: str, content: bytes | None) -> InstalledFile:
    return InstalledFile(
        type="md",
        name=Path(path).stem,
        module=path.split("/", 1)[0],
        path=path,
        hash=hash_bytes(content) if content is not None else "",
    )


def test_detect_classifies_custom_and_modified_files(
    tmp_path: Path,
    tree_writer: Callable[[Path, dict[str, str]], Path],
) -> None:
    tree_writer(
        tmp_path,
        {
            "core/tasks/review.md": "original",
            "core/templates/prd.md": "edited",
            "core/notes.txt": "mine",
        },
    )
    prior = [_tracked("core/tasks/review.md", b"original"), _tracked("core/templates/prd.md", b"shipped")]

    report = CustomizationDetector(tmp_path).detect(prior)

    assert [(record.relative_path, record.classification) for record in report.records] == [
        ("core/notes.txt", Classification.CUSTOM),
        ("core/templates/prd.md", Classification.MODIFIED),
    ]
    assert report.unchanged == 1
    assert report.hashes_supported


def test_detect_skips_system_and_ephemeral_locations(
    tmp_path: Path,
    tree_writer: Callable[[Path, dict[str, str]], Path],
) -> None:
    tree_writer(
        tmp_path,
        {
            "_config/manifest.yaml": "x",
            "_config/files-manifest.csv": "x",
            "core/config.yaml": "generated",
            "core/.git/HEAD": "ref",
            "core/cache/blob.bin": "tmp",
            "core/cache/.kitsync-ephemeral": "",
            "_memory/helper-sidecar/memories.md": "remember",
            "core/agents/helper.md": "<agent/>",
        },
    )

    report = CustomizationDetector(tmp_path).detect([])

    assert report.records == ()
    assert sorted(report.skipped) == ["core/agents/helper.md", "core/config.yaml"]


def test_detect_disables_modification_check_without_hashes(
    tmp_path: Path,
    tree_writer: Callable[[Path, dict[str, str]], Path],
) -> None:
    tree_writer(tmp_path, {"core/tasks/review.md": "edited"})

    report = CustomizationDetector(tmp_path).detect([_tracked("core/tasks/review.md", None)])

    assert not report.hashes_supported
    assert report.modified == ()
    assert report.unchanged == 1


def test_detect_flags_changed_agent_customizations(
    tmp_path: Path,
    tree_writer: Callable[[Path, dict[str, str]], Path],
) -> None:
    tree_writer(
        tmp_path,
        {
            "_config/agents/helper.customize.yaml": "persona: mine\n",
            "_config/agents/other.customize.yaml": "persona: shipped\n",
        },
    )
    recorded = {
        "_config/agents/helper.customize.yaml": hash_bytes(b"persona: shipped\n"),
        "_config/agents/other.customize.yaml": hash_bytes(b"persona: shipped\n"),
    }

    report = CustomizationDetector(tmp_path).detect([], recorded)

    assert [record.relative_path for record in report.custom] == ["_config/agents/helper.customize.yaml"]
