# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for layered engine settings."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from kitsync.errors import SettingsError
from kitsync.settings import DefaultSettingsSource, EngineSettings, SettingsSource, default_sources, load_settings


def test_defaults_without_configuration(tmp_path: Path) -> None:
    settings = load_settings(tmp_path)

    assert settings == EngineSettings()
    assert settings.folder_name == "_kit"
    assert {".git", "node_modules"} <= set(settings.ephemeral_dirs)


def test_kitsync_toml_overrides_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        '[tool.kitsync]\nfolder-name = "_agents"\nhash-workers = 2\n',
        encoding="utf-8",
    )
    (tmp_path / "kitsync.toml").write_text('hash_workers = 8\nephemeral_dirs = ["cache"]\n', encoding="utf-8")

    settings = load_settings(tmp_path)

    assert settings.folder_name == "_agents"
    assert settings.hash_workers == 8
    assert settings.ephemeral_dirs == (".git", "cache", "node_modules")


def test_overrides_win_and_none_is_ignored(tmp_path: Path) -> None:
    (tmp_path / "kitsync.toml").write_text('folder_name = "_team"\n', encoding="utf-8")

    assert load_settings(tmp_path, overrides={"folder_name": None}).folder_name == "_team"
    assert load_settings(tmp_path, overrides={"folder_name": "_cli"}).folder_name == "_cli"


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ('folder_name = "a/b"\n', "folder_name"),
        ("hash_workers = 0\n", "hash_workers"),
        ('unknown_key = "x"\n', "unknown_key"),
        ("folder_name = [\n", "Invalid TOML"),
    ],
)
def test_invalid_settings_raise(tmp_path: Path, content: str, message: str) -> None:
    (tmp_path / "kitsync.toml").write_text(content, encoding="utf-8")

    with pytest.raises(SettingsError, match=message):
        load_settings(tmp_path)


class _EnvSource:
    name = "env"

    def load(self) -> Mapping[str, Any]:
        return {"hash_workers": 3}

    def describe(self) -> str:
        return "Environment"


def test_settings_sources_follow_the_protocol(tmp_path: Path) -> None:
    assert all(isinstance(source, SettingsSource) for source in default_sources(tmp_path))
    assert isinstance(_EnvSource(), SettingsSource)
    with pytest.raises(TypeError):
        SettingsSource()  # type: ignore[misc]

    settings = load_settings(tmp_path, sources=[DefaultSettingsSource(), _EnvSource()])

    assert settings.hash_workers == 3
