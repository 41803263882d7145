# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for configuration fields, resolution and generated files."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from kitsync.config import (
    ConfigResolver,
    ModuleConfigSpec,
    MultiSelectField,
    PromptField,
    SingleSelectField,
    StaticField,
    parse_fields,
    read_module_configs,
    render_module_config,
    write_module_configs,
)
from kitsync.errors import ConfigResolutionError, PlaceholderCycleError


def _spec(module: str, declarations: dict[str, object]) -> ModuleConfigSpec:
    return ModuleConfigSpec(module=module, fields=parse_fields(declarations, module=module))


def test_parse_fields_infers_kinds() -> None:
    fields = parse_fields(
        {
            "team": "core-team",
            "name": {"prompt": ["What is", "your name?"], "default": "Sam"},
            "level": {"single-select": [{"value": "low", "label": "Low"}, "high"], "default": "high"},
            "langs": {"multi-select": ["py", "ts"], "default": "py"},
        },
        module="core",
    )

    assert [type(item) for item in fields] == [StaticField, PromptField, SingleSelectField, MultiSelectField]
    assert fields[1].prompt == "What is your name?"
    assert fields[3].default == ("py",)


def test_parse_fields_reports_invalid_declarations() -> None:
    with pytest.raises(ConfigResolutionError, match="core.odd"):
        parse_fields({"odd": {"kind": "slider"}}, module="core")


def test_resolver_applies_answers_results_and_references(tmp_path: Path) -> None:
    project = tmp_path / "my-project"
    specs = [
        _spec(
            "core",
            {
                "output_folder": {"prompt": "Output?", "default": "docs", "result": "{project-root}/{value}"},
                "user_name": {"prompt": "Name?", "default": "Sam"},
            },
        ),
        _spec(
            "planning",
            {
                "artifacts": {"prompt": "Where?", "default": "{output_folder}/planning"},
                "title": {"prompt": "Title?", "default": "{directory_name} by {core.user_name}"},
                "langs": {"multi-select": ["py", "ts", "go"], "default": ["py"]},
            },
        ),
    ]

    resolved = ConfigResolver(project).resolve(specs, {"core": {"user_name": "Riley"}, "planning": {"langs": "go, py"}})

    assert resolved.module("core") == {"output_folder": "{project-root}/docs", "user_name": "Riley"}
    assert resolved.get("planning", "artifacts") == "{project-root}/docs/planning"
    assert resolved.get("planning", "title") == "my-project by Riley"
    assert resolved.get("planning", "langs") == ["py", "go"]
    assert resolved.expand("{project-root}/docs") == f"{project.as_posix()}/docs"


def test_resolver_rejects_unknown_answers_and_choices(tmp_path: Path) -> None:
    spec = _spec("core", {"level": {"single-select": ["low", "high"]}})

    with pytest.raises(ConfigResolutionError, match="Unknown configuration key"):
        ConfigResolver(tmp_path).resolve([spec], {"core": {"other": "x"}})
    with pytest.raises(ConfigResolutionError, match="must be one of"):
        ConfigResolver(tmp_path).resolve([spec], {"core": {"level": "medium"}})


def test_resolver_reports_unknown_placeholder(tmp_path: Path) -> None:
    spec = _spec("core", {"path": {"prompt": "?", "default": "{nowhere}/x"}})

    with pytest.raises(ConfigResolutionError, match="nowhere"):
        ConfigResolver(tmp_path).resolve([spec])


def test_resolver_detects_cycles(tmp_path: Path) -> None:
    spec = _spec(
        "core",
        {
            "a": {"prompt": "?", "default": "{b}/x"},
            "b": {"prompt": "?", "default": "{a}/y"},
        },
    )

    with pytest.raises(PlaceholderCycleError) as excinfo:
        ConfigResolver(tmp_path).resolve([spec])

    assert excinfo.value.cycle == ("core.a", "core.b", "core.a")


def test_render_module_config_appends_core_values() -> None:
    text = render_module_config(
        "planning",
        {"artifacts": "docs/planning", "user_name": "shadowed"},
        core_values={"user_name": "Riley"},
        version="1.2.3",
    )

    assert text.startswith("# PLANNING Module Configuration\n# Generated by kitsync\n# Version: 1.2.3\n")
    assert "# Core Configuration Values\nuser_name: Riley\n" in text
    assert yaml.safe_load(text) == {"artifacts": "docs/planning", "user_name": "Riley"}


def test_write_module_configs_only_writes_existing_module_dirs(tmp_path: Path) -> None:
    (tmp_path / "core").mkdir()
    resolved = ConfigResolver(tmp_path).resolve([_spec("core", {"team": "a"}), _spec("planning", {"x": "y"})])

    written = write_module_configs(tmp_path, resolved, ["core", "planning"], version="1.0.0")

    assert written == [tmp_path / "core" / "config.yaml"]
    assert yaml.safe_load(written[0].read_text(encoding="utf-8")) == {"team": "a"}


def test_stored_values_sit_between_answers_and_defaults(tmp_path: Path) -> None:
    spec = _spec(
        "core",
        {
            "user_name": {"prompt": "Name?", "default": "Sam"},
            "team": {"prompt": "Team?", "default": "blue"},
            "editor": {"prompt": "Editor?", "default": "vim"},
        },
    )
    previous = {"core": {"user_name": "Riley", "team": "green", "retired": "gone"}}

    resolved = ConfigResolver(tmp_path).resolve([spec], {"core": {"team": "red"}}, previous=previous)

    assert resolved.module("core") == {"user_name": "Riley", "team": "red", "editor": "vim"}


def test_stored_values_are_unwrapped_from_result_templates(tmp_path: Path) -> None:
    spec = _spec(
        "planning",
        {
            "artifacts": {"prompt": "Folder?", "default": "planning", "result": "{project-root}/{value}"},
            "level": {"single-select": ["beginner", "expert"], "default": "expert"},
            "langs": {"multi-select": ["py", "ts", "go"], "default": "py"},
        },
    )
    previous = {
        "planning": {
            "artifacts": "{project-root}/docs/plans",
            "level": "wizard",
            "langs": ["ts", "go"],
        },
    }

    resolved = ConfigResolver(tmp_path).resolve([spec], previous=previous)

    assert resolved.get("planning", "artifacts") == "{project-root}/docs/plans"
    assert resolved.get("planning", "level") == "expert"
    assert resolved.get("planning", "langs") == ["ts", "go"]


def test_read_module_configs_skips_missing_and_invalid_files(tmp_path: Path) -> None:
    (tmp_path / "core").mkdir()
    (tmp_path / "core" / "config.yaml").write_text("# CORE\nuser_name: Riley\n", encoding="utf-8")
    (tmp_path / "planning").mkdir()
    (tmp_path / "planning" / "config.yaml").write_text("- not\n- a mapping\n", encoding="utf-8")
    warnings: list[str] = []

    stored = read_module_configs(tmp_path, ["core", "planning", "absent"], on_warning=warnings.append)

    assert stored == {"core": {"user_name": "Riley"}}
    assert warnings == ["Ignoring planning/config.yaml: expected a mapping"]
