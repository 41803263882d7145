# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for merging module help catalogs."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from kitsync.help_catalog import HELP_COLUMNS, agent_lookup, build_help_catalog


def test_agent_lookup_builds_commands_and_titles() -> None:
    lookup = agent_lookup(
        [
            {"name": "helper", "module": "core", "displayName": "Hana", "title": "Guide", "icon": "🤖"},
            {"name": "helper", "module": "planning", "displayName": "Other", "title": "", "icon": ""},
            {"name": "rex", "module": "", "displayName": "", "title": "", "icon": ""},
        ],
    )

    assert lookup["helper"].command == "kit:core:agent:helper"
    assert lookup["helper"].title == "🤖 Guide"
    assert lookup["rex"].command == "kit:agent:rex"
    assert (lookup["rex"].display_name, lookup["rex"].title) == ("rex", "rex")


def test_build_help_catalog_merges_and_sorts(
    tmp_path: Path,
    tree_writer: Callable[[Path, dict[str, str]], Path],
) -> None:
    tree_writer(
        tmp_path,
        {
            "core/module-help.csv": (
                "# universal entries\n"
                "module,phase,name,code,sequence,agent,description\n"
                ",anytime,Help,HP,2,helper,Ask for help\n"
                ",anytime,Brainstorm,BS,1,,Ideas\n"
            ),
            "planning/module-help.csv": (
                "module,phase,name,code,sequence,required,agent-name,description\n"
                ",2-planning,Plan,PL,10,true,helper,Plan it\n"
                ",1-analysis,Research,RS,5,,,Look around\n"
            ),
        },
    )
    agents = agent_lookup([{"name": "helper", "module": "core", "displayName": "Hana", "title": "Guide", "icon": ""}])

    rows = build_help_catalog(tmp_path, ["core", "planning", "missing"], agents)

    assert [(row["module"], row["name"]) for row in rows] == [
        ("", "Brainstorm"),
        ("", "Help"),
        ("planning", "Research"),
        ("planning", "Plan"),
    ]
    assert all(list(row) == list(HELP_COLUMNS) for row in rows)
    help_row = rows[1]
    assert help_row["agent-name"] == "helper"
    assert help_row["agent-command"] == "kit:core:agent:helper"
    assert help_row["agent-display-name"] == "Hana"
    assert help_row["required"] == "false"
    assert rows[3]["required"] == "true"


def test_build_help_catalog_warns_on_malformed_file(
    tmp_path: Path,
    tree_writer: Callable[[Path, dict[str, str]], Path],
) -> None:
    tree_writer(tmp_path, {"core/module-help.csv": "name,code\na,b,c\n"})
    warnings: list[str] = []

    rows = build_help_catalog(tmp_path, ["core"], {}, on_warning=warnings.append)

    assert rows == []
    assert warnings[0].startswith("Failed to read core/module-help.csv")
