# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Merge each module's ``module-help.csv`` into one help catalog."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .constants import CORE_MODULE, MODULE_HELP_FILE
from .manifest.csv_io import CatalogFormatError, parse_table

WarningSink = Callable[[str], None]

HELP_COLUMNS: Final[tuple[str, ...]] = (
    "module",
    "phase",
    "name",
    "code",
    "sequence",
    "workflow-file",
    "command",
    "required",
    "agent-name",
    "agent-command",
    "agent-display-name",
    "agent-title",
    "options",
    "description",
    "output-location",
    "outputs",
)
COMMAND_PREFIX: Final[str] = "kit"
_LEGACY_AGENT_COLUMN: Final[str] = "agent"


@dataclass(frozen=True, slots=True)
class AgentHelpInfo:
    """Display metadata joined onto help rows that name an agent."""

    command: str
    display_name: str
    title: str


def agent_lookup(agent_rows: Iterable[Mapping[str, str]]) -> dict[str, AgentHelpInfo]:
    """Index agent catalog rows by agent name.

    Args:
        agent_rows: Rows of the agent catalog in the current schema.

    Returns:
        dict[str, AgentHelpInfo]: Lookup used to enrich help rows. When two
        modules ship an agent with the same name the first one wins.
    """

    lookup: dict[str, AgentHelpInfo] = {}
    for row in agent_rows:
        name = row.get("name", "").strip()
        if not name or name in lookup:
            continue
        module = row.get("module", "").strip()
        title = row.get("title", "").strip()
        icon = row.get("icon", "").strip()
        lookup[name] = AgentHelpInfo(
            command=f"{COMMAND_PREFIX}:{module}:agent:{name}" if module else f"{COMMAND_PREFIX}:agent:{name}",
            display_name=row.get("displayName", "").strip() or name,
            title=f"{icon} {title}" if icon and title else (title or name),
        )
    return lookup


def read_module_help(path: Path) -> list[dict[str, str]]:
    """Return the rows of one ``module-help.csv`` (``#`` comment lines ignored).

    Raises:
        CatalogFormatError: If the file is not a well-formed table.
        OSError: If the file cannot be read.
    """

    text = path.read_text(encoding="utf-8")
    kept = "\n".join(line for line in text.splitlines() if not line.lstrip().startswith("#"))
    _columns, rows = parse_table(kept)
    return rows


def build_help_catalog(
    install_root: Path,
    modules: Iterable[str],
    agents: Mapping[str, AgentHelpInfo],
    *,
    on_warning: WarningSink | None = None,
) -> list[dict[str, str]]:
    """Build the merged help catalog rows.

    Rows with an empty ``module`` column inherit the owning module, except for
    ``core`` whose rows stay universal. Rows are sorted by module, phase and
    numeric sequence.

    Args:
        install_root: Installation directory.
        modules: Modules whose ``module-help.csv`` should be merged.
        agents: Agent metadata from :func:`agent_lookup`.
        on_warning: Receives a message for each unreadable help file.

    Returns:
        list[dict[str, str]]: Rows keyed by :data:`HELP_COLUMNS`.
    """

    warn = on_warning or (lambda _message: None)
    merged: list[dict[str, str]] = []
    for module in dict.fromkeys(modules):
        help_path = install_root / module / MODULE_HELP_FILE
        if not help_path.is_file():
            continue
        try:
            rows = read_module_help(help_path)
        except (OSError, UnicodeDecodeError, CatalogFormatError) as exc:
            warn(f"Failed to read {module}/{MODULE_HELP_FILE}: {exc}")
            continue
        merged.extend(_help_row(row, module, agents) for row in rows if row.get("name") or row.get("code"))
    merged.sort(key=_sort_key)
    return merged


def _help_row(row: Mapping[str, str], owner: str, agents: Mapping[str, AgentHelpInfo]) -> dict[str, str]:
    module = row.get("module", "").strip()
    if not module and owner != CORE_MODULE:
        module = owner
    agent_name = (row.get("agent-name") or row.get(_LEGACY_AGENT_COLUMN) or "").strip()
    agent = agents.get(agent_name)
    merged = {column: row.get(column, "") for column in HELP_COLUMNS}
    merged.update(
        {
            "module": module,
            "required": row.get("required", "").strip() or "false",
            "agent-name": agent_name,
            "agent-command": agent.command if agent else "",
            "agent-display-name": agent.display_name if agent else "",
            "agent-title": agent.title if agent else "",
        },
    )
    return merged


def _sort_key(row: Mapping[str, str]) -> tuple[str, str, int]:
    try:
        sequence = int(row.get("sequence", "") or 0)
    except ValueError:
        sequence = 0
    return (row.get("module", "").lower(), row.get("phase", ""), sequence)


__all__ = [
    "AgentHelpInfo",
    "HELP_COLUMNS",
    "agent_lookup",
    "build_help_catalog",
    "read_module_help",
]
