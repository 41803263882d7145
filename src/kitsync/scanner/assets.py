# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Per-asset parsers turning installed files into catalog entries."""

from __future__ import annotations

from pathlib import Path
from typing import Final

from ..manifest.csv_io import normalize_text
from ..manifest.models import (
    AgentEntry,
    CatalogKind,
    TaskEntry,
    ToolEntry,
    WorkflowEntry,
    parse_bool_token,
)
from .parsing import (
    AssetParseError,
    attribute,
    element,
    front_matter,
    has_placeholder,
    load_mapping,
    read_normalized,
    root_flag,
    text_value,
)

WORKFLOW_YAML: Final[str] = "workflow.yaml"
WORKFLOW_MD: Final[str] = "workflow.md"
AGENT_SOURCE_SUFFIX: Final[str] = ".agent.yaml"
INTERNAL_MARKER: Final[str] = 'internal="true"'
LOCAL_SKIP_MARKER: Final[str] = 'localskip="true"'


def is_workflow_file(path: Path) -> bool:
    """Return ``True`` for ``workflow.yaml``, ``workflow.md`` and ``workflow-*.md``."""

    name = path.name
    return name in {WORKFLOW_YAML, WORKFLOW_MD} or (name.startswith("workflow-") and name.endswith(".md"))


def is_agent_candidate(path: Path) -> bool:
    """Return ``True`` for compiled agent markdown files."""

    name = path.name
    return name.endswith(".md") and not name.endswith(AGENT_SOURCE_SUFFIX) and name.lower() != "readme.md"


def is_task_candidate(path: Path) -> bool:
    """Return ``True`` for task or tool declarations (``.md`` or ``.xml``)."""

    return path.suffix in {".md", ".xml"}


def parse_workflow(path: Path, *, module: str, catalog_path: str) -> WorkflowEntry | None:
    """Parse a workflow declaration.

    Returns ``None`` for template stubs (placeholder names), workflows marked
    ``standalone: false`` and declarations lacking ``name`` or ``description``.

    Raises:
        AssetParseError: If the YAML block is malformed.
    """

    content = read_normalized(path)
    if path.name == WORKFLOW_YAML:
        declaration: dict[str, object] | None = load_mapping(content, source=path)
    else:
        declaration = front_matter(content, source=path)
    if not declaration:
        return None
    name = text_value(declaration.get("name")).strip()
    description = normalize_text(text_value(declaration.get("description")))
    if not name or not description:
        return None
    if has_placeholder(name):
        return None
    if not parse_bool_token(declaration.get("standalone"), default=True):
        return None
    return WorkflowEntry(name=name, description=description, module=module, path=catalog_path)


def parse_agent(path: Path, *, module: str, catalog_path: str) -> AgentEntry | None:
    """Extract persona metadata from a compiled agent file.

    Files without an ``<agent`` tag and web-only agents (``localskip="true"``)
    are skipped. Missing attributes become empty strings.
    """

    content = read_normalized(path)
    if "<agent" not in content or LOCAL_SKIP_MARKER in content:
        return None
    stem = path.name[: -len(".md")]
    return AgentEntry(
        name=stem,
        display_name=attribute(content, "name") or stem,
        title=attribute(content, "title"),
        icon=attribute(content, "icon"),
        capabilities=normalize_text(attribute(content, "capabilities")),
        role=normalize_text(element(content, "role")),
        identity=normalize_text(element(content, "identity")),
        communication_style=normalize_text(element(content, "communication_style")),
        principles=normalize_text(element(content, "principles")),
        module=module,
        path=catalog_path,
    )


def parse_task_like(
    path: Path,
    *,
    kind: CatalogKind,
    module: str,
    catalog_path: str,
) -> TaskEntry | None:
    """Parse a task or tool declaration.

    Markdown assets read ``name``, ``displayName``, ``description`` and
    ``standalone`` from their front-matter; XML assets read attributes of the
    root tag with an ``<objective>`` fallback for the description. Anything
    flagged ``internal`` is excluded.

    Args:
        path: Asset file.
        kind: :attr:`CatalogKind.TASKS` or :attr:`CatalogKind.TOOLS`.
        module: Owning module.
        catalog_path: Install path recorded in the catalog.

    Returns:
        TaskEntry | None: A :class:`TaskEntry` or :class:`ToolEntry`, or ``None``
        when the asset is internal.

    Raises:
        AssetParseError: If the front-matter is malformed.
    """

    content = read_normalized(path)
    if INTERNAL_MARKER in content:
        return None
    stem = path.stem
    entry_type: type[TaskEntry] = ToolEntry if kind is CatalogKind.TOOLS else TaskEntry

    if path.suffix == ".md":
        declaration = front_matter(content, source=path) or {}
        if parse_bool_token(declaration.get("internal"), default=False):
            return None
        name = text_value(declaration.get("name")).strip() or stem
        display_name = text_value(declaration.get("displayName")).strip() or name
        return entry_type(
            name=name,
            display_name=display_name,
            description=normalize_text(text_value(declaration.get("description"))),
            standalone=parse_bool_token(declaration.get("standalone"), default=True),
            module=module,
            path=catalog_path,
        )

    tag = "tool" if kind is CatalogKind.TOOLS else "task"
    description = attribute(content, "description") or element(content, "objective")
    return entry_type(
        name=stem,
        display_name=attribute(content, "name") or stem,
        description=normalize_text(description),
        standalone=not root_flag(content, tag, "standalone", "false"),
        module=module,
        path=catalog_path,
    )


__all__ = [
    "AssetParseError",
    "is_agent_candidate",
    "is_task_candidate",
    "is_workflow_file",
    "parse_agent",
    "parse_task_like",
    "parse_workflow",
]
