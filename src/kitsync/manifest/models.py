# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Pydantic models describing persisted installation state."""

from __future__ import annotations

from enum import Enum
from typing import Any, ClassVar, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import (
    AGENT_MANIFEST_FILE,
    FILES_MANIFEST_FILE,
    TASK_MANIFEST_FILE,
    TOOL_MANIFEST_FILE,
    WORKFLOW_MANIFEST_FILE,
)

TRUE_TOKEN: Final[str] = "true"
FALSE_TOKEN: Final[str] = "false"


class ModuleSource(str, Enum):
    """Enumerate where an installed module came from."""

    BUILT_IN = "built-in"
    EXTERNAL = "external"
    CUSTOM = "custom"


class CatalogKind(str, Enum):
    """Enumerate the catalog tables persisted under ``_config``."""

    FILES = "files"
    WORKFLOWS = "workflows"
    AGENTS = "agents"
    TASKS = "tasks"
    TOOLS = "tools"

    @property
    def filename(self) -> str:
        """Return the CSV filename backing this catalog."""

        return _CATALOG_FILENAMES[self]


_CATALOG_FILENAMES: Final[dict[CatalogKind, str]] = {
    CatalogKind.FILES: FILES_MANIFEST_FILE,
    CatalogKind.WORKFLOWS: WORKFLOW_MANIFEST_FILE,
    CatalogKind.AGENTS: AGENT_MANIFEST_FILE,
    CatalogKind.TASKS: TASK_MANIFEST_FILE,
    CatalogKind.TOOLS: TOOL_MANIFEST_FILE,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)


class ModuleRecord(_CamelModel):
    """One installed module as recorded in ``manifest.yaml``."""

    name: str
    version: str | None = None
    install_date: str | None = Field(default=None, alias="installDate")
    last_updated: str | None = Field(default=None, alias="lastUpdated")
    source: ModuleSource = ModuleSource.BUILT_IN
    npm_package: str | None = Field(default=None, alias="npmPackage")
    repo_url: str | None = Field(default=None, alias="repoUrl")

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: object) -> object:
        if value is None or value == "":
            return ModuleSource.BUILT_IN
        if isinstance(value, str) and value not in {member.value for member in ModuleSource}:
            return ModuleSource.EXTERNAL if value in {"npm", "git"} else ModuleSource.CUSTOM
        return value

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return str(value)
        return value


class InstallationInfo(_CamelModel):
    """Tool-level installation metadata."""

    version: str
    install_date: str = Field(alias="installDate")
    last_updated: str = Field(alias="lastUpdated")

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return str(value)
        return value


class Manifest(_CamelModel):
    """Aggregate root of the persisted installation state."""

    installation: InstallationInfo
    modules: list[ModuleRecord] = Field(default_factory=list)
    ides: list[str] = Field(default_factory=list)
    agent_customizations: dict[str, str] = Field(default_factory=dict, alias="agentCustomizations")

    @field_validator("modules", mode="before")
    @classmethod
    def _coerce_modules(cls, value: object) -> object:
        # Early manifests listed bare module names.
        if value is None:
            return []
        if isinstance(value, list):
            return [{"name": entry} if isinstance(entry, str) else entry for entry in value]
        return value

    @field_validator("ides", mode="before")
    @classmethod
    def _coerce_ides(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(entry) for entry in value if isinstance(entry, str) and entry]
        return value

    @property
    def module_names(self) -> tuple[str, ...]:
        """Return the names of the recorded modules in manifest order."""

        return tuple(module.name for module in self.modules)

    def module(self, name: str) -> ModuleRecord | None:
        """Return the record for ``name`` when present."""

        return next((module for module in self.modules if module.name == name), None)

    def to_document(self) -> dict[str, Any]:
        """Return the YAML-ready mapping with camelCase keys and no null values."""

        document = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not self.agent_customizations:
            document.pop("agentCustomizations", None)
        return document


class CatalogEntry(_CamelModel):
    """Base class for rows of the typed catalog tables."""

    kind: ClassVar[CatalogKind]

    name: str
    module: str
    path: str

    @property
    def key(self) -> tuple[str, str]:
        """Return the ``(module, name)`` identity of the entry."""

        return (self.module, self.name)

    def to_row(self) -> dict[str, str]:
        """Return the entry as a CSV row keyed by column name."""

        row: dict[str, str] = {}
        for column, value in self.model_dump(by_alias=True).items():
            if isinstance(value, bool):
                row[column] = TRUE_TOKEN if value else FALSE_TOKEN
            else:
                row[column] = "" if value is None else str(value)
        return row


class InstalledFile(CatalogEntry):
    """One physical file written by the installer."""

    kind: ClassVar[CatalogKind] = CatalogKind.FILES

    type: str
    hash: str = ""

    @classmethod
    def from_row(cls, row: dict[str, str]) -> InstalledFile:
        """Build an instance from a ``files-manifest.csv`` row."""

        return cls(
            type=row.get("type", ""),
            name=row.get("name", ""),
            module=row.get("module", ""),
            path=row.get("path", ""),
            hash=row.get("hash", "") or "",
        )


class WorkflowEntry(CatalogEntry):
    """Workflow catalog row."""

    kind: ClassVar[CatalogKind] = CatalogKind.WORKFLOWS

    description: str = ""


class AgentEntry(CatalogEntry):
    """Agent catalog row carrying persona metadata."""

    kind: ClassVar[CatalogKind] = CatalogKind.AGENTS

    display_name: str = Field(default="", alias="displayName")
    title: str = ""
    icon: str = ""
    capabilities: str = ""
    role: str = ""
    identity: str = ""
    communication_style: str = Field(default="", alias="communicationStyle")
    principles: str = ""


class TaskEntry(CatalogEntry):
    """Task catalog row."""

    kind: ClassVar[CatalogKind] = CatalogKind.TASKS

    display_name: str = Field(default="", alias="displayName")
    description: str = ""
    standalone: bool = True


class ToolEntry(TaskEntry):
    """Tool catalog row; shares the task shape."""

    kind: ClassVar[CatalogKind] = CatalogKind.TOOLS


def parse_bool_token(value: object, *, default: bool = True) -> bool:
    """Interpret YAML/CSV ``standalone`` style flags.

    Args:
        value: Raw value (bool, string, or ``None``).
        default: Result when ``value`` is absent or unrecognised.

    Returns:
        bool: ``False`` only for an explicit false marker.
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered == FALSE_TOKEN:
            return False
        if lowered == TRUE_TOKEN:
            return True
    return default


__all__ = [
    "AgentEntry",
    "CatalogEntry",
    "CatalogKind",
    "FALSE_TOKEN",
    "InstallationInfo",
    "InstalledFile",
    "Manifest",
    "ModuleRecord",
    "ModuleSource",
    "TRUE_TOKEN",
    "TaskEntry",
    "ToolEntry",
    "WorkflowEntry",
    "parse_bool_token",
]
