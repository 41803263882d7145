# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants used across kitsync modules."""

from __future__ import annotations

from typing import Final

DEFAULT_FOLDER_NAME: Final[str] = "_kit"
CONFIG_DIR_NAME: Final[str] = "_config"
MEMORY_DIR_NAME: Final[str] = "_memory"
CORE_MODULE: Final[str] = "core"
STANDALONE_MODULE: Final[str] = "standalone"

MANIFEST_FILE: Final[str] = "manifest.yaml"
FILES_MANIFEST_FILE: Final[str] = "files-manifest.csv"
WORKFLOW_MANIFEST_FILE: Final[str] = "workflow-manifest.csv"
AGENT_MANIFEST_FILE: Final[str] = "agent-manifest.csv"
TASK_MANIFEST_FILE: Final[str] = "task-manifest.csv"
TOOL_MANIFEST_FILE: Final[str] = "tool-manifest.csv"
HELP_CATALOG_FILE: Final[str] = "help-catalog.csv"
MODULE_HELP_FILE: Final[str] = "module-help.csv"

MODULE_DESCRIPTOR_FILE: Final[str] = "module.yaml"
MODULE_CONFIG_FILE: Final[str] = "config.yaml"
AGENT_CUSTOMIZE_SUFFIX: Final[str] = ".customize.yaml"
EPHEMERAL_MARKER: Final[str] = ".kitsync-ephemeral"
SIDECAR_SUFFIX: Final[str] = "-sidecar"
BACKUP_SUFFIX: Final[str] = ".bak"

ASSET_DIRS: Final[tuple[str, ...]] = ("workflows", "agents", "tasks", "tools")

ALWAYS_EXCLUDE_DIRS: Final[frozenset[str]] = frozenset({".git", "node_modules"})

DEFAULT_HASH_WORKERS: Final[int] = 4

PROJECT_ROOT_PLACEHOLDER: Final[str] = "project-root"
DIRECTORY_NAME_PLACEHOLDER: Final[str] = "directory_name"
VALUE_PLACEHOLDER: Final[str] = "value"

__all__ = [
    "AGENT_CUSTOMIZE_SUFFIX",
    "AGENT_MANIFEST_FILE",
    "ALWAYS_EXCLUDE_DIRS",
    "ASSET_DIRS",
    "BACKUP_SUFFIX",
    "CONFIG_DIR_NAME",
    "CORE_MODULE",
    "DEFAULT_FOLDER_NAME",
    "DEFAULT_HASH_WORKERS",
    "DIRECTORY_NAME_PLACEHOLDER",
    "EPHEMERAL_MARKER",
    "FILES_MANIFEST_FILE",
    "HELP_CATALOG_FILE",
    "MANIFEST_FILE",
    "MEMORY_DIR_NAME",
    "MODULE_CONFIG_FILE",
    "MODULE_DESCRIPTOR_FILE",
    "MODULE_HELP_FILE",
    "PROJECT_ROOT_PLACEHOLDER",
    "SIDECAR_SUFFIX",
    "STANDALONE_MODULE",
    "TASK_MANIFEST_FILE",
    "TOOL_MANIFEST_FILE",
    "VALUE_PLACEHOLDER",
    "WORKFLOW_MANIFEST_FILE",
]
