# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Persisted installation state: models, CSV codec, schemas and the store."""

from __future__ import annotations

from .csv_io import CatalogFormatError, normalize_text, parse_table, render_table
from .models import (
    AgentEntry,
    CatalogEntry,
    CatalogKind,
    InstallationInfo,
    InstalledFile,
    Manifest,
    ModuleRecord,
    ModuleSource,
    TaskEntry,
    ToolEntry,
    WorkflowEntry,
    parse_bool_token,
)
from .schema import SCHEMAS, TableSchema, upgrade_row, upgrade_rows
from .store import ManifestStore, WarningSink

__all__ = [
    "AgentEntry",
    "CatalogEntry",
    "CatalogFormatError",
    "CatalogKind",
    "InstallationInfo",
    "InstalledFile",
    "Manifest",
    "ManifestStore",
    "ModuleRecord",
    "ModuleSource",
    "SCHEMAS",
    "TableSchema",
    "TaskEntry",
    "ToolEntry",
    "WarningSink",
    "WorkflowEntry",
    "normalize_text",
    "parse_bool_token",
    "parse_table",
    "render_table",
    "upgrade_row",
    "upgrade_rows",
]
