# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Catalog scanning for installed modules."""

from __future__ import annotations

from .assets import parse_agent, parse_task_like, parse_workflow
from .catalog import CatalogScanner, ModuleScan, ScanResult
from .parsing import AssetParseError

__all__ = [
    "AssetParseError",
    "CatalogScanner",
    "ModuleScan",
    "ScanResult",
    "parse_agent",
    "parse_task_like",
    "parse_workflow",
]
