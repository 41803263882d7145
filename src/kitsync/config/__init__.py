# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Module configuration: typed fields, placeholder resolution and generated files."""

from __future__ import annotations

from .fields import (
    Choice,
    ConfigField,
    ConfigValue,
    MultiSelectField,
    PromptField,
    SingleSelectField,
    StaticField,
    parse_fields,
)
from .resolver import ConfigResolver, ModuleConfigSpec, ResolvedConfiguration
from .writer import read_module_configs, render_module_config, write_module_configs

__all__ = [
    "Choice",
    "ConfigField",
    "ConfigResolver",
    "ConfigValue",
    "ModuleConfigSpec",
    "MultiSelectField",
    "PromptField",
    "ResolvedConfiguration",
    "SingleSelectField",
    "StaticField",
    "parse_fields",
    "read_module_configs",
    "render_module_config",
    "write_module_configs",
]
