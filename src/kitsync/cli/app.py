# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer application entry point for kitsync."""

from __future__ import annotations

from .commands import register_commands
from .typer_ext import create_typer

app = create_typer(help_text="Install, update and inspect module kits inside a project.")
register_commands(app)

__all__ = ["app"]
