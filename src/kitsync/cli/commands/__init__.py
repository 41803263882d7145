# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command registration for the kitsync CLI."""

from __future__ import annotations

import typer

from . import install, status, uninstall


def register_commands(app: typer.Typer) -> None:
    """Attach every kitsync command to ``app``."""

    install.register(app)
    status.register(app)
    uninstall.register(app)


__all__ = ["register_commands"]
