# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Typer helpers shared by every kitsync command."""

from __future__ import annotations

from typing import Final

import typer

HELP_OPTION_NAMES: Final[list[str]] = ["-h", "--help"]


def create_typer(*, name: str | None = None, help_text: str | None = None) -> typer.Typer:
    """Return a Typer application configured with kitsync defaults.

    Args:
        name: Optional command group name.
        help_text: Help text displayed for the application.

    Returns:
        typer.Typer: Application without shell-completion commands that prints
        help when invoked without arguments.
    """

    return typer.Typer(
        name=name,
        help=help_text,
        add_completion=False,
        no_args_is_help=True,
        context_settings={"help_option_names": HELP_OPTION_NAMES},
    )


__all__ = ["create_typer"]
