# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``kitsync uninstall``: remove a module or the whole installation."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from ...errors import KitsyncError
from ...lifecycle import uninstall
from ...logging import fail, info, ok, section, warn
from ..shared import DIRECTORY_OPTION, EMOJI_OPTION, FOLDER_OPTION, resolve_settings, warning_printer

UNINSTALL_MODULE_OPTION = Annotated[
    str | None,
    typer.Option("--module", "-m", help="Remove only this module; omit to remove the whole installation."),
]
YES_OPTION = Annotated[
    bool,
    typer.Option("--yes", "-y", help="Do not ask for confirmation."),
]


def uninstall_command(
    directory: DIRECTORY_OPTION = Path("."),
    module: UNINSTALL_MODULE_OPTION = None,
    assume_yes: YES_OPTION = False,
    folder: FOLDER_OPTION = None,
    use_emoji: EMOJI_OPTION = True,
) -> None:
    """Remove one installed module, or the whole installation folder."""

    project_dir = directory.resolve()
    settings = resolve_settings(project_dir, folder=folder, use_emoji=use_emoji)
    target = f"module '{module}'" if module else f"{project_dir / settings.folder_name}"
    if not assume_yes and not typer.confirm(f"Remove {target}?", default=False):
        info("Nothing removed", use_emoji=use_emoji)
        return

    section("kitsync uninstall", use_color=True)
    try:
        result = uninstall(project_dir, settings, module=module, on_warning=warning_printer(use_emoji))
    except KitsyncError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=1) from exc

    if result.removed_root:
        ok(f"Removed {result.install_root}", use_emoji=use_emoji)
        return
    ok(f"Removed module '{module}' ({result.removed_files} file(s))", use_emoji=use_emoji)
    for path in result.kept_files:
        warn(f"Kept {path}", use_emoji=use_emoji)


def register(app: typer.Typer) -> None:
    """Register the uninstall command on ``app``."""

    app.command("uninstall")(uninstall_command)


__all__ = ["register", "uninstall_command"]
