# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``kitsync status``: report what is installed without changing anything."""

from __future__ import annotations

from pathlib import Path

import typer

from ...errors import KitsyncError
from ...lifecycle import installation_status
from ...logging import fail, info, ok, section, warn
from ..shared import DIRECTORY_OPTION, EMOJI_OPTION, FOLDER_OPTION, format_counts, resolve_settings


def status_command(
    directory: DIRECTORY_OPTION = Path("."),
    folder: FOLDER_OPTION = None,
    use_emoji: EMOJI_OPTION = True,
) -> None:
    """Show installed modules, catalog sizes and files changed on disk."""

    project_dir = directory.resolve()
    settings = resolve_settings(project_dir, folder=folder, use_emoji=use_emoji)
    try:
        status = installation_status(project_dir, settings)
    except KitsyncError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=1) from exc

    section("kitsync status", use_color=True)
    for message in status.warnings:
        warn(message, use_emoji=use_emoji)
    if status.manifest is None:
        warn(f"No installation found at {status.install_root}", use_emoji=use_emoji)
        return
    installation = status.manifest.installation
    ok(f"Installation at {status.install_root} (version {installation.version})", use_emoji=use_emoji)
    info(f"Installed {installation.install_date}, last updated {installation.last_updated}", use_emoji=use_emoji)
    for record in status.manifest.modules:
        version = f" {record.version}" if record.version else ""
        info(f"  {record.name}{version} [{record.source.value}]", use_emoji=use_emoji)
    info(f"Catalogs: {format_counts(status.catalog_counts)}", use_emoji=use_emoji)
    if not status.hashes_supported:
        warn("The files manifest carries no hashes; edited files cannot be detected", use_emoji=use_emoji)
    for path in status.modified_files:
        warn(f"Modified: {path}", use_emoji=use_emoji)
    for path in status.custom_files:
        info(f"Custom: {path}", use_emoji=use_emoji)


def register(app: typer.Typer) -> None:
    """Register the status command on ``app``."""

    app.command("status")(status_command)


__all__ = ["register", "status_command"]
