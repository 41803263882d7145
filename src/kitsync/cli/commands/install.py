# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""``kitsync install``: install or update modules and rebuild the manifest."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

import typer

from ...content import SourceTreeApplier
from ...errors import KitsyncError
from ...logging import debug, fail, info, ok, section, warn
from ...reconcile import ReconcileRequest, ReconcileResult, Reconciler
from ..shared import (
    DIRECTORY_OPTION,
    EMOJI_OPTION,
    FOLDER_OPTION,
    format_counts,
    parse_assignments,
    resolve_settings,
    warning_printer,
)

SOURCE_OPTION = Annotated[
    Path,
    typer.Option(
        "--source",
        "-s",
        help="Directory containing module content laid out as <source>/<module>/.",
        exists=True,
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
]
MODULE_OPTION = Annotated[
    list[str] | None,
    typer.Option("--module", "-m", help="Module to install or update (repeatable). core is always included."),
]
PRESERVE_OPTION = Annotated[
    list[str] | None,
    typer.Option("--preserve", help="Installed module to keep untouched during this pass (repeatable)."),
]
IDE_OPTION = Annotated[
    list[str] | None,
    typer.Option("--ide", help="IDE to record in the manifest (repeatable). Omit to keep the recorded list."),
]
SET_OPTION = Annotated[
    list[str] | None,
    typer.Option("--set", help="Configuration answer as module.key=value (repeatable)."),
]


@dataclass(slots=True)
class InstallOptions:
    """Options collected for an install pass."""

    project_dir: Path
    source_dir: Path
    modules: tuple[str, ...] = ()
    preserve: tuple[str, ...] = ()
    ides: tuple[str, ...] | None = None
    answers: dict[str, dict[str, str]] = field(default_factory=dict)
    folder: str | None = None
    use_emoji: bool = True


def build_install_options(
    *,
    directory: Path,
    source: Path,
    modules: list[str] | None,
    preserve: list[str] | None,
    ides: list[str] | None,
    assignments: list[str] | None,
    folder: str | None,
    use_emoji: bool,
) -> InstallOptions:
    """Normalise raw CLI values into :class:`InstallOptions`."""

    return InstallOptions(
        project_dir=directory.resolve(),
        source_dir=source,
        modules=tuple(dict.fromkeys(modules or ())),
        preserve=tuple(dict.fromkeys(preserve or ())),
        ides=tuple(ides) if ides else None,
        answers=parse_assignments(assignments or (), use_emoji=use_emoji),
        folder=folder,
        use_emoji=use_emoji,
    )


def install_command(
    source: SOURCE_OPTION,
    directory: DIRECTORY_OPTION = Path("."),
    modules: MODULE_OPTION = None,
    preserve: PRESERVE_OPTION = None,
    ides: IDE_OPTION = None,
    assignments: SET_OPTION = None,
    folder: FOLDER_OPTION = None,
    use_emoji: EMOJI_OPTION = True,
) -> None:
    """Install modules into a project, or update an existing installation."""

    options = build_install_options(
        directory=directory,
        source=source,
        modules=modules,
        preserve=preserve,
        ides=ides,
        assignments=assignments,
        folder=folder,
        use_emoji=use_emoji,
    )
    settings = resolve_settings(options.project_dir, folder=options.folder, use_emoji=options.use_emoji)
    applier = SourceTreeApplier(options.source_dir, ephemeral_dirs=settings.ephemeral_dirs)
    reconciler = Reconciler(applier, on_warning=warning_printer(options.use_emoji))
    request = ReconcileRequest(
        project_dir=options.project_dir,
        modules=options.modules,
        preserve=options.preserve,
        ides=options.ides,
        answers=options.answers,
        settings=settings,
    )

    section("kitsync install", use_color=True)
    try:
        result = reconciler.run(request)
    except KitsyncError as exc:
        fail(str(exc), use_emoji=options.use_emoji)
        raise typer.Exit(code=1) from exc
    _report(result, use_emoji=options.use_emoji)


def _report(result: ReconcileResult, *, use_emoji: bool) -> None:
    debug("phases: " + " -> ".join(phase.value for phase in result.phases))
    verb = "Installed" if result.fresh_install else "Updated"
    modules = ", ".join(result.applied_modules) or "no modules"
    ok(f"{verb} {modules} in {result.install_root}", use_emoji=use_emoji)
    if result.preserved_modules:
        info(f"Preserved modules: {', '.join(result.preserved_modules)}", use_emoji=use_emoji)
    for module, reason in sorted(result.skipped_modules.items()):
        warn(f"Module '{module}' was not installed: {reason}", use_emoji=use_emoji)
    for module, reason in sorted(result.failed_modules.items()):
        warn(f"Catalog entries for '{module}' were carried over: {reason}", use_emoji=use_emoji)
    if result.custom_files:
        info(f"Kept {len(result.custom_files)} custom file(s) in place", use_emoji=use_emoji)
    for backup in result.backup_files:
        info(f"Your previous version was saved as {backup}", use_emoji=use_emoji)
    info(f"Catalogs: {format_counts(result.catalog_counts)}, help={result.help_rows}", use_emoji=use_emoji)


def register(app: typer.Typer) -> None:
    """Register the install command on ``app``."""

    app.command("install")(install_command)


__all__ = ["InstallOptions", "build_install_options", "install_command", "register"]
