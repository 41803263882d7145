# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Helpers shared by the CLI commands."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Annotated, Any

import typer

from ..errors import SettingsError
from ..logging import debug, fail, warn
from ..settings import EngineSettings, load_settings

DIRECTORY_OPTION = Annotated[
    Path,
    typer.Option(
        "--directory",
        "-d",
        help="Project directory hosting the installation.",
        file_okay=False,
        show_default=False,
    ),
]
FOLDER_OPTION = Annotated[
    str | None,
    typer.Option("--folder", help="Installation folder name inside the project (overrides settings)."),
]
EMOJI_OPTION = Annotated[
    bool,
    typer.Option("--emoji/--no-emoji", help="Toggle emoji output."),
]


def resolve_settings(project_dir: Path, *, folder: str | None, use_emoji: bool) -> EngineSettings:
    """Load engine settings for ``project_dir`` or exit with status 1.

    Raises:
        typer.Exit: When the settings are invalid.
    """

    overrides: dict[str, Any] = {"folder_name": folder}
    try:
        settings = load_settings(project_dir, overrides=overrides)
    except SettingsError as exc:
        fail(str(exc), use_emoji=use_emoji)
        raise typer.Exit(code=1) from exc
    debug(f"settings: {settings.model_dump()}")
    return settings


def warning_printer(use_emoji: bool) -> Callable[[str], None]:
    """Return a callback that prints warnings through the console helpers."""

    def _print(message: str) -> None:
        warn(message, use_emoji=use_emoji)

    return _print


def parse_assignments(values: Iterable[str], *, use_emoji: bool) -> dict[str, dict[str, str]]:
    """Parse ``module.key=value`` assignments into nested answers.

    Raises:
        typer.Exit: When an assignment is malformed.
    """

    answers: dict[str, dict[str, str]] = {}
    for raw in values:
        target, separator, value = raw.partition("=")
        module, dot, key = target.strip().partition(".")
        if not separator or not dot or not module or not key:
            fail(f"Invalid --set value '{raw}'; expected module.key=value", use_emoji=use_emoji)
            raise typer.Exit(code=1)
        answers.setdefault(module, {})[key.strip()] = value.strip()
    return answers


def format_counts(counts: Mapping[Any, int]) -> str:
    """Render catalog counts as ``name=count`` pairs."""

    return ", ".join(f"{getattr(kind, 'value', kind)}={count}" for kind, count in counts.items())


__all__ = [
    "DIRECTORY_OPTION",
    "EMOJI_OPTION",
    "FOLDER_OPTION",
    "format_counts",
    "parse_assignments",
    "resolve_settings",
    "warning_printer",
]
