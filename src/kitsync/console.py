# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Rich consoles used by the kitsync output helpers."""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from typing import Final

from rich.console import Console

NO_COLOR_ENV_VAR: Final[str] = "NO_COLOR"


def detect_tty() -> bool:
    """Return ``True`` when stdout is attached to a terminal."""

    try:
        return sys.stdout.isatty()
    except (AttributeError, ValueError):
        return False


def color_allowed(requested: bool) -> bool:
    """Return whether colour output may be used for ``requested``.

    Colour needs a terminal and is disabled whenever ``NO_COLOR`` is set.
    """

    return requested and detect_tty() and not os.environ.get(NO_COLOR_ENV_VAR)


class RichConsoleManager:
    """Hand out one :class:`Console` per presentation setting.

    Consoles are created without an explicit file so they always write to the
    current ``sys.stdout``; this keeps output capturable by test runners.
    """

    def __init__(self) -> None:
        self._consoles: dict[tuple[bool, bool], Console] = {}

    def get(self, *, color: bool, emoji: bool) -> Console:
        """Return the console for the given colour and emoji preferences.

        Args:
            color: Requested colour output; reduced by :func:`color_allowed`.
            emoji: Whether Rich should render ``:emoji:`` codes.

        Returns:
            Console: Shared console for the effective settings.
        """

        effective = color_allowed(color)
        key = (effective, emoji)
        console = self._consoles.get(key)
        if console is None:
            console = Console(
                color_system="auto" if effective else None,
                force_terminal=effective,
                no_color=not effective,
                emoji=emoji,
                highlight=False,
                soft_wrap=True,
            )
            self._consoles[key] = console
        return console


@lru_cache(maxsize=1)
def get_console_manager() -> RichConsoleManager:
    """Return the process-wide :class:`RichConsoleManager`."""

    return RichConsoleManager()


__all__ = ["NO_COLOR_ENV_VAR", "RichConsoleManager", "color_allowed", "detect_tty", "get_console_manager"]
