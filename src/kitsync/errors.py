# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Exceptions raised by the reconciliation engine."""

from __future__ import annotations

from pathlib import Path


class KitsyncError(RuntimeError):
    """Base class for every error kitsync raises on purpose."""


class ManifestWriteError(KitsyncError):
    """Raised when the manifest directory or one of its files cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"Cannot write installation manifest at {path}: {reason}. "
            "Check that the directory exists and is writable by the current user.",
        )


class ApplyError(KitsyncError):
    """Raised when new module content cannot be applied to the install root."""


class SettingsError(KitsyncError):
    """Raised when engine settings are invalid."""


class ConfigResolutionError(KitsyncError):
    """Raised when module configuration values cannot be resolved."""


class PlaceholderCycleError(ConfigResolutionError):
    """Raised when configuration placeholders reference each other in a loop."""

    def __init__(self, cycle: tuple[str, ...]) -> None:
        self.cycle = cycle
        super().__init__(f"Circular placeholder reference: {' -> '.join(cycle)}")


__all__ = [
    "ApplyError",
    "ConfigResolutionError",
    "KitsyncError",
    "ManifestWriteError",
    "PlaceholderCycleError",
    "SettingsError",
]
