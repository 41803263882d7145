# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Engine settings assembled from defaults, ``pyproject.toml`` and ``kitsync.toml``."""

from __future__ import annotations

import tomllib
from abc import abstractmethod
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Final, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import ALWAYS_EXCLUDE_DIRS, DEFAULT_FOLDER_NAME, DEFAULT_HASH_WORKERS, HELP_CATALOG_FILE
from .errors import SettingsError

PYPROJECT_FILE: Final[str] = "pyproject.toml"
SETTINGS_FILE: Final[str] = "kitsync.toml"
PYPROJECT_TOOL_KEY: Final[str] = "tool"
PYPROJECT_SECTION_KEY: Final[str] = "kitsync"


class EngineSettings(BaseModel):
    """Tunable behaviour of the reconciliation engine."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    folder_name: str = DEFAULT_FOLDER_NAME
    hash_workers: int = Field(default=DEFAULT_HASH_WORKERS, ge=1, le=64)
    ephemeral_dirs: tuple[str, ...] = tuple(sorted(ALWAYS_EXCLUDE_DIRS))
    help_catalog_name: str = HELP_CATALOG_FILE

    @field_validator("folder_name")
    @classmethod
    def _validate_folder_name(cls, value: str) -> str:
        cleaned = value.strip().strip("/")
        if not cleaned or "/" in cleaned or "\\" in cleaned or cleaned in {".", ".."}:
            raise ValueError("folder_name must be a single directory name")
        return cleaned

    @field_validator("ephemeral_dirs", mode="before")
    @classmethod
    def _coerce_ephemeral_dirs(cls, value: object) -> object:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, Iterable):
            names = {str(item).strip() for item in value if str(item).strip()}
            return tuple(sorted(names | ALWAYS_EXCLUDE_DIRS))
        return value

    @field_validator("help_catalog_name")
    @classmethod
    def _validate_help_catalog_name(cls, value: str) -> str:
        if not value.endswith(".csv") or "/" in value:
            raise ValueError("help_catalog_name must be a CSV file name")
        return value


@runtime_checkable
class SettingsSource(Protocol):
    """Provide one layer of engine settings."""

    name: str
    """Identifier describing the settings source."""

    @abstractmethod
    def load(self) -> Mapping[str, Any]:
        """Return the settings fragment contributed by this source.

        Returns:
            Mapping[str, Any]: Settings keyed by field name.
        """

    @abstractmethod
    def describe(self) -> str:
        """Return a human-readable description of the source."""


class DefaultSettingsSource(SettingsSource):
    """Return the built-in defaults."""

    name = "defaults"

    def load(self) -> Mapping[str, Any]:
        return EngineSettings().model_dump()

    def describe(self) -> str:
        return "Built-in defaults"


class TomlSettingsSource(SettingsSource):
    """Read settings from a standalone TOML document."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.name = str(path)

    def load(self) -> Mapping[str, Any]:
        return _normalise_keys(self._read())

    def _read(self) -> Mapping[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            with self.path.open("rb") as handle:
                return tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise SettingsError(f"Invalid TOML in {self.path}: {exc}") from exc
        except OSError as exc:
            raise SettingsError(f"Cannot read {self.path}: {exc}") from exc

    def describe(self) -> str:
        return f"TOML settings at {self.name}"


class PyProjectSettingsSource(TomlSettingsSource):
    """Read settings from ``[tool.kitsync]`` within ``pyproject.toml``."""

    def load(self) -> Mapping[str, Any]:
        tool_section = self._read().get(PYPROJECT_TOOL_KEY)
        if not isinstance(tool_section, Mapping):
            return {}
        section = tool_section.get(PYPROJECT_SECTION_KEY)
        if not isinstance(section, Mapping):
            return {}
        return _normalise_keys(section)

    def describe(self) -> str:
        return f"pyproject.toml ({self.name})"


def default_sources(project_dir: Path) -> list[SettingsSource]:
    """Return the settings sources for ``project_dir``, lowest precedence first."""

    return [
        DefaultSettingsSource(),
        PyProjectSettingsSource(project_dir / PYPROJECT_FILE),
        TomlSettingsSource(project_dir / SETTINGS_FILE),
    ]


def load_settings(
    project_dir: Path,
    *,
    overrides: Mapping[str, Any] | None = None,
    sources: Iterable[SettingsSource] | None = None,
) -> EngineSettings:
    """Merge every settings source and validate the result.

    Args:
        project_dir: Directory searched for ``pyproject.toml`` and ``kitsync.toml``.
        overrides: Values applied last (for example from CLI options); ``None``
            values are ignored.
        sources: Replacement source list, mainly for tests.

    Returns:
        EngineSettings: Validated settings.

    Raises:
        SettingsError: If a source is unreadable or a value is invalid.
    """

    merged: dict[str, Any] = {}
    for source in sources if sources is not None else default_sources(project_dir):
        merged.update(source.load())
    merged.update({key: value for key, value in (overrides or {}).items() if value is not None})
    try:
        return EngineSettings.model_validate(merged)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        raise SettingsError(f"Invalid kitsync settings: {problems}") from exc


def _normalise_keys(payload: Mapping[str, Any]) -> dict[str, Any]:
    return {str(key).replace("-", "_"): value for key, value in payload.items()}


__all__ = [
    "DefaultSettingsSource",
    "EngineSettings",
    "PyProjectSettingsSource",
    "SettingsSource",
    "TomlSettingsSource",
    "default_sources",
    "load_settings",
]
