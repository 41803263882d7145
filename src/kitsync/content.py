# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Module descriptors and the step that copies module content into place."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import ConfigField, ModuleConfigSpec, parse_fields
from .constants import ALWAYS_EXCLUDE_DIRS, EPHEMERAL_MARKER, MODULE_DESCRIPTOR_FILE
from .errors import ApplyError
from .filesystem import copy_preserving, relative_key, walk_files
from .manifest.models import ModuleRecord, ModuleSource

WarningSink = Callable[[str], None]


class ModuleDescriptor(BaseModel):
    """What a content source declares about one module."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    code: str
    name: str = ""
    version: str | None = None
    source: ModuleSource = ModuleSource.BUILT_IN
    npm_package: str | None = Field(default=None, alias="npmPackage")
    repo_url: str | None = Field(default=None, alias="repoUrl")
    config_fields: tuple[ConfigField, ...] = Field(default=(), alias="config")

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    def config_spec(self) -> ModuleConfigSpec:
        """Return the configuration declarations of this module."""

        return ModuleConfigSpec(module=self.code, fields=self.config_fields)

    def to_record(self, *, install_date: str, last_updated: str) -> ModuleRecord:
        """Return the manifest record for this module."""

        return ModuleRecord(
            name=self.code,
            version=self.version,
            install_date=install_date,
            last_updated=last_updated,
            source=self.source,
            npm_package=self.npm_package,
            repo_url=self.repo_url,
        )


def load_descriptor(path: Path, *, code: str) -> ModuleDescriptor:
    """Read a ``module.yaml`` descriptor.

    A missing file yields a bare descriptor for ``code``.

    Raises:
        ApplyError: If the descriptor exists but cannot be interpreted.
    """

    if not path.is_file():
        return ModuleDescriptor(code=code, name=code)
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
        raise ApplyError(f"Cannot read module descriptor {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise ApplyError(f"Module descriptor {path} must be a mapping")
    payload: dict[str, Any] = {key: value for key, value in document.items() if key != "config"}
    payload["code"] = str(payload.get("code") or code)
    payload.setdefault("name", payload["code"])
    payload["config"] = parse_fields(document.get("config"), module=payload["code"])
    try:
        return ModuleDescriptor.model_validate(payload)
    except ValidationError as exc:
        raise ApplyError(f"Invalid module descriptor {path}: {exc.errors()[0]['msg']}") from exc


@dataclass(slots=True)
class AppliedContent:
    """Files written by one apply step."""

    written: list[Path] = field(default_factory=list)
    modules: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ContentApplier(Protocol):
    """Provide module descriptors and write module content into an install root."""

    def descriptor(self, module: str) -> ModuleDescriptor:
        """Return the descriptor of ``module``."""
        ...

    def apply(
        self,
        install_root: Path,
        modules: Sequence[str],
        *,
        on_warning: WarningSink,
    ) -> AppliedContent:
        """Write the content of ``modules`` below ``install_root``."""
        ...


class SourceTreeApplier:
    """Copy modules from a local source tree laid out as ``<source>/<code>/``.

    Files are copied over the existing installation without deleting anything
    first. A module missing from the source is skipped with a warning; any
    copy failure aborts with :class:`ApplyError`.
    """

    def __init__(self, source_dir: Path, *, ephemeral_dirs: Iterable[str] = ALWAYS_EXCLUDE_DIRS) -> None:
        self.source_dir = source_dir
        self.ephemeral_dirs = frozenset(ephemeral_dirs) | ALWAYS_EXCLUDE_DIRS

    def available_modules(self) -> list[str]:
        """Return module codes present in the source tree."""

        if not self.source_dir.is_dir():
            return []
        return sorted(
            child.name
            for child in self.source_dir.iterdir()
            if child.is_dir() and not child.name.startswith(".") and child.name not in self.ephemeral_dirs
        )

    def descriptor(self, module: str) -> ModuleDescriptor:
        return load_descriptor(self.source_dir / module / MODULE_DESCRIPTOR_FILE, code=module)

    def apply(
        self,
        install_root: Path,
        modules: Sequence[str],
        *,
        on_warning: WarningSink,
    ) -> AppliedContent:
        applied = AppliedContent()
        if not self.source_dir.is_dir():
            raise ApplyError(f"Content source {self.source_dir} does not exist or is not a directory")
        for module in modules:
            module_source = self.source_dir / module
            if not module_source.is_dir():
                reason = f"no source directory at {module_source}"
                applied.skipped[module] = reason
                on_warning(f"Skipping module '{module}': {reason}")
                continue
            target_root = install_root / module
            for path in walk_files(module_source, skip_dir=self._skip_dir):
                key = relative_key(path, module_source)
                if key == MODULE_DESCRIPTOR_FILE:
                    continue
                try:
                    applied.written.append(copy_preserving(path, target_root / key))
                except OSError as exc:
                    raise ApplyError(f"Failed to install {module}/{key} into {install_root}: {exc}") from exc
            applied.modules.append(module)
        return applied

    def _skip_dir(self, directory: Path) -> bool:
        return directory.name in self.ephemeral_dirs or (directory / EPHEMERAL_MARKER).is_file()


__all__ = [
    "AppliedContent",
    "ContentApplier",
    "ModuleDescriptor",
    "SourceTreeApplier",
    "load_descriptor",
]
