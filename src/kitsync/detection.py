# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Classify the files of an existing installation against the prior catalog."""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

from .constants import (
    AGENT_CUSTOMIZE_SUFFIX,
    ALWAYS_EXCLUDE_DIRS,
    CONFIG_DIR_NAME,
    DEFAULT_HASH_WORKERS,
    EPHEMERAL_MARKER,
    MEMORY_DIR_NAME,
    MODULE_CONFIG_FILE,
    SIDECAR_SUFFIX,
)
from .filesystem import relative_key, walk_files
from .hashing import hash_file, hash_files, is_known
from .manifest.models import InstalledFile


class Classification(str, Enum):
    """Outcome of comparing one on-disk file with the prior catalog."""

    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    CUSTOM = "custom"


@dataclass(frozen=True, slots=True)
class CustomizationRecord:
    """One file that needs attention during a reconciliation pass.

    Attributes:
        absolute_path: Location of the live file.
        relative_path: POSIX path relative to the install root.
        classification: How the file relates to the prior catalog.
        backup_path: Staged copy, filled in once the file has been staged.
    """

    absolute_path: Path
    relative_path: str
    classification: Classification
    backup_path: Path | None = None


@dataclass(frozen=True, slots=True)
class DetectionReport:
    """Result of :meth:`CustomizationDetector.detect`.

    Attributes:
        records: Custom and modified files sorted by relative path.
        unchanged: Number of tracked files whose content still matches.
        hashes_supported: ``False`` when the prior catalog carried no hashes,
            in which case modification detection was disabled.
        skipped: Untracked files recognised as generated output.
    """

    records: tuple[CustomizationRecord, ...] = ()
    unchanged: int = 0
    hashes_supported: bool = True
    skipped: tuple[str, ...] = ()

    @property
    def custom(self) -> tuple[CustomizationRecord, ...]:
        """Return the user-added files."""

        return tuple(record for record in self.records if record.classification is Classification.CUSTOM)

    @property
    def modified(self) -> tuple[CustomizationRecord, ...]:
        """Return the tracked files the user edited."""

        return tuple(record for record in self.records if record.classification is Classification.MODIFIED)


class CustomizationDetector:
    """Walk an install root and classify each file as unchanged, modified or custom."""

    def __init__(
        self,
        install_root: Path,
        *,
        ephemeral_dirs: Iterable[str] = ALWAYS_EXCLUDE_DIRS,
        hash_workers: int = DEFAULT_HASH_WORKERS,
    ) -> None:
        self.install_root = install_root
        self.ephemeral_dirs = frozenset(ephemeral_dirs) | ALWAYS_EXCLUDE_DIRS
        self.hash_workers = hash_workers

    def detect(
        self,
        prior_files: Sequence[InstalledFile],
        agent_customizations: Mapping[str, str] | None = None,
    ) -> DetectionReport:
        """Classify every file under the install root.

        Args:
            prior_files: File catalog recorded by the previous pass.
            agent_customizations: Hashes of ``_config/agents/*.customize.yaml``
                recorded by the previous pass.

        Returns:
            DetectionReport: Custom and modified files plus summary counters.
        """

        tracked = {_normalise_key(entry.path): entry for entry in prior_files if entry.path}
        hashes_supported = any(is_known(entry.hash) for entry in tracked.values())

        custom: list[CustomizationRecord] = []
        to_hash: list[tuple[Path, str, str]] = []
        skipped: list[str] = []
        unchanged = 0

        for path in walk_files(self.install_root, skip_dir=self.is_excluded_dir):
            key = relative_key(path, self.install_root)
            if self._is_generated_config(key):
                skipped.append(key)
                continue
            entry = tracked.get(key)
            if entry is None:
                if self.is_generated_artifact(key):
                    skipped.append(key)
                else:
                    custom.append(CustomizationRecord(path, key, Classification.CUSTOM))
                continue
            if hashes_supported and is_known(entry.hash):
                to_hash.append((path, key, entry.hash))
            else:
                unchanged += 1

        modified: list[CustomizationRecord] = []
        digests = hash_files([path for path, _key, _digest in to_hash], workers=self.hash_workers)
        for (path, key, recorded), live in zip(to_hash, digests, strict=True):
            if is_known(live) and live != recorded:
                modified.append(CustomizationRecord(path, key, Classification.MODIFIED))
            else:
                unchanged += 1

        custom.extend(self._changed_agent_customizations(agent_customizations or {}))
        records = sorted(custom + modified, key=lambda record: record.relative_path)
        return DetectionReport(
            records=tuple(records),
            unchanged=unchanged,
            hashes_supported=hashes_supported,
            skipped=tuple(skipped),
        )

    def is_excluded_dir(self, directory: Path) -> bool:
        """Return ``True`` when ``directory`` is system-managed or ephemeral."""

        if directory.name in self.ephemeral_dirs:
            return True
        if (directory / EPHEMERAL_MARKER).is_file():
            return True
        parts = PurePosixPath(relative_key(directory, self.install_root)).parts
        if parts == (CONFIG_DIR_NAME,):
            return True
        return len(parts) >= 2 and parts[0] == MEMORY_DIR_NAME and directory.name.endswith(SIDECAR_SUFFIX)

    @staticmethod
    def is_generated_artifact(relative_path: str) -> bool:
        """Return ``True`` for compiled agent files, which are never user content."""

        parts = PurePosixPath(relative_path).parts
        return relative_path.endswith(".md") and "agents" in parts[:-1]

    @staticmethod
    def _is_generated_config(relative_path: str) -> bool:
        parts = PurePosixPath(relative_path).parts
        return len(parts) == 2 and parts[1] == MODULE_CONFIG_FILE

    def _changed_agent_customizations(self, recorded: Mapping[str, str]) -> list[CustomizationRecord]:
        agents_dir = self.install_root / CONFIG_DIR_NAME / "agents"
        if not agents_dir.is_dir():
            return []
        changed: list[CustomizationRecord] = []
        for path in sorted(agents_dir.glob(f"*{AGENT_CUSTOMIZE_SUFFIX}")):
            key = relative_key(path, self.install_root)
            original = recorded.get(key)
            if not is_known(original):
                continue
            live = hash_file(path)
            if is_known(live) and live != original:
                changed.append(CustomizationRecord(path, key, Classification.CUSTOM))
        return changed


def _normalise_key(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/")).lstrip("/")


__all__ = [
    "Classification",
    "CustomizationDetector",
    "CustomizationRecord",
    "DetectionReport",
]
