# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Stage user files before an update and put them back afterwards."""

from __future__ import annotations

import dataclasses
import shutil
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import TracebackType

from .constants import BACKUP_SUFFIX
from .detection import CustomizationRecord
from .filesystem import copy_preserving

STAGING_PREFIX = ".kitsync-staging-"


class RestoreMode(str, Enum):
    """How staged files return to the install root."""

    VERBATIM = "verbatim"
    SIBLING_BACKUP = "sibling-backup"


@dataclass(slots=True)
class BackupHandle:
    """Staged copies of one group of files.

    Attributes:
        mode: Restore strategy applied by :meth:`BackupStager.restore`.
        records: Records whose ``backup_path`` points at the staged copy.
        failures: Human-readable problems met while staging or restoring.
        restored: ``True`` once every record was restored successfully.
    """

    mode: RestoreMode
    records: tuple[CustomizationRecord, ...] = ()
    failures: list[str] = field(default_factory=list)
    restored: bool = False

    @property
    def pending(self) -> bool:
        """Return ``True`` while staged copies still need restoring."""

        return bool(self.records) and not self.restored


class BackupStager:
    """Own a staging directory for the duration of one reconciliation pass.

    Use as a context manager. The staging directory lives next to the install
    root so an interrupted run leaves the copies inside the project. It is
    removed on exit only when every handle was restored; otherwise it is kept
    and exposed through :attr:`retained_path`.
    """

    def __init__(self, install_root: Path, *, staging_parent: Path | None = None) -> None:
        self.install_root = install_root
        self.staging_parent = staging_parent or install_root.parent
        self._staging_dir: Path | None = None
        self._handles: list[BackupHandle] = []
        self.retained_path: Path | None = None

    def __enter__(self) -> BackupStager:
        self.staging_parent.mkdir(parents=True, exist_ok=True)
        self._staging_dir = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.staging_parent))
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def staging_dir(self) -> Path:
        """Return the active staging directory."""

        if self._staging_dir is None:
            raise RuntimeError("BackupStager used outside of its context")
        return self._staging_dir

    def stage(self, records: Iterable[CustomizationRecord], mode: RestoreMode) -> BackupHandle:
        """Copy ``records`` into the staging area.

        Args:
            records: Files to protect.
            mode: Restore strategy for this group.

        Returns:
            BackupHandle: Handle carrying the staged records. Files that could
            not be copied are listed in ``failures`` and left out of the handle.
        """

        group_dir = self.staging_dir / mode.value
        staged: list[CustomizationRecord] = []
        handle = BackupHandle(mode=mode)
        for record in records:
            destination = group_dir / record.relative_path
            try:
                copy_preserving(record.absolute_path, destination)
            except OSError as exc:
                handle.failures.append(f"could not stage {record.relative_path}: {exc}")
                continue
            staged.append(dataclasses.replace(record, backup_path=destination))
        handle.records = tuple(staged)
        handle.restored = not staged
        self._handles.append(handle)
        return handle

    def restore(self, handle: BackupHandle) -> list[Path]:
        """Return staged files to the install root.

        ``VERBATIM`` overwrites the original path; ``SIBLING_BACKUP`` writes
        ``<path>.bak`` and leaves the freshly installed file alone.

        Returns:
            list[Path]: Paths written during the restore.
        """

        written: list[Path] = []
        failed = False
        for record in handle.records:
            if record.backup_path is None:
                continue
            target = record.absolute_path
            if handle.mode is RestoreMode.SIBLING_BACKUP:
                target = target.with_name(target.name + BACKUP_SUFFIX)
            try:
                written.append(copy_preserving(record.backup_path, target))
            except OSError as exc:
                failed = True
                handle.failures.append(f"could not restore {record.relative_path}: {exc}")
        handle.restored = not failed
        return written

    def close(self) -> Path | None:
        """Remove the staging directory unless a handle still needs it.

        Returns:
            Path | None: The retained staging directory, if any.
        """

        staging_dir = self._staging_dir
        if staging_dir is None:
            return self.retained_path
        self._staging_dir = None
        if any(handle.pending for handle in self._handles):
            self.retained_path = staging_dir
            return staging_dir
        shutil.rmtree(staging_dir, ignore_errors=True)
        return None


__all__ = ["BackupHandle", "BackupStager", "RestoreMode", "STAGING_PREFIX"]
