# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Inspect and remove installations."""

from __future__ import annotations

import contextlib
import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from .constants import MODULE_CONFIG_FILE
from .detection import CustomizationDetector
from .errors import KitsyncError
from .filesystem import relative_key, walk_files
from .hashing import hash_file, is_known
from .help_catalog import HELP_COLUMNS, agent_lookup, build_help_catalog
from .manifest import SCHEMAS, CatalogKind, Manifest, ManifestStore, upgrade_rows
from .reconcile import Clock, format_timestamp, utc_now
from .settings import EngineSettings

WarningSink = Callable[[str], None]


@dataclass(slots=True)
class InstallationStatus:
    """Snapshot of an installation as recorded and as found on disk."""

    install_root: Path
    manifest: Manifest | None = None
    catalog_counts: dict[CatalogKind, int] = field(default_factory=dict)
    custom_files: tuple[str, ...] = ()
    modified_files: tuple[str, ...] = ()
    hashes_supported: bool = True
    warnings: list[str] = field(default_factory=list)

    @property
    def installed(self) -> bool:
        """Return ``True`` when a readable manifest exists."""

        return self.manifest is not None


@dataclass(slots=True)
class UninstallResult:
    """Outcome of :func:`uninstall`."""

    install_root: Path
    removed_modules: tuple[str, ...] = ()
    removed_files: int = 0
    kept_files: tuple[str, ...] = ()
    removed_root: bool = False


def installation_status(project_dir: Path, settings: EngineSettings | None = None) -> InstallationStatus:
    """Describe the installation under ``project_dir`` without changing it.

    Args:
        project_dir: Project hosting the installation.
        settings: Engine settings (defaults when omitted).

    Returns:
        InstallationStatus: Recorded manifest, catalog sizes and on-disk drift.
    """

    settings = settings or EngineSettings()
    install_root = project_dir / settings.folder_name
    status = InstallationStatus(install_root=install_root)
    store = ManifestStore(install_root, on_warning=status.warnings.append)
    status.manifest = store.load()
    if status.manifest is None:
        return status
    status.catalog_counts = {kind: len(store.load_table(kind)) for kind in CatalogKind}
    detector = CustomizationDetector(
        install_root,
        ephemeral_dirs=settings.ephemeral_dirs,
        hash_workers=settings.hash_workers,
    )
    report = detector.detect(store.load_files(), status.manifest.agent_customizations)
    status.custom_files = tuple(record.relative_path for record in report.custom)
    status.modified_files = tuple(record.relative_path for record in report.modified)
    status.hashes_supported = report.hashes_supported
    return status


def uninstall(
    project_dir: Path,
    settings: EngineSettings | None = None,
    *,
    module: str | None = None,
    clock: Clock = utc_now,
    on_warning: WarningSink | None = None,
) -> UninstallResult:
    """Remove the whole installation or a single module.

    Removing a single module deletes the files its catalog rows recorded and its
    generated ``config.yaml``. Files edited since installation and any other
    file in the module directory are left in place and reported. The manifest and catalogs are rewritten without the
    module.

    Args:
        project_dir: Project hosting the installation.
        settings: Engine settings (defaults when omitted).
        module: Module to remove; ``None`` removes the install root entirely.
        clock: Time source for ``lastUpdated``.
        on_warning: Receives non-fatal problems.

    Returns:
        UninstallResult: What was removed and what was kept.

    Raises:
        KitsyncError: If there is no installation or the module is not installed.
        ManifestWriteError: If the updated manifest cannot be written.
    """

    settings = settings or EngineSettings()
    install_root = project_dir / settings.folder_name
    if not install_root.is_dir():
        raise KitsyncError(f"No installation found at {install_root}")

    if module is None:
        try:
            shutil.rmtree(install_root)
        except OSError as exc:
            raise KitsyncError(f"Could not remove {install_root}: {exc}") from exc
        return UninstallResult(install_root=install_root, removed_root=True)

    warn = on_warning or (lambda _message: None)
    store = ManifestStore(install_root, on_warning=warn)
    manifest = store.load()
    if manifest is None or manifest.module(module) is None:
        raise KitsyncError(f"Module '{module}' is not installed in {install_root}")

    tables = {kind: upgrade_rows(store.load_table(kind), SCHEMAS[kind]) for kind in CatalogKind}
    tracked = {
        row["path"]: row.get("hash", "")
        for row in tables[CatalogKind.FILES]
        if row.get("module") == module and row.get("path")
    }
    tracked[f"{module}/{MODULE_CONFIG_FILE}"] = ""
    removed = 0
    for key, recorded in tracked.items():
        path = install_root / key
        if not path.is_file():
            continue
        if is_known(recorded) and hash_file(path) != recorded:
            warn(f"Keeping {key}: it was edited after installation")
            continue
        try:
            path.unlink()
        except OSError as exc:
            warn(f"Could not remove {key}: {exc}")
            continue
        removed += 1
    module_dir = install_root / module
    _prune_empty_dirs(module_dir)
    kept: tuple[str, ...] = ()
    if module_dir.is_dir():
        kept = tuple(sorted(relative_key(path, install_root) for path in walk_files(module_dir)))

    remaining = [record for record in manifest.modules if record.name != module]
    now = format_timestamp(clock())
    updated = manifest.model_copy(
        update={
            "modules": remaining,
            "installation": manifest.installation.model_copy(update={"last_updated": now}),
        },
    )
    for kind, rows in tables.items():
        store.write_table(kind, [row for row in rows if row.get("module") != module])
    agents = [row for row in tables[CatalogKind.AGENTS] if row.get("module") != module]
    help_rows = build_help_catalog(
        install_root,
        [record.name for record in remaining],
        agent_lookup(agents),
        on_warning=warn,
    )
    store.write_help_catalog(HELP_COLUMNS, help_rows, filename=settings.help_catalog_name)
    store.write(updated)
    return UninstallResult(
        install_root=install_root,
        removed_modules=(module,),
        removed_files=removed,
        kept_files=kept,
    )


def _prune_empty_dirs(root: Path) -> None:
    if not root.is_dir():
        return
    for dirpath, _dirnames, _filenames in os.walk(root, topdown=False):
        directory = Path(dirpath)
        with contextlib.suppress(OSError):
            directory.rmdir()


__all__ = ["InstallationStatus", "UninstallResult", "installation_status", "uninstall"]
