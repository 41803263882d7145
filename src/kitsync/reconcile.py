# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Reconciliation pass: detect, stage, apply, rescan, merge, restore and persist."""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from . import __version__
from .config import ConfigResolver, ResolvedConfiguration, read_module_configs, write_module_configs
from .constants import AGENT_CUSTOMIZE_SUFFIX, CONFIG_DIR_NAME, CORE_MODULE
from .content import AppliedContent, ContentApplier, ModuleDescriptor
from .detection import CustomizationDetector, DetectionReport
from .errors import ApplyError
from .filesystem import relative_key
from .hashing import hash_file, is_known
from .help_catalog import HELP_COLUMNS, agent_lookup, build_help_catalog
from .manifest import (
    SCHEMAS,
    CatalogKind,
    InstallationInfo,
    Manifest,
    ManifestStore,
    ModuleRecord,
    TableSchema,
    upgrade_rows,
)
from .scanner import CatalogScanner, ScanResult
from .settings import EngineSettings
from .staging import BackupHandle, BackupStager, RestoreMode

WarningSink = Callable[[str], None]
Clock = Callable[[], datetime]


class ReconcilePhase(str, Enum):
    """States visited by a reconciliation pass, in order."""

    SCANNING_PRIOR_STATE = "scanning-prior-state"
    DETECTING_CUSTOMIZATIONS = "detecting-customizations"
    STAGING_BACKUPS = "staging-backups"
    APPLYING_CONTENT = "applying-content"
    RESCANNING = "rescanning"
    MERGING_CATALOGS = "merging-catalogs"
    RESTORING_BACKUPS = "restoring-backups"
    PERSISTING_MANIFEST = "persisting-manifest"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class ReconcileRequest:
    """Inputs of one reconciliation pass.

    Attributes:
        project_dir: Project that hosts the installation.
        modules: Modules to install or update this run.
        preserve: Modules whose prior catalog rows are carried forward instead
            of being rescanned. A module that is also selected is rescanned.
        ides: IDE names to record; ``None`` keeps the previously recorded list.
        answers: Configuration answers keyed by module then field key.
        settings: Engine settings.
        include_core: Always install the ``core`` module first.
    """

    project_dir: Path
    modules: tuple[str, ...] = ()
    preserve: tuple[str, ...] = ()
    ides: tuple[str, ...] | None = None
    answers: Mapping[str, Mapping[str, object]] = field(default_factory=dict)
    settings: EngineSettings = field(default_factory=EngineSettings)
    include_core: bool = True

    @property
    def install_root(self) -> Path:
        """Return ``<project>/<folder_name>``."""

        return self.project_dir / self.settings.folder_name

    @property
    def selected_modules(self) -> tuple[str, ...]:
        """Return the selected modules, de-duplicated, with ``core`` first when requested."""

        ordered = [CORE_MODULE, *self.modules] if self.include_core else list(self.modules)
        return tuple(dict.fromkeys(name for name in ordered if name))


@dataclass(slots=True)
class ReconcileResult:
    """Summary of a completed reconciliation pass."""

    install_root: Path
    fresh_install: bool
    manifest: Manifest
    phases: list[ReconcilePhase] = field(default_factory=list)
    custom_files: tuple[str, ...] = ()
    modified_files: tuple[str, ...] = ()
    backup_files: tuple[str, ...] = ()
    catalog_counts: dict[CatalogKind, int] = field(default_factory=dict)
    help_rows: int = 0
    applied_modules: tuple[str, ...] = ()
    preserved_modules: tuple[str, ...] = ()
    failed_modules: dict[str, str] = field(default_factory=dict)
    skipped_modules: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    retained_staging: Path | None = None


@dataclass(slots=True)
class _PassState:
    request: ReconcileRequest
    store: ManifestStore
    timestamp: str
    prior: Manifest | None = None
    prior_tables: dict[CatalogKind, list[dict[str, str]]] = field(default_factory=dict)
    detection: DetectionReport = field(default_factory=DetectionReport)
    handles: list[BackupHandle] = field(default_factory=list)
    phases: list[ReconcilePhase] = field(default_factory=list)

    def enter(self, phase: ReconcilePhase) -> None:
        self.phases.append(phase)


def utc_now() -> datetime:
    """Return the current time in UTC."""

    return datetime.now(UTC)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as an ISO-8601 UTC timestamp with millisecond precision."""

    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Reconciler:
    """Run reconciliation passes against one content source.

    Args:
        applier: Supplies module descriptors and writes module content.
        version: Tool version recorded in the manifest.
        clock: Time source; one reading is used for the whole pass.
        on_warning: Receives every non-fatal warning as it happens.
    """

    def __init__(
        self,
        applier: ContentApplier,
        *,
        version: str = __version__,
        clock: Clock = utc_now,
        on_warning: WarningSink | None = None,
    ) -> None:
        self.applier = applier
        self.version = version
        self.clock = clock
        self._sink = on_warning
        self._warnings: list[str] = []

    def run(self, request: ReconcileRequest) -> ReconcileResult:
        """Execute one pass.

        Raises:
            ApplyError: If new content could not be applied.
            ConfigResolutionError: If module configuration cannot be resolved.
            ManifestWriteError: If the manifest cannot be persisted.
        """

        self._warnings = []
        install_root = request.install_root
        state = _PassState(
            request=request,
            store=ManifestStore(install_root, on_warning=self._warn),
            timestamp=format_timestamp(self.clock()),
        )

        state.enter(ReconcilePhase.SCANNING_PRIOR_STATE)
        state.prior = state.store.load()
        fresh = state.prior is None
        if not fresh:
            state.prior_tables = {kind: state.store.load_table(kind) for kind in CatalogKind}

        selected = request.selected_modules
        descriptors = {module: self.applier.descriptor(module) for module in selected}
        # Values from the previous run sit between explicit answers and defaults.
        previous = {} if fresh else read_module_configs(install_root, selected, on_warning=self._warn)
        resolved = ConfigResolver(request.project_dir).resolve(
            [descriptors[module].config_spec() for module in selected],
            request.answers,
            previous=previous,
        )

        stager = None if fresh else BackupStager(install_root, staging_parent=request.project_dir)
        with stager or contextlib.nullcontext():
            try:
                if stager is not None:
                    self._protect_user_files(state, stager)
                applied = self._apply(state, selected)
                result = self._rebuild(state, stager, selected, descriptors, resolved, applied)
            except BaseException:
                # Staged copies go back even when the pass aborts.
                self._restore(state, stager)
                raise
        result.retained_staging = stager.retained_path if stager is not None else None
        if result.retained_staging is not None:
            self._warn(f"Staged user files were kept at {result.retained_staging} because a restore failed")
        result.fresh_install = fresh
        result.warnings = list(self._warnings)
        return result

    # Phases ------------------------------------------------------------

    def _protect_user_files(self, state: _PassState, stager: BackupStager) -> None:
        prior_customizations = state.prior.agent_customizations if state.prior is not None else {}
        settings = state.request.settings
        state.enter(ReconcilePhase.DETECTING_CUSTOMIZATIONS)
        detector = CustomizationDetector(
            state.store.install_root,
            ephemeral_dirs=settings.ephemeral_dirs,
            hash_workers=settings.hash_workers,
        )
        state.detection = detector.detect(state.store.load_files(), prior_customizations)
        if not state.detection.hashes_supported:
            self._warn("Previous file catalog has no hashes; modification detection is disabled for this run")

        state.enter(ReconcilePhase.STAGING_BACKUPS)
        for records, mode in (
            (state.detection.custom, RestoreMode.VERBATIM),
            (state.detection.modified, RestoreMode.SIBLING_BACKUP),
        ):
            if not records:
                continue
            handle = stager.stage(records, mode)
            for failure in handle.failures:
                self._warn(failure)
            state.handles.append(handle)

    def _apply(self, state: _PassState, selected: Sequence[str]) -> AppliedContent:
        state.enter(ReconcilePhase.APPLYING_CONTENT)
        try:
            return self.applier.apply(state.store.install_root, selected, on_warning=self._warn)
        except OSError as exc:
            raise ApplyError(f"Applying module content failed: {exc}") from exc

    def _rebuild(
        self,
        state: _PassState,
        stager: BackupStager | None,
        selected: Sequence[str],
        descriptors: Mapping[str, ModuleDescriptor],
        resolved: ResolvedConfiguration,
        applied: AppliedContent,
    ) -> ReconcileResult:
        request = state.request
        install_root = state.store.install_root
        settings = request.settings
        scanner = CatalogScanner(
            install_root,
            folder_name=settings.folder_name,
            ephemeral_dirs=settings.ephemeral_dirs,
            hash_workers=settings.hash_workers,
            on_warning=self._warn,
        )

        state.enter(ReconcilePhase.RESCANNING)
        on_disk = scanner.discover_modules()
        known = {*on_disk, *(state.prior.module_names if state.prior is not None else ())}
        preserved = tuple(
            module for module in dict.fromkeys(request.preserve) if module not in selected and module in known
        )
        rescan = tuple(
            module
            for module in dict.fromkeys([*applied.modules, *on_disk])
            if module not in preserved
        )
        custom_paths = {record.relative_path for record in state.detection.custom}
        scan = scanner.scan(rescan, exclude_paths=custom_paths)

        state.enter(ReconcilePhase.MERGING_CATALOGS)
        carried_modules = {*preserved, *scan.failed}
        tables = {kind: self._merge_table(state, kind, scan, carried_modules) for kind in CatalogKind}
        agent_customizations = self._agent_customization_hashes(install_root)

        backups: list[Path] = []
        if stager is not None:
            state.enter(ReconcilePhase.RESTORING_BACKUPS)
            backups = self._restore(state, stager)

        state.enter(ReconcilePhase.PERSISTING_MANIFEST)
        module_names = tuple(dict.fromkeys([*rescan, *preserved]))
        manifest = self._build_manifest(state, module_names, applied.modules, descriptors, agent_customizations)
        for kind in CatalogKind:
            state.store.write_table(kind, tables[kind])
        help_rows = build_help_catalog(
            install_root,
            module_names,
            agent_lookup(tables[CatalogKind.AGENTS]),
            on_warning=self._warn,
        )
        state.store.write_help_catalog(HELP_COLUMNS, help_rows, filename=settings.help_catalog_name)
        write_module_configs(install_root, resolved, applied.modules, version=self.version)
        state.store.write(manifest)
        state.enter(ReconcilePhase.DONE)

        return ReconcileResult(
            install_root=install_root,
            fresh_install=state.prior is None,
            manifest=manifest,
            phases=state.phases,
            custom_files=tuple(record.relative_path for record in state.detection.custom),
            modified_files=tuple(record.relative_path for record in state.detection.modified),
            backup_files=tuple(relative_key(path, install_root) for path in backups),
            catalog_counts={kind: len(rows) for kind, rows in tables.items()},
            help_rows=len(help_rows),
            applied_modules=tuple(applied.modules),
            preserved_modules=preserved,
            failed_modules=dict(scan.failed),
            skipped_modules=dict(applied.skipped),
        )

    # Helpers -----------------------------------------------------------

    def _merge_table(
        self,
        state: _PassState,
        kind: CatalogKind,
        scan: ScanResult,
        carried_modules: Iterable[str],
    ) -> list[dict[str, str]]:
        schema = SCHEMAS[kind]
        carried = upgrade_rows(state.prior_tables.get(kind, []), schema, modules=carried_modules)
        fresh = [entry.to_row() for entry in scan.entries(kind)]
        return merge_rows(schema, carried, fresh)

    def _restore(self, state: _PassState, stager: BackupStager | None) -> list[Path]:
        if stager is None:
            return []
        written: list[Path] = []
        for handle in state.handles:
            if handle.restored:
                continue
            paths = stager.restore(handle)
            if handle.mode is RestoreMode.SIBLING_BACKUP:
                written.extend(paths)
            for failure in handle.failures:
                if failure.startswith("could not restore"):
                    self._warn(failure)
        return written

    def _build_manifest(
        self,
        state: _PassState,
        module_names: Sequence[str],
        applied: Sequence[str],
        descriptors: Mapping[str, ModuleDescriptor],
        agent_customizations: dict[str, str],
    ) -> Manifest:
        now = state.timestamp
        prior = state.prior
        records: list[ModuleRecord] = []
        for name in module_names:
            previous = prior.module(name) if prior is not None else None
            install_date = previous.install_date if previous is not None and previous.install_date else now
            if name in applied:
                records.append(descriptors[name].to_record(install_date=install_date, last_updated=now))
            elif previous is not None:
                records.append(previous.model_copy(update={"install_date": install_date, "last_updated": now}))
            else:
                records.append(ModuleRecord(name=name, install_date=now, last_updated=now))
        ides = state.request.ides
        return Manifest(
            installation=InstallationInfo(
                version=self.version,
                install_date=prior.installation.install_date if prior is not None else now,
                last_updated=now,
            ),
            modules=records,
            ides=list(ides) if ides is not None else (list(prior.ides) if prior is not None else []),
            agent_customizations=agent_customizations,
        )

    @staticmethod
    def _agent_customization_hashes(install_root: Path) -> dict[str, str]:
        agents_dir = install_root / CONFIG_DIR_NAME / "agents"
        if not agents_dir.is_dir():
            return {}
        hashes: dict[str, str] = {}
        for path in sorted(agents_dir.glob(f"*{AGENT_CUSTOMIZE_SUFFIX}")):
            digest = hash_file(path)
            if is_known(digest):
                hashes[relative_key(path, install_root)] = digest
        return hashes

    def _warn(self, message: str) -> None:
        self._warnings.append(message)
        if self._sink is not None:
            self._sink(message)


def merge_rows(
    schema: TableSchema,
    carried: Iterable[Mapping[str, str]],
    fresh: Iterable[Mapping[str, str]],
) -> list[dict[str, str]]:
    """Combine carried-forward and freshly scanned rows.

    A fresh row replaces any carried row with the same key. The result is
    sorted so repeated passes write identical tables.

    Args:
        schema: Table schema supplying the row key and columns.
        carried: Rows kept from the previous pass, already in ``schema`` shape.
        fresh: Rows produced by this pass's scan.

    Returns:
        list[dict[str, str]]: Rows in ``schema`` shape, one per key.
    """

    merged: dict[tuple[str, str], dict[str, str]] = {}
    for row in carried:
        merged[schema.row_key(row)] = {column: row.get(column, "") for column in schema.columns}
    for row in fresh:
        merged[schema.row_key(row)] = {column: row.get(column, "") for column in schema.columns}
    order = _FILES_ORDER if schema.kind is CatalogKind.FILES else _CATALOG_ORDER
    return sorted(merged.values(), key=lambda row: tuple(row.get(column, "") for column in order))


_CATALOG_ORDER: tuple[str, ...] = ("module", "name", "path")
_FILES_ORDER: tuple[str, ...] = ("module", "type", "name", "path")


__all__ = [
    "ReconcilePhase",
    "ReconcileRequest",
    "ReconcileResult",
    "Reconciler",
    "format_timestamp",
    "merge_rows",
    "utc_now",
]
