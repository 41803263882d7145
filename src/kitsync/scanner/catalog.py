# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Walk installed modules and build fresh catalog entries and file records."""

from __future__ import annotations

from collections.abc import Callable, Collection, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

import yaml

from ..constants import (
    ALWAYS_EXCLUDE_DIRS,
    ASSET_DIRS,
    CONFIG_DIR_NAME,
    DEFAULT_HASH_WORKERS,
    EPHEMERAL_MARKER,
    MEMORY_DIR_NAME,
    MODULE_CONFIG_FILE,
    STANDALONE_MODULE,
)
from ..filesystem import relative_key, walk_files
from ..hashing import hash_files
from ..manifest.models import (
    AgentEntry,
    CatalogEntry,
    CatalogKind,
    InstalledFile,
    TaskEntry,
    ToolEntry,
    WorkflowEntry,
)
from .assets import (
    AssetParseError,
    is_agent_candidate,
    is_task_candidate,
    is_workflow_file,
    parse_agent,
    parse_task_like,
    parse_workflow,
)

WarningSink = Callable[[str], None]
_EntryT = TypeVar("_EntryT", bound=CatalogEntry)

_FILE_TYPES: dict[CatalogKind, str] = {
    CatalogKind.WORKFLOWS: "workflow",
    CatalogKind.AGENTS: "agent",
    CatalogKind.TASKS: "task",
    CatalogKind.TOOLS: "tool",
}


@dataclass(slots=True)
class ModuleScan:
    """Catalog entries and file records produced for one module."""

    module: str
    workflows: list[WorkflowEntry] = field(default_factory=list)
    agents: list[AgentEntry] = field(default_factory=list)
    tasks: list[TaskEntry] = field(default_factory=list)
    tools: list[ToolEntry] = field(default_factory=list)
    files: list[InstalledFile] = field(default_factory=list)

    def entries(self, kind: CatalogKind) -> list[CatalogEntry]:
        """Return the entries for ``kind`` (file records for ``FILES``)."""

        if kind is CatalogKind.FILES:
            return list(self.files)
        mapping: dict[CatalogKind, list[CatalogEntry]] = {
            CatalogKind.WORKFLOWS: list(self.workflows),
            CatalogKind.AGENTS: list(self.agents),
            CatalogKind.TASKS: list(self.tasks),
            CatalogKind.TOOLS: list(self.tools),
        }
        return mapping[kind]


@dataclass(slots=True)
class ScanResult:
    """Outcome of scanning a set of modules.

    Attributes:
        modules: Successful scans keyed by module name, in scan order.
        failed: Modules whose scan raised, mapped to the reason.
        standalone: Agents installed outside any module.
    """

    modules: dict[str, ModuleScan] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)
    standalone: ModuleScan = field(default_factory=lambda: ModuleScan(STANDALONE_MODULE))

    def entries(self, kind: CatalogKind) -> list[CatalogEntry]:
        """Return every entry of ``kind`` across modules and standalone agents."""

        collected: list[CatalogEntry] = []
        for scan in self.modules.values():
            collected.extend(scan.entries(kind))
        collected.extend(self.standalone.entries(kind))
        return collected

    def count(self, kind: CatalogKind) -> int:
        """Return the number of entries of ``kind``."""

        return len(self.entries(kind))


class CatalogScanner:
    """Build catalog entries from the asset directories of installed modules.

    Each rescanned module contributes one file record per file below its
    directory (ephemeral directories, the generated ``config.yaml`` and any
    excluded path aside). Parsed assets name their record after the asset;
    other files are typed by extension.
    """

    def __init__(
        self,
        install_root: Path,
        *,
        folder_name: str | None = None,
        ephemeral_dirs: Iterable[str] = ALWAYS_EXCLUDE_DIRS,
        hash_workers: int = DEFAULT_HASH_WORKERS,
        on_warning: WarningSink | None = None,
    ) -> None:
        self.install_root = install_root
        self.folder_name = folder_name or install_root.name
        self.ephemeral_dirs = frozenset(ephemeral_dirs) | ALWAYS_EXCLUDE_DIRS
        self.hash_workers = hash_workers
        self._warn = on_warning or (lambda _message: None)

    def discover_modules(self) -> list[str]:
        """Return top-level directories that look like installed modules."""

        if not self.install_root.is_dir():
            return []
        discovered: list[str] = []
        for entry in sorted(self.install_root.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            if entry.name in {CONFIG_DIR_NAME, MEMORY_DIR_NAME}:
                continue
            if any((entry / asset_dir).is_dir() for asset_dir in ASSET_DIRS):
                discovered.append(entry.name)
        return discovered

    def scan(self, modules: Iterable[str], *, exclude_paths: Collection[str] = ()) -> ScanResult:
        """Scan ``modules`` and the standalone agents directory.

        A module whose directory cannot be read is recorded in
        :attr:`ScanResult.failed`; the remaining modules are still scanned.

        Args:
            modules: Module names to rescan.
            exclude_paths: Install-root relative paths never recorded as
                installed files (user files found during detection).

        Returns:
            ScanResult: Fresh entries for every module that scanned cleanly.
        """

        excluded = frozenset(exclude_paths)
        result = ScanResult()
        for module in dict.fromkeys(modules):
            try:
                result.modules[module] = self.scan_module(module, exclude_paths=excluded)
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
                reason = f"{exc.__class__.__name__}: {exc}"
                result.failed[module] = reason
                self._warn(f"Could not rescan module '{module}' ({reason}); keeping its previous catalog rows")
        result.standalone = self.scan_standalone_agents()
        return result

    def scan_module(self, module: str, *, exclude_paths: Collection[str] = ()) -> ModuleScan:
        """Scan a single module directory.

        Raises:
            OSError: If the module directory cannot be traversed.
        """

        module_dir = self.install_root / module
        scan = ModuleScan(module)
        if not module_dir.is_dir():
            return scan
        named: dict[str, tuple[str, str]] = {}

        for path in self._walk(module_dir / "workflows"):
            if is_workflow_file(path):
                workflow = self._parse(parse_workflow, path, module)
                if workflow is not None:
                    scan.workflows.append(workflow)
                    named[self._key(path)] = (_FILE_TYPES[CatalogKind.WORKFLOWS], workflow.name)

        scan.agents.extend(self._scan_agents(module_dir / "agents", module, named))

        for kind, target in ((CatalogKind.TASKS, scan.tasks), (CatalogKind.TOOLS, scan.tools)):
            for path in self._walk(module_dir / kind.value):
                if not is_task_candidate(path):
                    continue
                entry = self._parse(parse_task_like, path, module, kind=kind)
                if entry is not None:
                    target.append(entry)
                    named[self._key(path)] = (_FILE_TYPES[kind], entry.name)

        scan.files = self._file_records(module_dir, module, named, exclude_paths)
        return scan

    def scan_standalone_agents(self) -> ModuleScan:
        """Scan ``<install>/agents/<dir>/`` for agents that belong to no module."""

        scan = ModuleScan(STANDALONE_MODULE)
        agents_root = self.install_root / "agents"
        if not agents_root.is_dir():
            return scan
        named: dict[str, tuple[str, str]] = {}
        for agent_dir in sorted(child for child in agents_root.iterdir() if child.is_dir()):
            scan.agents.extend(self._scan_agents(agent_dir, STANDALONE_MODULE, named))
        paths = [self.install_root / key for key in named]
        digests = hash_files(paths, workers=self.hash_workers)
        scan.files = [
            InstalledFile(type=file_type, name=name, module=STANDALONE_MODULE, path=key, hash=digest)
            for (key, (file_type, name)), digest in zip(named.items(), digests, strict=True)
        ]
        return scan

    def catalog_path(self, path: Path) -> str:
        """Return the install path recorded in catalogs (prefixed by the folder name)."""

        return f"{self.folder_name}/{self._key(path)}"

    def _scan_agents(
        self,
        directory: Path,
        module: str,
        named: dict[str, tuple[str, str]],
    ) -> list[AgentEntry]:
        agents: list[AgentEntry] = []
        for path in self._walk(directory):
            if not is_agent_candidate(path):
                continue
            agent = self._parse(parse_agent, path, module)
            if agent is not None:
                agents.append(agent)
                named[self._key(path)] = (_FILE_TYPES[CatalogKind.AGENTS], agent.name)
        return agents

    def _parse(
        self,
        parser: Callable[..., _EntryT | None],
        path: Path,
        module: str,
        **kwargs: object,
    ) -> _EntryT | None:
        try:
            return parser(path, module=module, catalog_path=self.catalog_path(path), **kwargs)
        except (AssetParseError, UnicodeDecodeError) as exc:
            self._warn(f"Skipping malformed asset {self.catalog_path(path)}: {exc}")
        except OSError as exc:
            self._warn(f"Skipping unreadable asset {self.catalog_path(path)}: {exc}")
        return None

    def _file_records(
        self,
        module_dir: Path,
        module: str,
        named: dict[str, tuple[str, str]],
        exclude_paths: Collection[str],
    ) -> list[InstalledFile]:
        generated_config = f"{module}/{MODULE_CONFIG_FILE}"
        keys = [
            key
            for key in (self._key(path) for path in self._walk(module_dir))
            if key != generated_config and key not in exclude_paths
        ]
        digests = hash_files([self.install_root / key for key in keys], workers=self.hash_workers)
        records: list[InstalledFile] = []
        for key, digest in zip(keys, digests, strict=True):
            file_type, name = named.get(key) or _describe_plain_file(key)
            records.append(InstalledFile(type=file_type, name=name, module=module, path=key, hash=digest))
        return records

    def _walk(self, directory: Path) -> Iterable[Path]:
        return walk_files(directory, skip_dir=self._is_ephemeral)

    def _is_ephemeral(self, directory: Path) -> bool:
        return directory.name in self.ephemeral_dirs or (directory / EPHEMERAL_MARKER).is_file()

    def _key(self, path: Path) -> str:
        return relative_key(path, self.install_root)


def _describe_plain_file(key: str) -> tuple[str, str]:
    path = Path(key)
    extension = path.suffix.lower()
    return (extension[1:] or "file", path.name[: -len(extension)] if extension else path.name)


__all__ = ["CatalogScanner", "ModuleScan", "ScanResult"]
