# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Read and write the persisted installation state under ``_config``."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..constants import CONFIG_DIR_NAME, HELP_CATALOG_FILE, MANIFEST_FILE
from ..errors import ManifestWriteError
from ..filesystem import atomic_write_text, display_relative_path
from .csv_io import CatalogFormatError, parse_table, render_table
from .models import CatalogKind, InstalledFile, Manifest
from .schema import SCHEMAS, VERBATIM_COLUMNS

WarningSink = Callable[[str], None]


def _discard(_message: str) -> None:
    return None


class ManifestStore:
    """Gateway to ``manifest.yaml`` and the catalog tables of one install root.

    Reads degrade gracefully: an absent or corrupt document reads as "no prior
    installation" and a malformed table reads as empty, each with a warning
    sent to ``on_warning``. Writes are whole-file replacements and raise
    :class:`ManifestWriteError` when the directory cannot be written.
    """

    def __init__(self, install_root: Path, *, on_warning: WarningSink | None = None) -> None:
        self.install_root = install_root
        self.config_dir = install_root / CONFIG_DIR_NAME
        self._warn = on_warning or _discard

    @property
    def manifest_path(self) -> Path:
        """Return the location of ``manifest.yaml``."""

        return self.config_dir / MANIFEST_FILE

    def table_path(self, kind: CatalogKind) -> Path:
        """Return the CSV path backing ``kind``."""

        return self.config_dir / kind.filename

    # Reads -------------------------------------------------------------

    def load(self) -> Manifest | None:
        """Return the recorded manifest, or ``None`` when there is none to trust."""

        path = self.manifest_path
        if not path.is_file():
            return None
        try:
            document = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            self._warn(f"Ignoring unreadable manifest {self._display(path)}: {exc}")
            return None
        if not isinstance(document, Mapping):
            self._warn(f"Ignoring manifest {self._display(path)}: expected a mapping at the top level")
            return None
        try:
            return Manifest.model_validate(document)
        except ValidationError as exc:
            self._warn(
                f"Ignoring manifest {self._display(path)}: {exc.error_count()} validation error(s)",
            )
            return None

    def load_table(self, kind: CatalogKind) -> list[dict[str, str]]:
        """Return the rows of the catalog table for ``kind`` as stored on disk.

        Rows keep the columns the file declares; callers migrate them with
        :func:`kitsync.manifest.schema.upgrade_row` when they need the current
        layout.
        """

        path = self.table_path(kind)
        if not path.is_file():
            return []
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._warn(f"Could not read {self._display(path)}: {exc}; treating it as empty")
            return []
        try:
            _columns, rows = parse_table(text)
        except CatalogFormatError as exc:
            self._warn(f"Malformed catalog {self._display(path)}: {exc}; treating it as empty")
            return []
        return rows

    def load_files(self) -> list[InstalledFile]:
        """Return the prior file catalog as :class:`InstalledFile` records."""

        return [InstalledFile.from_row(row) for row in self.load_table(CatalogKind.FILES) if row.get("path")]

    # Writes ------------------------------------------------------------

    def write(self, manifest: Manifest) -> Path:
        """Replace ``manifest.yaml`` with ``manifest``."""

        content = yaml.safe_dump(
            manifest.to_document(),
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
        )
        return self._write_text(self.manifest_path, content)

    def write_table(self, kind: CatalogKind, rows: Iterable[Mapping[str, str]]) -> Path:
        """Replace the catalog table for ``kind`` with ``rows`` in the current schema.

        Descriptive cells are collapsed onto one line; paths and hashes are
        written exactly as given.
        """

        schema = SCHEMAS[kind]
        return self._write_text(self.table_path(kind), render_table(schema.columns, rows, verbatim=VERBATIM_COLUMNS))

    def write_help_catalog(
        self,
        columns: Sequence[str],
        rows: Iterable[Mapping[str, str]],
        *,
        filename: str = HELP_CATALOG_FILE,
    ) -> Path:
        """Replace the derived help catalog."""

        return self._write_text(self.config_dir / filename, render_table(columns, rows, verbatim=VERBATIM_COLUMNS))

    def _write_text(self, path: Path, content: str) -> Path:
        try:
            atomic_write_text(path, content)
        except OSError as exc:
            raise ManifestWriteError(path, exc.strerror or str(exc)) from exc
        return path

    def _display(self, path: Path) -> str:
        return display_relative_path(path, self.install_root.parent)


__all__ = ["ManifestStore", "WarningSink"]
