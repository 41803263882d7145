# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Catalog table schemas and the row migrator for preserved modules."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

from .models import TRUE_TOKEN, CatalogKind

MODULE_COLUMN: Final[str] = "module"
NAME_COLUMN: Final[str] = "name"
# Locations and digests must survive a write exactly; whitespace is significant there.
VERBATIM_COLUMNS: Final[frozenset[str]] = frozenset(
    {"path", "hash", "workflow-file", "output-location", "outputs"},
)


@dataclass(frozen=True, slots=True)
class TableSchema:
    """Current column layout of one catalog table.

    Attributes:
        kind: Catalog the schema describes.
        columns: Ordered column names written to the CSV header.
        defaults: Values used for columns missing from older rows.
    """

    kind: CatalogKind
    columns: tuple[str, ...]
    defaults: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"duplicate columns in {self.kind.value} schema")
        unknown = set(self.defaults) - set(self.columns)
        if unknown:
            raise ValueError(f"defaults reference unknown columns: {', '.join(sorted(unknown))}")
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    def default_for(self, column: str) -> str:
        """Return the declared default for ``column`` (``""`` when undeclared)."""

        return self.defaults.get(column, "")

    def row_key(self, row: Mapping[str, str]) -> tuple[str, str]:
        """Return the identity used to de-duplicate rows of this table.

        The files table is keyed by path; every other table by ``(module, name)``.
        """

        if self.kind is CatalogKind.FILES:
            return ("", row.get("path", ""))
        return (row.get(MODULE_COLUMN, ""), row.get(NAME_COLUMN, ""))


FILES_SCHEMA: Final[TableSchema] = TableSchema(
    kind=CatalogKind.FILES,
    columns=("type", "name", "module", "path", "hash"),
)
WORKFLOW_SCHEMA: Final[TableSchema] = TableSchema(
    kind=CatalogKind.WORKFLOWS,
    columns=("name", "description", "module", "path"),
)
AGENT_SCHEMA: Final[TableSchema] = TableSchema(
    kind=CatalogKind.AGENTS,
    columns=(
        "name",
        "displayName",
        "title",
        "icon",
        "capabilities",
        "role",
        "identity",
        "communicationStyle",
        "principles",
        "module",
        "path",
    ),
)
TASK_SCHEMA: Final[TableSchema] = TableSchema(
    kind=CatalogKind.TASKS,
    columns=("name", "displayName", "description", "module", "path", "standalone"),
    defaults={"standalone": TRUE_TOKEN},
)
TOOL_SCHEMA: Final[TableSchema] = TableSchema(
    kind=CatalogKind.TOOLS,
    columns=("name", "displayName", "description", "module", "path", "standalone"),
    defaults={"standalone": TRUE_TOKEN},
)

SCHEMAS: Final[Mapping[CatalogKind, TableSchema]] = MappingProxyType(
    {
        CatalogKind.FILES: FILES_SCHEMA,
        CatalogKind.WORKFLOWS: WORKFLOW_SCHEMA,
        CatalogKind.AGENTS: AGENT_SCHEMA,
        CatalogKind.TASKS: TASK_SCHEMA,
        CatalogKind.TOOLS: TOOL_SCHEMA,
    },
)


def upgrade_row(row: Mapping[str, str], schema: TableSchema) -> dict[str, str]:
    """Return ``row`` reshaped to the columns of ``schema``.

    Columns present in both layouts keep their value, columns new to
    ``schema`` receive the declared default, and columns the schema no longer
    declares are dropped.

    Args:
        row: Row read from an older (or current) table, keyed by column name.
        schema: Target schema.

    Returns:
        dict[str, str]: Row containing exactly ``schema.columns``.
    """

    upgraded: dict[str, str] = {}
    for column in schema.columns:
        value = row.get(column)
        upgraded[column] = schema.default_for(column) if value is None else value
    return upgraded


def upgrade_rows(
    rows: Iterable[Mapping[str, str]],
    schema: TableSchema,
    *,
    modules: Iterable[str] | None = None,
) -> list[dict[str, str]]:
    """Upgrade the rows belonging to ``modules`` (all rows when ``None``).

    Args:
        rows: Rows read from the prior table.
        schema: Target schema.
        modules: Optional module filter applied to the ``module`` column.

    Returns:
        list[dict[str, str]]: Upgraded rows in their original order.
    """

    allowed = None if modules is None else set(modules)
    return [
        upgrade_row(row, schema)
        for row in rows
        if allowed is None or row.get(MODULE_COLUMN, "") in allowed
    ]


__all__ = [
    "AGENT_SCHEMA",
    "FILES_SCHEMA",
    "SCHEMAS",
    "TASK_SCHEMA",
    "TOOL_SCHEMA",
    "TableSchema",
    "VERBATIM_COLUMNS",
    "WORKFLOW_SCHEMA",
    "upgrade_row",
    "upgrade_rows",
]
