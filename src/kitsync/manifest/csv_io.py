# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CSV encoding shared by every catalog table."""

from __future__ import annotations

import csv
import io
import re
from collections.abc import Collection, Iterable, Mapping, Sequence
from typing import Final

_WHITESPACE_RUN: Final[re.Pattern[str]] = re.compile(r"\s+")


class CatalogFormatError(ValueError):
    """Raised when a catalog table cannot be parsed."""


def normalize_text(value: object) -> str:
    """Collapse internal whitespace so catalog cells never span lines.

    Args:
        value: Raw text (``None`` becomes ``""``).

    Returns:
        str: Text with runs of whitespace replaced by one space and trimmed.
    """

    if value is None:
        return ""
    return _WHITESPACE_RUN.sub(" ", str(value)).strip()


def render_table(
    columns: Sequence[str],
    rows: Iterable[Mapping[str, str]],
    *,
    normalize: bool = True,
    verbatim: Collection[str] = (),
) -> str:
    """Render ``rows`` as CSV text with a header line.

    Fields containing the delimiter, a quote, CR or LF are quoted and embedded
    quotes are doubled. Cells are written in ``columns`` order; keys outside
    ``columns`` are ignored.

    Args:
        columns: Header and cell order.
        rows: Mappings keyed by column name.
        normalize: Collapse whitespace in cells before encoding.
        verbatim: Columns written exactly as given even when ``normalize`` is set.

    Returns:
        str: CSV document terminated by a newline.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow([_encode_cell(row.get(column, ""), normalize and column not in verbatim) for column in columns])
    return buffer.getvalue()


def _encode_cell(value: object, normalize: bool) -> str:
    if normalize:
        return normalize_text(value)
    return "" if value is None else str(value)


def parse_table(text: str) -> tuple[list[str], list[dict[str, str]]]:
    """Parse CSV ``text`` produced by :func:`render_table` or an older writer.

    Short rows are padded with empty strings. Rows with more cells than the
    header, or text the strict CSV reader rejects, raise
    :class:`CatalogFormatError`.

    Args:
        text: Whole-file CSV content.

    Returns:
        tuple[list[str], list[dict[str, str]]]: Header columns and the rows.

    Raises:
        CatalogFormatError: If the content is not a well-formed table.
    """

    if text.startswith("\ufeff"):
        text = text[1:]
    reader = csv.reader(io.StringIO(text, newline=""), strict=True)
    try:
        header = next(reader, None)
        if header is None:
            return [], []
        columns = [column.strip() for column in header]
        if not any(columns):
            raise CatalogFormatError("catalog header is empty")
        rows: list[dict[str, str]] = []
        for line_number, cells in enumerate(reader, start=2):
            if not cells or all(not cell for cell in cells):
                continue
            if len(cells) > len(columns):
                raise CatalogFormatError(
                    f"line {line_number} has {len(cells)} fields, header declares {len(columns)}",
                )
            padded = list(cells) + [""] * (len(columns) - len(cells))
            rows.append(dict(zip(columns, padded, strict=True)))
    except csv.Error as exc:
        raise CatalogFormatError(str(exc)) from exc
    return columns, rows


__all__ = ["CatalogFormatError", "normalize_text", "parse_table", "render_table"]
