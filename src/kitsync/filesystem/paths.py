# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Helpers for reasoning about filesystem paths inside an install root."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from os import PathLike
from pathlib import Path

_Pathish = str | PathLike[str] | Path

DirectoryFilter = Callable[[Path], bool]


def relative_key(path: _Pathish, root: _Pathish) -> str:
    """Return the POSIX-style key of ``path`` relative to ``root``.

    Manifest rows are keyed by these strings, so the separator is always ``/``
    regardless of platform.

    Args:
        path: Absolute or root-relative path of a file inside ``root``.
        root: Install root anchoring the key.

    Returns:
        str: Relative POSIX path without a leading separator.

    Raises:
        ValueError: If ``path`` lies outside ``root``.
    """

    if path is None:
        raise ValueError("path must not be None")
    candidate = Path(path)
    base = Path(root)
    if not candidate.is_absolute():
        candidate = base / candidate
    return Path(os.path.normpath(candidate)).relative_to(Path(os.path.normpath(base))).as_posix()


def display_relative_path(path: _Pathish, root: _Pathish) -> str:
    """Return a display-friendly representation of ``path`` relative to ``root``.

    Args:
        path: Path to present to the user.
        root: Base directory used for relativisation.

    Returns:
        str: Relative POSIX path when possible, otherwise the original string.
    """

    try:
        return relative_key(path, root) or "."
    except ValueError:
        return str(path)


def walk_files(root: Path, *, skip_dir: DirectoryFilter | None = None) -> Iterator[Path]:
    """Yield every regular file below ``root`` in a deterministic order.

    Args:
        root: Directory to traverse.
        skip_dir: Optional predicate; directories for which it returns ``True``
            are pruned together with their descendants.

    Yields:
        Path: Absolute file paths sorted by directory, then by name.
    """

    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        directory = Path(dirpath)
        kept = [name for name in sorted(dirnames) if skip_dir is None or not skip_dir(directory / name)]
        dirnames[:] = kept
        for filename in sorted(filenames):
            candidate = directory / filename
            if candidate.is_file():
                yield candidate


__all__ = ("DirectoryFilter", "display_relative_path", "relative_key", "walk_files")
