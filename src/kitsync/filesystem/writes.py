# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Whole-file write helpers."""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` in a single rename.

    The payload is written to a sibling temporary file first so readers never
    observe a half-written manifest.

    Args:
        path: Destination file.
        content: UTF-8 text to persist.

    Raises:
        OSError: If the directory is not writable or the rename fails.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def copy_preserving(source: Path, destination: Path) -> Path:
    """Copy ``source`` to ``destination`` creating parent directories."""

    destination.parent.mkdir(parents=True, exist_ok=True)
    return Path(shutil.copy2(source, destination))


__all__ = ["atomic_write_text", "copy_preserving"]
