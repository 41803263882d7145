# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Content hashing used for change detection."""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Final

from .constants import DEFAULT_HASH_WORKERS

UNKNOWN_DIGEST: Final[str] = ""
_CHUNK_SIZE: Final[int] = 1024 * 1024


def hash_bytes(payload: bytes) -> str:
    """Return the hex-encoded SHA-256 digest of ``payload``.

    Args:
        payload: Raw file content.

    Returns:
        str: Lowercase hexadecimal digest.
    """

    return hashlib.sha256(payload).hexdigest()


def hash_file(path: Path) -> str:
    """Return the SHA-256 digest of the file at ``path``.

    Read failures (permissions, the file vanishing mid-scan) yield
    :data:`UNKNOWN_DIGEST` instead of raising; callers must not use an unknown
    digest to decide that a file changed.

    Args:
        path: File to hash.

    Returns:
        str: Hex digest, or ``""`` when the file could not be read.
    """

    hasher = hashlib.sha256()
    try:
        with path.open("rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
    except OSError:
        return UNKNOWN_DIGEST
    return hasher.hexdigest()


def hash_files(paths: Sequence[Path], *, workers: int = DEFAULT_HASH_WORKERS) -> list[str]:
    """Hash ``paths`` on a bounded thread pool.

    Args:
        paths: Files to hash.
        workers: Upper bound on concurrent hashing threads.

    Returns:
        list[str]: Digests aligned with ``paths`` (input order, not completion order).
    """

    if not paths:
        return []
    if workers <= 1 or len(paths) == 1:
        return [hash_file(path) for path in paths]
    with ThreadPoolExecutor(max_workers=min(workers, len(paths))) as executor:
        return list(executor.map(hash_file, paths))


def is_known(digest: str | None) -> bool:
    """Return ``True`` when ``digest`` can be trusted for diffing."""

    return bool(digest)


__all__ = ["UNKNOWN_DIGEST", "hash_bytes", "hash_file", "hash_files", "is_known"]
