# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Filesystem utilities for path handling and tree traversal."""

from __future__ import annotations

from .paths import display_relative_path, relative_key, walk_files
from .writes import atomic_write_text, copy_preserving

__all__ = [
    "atomic_write_text",
    "copy_preserving",
    "display_relative_path",
    "relative_key",
    "walk_files",
]
