# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Lightweight extraction helpers for asset declarations."""

from __future__ import annotations

import re
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any, Final

import yaml

_FRONT_MATTER: Final[re.Pattern[str]] = re.compile(r"\A---\n(.*?)\n---", re.DOTALL)
_PLACEHOLDER: Final[re.Pattern[str]] = re.compile(r"\{[^{}]*\}")


class AssetParseError(ValueError):
    """Raised when an asset declaration cannot be interpreted."""


def read_normalized(path: Path) -> str:
    """Return the UTF-8 text of ``path`` with CRLF and CR folded to LF."""

    text = path.read_text(encoding="utf-8")
    if text.startswith("\ufeff"):
        text = text[1:]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def load_mapping(text: str, *, source: Path) -> dict[str, Any]:
    """Parse ``text`` as a YAML mapping.

    Raises:
        AssetParseError: If the YAML is invalid or not a mapping.
    """

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise AssetParseError(f"{source.name}: invalid YAML ({exc.__class__.__name__})") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise AssetParseError(f"{source.name}: expected a mapping, found {type(data).__name__}")
    return {str(key): value for key, value in data.items()}


def front_matter(text: str, *, source: Path) -> dict[str, Any] | None:
    """Return the YAML front-matter of ``text`` or ``None`` when absent."""

    match = _FRONT_MATTER.match(text)
    if match is None:
        return None
    return load_mapping(match.group(1), source=source)


def has_placeholder(value: str) -> bool:
    """Return ``True`` when ``value`` contains ``{...}`` template syntax."""

    return bool(_PLACEHOLDER.search(value))


@lru_cache(maxsize=32)
def _attribute_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf'\b{re.escape(name)}="([^"]+)"')


@lru_cache(maxsize=32)
def _element_pattern(tag: str) -> re.Pattern[str]:
    return re.compile(rf"<{re.escape(tag)}>(.*?)</{re.escape(tag)}>", re.DOTALL)


def attribute(content: str, name: str) -> str:
    """Return the first ``name="..."`` attribute value in ``content`` or ``""``."""

    match = _attribute_pattern(name).search(content)
    return match.group(1) if match else ""


def element(content: str, tag: str) -> str:
    """Return the text of the first ``<tag>...</tag>`` element or ``""``."""

    match = _element_pattern(tag).search(content)
    return match.group(1).strip() if match else ""


def root_flag(content: str, tag: str, name: str, value: str) -> bool:
    """Return ``True`` when the opening ``<tag ...>`` carries ``name="value"``."""

    pattern = re.compile(rf'<{re.escape(tag)}\b[^>]*\b{re.escape(name)}="{re.escape(value)}"')
    return bool(pattern.search(content))


def text_value(value: object) -> str:
    """Render a YAML scalar as catalog text."""

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


__all__ = [
    "AssetParseError",
    "attribute",
    "element",
    "front_matter",
    "has_placeholder",
    "load_mapping",
    "read_normalized",
    "root_flag",
    "text_value",
]
