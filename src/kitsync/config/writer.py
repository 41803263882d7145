# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Generate the per-module ``config.yaml`` files."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

import yaml

from ..constants import CORE_MODULE, MODULE_CONFIG_FILE
from ..errors import ManifestWriteError
from ..filesystem import atomic_write_text
from .fields import ConfigValue
from .resolver import ResolvedConfiguration

CORE_SECTION_COMMENT = "# Core Configuration Values"


def render_module_config(
    module: str,
    values: Mapping[str, ConfigValue],
    *,
    core_values: Mapping[str, ConfigValue] | None = None,
    version: str,
) -> str:
    """Return the YAML text of one module's ``config.yaml``.

    Non-core modules receive the core values too, listed after the module's own
    keys under a comment. A core key wins over a module key of the same name.
    """

    header = (
        f"# {module.upper()} Module Configuration\n"
        "# Generated by kitsync\n"
        f"# Version: {version}\n\n"
    )
    shared = dict(core_values or {}) if module != CORE_MODULE else {}
    own = {key: value for key, value in values.items() if key not in shared}
    body = _dump(own) if own else ""
    if shared:
        if body:
            body += "\n"
        body += f"{CORE_SECTION_COMMENT}\n{_dump(shared)}"
    if not body:
        body = "{}\n"
    return header + body


def write_module_configs(
    install_root: Path,
    resolved: ResolvedConfiguration,
    modules: Iterable[str],
    *,
    version: str,
) -> list[Path]:
    """Write ``<module>/config.yaml`` for every module directory that exists.

    Raises:
        ManifestWriteError: If a file cannot be written.
    """

    core_values = resolved.module(CORE_MODULE)
    written: list[Path] = []
    for module in modules:
        module_dir = install_root / module
        if not module_dir.is_dir():
            continue
        path = module_dir / MODULE_CONFIG_FILE
        content = render_module_config(module, resolved.module(module), core_values=core_values, version=version)
        try:
            atomic_write_text(path, content)
        except OSError as exc:
            raise ManifestWriteError(path, exc.strerror or str(exc)) from exc
        written.append(path)
    return written


def read_module_configs(
    install_root: Path,
    modules: Iterable[str],
    *,
    on_warning: Callable[[str], None] | None = None,
) -> dict[str, dict[str, object]]:
    """Return the values stored in each module's existing ``config.yaml``.

    Missing files are skipped. A file that cannot be read or is not a YAML
    mapping is reported through ``on_warning`` and skipped too.
    """

    stored: dict[str, dict[str, object]] = {}
    for module in modules:
        path = install_root / module / MODULE_CONFIG_FILE
        if not path.is_file():
            continue
        try:
            document = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            if on_warning is not None:
                on_warning(f"Ignoring unreadable {module}/{MODULE_CONFIG_FILE}: {exc}")
            continue
        if document is None:
            continue
        if not isinstance(document, Mapping):
            if on_warning is not None:
                on_warning(f"Ignoring {module}/{MODULE_CONFIG_FILE}: expected a mapping")
            continue
        stored[module] = {str(key): value for key, value in document.items()}
    return stored


def _dump(values: Mapping[str, ConfigValue]) -> str:
    return yaml.safe_dump(dict(values), sort_keys=False, allow_unicode=True, default_flow_style=False, width=1 << 16)


__all__ = ["read_module_configs", "render_module_config", "write_module_configs"]
