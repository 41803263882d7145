# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Two-phase resolution of module configuration values."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Final

from ..constants import CORE_MODULE, DIRECTORY_NAME_PLACEHOLDER, PROJECT_ROOT_PLACEHOLDER, VALUE_PLACEHOLDER
from ..errors import ConfigResolutionError, PlaceholderCycleError
from .fields import ConfigField, ConfigValue

_PLACEHOLDER: Final[re.Pattern[str]] = re.compile(r"\{([^{}]+)\}")
_PRESERVED: Final[frozenset[str]] = frozenset({PROJECT_ROOT_PLACEHOLDER, VALUE_PLACEHOLDER})

NodeKey = tuple[str, str]


@dataclass(frozen=True, slots=True)
class ModuleConfigSpec:
    """Configuration fields one module declares."""

    module: str
    fields: tuple[ConfigField, ...] = ()


@dataclass(frozen=True, slots=True)
class ResolvedConfiguration:
    """Immutable mapping of module to fully resolved configuration values.

    ``{project-root}`` is kept as a literal token so consumers can anchor
    paths at run time.
    """

    project_dir: Path
    values: Mapping[str, Mapping[str, ConfigValue]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {module: MappingProxyType(dict(entries)) for module, entries in self.values.items()}
        object.__setattr__(self, "values", MappingProxyType(frozen))

    @property
    def modules(self) -> tuple[str, ...]:
        """Return the modules with resolved values."""

        return tuple(self.values)

    def module(self, name: str) -> Mapping[str, ConfigValue]:
        """Return the values of ``name`` (empty when the module has none)."""

        return self.values.get(name, MappingProxyType({}))

    def get(self, module: str, key: str, default: ConfigValue | None = None) -> ConfigValue | None:
        """Return one value or ``default``."""

        return self.module(module).get(key, default)

    def with_module(self, name: str, entries: Mapping[str, ConfigValue]) -> ResolvedConfiguration:
        """Return a copy with ``name`` replaced by ``entries``."""

        updated = {module: dict(values) for module, values in self.values.items()}
        updated[name] = dict(entries)
        return ResolvedConfiguration(project_dir=self.project_dir, values=updated)

    def expand(self, value: str) -> str:
        """Replace ``{project-root}`` in ``value`` with the project directory."""

        return value.replace("{" + PROJECT_ROOT_PLACEHOLDER + "}", self.project_dir.as_posix())


class ConfigResolver:
    """Resolve answers and defaults for every module in two phases.

    Phase one collects each field's raw value (answer or default) and renders
    its ``result`` template. Phase two resolves ``{key}`` and ``{module.key}``
    references as a dependency graph; a reference loop raises
    :class:`PlaceholderCycleError` and a reference to an unknown key raises
    :class:`ConfigResolutionError`.
    """

    def __init__(self, project_dir: Path) -> None:
        self.project_dir = project_dir

    def resolve(
        self,
        specs: Sequence[ModuleConfigSpec],
        answers: Mapping[str, Mapping[str, object]] | None = None,
        *,
        previous: Mapping[str, Mapping[str, object]] | None = None,
    ) -> ResolvedConfiguration:
        """Return the resolved configuration for ``specs``.

        Each field takes its explicit answer first, then the value stored by an
        earlier run, then its declared default. Stored values for keys a module
        no longer declares are dropped, and a stored value the field rejects
        falls back to the default.

        Args:
            specs: Field declarations per module.
            answers: Explicit answers keyed by module then field key.
            previous: Values read from the existing ``config.yaml`` files.

        Returns:
            ResolvedConfiguration: Values with every reference substituted.

        Raises:
            ConfigResolutionError: For invalid answers or unknown references.
        """

        answers = answers or {}
        previous = previous or {}
        raw: dict[NodeKey, ConfigValue] = {}
        for spec in specs:
            module_answers = answers.get(spec.module, {})
            unknown = set(module_answers) - {item.key for item in spec.fields}
            if unknown:
                raise ConfigResolutionError(
                    f"Unknown configuration key(s) for module '{spec.module}': {', '.join(sorted(unknown))}",
                )
            stored = previous.get(spec.module, {})
            for item in spec.fields:
                value = _raw_value(item, module_answers.get(item.key), stored.get(item.key))
                raw[(spec.module, item.key)] = item.apply_result(value)

        resolved: dict[NodeKey, ConfigValue] = {}
        for node in raw:
            self._resolve_node(node, raw, resolved, ())

        values: dict[str, dict[str, ConfigValue]] = {spec.module: {} for spec in specs}
        for (module, key), value in resolved.items():
            values[module][key] = value
        return ResolvedConfiguration(project_dir=self.project_dir, values=values)

    def _resolve_node(
        self,
        node: NodeKey,
        raw: Mapping[NodeKey, ConfigValue],
        resolved: dict[NodeKey, ConfigValue],
        stack: tuple[NodeKey, ...],
    ) -> ConfigValue:
        if node in resolved:
            return resolved[node]
        if node in stack:
            start = stack.index(node)
            raise PlaceholderCycleError(tuple(_label(entry) for entry in (*stack[start:], node)))
        value = raw[node]
        if isinstance(value, str):
            value = self._substitute(node, value, raw, resolved, (*stack, node))
        resolved[node] = value
        return value

    def _substitute(
        self,
        node: NodeKey,
        text: str,
        raw: Mapping[NodeKey, ConfigValue],
        resolved: dict[NodeKey, ConfigValue],
        stack: tuple[NodeKey, ...],
    ) -> ConfigValue:
        whole = _PLACEHOLDER.fullmatch(text)
        if whole is not None and whole.group(1) not in _PRESERVED:
            reference = whole.group(1)
            if reference == DIRECTORY_NAME_PLACEHOLDER:
                return self.project_dir.name
            return self._resolve_node(self._target(node, reference, raw), raw, resolved, stack)

        def replace(match: re.Match[str]) -> str:
            reference = match.group(1)
            if reference in _PRESERVED:
                return match.group(0)
            if reference == DIRECTORY_NAME_PLACEHOLDER:
                return self.project_dir.name
            target = self._target(node, reference, raw)
            return _as_text(self._resolve_node(target, raw, resolved, stack))

        return _PLACEHOLDER.sub(replace, text)

    @staticmethod
    def _target(node: NodeKey, reference: str, raw: Mapping[NodeKey, ConfigValue]) -> NodeKey:
        module, _key = node
        if "." in reference:
            owner, key = reference.split(".", 1)
            candidates: list[NodeKey] = [(owner, key)]
        else:
            candidates = [(module, reference), (CORE_MODULE, reference)]
        for candidate in candidates:
            if candidate in raw:
                return candidate
        raise ConfigResolutionError(
            f"Configuration value '{_label(node)}' references unknown placeholder '{{{reference}}}'",
        )


def _raw_value(item: ConfigField, answer: object | None, stored: object | None) -> ConfigValue:
    if answer is None and stored is not None:
        carried = item.recover_answer(stored)
        if carried is not None:
            try:
                return item.raw_value(carried)
            except ConfigResolutionError:
                # Stored choice the module no longer offers; use the default.
                pass
    return item.raw_value(answer)


def _label(node: NodeKey) -> str:
    return f"{node[0]}.{node[1]}"


def _as_text(value: ConfigValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_as_text(item) for item in value)
    return str(value)


__all__ = ["ConfigResolver", "ModuleConfigSpec", "ResolvedConfiguration"]
