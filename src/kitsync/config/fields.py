# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tagged configuration field declarations read from ``module.yaml``."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ..constants import VALUE_PLACEHOLDER
from ..errors import ConfigResolutionError

ScalarValue = str | int | float | bool
ConfigValue = ScalarValue | list[ScalarValue]

VALUE_TOKEN: Final[str] = "{" + VALUE_PLACEHOLDER + "}"


class Choice(BaseModel):
    """One selectable option of a select field."""

    model_config = ConfigDict(frozen=True)

    value: ScalarValue
    label: str = ""

    @field_validator("label", mode="before")
    @classmethod
    def _coerce_label(cls, value: object) -> object:
        return "" if value is None else str(value)


class _FieldBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    key: str
    result: str | None = None

    def apply_result(self, value: ConfigValue) -> ConfigValue:
        """Render ``value`` through the ``result`` template.

        A template that is exactly ``{value}`` keeps the value's type; any
        other template substitutes the value as text. Lists are joined with
        commas when embedded in a template.
        """

        template = self.result
        if template is None:
            return value
        if template == VALUE_TOKEN:
            return value
        if VALUE_TOKEN not in template:
            return template
        rendered = ",".join(str(item) for item in value) if isinstance(value, list) else _scalar_text(value)
        return template.replace(VALUE_TOKEN, rendered)

    def recover_answer(self, stored: object) -> object | None:
        """Return the answer that produced ``stored``, or ``None`` if unknown.

        ``stored`` is a value read back from a generated ``config.yaml``. The
        text around ``{value}`` in the ``result`` template is stripped again.
        """

        template = self.result
        if stored is None or template is None or template == VALUE_TOKEN:
            return stored
        if VALUE_TOKEN not in template or not isinstance(stored, str):
            return None
        prefix, _, suffix = template.partition(VALUE_TOKEN)
        if len(stored) < len(prefix) + len(suffix) or not stored.startswith(prefix) or not stored.endswith(suffix):
            return None
        return stored[len(prefix) : len(stored) - len(suffix)]


class StaticField(_FieldBase):
    """Field whose value is fixed by the module."""

    kind: Literal["static"] = "static"
    result: str

    def raw_value(self, answer: object | None) -> ConfigValue:
        """Return the static ``result``; answers are ignored."""

        return self.result

    def recover_answer(self, stored: object) -> object | None:
        return None


class PromptField(_FieldBase):
    """Free-form scalar answered by the user, falling back to ``default``."""

    kind: Literal["prompt"] = "prompt"
    prompt: str = ""
    default: ScalarValue | None = None

    def raw_value(self, answer: object | None) -> ConfigValue:
        """Return the answer (or default) as a scalar.

        Raises:
            ConfigResolutionError: If neither an answer nor a default exists,
                or the answer is not a scalar.
        """

        value = self.default if answer is None else answer
        if value is None:
            raise ConfigResolutionError(f"No value supplied for '{self.key}' and no default declared")
        if not isinstance(value, (str, int, float, bool)):
            raise ConfigResolutionError(f"'{self.key}' expects a scalar value, got {type(value).__name__}")
        return value


class SingleSelectField(_FieldBase):
    """Exactly one value picked from ``choices``."""

    kind: Literal["single-select"] = "single-select"
    prompt: str = ""
    choices: tuple[Choice, ...]
    default: ScalarValue | None = None

    def raw_value(self, answer: object | None) -> ConfigValue:
        """Return the chosen value, validated against ``choices``."""

        value = self.default if answer is None else answer
        if value is None:
            value = self.choices[0].value if self.choices else None
        allowed = [choice.value for choice in self.choices]
        matched = _match_choice(value, allowed)
        if matched is None:
            raise ConfigResolutionError(
                f"'{self.key}' must be one of {', '.join(str(item) for item in allowed)}; got {value!r}",
            )
        return matched


class MultiSelectField(_FieldBase):
    """Any subset of ``choices``."""

    kind: Literal["multi-select"] = "multi-select"
    prompt: str = ""
    choices: tuple[Choice, ...]
    default: tuple[ScalarValue, ...] = ()

    @field_validator("default", mode="before")
    @classmethod
    def _coerce_default(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, (str, int, float, bool)):
            return (value,)
        return value

    def raw_value(self, answer: object | None) -> ConfigValue:
        """Return the selected values in declaration order."""

        if answer is None:
            requested: Sequence[object] = self.default
        elif isinstance(answer, str):
            requested = [item.strip() for item in answer.split(",") if item.strip()]
        elif isinstance(answer, Sequence):
            requested = list(answer)
        else:
            requested = [answer]
        allowed = [choice.value for choice in self.choices]
        selected: list[ScalarValue] = []
        for item in requested:
            matched = _match_choice(item, allowed)
            if matched is None:
                raise ConfigResolutionError(f"'{self.key}' does not offer the choice {item!r}")
            if matched not in selected:
                selected.append(matched)
        return [value for value in allowed if value in selected]


ConfigField = Annotated[
    StaticField | PromptField | SingleSelectField | MultiSelectField,
    Field(discriminator="kind"),
]

_FIELD_ADAPTER: TypeAdapter[ConfigField] = TypeAdapter(ConfigField)


def parse_fields(declarations: Mapping[str, Any] | None, *, module: str) -> tuple[ConfigField, ...]:
    """Build typed fields from the ``config:`` mapping of a module descriptor.

    The variant comes from an explicit ``kind`` or is inferred: a
    ``single-select`` or ``multi-select`` list of choices, a ``prompt`` text, or
    a lone ``result`` for static values.

    Args:
        declarations: Mapping of key to declaration.
        module: Module code used in error messages.

    Returns:
        tuple[ConfigField, ...]: Fields in declaration order.

    Raises:
        ConfigResolutionError: If a declaration matches no variant.
    """

    fields: list[ConfigField] = []
    for key, raw in (declarations or {}).items():
        payload = _normalise_declaration(str(key), raw)
        try:
            fields.append(_FIELD_ADAPTER.validate_python(payload))
        except ValidationError as exc:
            raise ConfigResolutionError(
                f"Invalid configuration field '{module}.{key}': {exc.errors()[0]['msg']}",
            ) from exc
    return tuple(fields)


def _normalise_declaration(key: str, raw: object) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        return {"kind": "static", "key": key, "result": _scalar_text(raw)}
    payload: dict[str, Any] = {str(name): value for name, value in raw.items()}
    payload["key"] = key
    if "kind" not in payload:
        if "single-select" in payload:
            payload["kind"] = "single-select"
            payload["choices"] = _normalise_choices(payload.pop("single-select"))
        elif "multi-select" in payload:
            payload["kind"] = "multi-select"
            payload["choices"] = _normalise_choices(payload.pop("multi-select"))
        elif "prompt" in payload:
            payload["kind"] = "prompt"
        else:
            payload["kind"] = "static"
    elif "choices" in payload:
        payload["choices"] = _normalise_choices(payload["choices"])
    if isinstance(payload.get("prompt"), list):
        payload["prompt"] = " ".join(str(line) for line in payload["prompt"])
    if payload.get("result") is not None and not isinstance(payload["result"], str):
        payload["result"] = _scalar_text(payload["result"])
    return payload


def _normalise_choices(raw: object) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    choices: list[dict[str, Any]] = []
    for item in raw:
        if isinstance(item, Mapping):
            choices.append({"value": item.get("value"), "label": item.get("label", "")})
        else:
            choices.append({"value": item, "label": str(item)})
    return choices


def _match_choice(value: object, allowed: Sequence[ScalarValue]) -> ScalarValue | None:
    for candidate in allowed:
        if value == candidate or str(value) == str(candidate):
            return candidate
    return None


def _scalar_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


__all__ = [
    "Choice",
    "ConfigField",
    "ConfigValue",
    "MultiSelectField",
    "PromptField",
    "ScalarValue",
    "SingleSelectField",
    "StaticField",
    "parse_fields",
]
