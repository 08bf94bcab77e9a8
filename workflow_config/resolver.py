"""
Options resolution (``workflow_config.resolver``).

Responsibility
--------------
Turns a raw mapping (from code or YAML) into an ``ExtensionOptions``.
Missing keys take their defaults; unknown keys and values of the wrong
type are rejected.

Invariants enforced
-------------------
* Resolution happens once per extension; the result is frozen.
* Every key of the mapping is a declared option.
* Every value has the declared type (``None`` only where allowed).

Failure modes
-------------
* Unknown key  -> ``UndefinedOptionsError``.
* Wrong type   -> ``InvalidOptionsError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from workflow_config.schema import ExtensionOptions
from workflow_kernel.exceptions import InvalidOptionsError, UndefinedOptionsError

_STRING_OPTIONS = (
    "no_transition_label",
    "no_transition_icon",
    "dropdown_transitions_label",
    "view_transitions_role",
    "apply_transitions_role",
)
_NULLABLE_STRING_OPTIONS = (
    "workflow_name",
    "dropdown_transitions_icon",
    "transitions_default_icon",
)


def _type_name(value: Any) -> str:
    return "null" if value is None else type(value).__name__


def _check_string(name: str, value: Any, nullable: bool) -> None:
    if value is None and nullable:
        return
    if not isinstance(value, str):
        expected = "string or null" if nullable else "string"
        raise InvalidOptionsError(name, expected, _type_name(value))


def _resolve_render_actions(value: Any) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise InvalidOptionsError("render_actions", "list of strings", _type_name(value))
    for item in value:
        if not isinstance(item, str):
            raise InvalidOptionsError("render_actions", "list of strings", _type_name(item))
    return tuple(value)


def _resolve_icons(value: Any) -> Mapping[str, str]:
    if not isinstance(value, Mapping):
        raise InvalidOptionsError("transitions_icons", "mapping", _type_name(value))
    for key, icon in value.items():
        if not isinstance(key, str) or not isinstance(icon, str):
            raise InvalidOptionsError(
                "transitions_icons", "mapping of string to string", _type_name(icon)
            )
    return MappingProxyType(dict(value))


def resolve_options(options: Mapping[str, Any] | None = None) -> ExtensionOptions:
    """
    Resolve a raw options mapping against the declared defaults.

    Preconditions:
        - ``options`` is a mapping of option name to value, or None.
    Postconditions:
        - Returns a frozen ``ExtensionOptions``.
    Raises:
        UndefinedOptionsError: if a key is not a declared option.
        InvalidOptionsError: if a value has the wrong type.
    """
    raw = dict(options or {})
    defined = ExtensionOptions.option_names()

    unknown = sorted(key for key in raw if key not in defined)
    if unknown:
        raise UndefinedOptionsError(unknown, defined)

    for name in _STRING_OPTIONS:
        if name in raw:
            _check_string(name, raw[name], nullable=False)
    for name in _NULLABLE_STRING_OPTIONS:
        if name in raw:
            _check_string(name, raw[name], nullable=True)

    if "no_transition_display" in raw and not isinstance(raw["no_transition_display"], bool):
        raise InvalidOptionsError(
            "no_transition_display", "bool", _type_name(raw["no_transition_display"])
        )
    if "render_actions" in raw:
        raw["render_actions"] = _resolve_render_actions(raw["render_actions"])
    if "transitions_icons" in raw:
        raw["transitions_icons"] = _resolve_icons(raw["transitions_icons"])

    return ExtensionOptions(**raw)
