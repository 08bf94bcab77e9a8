"""
Extension options schema.

``ExtensionOptions`` is the resolved, immutable configuration of one
workflow extension instance: which admin actions render the transition
menu, which workflow to use, the labels and icons of the rendered items
and the roles required to see and apply transitions.  Raw mappings are
validated into this type by ``workflow_config.resolver``; YAML files are
read by ``workflow_config.loader``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True)
class ExtensionOptions:
    """Resolved options of a workflow extension."""

    render_actions: tuple[str, ...] = ("edit", "show")
    workflow_name: str | None = None
    no_transition_display: bool = False
    no_transition_label: str = "workflow_transitions_empty"
    no_transition_icon: str = "fa fa-code-fork"
    dropdown_transitions_label: str = "workflow_transitions"
    dropdown_transitions_icon: str | None = "fa fa-code-fork"
    transitions_default_icon: str | None = None
    transitions_icons: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    view_transitions_role: str = "EDIT"
    apply_transitions_role: str = "EDIT"

    def __post_init__(self) -> None:
        # Stored as read-only copies of the given values.
        object.__setattr__(self, "render_actions", tuple(self.render_actions))
        object.__setattr__(
            self, "transitions_icons", MappingProxyType(dict(self.transitions_icons))
        )

    @classmethod
    def option_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def icon_for(self, transition_name: str) -> str | None:
        """Per-transition icon, else the default icon, else None."""
        return self.transitions_icons.get(transition_name, self.transitions_default_icon)

    def to_dict(self) -> dict[str, Any]:
        return {
            "render_actions": list(self.render_actions),
            "workflow_name": self.workflow_name,
            "no_transition_display": self.no_transition_display,
            "no_transition_label": self.no_transition_label,
            "no_transition_icon": self.no_transition_icon,
            "dropdown_transitions_label": self.dropdown_transitions_label,
            "dropdown_transitions_icon": self.dropdown_transitions_icon,
            "transitions_default_icon": self.transitions_default_icon,
            "transitions_icons": dict(self.transitions_icons),
            "view_transitions_role": self.view_transitions_role,
            "apply_transitions_role": self.apply_transitions_role,
        }
