"""
Canonical workflow definition types (``workflow_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects describing a state machine: its places, its named
transitions and the guards attached to them.  The ``transitions`` engine
is built from these in ``workflow_kernel.workflow``; nothing here
evaluates or mutates anything.

Invariants enforced
-------------------
* ``initial_state`` is a member of ``states``.
* Every transition's source and target states are members of ``states``.
* A transition has at least one source state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from workflow_kernel.exceptions import InvalidDefinitionError


@dataclass(frozen=True)
class Guard:
    """A condition that must hold for a transition to be enabled.

    Contract: frozen; ``predicate`` receives the subject and returns a bool.
    Non-goals: does not evaluate itself -- the engine does, both when
    listing enabled transitions and when applying one.
    """
    name: str
    predicate: Callable[[Any], bool]
    description: str = ""


@dataclass(frozen=True)
class Transition:
    """A named edge from one or more source states to a target state.

    ``froms`` accepts a single state name for convenience; it is normalised
    to a tuple.
    """
    name: str
    froms: tuple[str, ...]
    to: str
    guard: Guard | None = None

    def __post_init__(self) -> None:
        if isinstance(self.froms, str):
            object.__setattr__(self, "froms", (self.froms,))
        else:
            object.__setattr__(self, "froms", tuple(self.froms))


@dataclass(frozen=True)
class Definition:
    """A state machine definition.

    Contract: frozen; ``transitions`` keep declaration order, which is the
    order enabled transitions are reported in.
    Guarantees: ``initial_state`` and all transition endpoints are members
    of ``states``.
    """
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    initial_state: str
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "states", tuple(self.states))
        object.__setattr__(self, "transitions", tuple(self.transitions))

        if self.initial_state not in self.states:
            raise InvalidDefinitionError(
                f"initial state '{self.initial_state}' is not one of {list(self.states)}"
            )
        for transition in self.transitions:
            if not transition.froms:
                raise InvalidDefinitionError(
                    f"transition '{transition.name}' has no source state"
                )
            for state in (*transition.froms, transition.to):
                if state not in self.states:
                    raise InvalidDefinitionError(
                        f"transition '{transition.name}' references unknown state '{state}'"
                    )

    @property
    def transition_names(self) -> tuple[str, ...]:
        """Distinct transition names in declaration order."""
        return tuple(dict.fromkeys(t.name for t in self.transitions))

    def transitions_from(self, state: str) -> tuple[Transition, ...]:
        """Transitions whose sources include ``state``, in declaration order."""
        return tuple(t for t in self.transitions if state in t.froms)


class InstanceOfSupportStrategy:
    """Registry support strategy matching subjects by class."""

    def __init__(self, class_name: type) -> None:
        self._class_name = class_name

    @property
    def class_name(self) -> type:
        return self._class_name

    def supports(self, workflow: Any, subject: Any) -> bool:
        return isinstance(subject, self._class_name)
