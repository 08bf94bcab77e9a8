"""
workflow_kernel.workflow -- Workflow adapter over the ``transitions`` engine.

Responsibility:
    Builds a model-less ``transitions.Machine`` from a ``Definition`` and
    exposes the three questions the admin bridge asks of it: which
    transitions are enabled for a subject, whether one transition can be
    applied, and apply it.  The subject's marking lives on the subject
    itself (``marking_attribute``); the machine never keeps per-subject
    state, so one Workflow serves every subject of its class.

Architecture position:
    Kernel.  Depends on ``workflow_kernel.domain`` and the ``transitions``
    library only.  Consumed by the registry, the admin extension and the
    controller.

Invariants enforced:
    - enabled_transitions() and can() never write to the subject.
    - Guards are evaluated by the engine (machine conditions), both when
      listing and when applying.
    - apply() either moves the marking or raises a TransitionError.
"""

from __future__ import annotations

from typing import Any, Callable

from transitions import Machine, MachineError
from transitions.core import EventData

from workflow_kernel.domain.workflow import Definition, Guard, Transition
from workflow_kernel.exceptions import (
    NotEnabledTransitionError,
    UndefinedTransitionError,
)
from workflow_kernel.logging_config import get_logger

logger = get_logger("workflow")


def _guard_condition(guard: Guard) -> Callable[[EventData], bool]:
    """Adapt a subject predicate to a machine condition (send_event=True)."""

    def condition(event_data: EventData) -> bool:
        return bool(guard.predicate(event_data.model))

    condition.__name__ = f"guard_{guard.name}"
    return condition


class Workflow:
    """A named state machine bound to a marking attribute."""

    def __init__(
        self,
        definition: Definition,
        name: str = "unnamed",
        marking_attribute: str = "marking",
    ) -> None:
        self._definition = definition
        self._name = name
        self._marking_attribute = marking_attribute
        self._machine = Machine(
            model=None,
            states=list(definition.states),
            transitions=[self._engine_transition(t) for t in definition.transitions],
            initial=definition.initial_state,
            auto_transitions=False,
            send_event=True,
            model_attribute=marking_attribute,
            name=name,
        )
        logger.debug(
            "workflow_built",
            extra={
                "workflow": name,
                "states": list(definition.states),
                "transitions": list(definition.transition_names),
            },
        )

    @staticmethod
    def _engine_transition(transition: Transition) -> dict[str, Any]:
        options: dict[str, Any] = {
            "trigger": transition.name,
            "source": list(transition.froms),
            "dest": transition.to,
        }
        if transition.guard is not None:
            options["conditions"] = [_guard_condition(transition.guard)]
        return options

    @property
    def name(self) -> str:
        return self._name

    @property
    def definition(self) -> Definition:
        return self._definition

    @property
    def marking_attribute(self) -> str:
        return self._marking_attribute

    def _current_marking(self, subject: Any) -> str:
        marking = getattr(subject, self._marking_attribute, None)
        if marking is None or marking == "":
            return self._definition.initial_state
        return marking

    def get_marking(self, subject: Any) -> str:
        """Return the subject's marking, initialising an empty one."""
        marking = getattr(subject, self._marking_attribute, None)
        if marking is None or marking == "":
            marking = self._definition.initial_state
            setattr(subject, self._marking_attribute, marking)
        return marking

    def _guards_pass(self, subject: Any, marking: str, event: Any, engine_transition: Any) -> bool:
        event_data = EventData(
            self._machine.get_state(marking), event, self._machine, subject, args=(), kwargs={}
        )
        event_data.transition = engine_transition
        return all(condition.check(event_data) for condition in engine_transition.conditions)

    def can(self, subject: Any, transition_name: str) -> bool:
        """True if ``transition_name`` is enabled for the subject's marking."""
        marking = self._current_marking(subject)
        if marking not in self._machine.states:
            return False

        event = self._machine.events.get(transition_name)
        if event is None:
            return False

        return any(
            self._guards_pass(subject, marking, event, engine_transition)
            for engine_transition in event.transitions.get(marking, [])
        )

    def enabled_transitions(self, subject: Any) -> list[Transition]:
        """
        Transitions enabled for the subject, in definition order.

        Each transition is checked against its own guard, so two
        transitions sharing a name and a source are listed independently.
        """
        marking = self._current_marking(subject)
        if marking not in self._machine.states:
            return []

        enabled: list[Transition] = []
        seen: dict[str, int] = {}
        for transition in self._definition.transitions_from(marking):
            # The engine keeps one entry per (name, source) in definition order.
            position = seen.get(transition.name, 0)
            seen[transition.name] = position + 1
            event = self._machine.events[transition.name]
            engine_transition = event.transitions[marking][position]
            if self._guards_pass(subject, marking, event, engine_transition):
                enabled.append(transition)
        return enabled

    def apply(self, subject: Any, transition_name: str) -> str:
        """Fire a transition on the subject and return the new marking.

        Raises:
            UndefinedTransitionError: name not declared by the definition.
            NotEnabledTransitionError: marking or guard forbids it.
        """
        if transition_name not in self._machine.events:
            raise UndefinedTransitionError(self._name, transition_name)

        from_marking = self._current_marking(subject)
        if from_marking not in self._machine.states:
            raise NotEnabledTransitionError(self._name, transition_name, from_marking)
        setattr(subject, self._marking_attribute, from_marking)

        try:
            applied = self._machine.events[transition_name].trigger(subject)
        except MachineError as exc:
            raise NotEnabledTransitionError(
                self._name, transition_name, from_marking
            ) from exc

        if not applied:
            logger.info(
                "workflow_transition_blocked",
                extra={
                    "workflow": self._name,
                    "transition": transition_name,
                    "from_state": from_marking,
                },
            )
            raise NotEnabledTransitionError(self._name, transition_name, from_marking)

        to_marking = getattr(subject, self._marking_attribute)
        logger.info(
            "workflow_transition_applied",
            extra={
                "workflow": self._name,
                "transition": transition_name,
                "from_state": from_marking,
                "to_state": to_marking,
            },
        )
        return to_marking
