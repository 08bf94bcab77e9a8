"""
workflow_kernel.registry -- Lookup of the workflow governing a subject.

Workflows are registered at bootstrap together with a support strategy;
lookups are read-only afterwards.
"""

from __future__ import annotations

from typing import Any, Protocol

from workflow_kernel.exceptions import AmbiguousWorkflowError, WorkflowNotFoundError
from workflow_kernel.logging_config import get_logger
from workflow_kernel.workflow import Workflow

logger = get_logger("registry")


class SupportStrategy(Protocol):
    def supports(self, workflow: Workflow, subject: Any) -> bool: ...


class Registry:
    """Ordered collection of (workflow, support strategy) pairs."""

    def __init__(self) -> None:
        self._workflows: list[tuple[Workflow, SupportStrategy]] = []

    def add_workflow(self, workflow: Workflow, support_strategy: SupportStrategy) -> None:
        self._workflows.append((workflow, support_strategy))
        logger.info("workflow_registered", extra={"workflow": workflow.name})

    def _matching(self, subject: Any, workflow_name: str | None) -> list[Workflow]:
        return [
            workflow
            for workflow, strategy in self._workflows
            if (workflow_name is None or workflow.name == workflow_name)
            and strategy.supports(workflow, subject)
        ]

    def has(self, subject: Any, workflow_name: str | None = None) -> bool:
        return bool(self._matching(subject, workflow_name))

    def get(self, subject: Any, workflow_name: str | None = None) -> Workflow:
        """Return the single workflow supporting the subject.

        Raises:
            WorkflowNotFoundError: nothing matches.
            AmbiguousWorkflowError: more than one matches.
        """
        matched = self._matching(subject, workflow_name)
        subject_class = type(subject).__qualname__

        if not matched:
            logger.debug(
                "workflow_lookup_miss",
                extra={"subject_class": subject_class, "workflow_name": workflow_name},
            )
            raise WorkflowNotFoundError(subject_class, workflow_name)
        if len(matched) > 1:
            raise AmbiguousWorkflowError(subject_class, [w.name for w in matched])
        return matched[0]

    def all(self, subject: Any) -> list[Workflow]:
        return self._matching(subject, None)
