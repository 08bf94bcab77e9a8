"""
Typed Exception Hierarchy for the workflow admin bridge.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The controller action has to tell apart "the workflow does not exist",
"the transition is not enabled", "another user saved first" and "the
database refused the write". Parsing messages for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        workflow.apply(pull_request, "merge")
    except NotEnabledTransitionError as e:
        log.warning("rejected", extra={"transition": e.transition_name})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from WorkflowAdminError:

    WorkflowAdminError (base)
    |
    +-- WorkflowError
    |   +-- WorkflowLookupError
    |   |   +-- WorkflowNotFoundError
    |   |   +-- AmbiguousWorkflowError
    |   +-- TransitionError
    |   |   +-- UndefinedTransitionError
    |   |   +-- NotEnabledTransitionError
    |   +-- InvalidDefinitionError
    |   +-- WorkflowRegistryUnavailableError
    |
    +-- AdminError
    |   +-- AccessDeniedError
    |   +-- SubjectNotBoundError
    |   +-- RouteNotFoundError
    |   +-- UnknownAccessActionError
    |   +-- ModelManagerError
    |
    +-- ConcurrencyError
    |   +-- LockError
    |
    +-- ConfigurationError
        +-- UndefinedOptionsError
        +-- InvalidOptionsError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Workflow        | WORKFLOW_NOT_FOUND            | No registered workflow supports subject
                | WORKFLOW_AMBIGUOUS            | Several workflows match, no name given
                | TRANSITION_UNDEFINED          | Transition name not in the definition
                | TRANSITION_NOT_ENABLED        | Marking or guard forbids the transition
                | INVALID_DEFINITION            | Definition references unknown states
                | WORKFLOW_REGISTRY_UNAVAILABLE | Controller has no registry to query
----------------|-------------------------------|---------------------------------------
Admin           | ACCESS_DENIED                 | Viewer lacks the role for an action
                | SUBJECT_NOT_BOUND             | get_subject() before set_subject()
                | ROUTE_NOT_FOUND               | URL requested for an unknown route
                | UNKNOWN_ACCESS_ACTION         | Action missing from the access map
                | MODEL_MANAGER_ERROR           | Persistence layer refused the write
----------------|-------------------------------|---------------------------------------
Concurrency     | LOCK_CONFLICT                 | Entity saved by someone else meanwhile
----------------|-------------------------------|---------------------------------------
Configuration   | UNDEFINED_OPTIONS             | Unknown option keys supplied
                | INVALID_OPTIONS               | Option value has the wrong type

===============================================================================
DESIGN DECISIONS
===============================================================================

1. LockError IS NOT A ModelManagerError.
   The controller recovers from a lock conflict locally (flash + redirect)
   but hands every other persistence failure to the generic handler.
   Keeping them in separate branches makes the except-clause order
   irrelevant.

2. HTTP errors are NOT part of this hierarchy.
   404/400 responses are raised as Werkzeug exceptions by the controller;
   the kernel stays framework-agnostic.
"""


class WorkflowAdminError(Exception):
    """
    Base exception for all workflow admin errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "WORKFLOW_ADMIN_ERROR"


# Workflow-related exceptions


class WorkflowError(WorkflowAdminError):
    """Base exception for workflow engine adapter errors."""

    code: str = "WORKFLOW_ERROR"


class WorkflowLookupError(WorkflowError):
    """Base exception for registry lookups that did not yield one workflow."""

    code: str = "WORKFLOW_LOOKUP_ERROR"


class WorkflowNotFoundError(WorkflowLookupError):
    """No registered workflow supports the subject."""

    code: str = "WORKFLOW_NOT_FOUND"

    def __init__(self, subject_class: str, workflow_name: str | None = None):
        self.subject_class = subject_class
        self.workflow_name = workflow_name
        if workflow_name is None:
            message = f'Unable to find a workflow for class "{subject_class}".'
        else:
            message = (
                f'Unable to find a workflow named "{workflow_name}" '
                f'for class "{subject_class}".'
            )
        super().__init__(message)


class AmbiguousWorkflowError(WorkflowLookupError):
    """Several workflows support the subject and no name disambiguates them."""

    code: str = "WORKFLOW_AMBIGUOUS"

    def __init__(self, subject_class: str, workflow_names: list[str]):
        self.subject_class = subject_class
        self.workflow_names = workflow_names
        super().__init__(
            f"Too many workflows ({', '.join(workflow_names)}) match this subject "
            f"({subject_class}); set a different name on each and use the "
            "second (name) argument of this method."
        )


class TransitionError(WorkflowError):
    """Base exception for transitions the engine refused to apply."""

    code: str = "TRANSITION_ERROR"


class UndefinedTransitionError(TransitionError):
    """Transition name is not declared by the workflow definition."""

    code: str = "TRANSITION_UNDEFINED"

    def __init__(self, workflow_name: str, transition_name: str):
        self.workflow_name = workflow_name
        self.transition_name = transition_name
        super().__init__(
            f'Transition "{transition_name}" is not defined for workflow "{workflow_name}".'
        )


class NotEnabledTransitionError(TransitionError):
    """Transition exists but the marking or a guard forbids it."""

    code: str = "TRANSITION_NOT_ENABLED"

    def __init__(self, workflow_name: str, transition_name: str, marking: str | None):
        self.workflow_name = workflow_name
        self.transition_name = transition_name
        self.marking = marking
        super().__init__(
            f'Transition "{transition_name}" is not enabled for workflow '
            f'"{workflow_name}" from marking "{marking}".'
        )


class InvalidDefinitionError(WorkflowError):
    """Workflow definition references states it does not declare."""

    code: str = "INVALID_DEFINITION"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid workflow definition: {reason}")


class WorkflowRegistryUnavailableError(WorkflowError):
    """The controller could not find a workflow registry."""

    code: str = "WORKFLOW_REGISTRY_UNAVAILABLE"

    def __init__(self, service_id: str):
        self.service_id = service_id
        super().__init__(
            f'Could not find the "{service_id}" service. You should either pass '
            "a registry to the controller or register it on the application "
            "extensions."
        )


# Admin-related exceptions


class AdminError(WorkflowAdminError):
    """Base exception for admin view errors."""

    code: str = "ADMIN_ERROR"


class AccessDeniedError(AdminError):
    """Viewer does not hold the role mapped to an admin action."""

    code: str = "ACCESS_DENIED"

    def __init__(self, action: str, role: str):
        self.action = action
        self.role = role
        super().__init__(f"Access Denied to the action {action} and role {role}")


class SubjectNotBoundError(AdminError):
    """Admin subject was requested before one was bound."""

    code: str = "SUBJECT_NOT_BOUND"

    def __init__(self, admin_code: str):
        self.admin_code = admin_code
        super().__init__(f'Admin "{admin_code}" has no subject.')


class RouteNotFoundError(AdminError):
    """URL generation was asked for a route the admin does not declare."""

    code: str = "ROUTE_NOT_FOUND"

    def __init__(self, admin_code: str, route_name: str):
        self.admin_code = admin_code
        self.route_name = route_name
        super().__init__(f'Admin "{admin_code}" has no route "{route_name}".')


class UnknownAccessActionError(AdminError):
    """Access check for an action absent from the access mapping."""

    code: str = "UNKNOWN_ACCESS_ACTION"

    def __init__(self, action: str):
        self.action = action
        super().__init__(f'Action "{action}" could not be found in access mapping.')


class ModelManagerError(AdminError):
    """The persistence layer refused to write the entity."""

    code: str = "MODEL_MANAGER_ERROR"

    def __init__(self, message: str, entity_type: str | None = None):
        self.entity_type = entity_type
        super().__init__(message)


# Concurrency-related exceptions


class ConcurrencyError(WorkflowAdminError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class LockError(ConcurrencyError):
    """Optimistic locking conflict detected while persisting."""

    code: str = "LOCK_CONFLICT"

    def __init__(self, entity_type: str, entity_id: str | None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Configuration-related exceptions


class ConfigurationError(WorkflowAdminError):
    """Base exception for option resolution errors."""

    code: str = "CONFIGURATION_ERROR"


class UndefinedOptionsError(ConfigurationError):
    """Option keys that the extension does not define."""

    code: str = "UNDEFINED_OPTIONS"

    def __init__(self, unknown: list[str], defined: list[str]):
        self.unknown = unknown
        self.defined = defined
        super().__init__(
            f'The option(s) "{", ".join(unknown)}" do not exist. '
            f'Defined options are: "{", ".join(defined)}".'
        )


class InvalidOptionsError(ConfigurationError):
    """Option value does not match any allowed type."""

    code: str = "INVALID_OPTIONS"

    def __init__(self, option: str, expected: str, actual: str):
        self.option = option
        self.expected = expected
        self.actual = actual
        super().__init__(
            f'The option "{option}" is expected to be of type "{expected}", '
            f'but is of type "{actual}".'
        )
