"""
workflow_admin.extension -- Admin extensions and the workflow menu.

Responsibility:
    ``AdminExtension`` declares the hooks an admin calls on its
    extensions.  ``WorkflowExtension`` implements them for workflows: it
    registers the apply-transition route, maps the two transition
    capabilities to roles, initialises the marking of new objects and
    renders the enabled transitions of the admin's subject as a tab menu.

Architecture position:
    Admin layer.  Reads the workflow registry; never writes to a subject
    except to initialise the marking of a new, unsaved instance.

Invariants:
    - Menu rendering is best effort: a child admin, an action outside
      ``render_actions``, an unbound subject, a denied ``viewTransitions``
      check or a missing workflow all leave the menu untouched.
    - Transition items keep the engine's order.
    - A transition item has a uri only if ``applyTransitions`` is granted.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Sequence

from workflow_config.resolver import resolve_options
from workflow_config.schema import ExtensionOptions
from workflow_kernel.domain.menu import MenuItem
from workflow_kernel.domain.workflow import Transition
from workflow_kernel.exceptions import WorkflowLookupError
from workflow_kernel.logging_config import get_logger
from workflow_kernel.registry import Registry
from workflow_kernel.workflow import Workflow

if TYPE_CHECKING:
    from workflow_admin.admin import Admin
    from workflow_admin.routing import RouteCollection

logger = get_logger("admin.extension")

APPLY_TRANSITION_ROUTE = "workflow_apply_transition"


class AdminExtension:
    """Base class for admin extensions; every hook is a no-op."""

    def configure_routes(self, admin: "Admin", collection: "RouteCollection") -> None:
        pass

    def alter_new_instance(self, admin: "Admin", obj: Any) -> None:
        pass

    def configure_tab_menu(
        self,
        admin: "Admin",
        menu: MenuItem,
        action: str,
        child_admin: "Admin | None" = None,
    ) -> None:
        pass

    def configure_side_menu(
        self,
        admin: "Admin",
        menu: MenuItem,
        action: str,
        child_admin: "Admin | None" = None,
    ) -> None:
        pass

    def get_access_mapping(self, admin: "Admin") -> dict[str, str | list[str]]:
        return {}

    def pre_update(self, admin: "Admin", obj: Any) -> None:
        pass

    def post_update(self, admin: "Admin", obj: Any) -> None:
        pass


class WorkflowExtension(AdminExtension):
    """Exposes the workflow of an admin's subject in the admin UI."""

    def __init__(
        self,
        registry: Registry,
        options: Mapping[str, Any] | ExtensionOptions | None = None,
    ) -> None:
        self._registry = registry
        if isinstance(options, ExtensionOptions):
            self._options = options
        else:
            self._options = resolve_options(options)

    @property
    def options(self) -> ExtensionOptions:
        return self._options

    def configure_routes(self, admin: "Admin", collection: "RouteCollection") -> None:
        collection.add(
            APPLY_TRANSITION_ROUTE,
            f"{admin.get_router_id_parameter()}/workflow/transition/<transition>/apply",
        )

    def alter_new_instance(self, admin: "Admin", obj: Any) -> None:
        try:
            workflow = self.get_workflow(obj, self._options.workflow_name)
        except WorkflowLookupError:
            return

        workflow.get_marking(obj)

    def configure_side_menu(
        self,
        admin: "Admin",
        menu: MenuItem,
        action: str,
        child_admin: "Admin | None" = None,
    ) -> None:
        self.configure_tab_menu(admin, menu, action, child_admin)

    def configure_tab_menu(
        self,
        admin: "Admin",
        menu: MenuItem,
        action: str,
        child_admin: "Admin | None" = None,
    ) -> None:
        if child_admin is not None or action not in self._options.render_actions:
            return

        if not admin.has_subject():
            return
        subject = admin.get_subject()
        if not self.is_granted_view(admin, subject):
            logger.debug(
                "workflow_menu_view_denied",
                extra={"admin_code": admin.code, "action": action},
            )
            return

        try:
            workflow = self.get_workflow(subject, self._options.workflow_name)
        except WorkflowLookupError:
            logger.debug(
                "workflow_menu_no_workflow",
                extra={"admin_code": admin.code, "subject_class": type(subject).__name__},
            )
            return

        transitions = workflow.enabled_transitions(subject)

        if not transitions:
            self.no_transitions(menu, admin)
        else:
            self.transitions_dropdown(menu, admin, transitions, subject)

    def get_access_mapping(self, admin: "Admin") -> dict[str, str | list[str]]:
        return {
            "viewTransitions": self._options.view_transitions_role,
            "applyTransitions": self._options.apply_transitions_role,
        }

    def get_workflow(self, subject: Any, workflow_name: str | None = None) -> Workflow:
        return self._registry.get(subject, workflow_name)

    def no_transitions(self, menu: MenuItem, admin: "Admin") -> None:
        if not self._options.no_transition_display:
            return
        menu.add_child(
            self._options.no_transition_label,
            uri="#",
            attributes={"icon": self._options.no_transition_icon},
            extras={"translation_domain": admin.get_translation_domain()},
        )

    def transitions_dropdown(
        self,
        menu: MenuItem,
        admin: "Admin",
        transitions: Sequence[Transition],
        subject: Any,
    ) -> None:
        workflow_menu = menu.add_child(
            self._options.dropdown_transitions_label,
            attributes={
                "dropdown": True,
                "icon": self._options.dropdown_transitions_icon,
            },
            extras={"translation_domain": admin.get_translation_domain()},
        )

        for transition in transitions:
            self.transitions_item(workflow_menu, admin, transition, subject)

    def transitions_item(
        self,
        menu: MenuItem,
        admin: "Admin",
        transition: Transition,
        subject: Any,
    ) -> None:
        uri = None
        if self.is_granted_apply(admin, subject):
            uri = self.generate_transition_uri(admin, transition, subject)

        attributes: dict[str, Any] = {}
        icon = self.get_transition_icon(transition)
        if icon:
            attributes["icon"] = icon

        menu.add_child(
            admin.get_label_translator_strategy().get_label(
                transition.name, "workflow", "transition"
            ),
            uri=uri,
            attributes=attributes,
            extras={"translation_domain": admin.get_translation_domain()},
        )

    def get_transition_icon(self, transition: Transition) -> str | None:
        return self._options.icon_for(transition.name)

    def generate_transition_uri(
        self, admin: "Admin", transition: Transition, subject: Any
    ) -> str:
        return admin.generate_object_url(
            APPLY_TRANSITION_ROUTE, subject, {"transition": transition.name}
        )

    def is_granted_view(self, admin: "Admin", subject: Any) -> bool:
        return admin.is_granted_action("viewTransitions", subject).granted

    def is_granted_apply(self, admin: "Admin", subject: Any) -> bool:
        return admin.is_granted_action("applyTransitions", subject).granted
