"""
workflow_admin.admin -- Admin view of one model class.

Responsibility:
    Everything the workflow extension and controller need from an admin
    panel: object lookup and update through a model manager, role-based
    access checks through a security handler, route declaration and URL
    generation, display strings, translation domain and label strategy,
    the bound subject and the tab menu built by the admin's extensions.

Architecture position:
    Admin layer.  Composes routing, security, labels and the model
    manager; extensions plug in through ``add_extension``.

Invariants:
    - The access map is the admin's CRUD map merged with every
      extension's mapping; later extensions override earlier ones.
    - Routes are built once, on first use, after every extension has had
      the chance to add its own.
    - check_access() raises; is_granted_action() returns an
      AccessDecision and never raises AccessDeniedError.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Protocol

from workflow_admin.labels import LabelTranslatorStrategy, NativeLabelTranslatorStrategy
from workflow_admin.routing import RouteCollection
from workflow_admin.security import AccessDecision, RoleSecurityHandler
from workflow_kernel.domain.menu import MenuItem
from workflow_kernel.exceptions import (
    AccessDeniedError,
    SubjectNotBoundError,
    UnknownAccessActionError,
)
from workflow_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from workflow_admin.extension import AdminExtension

logger = get_logger("admin")

DEFAULT_CONTROLLER = "workflow_admin.controller.WorkflowController"

DEFAULT_ACCESS_MAPPING: dict[str, str | list[str]] = {
    "list": "LIST",
    "show": "VIEW",
    "edit": "EDIT",
    "create": "CREATE",
    "delete": "DELETE",
}


class ModelManager(Protocol):
    def find(self, model_class: type, id: Any) -> Any | None: ...

    def update(self, obj: Any) -> Any: ...

    def get_normalized_identifier(self, obj: Any) -> str | None: ...

    def get_url_safe_identifier(self, obj: Any) -> str | None: ...


def _slug(value: str) -> str:
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"-\1", value).lower()


class Admin:
    """Admin view bound to a model class."""

    def __init__(
        self,
        code: str,
        model_class: type,
        model_manager: ModelManager,
        *,
        base_route_name: str | None = None,
        base_route_pattern: str | None = None,
        controller: str = DEFAULT_CONTROLLER,
        security_handler: RoleSecurityHandler | None = None,
        label_translator_strategy: LabelTranslatorStrategy | None = None,
        translation_domain: str = "messages",
        id_parameter: str = "id",
        filter_parameters: dict[str, Any] | None = None,
    ) -> None:
        self._code = code
        self._model_class = model_class
        self._model_manager = model_manager
        self._base_route_name = base_route_name or (
            "admin_" + _slug(model_class.__name__).replace("-", "_")
        )
        self._base_route_pattern = base_route_pattern or "/" + _slug(model_class.__name__)
        self._controller = controller
        self._security_handler = security_handler or RoleSecurityHandler()
        self._label_translator_strategy = (
            label_translator_strategy or NativeLabelTranslatorStrategy()
        )
        self._translation_domain = translation_domain
        self._id_parameter = id_parameter
        self._filter_parameters = dict(filter_parameters or {})
        self._extensions: list[AdminExtension] = []
        self._routes: RouteCollection | None = None
        self._subject: Any = None

    def __repr__(self) -> str:
        return f"Admin(code={self._code!r}, model_class={self._model_class.__name__})"

    @property
    def code(self) -> str:
        return self._code

    @property
    def model_class(self) -> type:
        return self._model_class

    @property
    def model_manager(self) -> ModelManager:
        return self._model_manager

    @property
    def security_handler(self) -> RoleSecurityHandler:
        return self._security_handler

    # -- extensions -------------------------------------------------------

    def add_extension(self, extension: "AdminExtension") -> None:
        self._extensions.append(extension)
        self._routes = None

    def get_extensions(self) -> list["AdminExtension"]:
        return list(self._extensions)

    # -- objects ----------------------------------------------------------

    def get_object(self, id: Any) -> Any | None:
        return self._model_manager.find(self._model_class, id)

    def update(self, obj: Any) -> Any:
        for extension in self._extensions:
            extension.pre_update(self, obj)
        obj = self._model_manager.update(obj)
        for extension in self._extensions:
            extension.post_update(self, obj)
        return obj

    def get_new_instance(self) -> Any:
        obj = self._model_class()
        for extension in self._extensions:
            extension.alter_new_instance(self, obj)
        return obj

    def get_normalized_identifier(self, obj: Any) -> str | None:
        return self._model_manager.get_normalized_identifier(obj)

    def get_url_safe_identifier(self, obj: Any) -> str | None:
        return self._model_manager.get_url_safe_identifier(obj)

    def to_string(self, obj: Any) -> str:
        if obj is None:
            return ""
        if type(obj).__str__ is not object.__str__:
            return str(obj)
        return f"{type(obj).__qualname__}:{id(obj):x}"

    # -- subject ----------------------------------------------------------

    def set_subject(self, subject: Any) -> None:
        self._subject = subject

    def has_subject(self) -> bool:
        return self._subject is not None

    def get_subject(self) -> Any:
        if self._subject is None:
            raise SubjectNotBoundError(self._code)
        return self._subject

    # -- security ---------------------------------------------------------

    def get_access_mapping(self) -> dict[str, str | list[str]]:
        return dict(DEFAULT_ACCESS_MAPPING)

    def get_access(self) -> dict[str, str | list[str]]:
        access = self.get_access_mapping()
        for extension in self._extensions:
            access.update(extension.get_access_mapping(self))
        return access

    def is_granted(self, name: str, obj: Any = None) -> bool:
        return self._security_handler.is_granted(self, name, obj if obj is not None else self)

    def _required_roles(self, action: str) -> list[str]:
        access = self.get_access()
        if action not in access:
            raise UnknownAccessActionError(action)
        roles = access[action]
        return [roles] if isinstance(roles, str) else list(roles)

    def check_access(self, action: str, obj: Any = None) -> None:
        """
        Raise unless the viewer holds every role mapped to ``action``.

        Raises:
            UnknownAccessActionError: ``action`` is not in the access map.
            AccessDeniedError: a mapped role is not granted.
        """
        for role in self._required_roles(action):
            if not self.is_granted(role, obj):
                logger.info(
                    "admin_access_denied",
                    extra={"admin_code": self._code, "action": action, "role": role},
                )
                raise AccessDeniedError(action, role)

    def has_access(self, action: str, obj: Any = None) -> bool:
        access = self.get_access()
        if action not in access:
            return False
        return self.is_granted_action(action, obj).granted

    def is_granted_action(self, action: str, obj: Any = None) -> AccessDecision:
        """Access check for ``action`` as a GRANTED/DENIED decision."""
        try:
            self.check_access(action, obj)
        except AccessDeniedError:
            return AccessDecision.DENIED
        return AccessDecision.GRANTED

    # -- routing ----------------------------------------------------------

    def get_id_parameter(self) -> str:
        return self._id_parameter

    def get_router_id_parameter(self) -> str:
        return f"<{self._id_parameter}>"

    def get_base_route_name(self) -> str:
        return self._base_route_name

    def get_base_route_pattern(self) -> str:
        return self._base_route_pattern

    def configure_routes(self, collection: RouteCollection) -> None:
        collection.add("list", "list")
        collection.add("show", f"{self.get_router_id_parameter()}/show", methods=("GET",))
        collection.add("edit", f"{self.get_router_id_parameter()}/edit")

    def get_routes(self) -> RouteCollection:
        if self._routes is None:
            collection = RouteCollection(
                self._code,
                self._base_route_name,
                self._base_route_pattern,
                self._controller,
            )
            self.configure_routes(collection)
            for extension in self._extensions:
                extension.configure_routes(self, collection)
            self._routes = collection
        return self._routes

    def has_route(self, name: str) -> bool:
        return self.get_routes().has(name)

    def generate_url(self, name: str, parameters: dict[str, Any] | None = None) -> str:
        return self.get_routes().build(name, parameters)

    def generate_object_url(
        self,
        name: str,
        obj: Any,
        parameters: dict[str, Any] | None = None,
    ) -> str:
        parameters = dict(parameters or {})
        parameters[self._id_parameter] = self.get_url_safe_identifier(obj)
        return self.generate_url(name, parameters)

    def get_filter_parameters(self) -> dict[str, Any]:
        return dict(self._filter_parameters)

    # -- presentation -----------------------------------------------------

    def get_translation_domain(self) -> str:
        return self._translation_domain

    def get_label_translator_strategy(self) -> LabelTranslatorStrategy:
        return self._label_translator_strategy

    def build_tab_menu(self, action: str, child_admin: "Admin | None" = None) -> MenuItem:
        menu = MenuItem("root")
        for extension in self._extensions:
            extension.configure_tab_menu(self, menu, action, child_admin)
        return menu

    def build_side_menu(self, action: str, child_admin: "Admin | None" = None) -> MenuItem:
        menu = MenuItem("root")
        for extension in self._extensions:
            extension.configure_side_menu(self, menu, action, child_admin)
        return menu
