"""
workflow_admin.controller -- HTTP actions of an admin.

Responsibility:
    ``CRUDController`` carries the helpers every admin action uses (flash
    messages, JSON rendering, XHR detection, redirect after update, model
    manager error handling) and minimal list/show/edit actions that
    describe the admin's objects as JSON.  ``WorkflowController`` adds
    the single mutating workflow endpoint, ``workflow_apply_transition_action``.

Architecture position:
    Admin layer > HTTP boundary.  Controllers are built per request by
    ``workflow_admin.app`` and receive the Flask request.

Invariants:
    - A subject is mutated only after the ``applyTransitions`` check and
      the enabled-transition check both pass.
    - AccessDeniedError is never caught here; the application maps it
      to 403.
    - A LockError is reported as one error flash and the request still
      redirects; the in-memory marking is kept.

Failure modes:
    - Unknown object id -> NotFound.
    - No workflow for the object -> NotFound (chained to the lookup error).
    - Missing transition, disabled transition, engine refusal -> BadRequest.
    - No registry passed and none on the application -> WorkflowRegistryUnavailableError.
"""

from __future__ import annotations

from typing import Any

from flask import Request, Response, current_app, flash, jsonify, redirect
from werkzeug.exceptions import BadRequest, NotFound

from workflow_admin.admin import Admin
from workflow_admin.translator import (
    ADMIN_DOMAIN,
    CatalogTranslator,
    StandardTranslator,
    TranslatorInterface,
    escape_html,
)
from workflow_kernel.domain.translation import MessageTranslator
from workflow_kernel.exceptions import (
    LockError,
    ModelManagerError,
    TransitionError,
    WorkflowLookupError,
    WorkflowRegistryUnavailableError,
)
from workflow_kernel.logging_config import LogContext, get_logger
from workflow_kernel.registry import Registry
from workflow_kernel.workflow import Workflow

logger = get_logger("admin.controller")

FLASH_SUCCESS = "success"
FLASH_ERROR = "error"

REGISTRY_EXTENSION_KEY = "workflow.registry"


def request_value(request: Request, name: str, default: Any = None) -> Any:
    """Route parameter ``name``, else query string or form value."""
    view_args = request.view_args or {}
    if name in view_args:
        return view_args[name]
    return request.values.get(name, default)


class CRUDController:
    """Base controller of an admin."""

    def __init__(
        self,
        admin: Admin,
        *,
        message_translator: MessageTranslator | None = None,
        debug: bool | None = None,
    ) -> None:
        self.admin = admin
        self._message_translator = message_translator or CatalogTranslator()
        self._debug = debug

    @property
    def debug(self) -> bool:
        if self._debug is not None:
            return self._debug
        return bool(current_app.debug)

    # -- helpers ----------------------------------------------------------

    def add_flash(self, category: str, message: str) -> None:
        flash(message, category)

    def escape_html(self, value: Any) -> str:
        return escape_html(value)

    def trans(
        self,
        message_id: str,
        parameters: dict[str, str] | None = None,
        domain: str | None = None,
        locale: str | None = None,
    ) -> str:
        return self._message_translator.trans(message_id, parameters, domain, locale)

    def is_xml_http_request(self, request: Request) -> bool:
        if request.headers.get("X-Requested-With") == "XMLHttpRequest":
            return True
        return bool(request.values.get("_xml_http_request"))

    def render_json(
        self,
        data: Any,
        status: int = 200,
        headers: dict[str, str] | None = None,
    ) -> Response:
        response = jsonify(data)
        response.status_code = status
        for name, value in (headers or {}).items():
            response.headers[name] = value
        return response

    def redirect_to(self, obj: Any) -> Response:
        """Redirect to the object's edit page, else its show page, else the list."""
        url = None
        for route in ("edit", "show"):
            if self.admin.has_route(route) and self.admin.has_access(route, obj):
                url = self.admin.generate_object_url(route, obj)
                break

        if url is None:
            url = self.admin.generate_url("list", self.admin.get_filter_parameters())

        return redirect(url)

    def handle_model_manager_exception(self, exc: ModelManagerError) -> None:
        """Re-raise in debug mode; otherwise log and carry on."""
        if self.debug:
            raise exc

        extra: dict[str, Any] = {"admin_code": self.admin.code, "error_code": exc.code}
        if exc.__cause__ is not None:
            extra["previous_exception_message"] = str(exc.__cause__)
        logger.error(str(exc), extra=extra)

    def get_object_or_404(self, request: Request) -> Any:
        id = request_value(request, self.admin.get_id_parameter())
        obj = self.admin.get_object(id)
        if obj is None:
            raise NotFound(f"unable to find the object with id: {id}")
        return obj

    # -- actions ----------------------------------------------------------

    def list_action(self, request: Request) -> Response:
        self.admin.check_access("list")
        return self.render_json(
            {"admin": self.admin.code, "filters": self.admin.get_filter_parameters()}
        )

    def show_action(self, request: Request) -> Response:
        return self._describe(request, "show")

    def edit_action(self, request: Request) -> Response:
        return self._describe(request, "edit")

    def _describe(self, request: Request, action: str) -> Response:
        obj = self.get_object_or_404(request)
        self.admin.check_access(action, obj)
        self.admin.set_subject(obj)
        return self.render_json(
            {
                "objectId": self.admin.get_normalized_identifier(obj),
                "objectName": self.escape_html(self.admin.to_string(obj)),
                "menu": self.admin.build_tab_menu(action).to_dict(),
                "sideMenu": self.admin.build_side_menu(action).to_dict(),
            }
        )


class WorkflowController(CRUDController):
    """Admin controller able to apply workflow transitions."""

    def __init__(
        self,
        admin: Admin,
        *,
        registry: Registry | None = None,
        translator: TranslatorInterface | None = None,
        message_translator: MessageTranslator | None = None,
        debug: bool | None = None,
    ) -> None:
        super().__init__(admin, message_translator=message_translator, debug=debug)
        self._registry = registry
        self._translator = translator or StandardTranslator()

    def workflow_apply_transition_action(self, request: Request) -> Response:
        with LogContext.bind(admin_code=self.admin.code):
            return self._apply_transition(request)

    def _apply_transition(self, request: Request) -> Response:
        existing_object = self.get_object_or_404(request)

        self.admin.set_subject(existing_object)
        self.admin.check_access("applyTransitions", existing_object)

        object_id = self.admin.get_normalized_identifier(existing_object)

        try:
            workflow = self.get_workflow(existing_object)
        except WorkflowLookupError as exc:
            raise NotFound("Not found") from exc

        transition = request_value(request, "transition")
        if transition is None:
            raise BadRequest("missing transition to apply")

        with LogContext.bind(object_id=object_id, workflow=workflow.name, transition=transition):
            if not workflow.can(existing_object, transition):
                logger.info("workflow_transition_rejected")
                raise BadRequest(self._not_applicable_message(existing_object, transition))

            response = self.pre_apply_transition(existing_object, transition)
            if response is not None:
                logger.info("workflow_transition_short_circuited")
                return response

            try:
                workflow.apply(existing_object, transition)
                existing_object = self.admin.update(existing_object)

                if self.is_xml_http_request(request):
                    return self.render_json(
                        {
                            "result": "ok",
                            "objectId": object_id,
                            "objectName": self.escape_html(self.admin.to_string(existing_object)),
                        },
                        200,
                        {},
                    )

                message = self._translator.transition_success_flash_message(
                    self.admin, workflow, existing_object, transition
                )
                self.add_flash(FLASH_SUCCESS, message.trans(self._message_translator))
            except TransitionError as exc:
                raise BadRequest(
                    self._not_applicable_message(existing_object, transition)
                ) from exc
            except ModelManagerError as exc:
                self.handle_model_manager_exception(exc)
                message = self._translator.transition_error_flash_message(
                    self.admin, workflow, existing_object, transition
                )
                self.add_flash(FLASH_ERROR, message.trans(self._message_translator))
            except LockError:
                self.add_flash(
                    FLASH_ERROR,
                    self.trans(
                        "flash_lock_error",
                        {
                            "%name%": self.escape_html(self.admin.to_string(existing_object)),
                            "%link_start%": '<a href="'
                            + self.admin.generate_object_url("edit", existing_object)
                            + '">',
                            "%link_end%": "</a>",
                        },
                        ADMIN_DOMAIN,
                    ),
                )

            return self.redirect_to(existing_object)

    def _not_applicable_message(self, obj: Any, transition: str) -> str:
        return (
            f"transition {transition} could not be applied to object "
            f"{self.admin.to_string(obj)}"
        )

    def get_workflow(self, obj: Any) -> Workflow:
        """
        Workflow governing ``obj``.

        Raises:
            WorkflowRegistryUnavailableError: no registry was given and the
                application does not provide one.
            WorkflowLookupError: no single workflow supports ``obj``.
        """
        registry = self._registry
        if registry is None:
            registry = current_app.extensions.get(REGISTRY_EXTENSION_KEY)
            if registry is None:
                raise WorkflowRegistryUnavailableError(REGISTRY_EXTENSION_KEY)

        return registry.get(obj)

    def pre_apply_transition(self, obj: Any, transition: str) -> Response | None:
        """Hook run before applying ``transition``; a response short-circuits it."""
        return None
