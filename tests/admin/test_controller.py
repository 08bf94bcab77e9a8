"""Tests for the apply-transition controller action."""

from unittest.mock import Mock, patch

import pytest
from flask import Response, get_flashed_messages, request
from sqlalchemy import text
from werkzeug.exceptions import BadRequest, NotFound

from workflow_admin.admin import Admin
from workflow_admin.controller import FLASH_ERROR, FLASH_SUCCESS, WorkflowController
from workflow_admin.extension import WorkflowExtension
from workflow_admin.model_manager import SqlAlchemyModelManager
from workflow_admin.security import RoleSecurityHandler
from workflow_admin.translator import CatalogTranslator, StandardTranslator, TranslatorInterface
from workflow_kernel.domain.translation import TranslatableMessage
from workflow_kernel.domain.workflow import Definition, Guard, Transition
from workflow_kernel.exceptions import (
    AccessDeniedError,
    ModelManagerError,
    NotEnabledTransitionError,
    WorkflowNotFoundError,
    WorkflowRegistryUnavailableError,
)
from workflow_kernel.registry import Registry
from workflow_kernel.workflow import Workflow

from tests.pull_request import PullRequest, create_support_strategy

APPLY_URL = "/pull-request/{id}/workflow/transition/{transition}/apply"


def _apply(app, controller, id=42, transition="start_review", headers=None):
    """Run the action inside a request context; return (response, flashes)."""
    with app.test_request_context(APPLY_URL.format(id=id, transition=transition), headers=headers):
        response = controller.workflow_apply_transition_action(request)
        flashes = get_flashed_messages(with_categories=True)
    return response, flashes


@pytest.fixture
def controller(admin, registry) -> WorkflowController:
    return WorkflowController(admin, registry=registry, debug=False)


class TestResolution:
    """Failures before anything is applied."""

    def test_object_not_found(self, app, controller, pull_request):
        with pytest.raises(NotFound) as exc_info:
            _apply(app, controller, id=1)

        assert exc_info.value.description == "unable to find the object with id: 1"

    def test_access_denied_propagates(self, app, controller, pull_request, viewer_roles):
        viewer_roles[:] = ["ROLE_ADMIN_PULL_REQUEST_VIEW"]

        with pytest.raises(AccessDeniedError):
            _apply(app, controller)

        assert pull_request.marking == "opened"

    def test_workflow_not_found(self, app, admin, pull_request):
        controller = WorkflowController(admin, registry=Registry(), debug=False)

        with pytest.raises(NotFound) as exc_info:
            _apply(app, controller)

        assert exc_info.value.description == "Not found"
        assert isinstance(exc_info.value.__cause__, WorkflowNotFoundError)

    def test_missing_transition(self, app, controller, pull_request):
        with app.test_request_context("/pull-request/42/edit"):
            with pytest.raises(BadRequest) as exc_info:
                controller.workflow_apply_transition_action(request)

        assert exc_info.value.description == "missing transition to apply"

    def test_transition_read_from_query_string(self, app, controller, pull_request):
        with app.test_request_context("/pull-request/42/edit?transition=start_review"):
            response = controller.workflow_apply_transition_action(request)

        assert response.status_code == 302
        assert pull_request.marking == "pending_review"

    def test_transition_not_enabled(self, app, controller, pull_request):
        with pytest.raises(BadRequest) as exc_info:
            _apply(app, controller, transition="merge")

        assert exc_info.value.description == "transition merge could not be applied to object pr42"
        assert pull_request.marking == "opened"

    def test_undefined_transition(self, app, controller, pull_request):
        with pytest.raises(BadRequest) as exc_info:
            _apply(app, controller, transition="reopen")

        assert exc_info.value.description == "transition reopen could not be applied to object pr42"


class TestApply:
    def test_success_redirects_with_one_flash(self, app, controller, session, pull_request):
        response, flashes = _apply(app, controller)

        assert response.status_code == 302
        assert response.headers["Location"] == "/pull-request/42/edit"
        assert flashes == [(FLASH_SUCCESS, 'Item "pr42" has been successfully updated.')]
        assert pull_request.marking == "pending_review"
        marking = session.execute(text("SELECT marking FROM pull_requests WHERE id = 42")).scalar()
        assert marking == "pending_review"

    def test_xhr_returns_json_without_flash(self, app, controller, pull_request):
        response, flashes = _apply(
            app, controller, headers={"X-Requested-With": "XMLHttpRequest"}
        )

        assert response.status_code == 200
        assert response.get_json() == {"result": "ok", "objectId": "42", "objectName": "pr42"}
        assert flashes == []
        assert pull_request.marking == "pending_review"

    def test_xhr_parameter(self, app, controller, pull_request):
        with app.test_request_context(
            APPLY_URL.format(id=42, transition="start_review") + "?_xml_http_request=1"
        ):
            response = controller.workflow_apply_transition_action(request)

        assert response.get_json()["result"] == "ok"

    def test_pre_apply_hook_short_circuits(self, app, admin, registry, session, pull_request):
        pull_request.marking = "pending_review"
        session.commit()
        confirmation = Response("Please confirm the merge")

        class ConfirmingController(WorkflowController):
            def pre_apply_transition(self, obj, transition):
                if transition == "merge":
                    return confirmation
                return None

        controller = ConfirmingController(admin, registry=registry, debug=False)

        with patch.object(admin, "update") as update:
            response, flashes = _apply(app, controller, transition="merge")

        assert response is confirmation
        update.assert_not_called()
        assert flashes == []
        assert pull_request.marking == "pending_review"

    def test_engine_refusal_after_check(self, app, admin, pull_request):
        outcomes = iter([True, False])
        definition = Definition(
            states=("opened", "pending_review"),
            transitions=(
                Transition(
                    "start_review",
                    "opened",
                    "pending_review",
                    guard=Guard("flaky", lambda subject: next(outcomes)),
                ),
            ),
            initial_state="opened",
        )
        registry = Registry()
        registry.add_workflow(Workflow(definition, name="flaky"), create_support_strategy())
        controller = WorkflowController(admin, registry=registry, debug=False)

        with pytest.raises(BadRequest) as exc_info:
            _apply(app, controller)

        assert exc_info.value.description == (
            "transition start_review could not be applied to object pr42"
        )
        assert isinstance(exc_info.value.__cause__, NotEnabledTransitionError)
        assert pull_request.marking == "opened"

    def test_apply_logs_with_request_context(self, app, controller, pull_request, captured_logs):
        _apply(app, controller)

        applied = [r for r in captured_logs() if r["message"] == "workflow_transition_applied"]
        assert len(applied) == 1
        assert applied[0]["admin_code"] == "admin.pull_request"
        assert applied[0]["object_id"] == "42"
        assert applied[0]["transition"] == "start_review"


class TestPersistenceFailures:
    def test_lock_error_flashes_edit_link_and_redirects(self, app, controller, session, pull_request):
        session.execute(text("UPDATE pull_requests SET version = 9 WHERE id = 42"))

        response, flashes = _apply(app, controller)

        assert response.status_code == 302
        assert response.headers["Location"] == "/pull-request/42/edit"
        assert len(flashes) == 1
        category, message = flashes[0]
        assert category == FLASH_ERROR
        assert '<a href="/pull-request/42/edit">click here</a>' in message
        assert 'item "pr42"' in message
        assert pull_request.marking == "pending_review"

    def test_model_manager_error_flashes_error(self, app, controller, pull_request, captured_logs):
        pull_request.title = None

        response, flashes = _apply(app, controller)

        assert response.status_code == 302
        assert flashes == [
            (FLASH_ERROR, 'An error has occurred during update of item "pr42".')
        ]
        errors = [r for r in captured_logs() if r.get("error_code") == "MODEL_MANAGER_ERROR"]
        assert len(errors) == 1
        assert "previous_exception_message" in errors[0]

    def test_model_manager_error_raised_in_debug(self, app, admin, registry, pull_request):
        pull_request.title = None
        controller = WorkflowController(admin, registry=registry, debug=True)

        with pytest.raises(ModelManagerError):
            _apply(app, controller)


class TestRedirect:
    def _admin(self, session, registry, roles) -> Admin:
        admin = Admin(
            "admin.pull_request",
            PullRequest,
            SqlAlchemyModelManager(lambda: session),
            security_handler=RoleSecurityHandler(lambda: roles),
            filter_parameters={"sort": "title"},
        )
        admin.add_extension(WorkflowExtension(registry, {"apply_transitions_role": "WORKFLOW"}))
        return admin

    def test_show_when_edit_denied(self, app, session, registry, pull_request):
        admin = self._admin(
            session, registry, ["ROLE_ADMIN_PULL_REQUEST_WORKFLOW", "ROLE_ADMIN_PULL_REQUEST_VIEW"]
        )

        response, _ = _apply(app, WorkflowController(admin, registry=registry, debug=False))

        assert response.headers["Location"] == "/pull-request/42/show"

    def test_list_when_edit_and_show_denied(self, app, session, registry, pull_request):
        admin = self._admin(session, registry, ["ROLE_ADMIN_PULL_REQUEST_WORKFLOW"])

        response, _ = _apply(app, WorkflowController(admin, registry=registry, debug=False))

        assert response.headers["Location"] == "/pull-request/list?sort=title"


class TestRegistryLookup:
    def test_falls_back_to_application_registry(self, app, admin, pull_request):
        controller = WorkflowController(admin, debug=False)

        response, _ = _apply(app, controller)

        assert response.status_code == 302
        assert pull_request.marking == "pending_review"

    def test_missing_application_registry(self, app, admin, pull_request):
        app.extensions.pop("workflow.registry")
        controller = WorkflowController(admin, debug=False)

        with pytest.raises(WorkflowRegistryUnavailableError, match="workflow.registry"):
            _apply(app, controller)


class TestTranslators:
    def test_custom_translator_wording(self, app, admin, registry, pull_request):
        class TransitionTranslator(TranslatorInterface):
            def transition_success_flash_message(self, admin, workflow, obj, transition):
                return TranslatableMessage(
                    "%transition% applied to %name% (%workflow%)",
                    {"%transition%": transition, "%name%": admin.to_string(obj), "%workflow%": workflow.name},
                )

            def transition_error_flash_message(self, admin, workflow, obj, transition):
                return TranslatableMessage("failed")

        controller = WorkflowController(
            admin, registry=registry, translator=TransitionTranslator(), debug=False
        )

        _, flashes = _apply(app, controller)

        assert flashes == [(FLASH_SUCCESS, "start_review applied to pr42 (pull_request)")]

    def test_standard_translator_escapes_display_string(self):
        admin = Mock(spec=Admin)
        admin.to_string.return_value = '<b>"x"</b>'
        translator = StandardTranslator()

        success = translator.transition_success_flash_message(admin, Mock(), object(), "merge")
        error = translator.transition_error_flash_message(admin, Mock(), object(), "merge")

        assert success.message == "flash_edit_success"
        assert error.message == "flash_edit_error"
        assert success.parameters["%name%"] == "&lt;b&gt;&#34;x&#34;&lt;/b&gt;"
        assert success.domain == "WorkflowAdmin"

    def test_catalog_messages_added_at_runtime(self):
        translator = CatalogTranslator(default_domain="PullRequestAdmin")
        translator.add_messages("PullRequestAdmin", {"merge_done": "Merged %name%"})

        assert translator.trans("merge_done", {"%name%": "pr42"}) == "Merged pr42"
        assert translator.trans("unknown_key") == "unknown_key"
        assert (
            translator.trans("flash_edit_success", {"%name%": "pr42"}, "WorkflowAdmin")
            == 'Item "pr42" has been successfully updated.'
        )
