"""
Pytest fixtures for the workflow admin test suite.

Provides:
- Structured log capture
- An in-memory SQLite database holding the PullRequest table
- A workflow registry, a pull request admin and the Flask application
"""

import json
import logging
from io import StringIO

import pytest

from workflow_admin.admin import Admin
from workflow_admin.app import AdminPool, create_app
from workflow_admin.extension import WorkflowExtension
from workflow_admin.labels import NoopLabelTranslatorStrategy
from workflow_admin.model_manager import SqlAlchemyModelManager
from workflow_admin.security import RoleSecurityHandler
from workflow_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from workflow_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from workflow_kernel.registry import Registry
from workflow_kernel.workflow import Workflow

from tests.pull_request import (
    PullRequest,
    create_support_strategy,
    create_workflow_definition,
)

ADMIN_CODE = "admin.pull_request"
EDITOR_ROLES = ["ROLE_ADMIN_PULL_REQUEST_EDIT", "ROLE_ADMIN_PULL_REQUEST_VIEW"]


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture workflow_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, workflow):
            workflow.apply(subject, "merge")
            logs = captured_logs()
            assert any(r["message"] == "workflow_transition_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("workflow_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    engine = init_engine_from_url("sqlite://")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine):
    session = get_session()
    yield session
    session.close()


@pytest.fixture
def pull_request(session) -> PullRequest:
    """A persisted pull request awaiting review start."""
    pr = PullRequest(id=42, title="Add workflow menu", marking="opened")
    session.add(pr)
    session.commit()
    return pr


# =============================================================================
# Workflow and admin fixtures
# =============================================================================


@pytest.fixture
def workflow() -> Workflow:
    return Workflow(create_workflow_definition(), name="pull_request")


@pytest.fixture
def registry(workflow) -> Registry:
    registry = Registry()
    registry.add_workflow(workflow, create_support_strategy())
    return registry


@pytest.fixture
def viewer_roles() -> list[str]:
    """Roles of the current viewer; tests mutate the list in place."""
    return list(EDITOR_ROLES)


@pytest.fixture
def admin(session, registry, viewer_roles) -> Admin:
    admin = Admin(
        ADMIN_CODE,
        PullRequest,
        SqlAlchemyModelManager(lambda: session),
        security_handler=RoleSecurityHandler(lambda: viewer_roles),
        label_translator_strategy=NoopLabelTranslatorStrategy(),
        translation_domain="PullRequestAdmin",
    )
    admin.add_extension(WorkflowExtension(registry, {"no_transition_display": True}))
    return admin


@pytest.fixture
def app(admin, registry, engine):
    app = create_app(
        AdminPool([admin]),
        registry,
        get_session_factory(),
        config={"SECRET_KEY": "test-secret", "TESTING": True},
    )
    return app
