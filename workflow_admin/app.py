"""
workflow_admin.app -- Flask application wiring.

Responsibility:
    Registers every route of every pooled admin on a Flask application,
    owns the request-scoped SQLAlchemy session, stores the workflow
    registry under ``app.extensions["workflow.registry"]`` and maps
    ``AccessDeniedError`` to HTTP 403.

Architecture position:
    Outermost layer.  Imports controllers by the dotted path recorded in
    each route's ``_controller`` default.

Invariants:
    - Each request works on its own shallow copy of the admin, so the
      bound subject never leaks between requests.
    - The request session is committed after the response is built only
      if it is still active; otherwise, and on teardown, it is rolled back.
"""

from __future__ import annotations

import copy
import uuid
from typing import Any, Callable, Iterable, Iterator

from flask import Flask, Response, current_app, g, jsonify, request, session
from sqlalchemy.orm import Session, sessionmaker
from werkzeug.utils import import_string

from workflow_admin.admin import Admin
from workflow_admin.controller import REGISTRY_EXTENSION_KEY, WorkflowController
from workflow_admin.routing import Route
from workflow_admin.translator import CatalogTranslator, TranslatorInterface
from workflow_kernel.domain.translation import MessageTranslator
from workflow_kernel.exceptions import AccessDeniedError
from workflow_kernel.logging_config import LogContext, get_logger
from workflow_kernel.registry import Registry

logger = get_logger("admin.app")

SESSION_FACTORY_EXTENSION_KEY = "workflow.session_factory"
POOL_EXTENSION_KEY = "workflow.admin_pool"

RolesLoader = Callable[[], Iterable[str]]


class AdminPool:
    """Admins of the application, keyed by code."""

    def __init__(self, admins: Iterable[Admin] = ()) -> None:
        self._admins: dict[str, Admin] = {}
        for admin in admins:
            self.add(admin)

    def add(self, admin: Admin) -> None:
        self._admins[admin.code] = admin

    def has(self, code: str) -> bool:
        return code in self._admins

    def get(self, code: str) -> Admin:
        return self._admins[code]

    def get_admin_by_class(self, model_class: type) -> Admin | None:
        for admin in self._admins.values():
            if admin.model_class is model_class:
                return admin
        return None

    def all(self) -> list[Admin]:
        return list(self._admins.values())

    def __iter__(self) -> Iterator[Admin]:
        return iter(self.all())


def request_session() -> Session:
    """The SQLAlchemy session of the current request, created on first use."""
    if "db_session" not in g:
        factory: sessionmaker[Session] = current_app.extensions[SESSION_FACTORY_EXTENSION_KEY]
        g.db_session = factory()
    return g.db_session


def session_roles() -> tuple[str, ...]:
    """Roles stored in the Flask session under ``roles``."""
    return tuple(session.get("roles", ()))


def current_roles() -> tuple[str, ...]:
    """Roles of the current viewer; a role provider for ``RoleSecurityHandler``."""
    return tuple(g.get("roles", ()))


def _commit_request_session(response: Response) -> Response:
    db_session: Session | None = g.get("db_session")
    if db_session is not None and db_session.is_active:
        try:
            db_session.commit()
        except Exception:
            db_session.rollback()
            logger.error("request_session_commit_failed", exc_info=True)
            raise
    return response


def _close_request_session(exc: BaseException | None) -> None:
    db_session: Session | None = g.pop("db_session", None)
    if db_session is None:
        return
    if exc is not None or not db_session.is_active:
        db_session.rollback()
        logger.debug("request_session_rolled_back")
    db_session.close()


def _access_denied(exc: AccessDeniedError) -> tuple[Response, int]:
    return jsonify({"error": exc.code, "message": str(exc)}), 403


def _make_view(
    app: Flask,
    admin: Admin,
    route: Route,
    translator: TranslatorInterface | None,
    message_translator: MessageTranslator,
) -> Callable[..., Any]:
    controller_path, action = route.controller.split("::", 1)
    controller_class = import_string(controller_path)

    def view(**view_args: Any) -> Any:
        request_admin = copy.copy(admin)
        kwargs: dict[str, Any] = {"message_translator": message_translator}
        if issubclass(controller_class, WorkflowController):
            kwargs["registry"] = app.extensions[REGISTRY_EXTENSION_KEY]
            kwargs["translator"] = translator
        controller = controller_class(request_admin, **kwargs)
        return getattr(controller, action)(request)

    view.__name__ = route.name
    return view


def create_app(
    pool: AdminPool,
    registry: Registry,
    session_factory: sessionmaker[Session],
    *,
    translator: TranslatorInterface | None = None,
    message_translator: MessageTranslator | None = None,
    roles_loader: RolesLoader = session_roles,
    config: dict[str, Any] | None = None,
) -> Flask:
    """
    Build the Flask application serving every admin of ``pool``.

    Args:
        pool: admins to serve; each contributes its routes.
        registry: workflow registry shared by every request.
        session_factory: creates the request-scoped SQLAlchemy sessions.
        translator: flash message builder for the workflow controller.
        message_translator: renders message keys to text.
        roles_loader: returns the roles of the current viewer.
        config: extra Flask configuration (SECRET_KEY is required for flashes).
    """
    app = Flask(__name__)
    app.config.update(config or {})

    message_translator = message_translator or CatalogTranslator()
    app.extensions[REGISTRY_EXTENSION_KEY] = registry
    app.extensions[SESSION_FACTORY_EXTENSION_KEY] = session_factory
    app.extensions[POOL_EXTENSION_KEY] = pool

    @app.before_request
    def _bind_request_context() -> None:
        LogContext.set(request_id=request.headers.get("X-Request-Id") or uuid.uuid4().hex)
        g.roles = tuple(roles_loader())

    @app.teardown_request
    def _clear_log_context(exc: BaseException | None) -> None:
        LogContext.clear()

    app.after_request(_commit_request_session)
    app.teardown_appcontext(_close_request_session)
    app.register_error_handler(AccessDeniedError, _access_denied)

    for admin in pool:
        for route in admin.get_routes():
            app.add_url_rule(
                route.path,
                endpoint=route.name,
                view_func=_make_view(app, admin, route, translator, message_translator),
                methods=list(route.methods),
            )
            logger.debug(
                "admin_route_registered",
                extra={"admin_code": admin.code, "route": route.name, "path": route.path},
            )

    logger.info("admin_app_created", extra={"admins": [admin.code for admin in pool]})
    return app
