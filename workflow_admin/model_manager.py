"""
workflow_admin.model_manager -- SQLAlchemy persistence for admin objects.

Responsibility:
    Fetch an object by identifier, write an updated object and normalise
    identifiers for URLs and JSON.  SQLAlchemy errors are translated into
    the admin's typed errors at this boundary.

Architecture position:
    Admin layer > persistence adapter.  Uses a session provider so the
    same manager serves every request-scoped session.

Invariants:
    - update() flushes and never commits; the session owner commits
      (see workflow_admin.app).
    - A failed update() rolls the session back so it stays usable, and
      detaches the object with the values it held before the write.  The
      object keeps its in-memory state (a freshly applied marking
      included) and is no longer written by the session.

Failure modes:
    - StaleDataError (version counter mismatch) -> LockError.
    - Any other SQLAlchemyError -> ModelManagerError.
"""

from __future__ import annotations

from typing import Any, Callable

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.orm.exc import StaleDataError

from workflow_kernel.exceptions import LockError, ModelManagerError
from workflow_kernel.logging_config import get_logger

logger = get_logger("admin.model_manager")

SessionProvider = Callable[[], Session]

IDENTIFIER_SEPARATOR = "~"


class SqlAlchemyModelManager:
    """Model manager backed by a SQLAlchemy session."""

    def __init__(self, session_provider: SessionProvider) -> None:
        self._session_provider = session_provider

    @property
    def session(self) -> Session:
        return self._session_provider()

    @staticmethod
    def _coerce_identifier(model_class: type, id: Any) -> Any:
        """
        Turn a URL identifier into the value(s) ``Session.get`` expects.

        Composite keys arrive joined with ``~`` (see get_normalized_identifier)
        and come back as a tuple in primary key order.  Returns None when
        the identifier cannot name a row.
        """
        primary_key = inspect(model_class).primary_key
        if not isinstance(id, str):
            return id

        parts = id.split(IDENTIFIER_SEPARATOR) if len(primary_key) > 1 else [id]
        if len(parts) != len(primary_key):
            return None

        values = []
        for column, part in zip(primary_key, parts):
            try:
                python_type = column.type.python_type
            except NotImplementedError:
                values.append(part)
                continue
            try:
                values.append(python_type(part))
            except (TypeError, ValueError):
                return None
        return values[0] if len(values) == 1 else tuple(values)

    def find(self, model_class: type, id: Any) -> Any | None:
        """Return the object with identifier ``id``, or None."""
        if id is None or id == "":
            return None
        identifier = self._coerce_identifier(model_class, id)
        if identifier is None:
            return None
        return self.session.get(model_class, identifier)

    def update(self, obj: Any) -> Any:
        """
        Write ``obj`` to the database (flush only).

        Raises:
            LockError: the row was modified by someone else since it was loaded.
            ModelManagerError: the database refused the write.
        """
        session = self.session
        entity_type = type(obj).__name__
        entity_id = self.get_normalized_identifier(obj)
        loaded = self._loaded_values(obj)

        try:
            session.add(obj)
            session.flush()
        except StaleDataError as exc:
            self._discard(session, obj, loaded)
            logger.warning(
                "model_lock_conflict",
                extra={"entity_type": entity_type, "entity_id": entity_id},
            )
            raise LockError(entity_type, entity_id) from exc
        except SQLAlchemyError as exc:
            self._discard(session, obj, loaded)
            logger.error(
                "model_update_failed",
                extra={"entity_type": entity_type, "entity_id": entity_id, "error": str(exc)},
            )
            raise ModelManagerError(
                f"Failed to update object: {entity_type}", entity_type
            ) from exc

        logger.debug("model_updated", extra={"entity_type": entity_type, "entity_id": entity_id})
        return obj

    @staticmethod
    def _loaded_values(obj: Any) -> dict[str, Any]:
        state = inspect(obj)
        return {
            attr.key: state.dict[attr.key]
            for attr in state.mapper.column_attrs
            if attr.key in state.dict
        }

    @staticmethod
    def _discard(session: Session, obj: Any, loaded: dict[str, Any]) -> None:
        # A failed flush expires every instance; restore this one detached.
        session.rollback()
        if obj in session:
            session.expunge(obj)
        for key, value in loaded.items():
            set_committed_value(obj, key, value)

    def get_identifier_values(self, obj: Any) -> tuple[Any, ...] | None:
        return inspect(obj).identity

    def get_normalized_identifier(self, obj: Any) -> str | None:
        """Identifier values joined with ``~``; None for unsaved objects."""
        if obj is None:
            return None
        identity = self.get_identifier_values(obj)
        if identity is None:
            return None
        return IDENTIFIER_SEPARATOR.join(str(value) for value in identity)

    def get_url_safe_identifier(self, obj: Any) -> str | None:
        return self.get_normalized_identifier(obj)
