"""
Module: workflow_kernel.db.base
Responsibility: Declarative base for SQLAlchemy models administered through
    the bridge, and the optimistic-lock mixin whose version counter turns
    concurrent saves into ``StaleDataError`` (reported as ``LockError`` by
    the model manager).
Architecture position: Kernel > DB.  Lowest-level import target for models.
    MUST NOT import from workflow_admin or workflow_config.

Invariants enforced:
    - Versioned models carry a non-null integer counter managed by the ORM
      (``version_id_col``); every UPDATE is conditioned on the loaded value.
"""

from sqlalchemy import Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all administered models."""


class VersionedMixin:
    """
    Optimistic locking through an ORM-managed version counter.

    Contract:
        Each flush that updates the row increments ``version`` and issues
        ``UPDATE ... WHERE version = <loaded value>``.  Zero matched rows
        raise ``sqlalchemy.orm.exc.StaleDataError``.
    """

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    @declared_attr.directive
    def __mapper_args__(cls) -> dict:
        return {"version_id_col": cls.__table__.c.version}
