"""
workflow_admin.security -- Role-based access decisions for admin actions.

Responsibility:
    Decide whether the current viewer holds the role an admin action maps
    to.  An attribute such as ``EDIT`` resolves to the admin-scoped role
    ``ROLE_<ADMIN_CODE>_EDIT``; ``ROLE_<ADMIN_CODE>_ALL`` and the
    super-admin roles grant every attribute.

Architecture position:
    Admin layer.  The admin calls ``is_granted`` from ``check_access`` /
    ``is_granted_action``; extensions only ever see the ``AccessDecision``.

Invariants:
    - The handler does not resolve viewer identity; the role provider
      supplies the roles of the current viewer.
    - With no roles at all, every check is denied.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable

if TYPE_CHECKING:
    from workflow_admin.admin import Admin

RoleProvider = Callable[[], Iterable[str]]


class AccessDecision(Enum):
    """Outcome of an access check: GRANTED or DENIED."""

    GRANTED = "granted"
    DENIED = "denied"

    @property
    def granted(self) -> bool:
        return self is AccessDecision.GRANTED

    @classmethod
    def of(cls, allowed: bool) -> "AccessDecision":
        return cls.GRANTED if allowed else cls.DENIED


def _no_roles() -> tuple[str, ...]:
    return ()


class RoleSecurityHandler:
    """Grants admin attributes from the roles of the current viewer."""

    def __init__(
        self,
        role_provider: RoleProvider | None = None,
        super_admin_roles: Iterable[str] = ("ROLE_SUPER_ADMIN",),
    ) -> None:
        self._role_provider = role_provider or _no_roles
        self._super_admin_roles = tuple(super_admin_roles)

    @property
    def super_admin_roles(self) -> tuple[str, ...]:
        return self._super_admin_roles

    def get_base_role(self, admin: "Admin") -> str:
        """``admin.pull_request`` -> ``ROLE_ADMIN_PULL_REQUEST_%s``."""
        code = re.sub(r"[^A-Za-z0-9]", "_", admin.code).upper()
        return f"ROLE_{code}_%s"

    def is_granted(
        self,
        admin: "Admin",
        attributes: str | Iterable[str],
        obj: Any = None,
    ) -> bool:
        if isinstance(attributes, str):
            attributes = [attributes]
        roles = set(self._role_provider())
        if not roles:
            return False

        if roles.intersection(self._super_admin_roles):
            return True

        base_role = self.get_base_role(admin)
        wanted = {base_role % attribute for attribute in attributes}
        wanted.add(base_role % "ALL")
        return bool(roles & wanted)
