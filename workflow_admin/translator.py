"""
Flash message translation.

Two layers live here:

* ``TranslatorInterface`` builds the success / error flash messages shown
  after a transition, as ``TranslatableMessage`` objects.  Projects swap
  in their own wording by passing another implementation to the
  controller; ``StandardTranslator`` reuses the admin's edit messages.
* ``CatalogTranslator`` renders message keys to text from in-memory
  catalogs, one per domain.  Catalog loading is left to the application.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from markupsafe import escape

from workflow_kernel.domain.translation import TranslatableMessage, substitute
from workflow_kernel.workflow import Workflow

if TYPE_CHECKING:
    from workflow_admin.admin import Admin

ADMIN_DOMAIN = "WorkflowAdmin"

DEFAULT_CATALOGS: dict[str, dict[str, str]] = {
    ADMIN_DOMAIN: {
        "flash_edit_success": 'Item "%name%" has been successfully updated.',
        "flash_edit_error": 'An error has occurred during update of item "%name%".',
        "flash_lock_error": (
            'Another user has modified item "%name%" in the meantime. '
            "Please %link_start%click here%link_end% to reload the page "
            "and apply your changes again."
        ),
    },
    "messages": {
        "workflow_transitions": "Workflow",
        "workflow_transitions_empty": "No transition available",
    },
}


def escape_html(value: Any) -> str:
    return str(escape(str(value)))


class TranslatorInterface(ABC):
    """Builds the flash messages reported after applying a transition."""

    @abstractmethod
    def transition_success_flash_message(
        self,
        admin: "Admin",
        workflow: Workflow,
        obj: Any,
        transition: str,
    ) -> TranslatableMessage: ...

    @abstractmethod
    def transition_error_flash_message(
        self,
        admin: "Admin",
        workflow: Workflow,
        obj: Any,
        transition: str,
    ) -> TranslatableMessage: ...


class StandardTranslator(TranslatorInterface):
    def transition_success_flash_message(
        self,
        admin: "Admin",
        workflow: Workflow,
        obj: Any,
        transition: str,
    ) -> TranslatableMessage:
        return TranslatableMessage(
            "flash_edit_success",
            {"%name%": escape_html(admin.to_string(obj))},
            ADMIN_DOMAIN,
        )

    def transition_error_flash_message(
        self,
        admin: "Admin",
        workflow: Workflow,
        obj: Any,
        transition: str,
    ) -> TranslatableMessage:
        return TranslatableMessage(
            "flash_edit_error",
            {"%name%": escape_html(admin.to_string(obj))},
            ADMIN_DOMAIN,
        )


class CatalogTranslator:
    """
    Message translator over ``{domain: {key: template}}`` catalogs.

    Unknown keys render as the key itself with its parameters substituted.
    ``locale`` is accepted for interface compatibility; catalogs are
    single-locale.
    """

    def __init__(
        self,
        catalogs: dict[str, dict[str, str]] | None = None,
        default_domain: str = "messages",
    ) -> None:
        self._catalogs: dict[str, dict[str, str]] = {
            domain: dict(messages) for domain, messages in DEFAULT_CATALOGS.items()
        }
        for domain, messages in (catalogs or {}).items():
            self._catalogs.setdefault(domain, {}).update(messages)
        self._default_domain = default_domain

    def add_messages(self, domain: str, messages: dict[str, str]) -> None:
        self._catalogs.setdefault(domain, {}).update(messages)

    def trans(
        self,
        message_id: str,
        parameters: dict[str, str] | None = None,
        domain: str | None = None,
        locale: str | None = None,
    ) -> str:
        catalog = self._catalogs.get(domain or self._default_domain, {})
        return substitute(catalog.get(message_id, message_id), parameters)
