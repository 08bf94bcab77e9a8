"""
Translatable messages.

A ``TranslatableMessage`` defers translation until a translator is at
hand: it records the message key, the placeholder parameters and the
catalog domain.  Placeholders use the ``%name%`` convention and are
substituted verbatim, so callers escape values before passing them in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Protocol


class MessageTranslator(Protocol):
    """Anything able to turn a message key into display text."""

    def trans(
        self,
        message_id: str,
        parameters: dict[str, str] | None = None,
        domain: str | None = None,
        locale: str | None = None,
    ) -> str: ...


def substitute(template: str, parameters: dict[str, str] | None) -> str:
    """Replace every placeholder key in ``template`` by its value, in one pass.

    Substituted values are never scanned again, so a value containing
    another key is kept as is.  Longer keys win over their prefixes.
    """
    if not parameters:
        return template
    keys = sorted((key for key in parameters if key), key=len, reverse=True)
    if not keys:
        return template
    pattern = re.compile("|".join(re.escape(key) for key in keys))
    return pattern.sub(lambda match: str(parameters[match.group(0)]), template)


@dataclass(frozen=True)
class TranslatableMessage:
    """A message key plus the parameters and domain needed to render it."""

    message: str
    parameters: dict[str, str] = field(default_factory=dict)
    domain: str | None = None

    def trans(self, translator: MessageTranslator, locale: str | None = None) -> str:
        return translator.trans(self.message, self.parameters, self.domain, locale)

    def __str__(self) -> str:
        return substitute(self.message, self.parameters)
