"""
Label translator strategies.

An admin turns raw names (field names, transition names) into translation
keys or human labels through a strategy.  The workflow menu asks for
``get_label(transition_name, "workflow", "transition")``.
"""

from __future__ import annotations

import re
from typing import Protocol

_CAMEL_BOUNDARY = re.compile(r"(?<=\w)([A-Z])")


class LabelTranslatorStrategy(Protocol):
    def get_label(self, label: str, context: str = "", type: str = "") -> str: ...


class NativeLabelTranslatorStrategy:
    """``start_review`` -> ``Start Review``."""

    def get_label(self, label: str, context: str = "", type: str = "") -> str:
        label = label.replace("_", " ").replace(".", " ")
        label = _CAMEL_BOUNDARY.sub(r"_\1", label).lower()
        return label.replace("_", " ").title().strip()


class UnderscoreLabelTranslatorStrategy:
    """``start_review`` -> ``workflow.transition_start_review``."""

    def get_label(self, label: str, context: str = "", type: str = "") -> str:
        label = _CAMEL_BOUNDARY.sub(r"_\1", label).lower()
        return f"{context}.{type}_{label}"


class NoopLabelTranslatorStrategy:
    def get_label(self, label: str, context: str = "", type: str = "") -> str:
        return label
