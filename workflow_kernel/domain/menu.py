"""
Menu tree rendered in the admin tab bar.

A ``MenuItem`` is a named node with an optional URI, HTML-facing
attributes (``icon``, ``dropdown``) and extras consumed by templates
(``translation_domain``).  Children keep insertion order and are keyed by
name; adding a child with an existing name replaces it.
"""

from __future__ import annotations

from typing import Any, Iterator


class MenuItem:
    """A node of the admin tab menu."""

    def __init__(
        self,
        name: str,
        *,
        uri: str | None = None,
        label: str | None = None,
        attributes: dict[str, Any] | None = None,
        extras: dict[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.uri = uri
        self.label = label if label is not None else name
        self.attributes: dict[str, Any] = dict(attributes or {})
        self.extras: dict[str, Any] = dict(extras or {})
        self.parent: MenuItem | None = None
        self._children: dict[str, MenuItem] = {}

    def add_child(
        self,
        name: str,
        *,
        uri: str | None = None,
        label: str | None = None,
        attributes: dict[str, Any] | None = None,
        extras: dict[str, Any] | None = None,
    ) -> MenuItem:
        child = MenuItem(name, uri=uri, label=label, attributes=attributes, extras=extras)
        child.parent = self
        self._children[name] = child
        return child

    def get_child(self, name: str) -> MenuItem | None:
        return self._children.get(name)

    @property
    def children(self) -> list[MenuItem]:
        return list(self._children.values())

    def has_children(self) -> bool:
        return bool(self._children)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def get_extra(self, name: str, default: Any = None) -> Any:
        return self.extras.get(name, default)

    def __iter__(self) -> Iterator[MenuItem]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self._children)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data rendering for templates and JSON."""
        return {
            "name": self.name,
            "label": self.label,
            "uri": self.uri,
            "attributes": dict(self.attributes),
            "extras": dict(self.extras),
            "children": [child.to_dict() for child in self.children],
        }

    def __repr__(self) -> str:
        return f"MenuItem(name={self.name!r}, uri={self.uri!r}, children={len(self)})"
