"""
Admin routes.

Every admin owns a ``RouteCollection`` rooted at its base route name and
pattern.  A route added as ``edit`` is stored under the code
``<admin code>.edit``, named ``<base route name>_edit`` and served at
``<base pattern>/<pattern>``; its defaults name the controller action
(``_controller``) and the owning admin (``_admin``).

URLs are built from a Werkzeug ``Map`` so they can be generated outside
of a request, e.g. while rendering a menu.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator

from werkzeug.routing import Map, Rule

from workflow_kernel.exceptions import RouteNotFoundError


def actionify(name: str) -> str:
    """``workflow_apply_transition`` -> ``workflow_apply_transition_action``."""
    if "." in name:
        name = name.rsplit(".", 1)[1]
    return name.replace("-", "_") + "_action"


@dataclass(frozen=True)
class Route:
    name: str
    path: str
    defaults: dict[str, Any] = field(default_factory=dict)
    methods: tuple[str, ...] = ("GET", "POST")

    @property
    def controller(self) -> str:
        return self.defaults["_controller"]


class RouteCollection:
    """Routes of one admin, keyed by ``<admin code>.<name>``."""

    def __init__(
        self,
        base_code_route: str,
        base_route_name: str,
        base_route_pattern: str,
        base_controller_name: str,
    ) -> None:
        self.base_code_route = base_code_route
        self.base_route_name = base_route_name
        self.base_route_pattern = base_route_pattern.rstrip("/")
        self.base_controller_name = base_controller_name
        self._routes: dict[str, Route] = {}
        self._map: Map | None = None

    def get_code(self, name: str) -> str:
        if name.startswith(self.base_code_route + "."):
            return name
        return f"{self.base_code_route}.{name}"

    def add(
        self,
        name: str,
        pattern: str | None = None,
        defaults: dict[str, Any] | None = None,
        methods: tuple[str, ...] = ("GET", "POST"),
    ) -> Route:
        code = self.get_code(name)
        path = f"{self.base_route_pattern}/{(pattern or name).lstrip('/')}"
        route_defaults = dict(defaults or {})
        route_defaults.setdefault(
            "_controller", f"{self.base_controller_name}::{actionify(code)}"
        )
        route_defaults.setdefault("_admin", self.base_code_route)

        route = Route(
            name=f"{self.base_route_name}_{name}",
            path=path,
            defaults=route_defaults,
            methods=tuple(methods),
        )
        self._routes[code] = route
        self._map = None
        return route

    def has(self, name: str) -> bool:
        return self.get_code(name) in self._routes

    def get(self, name: str) -> Route:
        try:
            return self._routes[self.get_code(name)]
        except KeyError:
            raise RouteNotFoundError(self.base_code_route, name) from None

    def remove(self, name: str) -> None:
        self._routes.pop(self.get_code(name), None)
        self._map = None

    def all(self) -> list[Route]:
        return list(self._routes.values())

    def __iter__(self) -> Iterator[Route]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._routes)

    def url_map(self) -> Map:
        if self._map is None:
            self._map = Map(
                [
                    Rule(route.path, endpoint=route.name, methods=list(route.methods))
                    for route in self._routes.values()
                ]
            )
        return self._map

    def build(
        self,
        name: str,
        parameters: dict[str, Any] | None = None,
        script_name: str = "/",
    ) -> str:
        """Relative URL of route ``name``; extra parameters become the query string."""
        route = self.get(name)
        adapter = self.url_map().bind("localhost", script_name=script_name)
        return adapter.build(route.name, dict(parameters or {}), method=route.methods[0])
