"""
Route registry for the Universal Wallpaper API.

Routes are declared framework-free and grouped into named tables, the
same way sub-routers are grouped in most web stacks:

* `RouteDefinition` - one (method, path) pair and its handler
* `RouteTable` - a named group of routes without a prefix
* `ServerApplication` - the registry; tables are mounted under prefixes

The registry refuses to hold two handlers for the same (method, path)
pair, so mounting a table twice, or two tables that overlap, fails at
startup instead of leaving one of the handlers silently unreachable.
`wallpaper.api.server.create_app` compiles a registry into a FastAPI app.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Iterator, List, Optional, Tuple

if TYPE_CHECKING:
    from starlette.requests import Request

    from wallpaper.api.envelope import HandlerResult
    from wallpaper.config import Settings
    from wallpaper.database import DatabaseClient


@dataclass(frozen=True)
class HandlerContext:
    """Dependencies injected into every handler call."""

    database: DatabaseClient
    settings: Settings
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[["Request", HandlerContext], Awaitable["HandlerResult"]]


class DuplicateRouteError(ValueError):
    """
    Raised when a (method, path) pair would be registered twice.

    Attributes:
        keys: The conflicting route keys ("METHOD /path")
    """

    def __init__(self, message: str, keys: List[str]):
        super().__init__(message)
        self.keys = keys


def join_path(prefix: str, path: str) -> str:
    """Join a mount prefix and a route path into one normalized path."""
    prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
    path = "/" + path.strip("/") if path.strip("/") else ""
    return (prefix + path) or "/"


def _first_line(doc: Optional[str]) -> str:
    lines = (doc or "").strip().splitlines()
    return lines[0].strip() if lines else ""


@dataclass
class RouteDefinition:
    """
    A single backend route.

    `key` ("METHOD /path") identifies the route inside a registry; two
    definitions with the same key cannot coexist.
    """

    path: str
    method: str = "GET"
    handler: Optional[Handler] = None
    description: str = ""

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.path = join_path("", self.path)

    @property
    def key(self) -> str:
        return f"{self.method} {self.path}"

    def with_prefix(self, prefix: str) -> "RouteDefinition":
        return replace(self, path=join_path(prefix, self.path))


@dataclass
class RouteTable:
    """Named group of routes, mounted as a unit."""

    name: str
    routes: List[RouteDefinition] = field(default_factory=list)

    def add_route(self, route: RouteDefinition) -> None:
        if any(existing.key == route.key for existing in self.routes):
            raise DuplicateRouteError(
                f"Route {route.key} is declared twice in table '{self.name}'",
                keys=[route.key],
            )
        self.routes.append(route)

    def route(
        self, path: str, method: str = "GET", description: str = ""
    ) -> Callable[[Handler], Handler]:
        """Decorator form of `add_route`."""

        def decorator(handler: Handler) -> Handler:
            self.add_route(
                RouteDefinition(
                    path=path,
                    method=method,
                    handler=handler,
                    description=description or _first_line(handler.__doc__),
                )
            )
            return handler

        return decorator

    def __iter__(self) -> Iterator[RouteDefinition]:
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)


@dataclass
class ServerApplication:
    """
    Registry of every route the server exposes.

    Attributes:
        name: Application name, used as the API title
        routes: Mounted routes keyed by "METHOD /path"
        mounts: (prefix, table name) pairs in mount order
    """

    name: str
    routes: Dict[str, RouteDefinition] = field(default_factory=dict)
    mounts: List[Tuple[str, str]] = field(default_factory=list)

    def add_route(self, route: RouteDefinition) -> None:
        """Register a single route, rejecting duplicates."""
        if route.key in self.routes:
            raise DuplicateRouteError(
                f"Route {route.key} is already registered", keys=[route.key]
            )
        self.routes[route.key] = route

    def mount(self, table: RouteTable, prefix: str = "") -> None:
        """
        Register every route of `table` under `prefix`.

        The mount is all-or-nothing: if any route clashes with one already
        registered, nothing from the table is added.

        Raises:
            DuplicateRouteError: If the table is already mounted at this
                prefix or any of its routes is already registered.
        """
        mount_point = join_path(prefix, "")
        if (mount_point, table.name) in self.mounts:
            raise DuplicateRouteError(
                f"Route table '{table.name}' is already mounted at '{mount_point}'",
                keys=[route.with_prefix(prefix).key for route in table],
            )

        prefixed = [route.with_prefix(prefix) for route in table]
        clashes = [route.key for route in prefixed if route.key in self.routes]
        if clashes:
            raise DuplicateRouteError(
                f"Mounting '{table.name}' at '{mount_point}' would duplicate: "
                + ", ".join(clashes),
                keys=clashes,
            )

        for route in prefixed:
            self.routes[route.key] = route
        self.mounts.append((mount_point, table.name))

    def resolve(self, method: str, path: str) -> Optional[RouteDefinition]:
        return self.routes.get(f"{method.upper()} {join_path('', path)}")

    def available_routes(self) -> Dict[str, RouteDefinition]:
        """Return a copy of the known routes for debugging or tests."""
        return dict(self.routes)


__all__ = [
    "DuplicateRouteError",
    "Handler",
    "HandlerContext",
    "RouteDefinition",
    "RouteTable",
    "ServerApplication",
    "join_path",
]
