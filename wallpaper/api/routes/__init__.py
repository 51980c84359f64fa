"""Route tables and the prefixes they are mounted under."""

from __future__ import annotations

from typing import List, Tuple

from wallpaper.api.routes.system import build_system_table
from wallpaper.api.routes.users import build_users_table
from wallpaper.server import RouteTable

API_PREFIX = "/api"


def build_api_table() -> RouteTable:
    """Everything served under /api, merged into one table."""
    table = RouteTable(name="api")
    for source in (build_users_table(),):
        for route in source:
            table.add_route(route)
    return table


def default_mounts() -> List[Tuple[RouteTable, str]]:
    """(table, prefix) pairs for a complete server, one mount per table."""
    return [
        (build_system_table(), ""),
        (build_api_table(), API_PREFIX),
    ]


__all__ = ["API_PREFIX", "build_api_table", "build_system_table", "build_users_table", "default_mounts"]
