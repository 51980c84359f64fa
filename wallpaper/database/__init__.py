"""MongoDB connection bootstrap for the Universal Wallpaper API."""

from wallpaper.database.client import ClientFactory, DatabaseClient
from wallpaper.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DatabaseNotConnectedError,
)

__all__ = [
    "ClientFactory",
    "DatabaseClient",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseNotConnectedError",
]
