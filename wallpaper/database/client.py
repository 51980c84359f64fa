"""
MongoDB connection bootstrap.

`DatabaseClient` owns the single outbound link to the document store. It
is constructed explicitly by the process entry point, handed to the
application factory, and opened exactly once before the HTTP listener is
created:

    database = DatabaseClient(settings.database)
    async with database:          # one attempt, fail-fast
        ...                       # serve requests

The attempt is bounded by `connect_timeout_ms` and never retried. A
failure is logged and re-raised as `DatabaseConnectionError` so the caller
can abort startup.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Optional

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError

from wallpaper.config import DatabaseSettings
from wallpaper.database.events import ServerEventLogger
from wallpaper.database.exceptions import (
    DatabaseConnectionError,
    DatabaseNotConnectedError,
)
from wallpaper.observability.logging import get_logger
from wallpaper.observability.metrics import (
    record_connection_attempt,
    set_database_connected,
)

logger = get_logger(__name__)

ClientFactory = Callable[..., Any]


class DatabaseClient:
    """
    Explicitly managed handle to the MongoDB deployment.

    Invariants:
        - at most one connection attempt is in flight (guarded by a lock)
        - `open()` on an open handle is a no-op
        - `close()` is idempotent
        - `database` raises until `open()` has succeeded

    Args:
        settings: Connection settings (URI, database name, timeouts)
        client_factory: Callable building the driver client. Defaults to
            `pymongo.MongoClient`; tests pass `mongomock.MongoClient`.
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.settings = settings
        self._client_factory = client_factory or MongoClient
        self._client: Optional[Any] = None
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "DatabaseClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise DatabaseNotConnectedError(
                "Database connection is not open. Call open() first."
            )
        return self._client

    @property
    def database(self) -> Database:
        """The application database on the open connection."""
        return self.client[self.settings.name]

    def get_collection(self, name: str) -> Collection:
        return self.database[name]

    async def open(self) -> None:
        """
        Open the connection with a single, time-bounded attempt.

        Raises:
            DatabaseConnectionError: If the URI is missing, the client cannot
                be built, or the server does not answer `ping` in time.
        """
        async with self._lock:
            if self._client is not None:
                return
            self._client = await self._connect()

        set_database_connected(True)

    async def close(self) -> None:
        """Release the connection. Safe to call when nothing is open."""
        async with self._lock:
            client, self._client = self._client, None

        if client is None:
            return

        await asyncio.to_thread(client.close)
        set_database_connected(False)
        logger.info("database_closed", database=self.name)

    async def ping(self) -> bool:
        """Return True if the server answers `ping`; never raises."""
        if self._client is None:
            return False
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._client.admin.command, "ping"),
                timeout=self.settings.connect_timeout_seconds,
            )
        except (PyMongoError, TimeoutError) as exc:
            logger.warning("database_ping_failed", database=self.name, error=str(exc))
            return False
        return True

    async def _connect(self) -> Any:
        if not self.settings.uri:
            record_connection_attempt(succeeded=False)
            logger.error(
                "database_connection_failed",
                database=self.name,
                error="MONGODB_URI is not configured",
            )
            raise DatabaseConnectionError(
                "MONGODB_URI is not configured",
                database=self.name,
                error_details="missing connection string",
            )

        logger.info("database_connecting", database=self.name)
        start_time = time.perf_counter()
        client = None

        try:
            client = self._client_factory(
                self.settings.uri,
                event_listeners=[ServerEventLogger()],
                **self.settings.client_options(),
            )
            await asyncio.wait_for(
                asyncio.to_thread(client.admin.command, "ping"),
                timeout=self.settings.connect_timeout_seconds,
            )
        except (PyMongoError, TimeoutError, OSError) as exc:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            details = f"{type(exc).__name__}: {exc}"
            record_connection_attempt(succeeded=False)
            logger.error(
                "database_connection_failed",
                database=self.name,
                error=details,
                elapsed_ms=round(elapsed_ms, 1),
            )
            if client is not None:
                await asyncio.to_thread(client.close)
            raise DatabaseConnectionError(
                f"Could not connect to MongoDB database '{self.name}'",
                database=self.name,
                error_details=details,
            ) from exc

        connection_time_ms = (time.perf_counter() - start_time) * 1000
        record_connection_attempt(succeeded=True)
        logger.info(
            "database_connected",
            database=self.name,
            connection_time_ms=round(connection_time_ms, 1),
        )
        return client
