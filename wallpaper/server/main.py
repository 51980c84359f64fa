"""
Process entry point for the Universal Wallpaper API.

Startup order is fixed:

1. load `.env`, resolve settings and configure logging (`bootstrap`)
2. open the database connection, one attempt, fail-fast
3. build the route registry and the FastAPI application
4. create the uvicorn server and start accepting connections

A failure in steps 1-3 ends the process with exit code 1 before any
socket is bound. Shutdown (SIGINT/SIGTERM) is handled by uvicorn; the
database connection is released when `serve` leaves its `async with`.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from wallpaper.api import create_app
from wallpaper.config import ConfigError, Settings, load_settings
from wallpaper.database import DatabaseClient, DatabaseError
from wallpaper.observability.logging import configure_logging, get_logger
from wallpaper.server import DuplicateRouteError

logger = get_logger(__name__)

ServerFactory = Callable[[FastAPI, Settings], Any]


def build_server(app: FastAPI, settings: Settings) -> uvicorn.Server:
    """Create (but do not start) the uvicorn server for `app`."""
    config = uvicorn.Config(
        app,
        host=settings.server.host,
        port=settings.server.port,
        lifespan="on",
        log_config=None,
        access_log=False,
        proxy_headers=True,
    )
    return uvicorn.Server(config)


async def serve(
    settings: Settings,
    database: Optional[DatabaseClient] = None,
    server_factory: Optional[ServerFactory] = None,
) -> None:
    """
    Connect to the database, then serve HTTP until shutdown.

    The server object is only created after the connection attempt has
    succeeded, so a failed attempt never leaves a half-started listener.

    Raises:
        DatabaseConnectionError: If the connection attempt fails.
        DuplicateRouteError: If the route tables overlap.
    """
    database = database or DatabaseClient(settings.database)
    server_factory = server_factory or build_server

    async with database:
        app = create_app(settings, database, manage_database=False)
        server = server_factory(app, settings)
        logger.info(
            "server_listening",
            host=settings.server.host,
            port=settings.server.port,
        )
        await server.serve()


def bootstrap(config_path: Optional[Path | str] = None) -> Settings:
    """
    Load environment and settings and configure logging.

    Downstream runners (tests, process managers) can call this to get
    the same settings the CLI would use without starting a server.
    """
    load_dotenv()
    settings = load_settings(config_path)
    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
        log_file=settings.logging.file,
    )
    return settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wallpaper-server",
        description="Run the Universal Wallpaper API server.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a wallpaper.toml settings file",
    )
    args = parser.parse_args(argv)

    try:
        settings = bootstrap(args.config)
        asyncio.run(serve(settings))
    except (ConfigError, DatabaseError, DuplicateRouteError) as exc:
        logger.error(
            "startup_failed",
            error=str(exc),
            error_type=type(exc).__name__,
            details=getattr(exc, "error_details", None),
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
