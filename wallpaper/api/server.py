"""FastAPI application for the Universal Wallpaper API.

This module compiles the framework-free route registry
(`wallpaper.server.ServerApplication`) into a FastAPI app and wires the
cross-cutting pieces around it:

- one adapter per route that injects the `HandlerContext`, converts
  escaping exceptions into `Err` results and renders the envelope
- exception handlers so unknown paths, wrong methods and unexpected
  failures answer with the same envelope
- middleware for correlation IDs, metrics, security headers, CORS and gzip
- a lifespan that opens the database before the first request and closes
  it on shutdown (unless the caller owns the connection)

Usage:
    database = DatabaseClient(settings.database)
    app = create_app(settings, database)
    uvicorn.run(app, host=settings.server.host, port=settings.server.port)
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Iterable, Optional, Tuple

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import Response

from wallpaper import __version__
from wallpaper.api import middleware
from wallpaper.api.envelope import Err, error_response, render
from wallpaper.api.errors import (
    ApiError,
    ErrorKind,
    NotFoundError,
    describe_exception,
    status_for,
)
from wallpaper.api.routes import default_mounts
from wallpaper.config import Settings
from wallpaper.database import DatabaseClient
from wallpaper.observability.logging import get_logger
from wallpaper.server import (
    HandlerContext,
    RouteDefinition,
    RouteTable,
    ServerApplication,
)

logger = get_logger(__name__)

APP_NAME = "universal-wallpaper"


def create_registry(
    mounts: Optional[Iterable[Tuple[RouteTable, str]]] = None,
    name: str = APP_NAME,
) -> ServerApplication:
    """
    Build the route registry from (table, prefix) pairs.

    Raises:
        DuplicateRouteError: If two mounts produce the same (method, path).
    """
    registry = ServerApplication(name=name)
    for table, prefix in mounts if mounts is not None else default_mounts():
        registry.mount(table, prefix)
    return registry


def create_app(
    settings: Settings,
    database: DatabaseClient,
    registry: Optional[ServerApplication] = None,
    manage_database: bool = True,
) -> FastAPI:
    """
    Factory that returns the FastAPI application.

    Args:
        settings: Resolved service settings
        database: Injected connection handle shared by all handlers
        registry: Routes to serve (defaults to `create_registry()`)
        manage_database: Open/close `database` in the app lifespan. The
            process entry point passes False because it opens the
            connection itself before the listener exists.
    """
    registry = registry or create_registry()
    context = HandlerContext(
        database=database,
        settings=settings,
        started_at=datetime.now(timezone.utc),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manage_database:
            await database.open()
        logger.info(
            "server_started",
            routes=len(registry.routes),
            environment=settings.environment,
        )
        try:
            yield
        finally:
            if manage_database:
                await database.close()
            logger.info("server_shutdown")

    app = FastAPI(
        title="Universal Wallpaper API",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        openapi_url=None if settings.is_production else "/openapi.json",
    )
    app.state.registry = registry
    app.state.context = context

    for route in registry.routes.values():
        app.add_api_route(
            route.path,
            _make_endpoint(route, context),
            methods=[route.method],
            name=route.key,
            description=route.description,
        )

    _install_exception_handlers(app, settings)

    # Last added runs outermost: gzip, CORS, request context, security headers
    app.middleware("http")(middleware.security_headers)
    app.middleware("http")(middleware.request_context)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    return app


def _make_endpoint(route: RouteDefinition, context: HandlerContext):
    """Adapt a registry handler to a FastAPI endpoint."""
    handler = route.handler
    if handler is None:
        raise ValueError(f"Route {route.key} has no handler")

    async def endpoint(request: Request) -> Response:
        try:
            result = await handler(request, context)
        except Exception as exc:
            error = ApiError.from_exception(exc)
            log = logger.error if error.status_code >= 500 else logger.warning
            log(
                "request_handler_failed",
                route=route.key,
                kind=error.kind.value,
                error=error.message,
                exception=type(exc).__name__,
            )
            result = Err(error)
        try:
            return render(result)
        except Exception as exc:
            # Answered inside the middleware stack, never by ServerErrorMiddleware
            logger.error(
                "response_render_failed",
                route=route.key,
                error=describe_exception(exc),
                exc_info=exc,
            )
            return error_response(_internal_error(exc, context.settings))

    endpoint.__name__ = getattr(handler, "__name__", "endpoint")
    endpoint.__doc__ = handler.__doc__
    return endpoint


def _kind_for_status(status_code: int) -> ErrorKind:
    for kind in ErrorKind:
        if status_for(kind) == status_code:
            return kind
    return ErrorKind.INTERNAL if status_code >= 500 else ErrorKind.BAD_REQUEST


def _install_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        if exc.status_code == 404:
            error: ApiError = NotFoundError(f"Can't find {request.url.path} on this server")
        elif exc.status_code == 405:
            error = ApiError(
                f"Method {request.method} is not allowed on {request.url.path}",
                kind=ErrorKind.METHOD_NOT_ALLOWED,
            )
        else:
            error = ApiError(str(exc.detail), kind=_kind_for_status(exc.status_code))
        return error_response(error, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> Response:
        logger.error(
            "unhandled_exception",
            method=request.method,
            path=request.url.path,
            error=describe_exception(exc),
            exc_info=exc,
        )
        return error_response(_internal_error(exc, settings))


def _internal_error(exc: BaseException, settings: Settings) -> ApiError:
    message = "Internal server error" if settings.is_production else describe_exception(exc)
    return ApiError(message, kind=ErrorKind.INTERNAL)


__all__ = ["APP_NAME", "create_app", "create_registry"]
