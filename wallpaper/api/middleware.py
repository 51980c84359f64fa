"""HTTP middleware: request logging, correlation IDs, metrics and security headers."""

from __future__ import annotations

import time
from typing import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import Response

from wallpaper.observability.logging import (
    clear_correlation_id,
    get_logger,
    set_correlation_id,
)
from wallpaper.observability.metrics import observe_request

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

CallNext = Callable[[Request], Awaitable[Response]]


def _route_label(request: Request) -> str:
    # Route templates only, so unknown paths cannot blow up label cardinality
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def _observe(request: Request, status_code: int, started: float) -> float:
    duration = time.perf_counter() - started
    observe_request(request.method, _route_label(request), status_code, duration)
    return duration * 1000


async def request_context(request: Request, call_next: CallNext) -> Response:
    """Bind a correlation ID, log the request and record its metrics."""
    correlation_id = set_correlation_id(request.headers.get(REQUEST_ID_HEADER))
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        duration_ms = _observe(request, 500, started)
        logger.exception(
            "request_failed",
            method=request.method,
            path=request.url.path,
            duration_ms=round(duration_ms, 2),
        )
        clear_correlation_id()
        raise

    duration_ms = _observe(request, response.status_code, started)
    response.headers[REQUEST_ID_HEADER] = correlation_id
    logger.info(
        "request_completed",
        method=request.method,
        path=request.url.path,
        status=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    clear_correlation_id()
    return response


async def security_headers(request: Request, call_next: CallNext) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


__all__ = ["REQUEST_ID_HEADER", "SECURITY_HEADERS", "request_context", "security_headers"]
