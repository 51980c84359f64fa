"""Service-level routes: info, health, metrics and the smoke-test endpoint."""

from __future__ import annotations

from datetime import datetime, timezone

from starlette.requests import Request
from starlette.responses import Response

from wallpaper import __version__
from wallpaper.api.envelope import HandlerResult, Ok, ResponseEnvelope, success
from wallpaper.observability.health import check_health
from wallpaper.observability.metrics import render_latest
from wallpaper.server import HandlerContext, RouteDefinition, RouteTable

SERVICE_NAME = "Universal Wallpaper API Server"


async def service_info(request: Request, context: HandlerContext) -> HandlerResult:
    """Service metadata and uptime."""
    now = datetime.now(timezone.utc)
    return success(
        SERVICE_NAME,
        data={
            "status": "OK",
            "version": __version__,
            "environment": context.settings.environment,
            "timestamp": now.isoformat(),
            "uptime_seconds": (now - context.started_at).total_seconds(),
        },
    )


async def health(request: Request, context: HandlerContext) -> HandlerResult:
    """
    Health report for load balancers and container probes.

    Response Codes:
        200: All components healthy
        503: One or more components unhealthy
    """
    status = await check_health(context.database, context.started_at)
    if status.is_healthy:
        return success("Service healthy", data=status.to_dict())
    return Ok(
        ResponseEnvelope(
            success=False,
            error=True,
            message="Service unhealthy",
            data=status.to_dict(),
        ),
        status_code=503,
    )


async def metrics(request: Request, context: HandlerContext) -> HandlerResult:
    """Prometheus metrics in text exposition format."""
    body, content_type = render_latest()
    return Response(content=body, media_type=content_type)


async def smoke_test(request: Request, context: HandlerContext) -> HandlerResult:
    """Static acknowledgment that the server is up."""
    return success("Server is working")


def build_system_table() -> RouteTable:
    """Routes mounted at the server root."""
    table = RouteTable(name="system")
    table.add_route(RouteDefinition("/", "GET", service_info, "Service metadata"))
    table.add_route(RouteDefinition("/health", "GET", health, "Health report"))
    table.add_route(RouteDefinition("/metrics", "GET", metrics, "Prometheus metrics"))
    table.add_route(RouteDefinition("/test", "GET", smoke_test, "Smoke-test acknowledgment"))
    return table
