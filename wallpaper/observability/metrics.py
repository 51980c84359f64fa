"""Prometheus metrics for the Universal Wallpaper API.

All collectors are registered on a package-private `CollectorRegistry`
rather than prometheus_client's global one, so building several apps in
one process (as the test suite does) never raises "Duplicated timeseries".

Callers record through the small functions below instead of touching the
collectors, which keeps label names in one module:

    observe_request("GET", "/test", 200, 0.004)
    record_connection_attempt(succeeded=False)
    set_database_connected(True)
    set_component_health("database", healthy=True)
"""

from typing import Tuple

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

NAMESPACE = "wallpaper"

_registry = CollectorRegistry(auto_describe=True)

http_requests_total = Counter(
    "http_requests_total",
    "HTTP requests by method, route template and status code",
    ["method", "route", "status"],
    namespace=NAMESPACE,
    registry=_registry,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "Time spent producing a response",
    ["method", "route"],
    namespace=NAMESPACE,
    registry=_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

database_connection_attempts_total = Counter(
    "database_connection_attempts_total",
    "Startup connection attempts to MongoDB by outcome",
    ["outcome"],
    namespace=NAMESPACE,
    registry=_registry,
)

database_connected = Gauge(
    "database_connected",
    "1 while the MongoDB connection is open, otherwise 0",
    namespace=NAMESPACE,
    registry=_registry,
)

health_status = Gauge(
    "health_status",
    "Last health check result per component (1 healthy, 0 unhealthy)",
    ["component"],
    namespace=NAMESPACE,
    registry=_registry,
)


def observe_request(method: str, route: str, status_code: int, seconds: float) -> None:
    """Count one finished request and record its latency."""
    http_requests_total.labels(method=method, route=route, status=str(status_code)).inc()
    http_request_duration_seconds.labels(method=method, route=route).observe(seconds)


def record_connection_attempt(succeeded: bool) -> None:
    outcome = "success" if succeeded else "failure"
    database_connection_attempts_total.labels(outcome=outcome).inc()


def set_database_connected(connected: bool) -> None:
    database_connected.set(1 if connected else 0)


def set_component_health(component: str, healthy: bool) -> None:
    health_status.labels(component=component).set(1 if healthy else 0)


def get_metrics_registry() -> CollectorRegistry:
    return _registry


def render_latest() -> Tuple[bytes, str]:
    """Current exposition text and the content type to serve it with."""
    return generate_latest(_registry), CONTENT_TYPE_LATEST


__all__ = [
    "NAMESPACE",
    "database_connected",
    "database_connection_attempts_total",
    "get_metrics_registry",
    "health_status",
    "http_request_duration_seconds",
    "http_requests_total",
    "observe_request",
    "record_connection_attempt",
    "render_latest",
    "set_component_health",
    "set_database_connected",
]
