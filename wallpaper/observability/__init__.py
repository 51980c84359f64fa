"""Logging, metrics and health reporting.

- `logging`: structlog setup and per-request correlation IDs
- `metrics`: Prometheus collectors on a private registry
- `health`: the report served by `GET /health`
"""

from wallpaper.observability.health import ComponentHealth, HealthStatus, check_health
from wallpaper.observability.logging import (
    clear_correlation_id,
    configure_logging,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from wallpaper.observability.metrics import get_metrics_registry, render_latest

__all__ = [
    "ComponentHealth",
    "HealthStatus",
    "check_health",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "get_metrics_registry",
    "render_latest",
    "set_correlation_id",
]
