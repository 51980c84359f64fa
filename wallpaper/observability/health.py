"""Health report behind `GET /health`.

MongoDB is the only dependency the service cannot work without, so the
report has one component today. Each check returns a `ComponentHealth`;
`check_health` folds them into a `HealthStatus` and mirrors every result
into the `wallpaper_health_status` gauge.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from wallpaper.observability.logging import get_logger
from wallpaper.observability.metrics import set_component_health

if TYPE_CHECKING:
    from wallpaper.database import DatabaseClient

logger = get_logger(__name__)

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    healthy: bool
    message: str
    latency_ms: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return HEALTHY if self.healthy else UNHEALTHY

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("healthy")
        data["status"] = self.status
        data["latency_ms"] = round(self.latency_ms, 3)
        return data


@dataclass
class HealthStatus:
    components: List[ComponentHealth]
    timestamp: str
    uptime_seconds: Optional[float] = None

    @property
    def is_healthy(self) -> bool:
        return all(component.healthy for component in self.components)

    @property
    def status(self) -> str:
        return HEALTHY if self.is_healthy else UNHEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "uptime_seconds": self.uptime_seconds,
            "components": [component.to_dict() for component in self.components],
        }


async def check_database_health(database: DatabaseClient) -> ComponentHealth:
    """Unhealthy until `open()` has succeeded, then as good as the last ping."""
    metadata = {"database": database.name}
    if not database.is_connected:
        return ComponentHealth(
            "database", False, "Database connection not open", metadata=metadata
        )

    started = time.perf_counter()
    answered = await database.ping()
    latency_ms = (time.perf_counter() - started) * 1000

    if not answered:
        logger.warning("database_health_check_failed", latency_ms=round(latency_ms, 1))
        return ComponentHealth(
            "database", False, "Database did not answer ping", latency_ms, metadata
        )
    return ComponentHealth("database", True, "Database operational", latency_ms, metadata)


async def check_health(
    database: DatabaseClient,
    started_at: Optional[datetime] = None,
) -> HealthStatus:
    """Run every component check and build the service-level report.

    Args:
        database: The handle shared with request handlers
        started_at: When the app was created; enables `uptime_seconds`
    """
    components = [await check_database_health(database)]
    for component in components:
        set_component_health(component.name, component.healthy)

    now = datetime.now(timezone.utc)
    return HealthStatus(
        components=components,
        timestamp=now.isoformat(),
        uptime_seconds=(now - started_at).total_seconds() if started_at else None,
    )
