"""Health check endpoints for cheesepants-py.

Provides /health and /ready endpoints for container orchestration
and load balancer health checks.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from litestar import Controller, get
from sqlalchemy import text

if TYPE_CHECKING:
    from litestar import Request


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of an individual component."""

    name: str
    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "latency_ms": self.latency_ms,
        }
        if self.details:
            data["details"] = self.details
        return data


@dataclass
class HealthResponse:
    """Health check response."""

    status: HealthStatus
    version: str = "0.1.0"
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "version": self.version,
            "timestamp": self.timestamp,
            "components": [c.to_dict() for c in self.components],
        }


def _overall_status(components: list[ComponentHealth]) -> HealthStatus:
    statuses = {c.status for c in components}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


class HealthController(Controller):
    """Health check controller.

    Provides endpoints for liveness and readiness probes. The database is
    only checked when the application runs with database storage.
    """

    path = ""
    include_in_schema: ClassVar[bool] = True
    tags: ClassVar[list[str]] = ["Health"]

    @get("/health")
    async def health(self, request: Request) -> dict[str, Any]:
        """Liveness probe endpoint.

        Returns:
            Health status with component details.
        """
        components = [
            ComponentHealth(
                name="application",
                status=HealthStatus.HEALTHY,
                message="Application is running",
            )
        ]

        realtime = self._check_realtime(request)
        if realtime:
            components.append(realtime)

        db_health = await self._check_database(request)
        if db_health:
            components.append(db_health)

        return HealthResponse(status=_overall_status(components), components=components).to_dict()

    @get("/ready")
    async def ready(self, request: Request) -> dict[str, Any]:
        """Readiness probe endpoint.

        Unlike /health, this only reports whether every dependency is
        available.

        Returns:
            Readiness status with individual check results.
        """
        checks: dict[str, bool] = {"application": True}

        db_ready = await self._check_database_ready(request)
        if db_ready is not None:
            checks["database"] = db_ready

        return {
            "ready": all(checks.values()),
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        }

    def _check_realtime(self, request: Request) -> ComponentHealth | None:
        """Report open game connections."""
        manager = getattr(request.app.state, "connection_manager", None)
        if manager is None:
            return None
        return ComponentHealth(
            name="websocket",
            status=HealthStatus.HEALTHY,
            details={
                "active_games": len(manager.active_games),
                "connections": manager.total_connections,
            },
        )

    async def _check_database(self, request: Request) -> ComponentHealth | None:
        """Check database health."""
        db_manager = getattr(request.app.state, "db_manager", None)
        if db_manager is None:
            return None
        if not db_manager.is_initialized:
            return ComponentHealth(
                name="database",
                status=HealthStatus.UNHEALTHY,
                message="Database not initialized",
            )

        try:
            start = time.perf_counter()
            async with db_manager.session() as session:
                await session.execute(text("SELECT 1"))
            latency = (time.perf_counter() - start) * 1000
        except Exception as e:  # noqa: BLE001
            return ComponentHealth(
                name="database",
                status=HealthStatus.UNHEALTHY,
                message=f"Database error: {e!s}",
            )
        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
            latency_ms=round(latency, 2),
        )

    async def _check_database_ready(self, request: Request) -> bool | None:
        """Check if database is ready."""
        health = await self._check_database(request)
        if health is None:
            return None
        return health.status == HealthStatus.HEALTHY
