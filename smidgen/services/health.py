from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from ..config import PrivilegeTier
from ..db.connection import ConnectionManager
from ..errors import SmidgenError

logger = logging.getLogger(__name__)

OK = "OK"
DEGRADED = "DEGRADED"
DOWN = "DOWN"


@dataclass(frozen=True)
class HealthCheck:
    name: str
    status: str
    latency: str


@dataclass
class HealthReport:
    status_code: int
    checks: list[HealthCheck] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.status_code == 200


class HealthService:
    """Reports Overall / API Server / Database status by pinging the read tier."""

    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager

    def check(self) -> HealthReport:
        logger.debug("checking status of core smidgen services")
        start = time.monotonic()
        try:
            db_latency_ms = self.manager.ping(PrivilegeTier.READ)
        except SmidgenError as exc:
            logger.error("database health check failed: %s", exc)
            server_ms = (time.monotonic() - start) * 1000.0
            return HealthReport(
                status_code=500,
                checks=[
                    HealthCheck("Overall", DEGRADED, DEGRADED),
                    HealthCheck("API Server", OK, f"{server_ms:.0f}ms"),
                    HealthCheck("Database", DOWN, DOWN),
                ],
            )

        total_ms = (time.monotonic() - start) * 1000.0
        server_ms = max(total_ms - db_latency_ms, 0.0)
        logger.info("database reachable in %.0fms", db_latency_ms)
        return HealthReport(
            status_code=200,
            checks=[
                HealthCheck("Overall", OK, f"{total_ms:.0f}ms"),
                HealthCheck("API Server", OK, f"{server_ms:.0f}ms"),
                HealthCheck("Database", OK, f"{db_latency_ms:.0f}ms"),
            ],
        )
