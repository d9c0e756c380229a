from __future__ import annotations

from ..metrics.registry import (
    AUDIT_ENTRIES_TOTAL,
    DB_CONNECTION_INIT_TOTAL,
    DB_OPERATION_LATENCY_SECONDS,
    DB_OPERATION_TOTAL,
)


def observe_db_operation(table: str, operation: str, status: str, latency_s: float) -> None:
    DB_OPERATION_TOTAL.labels(table=table, operation=operation, status=status).inc()
    DB_OPERATION_LATENCY_SECONDS.labels(table=table, operation=operation).observe(latency_s)


def observe_connection_init(tier: str, status: str) -> None:
    DB_CONNECTION_INIT_TOTAL.labels(tier=tier, status=status).inc()


def observe_audit_entry(outcome: str) -> None:
    AUDIT_ENTRIES_TOTAL.labels(outcome=outcome).inc()
