from __future__ import annotations

from prometheus_client import Counter, Histogram

DB_OPERATION_TOTAL = Counter(
    "smidgen_db_operation_total",
    "Mapped record operations by table, operation and outcome.",
    ["table", "operation", "status"],
)

DB_OPERATION_LATENCY_SECONDS = Histogram(
    "smidgen_db_operation_latency_seconds",
    "Latency of mapped record operations, including catalog validation.",
    ["table", "operation"],
)

DB_CONNECTION_INIT_TOTAL = Counter(
    "smidgen_db_connection_init_total",
    "Engine initializations per privilege tier and outcome.",
    ["tier", "status"],
)

AUDIT_ENTRIES_TOTAL = Counter(
    "smidgen_audit_entries_total",
    "Audit entries by outcome: written, failed or dropped.",
    ["outcome"],
)
