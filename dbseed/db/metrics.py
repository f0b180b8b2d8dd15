from __future__ import annotations

from ..metrics.registry import (
    INSERT_EXECUTIONS_TOTAL,
    INSERT_LATENCY_SECONDS,
    INSERT_ROWS_TOTAL,
)


def observe_insert(table: str, status: str, rows: int, latency_s: float) -> None:
    """
    Record one Insert execution.

    Rows are only counted for successful executions; a failed execution
    rolls back with its session, so partial progress is not reported.
    """
    INSERT_EXECUTIONS_TOTAL.labels(table=table, status=status).inc()
    INSERT_LATENCY_SECONDS.labels(table=table).observe(latency_s)
    if status == "success":
        INSERT_ROWS_TOTAL.labels(table=table).inc(rows)
