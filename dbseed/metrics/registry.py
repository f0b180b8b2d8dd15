"""
Prometheus metrics for Insert executions.

The ``table`` label takes the table name as written in ``Insert.into``, so its
cardinality is not bounded by this module. Each distinct name adds one series
per metric for the life of the process. Fixture loading touches a small, fixed
set of tables; suites generating a table per test should expect one series per
generated table.
"""

from prometheus_client import Counter, Histogram

INSERT_EXECUTIONS_TOTAL = Counter(
    "dbseed_insert_executions_total",
    "Number of Insert operation executions",
    ["table", "status"],
)

INSERT_ROWS_TOTAL = Counter(
    "dbseed_insert_rows_total",
    "Number of rows inserted by successful Insert executions",
    ["table"],
)

INSERT_LATENCY_SECONDS = Histogram(
    "dbseed_insert_latency_seconds",
    "Latency of Insert executions, from statement preparation to close",
    ["table"],
)
