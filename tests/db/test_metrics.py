from __future__ import annotations

import pytest

from dbseed.db.metrics import observe_insert
from dbseed.metrics.registry import (
    INSERT_EXECUTIONS_TOTAL,
    INSERT_LATENCY_SECONDS,
    INSERT_ROWS_TOTAL,
)
from dbseed.operation.insert import Insert


def _count(table: str, status: str) -> float:
    return INSERT_EXECUTIONS_TOTAL.labels(table=table, status=status)._value.get()


def _rows(table: str) -> float:
    return INSERT_ROWS_TOTAL.labels(table=table)._value.get()


class TestObserveInsert:
    """Tests for observe_insert() function."""

    def test_increments_counters_on_success(self) -> None:
        table = "metrics_success"
        initial_count = _count(table, "success")
        initial_rows = _rows(table)

        observe_insert(table=table, status="success", rows=3, latency_s=0.1)

        assert _count(table, "success") == initial_count + 1
        assert _rows(table) == initial_rows + 3

    def test_error_does_not_count_rows(self) -> None:
        table = "metrics_error"
        initial_rows = _rows(table)

        observe_insert(table=table, status="error", rows=2, latency_s=0.1)

        assert _count(table, "error") >= 1
        assert _rows(table) == initial_rows

    def test_records_latency_in_histogram(self) -> None:
        table = "metrics_latency"

        observe_insert(table=table, status="success", rows=1, latency_s=0.25)

        samples = list(INSERT_LATENCY_SECONDS.labels(table=table).collect())
        assert len(samples) > 0


class TestInsertExecutionMetrics:
    def test_successful_execution_is_observed(self, recording_connection) -> None:
        table = "METRICS_OK"
        insert = Insert.into(table).columns("ID").values(1).values(2).use_metadata(False).build()
        initial_count = _count(table, "success")
        initial_rows = _rows(table)

        insert.execute(recording_connection())

        assert _count(table, "success") == initial_count + 1
        assert _rows(table) == initial_rows + 2

    def test_failed_execution_is_observed(self, recording_connection) -> None:
        table = "METRICS_KO"
        insert = Insert.into(table).columns("ID").values(1).values(2).use_metadata(False).build()
        initial_count = _count(table, "error")

        with pytest.raises(RuntimeError):
            insert.execute(recording_connection(fail_on_execution=1))

        assert _count(table, "error") == initial_count + 1


class TestTableLabel:
    def test_each_table_name_gets_its_own_series(self) -> None:
        observe_insert(table="metrics_label_a", status="success", rows=1, latency_s=0.01)
        observe_insert(table="METRICS_LABEL_A", status="success", rows=1, latency_s=0.01)

        tables = {
            sample.labels["table"]
            for metric in INSERT_ROWS_TOTAL.collect()
            for sample in metric.samples
            if sample.name == "dbseed_insert_rows_total"
        }
        assert {"metrics_label_a", "METRICS_LABEL_A"} <= tables
