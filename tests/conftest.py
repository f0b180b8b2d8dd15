from __future__ import annotations

import os
import re
import uuid
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from sqlalchemy.engine import Engine

from dbseed.config import DbConfig
from dbseed.db.statement import ParameterMetadata


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """
    Database URL for the database-backed tests.

    Set DBSEED_TEST_DB_URL to run them against a real server; by default a
    throwaway SQLite file is used.
    """
    url = os.environ.get("DBSEED_TEST_DB_URL")
    if url:
        return url
    return f"sqlite:///{tmp_path_factory.mktemp('db') / 'dbseed.sqlite3'}"


@pytest.fixture(scope="session")
def engine(db_url: str) -> Iterator[Engine]:
    """
    Session-scoped SQLAlchemy engine for tests.

    We fail fast if the database is unreachable, so failures are actionable.
    """
    eng = DbConfig(url=db_url).create_engine()
    try:
        with eng.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except Exception as exc:  # pragma: no cover
        pytest.fail(
            "Test database is not reachable.\n"
            f"- DBSEED_TEST_DB_URL={db_url!r}\n"
            f"- Underlying error: {exc}",
            pytrace=False,
        )

    yield eng
    eng.dispose()


def _sanitize_table_name(name: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9_]+", "_", name).strip("_").lower()
    if not name:
        name = "t"
    return name[:48]


@pytest.fixture
def table_factory(engine: Engine, request: pytest.FixtureRequest) -> Iterator[Callable[[str], str]]:
    """
    Factory fixture creating per-test tables.

    Usage:
        table = table_factory("id BIGINT PRIMARY KEY, value INT NOT NULL")
    """
    created: list[str] = []

    def _create(schema_sql: str) -> str:
        base = _sanitize_table_name(f"t_{request.node.name}")
        suffix = uuid.uuid4().hex[:10]
        table = f"{base}_{suffix}"

        with engine.begin() as conn:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS {table}")
            conn.exec_driver_sql(f"CREATE TABLE {table} ({schema_sql})")

        created.append(table)
        return table

    yield _create

    with engine.begin() as conn:
        for table in created:
            conn.exec_driver_sql(f"DROP TABLE IF EXISTS {table}")


@pytest.fixture
def client_table(table_factory: Callable[[str], str]) -> str:
    """
    A CLIENT-like table used across the database-backed Insert tests.
    """
    schema_sql = """
        client_id BIGINT NOT NULL,
        first_name VARCHAR(255) NULL,
        date_of_birth DATE NULL,
        client_type VARCHAR(32) NULL,
        balance NUMERIC(10, 2) NULL,
        deleted BOOLEAN NOT NULL DEFAULT 0,
        version INT NOT NULL DEFAULT 0,
        PRIMARY KEY (client_id)
    """
    return table_factory(schema_sql)


class RecordingStatement:
    """
    In-memory PreparedStatement recording what the Insert does with it.

    ``executions`` holds one {position: value} dict per execute_update().
    """

    def __init__(
        self,
        sql: str,
        metadata: ParameterMetadata | None = None,
        fail_on_execution: int | None = None,
    ) -> None:
        self.sql = sql
        self.metadata = metadata
        self.fail_on_execution = fail_on_execution
        self.bound: dict[int, Any] = {}
        self.executions: list[dict[int, Any]] = []
        self.metadata_calls = 0
        self.closed = False

    def bind(self, position: int, value: Any) -> None:
        self.bound[position] = value

    def parameter_metadata(self) -> ParameterMetadata:
        self.metadata_calls += 1
        if self.metadata is None:
            raise AssertionError("parameter metadata was not expected to be read")
        return self.metadata

    def execute_update(self) -> int:
        if self.fail_on_execution is not None and len(self.executions) == self.fail_on_execution:
            raise RuntimeError("constraint violation")
        self.executions.append(dict(self.bound))
        return 1

    def close(self) -> None:
        self.closed = True

    def rows(self) -> list[list[Any]]:
        """Bound values of each execution, in position order."""
        return [[execution[p] for p in sorted(execution)] for execution in self.executions]


class RecordingConnection:
    def __init__(
        self,
        metadata: ParameterMetadata | None = None,
        fail_on_execution: int | None = None,
    ) -> None:
        self.metadata = metadata
        self.fail_on_execution = fail_on_execution
        self.statements: list[RecordingStatement] = []

    def prepare(self, sql: str) -> RecordingStatement:
        stmt = RecordingStatement(sql, self.metadata, self.fail_on_execution)
        self.statements.append(stmt)
        return stmt

    @property
    def last(self) -> RecordingStatement:
        return self.statements[-1]


@pytest.fixture
def recording_connection() -> Callable[..., RecordingConnection]:
    """
    Factory for in-memory connections:

        conn = recording_connection(metadata=ParameterMetadata((Integer(), None)))
    """
    return RecordingConnection
