from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import bindparam, inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.types import TypeEngine

from ..errors import StatementError
from .helpers import parse_insert_sql, split_table_name, unquote_identifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterMetadata:
    """
    Type information for the parameters of a prepared statement.

    ``types`` holds one SQLAlchemy type per parameter, or None when the type
    of the matching column could not be determined.
    """

    types: tuple[TypeEngine | None, ...]

    @property
    def parameter_count(self) -> int:
        return len(self.types)

    def parameter_type(self, position: int) -> TypeEngine | None:
        """Return the type of the parameter at the given 1-based position."""
        if not 1 <= position <= len(self.types):
            raise IndexError(
                f"parameter position {position} out of range 1..{len(self.types)}"
            )
        return self.types[position - 1]


class PreparedStatement(Protocol):
    """
    Protocol for a parameterized statement with positional parameters.

    Positions are 1-based. Bound values persist between executions until
    they are overwritten.
    """

    def bind(self, position: int, value: Any) -> None:
        """Bind a value to the parameter at the given position."""
        ...

    def parameter_metadata(self) -> ParameterMetadata:
        """Describe the types of the statement's parameters."""
        ...

    def execute_update(self) -> int:
        """Execute the statement with the bound values; return affected row count."""
        ...

    def close(self) -> None:
        """Release the statement."""
        ...


class StatementConnection(Protocol):
    """Protocol for anything able to prepare a positional statement."""

    def prepare(self, sql: str) -> PreparedStatement:
        ...


class SqlAlchemyStatement:
    """
    PreparedStatement over a SQLAlchemy Connection.

    The positional ``?`` placeholders of the INSERT are rewritten to named
    bind parameters (``:p1``, ``:p2``, ...) so that SQLAlchemy adapts them to
    the driver's paramstyle. Each value is bound with a type inferred from
    the Python value, so the dialect's bind processing applies (e.g. Decimal
    on SQLite). Parameter metadata is obtained by reflecting the target table.
    """

    def __init__(self, conn: Connection, sql: str) -> None:
        self.sql = sql
        self._conn = conn
        self._parts = parse_insert_sql(sql)
        self._names = [f"p{i}" for i in range(1, self._parts.placeholder_count + 1)]
        self._clause = text(self._parts.render([f":{name}" for name in self._names]))
        self._values: dict[int, Any] = {}
        self._metadata: ParameterMetadata | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StatementError("Statement is closed")

    def bind(self, position: int, value: Any) -> None:
        self._check_open()
        if not 1 <= position <= self._parts.placeholder_count:
            raise StatementError(
                f"parameter position {position} out of range "
                f"1..{self._parts.placeholder_count}"
            )
        self._values[position] = value

    def parameter_metadata(self) -> ParameterMetadata:
        self._check_open()
        if self._metadata is None:
            table, reflected = self._reflect_columns()
            types = {column["name"].lower(): column["type"] for column in reflected}
            self._metadata = ParameterMetadata(
                tuple(types.get(unquote_identifier(c).lower()) for c in self._parts.columns)
            )
            logger.debug("Reflected parameter types for %s: %s", table, self._metadata.types)
        return self._metadata

    def _reflect_columns(self) -> tuple[str, list[dict[str, Any]]]:
        """
        Reflect the target table's columns.

        Unquoted names are looked up lowercased first (PostgreSQL folds
        ``CLIENT`` to ``client``), then as written (MySQL keeps the case).
        """
        inspector = inspect(self._conn)
        folded = split_table_name(self._parts.table, fold_unquoted=True)
        as_written = split_table_name(self._parts.table)
        try:
            return folded[1], inspector.get_columns(folded[1], schema=folded[0])
        except NoSuchTableError:
            if folded == as_written:
                raise
        return as_written[1], inspector.get_columns(as_written[1], schema=as_written[0])

    def execute_update(self) -> int:
        self._check_open()
        missing = [
            position
            for position in range(1, self._parts.placeholder_count + 1)
            if position not in self._values
        ]
        if missing:
            raise StatementError(f"No value bound for parameter position(s) {missing}")

        clause = self._clause.bindparams(
            *(bindparam(name, self._values[i]) for i, name in enumerate(self._names, start=1))
        )
        result = self._conn.execute(clause)
        try:
            return int(result.rowcount)
        finally:
            result.close()

    def close(self) -> None:
        self._closed = True
        self._values.clear()
