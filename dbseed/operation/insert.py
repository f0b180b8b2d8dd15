from __future__ import annotations

import logging
import time
from types import MappingProxyType
from typing import Any, Mapping

from ..binders import Binder, BinderConfiguration, DefaultBinderConfiguration, default_binder
from ..db.metrics import observe_insert
from ..db.statement import PreparedStatement, StatementConnection
from ..errors import BuilderArgumentError, BuilderStateError
from ..generators import ValueGenerator, as_value_generator, constant

logger = logging.getLogger(__name__)

_DEFAULT_CONFIGURATION = DefaultBinderConfiguration()


class Insert:
    """
    Operation inserting one or several rows into a table.

        insert = (
            Insert.into("CLIENT")
            .columns("CLIENT_ID", "FIRST_NAME", "LAST_NAME", "DATE_OF_BIRTH", "CLIENT_TYPE")
            .values(1, "John", "Doe", "1975-07-19", ClientType.NORMAL)
            .values(2, "Jack", "Smith", "1969-08-22", ClientType.HIGH_PRIORITY)
            .with_default_value("DELETED", False)
            .with_default_value("VERSION", 1)
            .with_binder(ClientTypeBinder(), "CLIENT_TYPE")
            .build()
        )

    Every row gets DELETED = false and VERSION = 1. CLIENT_TYPE is bound with
    the given binder instead of the one derived from the column type.

    Rows may also be given as mappings, in which case columns missing from
    the mapping are inserted as NULL:

        (
            Insert.into("CLIENT")
            .columns("CLIENT_ID", "FIRST_NAME", "DATE_OF_BIRTH")
            .values({"CLIENT_ID": 1, "FIRST_NAME": "John"})
            .row().column("CLIENT_ID", 2).column("FIRST_NAME", "Jack").build()
            .build()
        )

    An Insert is immutable. Generated values are computed once, when it is
    built, so executing it several times inserts the same rows each time.
    """

    __slots__ = (
        "_table",
        "_columns",
        "_rows",
        "_generated_values",
        "_binders",
        "_metadata_used",
    )

    def __init__(self, builder: "InsertBuilder") -> None:
        rows = tuple(builder._rows)
        _set = object.__setattr__
        _set(self, "_table", builder._table)
        _set(self, "_columns", tuple(builder._columns))
        _set(self, "_rows", rows)
        _set(
            self,
            "_generated_values",
            MappingProxyType(_generate_values(builder._generators, len(rows))),
        )
        _set(self, "_binders", MappingProxyType(dict(builder._binders)))
        _set(self, "_metadata_used", builder._metadata_used)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Insert is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Insert is immutable; cannot delete {name!r}")

    @staticmethod
    def into(table: str) -> "InsertBuilder":
        """Create a builder for an Insert operation into ``table``."""
        if not isinstance(table, str):
            raise TypeError(f"table must be a string, got {type(table).__name__}")
        if not table.strip():
            raise ValueError("table cannot be empty")
        return InsertBuilder(table)

    @property
    def table(self) -> str:
        return self._table

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    @property
    def rows(self) -> tuple[tuple[Any, ...], ...]:
        return self._rows

    @property
    def generated_values(self) -> Mapping[str, tuple[Any, ...]]:
        return self._generated_values

    @property
    def binders(self) -> Mapping[str, Binder]:
        return self._binders

    @property
    def metadata_used(self) -> bool:
        return self._metadata_used

    @property
    def all_column_names(self) -> tuple[str, ...]:
        """Declared columns followed by generated-value columns, in registration order."""
        return self._columns + tuple(self._generated_values)

    @property
    def sql(self) -> str:
        columns = self.all_column_names
        return (
            f"INSERT INTO {self._table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )

    def execute(
        self,
        connection: StatementConnection,
        configuration: BinderConfiguration | None = None,
    ) -> None:
        """
        Insert the rows, and their generated values, into the table.

        Unless metadata use has been disabled, ``configuration`` chooses the
        binder of each column from the statement's parameter metadata. A
        binder explicitly associated with a column always wins.

        The statement is closed whatever happens. The first failure aborts the
        remaining rows and is propagated unchanged.
        """
        if configuration is None:
            configuration = _DEFAULT_CONFIGURATION
        all_columns = self.all_column_names
        sql = self.sql

        start_time = time.monotonic()
        status = "success"
        executed = 0
        logger.debug("Inserting %d row(s) into %s: %s", len(self._rows), self._table, sql)

        try:
            stmt = connection.prepare(sql)
            try:
                metadata_binders: dict[str, Binder] = {}
                if self._metadata_used:
                    self._initialize_binders(stmt, all_columns, configuration, metadata_binders)

                for row_index, row in enumerate(self._rows):
                    position = 1
                    for column, value in zip(self._columns, row):
                        self._binder_for(column, metadata_binders).bind(stmt, position, value)
                        position += 1
                    for column, values in self._generated_values.items():
                        self._binder_for(column, metadata_binders).bind(
                            stmt, position, values[row_index]
                        )
                        position += 1

                    stmt.execute_update()
                    executed += 1
            finally:
                stmt.close()
        except Exception:
            status = "error"
            logger.debug(
                "Insert into %s failed after %d of %d row(s)",
                self._table,
                executed,
                len(self._rows),
            )
            raise
        finally:
            observe_insert(self._table, status, executed, time.monotonic() - start_time)

    def _initialize_binders(
        self,
        stmt: PreparedStatement,
        all_columns: tuple[str, ...],
        configuration: BinderConfiguration,
        metadata_binders: dict[str, Binder],
    ) -> None:
        metadata = stmt.parameter_metadata()
        for position, column in enumerate(all_columns, start=1):
            if column not in self._binders:
                metadata_binders[column] = configuration.get_binder(metadata, position)

    def _binder_for(self, column: str, metadata_binders: Mapping[str, Binder]) -> Binder:
        binder = self._binders.get(column)
        if binder is None:
            binder = metadata_binders.get(column)
        if binder is None:
            binder = default_binder()
        return binder

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Insert):
            return NotImplemented
        return (
            self._table == other._table
            and self._columns == other._columns
            and self._rows == other._rows
            and dict(self._generated_values) == dict(other._generated_values)
            and dict(self._binders) == dict(other._binders)
            and self._metadata_used == other._metadata_used
        )

    def __hash__(self) -> int:
        # rows may hold unhashable values
        return hash((self._table, self._columns, self._metadata_used))

    def __repr__(self) -> str:
        return (
            f"Insert(table={self._table!r}, columns={list(self._columns)!r}, "
            f"generated_values={dict(self._generated_values)!r}, rows={list(self._rows)!r}, "
            f"metadata_used={self._metadata_used!r}, binders={dict(self._binders)!r})"
        )


def _generate_values(
    generators: Mapping[str, ValueGenerator], count: int
) -> dict[str, tuple[Any, ...]]:
    return {
        column: tuple(generator.next_value() for _ in range(count))
        for column, generator in generators.items()
    }


class InsertBuilder:
    """
    Builder of an Insert operation, created by ``Insert.into(table)``.

    A builder may only be used once: after build(), every method raises
    BuilderStateError.
    """

    def __init__(self, table: str) -> None:
        self._table = table
        self._columns: list[str] = []
        self._generators: dict[str, ValueGenerator] = {}
        self._rows: list[tuple[Any, ...]] = []
        self._metadata_used = True
        self._binders: dict[str, Binder] = {}
        self._built = False

    def _check_not_built(self) -> None:
        if self._built:
            raise BuilderStateError("The insert has already been built")

    def columns(self, *columns: str) -> "InsertBuilder":
        """
        Declare the columns the values of each row are inserted into.

        Raises:
            BuilderStateError: If the insert has been built, if columns have
                already been declared, or if a column is already a
                generated-value column.
            BuilderArgumentError: If no column or a duplicate column is given.
        """
        self._check_not_built()
        if self._columns:
            raise BuilderStateError("columns have already been specified")
        if not columns:
            raise BuilderArgumentError("at least one column must be specified")
        for column in columns:
            _check_column_name(column)
            if column in self._generators:
                raise BuilderStateError(
                    f"column {column} has already been specified as generated value column"
                )
        duplicates = sorted({c for c in columns if columns.count(c) > 1})
        if duplicates:
            raise BuilderArgumentError(f"duplicate column names: {duplicates}")
        self._columns.extend(columns)
        return self

    def values(self, *values: Any) -> "InsertBuilder":
        """
        Add a row of values, in the order of the declared columns.

        A single Mapping argument is treated as a row keyed by column name
        (see values_map()). To insert a mapping into a single-column table,
        use row().column(name, mapping).build().

        Raises:
            BuilderStateError: If the insert has been built.
            BuilderArgumentError: If the number of values doesn't match the
                number of declared columns.
        """
        if len(values) == 1 and isinstance(values[0], Mapping):
            return self.values_map(values[0])
        self._check_not_built()
        if len(values) != len(self._columns):
            raise BuilderArgumentError(
                f"The number of values ({len(values)}) doesn't match "
                f"the number of columns ({len(self._columns)})"
            )
        self._rows.append(tuple(values))
        return self

    def values_map(self, row: Mapping[str, Any]) -> "InsertBuilder":
        """
        Add a row given as a column name -> value mapping. Declared columns
        missing from the mapping are inserted as NULL.

        Raises:
            BuilderStateError: If the insert has been built.
            BuilderArgumentError: If a key of the mapping is not a declared column.
        """
        self._check_not_built()
        if not isinstance(row, Mapping):
            raise TypeError(f"row must be a mapping, got {type(row).__name__}")
        unknown = set(row) - set(self._columns)
        if unknown:
            raise BuilderArgumentError(
                "The following columns of the row don't match with any column name: "
                f"{sorted(unknown, key=str)}"
            )
        return self._add_row(row)

    def _add_row(self, row: Mapping[str, Any]) -> "InsertBuilder":
        self._check_not_built()
        self._rows.append(tuple(row.get(column) for column in self._columns))
        return self

    def row(self) -> "RowBuilder":
        """Start a row with named columns; RowBuilder.build() adds it and returns this builder."""
        self._check_not_built()
        return RowBuilder(self)

    def with_binder(self, binder: Binder, *columns: str) -> "InsertBuilder":
        """
        Use ``binder`` for the given columns, regardless of the metadata.

        Raises:
            BuilderStateError: If the insert has been built.
            BuilderArgumentError: If a column is neither a declared nor a
                generated-value column.
        """
        self._check_not_built()
        if binder is None:
            raise TypeError("binder may not be None")
        for column in columns:
            if column not in self._columns and column not in self._generators:
                raise BuilderArgumentError(
                    f"column {column} is not one of the registered column names"
                )
        for column in columns:
            self._binders[column] = binder
        return self

    def with_default_value(self, column: str, value: Any) -> "InsertBuilder":
        """Insert ``value`` into ``column`` for every row. Same as with_generated_value(column, constant(value))."""
        return self.with_generated_value(column, constant(value))

    def with_generated_value(self, column: str, generator: Any) -> "InsertBuilder":
        """
        Populate ``column`` with values from ``generator`` (a ValueGenerator or
        an iterator), called once per row when the insert is built.

        Raises:
            BuilderStateError: If the insert has been built.
            BuilderArgumentError: If the column is a declared column.
        """
        self._check_not_built()
        _check_column_name(column)
        if generator is None:
            raise TypeError("generator may not be None")
        if column in self._columns:
            raise BuilderArgumentError(
                f"column {column} is already listed in the list of column names"
            )
        self._generators[column] = as_value_generator(generator)
        return self

    def use_metadata(self, use_metadata: bool = True) -> "InsertBuilder":
        """
        Whether the statement's parameter metadata selects the binder of each
        column without an explicit binder (the default). When disabled,
        default_binder() is used for those columns.
        """
        self._check_not_built()
        self._metadata_used = bool(use_metadata)
        return self

    def build(self) -> Insert:
        """
        Build the Insert, computing generated values for every row added so far.

        Raises:
            BuilderStateError: If the insert has already been built, or if no
                column and no generated-value column has been specified.
        """
        self._check_not_built()
        if not self._columns and not self._generators:
            raise BuilderStateError("no column and no generated value column has been specified")
        self._built = True
        return Insert(self)


class RowBuilder:
    """
    Builds one row with named columns, created by ``InsertBuilder.row()``:

        builder.row().column("CLIENT_ID", 1).column("FIRST_NAME", "John").build()
    """

    def __init__(self, builder: InsertBuilder) -> None:
        self._builder = builder
        self._row: dict[str, Any] = {}

    def column(self, name: str, value: Any) -> "RowBuilder":
        """Set the value of a declared column, replacing any previous value."""
        _check_column_name(name)
        if name not in self._builder._columns:
            raise BuilderArgumentError(f"column {name} is not one of the registered column names")
        self._row[name] = value
        return self

    def build(self) -> InsertBuilder:
        """Add the row to the insert builder and return it."""
        return self._builder._add_row(self._row)


def _check_column_name(column: Any) -> None:
    if not isinstance(column, str):
        raise TypeError(f"column must be a string, got {type(column).__name__}")
