"""
Binders attach a value to a parameter of a prepared statement, converting
it to the Python type the column expects on the way.

The DefaultBinderConfiguration picks a binder from the SQLAlchemy type the
statement reports for a parameter, so that fixture data can be written with
plain literals (e.g. ``"1975-07-19"`` for a DATE column).
"""
from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from sqlalchemy import types as sqltypes

from .db.statement import ParameterMetadata, PreparedStatement


class Binder(Protocol):
    def bind(self, statement: PreparedStatement, position: int, value: Any) -> None:
        """Bind ``value`` at the 1-based ``position`` of ``statement``."""
        ...


class BinderConfiguration(Protocol):
    def get_binder(self, metadata: ParameterMetadata | None, position: int) -> Binder:
        """Return the binder to use for the parameter at the 1-based ``position``."""
        ...


class _ConvertingBinder:
    """Binder applying a conversion to non-None values before binding them."""

    name = "converting"

    def convert(self, value: Any) -> Any:
        return value

    def bind(self, statement: PreparedStatement, position: int, value: Any) -> None:
        statement.bind(position, None if value is None else self.convert(value))

    def __repr__(self) -> str:
        return f"{self.name}_binder()"


class DefaultBinder(_ConvertingBinder):
    """Binds enums by name and everything else unchanged."""

    name = "default"

    def convert(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.name
        return value


class StringBinder(_ConvertingBinder):
    name = "string"

    def convert(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.name
        return str(value)


class DateBinder(_ConvertingBinder):
    """Accepts ISO-8601 strings, dates and datetimes (truncated to their date)."""

    name = "date"

    def convert(self, value: Any) -> Any:
        if isinstance(value, str):
            return date.fromisoformat(value)
        if isinstance(value, datetime):
            return value.date()
        return value


class TimestampBinder(_ConvertingBinder):
    """Accepts ISO-8601 strings, datetimes and dates (at midnight)."""

    name = "timestamp"

    def convert(self, value: Any) -> Any:
        if isinstance(value, str):
            return datetime.fromisoformat(value)
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time())
        return value


class TimeBinder(_ConvertingBinder):
    name = "time"

    def convert(self, value: Any) -> Any:
        if isinstance(value, str):
            return time.fromisoformat(value)
        if isinstance(value, datetime):
            return value.time()
        return value


class DecimalBinder(_ConvertingBinder):
    name = "decimal"

    def convert(self, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, (str, int, float)):
            # str() first, so that 0.1 becomes Decimal("0.1")
            return Decimal(str(value))
        return value


class IntegerBinder(_ConvertingBinder):
    name = "integer"

    def convert(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, str):
            return int(value)
        return value


_DEFAULT = DefaultBinder()
_STRING = StringBinder()
_DATE = DateBinder()
_TIMESTAMP = TimestampBinder()
_TIME = TimeBinder()
_DECIMAL = DecimalBinder()
_INTEGER = IntegerBinder()


def default_binder() -> Binder:
    return _DEFAULT


def string_binder() -> Binder:
    return _STRING


def date_binder() -> Binder:
    return _DATE


def timestamp_binder() -> Binder:
    return _TIMESTAMP


def time_binder() -> Binder:
    return _TIME


def decimal_binder() -> Binder:
    return _DECIMAL


def integer_binder() -> Binder:
    return _INTEGER


class DefaultBinderConfiguration:
    """
    Chooses a binder from the SQLAlchemy type reported for a parameter.

    ===================  ==================
    Reported type        Binder
    ===================  ==================
    DateTime/TIMESTAMP   timestamp_binder()
    Date                 date_binder()
    Time                 time_binder()
    Integer (all sizes)  integer_binder()
    Numeric (not Float)  decimal_binder()
    String/Text/Enum     string_binder()
    anything else        default_binder()
    ===================  ==================
    """

    def get_binder(self, metadata: ParameterMetadata | None, position: int) -> Binder:
        if metadata is None:
            return default_binder()
        sql_type = metadata.parameter_type(position)
        if sql_type is None:
            return default_binder()
        if isinstance(sql_type, sqltypes.DateTime):
            return timestamp_binder()
        if isinstance(sql_type, sqltypes.Date):
            return date_binder()
        if isinstance(sql_type, sqltypes.Time):
            return time_binder()
        if isinstance(sql_type, sqltypes.Integer):
            return integer_binder()
        if isinstance(sql_type, sqltypes.Numeric) and not isinstance(sql_type, sqltypes.Float):
            return decimal_binder()
        if isinstance(sql_type, sqltypes.String):
            return string_binder()
        return default_binder()

    def __repr__(self) -> str:
        return "DefaultBinderConfiguration()"
