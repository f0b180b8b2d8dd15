"""
Value generators produce the values of generated-value columns, one value
per inserted row.

A generator is any object with a ``next_value()`` method. Generators are
invoked when an Insert is built, never when it is executed, so the values
they produce are fixed for the lifetime of the Insert.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Iterable, Iterator, Protocol

from .errors import GeneratorExhaustedError


class ValueGenerator(Protocol):
    def next_value(self) -> Any:
        ...


class ConstantValueGenerator:
    def __init__(self, value: Any) -> None:
        self.value = value

    def next_value(self) -> Any:
        return self.value

    def __repr__(self) -> str:
        return f"constant({self.value!r})"


class SequenceValueGenerator:
    """Integer sequence: start_at, start_at + increment_by, ..."""

    def __init__(self, start_at: int = 1, increment_by: int = 1) -> None:
        if increment_by == 0:
            raise ValueError("increment_by must not be 0")
        self.start_at = start_at
        self.increment_by = increment_by
        self._next = start_at

    def next_value(self) -> int:
        value = self._next
        self._next += self.increment_by
        return value

    def __repr__(self) -> str:
        return f"sequence(start_at={self.start_at}, increment_by={self.increment_by})"


class StringSequenceValueGenerator:
    """
    String sequence made of a prefix and an integer sequence:
    ``string_sequence("CODE-", left_padding=3)`` yields CODE-001, CODE-002, ...
    """

    def __init__(
        self,
        prefix: str,
        start_at: int = 1,
        increment_by: int = 1,
        left_padding: int = 0,
    ) -> None:
        if not isinstance(prefix, str):
            raise TypeError(f"prefix must be a string, got {type(prefix).__name__}")
        if left_padding < 0:
            raise ValueError("left_padding must be >= 0")
        self.prefix = prefix
        self.left_padding = left_padding
        self._numbers = SequenceValueGenerator(start_at, increment_by)

    def next_value(self) -> str:
        number = self._numbers.next_value()
        return f"{self.prefix}{number:0{self.left_padding}d}" if self.left_padding else f"{self.prefix}{number}"

    def __repr__(self) -> str:
        return (
            f"string_sequence({self.prefix!r}, start_at={self._numbers.start_at}, "
            f"increment_by={self._numbers.increment_by}, left_padding={self.left_padding})"
        )


class DateSequenceValueGenerator:
    """Sequence of dates (or datetimes) advancing by a fixed timedelta."""

    def __init__(
        self,
        start: date | datetime | None = None,
        increment: timedelta = timedelta(days=1),
    ) -> None:
        if not increment:
            raise ValueError("increment must not be a zero timedelta")
        self.start = date.today() if start is None else start
        self.increment = increment
        self._next = self.start

    def next_value(self) -> date:
        value = self._next
        self._next = value + self.increment
        return value

    def __repr__(self) -> str:
        return f"date_sequence(start={self.start!r}, increment={self.increment!r})"


class IteratorValueGenerator:
    """Adapts an iterable (e.g. ``itertools.count(100)``) to a ValueGenerator."""

    def __init__(self, iterable: Iterable[Any]) -> None:
        self._iterator: Iterator[Any] = iter(iterable)

    def next_value(self) -> Any:
        try:
            return next(self._iterator)
        except StopIteration:
            raise GeneratorExhaustedError("the underlying iterator has no more values") from None


def constant(value: Any) -> ConstantValueGenerator:
    return ConstantValueGenerator(value)


def sequence(start_at: int = 1, increment_by: int = 1) -> SequenceValueGenerator:
    return SequenceValueGenerator(start_at, increment_by)


def string_sequence(
    prefix: str,
    start_at: int = 1,
    increment_by: int = 1,
    left_padding: int = 0,
) -> StringSequenceValueGenerator:
    return StringSequenceValueGenerator(prefix, start_at, increment_by, left_padding)


def date_sequence(
    start: date | datetime | None = None,
    increment: timedelta = timedelta(days=1),
) -> DateSequenceValueGenerator:
    return DateSequenceValueGenerator(start, increment)


def from_iterator(iterable: Iterable[Any]) -> IteratorValueGenerator:
    return IteratorValueGenerator(iterable)


def as_value_generator(generator: Any) -> ValueGenerator:
    """Return ``generator`` itself if it has next_value(), else wrap it as an iterator."""
    if hasattr(generator, "next_value"):
        return generator
    if isinstance(generator, Iterator):
        return IteratorValueGenerator(generator)
    raise TypeError(
        f"expected a ValueGenerator or an iterator, got {type(generator).__name__}"
    )
