from __future__ import annotations

from typing import Iterable, Protocol, Union

from ..binders import BinderConfiguration
from ..db.statement import StatementConnection


class Operation(Protocol):
    """
    Protocol for anything that populates the database through a connection.

    Operations are immutable and may be executed any number of times.
    """

    def execute(
        self,
        connection: StatementConnection,
        configuration: BinderConfiguration | None = None,
    ) -> None:
        ...


class CompositeOperation:
    """Executes a sequence of operations in order, stopping at the first failure."""

    __slots__ = ("_operations",)

    def __init__(self, operations: Iterable[Operation]) -> None:
        self._operations: tuple[Operation, ...] = tuple(operations)

    @property
    def operations(self) -> tuple[Operation, ...]:
        return self._operations

    def execute(
        self,
        connection: StatementConnection,
        configuration: BinderConfiguration | None = None,
    ) -> None:
        for operation in self._operations:
            operation.execute(connection, configuration)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompositeOperation):
            return NotImplemented
        return self._operations == other._operations

    def __hash__(self) -> int:
        return hash(self._operations)

    def __repr__(self) -> str:
        return f"sequence_of({', '.join(repr(op) for op in self._operations)})"


def sequence_of(*operations: Union[Operation, Iterable[Operation]]) -> CompositeOperation:
    """
    Build an operation executing the given operations in order.

    Arguments may be operations or iterables of operations; iterables are
    flattened one level:

        sequence_of(insert_vendors, [insert_clients, insert_orders])
    """
    flattened: list[Operation] = []
    for item in operations:
        if hasattr(item, "execute"):
            flattened.append(item)
        else:
            flattened.extend(item)
    return CompositeOperation(flattened)
