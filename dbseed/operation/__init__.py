from .base import CompositeOperation, Operation, sequence_of
from .insert import Insert, InsertBuilder, RowBuilder

__all__ = [
    "Operation",
    "CompositeOperation",
    "sequence_of",
    "Insert",
    "InsertBuilder",
    "RowBuilder",
]
