from .db.session import DbSession
from .launch import launch
from .operation import Insert, sequence_of

__all__ = ["Insert", "sequence_of", "launch", "DbSession"]
