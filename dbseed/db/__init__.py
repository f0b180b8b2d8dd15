from .helpers import InsertSqlParts, parse_insert_sql
from .session import DbSession
from .statement import (
    ParameterMetadata,
    PreparedStatement,
    SqlAlchemyStatement,
    StatementConnection,
)

__all__ = [
    "DbSession",
    "ParameterMetadata",
    "PreparedStatement",
    "StatementConnection",
    "SqlAlchemyStatement",
    "InsertSqlParts",
    "parse_insert_sql",
]
