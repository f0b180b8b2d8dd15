class DbSeedError(Exception):
    """Base exception for dbseed errors."""


class BuilderStateError(DbSeedError):
    """A builder method was called in a state that forbids it (e.g. after build())."""


class BuilderArgumentError(DbSeedError, ValueError):
    """A builder method received arguments inconsistent with the declared columns."""


class StatementError(DbSeedError):
    """A prepared statement was misused (bad position, unbound parameter, closed)."""


class GeneratorExhaustedError(DbSeedError):
    """An iterator-backed value generator ran out of values."""
