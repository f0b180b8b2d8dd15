from __future__ import annotations

import re
from dataclasses import dataclass

_INSERT_RE = re.compile(
    r"^\s*INSERT\s+INTO\s+(?P<table>.+?)\s*\((?P<columns>.*)\)\s*VALUES\s*\((?P<values>[^()]*)\)\s*;?\s*$",
    re.IGNORECASE | re.DOTALL,
)

# A qualified name part: `x`, "x", [x] or a bare run of non-dot characters.
_NAME_PART_RE = re.compile(r'`[^`]+`|"[^"]+"|\[[^\]]+\]|[^.]+')

_QUOTES = {"`": "`", '"': '"', "[": "]"}


@dataclass(frozen=True)
class InsertSqlParts:
    table: str
    columns: tuple[str, ...]
    placeholder_count: int

    def render(self, placeholders: list[str]) -> str:
        """Re-render the statement with the given placeholders, one per column."""
        if len(placeholders) != len(self.columns):
            raise ValueError(
                f"expected {len(self.columns)} placeholders, got {len(placeholders)}"
            )
        return (
            f"INSERT INTO {self.table} ({', '.join(self.columns)}) "
            f"VALUES ({', '.join(placeholders)})"
        )


def parse_insert_sql(sql: str) -> InsertSqlParts:
    """
    Split a single-row, positional INSERT statement into its parts.

    Only the shape rendered by Insert is accepted:

        INSERT INTO <table> (<c1>, <c2>, ...) VALUES (?, ?, ...)

    Raises:
        ValueError: If the statement has another shape, or if the number of
            placeholders does not match the number of columns.

    Example:
        >>> parse_insert_sql("INSERT INTO client (id, name) VALUES (?, ?)")
        InsertSqlParts(table='client', columns=('id', 'name'), placeholder_count=2)
    """
    match = _INSERT_RE.match(sql)
    if match is None:
        raise ValueError(f"Not a positional INSERT statement: {sql!r}")

    columns = tuple(c.strip() for c in match.group("columns").split(","))
    if any(not c for c in columns):
        raise ValueError(f"Empty column name in INSERT statement: {sql!r}")

    placeholders = [p.strip() for p in match.group("values").split(",")]
    if any(p != "?" for p in placeholders):
        raise ValueError(f"Only '?' placeholders are supported: {sql!r}")
    if len(placeholders) != len(columns):
        raise ValueError(
            f"INSERT statement has {len(columns)} columns but "
            f"{len(placeholders)} placeholders: {sql!r}"
        )

    return InsertSqlParts(
        table=match.group("table").strip(),
        columns=columns,
        placeholder_count=len(placeholders),
    )


def unquote_identifier(name: str) -> str:
    """Strip one level of `backtick`, "double quote" or [bracket] quoting."""
    name = name.strip()
    if len(name) >= 2 and name[0] in _QUOTES and name[-1] == _QUOTES[name[0]]:
        return name[1:-1]
    return name


def split_table_name(table: str, fold_unquoted: bool = False) -> tuple[str | None, str]:
    """
    Split a possibly schema-qualified table name into (schema, table).

    With ``fold_unquoted``, unquoted parts are lowercased, which is how
    SQLAlchemy reflection spells case-insensitive names. Quoted parts are
    kept as written.

    >>> split_table_name('app."CLIENT"')
    ('app', 'CLIENT')
    >>> split_table_name('APP."CLIENT"', fold_unquoted=True)
    ('app', 'CLIENT')
    """
    parts = [
        _fold_case(p) if fold_unquoted else unquote_identifier(p)
        for p in _NAME_PART_RE.findall(table.strip())
    ]
    if not parts:
        raise ValueError(f"Invalid table name: {table!r}")
    if len(parts) == 1:
        return None, parts[0]
    return ".".join(parts[:-1]), parts[-1]


def _fold_case(part: str) -> str:
    unquoted = unquote_identifier(part)
    return unquoted if unquoted != part.strip() else unquoted.lower()
