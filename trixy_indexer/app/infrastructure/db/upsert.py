from __future__ import annotations

from typing import Any, Sequence

from sqlalchemy import Insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert


def insert_on_conflict_do_nothing(
    *,
    dialect_name: str,
    table: Any,
    conflict_columns: Sequence[str],
) -> Insert:
    """
    INSERT ... ON CONFLICT (<conflict_columns>) DO NOTHING for the given dialect.

    A conflicting row yields rowcount == 0, which callers use to tell
    "already stored" apart from a fresh insert.
    """
    if dialect_name == "postgresql":
        return pg_insert(table).on_conflict_do_nothing(index_elements=list(conflict_columns))
    if dialect_name == "sqlite":
        return sqlite_insert(table).on_conflict_do_nothing(index_elements=list(conflict_columns))
    raise ValueError(f"Unsupported dialect for idempotent inserts: {dialect_name!r}")
