"""Building blocks shared by the database schema migrations."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Callable

MigrationStep = Callable[[sqlite3.Connection], None]


@dataclass(frozen=True)
class Migration:
    """A schema change identified by id, with its forward and backward step."""

    id: str
    migrate: MigrationStep
    rollback: MigrationStep


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _exists(connection: sqlite3.Connection, kind: str, name: str) -> bool:
    row = connection.execute(
        "SELECT 1 FROM sqlite_master WHERE type = ? AND name = ?", (kind, name)
    ).fetchone()
    return row is not None


def has_table(connection: sqlite3.Connection, table: str) -> bool:
    """True if the database holds a table of this name."""
    return _exists(connection, "table", table)


def column_names(connection: sqlite3.Connection, table: str) -> list[str]:
    """Names of a table's columns in declaration order; empty if it is missing."""
    return [row[1] for row in connection.execute(f"PRAGMA table_info({_quote(table)})")]


def has_index(connection: sqlite3.Connection, index: str) -> bool:
    """True if the database holds an index of this name."""
    return _exists(connection, "index", index)