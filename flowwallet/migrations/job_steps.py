"""Migrations that evolve the jobs table."""

from __future__ import annotations

import sqlite3

from flowwallet.migrations.base import Migration, column_names, has_table

ID_JOB_STATE = "20211005"
ID_JOB_ATTRIBUTES = "20211220"
ID_JOB_ERRORS = "20211221_1"
ID_JOB_STATE_INDEX = "20220212"

JOBS_TABLE = "jobs"
STATE_UPDATED_AT_INDEX = "idx_jobs_state_updated_at"

_BASE_JOB_COLUMNS: tuple[tuple[str, str], ...] = (
    ("id", "TEXT PRIMARY KEY"),
    ("type", "TEXT"),
    ("state", "TEXT DEFAULT 'INIT'"),
    ("error", "TEXT"),
    ("result", "TEXT"),
    ("transaction_id", "TEXT"),
    ("exec_count", "INTEGER DEFAULT 0"),
    ("created_at", "DATETIME"),
    ("updated_at", "DATETIME"),
    ("deleted_at", "DATETIME"),
)

_STATE_JOB_COLUMNS = _BASE_JOB_COLUMNS + (("status", "INTEGER"),)
_ATTRIBUTE_JOB_COLUMNS = _BASE_JOB_COLUMNS + (("attributes", "TEXT"),)
_ERRORS_JOB_COLUMNS = _ATTRIBUTE_JOB_COLUMNS + (("errors", "TEXT"),)

# Numeric status of the old job model and the state that replaced it.
_STATUS_TO_STATE = (
    (0, "INIT"),
    (1, "INIT"),
    (2, "ACCEPTED"),
    (3, "NO_AVAILABLE_WORKERS"),
    (4, "NO_AVAILABLE_WORKERS"),
    (5, "FAILED"),
    (6, "COMPLETE"),
)
_HIGHEST_KNOWN_STATUS = 6

_STATE_TO_STATUS = (
    ("INIT", 0),
    ("ACCEPTED", 2),
    ("NO_AVAILABLE_WORKERS", 3),
    ("FAILED", 5),
    ("COMPLETE", 6),
)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _ensure_jobs(connection: sqlite3.Connection, columns: tuple[tuple[str, str], ...]) -> None:
    """Create the jobs table, or add the given columns it lacks."""
    table = _quote(JOBS_TABLE)
    if not has_table(connection, JOBS_TABLE):
        body = ", ".join(f"{_quote(name)} {definition}" for name, definition in columns)
        connection.execute(f"CREATE TABLE {table} ({body})")
        connection.execute(
            f'CREATE INDEX IF NOT EXISTS "idx_jobs_deleted_at" ON {table} ("deleted_at")'
        )
        return
    existing = set(column_names(connection, JOBS_TABLE))
    for name, definition in columns:
        if name not in existing:
            connection.execute(f"ALTER TABLE {table} ADD COLUMN {_quote(name)} {definition}")


def _drop_job_column(connection: sqlite3.Connection, column: str) -> None:
    if column in column_names(connection, JOBS_TABLE):
        connection.execute(f"ALTER TABLE {_quote(JOBS_TABLE)} DROP COLUMN {_quote(column)}")


def _migrate_state(connection: sqlite3.Connection) -> None:
    _ensure_jobs(connection, _STATE_JOB_COLUMNS)
    for status, state in _STATUS_TO_STATE:
        connection.execute("UPDATE jobs SET state = ? WHERE status = ?", (state, status))
    connection.execute(
        "UPDATE jobs SET state = ? WHERE status > ?", ("FAILED", _HIGHEST_KNOWN_STATUS)
    )
    _drop_job_column(connection, "status")


def _rollback_state(connection: sqlite3.Connection) -> None:
    _ensure_jobs(connection, _STATE_JOB_COLUMNS)
    for state, status in _STATE_TO_STATUS:
        connection.execute("UPDATE jobs SET status = ? WHERE state = ?", (status, state))
    for column in ("state", "type", "exec_count"):
        _drop_job_column(connection, column)


def _migrate_attributes(connection: sqlite3.Connection) -> None:
    _ensure_jobs(connection, _ATTRIBUTE_JOB_COLUMNS)


def _rollback_attributes(connection: sqlite3.Connection) -> None:
    _drop_job_column(connection, "attributes")


def _migrate_errors(connection: sqlite3.Connection) -> None:
    _ensure_jobs(connection, _ERRORS_JOB_COLUMNS)


def _rollback_errors(connection: sqlite3.Connection) -> None:
    _drop_job_column(connection, "errors")


def _migrate_state_index(connection: sqlite3.Connection) -> None:
    connection.execute(
        f"CREATE INDEX {_quote(STATE_UPDATED_AT_INDEX)} "
        f'ON {_quote(JOBS_TABLE)} ("state", "updated_at")'
    )


def _rollback_state_index(connection: sqlite3.Connection) -> None:
    connection.execute(f"DROP INDEX {_quote(STATE_UPDATED_AT_INDEX)}")


def migrations() -> list[Migration]:
    """The jobs table migrations, in the order they are applied."""
    return [
        Migration(ID_JOB_STATE, _migrate_state, _rollback_state),
        Migration(ID_JOB_ATTRIBUTES, _migrate_attributes, _rollback_attributes),
        Migration(ID_JOB_ERRORS, _migrate_errors, _rollback_errors),
        Migration(ID_JOB_STATE_INDEX, _migrate_state_index, _rollback_state_index),
    ]