"""Ordered list of schema migrations and a runner that applies them."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable

from flowwallet.migrations import initial, job_steps, misc_steps
from flowwallet.migrations.base import Migration, MigrationStep, has_table

MIGRATIONS_TABLE = "migrations"

_ORDER = (
    initial.ID,
    job_steps.ID_JOB_STATE,
    misc_steps.ID_FLOW_TRANSACTION,
    misc_steps.ID_STORABLE_PUBLIC_KEY,
    misc_steps.ID_SYSTEM_SETTINGS,
    misc_steps.ID_IDEMPOTENCY_KEYS,
    job_steps.ID_JOB_ATTRIBUTES,
    job_steps.ID_JOB_ERRORS,
    misc_steps.ID_SETTINGS_PAUSED_SINCE,
    job_steps.ID_JOB_STATE_INDEX,
    misc_steps.ID_TOKEN_PATHS,
)


def list_migrations() -> list[Migration]:
    """Every schema migration, in the order they must be applied."""
    by_id = {
        m.id: m
        for m in (*initial.migrations(), *job_steps.migrations(), *misc_steps.migrations())
    }
    return [by_id[migration_id] for migration_id in _ORDER]


class Migrator:
    """Applies migrations once each, recording their ids in the database."""

    def __init__(self, connection: sqlite3.Connection, migrations: Iterable[Migration]) -> None:
        self._connection = connection
        self._migrations = list(migrations)
        seen: set[str] = set()
        for migration in self._migrations:
            if not migration.id:
                raise ValueError("migration is missing an id")
            if migration.id in seen:
                raise ValueError(f"duplicated migration id: {migration.id!r}")
            seen.add(migration.id)

    def _ensure_table(self) -> None:
        self._connection.execute(
            f'CREATE TABLE IF NOT EXISTS "{MIGRATIONS_TABLE}" ("id" TEXT PRIMARY KEY)'
        )
        self._connection.commit()

    def applied_ids(self) -> list[str]:
        """Ids of applied migrations, in the order they were applied."""
        if not has_table(self._connection, MIGRATIONS_TABLE):
            return []
        rows = self._connection.execute(f'SELECT "id" FROM "{MIGRATIONS_TABLE}" ORDER BY rowid')
        return [row[0] for row in rows]

    def _run(self, step: MigrationStep, record: str, params: tuple[str]) -> None:
        connection = self._connection
        connection.commit()
        connection.execute("BEGIN")
        try:
            step(connection)
            connection.execute(record, params)
        except BaseException:
            connection.rollback()
            raise
        connection.commit()

    def migrate(self) -> list[str]:
        """Apply every migration not yet applied; return the ids applied now."""
        self._ensure_table()
        applied = set(self.applied_ids())
        done = []
        for migration in self._migrations:
            if migration.id in applied:
                continue
            self._run(
                migration.migrate,
                f'INSERT INTO "{MIGRATIONS_TABLE}" ("id") VALUES (?)',
                (migration.id,),
            )
            done.append(migration.id)
        return done

    def rollback_last(self) -> str:
        """Undo the most recent applied migration and return its id."""
        applied = set(self.applied_ids())
        for migration in reversed(self._migrations):
            if migration.id in applied:
                self._run(
                    migration.rollback,
                    f'DELETE FROM "{MIGRATIONS_TABLE}" WHERE "id" = ?',
                    (migration.id,),
                )
                return migration.id
        raise LookupError("could not find last run migration")


def migrate_database(connection: sqlite3.Connection) -> list[str]:
    """Bring a database up to the current schema."""
    return Migrator(connection, list_migrations()).migrate()