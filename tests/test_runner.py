import sqlite3

import pytest

from flowwallet.migrations.base import Migration, column_names, has_index, has_table
from flowwallet.migrations.runner import Migrator, list_migrations, migrate_database

EXPECTED_IDS = [
    "20210922",
    "20211005",
    "20211015",
    "20211118",
    "m20211130",
    "20211202",
    "20211220",
    "20211221_1",
    "20211221_2",
    "20220212",
    "20221001",
]


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()


def test_list_order():
    assert [m.id for m in list_migrations()] == EXPECTED_IDS


def test_migrate_database_applies_all(connection):
    applied = migrate_database(connection)
    assert applied == EXPECTED_IDS
    assert Migrator(connection, list_migrations()).applied_ids() == EXPECTED_IDS
    assert has_table(connection, "system_settings")
    assert has_table(connection, "idempotency_keys")
    assert has_index(connection, "idx_jobs_state_updated_at")
    jobs = column_names(connection, "jobs")
    assert "state" in jobs and "status" not in jobs
    assert "paused_since" in column_names(connection, "system_settings")


def test_migrate_is_idempotent(connection):
    migrate_database(connection)
    assert migrate_database(connection) == []


def test_applied_ids_empty_without_table(connection):
    assert Migrator(connection, list_migrations()).applied_ids() == []


def test_rollback_last(connection):
    migrator = Migrator(connection, list_migrations())
    migrator.migrate()
    assert migrator.rollback_last() == "20221001"
    assert "vault_storage_path" not in column_names(connection, "tokens")
    assert migrator.applied_ids() == EXPECTED_IDS[:-1]
    assert migrator.migrate() == ["20221001"]
    assert "vault_storage_path" in column_names(connection, "tokens")


def test_full_rollback_removes_schema(connection):
    migrator = Migrator(connection, list_migrations())
    migrator.migrate()
    undone = [migrator.rollback_last() for _ in EXPECTED_IDS]
    assert undone == list(reversed(EXPECTED_IDS))
    assert migrator.applied_ids() == []
    for table in ("jobs", "tokens", "accounts", "system_settings", "idempotency_keys"):
        assert not has_table(connection, table)


def test_rollback_with_nothing_applied(connection):
    with pytest.raises(LookupError):
        Migrator(connection, list_migrations()).rollback_last()


def test_duplicate_ids_rejected(connection):
    step = Migration("a", lambda c: None, lambda c: None)
    with pytest.raises(ValueError):
        Migrator(connection, [step, step])


def test_empty_id_rejected(connection):
    with pytest.raises(ValueError):
        Migrator(connection, [Migration("", lambda c: None, lambda c: None)])


def test_failed_migration_is_rolled_back(connection):
    def broken(conn):
        conn.execute("CREATE TABLE half_done (x INTEGER)")
        raise RuntimeError("boom")

    ok = Migration("one", lambda c: c.execute("CREATE TABLE first (x INTEGER)"), lambda c: None)
    bad = Migration("two", broken, lambda c: None)
    migrator = Migrator(connection, [ok, bad])
    with pytest.raises(RuntimeError):
        migrator.migrate()
    assert migrator.applied_ids() == ["one"]
    assert has_table(connection, "first")
    assert not has_table(connection, "half_done")