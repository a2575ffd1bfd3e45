import sqlite3

import pytest

from flowwallet.migrations import initial, misc_steps
from flowwallet.migrations.base import column_names, has_table


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    initial.migrate(conn)
    yield conn
    conn.close()


def _steps():
    return {m.id: m for m in misc_steps.migrations()}


def test_ids_in_order():
    assert [m.id for m in misc_steps.migrations()] == [
        "20211015",
        "20211118",
        "m20211130",
        "20211202",
        "20211221_2",
        "20221001",
    ]


def test_flow_transaction_column_round_trip(connection):
    step = _steps()[misc_steps.ID_FLOW_TRANSACTION]
    step.migrate(connection)
    assert "flow_transaction" in column_names(connection, "transactions")
    step.rollback(connection)
    assert "flow_transaction" not in column_names(connection, "transactions")
    assert "proposer_address" in column_names(connection, "transactions")


def test_flow_transaction_creates_table_when_missing():
    conn = sqlite3.connect(":memory:")
    _steps()[misc_steps.ID_FLOW_TRANSACTION].migrate(conn)
    assert "flow_transaction" in column_names(conn, "transactions")
    conn.close()


def test_storable_public_key_round_trip(connection):
    step = _steps()[misc_steps.ID_STORABLE_PUBLIC_KEY]
    assert "public_key" not in column_names(connection, "storable_keys")
    step.migrate(connection)
    assert "public_key" in column_names(connection, "storable_keys")
    step.rollback(connection)
    assert "public_key" not in column_names(connection, "storable_keys")


def test_system_settings_table_and_default(connection):
    step = _steps()[misc_steps.ID_SYSTEM_SETTINGS]
    step.migrate(connection)
    assert has_table(connection, "system_settings")
    connection.execute("INSERT INTO system_settings (created_at) VALUES (NULL)")
    (mode,) = connection.execute("SELECT maintenance_mode FROM system_settings").fetchone()
    assert mode == 0
    step.rollback(connection)
    assert not has_table(connection, "system_settings")


def test_idempotency_keys_round_trip(connection):
    step = _steps()[misc_steps.ID_IDEMPOTENCY_KEYS]
    step.migrate(connection)
    assert column_names(connection, "idempotency_keys") == ["key", "expiry_date"]
    step.rollback(connection)
    assert not has_table(connection, "idempotency_keys")


def test_paused_since_added_to_existing_settings(connection):
    steps = _steps()
    steps[misc_steps.ID_SYSTEM_SETTINGS].migrate(connection)
    connection.execute("INSERT INTO system_settings (maintenance_mode) VALUES (1)")
    steps[misc_steps.ID_SETTINGS_PAUSED_SINCE].migrate(connection)
    assert "paused_since" in column_names(connection, "system_settings")
    row = connection.execute(
        "SELECT maintenance_mode, paused_since FROM system_settings"
    ).fetchone()
    assert row == (1, None)
    steps[misc_steps.ID_SETTINGS_PAUSED_SINCE].rollback(connection)
    assert "paused_since" not in column_names(connection, "system_settings")
    assert "maintenance_mode" in column_names(connection, "system_settings")


def test_token_paths_round_trip(connection):
    step = _steps()[misc_steps.ID_TOKEN_PATHS]
    step.migrate(connection)
    columns = column_names(connection, "tokens")
    for column in ("receiver_public_path", "balance_public_path", "vault_storage_path"):
        assert column in columns
    step.rollback(connection)
    columns = column_names(connection, "tokens")
    assert not set(misc_steps.TOKEN_PATH_COLUMNS) & set(columns)


def test_token_paths_twice_fails(connection):
    step = _steps()[misc_steps.ID_TOKEN_PATHS]
    step.migrate(connection)
    with pytest.raises(sqlite3.OperationalError):
        step.migrate(connection)


def test_token_paths_without_tokens_table_fails():
    conn = sqlite3.connect(":memory:")
    with pytest.raises(sqlite3.OperationalError):
        _steps()[misc_steps.ID_TOKEN_PATHS].migrate(conn)
    conn.close()