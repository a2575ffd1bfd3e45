"""Migrations for transactions, keys, settings, idempotency keys and tokens."""

from __future__ import annotations

import sqlite3

from flowwallet.migrations.base import Migration, column_names, has_table

ID_FLOW_TRANSACTION = "20211015"
ID_STORABLE_PUBLIC_KEY = "20211118"
# The leading 'm' is part of the recorded id and must stay.
ID_SYSTEM_SETTINGS = "m20211130"
ID_IDEMPOTENCY_KEYS = "20211202"
ID_SETTINGS_PAUSED_SINCE = "20211221_2"
ID_TOKEN_PATHS = "20221001"

TRANSACTIONS_TABLE = "transactions"
STORABLE_KEYS_TABLE = "storable_keys"
SETTINGS_TABLE = "system_settings"
IDEMPOTENCY_TABLE = "idempotency_keys"
TOKENS_TABLE = "tokens"

TOKEN_PATH_COLUMNS = ("receiver_public_path", "balance_public_path", "vault_storage_path")

Columns = tuple[tuple[str, str], ...]
Indexes = tuple[tuple[str, str], ...]

_TRANSACTION_COLUMNS: Columns = (
    ("transaction_id", "TEXT PRIMARY KEY"),
    ("transaction_type", "INTEGER"),
    ("proposer_address", "TEXT"),
    ("flow_transaction", "BLOB"),
    ("created_at", "DATETIME"),
    ("updated_at", "DATETIME"),
    ("deleted_at", "DATETIME"),
)
_TRANSACTION_INDEXES: Indexes = (
    ("idx_transactions_transaction_type", "transaction_type"),
    ("idx_transactions_proposer_address", "proposer_address"),
    ("idx_transactions_deleted_at", "deleted_at"),
)

_STORABLE_COLUMNS: Columns = (
    ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
    ("account_address", "TEXT"),
    ("index", "INTEGER"),
    ("type", "TEXT"),
    ("value", "BLOB"),
    ("public_key", "TEXT"),
    ("sign_algo", "TEXT"),
    ("hash_algo", "TEXT"),
    ("created_at", "DATETIME"),
    ("updated_at", "DATETIME"),
    ("deleted_at", "DATETIME"),
)
_STORABLE_INDEXES: Indexes = (
    ("idx_storable_keys_account_address", "account_address"),
    ("idx_storable_keys_index", "index"),
    ("idx_storable_keys_deleted_at", "deleted_at"),
)

_SETTINGS_COLUMNS: Columns = (
    ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
    ("created_at", "DATETIME"),
    ("updated_at", "DATETIME"),
    ("deleted_at", "DATETIME"),
    ("maintenance_mode", "BOOLEAN DEFAULT 0"),
)
_SETTINGS_PAUSED_COLUMNS: Columns = _SETTINGS_COLUMNS + (("paused_since", "DATETIME"),)
_SETTINGS_INDEXES: Indexes = (("idx_system_settings_deleted_at", "deleted_at"),)

_IDEMPOTENCY_COLUMNS: Columns = (
    ("key", "TEXT PRIMARY KEY"),
    ("expiry_date", "DATETIME"),
)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def _ensure_table(
    connection: sqlite3.Connection, table: str, columns: Columns, indexes: Indexes = ()
) -> None:
    """Create a table, or add the columns it lacks, and its single-column indexes."""
    if not has_table(connection, table):
        body = ", ".join(f"{_quote(name)} {definition}" for name, definition in columns)
        connection.execute(f"CREATE TABLE {_quote(table)} ({body})")
    else:
        existing = set(column_names(connection, table))
        for name, definition in columns:
            if name not in existing:
                connection.execute(
                    f"ALTER TABLE {_quote(table)} ADD COLUMN {_quote(name)} {definition}"
                )
    for index, column in indexes:
        connection.execute(
            f"CREATE INDEX IF NOT EXISTS {_quote(index)} ON {_quote(table)} ({_quote(column)})"
        )


def _drop_column(connection: sqlite3.Connection, table: str, column: str) -> None:
    if column in column_names(connection, table):
        connection.execute(f"ALTER TABLE {_quote(table)} DROP COLUMN {_quote(column)}")


def _drop_table(connection: sqlite3.Connection, table: str) -> None:
    connection.execute(f"DROP TABLE IF EXISTS {_quote(table)}")


def _migrate_flow_transaction(connection: sqlite3.Connection) -> None:
    _ensure_table(connection, TRANSACTIONS_TABLE, _TRANSACTION_COLUMNS, _TRANSACTION_INDEXES)


def _rollback_flow_transaction(connection: sqlite3.Connection) -> None:
    _drop_column(connection, TRANSACTIONS_TABLE, "flow_transaction")


def _migrate_storable_public_key(connection: sqlite3.Connection) -> None:
    _ensure_table(connection, STORABLE_KEYS_TABLE, _STORABLE_COLUMNS, _STORABLE_INDEXES)


def _rollback_storable_public_key(connection: sqlite3.Connection) -> None:
    _drop_column(connection, STORABLE_KEYS_TABLE, "public_key")


def _migrate_system_settings(connection: sqlite3.Connection) -> None:
    _ensure_table(connection, SETTINGS_TABLE, _SETTINGS_COLUMNS, _SETTINGS_INDEXES)


def _rollback_system_settings(connection: sqlite3.Connection) -> None:
    _drop_table(connection, SETTINGS_TABLE)


def _migrate_idempotency_keys(connection: sqlite3.Connection) -> None:
    _ensure_table(connection, IDEMPOTENCY_TABLE, _IDEMPOTENCY_COLUMNS)


def _rollback_idempotency_keys(connection: sqlite3.Connection) -> None:
    _drop_table(connection, IDEMPOTENCY_TABLE)


def _migrate_paused_since(connection: sqlite3.Connection) -> None:
    _ensure_table(connection, SETTINGS_TABLE, _SETTINGS_PAUSED_COLUMNS, _SETTINGS_INDEXES)


def _rollback_paused_since(connection: sqlite3.Connection) -> None:
    _drop_column(connection, SETTINGS_TABLE, "paused_since")


def _migrate_token_paths(connection: sqlite3.Connection) -> None:
    # Plain column additions: fails if a column already exists.
    for column in TOKEN_PATH_COLUMNS:
        connection.execute(
            f"ALTER TABLE {_quote(TOKENS_TABLE)} ADD COLUMN {_quote(column)} TEXT"
        )


def _rollback_token_paths(connection: sqlite3.Connection) -> None:
    for column in TOKEN_PATH_COLUMNS:
        _drop_column(connection, TOKENS_TABLE, column)


def migrations() -> list[Migration]:
    """The migrations defined here, in the order they are applied."""
    return [
        Migration(ID_FLOW_TRANSACTION, _migrate_flow_transaction, _rollback_flow_transaction),
        Migration(
            ID_STORABLE_PUBLIC_KEY, _migrate_storable_public_key, _rollback_storable_public_key
        ),
        Migration(ID_SYSTEM_SETTINGS, _migrate_system_settings, _rollback_system_settings),
        Migration(ID_IDEMPOTENCY_KEYS, _migrate_idempotency_keys, _rollback_idempotency_keys),
        Migration(ID_SETTINGS_PAUSED_SINCE, _migrate_paused_since, _rollback_paused_since),
        Migration(ID_TOKEN_PATHS, _migrate_token_paths, _rollback_token_paths),
    ]