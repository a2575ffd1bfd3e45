"""First migration: creates the whole schema as it stood at that time."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from flowwallet.migrations.base import Migration, column_names, has_table

ID = "20210922"


@dataclass(frozen=True)
class _Index:
    name: str
    columns: tuple[str, ...]
    unique: bool = False


@dataclass(frozen=True)
class _Table:
    name: str
    columns: tuple[tuple[str, str], ...]
    indexes: tuple[_Index, ...] = ()


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


_LISTENER_STATUS = _Table(
    "chain_events_status",
    (
        ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
        ("deleted_at", "DATETIME"),
        ("latest_height", "INTEGER"),
    ),
    (_Index("idx_chain_events_status_deleted_at", ("deleted_at",)),),
)

_JOBS = _Table(
    "jobs",
    (
        ("id", "TEXT PRIMARY KEY"),
        ("status", "INTEGER"),
        ("error", "TEXT"),
        ("result", "TEXT"),
        ("transaction_id", "TEXT"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
        ("deleted_at", "DATETIME"),
    ),
    (_Index("idx_jobs_deleted_at", ("deleted_at",)),),
)

_PROPOSAL_KEYS = _Table(
    "proposal_keys",
    (
        ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
        ("key_index", "INTEGER"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
    ),
    (_Index("idx_proposal_keys_key_index", ("key_index",), unique=True),),
)

_STORABLE_KEYS = _Table(
    "storable_keys",
    (
        ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
        (
            "account_address",
            "TEXT REFERENCES accounts(address) ON UPDATE CASCADE ON DELETE SET NULL",
        ),
        ("index", "INTEGER"),
        ("type", "TEXT"),
        ("value", "BLOB"),
        ("sign_algo", "TEXT"),
        ("hash_algo", "TEXT"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
        ("deleted_at", "DATETIME"),
    ),
    (
        _Index("idx_storable_keys_account_address", ("account_address",)),
        _Index("idx_storable_keys_index", ("index",)),
        _Index("idx_storable_keys_deleted_at", ("deleted_at",)),
    ),
)

_ACCOUNT_TOKENS = _Table(
    "account_tokens",
    (
        ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
        (
            "account_address",
            "TEXT NOT NULL REFERENCES accounts(address) ON UPDATE CASCADE ON DELETE CASCADE",
        ),
        ("token_name", "TEXT NOT NULL"),
        ("token_address", "TEXT NOT NULL"),
        ("token_type", "INTEGER"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
        ("deleted_at", "DATETIME"),
    ),
    (
        _Index("addressname", ("account_address", "token_name", "token_address"), unique=True),
        _Index("idx_account_tokens_account_address", ("account_address",)),
        _Index("idx_account_tokens_token_name", ("token_name",)),
        _Index("idx_account_tokens_token_address", ("token_address",)),
        _Index("idx_account_tokens_deleted_at", ("deleted_at",)),
    ),
)

_TOKEN_TRANSFERS = _Table(
    "token_transfers",
    (
        ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
        (
            "transaction_id",
            "TEXT REFERENCES transactions(transaction_id) ON UPDATE CASCADE ON DELETE CASCADE",
        ),
        ("recipient_address", "TEXT"),
        ("sender_address", "TEXT"),
        ("ft_amount", "TEXT"),
        ("nft_id", "INTEGER"),
        ("token_name", "TEXT"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
        ("deleted_at", "DATETIME"),
    ),
    (
        _Index("idx_token_transfers_recipient_address", ("recipient_address",)),
        _Index("idx_token_transfers_sender_address", ("sender_address",)),
        _Index("idx_token_transfers_deleted_at", ("deleted_at",)),
    ),
)

_TRANSACTIONS = _Table(
    "transactions",
    (
        ("transaction_id", "TEXT PRIMARY KEY"),
        ("transaction_type", "INTEGER"),
        ("proposer_address", "TEXT"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
        ("deleted_at", "DATETIME"),
    ),
    (
        _Index("idx_transactions_transaction_type", ("transaction_type",)),
        _Index("idx_transactions_proposer_address", ("proposer_address",)),
        _Index("idx_transactions_deleted_at", ("deleted_at",)),
    ),
)

_ACCOUNTS = _Table(
    "accounts",
    (
        ("address", "TEXT PRIMARY KEY"),
        ("username", "TEXT"),
        ("password", "TEXT"),
        ("type", "TEXT DEFAULT 'custodial'"),
        ("created_at", "DATETIME"),
        ("updated_at", "DATETIME"),
        ("deleted_at", "DATETIME"),
    ),
    (_Index("idx_accounts_deleted_at", ("deleted_at",)),),
)

_TOKENS = _Table(
    "tokens",
    (
        ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
        ("name", "TEXT NOT NULL"),
        ("name_lower_case", "TEXT"),
        ("address", "TEXT NOT NULL"),
        ("setup", "TEXT"),
        ("transfer", "TEXT"),
        ("balance", "TEXT"),
        ("type", "INTEGER"),
    ),
    (_Index("idx_tokens_name", ("name",), unique=True),),
)


def _auto_migrate(connection: sqlite3.Connection, table: _Table) -> None:
    """Create a table, or add the columns it lacks, and its indexes."""
    if not has_table(connection, table.name):
        body = ", ".join(f"{_quote(name)} {definition}" for name, definition in table.columns)
        connection.execute(f"CREATE TABLE {_quote(table.name)} ({body})")
    else:
        existing = set(column_names(connection, table.name))
        for name, definition in table.columns:
            if name not in existing:
                connection.execute(
                    f"ALTER TABLE {_quote(table.name)} ADD COLUMN {_quote(name)} {definition}"
                )
    for index in table.indexes:
        unique = "UNIQUE " if index.unique else ""
        columns = ", ".join(_quote(column) for column in index.columns)
        connection.execute(
            f"CREATE {unique}INDEX IF NOT EXISTS {_quote(index.name)} "
            f"ON {_quote(table.name)} ({columns})"
        )


def _rename_table(connection: sqlite3.Connection, old: str, new: str) -> None:
    if has_table(connection, old) and not has_table(connection, new):
        connection.execute(f"ALTER TABLE {_quote(old)} RENAME TO {_quote(new)}")


def _rename_column(connection: sqlite3.Connection, table: str, old: str, new: str) -> None:
    columns = column_names(connection, table)
    if old in columns and new not in columns:
        connection.execute(
            f"ALTER TABLE {_quote(table)} RENAME COLUMN {_quote(old)} TO {_quote(new)}"
        )


def migrate(connection: sqlite3.Connection) -> None:
    """Create every table of the initial schema, upgrading older layouts."""
    _auto_migrate(connection, _LISTENER_STATUS)
    _auto_migrate(connection, _JOBS)

    _rename_table(connection, "storables", "storable_keys")
    _auto_migrate(connection, _PROPOSAL_KEYS)
    _auto_migrate(connection, _STORABLE_KEYS)

    _rename_table(connection, "fungible_token_transfers", "token_transfers")
    _auto_migrate(connection, _ACCOUNT_TOKENS)
    _auto_migrate(connection, _TOKEN_TRANSFERS)

    _rename_column(connection, "transactions", "payer_address", "proposer_address")
    _auto_migrate(connection, _TRANSACTIONS)

    _auto_migrate(connection, _ACCOUNTS)
    _auto_migrate(connection, _TOKENS)

    # Transfers recorded before sender_address existed take the proposer
    # of their transaction as sender.
    connection.execute(
        'UPDATE "token_transfers" SET "sender_address" = ('
        'SELECT "proposer_address" FROM "transactions" '
        'WHERE "transactions"."transaction_id" = "token_transfers"."transaction_id"'
        ') WHERE "sender_address" IS NULL'
    )


_ROLLBACK_ORDER = (
    _TOKENS,
    _ACCOUNTS,
    _TRANSACTIONS,
    _ACCOUNT_TOKENS,
    _TOKEN_TRANSFERS,
    _PROPOSAL_KEYS,
    _STORABLE_KEYS,
    _JOBS,
    _LISTENER_STATUS,
)


def rollback(connection: sqlite3.Connection) -> None:
    """Drop every table the initial schema created."""
    for table in _ROLLBACK_ORDER:
        connection.execute(f"DROP TABLE IF EXISTS {_quote(table.name)}")


def migrations() -> list[Migration]:
    """The migrations defined here, in order."""
    return [Migration(ID, migrate, rollback)]