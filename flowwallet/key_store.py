"""SQLite-backed storage of account keys and admin proposal keys."""

from __future__ import annotations

import sqlite3
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from flowwallet.keys import ProposalKey, Storable

_STORABLE_COLUMNS = (
    '"id", "account_address", "index", "type", "value", "public_key", '
    '"sign_algo", "hash_algo", "created_at", "updated_at", "deleted_at"'
)


def _stamp(moment: datetime | None) -> str | None:
    return moment.isoformat(timespec="microseconds") if moment is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _storable_from_row(row: tuple) -> Storable:
    return Storable(
        id=row[0],
        account_address=row[1] or "",
        index=row[2] or 0,
        type=row[3] or "",
        value=bytes(row[4] or b""),
        public_key=row[5] or "",
        sign_algo=row[6] or "",
        hash_algo=row[7] or "",
        created_at=_parse(row[8]),
        updated_at=_parse(row[9]),
        deleted_at=_parse(row[10]),
    )


class SqliteKeyStore:
    """Key storage handing out the least recently used key on each request."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._account_key_lock = threading.Lock()
        self._proposal_key_lock = threading.Lock()
        self._clock_lock = threading.Lock()
        self._last_stamp: datetime | None = None

    def _now(self) -> datetime:
        """Current time, strictly increasing across calls on this store."""
        with self._clock_lock:
            now = datetime.now(timezone.utc)
            if self._last_stamp is not None and now <= self._last_stamp:
                now = self._last_stamp + timedelta(microseconds=1)
            self._last_stamp = now
            return now

    def insert_account_key(self, storable: Storable) -> Storable:
        """Store an account key and return it with its id and timestamps."""
        now = self._now()
        created = storable.created_at or now
        updated = storable.updated_at or now
        with self._connection:
            cursor = self._connection.execute(
                'INSERT INTO "storable_keys" ("account_address", "index", "type", "value", '
                '"public_key", "sign_algo", "hash_algo", "created_at", "updated_at", '
                '"deleted_at") VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
                (
                    storable.account_address,
                    storable.index,
                    str(storable.type),
                    bytes(storable.value),
                    storable.public_key,
                    storable.sign_algo,
                    storable.hash_algo,
                    _stamp(created),
                    _stamp(updated),
                    _stamp(storable.deleted_at),
                ),
            )
        return replace(storable, id=cursor.lastrowid, created_at=created, updated_at=updated)

    def account_key(self, address: str) -> Storable:
        """Return the least recently used key of an account and mark it used."""
        with self._account_key_lock, self._connection:
            row = self._connection.execute(
                f'SELECT {_STORABLE_COLUMNS} FROM "storable_keys" '
                'WHERE "account_address" = ? AND "deleted_at" IS NULL '
                'ORDER BY "updated_at" ASC, "id" ASC LIMIT 1',
                (address,),
            ).fetchone()
            if row is None:
                raise LookupError("record not found")
            key = _storable_from_row(row)
            now = self._now()
            self._connection.execute(
                'UPDATE "storable_keys" SET "updated_at" = ? WHERE "id" = ?',
                (_stamp(now), key.id),
            )
        return replace(key, updated_at=now)

    def proposal_key_index(self, limit_key_count: int) -> int:
        """Return the least recently used of the first proposal keys and mark it used."""
        with self._proposal_key_lock, self._connection:
            row = self._connection.execute(
                'SELECT "id", "key_index" FROM ('
                'SELECT * FROM "proposal_keys" ORDER BY "id" ASC LIMIT ?'
                ') AS p ORDER BY "updated_at" ASC, "id" ASC LIMIT 1',
                (limit_key_count,),
            ).fetchone()
            if row is None:
                raise LookupError("record not found")
            key_id, key_index = row
            self._connection.execute(
                'UPDATE "proposal_keys" SET "updated_at" = ? WHERE "id" = ?',
                (_stamp(self._now()), key_id),
            )
        return key_index

    def proposal_key_count(self) -> int:
        """Number of stored proposal keys."""
        (count,) = self._connection.execute(
            f'SELECT COUNT(*) FROM "{ProposalKey.TABLE_NAME}"'
        ).fetchone()
        return count

    def insert_proposal_key(self, proposal_key: ProposalKey) -> None:
        """Store a proposal key."""
        now = self._now()
        with self._connection:
            self._connection.execute(
                'INSERT INTO "proposal_keys" ("key_index", "created_at", "updated_at") '
                "VALUES (?, ?, ?)",
                (
                    proposal_key.key_index,
                    _stamp(proposal_key.created_at or now),
                    _stamp(proposal_key.updated_at or now),
                ),
            )

    def delete_all_proposal_keys(self) -> None:
        """Remove every stored proposal key."""
        with self._connection:
            self._connection.execute('DELETE FROM "proposal_keys"')