import sqlite3

import pytest

from flowwallet.key_store import SqliteKeyStore
from flowwallet.keys import ProposalKey, Storable

SCHEMA = """
CREATE TABLE "storable_keys" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "account_address" TEXT,
    "index" INTEGER,
    "type" TEXT,
    "value" BLOB,
    "public_key" TEXT,
    "sign_algo" TEXT,
    "hash_algo" TEXT,
    "created_at" DATETIME,
    "updated_at" DATETIME,
    "deleted_at" DATETIME
);
CREATE TABLE "proposal_keys" (
    "id" INTEGER PRIMARY KEY AUTOINCREMENT,
    "key_index" INTEGER,
    "created_at" DATETIME,
    "updated_at" DATETIME
);
CREATE UNIQUE INDEX "idx_proposal_keys_key_index" ON "proposal_keys" ("key_index");
"""

ADDRESS = "0x0000000000000002"


@pytest.fixture
def store():
    connection = sqlite3.connect(":memory:")
    connection.executescript(SCHEMA)
    yield SqliteKeyStore(connection)
    connection.close()


def _key(index, address=ADDRESS):
    return Storable(
        account_address=address,
        index=index,
        type="local",
        value=b"\x01\x02",
        public_key=f"pk{index}",
        sign_algo="ECDSA_P256",
        hash_algo="SHA3_256",
    )


def test_insert_account_key_assigns_id_and_times(store):
    stored = store.insert_account_key(_key(0))
    assert stored.id >= 1
    assert stored.created_at is not None
    assert stored.updated_at == stored.created_at


def test_account_key_round_trips_fields(store):
    store.insert_account_key(_key(0))
    key = store.account_key(ADDRESS)
    assert key.index == 0
    assert key.value == b"\x01\x02"
    assert key.public_key == "pk0"
    assert key.sign_algo == "ECDSA_P256"
    assert key.account_address == ADDRESS


def test_account_key_rotates_least_recently_used(store):
    for index in range(3):
        store.insert_account_key(_key(index))
    picked = [store.account_key(ADDRESS).index for _ in range(6)]
    assert picked == [0, 1, 2, 0, 1, 2]


def test_account_key_marks_key_as_used(store):
    stored = store.insert_account_key(_key(0))
    key = store.account_key(ADDRESS)
    assert key.updated_at > stored.updated_at


def test_account_key_ignores_other_accounts(store):
    store.insert_account_key(_key(5, address="0x0000000000000003"))
    store.insert_account_key(_key(1))
    assert store.account_key(ADDRESS).index == 1


def test_account_key_unknown_address(store):
    with pytest.raises(LookupError):
        store.account_key(ADDRESS)


def test_proposal_key_count_and_delete(store):
    for index in range(3):
        store.insert_proposal_key(ProposalKey(key_index=index))
    assert store.proposal_key_count() == 3
    store.delete_all_proposal_keys()
    assert store.proposal_key_count() == 0


def test_proposal_key_index_limited_to_first_keys(store):
    for index in (4, 7, 9):
        store.insert_proposal_key(ProposalKey(key_index=index))
    picked = [store.proposal_key_index(2) for _ in range(4)]
    assert picked == [4, 7, 4, 7]


def test_proposal_key_index_without_keys(store):
    with pytest.raises(LookupError):
        store.proposal_key_index(1)


def test_duplicate_proposal_key_rejected(store):
    store.insert_proposal_key(ProposalKey(key_index=1))
    with pytest.raises(sqlite3.IntegrityError):
        store.insert_proposal_key(ProposalKey(key_index=1))