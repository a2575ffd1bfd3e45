# flowwallet

Building blocks for a custodial wallet service on the Flow blockchain.

- **Crypto** (`flowwallet.crypto`): `SignatureAlgorithm` (ECDSA P-256 and
  secp256k1), `HashAlgorithm` (SHA2-256/384, SHA3-256/384), `compute_hash`,
  `PrivateKey`, `generate_private_key`, `decode_private_key_hex`, and
  `InMemorySigner`, which signs and verifies with Flow's fixed-width
  `r || s` signatures (`parse_der_signature` converts DER signatures).
- **Key records** (`flowwallet.keys`): `KeyType`, `AccountKey`, `Storable`,
  `ProposalKey`, `Private`, `Authorizer`, the `KeyStore` protocol,
  `normalize_address` and the `AdminProposalKeyCountMismatch` error.
- **Local keys** (`flowwallet.local_keys`): `generate` and `signer`.
- **Encryption** (`flowwallet.encryption`): `AESCrypter`, AES-GCM encryption
  with the random 12-byte nonce prepended to the ciphertext. A key that is
  not 16, 24 or 32 bytes long raises `KeySizeError`; a wrong key, tampered
  data or a too-short message raises `DecryptionError`.
- **Key storage** (`flowwallet.key_store`): `SqliteKeyStore`, which hands out
  the least recently used account key and admin proposal key and marks it
  used. When nothing matches it raises `LookupError("record not found")`.
- **Key manager** (`flowwallet.key_manager`): `KeyManager`, configured with a
  `KeyManagerConfig`, a `KeyStore` and a chain client implementing the
  `FlowClient` protocol (`get_account(address)` returning a `ChainAccount`).
  It generates, saves (encrypts), loads (decrypts) and authorizes keys, and
  keeps the admin proposal keys in sync with the chain
  (`init_admin_proposal_keys`, `check_admin_proposal_key_count`).
- **System settings** (`flowwallet.system`): `Settings`,
  `SqliteSettingsStore` and `SystemService` with maintenance mode and a
  timed pause (`pause`, `resume`, `is_halted`).
- **Migrations** (`flowwallet.migrations`): the database schema as ordered,
  reversible steps. `runner.list_migrations()` gives them in order,
  `runner.Migrator` applies them (`migrate`, `applied_ids`,
  `rollback_last`) and records applied ids in a `migrations` table, and
  `runner.migrate_database(connection)` brings a database up to date.
- **Ops worker pool** (`flowwallet.ops`): `OpsWorkerPool` runs
  `InitFungibleVaultsJob` jobs on a fixed number of threads; an exception
  raised by a job is logged and the worker carries on.

## Installation

```
pip install flowwallet
```

Python 3.10 or later is required. The migrations drop columns, which needs
SQLite 3.35 or later.

## Examples

Encrypting a value at rest:

```python
import os

from flowwallet.encryption import AESCrypter

crypter = AESCrypter(os.urandom(32))  # a 32-byte AES key
blob = crypter.encrypt(b"secret")
assert crypter.decrypt(blob) == b"secret"
```

Generating and using a local key:

```python
from flowwallet import local_keys
from flowwallet.crypto import HashAlgorithm, SignatureAlgorithm

account_key, private = local_keys.generate(
    0, 1000, SignatureAlgorithm.ECDSA_P256, HashAlgorithm.SHA3_256
)
signer = local_keys.signer(private)
signature = signer.sign(b"message")
assert signer.verify(b"message", signature)
```

Setting up a database and the system settings:

```python
import sqlite3
from datetime import timedelta

from flowwallet.migrations.runner import migrate_database
from flowwallet.system import SqliteSettingsStore, SystemService

connection = sqlite3.connect("wallet.db")
migrate_database(connection)

service = SystemService(SqliteSettingsStore(connection), timedelta(minutes=1))
service.pause()
assert service.is_halted()
service.resume()
assert not service.is_halted()
```

Running jobs on the ops worker pool:

```python
from flowwallet.ops import InitFungibleVaultsJob, OpsWorkerPool

def init_vaults(address, tokens):
    print(address, tokens)

pool = OpsWorkerPool(num_workers=2, capacity=10)
pool.start()
pool.add_fungible_init_job(InitFungibleVaultsJob(init_vaults, "0x01cf0e2f2f715450", ["FUSD"]))
pool.stop()  # waits until queued jobs are done
```

## What this package does not do

- It has no HTTP API, no command-line program and no server.
- It does not talk to the chain. `KeyManager` needs a client you supply that
  implements `FlowClient.get_account`.
- Only local keys and local AES encryption are supported. A `KeyManager`
  configured for Google or AWS KMS keys or encryption raises `ValueError`.
- Storage and migrations are for SQLite only.
- It has no account, token, transaction or job services; the migrations
  create their tables but nothing here reads or writes them.

## Running the tests

```
pip install "flowwallet[test]"
pytest
```