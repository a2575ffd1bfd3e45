"""Locally generated account keys and their signers."""

from __future__ import annotations

from flowwallet.crypto import (
    HashAlgorithm,
    InMemorySigner,
    SignatureAlgorithm,
    decode_private_key_hex,
    generate_private_key,
)
from flowwallet.keys import AccountKey, KeyType, Private


def generate(
    key_index: int,
    weight: int,
    sign_algo: SignatureAlgorithm,
    hash_algo: HashAlgorithm,
) -> tuple[AccountKey, Private]:
    """Generate a new local key; return its on-chain key and private part."""
    private_key = generate_private_key(sign_algo)
    account_key = AccountKey(
        index=key_index,
        public_key=private_key.public_key_hex(),
        sign_algo=sign_algo,
        hash_algo=hash_algo,
        weight=weight,
    )
    private = Private(
        index=key_index,
        type=KeyType.LOCAL,
        value=private_key.to_hex(),
        sign_algo=sign_algo,
        hash_algo=hash_algo,
    )
    return account_key, private


def signer(key: Private) -> InMemorySigner:
    """Create an in-memory signer for a local private key."""
    return InMemorySigner(decode_private_key_hex(key.sign_algo, key.value), key.hash_algo)