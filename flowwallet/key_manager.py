"""Key manager: generates, stores, loads and signs with account keys."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from flowwallet import local_keys
from flowwallet.crypto import HashAlgorithm, InMemorySigner, SignatureAlgorithm
from flowwallet.encryption import AESCrypter, Crypter, EncryptionKeyType
from flowwallet.keys import (
    ACCOUNT_KEY_WEIGHT_THRESHOLD,
    AccountKey,
    AdminProposalKeyCountMismatch,
    Authorizer,
    KeyStore,
    KeyType,
    Private,
    ProposalKey,
    Storable,
    normalize_address,
)

log = logging.getLogger(__name__)


@dataclass
class KeyManagerConfig:
    """Settings the key manager needs."""

    admin_address: str
    admin_private_key: str = field(default="", repr=False)
    admin_key_index: int = 0
    admin_key_type: str = KeyType.LOCAL.value
    admin_proposal_key_count: int = 1
    default_key_type: str = KeyType.LOCAL.value
    default_key_index: int = 0
    default_key_weight: int = -1
    default_sign_algo: str = SignatureAlgorithm.ECDSA_P256.value
    default_hash_algo: str = HashAlgorithm.SHA3_256.value
    encryption_key: str = field(default="", repr=False)
    encryption_key_type: str = EncryptionKeyType.LOCAL.value


@dataclass
class ChainAccount:
    """An account as read from the chain."""

    address: str
    keys: list[AccountKey] = field(default_factory=list)


class FlowClient(Protocol):
    """The part of the chain client the key manager uses."""

    def get_account(self, address: str) -> ChainAccount:
        """Fetch an account and its keys from the chain."""


def signer_for_key(key: Private) -> InMemorySigner:
    """Create a signer for a private key of a supported type."""
    if key.type == KeyType.LOCAL:
        return local_keys.signer(key)
    if key.type in (KeyType.GOOGLE_KMS, KeyType.AWS_KMS):
        raise ValueError(f"key type {key.type} is not supported by this key manager")
    raise ValueError(f"key.Type not recognised: {key.type}")


def _crypter_for(config: KeyManagerConfig) -> Crypter:
    if config.encryption_key_type in (EncryptionKeyType.GOOGLE_KMS, EncryptionKeyType.AWS_KMS):
        raise ValueError(
            f"encryption key type {config.encryption_key_type} is not supported"
        )
    return AESCrypter(config.encryption_key.encode())


class KeyManager:
    """Generates account keys and hands out authorizers for signing."""

    def __init__(self, config: KeyManagerConfig, store: KeyStore, client: FlowClient) -> None:
        if config.default_key_weight < 0:
            config.default_key_weight = ACCOUNT_KEY_WEIGHT_THRESHOLD
        self.config = config
        self.store = store
        self.client = client
        self.crypter = _crypter_for(config)
        self.admin_account_key = Private(
            index=config.admin_key_index,
            type=config.admin_key_type,
            value=config.admin_private_key,
            sign_algo=SignatureAlgorithm.from_string(config.default_sign_algo),
            hash_algo=HashAlgorithm.from_string(config.default_hash_algo),
        )

    @property
    def _admin_address(self) -> str:
        return normalize_address(self.config.admin_address)

    def check_admin_proposal_key_count(self) -> None:
        """Raise unless chain and database both hold enough admin proposal keys."""
        configured = self.config.admin_proposal_key_count
        try:
            account = self.client.get_account(self._admin_address)
        except Exception as exc:
            raise RuntimeError(
                f"error while fetching admin account from chain: {exc}"
            ) from exc

        on_chain = sum(1 for key in account.keys if not key.revoked)
        if on_chain < configured:
            raise AdminProposalKeyCountMismatch(
                f"configured: {configured}, onchain: {on_chain}"
            )

        try:
            in_db = self.store.proposal_key_count()
        except Exception as exc:
            raise RuntimeError(
                f"error while fetching admin proposal key count from database: {exc}"
            ) from exc
        if in_db < configured:
            raise AdminProposalKeyCountMismatch(
                f"configured: {configured}, in database: {in_db}"
            )

    def init_admin_proposal_keys(self) -> int:
        """Replace stored proposal keys with the admin's unrevoked keys; return their count."""
        account = self.client.get_account(self._admin_address)
        self.store.delete_all_proposal_keys()
        count = 0
        for key in account.keys:
            if not key.revoked:
                self.store.insert_proposal_key(ProposalKey(key_index=key.index))
                count += 1
        return count

    def generate(self, key_index: int, weight: int) -> tuple[AccountKey, Private]:
        """Generate a key of the configured default type."""
        key_type = self.config.default_key_type
        if key_type == KeyType.LOCAL:
            return local_keys.generate(
                key_index,
                weight,
                SignatureAlgorithm.from_string(self.config.default_sign_algo),
                HashAlgorithm.from_string(self.config.default_hash_algo),
            )
        raise ValueError(f"keyStore.Generate() not implmented for {key_type}")

    def generate_default(self) -> tuple[AccountKey, Private]:
        """Generate a key with the configured default index and weight."""
        return self.generate(self.config.default_key_index, self.config.default_key_weight)

    def save(self, key: Private) -> Storable:
        """Turn an in-flight key into a storable one with an encrypted value."""
        return Storable(
            index=key.index,
            type=str(key.type),
            value=self.crypter.encrypt(key.value.encode()),
            sign_algo=str(key.sign_algo),
            hash_algo=str(key.hash_algo),
        )

    def load(self, storable: Storable) -> Private:
        """Turn a stored key back into an in-flight key."""
        return Private(
            index=storable.index,
            type=storable.type,
            value=self.crypter.decrypt(bytes(storable.value)).decode(),
            sign_algo=SignatureAlgorithm.from_string(storable.sign_algo),
            hash_algo=HashAlgorithm.from_string(storable.hash_algo),
        )

    def admin_authorizer(self) -> Authorizer:
        """Authorizer for the admin account."""
        return self.make_authorizer(self._admin_address)

    def user_authorizer(self, address: str) -> Authorizer:
        """Authorizer for a user account."""
        return self.make_authorizer(address)

    def make_authorizer(self, address: str) -> Authorizer:
        """Build an authorizer from the account's least recently used key."""
        address = normalize_address(address)
        if address == self._admin_address:
            key = self.admin_account_key
        else:
            key = self.load(self.store.account_key(address))

        account = self.client.get_account(address)
        signer = signer_for_key(key)
        return Authorizer(address=address, key=account.keys[key.index], signer=signer)

    def admin_proposal_key(self) -> Authorizer:
        """Authorizer using the least recently used admin proposal key."""
        admin = self._admin_address
        try:
            index = self.store.proposal_key_index(self.config.admin_proposal_key_count)
        except Exception as exc:
            raise RuntimeError(f"unable to get admin proposal key: {exc}") from exc

        account = self.client.get_account(admin)
        signer = signer_for_key(self.admin_account_key)
        log.debug("Using admin proposal key address=%s keyIndex=%d", admin, index)
        return Authorizer(address=admin, key=account.keys[index], signer=signer)