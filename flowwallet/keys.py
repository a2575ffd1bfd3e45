"""Key records, authorizers and the storage interface for key management."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Protocol

from flowwallet.crypto import HashAlgorithm, SignatureAlgorithm

ADDRESS_LENGTH = 8
ACCOUNT_KEY_WEIGHT_THRESHOLD = 1000


class KeyType(str, Enum):
    """Where an account's private key lives."""

    LOCAL = "local"
    GOOGLE_KMS = "google_kms"
    AWS_KMS = "aws_kms"

    def __str__(self) -> str:
        return self.value


class AdminProposalKeyCountMismatch(Exception):
    """The admin account has fewer proposal keys than configured."""

    def __init__(self, detail: str = "") -> None:
        message = "admin-proposal-key count mismatch"
        super().__init__(f"{detail}, {message}" if detail else message)


def normalize_address(address: str) -> str:
    """Return an account address as 0x followed by 16 lower-case hex digits."""
    text = address[2:] if address.startswith(("0x", "0X")) else address
    if len(text) % 2:
        text = "0" + text
    try:
        raw = bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"not a valid address: {address!r}") from exc
    if len(raw) > ADDRESS_LENGTH:
        raise ValueError(f"not a valid address: {address!r}")
    return "0x" + raw.rjust(ADDRESS_LENGTH, b"\x00").hex()


@dataclass
class AccountKey:
    """A public key registered on an on-chain account."""

    index: int
    public_key: str
    sign_algo: SignatureAlgorithm
    hash_algo: HashAlgorithm
    weight: int = ACCOUNT_KEY_WEIGHT_THRESHOLD
    sequence_number: int = 0
    revoked: bool = False


@dataclass
class Storable:
    """A stored account key; value is encrypted key material or a KMS resource id."""

    TABLE_NAME: ClassVar[str] = "storable_keys"

    id: int = 0
    account_address: str = ""
    index: int = 0
    type: str = ""
    value: bytes = field(default=b"", repr=False)
    public_key: str = ""
    sign_algo: str = ""
    hash_algo: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    def to_json(self) -> dict[str, Any]:
        """Public fields as exposed through the API."""
        return {
            "index": self.index,
            "type": str(self.type),
            "publicKey": self.public_key,
            "signAlgo": self.sign_algo,
            "hashAlgo": self.hash_algo,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class ProposalKey:
    """An admin account key index usable as transaction proposer."""

    TABLE_NAME: ClassVar[str] = "proposal_keys"

    key_index: int
    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Private:
    """An in-flight key: value is the plain private key or KMS resource id."""

    index: int
    type: str
    value: str = field(repr=False)
    sign_algo: SignatureAlgorithm
    hash_algo: HashAlgorithm

    def to_json(self) -> dict[str, Any]:
        return {"index": self.index, "type": str(self.type)}


@dataclass
class Authorizer:
    """Everything needed to sign a transaction for an account."""

    address: str
    key: AccountKey
    signer: Any

    def equals(self, other: Authorizer) -> bool:
        """True if both refer to the same account and key index."""
        return (
            normalize_address(self.address) == normalize_address(other.address)
            and self.key.index == other.key.index
        )


class KeyStore(Protocol):
    """Storage needed by the key manager."""

    def account_key(self, address: str) -> Storable:
        """Return the least recently used key of an account."""

    def proposal_key_index(self, limit_key_count: int) -> int:
        """Return the least recently used proposal key index."""

    def proposal_key_count(self) -> int:
        """Return the number of stored proposal keys."""

    def insert_proposal_key(self, proposal_key: ProposalKey) -> None:
        """Store a proposal key."""

    def delete_all_proposal_keys(self) -> None:
        """Remove every stored proposal key."""