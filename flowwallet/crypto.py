"""Elliptic-curve keys, hashing and signing used for account keys."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

# Size in bytes of one component of an (r, s) signature or an (x, y) point
# on a 256-bit curve.
EC_COMPONENT_SIZE = 32


class SignatureAlgorithm(str, Enum):
    """Signature algorithms an account key may use."""

    UNKNOWN = "UNKNOWN"
    ECDSA_P256 = "ECDSA_P256"
    ECDSA_SECP256K1 = "ECDSA_secp256k1"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, name: str) -> SignatureAlgorithm:
        """Return the algorithm with this name, or UNKNOWN."""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


class HashAlgorithm(str, Enum):
    """Hash algorithms an account key may use."""

    UNKNOWN = "UNKNOWN"
    SHA2_256 = "SHA2_256"
    SHA2_384 = "SHA2_384"
    SHA3_256 = "SHA3_256"
    SHA3_384 = "SHA3_384"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, name: str) -> HashAlgorithm:
        """Return the algorithm with this name, or UNKNOWN."""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


_CURVES = {
    SignatureAlgorithm.ECDSA_P256: ec.SECP256R1,
    SignatureAlgorithm.ECDSA_SECP256K1: ec.SECP256K1,
}

_HASHES = {
    HashAlgorithm.SHA2_256: ("sha256", hashes.SHA256),
    HashAlgorithm.SHA2_384: ("sha384", hashes.SHA384),
    HashAlgorithm.SHA3_256: ("sha3_256", hashes.SHA3_256),
    HashAlgorithm.SHA3_384: ("sha3_384", hashes.SHA3_384),
}


def _curve(sign_algo: SignatureAlgorithm) -> ec.EllipticCurve:
    try:
        return _CURVES[sign_algo]()
    except KeyError:
        raise ValueError(f"unsupported signature algorithm: {sign_algo}") from None


def _hash_entry(hash_algo: HashAlgorithm):
    try:
        return _HASHES[hash_algo]
    except KeyError:
        raise ValueError(f"unsupported hash algorithm: {hash_algo}") from None


def compute_hash(hash_algo: HashAlgorithm, message: bytes) -> bytes:
    """Hash a message with the given algorithm."""
    name, _ = _hash_entry(hash_algo)
    return hashlib.new(name, bytes(message)).digest()


@dataclass(frozen=True)
class PrivateKey:
    """An elliptic-curve private key together with its signature algorithm."""

    sign_algo: SignatureAlgorithm
    key: ec.EllipticCurvePrivateKey = field(repr=False)

    def public_key_hex(self) -> str:
        """Uncompressed public point as hex of x || y, without prefix byte."""
        numbers = self.key.public_key().public_numbers()
        raw = numbers.x.to_bytes(EC_COMPONENT_SIZE, "big") + numbers.y.to_bytes(
            EC_COMPONENT_SIZE, "big"
        )
        return raw.hex()

    def to_hex(self) -> str:
        """The private scalar as fixed-width hex, without a 0x prefix."""
        scalar = self.key.private_numbers().private_value
        return scalar.to_bytes(EC_COMPONENT_SIZE, "big").hex()

    def __str__(self) -> str:
        return "0x" + self.to_hex()


def generate_private_key(sign_algo: SignatureAlgorithm) -> PrivateKey:
    """Generate a fresh random private key for the algorithm."""
    return PrivateKey(sign_algo, ec.generate_private_key(_curve(sign_algo)))


def decode_private_key_hex(sign_algo: SignatureAlgorithm, value: str) -> PrivateKey:
    """Decode a hex private key (optionally 0x-prefixed)."""
    curve = _curve(sign_algo)
    text = value[2:] if value.startswith("0x") else value
    try:
        raw = bytes.fromhex(text)
    except ValueError as exc:
        raise ValueError(f"invalid private key hex: {exc}") from exc
    if len(raw) != EC_COMPONENT_SIZE:
        raise ValueError(
            f"invalid private key length: {len(raw)} bytes, expected {EC_COMPONENT_SIZE}"
        )
    scalar = int.from_bytes(raw, "big")
    return PrivateKey(sign_algo, ec.derive_private_key(scalar, curve))


def pad_component(data: bytes, length: int) -> bytes:
    """Left-pad data with zero bytes to the given length."""
    if len(data) > length:
        raise ValueError(f"component of {len(data)} bytes exceeds {length}")
    return bytes(length - len(data)) + bytes(data)


def _int_bytes(value: int) -> bytes:
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def parse_der_signature(signature: bytes) -> bytes:
    """Convert a DER-encoded ECDSA signature into fixed-width r || s."""
    r, s = decode_dss_signature(bytes(signature))
    return pad_component(_int_bytes(r), EC_COMPONENT_SIZE) + pad_component(
        _int_bytes(s), EC_COMPONENT_SIZE
    )


@dataclass(frozen=True)
class InMemorySigner:
    """Signs messages with a private key held in memory."""

    private_key: PrivateKey
    hash_algo: HashAlgorithm

    def __post_init__(self) -> None:
        _hash_entry(self.hash_algo)

    def _prehashed(self) -> ec.ECDSA:
        _, algorithm = _hash_entry(self.hash_algo)
        return ec.ECDSA(Prehashed(algorithm()))

    def sign(self, message: bytes) -> bytes:
        """Hash and sign a message, returning r || s."""
        digest = compute_hash(self.hash_algo, message)
        der = self.private_key.key.sign(digest, self._prehashed())
        return parse_der_signature(der)

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Check an r || s signature over a message."""
        if len(signature) != 2 * EC_COMPONENT_SIZE:
            return False
        r = int.from_bytes(signature[:EC_COMPONENT_SIZE], "big")
        s = int.from_bytes(signature[EC_COMPONENT_SIZE:], "big")
        digest = compute_hash(self.hash_algo, message)
        try:
            self.private_key.key.public_key().verify(
                encode_dss_signature(r, s), digest, self._prehashed()
            )
        except (InvalidSignature, ValueError):
            return False
        return True